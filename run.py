#!/usr/bin/env python3
"""Stream stdin to a backup destination.

Environment:
    BACKUP_NAME         file name or object key (required)
    BACKUP_DESTINATION  'filesystem' or 's3' (default: filesystem)
    BACKUP_PATH         directory for filesystem destinations
    BACKUP_BUCKET       bucket for s3 destinations
    BACKUP_CODEC        none, gzip, lz4 or snappy (default: gzip)
"""
import os
import sys

from backupstream import configure_logging, open_backup_writer
from backupstream.config import get_config
from backupstream.writer import destination_from_config

CHUNK_SIZE = 1024 * 1024

if __name__ == '__main__':
    settings = get_config()
    logger = configure_logging(settings)

    destination = destination_from_config({
        'type': os.environ.get('BACKUP_DESTINATION', 'filesystem'),
        'path': os.environ.get('BACKUP_PATH'),
        'bucket': os.environ.get('BACKUP_BUCKET'),
        'region': os.environ.get('AWS_DEFAULT_REGION'),
        'endpoint_url': os.environ.get('AWS_ENDPOINT_URL'),
    })

    with open_backup_writer(
        os.environ['BACKUP_NAME'],
        destination,
        codec=os.environ.get('BACKUP_CODEC', 'gzip'),
        settings=settings
    ) as writer:
        while True:
            chunk = sys.stdin.buffer.read(CHUNK_SIZE)
            if not chunk:
                break
            writer.write(chunk)
