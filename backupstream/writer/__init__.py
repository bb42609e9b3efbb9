"""
Backup writer module for backupstream.

This module handles streaming a backup to its destination:
- Destination sinks (local filesystem and S3)
- Compression layers (gzip, LZ4, Snappy)
- Cipher layer selection
- The writer stack and its shutdown protocol
"""

from .backup_writer import BackupWriter, WriterState, open_backup_writer
from .compression import Codec, decompress
from .destinations import FilesystemDestination, S3Destination, destination_from_config
from .encryption import Cipher
from .errors import (
    BackupWriterError,
    ConfigurationError,
    ConstructionError,
    DestinationCreateError,
    LayerIOError,
    UnsupportedCipherError,
    UnsupportedCodecError,
    UploadError,
    WriterClosedError
)

__all__ = [
    'BackupWriter',
    'WriterState',
    'open_backup_writer',
    'Codec',
    'Cipher',
    'decompress',
    'FilesystemDestination',
    'S3Destination',
    'destination_from_config',
    'BackupWriterError',
    'ConfigurationError',
    'ConstructionError',
    'DestinationCreateError',
    'LayerIOError',
    'UnsupportedCipherError',
    'UnsupportedCodecError',
    'UploadError',
    'WriterClosedError'
]
