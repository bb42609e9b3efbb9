"""
Shared pytest fixtures for backupstream tests.

This module provides fixtures for:
- Test settings with small buffers
- Filesystem and S3 destinations
- Mock S3 service (moto)
- Instrumented writer layers that record calls
"""

import pytest
import boto3
from moto import mock_aws

from backupstream.config import Config
from backupstream.writer.destinations import FilesystemDestination, S3Destination
from backupstream.writer.layers import LayerKind, WriterLayer


class TestSettings(Config):
    """Small buffers so tests cross block and pipe boundaries."""
    __test__ = False

    PIPE_BUFFER_SIZE = 1024
    GZIP_LEVEL = 6
    LZ4_BLOCK_SIZE = 1024
    SNAPPY_BLOCK_SIZE = 1024
    AWS_DEFAULT_REGION = 'us-east-1'
    MULTIPART_THRESHOLD = 8 * 1024 * 1024
    MULTIPART_CHUNKSIZE = 8 * 1024 * 1024
    UPLOAD_MAX_CONCURRENCY = 2
    DEBUG = True
    LOG_DIR = None


class RecordingLayer(WriterLayer):
    """
    Writer layer that records every call into a shared list.

    Pass fail_on='flush' (or 'close', 'write') to make that call raise.
    """

    def __init__(self, label, calls, kind=LayerKind.SINK, fail_on=None):
        super().__init__()
        self.label = label
        self.calls = calls
        self.kind = kind
        self.fail_on = fail_on
        self.data = bytearray()

    def _record(self, operation):
        self.calls.append((self.label, operation))
        if self.fail_on == operation:
            raise OSError(f"{self.label} {operation} failed")

    def _write(self, data):
        self._record('write')
        self.data += data
        return len(data)

    def flush(self):
        self._record('flush')

    def _close(self):
        self._record('close')

    def abort(self, exc=None):
        self.calls.append((self.label, 'abort'))
        self._closed = True

    def wait(self):
        self.calls.append((self.label, 'wait'))


@pytest.fixture
def settings():
    """Settings class used by all writer tests."""
    return TestSettings


@pytest.fixture
def calls():
    """Shared call log for RecordingLayer instances."""
    return []


@pytest.fixture
def fs_destination(tmp_path):
    """Filesystem destination in a temporary directory."""
    return FilesystemDestination(path=str(tmp_path))


@pytest.fixture
def mock_s3():
    """
    Mock AWS S3 service using moto.

    Creates a test bucket 'test-bucket' in us-east-1 region.
    """
    with mock_aws():
        s3 = boto3.resource('s3', region_name='us-east-1')
        s3.create_bucket(Bucket='test-bucket')

        yield s3


@pytest.fixture
def s3_destination(mock_s3):
    """S3 destination pointing at the mocked 'test-bucket'."""
    return S3Destination(
        bucket='test-bucket',
        region='us-east-1',
        access_key='test_access_key',
        secret_key='test_secret_key'
    )


@pytest.fixture
def make_layer(calls):
    """Factory for RecordingLayer instances sharing the calls log."""
    def _make(label, kind=LayerKind.SINK, fail_on=None):
        return RecordingLayer(label, calls, kind=kind, fail_on=fail_on)
    return _make
