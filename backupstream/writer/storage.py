"""
Destination sinks for backup streams.

Supports:
- FileSink: write the stream to a file in a local directory
- S3Sink: stream to S3 through a bounded pipe read by a background upload
"""

import os
import logging
from concurrent.futures import ThreadPoolExecutor

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import ClientError, BotoCoreError

from .destinations import FILESYSTEM, OBJECT_STORE, normalize_kind
from .errors import ConfigurationError, ConstructionError, DestinationCreateError, UploadError
from .layers import LayerKind, WriterLayer
from .pipe import Pipe

logger = logging.getLogger(__name__)


class FileSink(WriterLayer):
    """
    Sink writing to a file in a local directory.

    The file is created (or truncated) at {path}/{name}.
    """

    kind = LayerKind.SINK

    def __init__(self, directory: str, name: str):
        """
        Open the destination file.

        Args:
            directory: Destination directory, must already exist
            name: File name of the backup

        Raises:
            DestinationCreateError: If the file cannot be created
        """
        super().__init__()
        self.path = os.path.join(directory, name)

        try:
            self._file = open(self.path, 'wb')
        except PermissionError as e:
            raise DestinationCreateError(f"Permission denied creating {self.path}: {e}") from e
        except OSError as e:
            raise DestinationCreateError(f"Cannot create destination file {self.path}: {e}") from e

        logger.debug(f"Opened destination file {self.path}")

    def _write(self, data) -> int:
        return self._file.write(data)

    def flush(self):
        if not self._closed:
            self._file.flush()

    def _close(self):
        self._file.close()
        logger.debug(f"Closed destination file {self.path}")

    def abort(self, exc: Exception = None):
        """Close and remove the partial file."""
        self.close()
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        logger.warning(f"Removed partial backup file {self.path}")

    def __repr__(self):
        return f"<FileSink {self.path}>"


class S3Sink(WriterLayer):
    """
    Sink streaming to an S3 object.

    boto3 uploads read from a file object, so writes go into a bounded pipe
    and a single background worker feeds its read end to upload_fileobj().
    write() blocks while the pipe is full. The outcome of the upload is
    held by a future and raised from wait().
    """

    kind = LayerKind.SINK

    def __init__(self, s3_client, bucket: str, key: str, settings):
        """
        Start the background upload.

        Args:
            s3_client: boto3 S3 client
            bucket: Target bucket name
            key: Target object key
            settings: Config class with pipe and transfer settings
        """
        super().__init__()
        self.bucket = bucket
        self.key = key
        self._client = s3_client
        self._pipe = Pipe(settings.PIPE_BUFFER_SIZE)
        self._transfer_config = TransferConfig(
            multipart_threshold=settings.MULTIPART_THRESHOLD,
            multipart_chunksize=settings.MULTIPART_CHUNKSIZE,
            max_concurrency=settings.UPLOAD_MAX_CONCURRENCY
        )

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='backup-upload')
        try:
            self.upload_future = executor.submit(self._upload)
        finally:
            # The worker exits once the upload returns
            executor.shutdown(wait=False)

    def _upload(self) -> str:
        logger.info(f"Starting upload to s3://{self.bucket}/{self.key}")
        reader = self._pipe.reader

        try:
            self._client.upload_fileobj(
                reader,
                self.bucket,
                self.key,
                Config=self._transfer_config
            )
        except ClientError as e:
            reader.close(e)
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            logger.error(f"Upload to s3://{self.bucket}/{self.key} failed ({error_code}): {e}")
            raise UploadError(f"S3 upload failed ({error_code}): {e}") from e
        except BotoCoreError as e:
            reader.close(e)
            logger.error(f"Upload to s3://{self.bucket}/{self.key} failed: {e}")
            raise UploadError(f"S3 upload failed: {e}") from e
        except Exception as e:
            reader.close(e)
            logger.error(f"Upload to s3://{self.bucket}/{self.key} failed: {e}")
            raise UploadError(f"Failed to upload to S3: {e}") from e
        finally:
            reader.close()

        logger.info(f"Finished upload to s3://{self.bucket}/{self.key}")
        return self.key

    def _write(self, data) -> int:
        return self._pipe.writer.write(data)

    def _close(self):
        # EOF for the upload
        self._pipe.writer.close()

    def abort(self, exc: Exception = None):
        """Fail the upload so a truncated object is never completed."""
        if self._closed:
            return
        self._closed = True
        self._pipe.writer.close(exc or ConnectionAbortedError("backup writer aborted"))

    def wait(self):
        """
        Block until the upload has finished.

        Raises:
            UploadError: If the upload failed
        """
        self.upload_future.result()

    def __repr__(self):
        return f"<S3Sink s3://{self.bucket}/{self.key}>"


def create_s3_client(destination, settings):
    """
    Build a boto3 S3 client for an S3Destination.

    Raises:
        ConstructionError: If the session or client cannot be created
    """
    try:
        session = destination.session
        if session is None:
            session = boto3.session.Session(
                aws_access_key_id=destination.access_key,
                aws_secret_access_key=destination.secret_key,
                region_name=destination.region or settings.AWS_DEFAULT_REGION
            )
        return session.client('s3', endpoint_url=destination.endpoint_url)
    except Exception as e:
        raise ConstructionError(f"Failed to initialize S3 client: {e}") from e


def create_sink(name: str, destination, settings) -> WriterLayer:
    """
    Factory function to create the sink for a destination.

    Args:
        name: File name or object key of the backup
        destination: FilesystemDestination, S3Destination or any object
            with a matching 'kind'
        settings: Config class

    Returns:
        FileSink or S3Sink instance

    Raises:
        ConfigurationError: If the destination kind is unknown
        ConstructionError: If the sink cannot be opened
    """
    kind = normalize_kind(getattr(destination, 'kind', None))

    if kind == FILESYSTEM:
        return FileSink(destination.path, name)
    elif kind == OBJECT_STORE:
        client = create_s3_client(destination, settings)
        return S3Sink(client, destination.bucket, name, settings)
    else:
        raise ConfigurationError(
            f"Don't know how to handle {getattr(destination, 'kind', None)!r} storage type"
        )
