"""
Backup writer - a single write()/close() API over a stack of layers.

Stack layout (index 0 first):
1. Sink: local file or S3 upload
2. Compression layer (absent for codec 'none')
3. Cipher layer (absent for 'no-cipher')

Application bytes go to the last layer. close() flushes and closes the
layers from the outermost to the sink, then waits for the background
upload and raises its error if it failed.
"""

import logging
from enum import Enum
from typing import List, Optional

from backupstream.config import get_config
from .compression import Codec, create_codec_layer, parse_codec
from .encryption import Cipher, create_cipher_layer, parse_cipher
from .errors import ConstructionError, LayerIOError, WriterClosedError
from .layers import WriterLayer
from .storage import create_sink

logger = logging.getLogger(__name__)


class WriterState(str, Enum):
    WRITABLE = 'writable'
    CLOSING = 'closing'
    CLOSED = 'closed'


class BackupWriter:
    """
    Writes a backup stream through an ordered stack of writer layers.

    Closing is idempotent: calling close() again does nothing, except
    re-raise the exception the first close() raised.
    """

    def __init__(self, layers: List[WriterLayer], name: Optional[str] = None):
        """
        Args:
            layers: Layers in construction order, sink first
            name: Backup name, used in log messages

        Raises:
            ConstructionError: If layers is empty
        """
        if not layers:
            raise ConstructionError("there are no backup writers")

        self.layers = list(layers)
        self.name = name
        self.state = WriterState.WRITABLE
        self.bytes_written = 0
        self._close_error = None

    @property
    def closed(self) -> bool:
        return self.state == WriterState.CLOSED

    def write(self, data) -> int:
        """
        Write data to the outermost layer.

        Returns:
            Number of bytes accepted

        Raises:
            WriterClosedError: If the writer has been closed
            LayerIOError: If the outermost layer fails
        """
        if self.state != WriterState.WRITABLE:
            raise WriterClosedError(f"write to {self.state.value} backup writer {self.name}")

        index = len(self.layers) - 1
        try:
            written = self.layers[index].write(data)
        except Exception as e:
            raise LayerIOError(index, 'write', e) from e

        self.bytes_written += written
        return written

    def close(self):
        """
        Flush and close every layer, outermost first, then wait for the upload.

        Raises:
            LayerIOError: If flushing or closing a layer fails
            UploadError: If the background upload failed
        """
        if self.state != WriterState.WRITABLE:
            if self._close_error is not None:
                raise self._close_error
            return

        self.state = WriterState.CLOSING
        logger.debug(f"Closing backup writer {self.name} ({self.bytes_written} bytes written)")

        try:
            self._close_layers()
            self._wait()
        except Exception as e:
            self._close_error = e
            logger.error(f"Backup writer {self.name} failed to close: {e}")
            raise
        finally:
            self.state = WriterState.CLOSED

        logger.info(f"Backup {self.name} written ({self.bytes_written} bytes)")

    def abort(self, exc: Exception = None):
        """
        Tear the stack down without completing the backup.

        The S3 upload is failed instead of finished. Calling close()
        afterwards raises WriterClosedError.
        """
        if self.state != WriterState.WRITABLE:
            return

        self.state = WriterState.CLOSING
        logger.warning(f"Aborting backup writer {self.name}: {exc}")
        try:
            self._abort_from(len(self.layers) - 1, exc)
        finally:
            self._close_error = WriterClosedError(f"backup writer {self.name} was aborted")
            self.state = WriterState.CLOSED

    def _close_layers(self):
        for index in range(len(self.layers) - 1, -1, -1):
            layer = self.layers[index]

            try:
                layer.flush()
            except Exception as e:
                self._abort_from(index, e)
                raise LayerIOError(index, 'flush', e) from e

            try:
                layer.close()
            except Exception as e:
                self._abort_from(index, e)
                raise LayerIOError(index, 'close', e) from e

            logger.debug(f"Closed writer {index}: {layer!r}")

    def _wait(self):
        for layer in reversed(self.layers):
            layer.wait()

    def _abort_from(self, start: int, exc: Exception):
        """Abort layers start..0 and join their background work."""
        for error in _abort_layers(self.layers[:start + 1], exc):
            logger.error(f"Error aborting backup writer {self.name}: {error}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self.abort(exc)
        return False

    def __repr__(self):
        return f"<BackupWriter {self.name} {self.state.value}>"


def _abort_layers(layers: List[WriterLayer], exc: Exception) -> List[Exception]:
    """
    Abort layers in reverse order and wait for them.

    Returns:
        Exceptions raised while aborting; errors from wait() are the
        expected result of the abort and are only logged.
    """
    errors = []
    for layer in reversed(layers):
        try:
            layer.abort(exc)
        except Exception as e:
            errors.append(e)

    for layer in reversed(layers):
        try:
            layer.wait()
        except Exception as e:
            logger.debug(f"{layer!r} ended after abort: {e}")

    return errors


def open_backup_writer(
    name: str,
    destination,
    codec=Codec.NONE,
    cipher=Cipher.NO_CIPHER,
    settings=None
) -> BackupWriter:
    """
    Build a backup writer for a destination.

    Args:
        name: File name or object key of the backup
        destination: FilesystemDestination or S3Destination
        codec: Codec or codec name ('none', 'gzip', 'lz4', 'snappy')
        cipher: Cipher or cipher name ('no-cipher')
        settings: Config class (default: from BACKUPSTREAM_ENV)

    Returns:
        BackupWriter ready for write()

    Raises:
        ConfigurationError: If destination kind, codec or cipher is unknown
        ConstructionError: If a layer cannot be created
    """
    if settings is None:
        settings = get_config()

    # Validate everything before any resource is opened
    codec = parse_codec(codec)
    cipher = parse_cipher(cipher)

    layers = [create_sink(name, destination, settings)]

    try:
        codec_layer = create_codec_layer(codec, layers[-1], settings)
        if codec_layer is not None:
            layers.append(codec_layer)

        cipher_layer = create_cipher_layer(cipher, layers[-1])
        if cipher_layer is not None:
            layers.append(cipher_layer)
    except Exception as e:
        cleanup_errors = _abort_layers(layers, e)
        raise ConstructionError(f"Cannot build backup writer for {name}: {e}", cleanup_errors) from e

    logger.debug(f"Opened backup writer {name}: {layers!r}")
    return BackupWriter(layers, name=name)
