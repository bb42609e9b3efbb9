"""
Exceptions raised by the backup writer pipeline.

Construction problems are raised synchronously from open_backup_writer(),
layer failures from write()/close(), and upload failures are deferred
until close() joins the background upload.
"""

from typing import List, Optional


class BackupWriterError(Exception):
    """Base class for all backup writer errors."""
    pass


class ConfigurationError(BackupWriterError):
    """Raised when a destination, codec or cipher is not understood."""
    pass


class UnsupportedCodecError(ConfigurationError):
    """Raised when the requested compression codec is unknown."""
    pass


class UnsupportedCipherError(ConfigurationError):
    """Raised when the requested cipher is unknown."""
    pass


class ConstructionError(BackupWriterError):
    """
    Raised when a writer layer cannot be created.

    Layers opened before the failing one are closed before this is raised;
    any errors hit while closing them are kept in cleanup_errors.
    """

    def __init__(self, message: str, cleanup_errors: Optional[List[Exception]] = None):
        super().__init__(message)
        self.cleanup_errors = cleanup_errors or []

    def __str__(self):
        message = super().__str__()
        if self.cleanup_errors:
            details = '; '.join(str(e) for e in self.cleanup_errors)
            message = f"{message} (cleanup failed: {details})"
        return message


class DestinationCreateError(ConstructionError):
    """Raised when the destination file cannot be created."""
    pass


class LayerIOError(BackupWriterError):
    """Raised when write, flush or close fails on a writer layer."""

    def __init__(self, index: int, operation: str, cause: Exception):
        super().__init__(f"{operation} failed on writer {index}: {cause}")
        self.index = index
        self.operation = operation


class UploadError(BackupWriterError):
    """Raised when the background upload to object storage fails."""
    pass


class WriterClosedError(BackupWriterError):
    """Raised on write to a writer that has already been closed."""
    pass
