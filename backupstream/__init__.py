import os
import logging
from logging.handlers import RotatingFileHandler

from backupstream.writer import (
    BackupWriter,
    Codec,
    Cipher,
    FilesystemDestination,
    S3Destination,
    open_backup_writer
)


def configure_logging(settings=None):
    """Configure backupstream logging"""

    if settings is None:
        from backupstream.config import get_config
        settings = get_config()

    # Set log level based on environment
    log_level = logging.DEBUG if getattr(settings, 'DEBUG', False) else logging.INFO

    handlers = []

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    )
    console_handler.setFormatter(console_formatter)
    handlers.append(console_handler)

    # File handler, only when a log directory is configured
    log_dir = getattr(settings, 'LOG_DIR', None)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'backupstream.log'),
            maxBytes=10485760,  # 10MB
            backupCount=10
        )
        file_handler.setLevel(log_level)
        file_formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    logger = logging.getLogger('backupstream')
    logger.setLevel(log_level)
    logger.handlers.clear()
    for handler in handlers:
        logger.addHandler(handler)

    logger.info(f"Logging configured (level: {logging.getLevelName(log_level)})")
    return logger


__all__ = [
    'configure_logging',
    'BackupWriter',
    'Codec',
    'Cipher',
    'FilesystemDestination',
    'S3Destination',
    'open_backup_writer'
]
