import os


def _env_int(name, default):
    value = os.environ.get(name)
    return int(value) if value else default


class Config:
    """Base configuration"""

    # Bytes buffered between write() and the background upload
    PIPE_BUFFER_SIZE = _env_int('BACKUPSTREAM_PIPE_BUFFER_SIZE', 4 * 1024 * 1024)

    # Codecs
    GZIP_LEVEL = _env_int('BACKUPSTREAM_GZIP_LEVEL', 6)
    LZ4_BLOCK_SIZE = _env_int('BACKUPSTREAM_LZ4_BLOCK_SIZE', 4 * 1024 * 1024)
    SNAPPY_BLOCK_SIZE = 64 * 1024  # framing format chunk limit

    # S3 managed transfer
    AWS_DEFAULT_REGION = os.environ.get('AWS_DEFAULT_REGION') or 'us-east-1'
    MULTIPART_THRESHOLD = _env_int('BACKUPSTREAM_MULTIPART_THRESHOLD', 8 * 1024 * 1024)
    MULTIPART_CHUNKSIZE = _env_int('BACKUPSTREAM_MULTIPART_CHUNKSIZE', 8 * 1024 * 1024)
    UPLOAD_MAX_CONCURRENCY = _env_int('BACKUPSTREAM_UPLOAD_MAX_CONCURRENCY', 4)

    # Logging
    DEBUG = False
    LOG_DIR = os.environ.get('BACKUPSTREAM_LOG_DIR')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True

    # Small buffers make backpressure visible while developing
    PIPE_BUFFER_SIZE = _env_int('BACKUPSTREAM_PIPE_BUFFER_SIZE', 64 * 1024)
    LZ4_BLOCK_SIZE = _env_int('BACKUPSTREAM_LZ4_BLOCK_SIZE', 64 * 1024)


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'default': ProductionConfig
}


def get_config(config_name=None):
    """Return the settings class for config_name, or for BACKUPSTREAM_ENV."""
    if config_name is None:
        config_name = os.environ.get('BACKUPSTREAM_ENV', 'default')

    try:
        return config[config_name]
    except KeyError:
        raise ValueError(
            f"Invalid configuration name: {config_name}. "
            f"Valid options: {list(config.keys())}"
        )
