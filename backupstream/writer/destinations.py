"""
Destination descriptors for backup writers.

Supports:
- FilesystemDestination: a directory on the local filesystem
- S3Destination: a bucket in S3 or an S3-compatible object store
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional

from .errors import ConfigurationError

FILESYSTEM = 'filesystem'
OBJECT_STORE = 'object-store'

# Accepted spellings of each destination kind
KIND_ALIASES = {
    'filesystem': FILESYSTEM,
    'local': FILESYSTEM,
    'object-store': OBJECT_STORE,
    's3': OBJECT_STORE,
}


@dataclass(frozen=True)
class FilesystemDestination:
    """Store backups as files in a local directory."""

    path: str

    kind: ClassVar[str] = FILESYSTEM


@dataclass(frozen=True)
class S3Destination:
    """
    Upload backups to an S3 bucket.

    Either pass a pre-built boto3 session, or explicit credentials. When
    neither is given boto3's default credential chain is used.
    """

    bucket: str
    region: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    session: Any = None

    kind: ClassVar[str] = OBJECT_STORE


def normalize_kind(kind) -> Optional[str]:
    """Map a destination kind to its canonical name, or None if unknown."""
    if not isinstance(kind, str):
        return None
    return KIND_ALIASES.get(kind.strip().lower())


def destination_from_config(config: Dict[str, Any]):
    """
    Build a destination descriptor from a storage config dict.

    Args:
        config: Dict with a 'type' key ('filesystem' or 's3') plus the
            settings for that type

    Returns:
        FilesystemDestination or S3Destination instance

    Raises:
        ConfigurationError: If the type is unknown or required keys are missing
    """
    storage_type = config.get('type')
    kind = normalize_kind(storage_type)

    if kind == FILESYSTEM:
        path = config.get('path')
        if not path:
            raise ConfigurationError("Filesystem destination requires 'path'")
        return FilesystemDestination(path=path)
    elif kind == OBJECT_STORE:
        bucket = config.get('bucket')
        if not bucket:
            raise ConfigurationError("S3 destination requires 'bucket'")
        return S3Destination(
            bucket=bucket,
            region=config.get('region'),
            access_key=config.get('access_key'),
            secret_key=config.get('secret_key'),
            endpoint_url=config.get('endpoint_url')
        )
    else:
        raise ConfigurationError(f"Don't know how to handle {storage_type!r} storage type")
