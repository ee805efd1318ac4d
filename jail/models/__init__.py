"""Data models for jail."""
from jail.models.jail import (
    DEFAULT_WORKSPACE_DIR,
    EMPTY_SOURCE,
    MAX_PORT,
    ContainerState,
    JailListing,
    JailRecord,
)

__all__ = [
    'DEFAULT_WORKSPACE_DIR',
    'EMPTY_SOURCE',
    'MAX_PORT',
    'ContainerState',
    'JailListing',
    'JailRecord',
]
