"""Remote store capability and backends."""
from .protocols import (
    RemoteStore,
    ChildEntry,
    ChunkAck,
    CreateStatus,
    FolderCreation,
    ItemMetadata,
    StoreLimits,
)
from .memory import MemoryStore
from .graph import GraphDriveStore
from .webdav import WebDAVStore
from .errors import HTTPStatusCodes

__all__ = [
    'RemoteStore',
    'ChildEntry',
    'ChunkAck',
    'CreateStatus',
    'FolderCreation',
    'ItemMetadata',
    'StoreLimits',
    'MemoryStore',
    'GraphDriveStore',
    'WebDAVStore',
    'HTTPStatusCodes',
]
