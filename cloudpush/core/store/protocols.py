"""
Protocol definitions for remote stores.

A remote store is the minimal capability set the upload core needs from a
vendor backend. Adapters implement ``RemoteStore``; the core never depends
on a concrete backend.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, runtime_checkable


class CreateStatus(Enum):
    """Outcome of a folder creation request."""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class ChildEntry:
    """
    One entry of a folder listing.
    
    Attributes:
        name: Entry name as stored remotely
        is_folder: True for folders
        handle: Store-issued identifier
    """
    name: str
    is_folder: bool
    handle: str


@dataclass(frozen=True)
class FolderCreation:
    """Tagged result of ``create_folder``. ``handle`` may be None when the folder already existed."""
    status: CreateStatus
    handle: Optional[str] = None
    
    @classmethod
    def created(cls, handle: str) -> 'FolderCreation':
        return cls(CreateStatus.CREATED, handle)
    
    @classmethod
    def already_exists(cls, handle: Optional[str] = None) -> 'FolderCreation':
        return cls(CreateStatus.ALREADY_EXISTS, handle)


@dataclass(frozen=True)
class ChunkAck:
    """Store acknowledgement of an appended chunk."""
    accepted_up_to: int


@dataclass(frozen=True)
class ItemMetadata:
    """Metadata sent with the request that completes a session."""
    name: str
    conflict_behavior: str = "replace"


@dataclass(frozen=True)
class StoreLimits:
    """
    Transport limits of one backend.
    
    Attributes:
        default_chunk_size: Chunk size the backend recommends
        max_chunk_size: Largest chunk the backend accepts
        chunk_alignment: Non-final chunks must be a multiple of this
        max_whole_size: Largest payload accepted in a single request
        supports_sessions: False for backends that only take whole writes
            (plain PUT buckets, WebDAV)
    """
    default_chunk_size: int
    max_chunk_size: int
    chunk_alignment: int = 1
    max_whole_size: Optional[int] = None
    supports_sessions: bool = True
    
    def __post_init__(self):
        if self.chunk_alignment <= 0:
            raise ValueError("chunk_alignment must be positive")
        if self.default_chunk_size <= 0 or self.max_chunk_size <= 0:
            raise ValueError("chunk sizes must be positive")


@runtime_checkable
class RemoteStore(Protocol):
    """Capability set required by the upload core."""
    
    @property
    def root_handle(self) -> str:
        """Handle of the store's root folder."""
        ...
    
    @property
    def limits(self) -> StoreLimits:
        """Transport limits for this backend."""
        ...
    
    async def list_children(self, folder: str) -> List[ChildEntry]:
        """
        List the direct children of a folder.
        
        Args:
            folder: Folder handle
            
        Returns:
            Child entries (folders and files)
        """
        ...
    
    async def create_folder(self, parent: str, name: str) -> FolderCreation:
        """
        Create a folder under ``parent``.
        
        Adapters may either return ``FolderCreation.already_exists()`` or
        raise ``FolderAlreadyExistsError`` when the name is taken.
        """
        ...
    
    async def put_whole(self, folder: str, name: str, data: bytes, length: int) -> str:
        """Write a complete item in one request, replacing any existing one. Returns the item id."""
        ...
    
    async def start_session(self, folder: str, name: str, total_size: int) -> str:
        """Open a resumable upload session. Returns the session token."""
        ...
    
    async def append_chunk(self, token: str, offset: int, length: int, data: bytes) -> ChunkAck:
        """Send ``data`` for ``[offset, offset + length)``."""
        ...
    
    async def finish_session(
        self,
        token: str,
        offset: int,
        length: int,
        data: bytes,
        metadata: ItemMetadata
    ) -> str:
        """
        Send the final chunk and commit the item. Returns the item id.

        Raises:
            PartialAcceptanceError: If the store kept only part of the
                chunk; ``accepted_up_to`` tells where to resume
        """
        ...
    
    async def session_status(self, token: str) -> ChunkAck:
        """Ask the store how far an open session has been received."""
        ...
    
    async def probe_identity(self) -> str:
        """
        Return the display name of the authenticated identity.
        
        Raises:
            AuthError: If the credentials are not usable
        """
        ...
