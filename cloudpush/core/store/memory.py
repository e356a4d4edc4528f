"""
In-memory remote store.

Implements the full ``RemoteStore`` capability inside the process. Useful
for:
- Unit testing (fault injection, partial acceptance, call log)
- Dry runs of an upload pipeline
- Examples that need no account
"""
import asyncio
import itertools
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple, Union

from ..config import KIB, MIB
from ..exceptions import (
    AuthError,
    ConflictError,
    FolderAlreadyExistsError,
    PartialAcceptanceError,
    StoreError,
)
from ..logging import get_logger
from ..path import RemotePath
from .protocols import ChildEntry, ChunkAck, FolderCreation, ItemMetadata, StoreLimits


logger = get_logger('cloudpush.store.memory')


@dataclass
class _Folder:
    name: str
    parent: Optional[str]
    children: List[str] = field(default_factory=list)


@dataclass
class _File:
    name: str
    parent: str
    data: bytes


@dataclass
class _Session:
    folder: str
    name: str
    total_size: int
    buffer: bytearray = field(default_factory=bytearray)
    
    @property
    def received(self) -> int:
        return len(self.buffer)


class MemoryStore:
    """
    Remote store kept in process memory.
    
    Example:
        >>> store = MemoryStore()
        >>> store.make_folders("Reports/2024")
        >>> item_id = await store.put_whole(store.root_handle, "a.txt", b"hi", 2)
    """
    
    ROOT = "root"
    DEFAULT_LIMITS = StoreLimits(
        default_chunk_size=320 * KIB,
        max_chunk_size=60 * MIB,
        chunk_alignment=320 * KIB,
        max_whole_size=None
    )
    
    def __init__(
        self,
        limits: Optional[StoreLimits] = None,
        raise_on_existing_folder: bool = False,
        display_name: str = "memory-user"
    ):
        """
        Initialize memory store.
        
        Args:
            limits: Transport limits to report and enforce
            raise_on_existing_folder: Raise FolderAlreadyExistsError instead of
                returning a tagged ALREADY_EXISTS outcome
            display_name: Name returned by probe_identity
        """
        self._limits = limits or self.DEFAULT_LIMITS
        self._raise_on_existing = raise_on_existing_folder
        self._display_name = display_name
        self._revoked = False
        self._ids = itertools.count(1)
        self._folders: Dict[str, _Folder] = {self.ROOT: _Folder(name="", parent=None)}
        self._files: Dict[str, _File] = {}
        self._sessions: Dict[str, _Session] = {}
        self._faults: Dict[Tuple[str, Optional[int]], Deque[BaseException]] = defaultdict(deque)
        self._partial: Dict[int, int] = {}
        self.calls: List[Tuple] = []
    
    @property
    def root_handle(self) -> str:
        return self.ROOT
    
    @property
    def limits(self) -> StoreLimits:
        return self._limits
    
    # Test controls
    
    def fail_next(self, operation: str, *errors: BaseException, offset: Optional[int] = None) -> None:
        """
        Queue errors for the next calls of ``operation``.
        
        Args:
            operation: Store method name, e.g. 'append_chunk'
            errors: Errors raised by successive calls, in order
            offset: Only fail chunk calls for this offset
        """
        self._faults[(operation, offset)].extend(errors)
    
    def accept_partially(self, offset: int, accepted_bytes: int) -> None:
        """Make the next append or finish at ``offset`` keep only ``accepted_bytes`` bytes."""
        self._partial[offset] = accepted_bytes
    
    def revoke(self) -> None:
        """Reject every further request with AuthError."""
        self._revoked = True
    
    def make_folders(self, path: Union[str, RemotePath]) -> str:
        """Create every folder of ``path`` synchronously and return the last handle."""
        current = self.ROOT
        for segment in RemotePath.parse(path):
            existing = self._find_child(current, segment, folder=True)
            current = existing or self._add_folder(current, segment)
        return current
    
    def path_of(self, handle: str) -> RemotePath:
        """Return the folder path of a folder or file handle."""
        segments = []
        if handle in self._files:
            node = self._files[handle]
            segments.append(node.name)
            handle = node.parent
        while handle != self.ROOT:
            folder = self._folders[handle]
            segments.append(folder.name)
            handle = folder.parent
        return RemotePath(reversed(segments))
    
    def read_file(self, path: Union[str, RemotePath]) -> bytes:
        """Return the content of the file at ``path``."""
        remote = RemotePath.parse(path)
        folder = self.ROOT
        for segment in remote.parent:
            folder = self._find_child(folder, segment, folder=True)
            if folder is None:
                raise KeyError(str(remote))
        handle = self._find_child(folder, remote.name, folder=False)
        if handle is None:
            raise KeyError(str(remote))
        return self._files[handle].data
    
    def calls_to(self, operation: str) -> List[Tuple]:
        return [call for call in self.calls if call[0] == operation]
    
    @property
    def open_sessions(self) -> int:
        return len(self._sessions)
    
    # RemoteStore capability
    
    async def list_children(self, folder: str) -> List[ChildEntry]:
        await self._enter('list_children', folder)
        node = self._folder(folder)
        entries = []
        for handle in node.children:
            if handle in self._folders:
                entries.append(ChildEntry(self._folders[handle].name, True, handle))
            else:
                entries.append(ChildEntry(self._files[handle].name, False, handle))
        return entries
    
    async def create_folder(self, parent: str, name: str) -> FolderCreation:
        await self._enter('create_folder', parent, name)
        self._folder(parent)
        existing = self._find_child(parent, name, folder=True)
        if existing is not None:
            if self._raise_on_existing:
                raise FolderAlreadyExistsError(parent, name)
            return FolderCreation.already_exists(existing)
        return FolderCreation.created(self._add_folder(parent, name))
    
    async def put_whole(self, folder: str, name: str, data: bytes, length: int) -> str:
        await self._enter('put_whole', folder, name, length)
        if len(data) != length:
            raise StoreError(f"Declared length {length} but received {len(data)} bytes", 400)
        return self._write_file(folder, name, bytes(data))
    
    async def start_session(self, folder: str, name: str, total_size: int) -> str:
        await self._enter('start_session', folder, name, total_size)
        if not self._limits.supports_sessions:
            raise StoreError("This store does not support upload sessions", 405)
        self._folder(folder)
        token = f"session-{next(self._ids)}"
        self._sessions[token] = _Session(folder=folder, name=name, total_size=total_size)
        return token
    
    async def append_chunk(self, token: str, offset: int, length: int, data: bytes) -> ChunkAck:
        await self._enter('append_chunk', token, offset, length, offset=offset)
        session = self._check_chunk(token, offset, length, data)
        if (offset + length) % self._limits.chunk_alignment:
            raise ConflictError(
                f"Chunk ends at {offset + length}, not on a "
                f"{self._limits.chunk_alignment}-byte boundary", 416
            )
        keep = min(self._partial.pop(offset, length), length)
        session.buffer.extend(data[:keep])
        return ChunkAck(accepted_up_to=session.received)
    
    async def finish_session(
        self,
        token: str,
        offset: int,
        length: int,
        data: bytes,
        metadata: ItemMetadata
    ) -> str:
        await self._enter('finish_session', token, offset, length, metadata.name, offset=offset)
        session = self._check_chunk(token, offset, length, data)
        if offset + length != session.total_size:
            raise ConflictError(
                f"Final chunk ends at {offset + length}, expected {session.total_size}", 416
            )
        keep = min(self._partial.pop(offset, length), length)
        session.buffer.extend(data[:keep])
        if keep < length:
            raise PartialAcceptanceError(session.received)
        del self._sessions[token]
        return self._write_file(session.folder, metadata.name, bytes(session.buffer))
    
    async def session_status(self, token: str) -> ChunkAck:
        await self._enter('session_status', token)
        session = self._sessions.get(token)
        if session is None:
            raise StoreError(f"Unknown or expired upload session: {token}", 404)
        return ChunkAck(accepted_up_to=session.received)
    
    async def probe_identity(self) -> str:
        await self._enter('probe_identity')
        return self._display_name
    
    # Internals
    
    async def _enter(self, operation: str, *args, offset: Optional[int] = None) -> None:
        self.calls.append((operation,) + args)
        await asyncio.sleep(0)
        if self._revoked:
            raise AuthError("Access token has been revoked", 401)
        for key in ((operation, offset), (operation, None)):
            queue = self._faults.get(key)
            if queue:
                error = queue.popleft()
                logger.debug(f"Injected failure for {operation}: {error!r}")
                raise error
    
    def _folder(self, handle: str) -> _Folder:
        try:
            return self._folders[handle]
        except KeyError:
            raise StoreError(f"Folder not found: {handle}", 404) from None
    
    def _find_child(self, parent: str, name: str, folder: bool) -> Optional[str]:
        pool = self._folders if folder else self._files
        for handle in self._folders[parent].children:
            if handle in pool and pool[handle].name == name:
                return handle
        return None
    
    def _add_folder(self, parent: str, name: str) -> str:
        handle = f"folder-{next(self._ids)}"
        self._folders[handle] = _Folder(name=name, parent=parent)
        self._folders[parent].children.append(handle)
        return handle
    
    def _write_file(self, folder: str, name: str, data: bytes) -> str:
        self._folder(folder)
        handle = self._find_child(folder, name, folder=False)
        if handle is None:
            handle = f"item-{next(self._ids)}"
            self._folders[folder].children.append(handle)
        self._files[handle] = _File(name=name, parent=folder, data=data)
        return handle
    
    def _check_chunk(self, token: str, offset: int, length: int, data: bytes) -> _Session:
        session = self._sessions.get(token)
        if session is None:
            raise StoreError(f"Unknown or expired upload session: {token}", 404)
        if len(data) != length:
            raise StoreError(f"Declared length {length} but received {len(data)} bytes", 400)
        if offset != session.received:
            raise ConflictError(
                f"Chunk starts at {offset}, expected {session.received}", 416
            )
        if offset + length > session.total_size:
            raise ConflictError(f"Chunk exceeds declared size {session.total_size}", 416)
        return session
