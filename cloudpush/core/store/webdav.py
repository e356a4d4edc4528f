"""
WebDAV store adapter.

Folders are created with MKCOL and listed with a depth-1 PROPFIND; files go
up in a single PUT. WebDAV has no resumable upload sessions, so this store
reports ``supports_sessions=False`` and every payload is sent whole.

Handles are decoded URL paths. Folder handles end with '/'.
"""
import asyncio
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote, unquote, urlsplit
from xml.etree import ElementTree

import aiohttp

from ..config import MIB, TimeoutConfig
from ..exceptions import StoreError, TransportError
from ..formats import mime_type_for
from ..logging import get_logger
from .errors import HTTPStatusCodes
from .protocols import ChildEntry, ChunkAck, FolderCreation, ItemMetadata, StoreLimits


DAV_NAMESPACE = {'d': 'DAV:'}

PROPFIND_BODY = (
    b'<?xml version="1.0" encoding="utf-8"?>'
    b'<d:propfind xmlns:d="DAV:"><d:prop><d:resourcetype/></d:prop></d:propfind>'
)


class WebDAVStore:
    """
    Remote store backed by a WebDAV server.
    
    Example:
        >>> async with WebDAVStore("https://dav.example.com/files/", "user", "secret") as store:
        ...     await store.put_whole(store.root_handle, "a.txt", b"hi", 2)
    """
    
    LIMITS = StoreLimits(
        default_chunk_size=10 * MIB,
        max_chunk_size=10 * MIB,
        max_whole_size=None,
        supports_sessions=False
    )
    
    def __init__(
        self,
        server_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[TimeoutConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize WebDAV store.
        
        Args:
            server_url: Collection URL used as the store root
            username: Basic auth user (anonymous access when None)
            password: Basic auth password
            timeout: HTTP timeouts
            session: Optional shared aiohttp session
        """
        parts = urlsplit(server_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"server_url must be absolute, got {server_url!r}")
        self._origin = f"{parts.scheme}://{parts.netloc}"
        self._root = unquote(parts.path or '/')
        if not self._root.endswith('/'):
            self._root += '/'
        self._username = username
        self._auth = aiohttp.BasicAuth(username, password or '') if username else None
        self._timeout = timeout or TimeoutConfig()
        self._session = session
        self._owns_session = False
        self._logger = get_logger('cloudpush.store.webdav')
    
    @property
    def root_handle(self) -> str:
        return self._root
    
    @property
    def limits(self) -> StoreLimits:
        return self.LIMITS
    
    async def __aenter__(self) -> 'WebDAVStore':
        await self._get_session()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
    
    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=10, keepalive_timeout=30),
                timeout=self._timeout.to_aiohttp_timeout()
            )
            self._owns_session = True
        return self._session
    
    async def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None
    
    async def list_children(self, folder: str) -> List[ChildEntry]:
        _, body = await self._request(
            'PROPFIND',
            folder,
            data=PROPFIND_BODY,
            headers={'Depth': '1', 'Content-Type': 'application/xml; charset=utf-8'},
            expected=(207,)
        )
        return self._parse_listing(folder, body)
    
    async def create_folder(self, parent: str, name: str) -> FolderCreation:
        handle = f"{self._folder_path(parent)}{name}/"
        status, _ = await self._request('MKCOL', handle, expected=(201, 405))
        if status == 405:
            # MKCOL on an existing resource is not allowed
            self._logger.debug(f"Folder '{name}' already exists under {parent}")
            return FolderCreation.already_exists()
        return FolderCreation.created(handle)
    
    async def put_whole(self, folder: str, name: str, data: bytes, length: int) -> str:
        handle = f"{self._folder_path(folder)}{name}"
        await self._request(
            'PUT',
            handle,
            data=data,
            headers={'Content-Type': mime_type_for(name), 'Content-Length': str(length)},
            expected=(200, 201, 204)
        )
        return handle
    
    async def start_session(self, folder: str, name: str, total_size: int) -> str:
        raise StoreError("WebDAV stores do not support upload sessions", 405)
    
    async def append_chunk(self, token: str, offset: int, length: int, data: bytes) -> ChunkAck:
        raise StoreError("WebDAV stores do not support upload sessions", 405)
    
    async def finish_session(
        self,
        token: str,
        offset: int,
        length: int,
        data: bytes,
        metadata: ItemMetadata
    ) -> str:
        raise StoreError("WebDAV stores do not support upload sessions", 405)
    
    async def session_status(self, token: str) -> ChunkAck:
        raise StoreError("WebDAV stores do not support upload sessions", 405)
    
    async def probe_identity(self) -> str:
        await self._request(
            'PROPFIND',
            self._root,
            data=PROPFIND_BODY,
            headers={'Depth': '0', 'Content-Type': 'application/xml; charset=utf-8'},
            expected=(207,)
        )
        return self._username or 'anonymous'
    
    # Internals
    
    @staticmethod
    def _folder_path(handle: str) -> str:
        return handle if handle.endswith('/') else f"{handle}/"
    
    def _url(self, handle: str) -> str:
        return f"{self._origin}{quote(handle)}"
    
    def _parse_listing(self, folder: str, body: bytes) -> List[ChildEntry]:
        try:
            root = ElementTree.fromstring(body)
        except ElementTree.ParseError as e:
            raise StoreError(f"Malformed PROPFIND reply for {folder}: {e}") from e
        
        own = self._folder_path(folder)
        entries: List[ChildEntry] = []
        for response in root.findall('d:response', DAV_NAMESPACE):
            href = response.findtext('d:href', default='', namespaces=DAV_NAMESPACE)
            path = unquote(urlsplit(href.strip()).path)
            if self._folder_path(path) == own:
                continue
            is_folder = response.find('.//d:resourcetype/d:collection', DAV_NAMESPACE) is not None
            name = path.rstrip('/').rsplit('/', 1)[-1]
            if not name:
                continue
            handle = f"{own}{name}/" if is_folder else f"{own}{name}"
            entries.append(ChildEntry(name=name, is_folder=is_folder, handle=handle))
        return entries
    
    async def _request(
        self,
        method: str,
        handle: str,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        expected: Tuple[int, ...] = (200,)
    ) -> Tuple[int, bytes]:
        """
        Send one request and return the status and raw body.
        
        Raises:
            AuthError: On 401/403
            TransportError: On network errors, timeouts, 429 and 5xx
            StoreError: On any other unexpected status
        """
        session = await self._get_session()
        url = self._url(handle)
        self._logger.debug(f"{method} {url[:120]}")
        try:
            async with session.request(
                method,
                url,
                data=data,
                headers=headers,
                auth=self._auth
            ) as response:
                body = await response.read()
                if response.status not in expected:
                    raise HTTPStatusCodes.error_for(response.status, detail=f"{method} {handle}")
                return response.status, body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.warning(f"{method} request failed: {e!r}")
            raise TransportError(f"{method} request failed: {e!r}") from e
