"""
Drive store adapter for OneDrive / SharePoint style REST APIs.

Speaks the Microsoft Graph drive contract over aiohttp:
folder listing and creation through ``/items/{id}/children``, simple
uploads through ``:/name:/content`` and resumable upload sessions through
``createUploadSession`` plus ``Content-Range`` PUT requests.

Credential acquisition is not handled here; pass a ready access token.
"""
import asyncio
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import aiohttp

from ..config import KIB, MIB, TimeoutConfig
from ..exceptions import PartialAcceptanceError, StoreError, TransportError
from ..formats import mime_type_for
from ..logging import get_logger
from .errors import HTTPStatusCodes
from .protocols import ChildEntry, ChunkAck, FolderCreation, ItemMetadata, StoreLimits


class GraphDriveStore:
    """
    Remote store backed by a Graph drive.
    
    Reuses one HTTP session for all requests.
    
    Example:
        >>> async with GraphDriveStore(token) as store:
        ...     name = await store.probe_identity()
    """
    
    GRAPH_ROOT = "https://graph.microsoft.com/v1.0"
    DEFAULT_BASE_URL = f"{GRAPH_ROOT}/me/drive"
    DEFAULT_IDENTITY_URL = f"{GRAPH_ROOT}/me"
    CONFLICT_KEY = "@microsoft.graph.conflictBehavior"
    
    # Fragments must be multiples of 320 KiB; 60 MiB is the per-request cap
    LIMITS = StoreLimits(
        default_chunk_size=10 * MIB,
        max_chunk_size=60 * MIB,
        chunk_alignment=320 * KIB,
        max_whole_size=4 * MIB
    )
    
    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        identity_url: str = DEFAULT_IDENTITY_URL,
        timeout: Optional[TimeoutConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize drive store.
        
        Args:
            access_token: OAuth bearer token for the drive
            base_url: Drive endpoint, e.g. '.../me/drive' or '.../drives/{id}'
            identity_url: Endpoint used by probe_identity
            timeout: HTTP timeouts
            session: Optional shared aiohttp session
        """
        self._token = access_token
        self._base_url = base_url.rstrip('/')
        self._identity_url = identity_url
        self._timeout = timeout or TimeoutConfig()
        self._session = session
        self._owns_session = False
        self._logger = get_logger('cloudpush.store.graph')
    
    @classmethod
    def for_drive(cls, access_token: str, drive_id: str, **kwargs) -> 'GraphDriveStore':
        """Create a store for a specific drive (e.g. a SharePoint document library)."""
        return cls(access_token, base_url=f"{cls.GRAPH_ROOT}/drives/{drive_id}", **kwargs)
    
    @property
    def root_handle(self) -> str:
        return "root"
    
    @property
    def limits(self) -> StoreLimits:
        return self.LIMITS
    
    async def __aenter__(self) -> 'GraphDriveStore':
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
        url = f"{self._item_url(folder)}/children?$select=id,name,folder,file&$top=200"
        entries: List[ChildEntry] = []
        while url:
            _, payload = await self._request('GET', url)
            for item in payload.get('value', []):
                entries.append(ChildEntry(
                    name=item.get('name', ''),
                    is_folder='folder' in item,
                    handle=item['id']
                ))
            url = payload.get('@odata.nextLink')
        return entries
    
    async def create_folder(self, parent: str, name: str) -> FolderCreation:
        body = {'name': name, 'folder': {}, self.CONFLICT_KEY: 'fail'}
        status, payload = await self._request(
            'POST',
            f"{self._item_url(parent)}/children",
            json=body,
            expected=(200, 201, 409)
        )
        if status == 409:
            self._logger.debug(f"Folder '{name}' already exists under {parent}")
            return FolderCreation.already_exists()
        return FolderCreation.created(payload['id'])
    
    async def put_whole(self, folder: str, name: str, data: bytes, length: int) -> str:
        url = f"{self._child_url(folder, name)}/content?{self.CONFLICT_KEY}=replace"
        _, payload = await self._request(
            'PUT',
            url,
            data=data,
            headers={'Content-Type': mime_type_for(name), 'Content-Length': str(length)},
            expected=(200, 201)
        )
        return payload['id']
    
    async def start_session(self, folder: str, name: str, total_size: int) -> str:
        body = {'item': {self.CONFLICT_KEY: 'replace', 'name': name}}
        _, payload = await self._request(
            'POST',
            f"{self._child_url(folder, name)}/createUploadSession",
            json=body
        )
        upload_url = payload.get('uploadUrl')
        if not upload_url:
            raise StoreError("Upload session response has no uploadUrl")
        # Carry the declared size in the token so no per-session state is kept
        return f"{total_size} {upload_url}"
    
    async def append_chunk(self, token: str, offset: int, length: int, data: bytes) -> ChunkAck:
        status, payload = await self._put_range(token, offset, length, data)
        if status == 202:
            return ChunkAck(accepted_up_to=self._parse_next_expected(payload, offset + length))
        # 200/201 means the server already holds the whole item
        return ChunkAck(accepted_up_to=offset + length)
    
    async def finish_session(
        self,
        token: str,
        offset: int,
        length: int,
        data: bytes,
        metadata: ItemMetadata
    ) -> str:
        # Name and conflict behavior were fixed when the session was created
        status, payload = await self._put_range(token, offset, length, data)
        if status == 202:
            accepted = self._parse_next_expected(payload, offset)
            self._logger.debug(f"Session for '{metadata.name}' still expects bytes from {accepted}")
            raise PartialAcceptanceError(accepted)
        return payload['id']
    
    async def session_status(self, token: str) -> ChunkAck:
        _, upload_url = self._split_token(token)
        _, payload = await self._request('GET', upload_url, authenticate=False)
        return ChunkAck(accepted_up_to=self._parse_next_expected(payload, 0))
    
    async def probe_identity(self) -> str:
        _, payload = await self._request('GET', self._identity_url)
        return payload.get('displayName') or ''
    
    # Internals
    
    def _item_url(self, handle: str) -> str:
        return f"{self._base_url}/items/{handle}"
    
    def _child_url(self, folder: str, name: str) -> str:
        return f"{self._item_url(folder)}:/{quote(name)}:"
    
    async def _put_range(
        self,
        token: str,
        offset: int,
        length: int,
        data: bytes
    ) -> Tuple[int, Dict[str, Any]]:
        total, upload_url = self._split_token(token)
        headers = {
            'Content-Length': str(length),
            'Content-Range': f"bytes {offset}-{offset + length - 1}/{total}",
        }
        # The upload URL is pre-authenticated; sending a bearer token is rejected
        return await self._request(
            'PUT',
            upload_url,
            data=data,
            headers=headers,
            authenticate=False,
            expected=(200, 201, 202)
        )
    
    @staticmethod
    def _split_token(token: str) -> Tuple[int, str]:
        size, _, upload_url = token.partition(' ')
        if not size.isdigit() or not upload_url:
            raise StoreError(f"Unknown upload session: {token[:40]}")
        return int(size), upload_url
    
    @staticmethod
    def _parse_next_expected(payload: Dict[str, Any], default: int) -> int:
        ranges = payload.get('nextExpectedRanges') or []
        if not ranges:
            return default
        start = str(ranges[0]).split('-', 1)[0]
        try:
            return int(start)
        except ValueError:
            raise StoreError(f"Malformed nextExpectedRanges: {ranges}") from None
    
    async def _request(
        self,
        method: str,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        authenticate: bool = True,
        expected: Tuple[int, ...] = (200,)
    ) -> Tuple[int, Dict[str, Any]]:
        """
        Send one request and decode the JSON reply.
        
        Raises:
            AuthError: On 401/403
            TransportError: On network errors, timeouts, 429 and 5xx
            StoreError: On any other unexpected status
        """
        session = await self._get_session()
        request_headers = dict(headers or {})
        if authenticate:
            request_headers['Authorization'] = f"Bearer {self._token}"
        
        self._logger.debug(f"{method} {url[:120]}")
        try:
            async with session.request(
                method,
                url,
                json=json,
                data=data,
                headers=request_headers
            ) as response:
                payload = await self._read_payload(response)
                if response.status not in expected:
                    error = payload.get('error') if isinstance(payload.get('error'), dict) else {}
                    raise HTTPStatusCodes.error_for(
                        response.status,
                        detail=error.get('message'),
                        error_code=error.get('code')
                    )
                return response.status, payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.warning(f"{method} request failed: {e!r}")
            raise TransportError(f"{method} request failed: {e!r}") from e
    
    @staticmethod
    async def _read_payload(response: aiohttp.ClientResponse) -> Dict[str, Any]:
        if response.content_type != 'application/json':
            await response.read()
            return {}
        try:
            body = await response.json()
        except (aiohttp.ContentTypeError, ValueError):
            return {}
        return body if isinstance(body, dict) else {}
