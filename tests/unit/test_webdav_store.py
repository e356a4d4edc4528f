"""Tests for WebDAVStore against a local fake DAV server."""
import base64
from contextlib import asynccontextmanager
from urllib.parse import quote, unquote

import pytest
from aiohttp import test_utils, web

from cloudpush import (
    AuthError,
    ConflictError,
    CreateStatus,
    RemoteStore,
    StoreError,
    UploaderConfig,
    UploadOrchestrator,
    UploadStrategy,
    WebDAVStore,
)


USER = "alice"
PASSWORD = "s3cret"
ROOT = "/dav/"


class FakeDAV:
    """Minimal DAV server: PROPFIND, MKCOL and PUT under /dav/."""
    
    def __init__(self):
        self.folders = {ROOT}
        self.files = {}
        self.requests = []
        self.broken_listing = False
    
    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_route('*', '/{tail:.*}', self.handle)
        return app
    
    async def handle(self, request: web.Request) -> web.Response:
        body = await request.read()
        path = unquote(request.path)
        self.requests.append((request.method, path, dict(request.headers), body))
        
        expected = "Basic " + base64.b64encode(f"{USER}:{PASSWORD}".encode()).decode()
        if request.headers.get("Authorization") != expected:
            return web.Response(status=401, headers={"WWW-Authenticate": 'Basic realm="dav"'})
        
        if request.method == "PROPFIND":
            return self._propfind(path, request.headers.get("Depth", "1"))
        if request.method == "MKCOL":
            return self._mkcol(path)
        if request.method == "PUT":
            return self._put(path, body)
        return web.Response(status=405)
    
    def parent_of(self, path):
        return path.rstrip("/").rsplit("/", 1)[0] + "/"
    
    def _propfind(self, path, depth):
        folder = path if path.endswith("/") else path + "/"
        if folder not in self.folders:
            return web.Response(status=404)
        if self.broken_listing:
            return web.Response(status=207, body=b"<not-xml", content_type="application/xml")
        entries = [(folder, True)]
        if depth == "1":
            entries += [(f, True) for f in sorted(self.folders) if f != folder and self.parent_of(f) == folder]
            entries += [(f, False) for f in sorted(self.files) if self.parent_of(f) == folder]
        responses = "".join(
            "<d:response><d:href>{href}</d:href><d:propstat><d:prop>"
            "<d:resourcetype>{kind}</d:resourcetype>"
            "</d:prop><d:status>HTTP/1.1 200 OK</d:status></d:propstat></d:response>".format(
                href=quote(entry), kind="<d:collection/>" if is_folder else ""
            )
            for entry, is_folder in entries
        )
        xml = f'<?xml version="1.0"?><d:multistatus xmlns:d="DAV:">{responses}</d:multistatus>'
        return web.Response(status=207, text=xml, content_type="application/xml")
    
    def _mkcol(self, path):
        folder = path if path.endswith("/") else path + "/"
        if folder in self.folders or folder.rstrip("/") in self.files:
            return web.Response(status=405)
        if self.parent_of(folder) not in self.folders:
            return web.Response(status=409)
        self.folders.add(folder)
        return web.Response(status=201)
    
    def _put(self, path, body):
        if self.parent_of(path) not in self.folders:
            return web.Response(status=409)
        status = 204 if path in self.files else 201
        self.files[path] = body
        return web.Response(status=status)


@asynccontextmanager
async def serve(fake, user=USER, password=PASSWORD):
    server = test_utils.TestServer(fake.app())
    await server.start_server()
    try:
        async with WebDAVStore(str(server.make_url(ROOT)), user, password) as store:
            yield store
    finally:
        await server.close()


class TestWebDAVFolders:
    """Test suite for PROPFIND listings and MKCOL."""
    
    def test_implements_remote_store(self):
        """Test the adapter satisfies the capability protocol."""
        assert isinstance(WebDAVStore("http://localhost/dav/"), RemoteStore)
    
    def test_root_handle_is_server_path(self):
        """Test the root handle is the decoded collection path."""
        store = WebDAVStore("http://localhost/my%20files")
        
        assert store.root_handle == "/my files/"
        assert store.limits.supports_sessions is False
    
    def test_relative_url_rejected(self):
        """Test server URLs must carry scheme and host."""
        with pytest.raises(ValueError):
            WebDAVStore("/dav/")
    
    @pytest.mark.asyncio
    async def test_list_children(self):
        """Test listings skip the folder itself and tag collections."""
        fake = FakeDAV()
        fake.folders.add("/dav/Reports 2024/")
        fake.files["/dav/a.txt"] = b"x"
        
        async with serve(fake) as store:
            children = await store.list_children(store.root_handle)
        
        assert sorted((c.name, c.is_folder, c.handle) for c in children) == [
            ("Reports 2024", True, "/dav/Reports 2024/"),
            ("a.txt", False, "/dav/a.txt"),
        ]
        method, _, headers, body = fake.requests[0]
        assert method == "PROPFIND"
        assert headers["Depth"] == "1"
        assert b"resourcetype" in body
    
    @pytest.mark.asyncio
    async def test_malformed_listing(self):
        """Test unparseable PROPFIND replies raise a store error."""
        fake = FakeDAV()
        fake.broken_listing = True
        
        async with serve(fake) as store:
            with pytest.raises(StoreError, match="Malformed"):
                await store.list_children(store.root_handle)
    
    @pytest.mark.asyncio
    async def test_create_folder(self):
        """Test MKCOL creates folders and 405 means the name is taken."""
        fake = FakeDAV()
        
        async with serve(fake) as store:
            created = await store.create_folder(store.root_handle, "Reports")
            again = await store.create_folder(store.root_handle, "Reports")
        
        assert created.status is CreateStatus.CREATED
        assert created.handle == "/dav/Reports/"
        assert again.status is CreateStatus.ALREADY_EXISTS
        assert "/dav/Reports/" in fake.folders
    
    @pytest.mark.asyncio
    async def test_create_folder_missing_parent(self):
        """Test a missing parent collection maps to ConflictError."""
        async with serve(FakeDAV()) as store:
            with pytest.raises(ConflictError):
                await store.create_folder("/dav/nope/", "child")


class TestWebDAVUploads:
    """Test suite for whole uploads."""
    
    @pytest.mark.asyncio
    async def test_put_whole_replaces(self):
        """Test PUT writes and overwrites by path."""
        fake = FakeDAV()
        
        async with serve(fake) as store:
            first = await store.put_whole(store.root_handle, "sales report.pdf", b"%PDF", 4)
            second = await store.put_whole(store.root_handle, "sales report.pdf", b"%PDF-2", 6)
        
        assert first == second == "/dav/sales report.pdf"
        assert fake.files[first] == b"%PDF-2"
        assert fake.requests[0][2]["Content-Type"] == "application/pdf"
    
    @pytest.mark.asyncio
    async def test_sessions_unsupported(self):
        """Test session calls are refused."""
        async with serve(FakeDAV()) as store:
            with pytest.raises(StoreError, match="upload sessions"):
                await store.start_session(store.root_handle, "a.bin", 10)
    
    @pytest.mark.asyncio
    async def test_orchestrated_upload_goes_whole(self, payload):
        """Test large payloads create folders and go up in one PUT."""
        fake = FakeDAV()
        data = payload(1_000_000)
        config = UploaderConfig(chunk_threshold=64 * 1024, max_chunk_size=320 * 1024)
        
        async with serve(fake) as store:
            result = await UploadOrchestrator(config).upload(
                store, data, len(data), "Reports/2024", "sales.xlsx"
            )
        
        assert result.success
        assert result.strategy is UploadStrategy.WHOLE
        assert result.item_id == "/dav/Reports/2024/sales.xlsx"
        assert fake.files[result.item_id] == data
        assert [r[0] for r in fake.requests].count("PUT") == 1


class TestWebDAVIdentity:
    """Test suite for credential checks."""
    
    @pytest.mark.asyncio
    async def test_identity_is_user_name(self):
        """Test the user name is returned after a depth-0 PROPFIND."""
        fake = FakeDAV()
        
        async with serve(fake) as store:
            assert await store.probe_identity() == USER
        
        assert fake.requests[0][2]["Depth"] == "0"
    
    @pytest.mark.asyncio
    async def test_bad_password(self):
        """Test rejected credentials raise AuthError and fail the credential check."""
        async with serve(FakeDAV(), password="wrong") as store:
            with pytest.raises(AuthError):
                await store.probe_identity()
            assert await UploadOrchestrator().probe(store) is False
