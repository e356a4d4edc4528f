"""Tests for PathResolver."""
import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from cloudpush import (
    ChildEntry,
    FolderCreation,
    MemoryStore,
    PathResolutionFailed,
    PathResolver,
    QuotaExceededError,
    RemotePath,
    TransportError,
)


class _GhostFolderStore(MemoryStore):
    """Claims every folder already exists without ever listing it."""
    
    async def create_folder(self, parent, name):
        await self._enter('create_folder', parent, name)
        return FolderCreation.already_exists()


@pytest.fixture
def resolver():
    """Create resolver instance."""
    return PathResolver()


class TestPathResolver:
    """Test suite for PathResolver."""
    
    @pytest.mark.asyncio
    async def test_creates_missing_folders(self, resolver, store):
        """Test every missing segment is created under its parent."""
        handle = await resolver.resolve(store, "Reports/2024/Q1")
        
        assert store.path_of(handle) == RemotePath(["Reports", "2024", "Q1"])
        creates = store.calls_to('create_folder')
        assert [c[2] for c in creates] == ["Reports", "2024", "Q1"]
        assert creates[0][1] == store.root_handle
    
    @pytest.mark.asyncio
    async def test_existing_path_creates_nothing(self, resolver, store):
        """Test fully existing paths resolve without writes."""
        expected = store.make_folders("Reports/2024")
        
        handle = await resolver.resolve(store, "/Reports/2024/")
        
        assert handle == expected
        assert store.calls_to('create_folder') == []
        assert len(store.calls_to('list_children')) == 2
    
    @pytest.mark.asyncio
    async def test_partially_existing_path(self, resolver, store):
        """Test only the missing tail is created."""
        store.make_folders("Reports")
        
        handle = await resolver.resolve(store, "Reports/2024")
        
        assert store.path_of(handle) == RemotePath(["Reports", "2024"])
        assert [c[2] for c in store.calls_to('create_folder')] == ["2024"]
    
    @pytest.mark.asyncio
    async def test_root_path(self, resolver, store):
        """Test empty paths resolve to the root without requests."""
        assert await resolver.resolve(store, "") == store.root_handle
        assert await resolver.resolve(store, RemotePath()) == store.root_handle
        assert store.calls == []
    
    @pytest.mark.asyncio
    async def test_resolve_is_idempotent(self, resolver, store):
        """Test resolving twice yields the same handle."""
        first = await resolver.resolve(store, "a/b")
        second = await resolver.resolve(store, "a/b")
        
        assert first == second
        assert len(store.calls_to('create_folder')) == 2
    
    @pytest.mark.asyncio
    async def test_names_are_case_sensitive(self, resolver, store):
        """Test folders differing only in case are distinct."""
        upper = store.make_folders("Reports")
        
        handle = await resolver.resolve(store, "reports")
        
        assert handle != upper
        assert store.path_of(handle) == RemotePath(["reports"])
    
    @pytest.mark.asyncio
    async def test_file_with_same_name_is_ignored(self, resolver, store):
        """Test a file never satisfies a folder segment."""
        file_id = await store.put_whole(store.root_handle, "a", b"x", 1)
        
        handle = await resolver.resolve(store, "a")
        
        assert handle != file_id
        assert [c[2] for c in store.calls_to('create_folder')] == ["a"]
    
    @pytest.mark.asyncio
    async def test_duplicate_folders_pick_first(self, resolver):
        """Test the first listed match wins when names collide."""
        store = Mock()
        store.root_handle = "root"
        store.list_children = AsyncMock(return_value=[
            ChildEntry("a", False, "file-1"),
            ChildEntry("a", True, "first"),
            ChildEntry("a", True, "second"),
        ])
        store.create_folder = AsyncMock()
        
        assert await resolver.resolve(store, "a") == "first"
        store.create_folder.assert_not_called()


class TestConcurrentResolution:
    """Test suite for concurrent creators."""
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("raise_on_existing", [False, True])
    async def test_concurrent_resolves_converge(self, resolver, raise_on_existing):
        """Test racing resolvers end up in the same folders."""
        store = MemoryStore(raise_on_existing_folder=raise_on_existing)
        
        handles = await asyncio.gather(
            resolver.resolve(store, "a/b/c"),
            resolver.resolve(store, "a/b/c"),
            resolver.resolve(store, "a/b/c"),
        )
        
        assert len(set(handles)) == 1
        assert store.path_of(handles[0]) == RemotePath(["a", "b", "c"])
        root_children = await store.list_children(store.root_handle)
        assert [c.name for c in root_children] == ["a"]
    
    @pytest.mark.asyncio
    async def test_already_exists_but_not_listed(self, resolver):
        """Test a phantom existing folder fails resolution."""
        store = _GhostFolderStore()
        
        with pytest.raises(PathResolutionFailed) as exc_info:
            await resolver.resolve(store, "a/b")
        
        assert exc_info.value.segment_index == 0
        assert exc_info.value.segment == "a"


class TestResolutionFailures:
    """Test suite for store failures during resolution."""
    
    @pytest.mark.asyncio
    async def test_create_failure_reports_segment(self, resolver, store):
        """Test a failed create names the failing segment."""
        store.make_folders("a")
        quota = QuotaExceededError("Drive is full", 507)
        store.fail_next('create_folder', quota)
        
        with pytest.raises(PathResolutionFailed) as exc_info:
            await resolver.resolve(store, "a/b/c")
        
        assert exc_info.value.segment_index == 1
        assert exc_info.value.cause is quota
        assert len(store.calls_to('create_folder')) == 1
    
    @pytest.mark.asyncio
    async def test_list_failure(self, resolver, store):
        """Test a failed listing fails resolution."""
        store.fail_next('list_children', TransportError("connection reset"))
        
        with pytest.raises(PathResolutionFailed) as exc_info:
            await resolver.resolve(store, "a")
        
        assert exc_info.value.segment_index == 0
        assert isinstance(exc_info.value.cause, TransportError)
    
    @pytest.mark.asyncio
    async def test_list_timeout(self, resolver, store):
        """Test timeouts are reported as resolution failures."""
        store.fail_next('list_children', asyncio.TimeoutError())
        
        with pytest.raises(PathResolutionFailed):
            await resolver.resolve(store, "a")
