"""Tests for upload strategy selection."""
import pytest

from cloudpush import (
    StoreLimits,
    StrategySelectionInvalid,
    UploadStrategy,
    UploadStrategySelector,
)


KIB = 1024
MIB = 1024 * KIB


@pytest.fixture
def graph_like():
    """Selector with 320 KiB alignment and a 10 MiB default chunk."""
    return UploadStrategySelector(StoreLimits(
        default_chunk_size=10 * MIB,
        max_chunk_size=60 * MIB,
        chunk_alignment=320 * KIB,
        max_whole_size=4 * MIB
    ))


class TestSelectStrategy:
    """Test suite for select_strategy."""
    
    def test_small_payload_goes_whole(self, graph_like):
        """Test sizes up to the threshold use one request."""
        assert graph_like.select_strategy(1000, 4 * MIB, 10 * MIB) == (UploadStrategy.WHOLE, None)
    
    def test_threshold_is_inclusive(self, graph_like):
        """Test a payload exactly at the threshold goes whole."""
        strategy, _ = graph_like.select_strategy(4 * MIB, 4 * MIB, 10 * MIB)
        
        assert strategy is UploadStrategy.WHOLE
    
    def test_one_byte_over_threshold_chunks(self, graph_like):
        """Test one byte above the threshold switches to chunks."""
        strategy, chunk = graph_like.select_strategy(4 * MIB + 1, 4 * MIB, 10 * MIB)
        
        assert strategy is UploadStrategy.CHUNKED
        assert chunk == 10 * MIB
    
    def test_empty_payload_goes_whole(self, graph_like):
        """Test zero-byte payloads are sent whole."""
        assert graph_like.select_strategy(0, 0, 10 * MIB) == (UploadStrategy.WHOLE, None)
    
    def test_store_whole_limit_wins(self, graph_like):
        """Test the store's whole-size limit overrides a higher threshold."""
        strategy, _ = graph_like.select_strategy(5 * MIB, 100 * MIB, 10 * MIB)
        
        assert strategy is UploadStrategy.CHUNKED
    
    def test_chunk_size_rounded_to_alignment(self, graph_like):
        """Test chunk sizes are rounded down to the alignment."""
        _, chunk = graph_like.select_strategy(50 * MIB, 4 * MIB, 1000 * KIB)
        
        assert chunk == 960 * KIB
        assert chunk % (320 * KIB) == 0
    
    def test_chunk_size_capped_by_store_default(self):
        """Test the store's default chunk size caps the caller's maximum."""
        selector = UploadStrategySelector(StoreLimits(
            default_chunk_size=320 * KIB,
            max_chunk_size=60 * MIB,
            chunk_alignment=320 * KIB
        ))
        
        _, chunk = selector.select_strategy(MIB, 0, 10 * MIB)
        
        assert chunk == 320 * KIB
    
    def test_max_chunk_below_alignment(self, graph_like):
        """Test no aligned chunk fits under a tiny maximum."""
        with pytest.raises(StrategySelectionInvalid):
            graph_like.select_strategy(50 * MIB, 4 * MIB, 100 * KIB)
    
    @pytest.mark.parametrize("size,threshold,max_chunk", [
        (-1, 4 * MIB, 10 * MIB),
        (10, -1, 10 * MIB),
        (10, 4 * MIB, 0),
    ])
    def test_invalid_arguments(self, graph_like, size, threshold, max_chunk):
        """Test invalid sizes are rejected."""
        with pytest.raises(StrategySelectionInvalid):
            graph_like.select_strategy(size, threshold, max_chunk)
    
    def test_unaligned_store_accepts_any_chunk(self):
        """Test stores without alignment keep the caller's chunk size."""
        selector = UploadStrategySelector(StoreLimits(
            default_chunk_size=8 * MIB,
            max_chunk_size=150 * MIB
        ))
        
        _, chunk = selector.select_strategy(20 * MIB, MIB, 5 * MIB + 3)
        
        assert chunk == 5 * MIB + 3
    
    def test_sessionless_store_goes_whole_above_threshold(self):
        """Test stores without sessions never get a chunked plan."""
        selector = UploadStrategySelector(StoreLimits(
            default_chunk_size=10 * MIB,
            max_chunk_size=10 * MIB,
            max_whole_size=50 * MIB,
            supports_sessions=False
        ))
        
        assert selector.select_strategy(20 * MIB, 4 * MIB, 10 * MIB) == (UploadStrategy.WHOLE, None)
    
    def test_sessionless_store_over_whole_limit(self):
        """Test payloads too large for one request are rejected when sessions are unavailable."""
        selector = UploadStrategySelector(StoreLimits(
            default_chunk_size=10 * MIB,
            max_chunk_size=10 * MIB,
            max_whole_size=50 * MIB,
            supports_sessions=False
        ))
        
        with pytest.raises(StrategySelectionInvalid, match="without upload sessions"):
            selector.select_strategy(50 * MIB + 1, 4 * MIB, 10 * MIB)


class TestBuildPlan:
    """Test suite for build_plan."""
    
    def test_chunked_plan(self, graph_like):
        """Test plans carry folder, name and chunk size."""
        plan = graph_like.build_plan("folder-1", "sales.pdf", 20 * MIB, 4 * MIB, 10 * MIB)
        
        assert plan.folder == "folder-1"
        assert plan.file_name == "sales.pdf"
        assert plan.total_size == 20 * MIB
        assert plan.is_chunked
        assert plan.chunk_size == 10 * MIB
    
    def test_whole_plan(self, graph_like):
        """Test whole plans have no chunk size."""
        plan = graph_like.build_plan("root", "a.txt", 10, 4 * MIB, 10 * MIB)
        
        assert not plan.is_chunked
        assert plan.chunk_size is None
    
    @pytest.mark.parametrize("name", ["", "a/b.txt"])
    def test_invalid_file_name(self, graph_like, name):
        """Test empty names and names with separators are rejected."""
        with pytest.raises(StrategySelectionInvalid):
            graph_like.build_plan("root", name, 10, 4 * MIB, 10 * MIB)
