"""
Upload strategy selection.

Decides between a single-request upload and a chunked session from the
payload size, the configured threshold and the store's transport limits.
"""
from typing import Optional, Tuple

from ...exceptions import StrategySelectionInvalid
from ...logging import get_logger
from ...store.protocols import StoreLimits
from ..models import UploadPlan, UploadStrategy


logger = get_logger('cloudpush.upload.strategy')


class UploadStrategySelector:
    """
    Chooses WHOLE or CHUNKED for a payload.
    
    Chunk sizes are rounded down to the store's alignment. Several backends
    reject non-final chunks that are not on that boundary, so an unaligned
    chunk size is never handed to a session.
    """
    
    def __init__(self, limits: StoreLimits):
        self._limits = limits
    
    @property
    def limits(self) -> StoreLimits:
        return self._limits
    
    def select_strategy(
        self,
        size: int,
        chunk_threshold: int,
        max_chunk: int
    ) -> Tuple[UploadStrategy, Optional[int]]:
        """
        Select the upload strategy.
        
        Args:
            size: Payload size in bytes
            chunk_threshold: Largest size sent as a single request
            max_chunk: Caller's upper bound for chunk size
            
        Returns:
            Tuple of (strategy, chunk size or None)
            
        Raises:
            StrategySelectionInvalid: On negative sizes, when no aligned
                chunk size fits under ``max_chunk``, or when a store without
                sessions cannot take the payload in one request
        """
        if size < 0:
            raise StrategySelectionInvalid(f"size must not be negative, got {size}")
        if chunk_threshold < 0:
            raise StrategySelectionInvalid(
                f"chunk threshold must not be negative, got {chunk_threshold}"
            )
        if max_chunk <= 0:
            raise StrategySelectionInvalid(f"max chunk must be positive, got {max_chunk}")
        
        max_whole = self._limits.max_whole_size
        if not self._limits.supports_sessions:
            if max_whole is not None and size > max_whole:
                raise StrategySelectionInvalid(
                    f"size {size} exceeds the {max_whole} byte single-request limit "
                    f"of a store without upload sessions"
                )
            if size > chunk_threshold:
                logger.debug(f"Store has no upload sessions, sending {size} bytes whole")
            return UploadStrategy.WHOLE, None

        if size <= chunk_threshold and (max_whole is None or size <= max_whole):
            return UploadStrategy.WHOLE, None
        
        return UploadStrategy.CHUNKED, self.chunk_size_for(max_chunk)
    
    def chunk_size_for(self, max_chunk: int) -> int:
        """Largest aligned chunk size allowed by the caller and the store."""
        wanted = min(max_chunk, self._limits.default_chunk_size, self._limits.max_chunk_size)
        alignment = self._limits.chunk_alignment
        aligned = (wanted // alignment) * alignment
        if aligned <= 0:
            raise StrategySelectionInvalid(
                f"max chunk {max_chunk} is smaller than the required alignment of {alignment} bytes"
            )
        if aligned != wanted:
            logger.debug(f"Chunk size {wanted} rounded down to {aligned} ({alignment}-byte alignment)")
        return aligned
    
    def build_plan(
        self,
        folder: str,
        file_name: str,
        size: int,
        chunk_threshold: int,
        max_chunk: int
    ) -> UploadPlan:
        """Build the complete plan for one upload."""
        if not file_name or '/' in file_name:
            raise StrategySelectionInvalid(f"invalid file name {file_name!r}")
        strategy, chunk_size = self.select_strategy(size, chunk_threshold, max_chunk)
        return UploadPlan(
            folder=folder,
            file_name=file_name,
            total_size=size,
            strategy=strategy,
            chunk_size=chunk_size
        )
