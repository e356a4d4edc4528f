"""
Chunking strategies for chunked uploads.

Implements Strategy Pattern for different chunking algorithms.
"""
from abc import ABC, abstractmethod
from typing import Iterator, List, Tuple

from ..models import ChunkDescriptor


class BaseChunkingStrategy(ABC):
    """Abstract base class for chunking strategies."""
    
    @abstractmethod
    def calculate_chunks(self, file_size: int) -> List[Tuple[int, int]]:
        """Calculate chunk boundaries as (start, end) tuples."""
        pass
    
    def descriptors(self, file_size: int) -> Iterator[ChunkDescriptor]:
        """
        Yield chunk descriptors for a payload.
        
        Offsets are contiguous and exactly the last descriptor is final.
        """
        chunks = self.calculate_chunks(file_size)
        last = len(chunks) - 1
        for index, (start, end) in enumerate(chunks):
            yield ChunkDescriptor(
                index=index,
                offset=start,
                length=end - start,
                is_final=index == last
            )


class AlignedChunkingStrategy(BaseChunkingStrategy):
    """
    Fixed-size chunking on an alignment boundary.
    
    Every chunk except the last is ``chunk_size`` bytes, which must be a
    multiple of ``alignment``. The last chunk carries the remainder.
    """
    
    def __init__(self, chunk_size: int, alignment: int = 1):
        """
        Initialize with chunk size.
        
        Args:
            chunk_size: Size of each non-final chunk in bytes
            alignment: Required boundary for non-final chunks
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        if alignment <= 0 or chunk_size % alignment:
            raise ValueError(
                f"Chunk size {chunk_size} is not a multiple of alignment {alignment}"
            )
        self.chunk_size = chunk_size
        self.alignment = alignment
    
    def calculate_chunks(self, file_size: int) -> List[Tuple[int, int]]:
        """
        Calculate fixed-size chunk boundaries.
        
        Args:
            file_size: Total file size in bytes
            
        Returns:
            List of (start, end) tuples
        """
        if file_size == 0:
            return []
        
        chunks = []
        position = 0
        
        while position < file_size:
            end = min(position + self.chunk_size, file_size)
            chunks.append((position, end))
            position = end
        
        return chunks
    
    def count(self, file_size: int) -> int:
        return -(-file_size // self.chunk_size)
