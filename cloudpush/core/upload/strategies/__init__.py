"""Upload strategies module."""
from .chunking import BaseChunkingStrategy, AlignedChunkingStrategy
from .selection import UploadStrategySelector

__all__ = [
    'BaseChunkingStrategy',
    'AlignedChunkingStrategy',
    'UploadStrategySelector',
]
