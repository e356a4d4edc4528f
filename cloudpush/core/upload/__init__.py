"""
Upload module.

Resolves destination folders, picks whole or chunked transfers and drives
resumable sessions to completion.
"""
from .facade import UploadFacade
from .coordinator import UploadOrchestrator
from .models import (
    UploadStrategy,
    SessionPhase,
    UploadPlan,
    ChunkDescriptor,
    SessionState,
    UploadResult,
    UploadProgress,
)
from .protocols import SourceReader, ProgressCallback
from .services import ChunkedUploadSession, AsyncFileReader, StreamReader
from .strategies import UploadStrategySelector, AlignedChunkingStrategy

__all__ = [
    # Main classes
    'UploadFacade',
    'UploadOrchestrator',
    'ChunkedUploadSession',
    'UploadStrategySelector',
    'AlignedChunkingStrategy',
    
    # Models
    'UploadStrategy',
    'SessionPhase',
    'UploadPlan',
    'ChunkDescriptor',
    'SessionState',
    'UploadResult',
    'UploadProgress',
    
    # Sources
    'SourceReader',
    'ProgressCallback',
    'AsyncFileReader',
    'StreamReader',
]
