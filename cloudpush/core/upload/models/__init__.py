"""Upload models."""
from .upload_models import (
    UploadStrategy,
    SessionPhase,
    UploadPlan,
    ChunkDescriptor,
    SessionState,
    UploadResult,
    UploadProgress,
)

__all__ = [
    'UploadStrategy',
    'SessionPhase',
    'UploadPlan',
    'ChunkDescriptor',
    'SessionState',
    'UploadResult',
    'UploadProgress',
]
