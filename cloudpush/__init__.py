"""
cloudpush - Async delivery of exported files to cloud drives.

Usage:
    >>> from cloudpush import UploadOrchestrator, GraphDriveStore
    >>> 
    >>> async with GraphDriveStore(access_token) as drive:
    ...     result = await UploadOrchestrator().upload(
    ...         drive, data, len(data), "Reports/2024", "sales.pdf"
    ...     )
    ...     result.raise_for_error()
"""
import logging

from .core.config import UploaderConfig, RetryConfig, TimeoutConfig
from .core.exceptions import (
    CloudPushError,
    StoreError,
    AuthError,
    TransportError,
    QuotaExceededError,
    ConflictError,
    PartialAcceptanceError,
    FolderAlreadyExistsError,
    PathResolutionFailed,
    StrategySelectionInvalid,
    ChunkUploadFailed,
    SessionAborted,
    UploadCancelled,
    SourceTooShort,
)
from .core.formats import ExportFormat, cloud_file_name, mime_type_for
from .core.hierarchy import PathResolver
from .core.path import RemotePath
from .core.store import (
    RemoteStore,
    ChildEntry,
    ChunkAck,
    CreateStatus,
    FolderCreation,
    ItemMetadata,
    StoreLimits,
    MemoryStore,
    GraphDriveStore,
    WebDAVStore,
)
from .core.upload import (
    UploadFacade,
    UploadOrchestrator,
    ChunkedUploadSession,
    UploadStrategySelector,
    UploadStrategy,
    SessionPhase,
    UploadPlan,
    ChunkDescriptor,
    SessionState,
    UploadResult,
    UploadProgress,
)

__version__ = '0.1.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for cloudpush modules.
    
    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'cloudpush',
        'cloudpush.hierarchy',
        'cloudpush.store',
        'cloudpush.upload',
        'cloudpush.upload.coordinator',
        'cloudpush.upload.session',
        'cloudpush.upload.strategy',
    ]
    
    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    # Entry points
    'UploadOrchestrator',
    'UploadFacade',
    'PathResolver',
    'UploadStrategySelector',
    'ChunkedUploadSession',
    
    # Stores
    'RemoteStore',
    'MemoryStore',
    'GraphDriveStore',
    'WebDAVStore',
    'ChildEntry',
    'ChunkAck',
    'CreateStatus',
    'FolderCreation',
    'ItemMetadata',
    'StoreLimits',
    
    # Models
    'RemotePath',
    'UploadStrategy',
    'SessionPhase',
    'UploadPlan',
    'ChunkDescriptor',
    'SessionState',
    'UploadResult',
    'UploadProgress',
    'ExportFormat',
    'cloud_file_name',
    'mime_type_for',
    
    # Configuration
    'UploaderConfig',
    'RetryConfig',
    'TimeoutConfig',
    
    # Errors
    'CloudPushError',
    'StoreError',
    'AuthError',
    'TransportError',
    'QuotaExceededError',
    'ConflictError',
    'PartialAcceptanceError',
    'FolderAlreadyExistsError',
    'PathResolutionFailed',
    'StrategySelectionInvalid',
    'ChunkUploadFailed',
    'SessionAborted',
    'UploadCancelled',
    'SourceTooShort',
    
    'setup_logging',
    '__version__',
]
