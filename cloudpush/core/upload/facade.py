"""
Upload facade.

Provides a simplified interface for uploading local files and in-memory
payloads.
Follows Facade Pattern - hides the orchestrator, readers and plans.
"""
import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from ..config import UploaderConfig
from ..formats import ExportFormat, cloud_file_name
from ..path import RemotePath
from ..store.protocols import RemoteStore
from .coordinator import UploadOrchestrator
from .models import UploadResult
from .protocols import ProgressCallback
from .services import AsyncFileReader, FileValidator


class UploadFacade:
    """
    Simplified interface for uploads.
    
    Example:
        >>> from cloudpush import UploadFacade, MemoryStore
        >>> uploader = UploadFacade()
        >>> result = await uploader.upload_file(store, "report.pdf", "Reports/2024")
        >>> print(f"Uploaded: {result.item_id}")
    """
    
    def __init__(
        self,
        config: Optional[UploaderConfig] = None,
        log_level: Optional[int] = None
    ):
        """
        Initialize upload facade.
        
        Args:
            config: Upload configuration
            log_level: Level for the 'cloudpush.upload' logger, taken from
                the configuration when omitted
        """
        self._config = config or UploaderConfig.default()
        self._logger = logging.getLogger('cloudpush.upload')
        self._logger.setLevel(log_level if log_level is not None else self._config.log_level)
        self._validator = FileValidator()
        self._orchestrator = UploadOrchestrator(self._config)
    
    @property
    def orchestrator(self) -> UploadOrchestrator:
        return self._orchestrator
    
    async def upload_file(
        self,
        store: RemoteStore,
        file_path: Union[str, Path],
        destination: Union[str, RemotePath] = "/",
        name: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> UploadResult:
        """
        Upload a local file.
        
        Args:
            store: Authenticated remote store
            file_path: Path to local file
            destination: Destination folder path
            name: Optional remote file name (defaults to the local name)
            cancel_event: Checked before each chunk request
            progress_callback: Called after every accepted chunk
            
        Returns:
            UploadResult with the remote item id
            
        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file
        """
        path, size = self._validator.validate(file_path)
        async with AsyncFileReader(path) as reader:
            return await self._orchestrator.upload(
                store,
                reader,
                size,
                destination,
                name or path.name,
                cancel_event=cancel_event,
                progress_callback=progress_callback
            )
    
    async def upload_export(
        self,
        store: RemoteStore,
        file_path: Union[str, Path],
        destination: Union[str, RemotePath],
        base_name: str,
        export_format: ExportFormat,
        **kwargs
    ) -> UploadResult:
        """Upload an exported report under ``base_name`` plus the format's extension."""
        return await self.upload_file(
            store,
            file_path,
            destination,
            name=cloud_file_name(base_name, export_format),
            **kwargs
        )
    
    async def upload_bytes(
        self,
        store: RemoteStore,
        data: bytes,
        destination: Union[str, RemotePath],
        name: str,
        **kwargs
    ) -> UploadResult:
        """Upload an in-memory payload."""
        return await self._orchestrator.upload(store, data, len(data), destination, name, **kwargs)
    
    async def probe(self, store: RemoteStore) -> bool:
        """Check that the store's credentials are usable."""
        return await self._orchestrator.probe(store)
