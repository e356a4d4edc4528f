"""
Protocol definitions for upload module.

Defines the interfaces the upload core consumes besides the remote store.
"""
from typing import Callable, Protocol, runtime_checkable

from .models import UploadProgress


@runtime_checkable
class SourceReader(Protocol):
    """Sequential reader over the payload being uploaded."""
    
    async def read(self, size: int) -> bytes:
        """
        Read up to ``size`` bytes.
        
        Returns:
            The next bytes of the payload, empty at end of stream
        """
        ...


ProgressCallback = Callable[[UploadProgress], None]
