"""Upload services module."""
from .file_service import FileValidator, AsyncFileReader, StreamReader, as_reader, read_exactly
from .session import ChunkedUploadSession

__all__ = [
    'FileValidator',
    'AsyncFileReader',
    'StreamReader',
    'as_reader',
    'read_exactly',
    'ChunkedUploadSession',
]
