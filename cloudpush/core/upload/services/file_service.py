"""
Source validation and reading services.

Single Responsibility: Each class handles one specific task.
"""
import inspect
import io
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import aiofiles

from ...logging import get_logger
from ..protocols import SourceReader


class FileValidator:
    """
    Validates local files before upload.
    
    Responsibilities:
    - Check file existence
    - Verify file is not a directory
    - Get file size
    """
    
    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Validate a file for upload.
        
        Args:
            file_path: Path to the file
            
        Returns:
            Tuple of (validated Path, file size in bytes)
            
        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path
        
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        
        if not path.is_file():
            raise ValueError(f"Path is not a file: {path}")
        
        return path, path.stat().st_size


class AsyncFileReader:
    """
    Asynchronous sequential reader for a local file.
    
    Uses aiofiles for non-blocking I/O operations. Keeps one handle open
    for the whole upload.
    
    Example:
        >>> async with AsyncFileReader("report.pdf") as reader:
        ...     head = await reader.read(1024)
    """
    
    def __init__(self, file_path: Union[str, Path]):
        self._path = Path(file_path)
        self._handle = None
        self._logger = get_logger('cloudpush.upload.file')
    
    @property
    def path(self) -> Path:
        return self._path
    
    async def open(self) -> 'AsyncFileReader':
        """Open the file. Called automatically on first read."""
        if self._handle is None:
            self._handle = await aiofiles.open(self._path, 'rb')
        return self
    
    async def close(self) -> None:
        """Close the file if it is open."""
        if self._handle is not None:
            await self._handle.close()
            self._handle = None
    
    async def __aenter__(self) -> 'AsyncFileReader':
        return await self.open()
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
    
    async def read(self, size: int) -> bytes:
        await self.open()
        data = await self._handle.read(size)
        self._logger.debug(f"Read {len(data)} bytes from {self._path.name}")
        return data


class StreamReader:
    """
    Adapts a synchronous binary stream (``BytesIO``, an open file) to
    ``SourceReader``.
    """
    
    def __init__(self, stream: Union[BinaryIO, bytes, bytearray]):
        if isinstance(stream, (bytes, bytearray)):
            stream = io.BytesIO(stream)
        self._stream = stream
    
    async def read(self, size: int) -> bytes:
        return self._stream.read(size)


def as_reader(source: Union[SourceReader, BinaryIO, bytes, bytearray]) -> SourceReader:
    """Wrap plain streams and byte strings; pass async readers through."""
    if isinstance(source, (bytes, bytearray)):
        return StreamReader(source)
    read = getattr(source, 'read', None)
    if read is None:
        raise TypeError(f"Unsupported upload source: {type(source).__name__}")
    if inspect.iscoroutinefunction(read):
        return source
    return StreamReader(source)


async def read_exactly(reader: SourceReader, size: int) -> bytes:
    """
    Read ``size`` bytes, looping over short reads.
    
    Returns fewer bytes only when the stream ends first.
    """
    buffer = bytearray()
    while len(buffer) < size:
        data = await reader.read(size - len(buffer))
        if not data:
            break
        buffer.extend(data)
    return bytes(buffer)
