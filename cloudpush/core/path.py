"""Root-relative remote folder paths."""
import re
from typing import Iterable, Iterator, Tuple, Union


class RemotePath:
    """
    Ordered sequence of folder names below a store's root.
    
    Example:
        >>> path = RemotePath.parse("/Reports//2024/")
        >>> path.segments
        ('Reports', '2024')
        >>> str(path / "Q1")
        '/Reports/2024/Q1'
    """
    
    SEPARATOR = "/"
    _SPLIT = re.compile(r"[\\/]")
    _RESERVED = (".", "..")
    
    __slots__ = ("_segments",)
    
    def __init__(self, segments: Iterable[str] = ()):
        """
        Initialize a remote path.
        
        Args:
            segments: Folder names, outermost first
            
        Raises:
            ValueError: If a segment is empty, '.', '..' or contains '/'
        """
        parts = tuple(segments)
        for index, part in enumerate(parts):
            if not isinstance(part, str):
                raise TypeError(f"Path segment {index} must be a string")
            if not part:
                raise ValueError(f"Path segment {index} is empty")
            if self.SEPARATOR in part:
                raise ValueError(f"Path segment {index} contains '{self.SEPARATOR}': {part!r}")
            if part in self._RESERVED:
                raise ValueError(f"Path segment {index} is reserved: {part!r}")
        self._segments: Tuple[str, ...] = parts
    
    @classmethod
    def parse(cls, text: Union[str, "RemotePath", None]) -> "RemotePath":
        """Parse a slash-separated path, dropping empty pieces."""
        if isinstance(text, RemotePath):
            return text
        if not text:
            return cls()
        parts = [p for p in cls._SPLIT.split(text) if p.strip()]
        return cls(parts)
    
    @property
    def segments(self) -> Tuple[str, ...]:
        return self._segments
    
    @property
    def is_root(self) -> bool:
        return not self._segments
    
    @property
    def name(self) -> str:
        """Last segment, empty for the root."""
        return self._segments[-1] if self._segments else ""
    
    @property
    def parent(self) -> "RemotePath":
        return RemotePath(self._segments[:-1])
    
    def __truediv__(self, other: str) -> "RemotePath":
        if not isinstance(other, str):
            raise TypeError("Path component must be a string")
        return RemotePath(self._segments + tuple(RemotePath.parse(other).segments))
    
    def __iter__(self) -> Iterator[str]:
        return iter(self._segments)
    
    def __len__(self) -> int:
        return len(self._segments)
    
    def __getitem__(self, index: int) -> str:
        return self._segments[index]
    
    def __eq__(self, other: object) -> bool:
        if isinstance(other, RemotePath):
            return self._segments == other._segments
        return NotImplemented
    
    def __hash__(self) -> int:
        return hash(self._segments)
    
    def __str__(self) -> str:
        return self.SEPARATOR + self.SEPARATOR.join(self._segments)
    
    def __repr__(self) -> str:
        return f"RemotePath('{self}')"
