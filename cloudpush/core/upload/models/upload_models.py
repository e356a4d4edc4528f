"""
Data models for upload module.

Uses dataclasses for type-safe data structures. None of these objects
outlive a single upload call.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...exceptions import CloudPushError, StrategySelectionInvalid


class UploadStrategy(Enum):
    """How a payload is transferred."""
    WHOLE = "whole"
    CHUNKED = "chunked"


class SessionPhase(Enum):
    """Lifecycle of a chunked upload session."""
    IDLE = "idle"
    STARTED = "started"
    UPLOADING = "uploading"
    FINISHED = "finished"
    ABORTED = "aborted"
    
    @property
    def is_terminal(self) -> bool:
        return self in (SessionPhase.FINISHED, SessionPhase.ABORTED)


@dataclass(frozen=True)
class UploadPlan:
    """
    Decision for one upload.
    
    Attributes:
        folder: Destination folder handle
        file_name: Name of the remote item
        total_size: Payload size in bytes
        strategy: WHOLE or CHUNKED
        chunk_size: Chunk size for CHUNKED plans, None otherwise
    """
    folder: str
    file_name: str
    total_size: int
    strategy: UploadStrategy
    chunk_size: Optional[int] = None
    
    def __post_init__(self):
        if self.total_size < 0:
            raise StrategySelectionInvalid(f"negative size {self.total_size}")
        if self.strategy is UploadStrategy.CHUNKED:
            if not self.chunk_size or self.chunk_size <= 0:
                raise StrategySelectionInvalid("chunked plan needs a positive chunk size")
    
    @property
    def is_chunked(self) -> bool:
        return self.strategy is UploadStrategy.CHUNKED


@dataclass(frozen=True)
class ChunkDescriptor:
    """
    One contiguous byte range of the source.
    
    Attributes:
        index: Chunk index
        offset: Start position in bytes
        length: Chunk size in bytes
        is_final: True only for the last chunk
    """
    index: int
    offset: int
    length: int
    is_final: bool = False
    
    @property
    def end(self) -> int:
        """Returns the exclusive end offset."""
        return self.offset + self.length


@dataclass
class SessionState:
    """
    In-memory state of one resumable session.
    
    Attributes:
        token: Store-issued session token
        total_size: Declared payload size
        next_expected_offset: Bytes confirmed by the store so far
    """
    token: str
    total_size: int
    next_expected_offset: int = 0
    
    @property
    def remaining(self) -> int:
        return self.total_size - self.next_expected_offset
    
    def advance(self, length: int) -> None:
        """Record ``length`` more confirmed bytes."""
        self.next_expected_offset += length
    
    def resync(self, offset: int) -> None:
        """Move the cursor to the offset the store reports."""
        self.next_expected_offset = offset


@dataclass(frozen=True)
class UploadResult:
    """
    Result of an upload call.
    
    Attributes:
        success: True when the item was committed
        item_id: Remote item identifier (on success)
        error: Failure detail (on failure)
        file_name: Name of the remote item
        size: Payload size in bytes
        strategy: Strategy used, if planning got that far
    """
    success: bool
    item_id: Optional[str] = None
    error: Optional[CloudPushError] = None
    file_name: str = ''
    size: int = 0
    strategy: Optional[UploadStrategy] = None
    
    @classmethod
    def succeeded(cls, item_id: str, plan: UploadPlan) -> 'UploadResult':
        return cls(
            success=True,
            item_id=item_id,
            file_name=plan.file_name,
            size=plan.total_size,
            strategy=plan.strategy
        )
    
    @classmethod
    def failed(
        cls,
        error: CloudPushError,
        file_name: str = '',
        size: int = 0,
        plan: Optional[UploadPlan] = None
    ) -> 'UploadResult':
        return cls(
            success=False,
            error=error,
            file_name=file_name,
            size=size,
            strategy=plan.strategy if plan else None
        )
    
    def raise_for_error(self) -> None:
        """Re-raise the failure, if any."""
        if self.error is not None:
            raise self.error


@dataclass
class UploadProgress:
    """
    Upload progress information.
    
    Attributes:
        total_bytes: Total payload size
        uploaded_bytes: Bytes confirmed by the store
        total_chunks: Number of chunks (1 for whole uploads)
        uploaded_chunks: Chunks confirmed so far
    """
    total_bytes: int
    uploaded_bytes: int = 0
    total_chunks: int = 1
    uploaded_chunks: int = 0
    
    @property
    def percentage(self) -> float:
        """Returns upload progress as percentage."""
        if self.total_bytes == 0:
            return 100.0 if self.uploaded_chunks >= self.total_chunks else 0.0
        return (self.uploaded_bytes / self.total_bytes) * 100
    
    @property
    def is_complete(self) -> bool:
        """Returns True if upload is complete."""
        return self.uploaded_chunks >= self.total_chunks
