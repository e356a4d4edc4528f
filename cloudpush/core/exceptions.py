"""
Custom exceptions for cloudpush upload operations.

Two families live here: errors raised by store adapters (``StoreError`` and
subclasses) and errors raised by the upload core itself.
"""
from typing import Optional


class CloudPushError(Exception):
    """Base exception for all cloudpush errors."""
    
    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            error_code: Numeric error code (HTTP status when available)
        """
        self.error_code = error_code
        super().__init__(message)


class StoreError(CloudPushError):
    """Exception raised by a remote store adapter."""
    pass


class AuthError(StoreError):
    """Credentials were rejected. Never retried by the upload core."""
    pass


class TransportError(StoreError):
    """Network, timeout or server-side failure. Safe to retry."""
    pass


class QuotaExceededError(StoreError):
    """The store refused the write because a quota is exhausted."""
    pass


class ConflictError(StoreError):
    """The store reported a conflict it will not resolve on its own."""
    pass


class PartialAcceptanceError(StoreError):
    """The store kept only part of a finishing chunk and still expects the rest."""

    def __init__(self, accepted_up_to: int, message: Optional[str] = None) -> None:
        self.accepted_up_to = accepted_up_to
        super().__init__(message or f"Store accepted bytes up to {accepted_up_to} only", 202)


class FolderAlreadyExistsError(StoreError):
    """A folder with the requested name already exists under the parent."""
    
    def __init__(self, parent: str, name: str) -> None:
        self.parent = parent
        self.name = name
        super().__init__(f"Folder '{name}' already exists under {parent}", 409)


class PathResolutionFailed(CloudPushError):
    """Exception raised when a destination folder cannot be resolved."""
    
    def __init__(
        self,
        segment_index: int,
        cause: Optional[BaseException] = None,
        segment: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.
        
        Args:
            segment_index: Zero-based index of the segment that failed
            cause: Underlying store error (if any)
            segment: Name of the failing segment (if known)
        """
        self.segment_index = segment_index
        self.segment = segment
        self.cause = cause
        label = f" '{segment}'" if segment is not None else ""
        super().__init__(
            f"Could not resolve path segment {segment_index}{label}: {cause}"
        )


class StrategySelectionInvalid(CloudPushError):
    """Exception raised when no valid upload plan can be built."""
    
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid upload strategy: {reason}")


class ChunkUploadFailed(CloudPushError):
    """Exception raised when a chunk exhausts its retry budget."""
    
    def __init__(
        self,
        offset: int,
        attempts: int,
        cause: Optional[BaseException] = None
    ) -> None:
        """
        Initialize the exception.
        
        Args:
            offset: Byte offset of the chunk that failed
            attempts: Number of attempts made for that chunk
            cause: Last error seen
        """
        self.offset = offset
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Chunk at offset {offset} failed after {attempts} attempts: {cause}"
        )


class SessionAborted(CloudPushError):
    """Exception raised when a chunked session ends without finishing."""
    
    def __init__(self, cause: object, offset: Optional[int] = None) -> None:
        self.cause = cause
        self.offset = offset
        where = f" at offset {offset}" if offset is not None else ""
        super().__init__(f"Upload session aborted{where}: {cause}")


class UploadCancelled(SessionAborted):
    """The caller cancelled the upload before the next chunk request."""
    
    def __init__(self, offset: int) -> None:
        super().__init__("cancelled by caller", offset)


class SourceTooShort(SessionAborted):
    """The source stream ended before the declared size was read."""
    
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"source ended after {actual} of {expected} bytes", actual)
