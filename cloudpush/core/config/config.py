"""
Upload configuration module.

Provides configuration for the upload core and the HTTP store adapters.
"""
from dataclasses import dataclass, field
from typing import Optional


KIB = 1024
MIB = 1024 * KIB


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.
    
    Timeouts are per request (one chunk or one whole upload), never per
    session.
    """
    request: Optional[float] = 120.0  # Applied around every store call
    connect: float = 30.0
    sock_read: float = 60.0
    
    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.request,
            connect=self.connect,
            sock_read=self.sock_read
        )


@dataclass
class RetryConfig:
    """
    Retry configuration.
    
    ``max_attempts`` counts every attempt of one request, the first one
    included.
    """
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 16.0
    exponential_base: float = 2.0
    
    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
    
    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay after the given (zero-based) failed attempt."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class UploaderConfig:
    """
    Complete upload configuration.
    
    Attributes:
        chunk_threshold: Payloads up to this size go up in a single request
        max_chunk_size: Upper bound for chunk size on chunked uploads
        retry: Retry policy for transient failures
        timeout: Per-request timeouts
        log_level: Level for the 'cloudpush' logger
    """
    chunk_threshold: int = 4 * MIB
    max_chunk_size: int = 10 * MIB
    retry: RetryConfig = field(default_factory=RetryConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    log_level: int = 20  # logging.INFO
    
    @classmethod
    def default(cls) -> 'UploaderConfig':
        """Create default configuration."""
        return cls()
