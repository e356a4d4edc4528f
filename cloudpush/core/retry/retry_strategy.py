"""Retry strategies using Strategy Pattern."""
import asyncio
from abc import ABC, abstractmethod

from ..config import RetryConfig
from ..exceptions import TransportError


class RetryStrategy(ABC):
    """Abstract retry strategy."""
    
    @abstractmethod
    def is_transient(self, error: BaseException) -> bool:
        """Determines if an error may go away on its own."""
        pass
    
    @abstractmethod
    def should_retry(self, error: BaseException, attempt: int, max_attempts: int) -> bool:
        """Determines if request should be retried after ``attempt`` tries."""
        pass
    
    @abstractmethod
    async def wait_async(self, attempt: int):
        """Waits before retry (async)."""
        pass


class ExponentialBackoffStrategy(RetryStrategy):
    """Exponential backoff retry strategy."""
    
    TRANSIENT_ERRORS = (TransportError, asyncio.TimeoutError)
    
    def __init__(self, config: RetryConfig = None):
        self._config = config or RetryConfig()
    
    @property
    def max_attempts(self) -> int:
        return self._config.max_attempts
    
    def is_transient(self, error: BaseException) -> bool:
        """Retries on transport errors and timeouts only."""
        return isinstance(error, self.TRANSIENT_ERRORS)
    
    def should_retry(self, error: BaseException, attempt: int, max_attempts: int) -> bool:
        return self.is_transient(error) and attempt < max_attempts
    
    def delay_for(self, attempt: int) -> float:
        return self._config.calculate_delay(attempt)
    
    async def wait_async(self, attempt: int):
        """Waits with exponential backoff (async)."""
        delay = self.delay_for(attempt)
        if delay > 0:
            await asyncio.sleep(delay)
