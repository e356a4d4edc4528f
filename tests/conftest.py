"""Pytest fixtures for cloudpush tests."""
import os

import pytest

from cloudpush import MemoryStore, RetryConfig, TimeoutConfig, UploaderConfig
from cloudpush.core.retry import ExponentialBackoffStrategy


KIB = 1024
CHUNK = 320 * KIB


@pytest.fixture
def store():
    """Returns an empty in-memory store with 320 KiB alignment."""
    return MemoryStore()


@pytest.fixture
def no_wait_retry():
    """Retry strategy with the default budget and no backoff delay."""
    return ExponentialBackoffStrategy(RetryConfig(max_attempts=3, base_delay=0))


@pytest.fixture
def fast_config():
    """Upload config that chunks anything above 64 KiB and never sleeps."""
    return UploaderConfig(
        chunk_threshold=64 * KIB,
        max_chunk_size=CHUNK,
        retry=RetryConfig(max_attempts=3, base_delay=0),
        timeout=TimeoutConfig(request=5.0)
    )


@pytest.fixture
def payload():
    """Returns a factory for random payloads of a given size."""
    def make(size: int) -> bytes:
        return os.urandom(size)
    return make
