"""Configuration dataclasses."""
from .config import KIB, MIB, TimeoutConfig, RetryConfig, UploaderConfig

__all__ = [
    'KIB',
    'MIB',
    'TimeoutConfig',
    'RetryConfig',
    'UploaderConfig',
]
