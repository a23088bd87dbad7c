"""Utility modules for shared functionality."""

from .constants import (
    OPERATION_EXPIRY_TIME_IN_SECONDS,
    RATE_LIMIT_POLL_INTERVAL_IN_SECONDS,
)
from .github import build_remote_url, mask_credentials

__all__ = [
    "OPERATION_EXPIRY_TIME_IN_SECONDS",
    "RATE_LIMIT_POLL_INTERVAL_IN_SECONDS",
    "build_remote_url",
    "mask_credentials",
]
