"""Utility Functions"""

from sentinel_core_lib.utils.resilience import (
    is_transient_provider_error,
    provider_retry,
    service_startup_retry,
)

__all__ = [
    "is_transient_provider_error",
    "provider_retry",
    "service_startup_retry",
]
