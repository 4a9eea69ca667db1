"""Resilience utilities for the Sentinel core library.

Two retry policies:
- service_startup_retry: Redis may still be starting when the workspace opens
- provider_retry(): transient LLM provider failures (rate limits, 5xx,
  dropped connections), bounded by LLM_MAX_RETRIES

Oracle calls made for background recomputations are not retried beyond
provider_retry(); a recomputation that still fails is logged and dropped.
"""

import asyncio
import logging

import aiohttp
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from sentinel_core_lib.exceptions import LLMProviderError

logger = logging.getLogger(__name__)

TRANSIENT_HTTP_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


# Redis connection check at startup
# - Wait 2s, 4s, 8s, 16s between attempts
# - Stop after 5 attempts, then re-raise
service_startup_retry = retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=2, max=32),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def is_transient_provider_error(exc: BaseException) -> bool:
    """Check if a provider failure is worth another attempt"""
    if isinstance(exc, (aiohttp.ClientConnectionError, asyncio.TimeoutError)):
        return True
    if isinstance(exc, LLMProviderError):
        return exc.context.get("status") in TRANSIENT_HTTP_STATUSES
    return False


def provider_retry(max_retries: int) -> AsyncRetrying:
    """Retry controller for one provider call.

    Example:
        ```python
        async for attempt in provider_retry(config.max_retries):
            with attempt:
                response = await provider.generate(prompt=prompt)
        ```
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(0, max_retries) + 1),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
        retry=retry_if_exception(is_transient_provider_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
