"""Base client for third-party threat intelligence HTTP APIs."""

import logging
from typing import Any, Dict, Optional

import httpx

from sentinel_core_lib.exceptions import ThreatIntelLookupError

logger = logging.getLogger(__name__)


class BaseServiceClient:
    """Base class for third-party lookup clients.

    Each request opens a short-lived httpx.AsyncClient with the configured
    timeout. Tests can pass an ``httpx.MockTransport`` as ``transport``.

    Usage:
        class ReputationClient(BaseServiceClient):
            async def get_report(self, indicator: str) -> dict:
                response = await self._get(f"{self.base_url}/reports/{indicator}")
                return response.json()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize service client.

        Args:
            base_url: Service base URL
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional custom transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

        logger.info(f"Initialized {self.__class__.__name__} with base_url={self.base_url}")

    def _headers(self) -> Dict[str, str]:
        """Request headers; override to add credentials"""
        return {"Accept": "application/json"}

    def _get_client(self) -> httpx.AsyncClient:
        """Get HTTP client instance with configured timeout.

        Returns:
            Configured AsyncClient ready for use with async context manager
        """
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _get(self, url: str) -> httpx.Response:
        """GET url; network failures become ThreatIntelLookupError"""
        try:
            async with self._get_client() as client:
                return await client.get(url, headers=self._headers())
        except httpx.TimeoutException as e:
            raise ThreatIntelLookupError(f"Request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ThreatIntelLookupError(f"Network error: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        """Message from a JSON error body, or fallback"""
        try:
            body: Any = response.json()
        except ValueError:
            return fallback
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return error["message"]
            if body.get("message"):
                return body["message"]
        return fallback

    async def close(self):
        """Close any persistent connections.

        Override this if your client maintains a persistent httpx.AsyncClient.
        """
        pass
