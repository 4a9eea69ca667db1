"""HTTP client for the public User-Agent parsing API."""

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from sentinel_core_lib.clients.base import BaseServiceClient
from sentinel_core_lib.config import ThreatIntelSettings, get_settings
from sentinel_core_lib.exceptions import ThreatIntelLookupError


class UserAgentClient(BaseServiceClient):
    """Parses User-Agent strings into browser, OS and security flag fields.

    The API needs no key: GET <base>/<url-encoded user agent>.
    """

    def __init__(
        self,
        base_url: str = "https://evil-ua.com/api/v1/ua",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[ThreatIntelSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "UserAgentClient":
        settings = settings or get_settings().threat_intel
        return cls(
            base_url=settings.user_agent_api_url,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def parse(self, user_agent: str) -> Dict[str, Any]:
        """Parsed fields of one User-Agent string.

        Raises:
            ThreatIntelLookupError: Non-2xx status or network failure
        """
        response = await self._get(f"{self.base_url}/{quote(user_agent, safe='')}")

        if response.is_error:
            fallback = f"User-Agent parser returned status {response.status_code}."
            raise ThreatIntelLookupError(
                self._error_message(response, fallback), status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ThreatIntelLookupError("Malformed response from User-Agent parser.") from e
