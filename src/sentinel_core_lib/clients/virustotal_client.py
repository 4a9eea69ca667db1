"""HTTP client for the VirusTotal v3 API."""

import base64
import logging
from typing import Any, Dict, Optional

import httpx

from sentinel_core_lib.clients.base import BaseServiceClient
from sentinel_core_lib.config import ThreatIntelSettings, get_settings
from sentinel_core_lib.exceptions import ThreatIntelLookupError
from sentinel_core_lib.models import ScanType

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Item not found in VirusTotal."
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait."
AUTH_FAILED_MESSAGE = "Authentication failed. Check your API key."

_STATUS_MESSAGES = {
    404: NOT_FOUND_MESSAGE,
    429: RATE_LIMIT_MESSAGE,
    401: AUTH_FAILED_MESSAGE,
}


def url_identifier(url: str) -> str:
    """VirusTotal URL id: url-safe base64 of the URL without padding"""
    return base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii").rstrip("=")


class VirusTotalClient(BaseServiceClient):
    """Async client for VirusTotal reputation reports.

    Every lookup returns the ``data`` object of the API response (with
    ``id``, ``type`` and ``attributes``).

    Usage:
        client = VirusTotalClient(api_key="...")
        report = await client.get_domain_report("example.com")
        report["attributes"]["last_analysis_stats"]["malicious"]
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://www.virustotal.com/api/v3",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("VirusTotal API key is required")
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self.api_key = api_key

    @classmethod
    def from_settings(
        cls,
        settings: Optional[ThreatIntelSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "VirusTotalClient":
        settings = settings or get_settings().threat_intel
        if settings.virustotal_api_key is None:
            raise ValueError("VIRUSTOTAL_API_KEY is not configured")
        return cls(
            api_key=settings.virustotal_api_key.get_secret_value(),
            base_url=settings.virustotal_base_url,
            timeout=settings.request_timeout,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "x-apikey": self.api_key}

    async def _fetch(self, endpoint: str) -> Dict[str, Any]:
        """GET one report and map API errors to analyst-facing messages.

        Raises:
            ThreatIntelLookupError: Non-2xx status or network failure
        """
        response = await self._get(f"{self.base_url}/{endpoint}")
        logger.debug(f"VirusTotal {endpoint} -> {response.status_code}")

        if response.status_code in _STATUS_MESSAGES:
            raise ThreatIntelLookupError(
                _STATUS_MESSAGES[response.status_code], status_code=response.status_code
            )
        if response.is_error:
            fallback = (
                f"API returned status {response.status_code}. "
                f"Please check the item and your key."
            )
            raise ThreatIntelLookupError(
                self._error_message(response, fallback), status_code=response.status_code
            )

        try:
            return response.json().get("data", {})
        except ValueError as e:
            raise ThreatIntelLookupError("Malformed response from VirusTotal.") from e

    async def get_domain_report(self, domain: str) -> Dict[str, Any]:
        return await self._fetch(f"domains/{domain}")

    async def get_file_report(self, file_hash: str) -> Dict[str, Any]:
        return await self._fetch(f"files/{file_hash}")

    async def get_ip_report(self, ip: str) -> Dict[str, Any]:
        return await self._fetch(f"ip_addresses/{ip}")

    async def get_url_report(self, url: str) -> Dict[str, Any]:
        return await self._fetch(f"urls/{url_identifier(url)}")

    async def get_report(self, scan_type: ScanType, indicator: str) -> Dict[str, Any]:
        """Dispatch to the lookup matching scan_type"""
        lookups = {
            ScanType.DOMAIN: self.get_domain_report,
            ScanType.HASH: self.get_file_report,
            ScanType.IP: self.get_ip_report,
            ScanType.URL: self.get_url_report,
        }
        return await lookups[ScanType(scan_type)](indicator)
