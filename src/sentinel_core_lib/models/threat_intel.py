"""Threat intelligence side-tool models.

- ScanType / ScanSpeed: batch reputation scan options
- ScanResult: one row of a VirusTotal batch scan
- UserAgentAnalysisResult: parsed fields plus security verdict for one UA
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from sentinel_core_lib.models.analysis import UserAgentSecurityAnalysis

SCAN_SUCCESS = "Success"


class ScanType(str, Enum):
    """Indicator kind submitted to the reputation API"""

    DOMAIN = "domain"
    HASH = "hash"
    IP = "ip"
    URL = "url"


@dataclass(frozen=True)
class SpeedTier:
    """Batch size and inter-batch delay matching an API quota"""

    batch_size: int
    delay_seconds: float


class ScanSpeed(str, Enum):
    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"

    @property
    def tier(self) -> SpeedTier:
        return SPEED_TIERS[self]


# slow fits the public API quota of 4 lookups per minute
SPEED_TIERS: Dict[ScanSpeed, SpeedTier] = {
    ScanSpeed.SLOW: SpeedTier(batch_size=4, delay_seconds=60.0),
    ScanSpeed.MEDIUM: SpeedTier(batch_size=10, delay_seconds=10.0),
    ScanSpeed.FAST: SpeedTier(batch_size=20, delay_seconds=5.0),
}


class ScanResult(BaseModel):
    """Reputation lookup outcome for one indicator"""

    indicator: str
    scan_type: ScanType
    status: str = Field(description="'Success' or the lookup error message")
    report_id: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == SCAN_SUCCESS

    @property
    def stats(self) -> Optional[Dict[str, int]]:
        return self.attributes.get("last_analysis_stats")

    @property
    def last_scan_date(self) -> Optional[str]:
        """Date (YYYY-MM-DD) of the most recent analysis"""
        epoch = self.attributes.get("last_analysis_date")
        if not epoch:
            return None
        return datetime.fromtimestamp(epoch, tz=timezone.utc).date().isoformat()

    @property
    def context(self) -> Optional[str]:
        """Most useful descriptive attribute for the indicator kind"""
        attrs = self.attributes
        if self.scan_type == ScanType.HASH:
            names = attrs.get("names") or []
            return attrs.get("meaningful_name") or (names[0] if names else None)
        if self.scan_type == ScanType.IP:
            return attrs.get("as_owner")
        if self.scan_type == ScanType.URL:
            return attrs.get("title")
        return attrs.get("registrar")

    @property
    def verdict(self) -> str:
        """malicious | suspicious | clean | unknown"""
        stats = self.stats
        if not self.succeeded or not stats:
            return "unknown"
        if stats.get("malicious", 0) > 0:
            return "malicious"
        if stats.get("suspicious", 0) > 0:
            return "suspicious"
        return "clean"


class UserAgentAnalysisResult(BaseModel):
    """Combined parse + security result for one User-Agent string"""

    user_agent: str
    parsed: Optional[Dict[str, Any]] = None
    security: Optional[UserAgentSecurityAnalysis] = None
    parse_error: Optional[str] = None
    security_error: Optional[str] = None

    @property
    def security_flags(self) -> List[str]:
        """Parser flags such as 'bot' or 'outdated' that are set"""
        if not self.parsed:
            return []
        ignored = {"is_mobile", "is_tablet", "is_desktop"}
        return [
            key[len("is_"):]
            for key, value in self.parsed.items()
            if key.startswith("is_") and value is True and key not in ignored
        ]
