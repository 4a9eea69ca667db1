"""Batch IoC reputation scanner with CSV export.

Indicators are looked up in batches sized to the API quota; lookups inside
a batch run concurrently, and the scanner sleeps between batches. A failed
lookup never stops the scan: its row carries the error message as status.
"""

import asyncio
import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Sequence
from urllib.parse import urlparse

from sentinel_core_lib.clients import VirusTotalClient
from sentinel_core_lib.exceptions import InputValidationError, ThreatIntelLookupError
from sentinel_core_lib.models import SCAN_SUCCESS, ScanResult, ScanSpeed, ScanType

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Indicator", "Status", "Malicious", "Suspicious", "Harmless", "Context", "Last Scan Date"]
MISSING = "N/A"

_SEPARATORS = re.compile(r"[,\s]+")
_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class ScanProgress:
    """Progress report emitted after each batch"""

    batch_number: int
    batch_count: int
    completed: int
    total: int
    wait_seconds: float = 0.0

    @property
    def done(self) -> bool:
        return self.completed >= self.total


ProgressCallback = Callable[[ScanProgress], None]
Sleep = Callable[[float], Awaitable[None]]


def parse_input(text: str, scan_type: ScanType) -> List[str]:
    """Split raw input on commas/whitespace and de-duplicate, keeping order.

    For domains, http(s) URLs are reduced to their hostname and entries
    without a dot are dropped.
    """
    items = [item for item in _SEPARATORS.split(text) if item]

    if scan_type == ScanType.DOMAIN:
        domains = []
        for item in items:
            if _HTTP_URL.match(item):
                item = urlparse(item).hostname or item
            if "." in item:
                domains.append(item)
        items = domains

    return list(dict.fromkeys(items))


class IocBatchScanner:
    """Runs rate-limited batch lookups against VirusTotal"""

    def __init__(self, client: VirusTotalClient, sleep: Sleep = asyncio.sleep):
        self.client = client
        self._sleep = sleep

    async def scan_text(
        self,
        text: str,
        scan_type: ScanType,
        speed: ScanSpeed = ScanSpeed.SLOW,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[ScanResult]:
        """Parse raw input and scan it.

        Raises:
            InputValidationError: Nothing valid in the input
        """
        scan_type = ScanType(scan_type)
        indicators = parse_input(text, scan_type)
        if not indicators:
            raise InputValidationError(
                f"No valid {scan_type.value}s found in the input. Please check your list."
            )
        return await self.scan(indicators, scan_type, speed, on_progress)

    async def scan(
        self,
        indicators: Sequence[str],
        scan_type: ScanType,
        speed: ScanSpeed = ScanSpeed.SLOW,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[ScanResult]:
        """Look up every indicator; results keep input order"""
        scan_type = ScanType(scan_type)
        speed = ScanSpeed(speed)
        tier = speed.tier
        batches = [
            list(indicators[i:i + tier.batch_size])
            for i in range(0, len(indicators), tier.batch_size)
        ]
        logger.info(
            f"Scanning {len(indicators)} {scan_type.value}(s) in {len(batches)} batch(es) "
            f"at {speed.value} speed"
        )

        results: List[ScanResult] = []
        for number, batch in enumerate(batches, start=1):
            results.extend(await asyncio.gather(
                *(self._lookup(indicator, scan_type) for indicator in batch)
            ))

            last = number == len(batches)
            wait = 0.0 if last else tier.delay_seconds
            if on_progress:
                on_progress(ScanProgress(
                    batch_number=number,
                    batch_count=len(batches),
                    completed=len(results),
                    total=len(indicators),
                    wait_seconds=wait,
                ))
            if not last:
                await self._sleep(wait)

        failures = sum(1 for r in results if not r.succeeded)
        logger.info(f"Scan complete: {len(results)} {scan_type.value}(s), {failures} failed")
        return results

    async def _lookup(self, indicator: str, scan_type: ScanType) -> ScanResult:
        try:
            report = await self.client.get_report(scan_type, indicator)
        except ThreatIntelLookupError as e:
            return ScanResult(indicator=indicator, scan_type=scan_type, status=str(e))

        return ScanResult(
            indicator=indicator,
            scan_type=scan_type,
            status=SCAN_SUCCESS,
            report_id=report.get("id"),
            attributes=report.get("attributes") or {},
        )


# ============================================================
# CSV export
# ============================================================

def _cell(value) -> str:
    return MISSING if value is None else str(value)


def export_csv(results: Sequence[ScanResult]) -> str:
    """CSV report: bare header row, every value quoted, missing values as N/A"""
    buffer = io.StringIO()
    buffer.write(",".join(CSV_HEADERS) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")

    for result in results:
        stats = result.stats or {}
        writer.writerow([
            result.indicator,
            result.status or MISSING,
            _cell(stats.get("malicious")),
            _cell(stats.get("suspicious")),
            _cell(stats.get("harmless")),
            _cell(result.context),
            _cell(result.last_scan_date),
        ])

    return buffer.getvalue().rstrip("\n")


def csv_filename(scan_type: ScanType, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"vt-{scan_type.value}-report-{now.strftime('%Y-%m-%dT%H-%M-%SZ')}.csv"
