"""User-Agent risk analyzer.

Parses every User-Agent string concurrently, then asks the oracle for one
batched security assessment of the strings that parsed. Parse failures and
a failed assessment are recorded per row instead of failing the run.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from sentinel_core_lib.clients import UserAgentClient
from sentinel_core_lib.exceptions import OracleError, ThreatIntelLookupError
from sentinel_core_lib.infrastructure.llm import EnrichmentOracle
from sentinel_core_lib.models import UserAgentAnalysisResult, UserAgentSecurityAnalysis

logger = logging.getLogger(__name__)

PARSE_ERROR_MESSAGE = "Failed to parse User-Agent string."
SECURITY_ERROR_MESSAGE = "AI security analysis failed for this User-Agent."


def parse_user_agents(text: str) -> List[str]:
    """One UA per line; blank lines dropped, duplicates removed in order"""
    return list(dict.fromkeys(line.strip() for line in text.splitlines() if line.strip()))


class UserAgentAnalyzer:
    """Parse + AI risk assessment for a list of User-Agent strings"""

    def __init__(self, client: UserAgentClient, oracle: EnrichmentOracle):
        self.client = client
        self.oracle = oracle

    async def analyze_text(self, text: str) -> List[UserAgentAnalysisResult]:
        return await self.analyze(parse_user_agents(text))

    async def analyze(self, user_agents: List[str]) -> List[UserAgentAnalysisResult]:
        if not user_agents:
            return []

        parsed = await asyncio.gather(*(self._parse(ua) for ua in user_agents))
        parsed_by_ua: Dict[str, Optional[Dict[str, Any]]] = dict(parsed)
        successful = [
            {"user_agent": ua, "parsed": data}
            for ua, data in parsed
            if data is not None
        ]

        analyses: Dict[str, UserAgentSecurityAnalysis] = {}
        batch_failed = False
        if successful:
            try:
                for analysis in await self.oracle.analyze_user_agents(successful):
                    analyses.setdefault(analysis.user_agent, analysis)
            except OracleError as e:
                logger.error(f"Batch User-Agent security analysis failed: {e}")
                batch_failed = True

        results = []
        for ua in user_agents:
            data = parsed_by_ua.get(ua)
            security = analyses.get(ua)
            security_error = None
            if security is None and (batch_failed or data is not None):
                security_error = SECURITY_ERROR_MESSAGE
            results.append(UserAgentAnalysisResult(
                user_agent=ua,
                parsed=data,
                parse_error=PARSE_ERROR_MESSAGE if data is None else None,
                security=security,
                security_error=security_error,
            ))
        return results

    async def _parse(self, user_agent: str) -> Tuple[str, Optional[Dict[str, Any]]]:
        try:
            return user_agent, await self.client.parse(user_agent)
        except ThreatIntelLookupError as e:
            logger.warning(f"User-Agent parse failed ({e}): {user_agent[:80]}")
            return user_agent, None
