import asyncio
from collections import defaultdict
from typing import Any, Dict, List, Optional

import pytest

from sentinel_core_lib.exceptions import OracleError
from sentinel_core_lib.infrastructure.llm import EMPTY_PHASE_SUMMARY, LLMResponse
from sentinel_core_lib.models import (
    AnalysisResult,
    ArtifactDraft,
    ArtifactType,
    ChecklistStep,
    KillChainPhase,
    MitreAttack,
    PhasedIndicator,
    Severity,
    TextContent,
    UserAgentSecurityAnalysis,
)
from sentinel_core_lib.workspace import CaseWorkspace, build_services


def make_analysis(**overrides) -> AnalysisResult:
    data = dict(
        summary="Credential phishing email delivered to finance.",
        estimated_severity=Severity.HIGH,
        attack_tactic=MitreAttack(id="TA0001", name="Initial Access", description="Getting in"),
        attack_technique=MitreAttack(id="T1566", name="Phishing", description="Malicious email"),
        indicators_of_compromise=[{"type": "Domain", "value": "evil.example"}],
        investigation_checklist=[
            ChecklistStep(step=1, action="Pull headers", details="Extract the full email headers"),
            ChecklistStep(step=2, action="Check domain", details="Look up evil.example"),
        ],
        timeline_events=[{"timestamp": "2024-05-01 10:00:00 UTC", "event": "Email received"}],
    )
    data.update(overrides)
    return AnalysisResult(**data)


def note(title: str = "Note", text: str = "some text",
         phase: KillChainPhase = KillChainPhase.UNCATEGORIZED) -> ArtifactDraft:
    return ArtifactDraft(
        artifact_type=ArtifactType.ANALYST_NOTE,
        title=title,
        content=TextContent(text=text),
        kill_chain_phase=phase,
    )


class FakeOracle:
    """Scripted stand-in for EnrichmentOracle.

    ``failures[name]`` makes a method raise; ``gates[name]`` (an asyncio.Event)
    holds a method until the test sets it.
    """

    def __init__(self):
        self.calls: Dict[str, List[Any]] = defaultdict(list)
        self.failures: Dict[str, Exception] = {}
        self.gates: Dict[str, asyncio.Event] = {}

        self.analysis = make_analysis()
        self.steps = [
            ChecklistStep(step=1, action="Correlate IPs", details="Check firewall logs"),
            ChecklistStep(step=2, action="Research hash", details="Search threat intel"),
            ChecklistStep(step=3, action="Review script", details="Look for obfuscation"),
        ]
        self.phase_summary = "- phase finding"
        self.case_summary = "Executive summary"
        self.iocs: List[PhasedIndicator] = []
        self.chat_reply = "Assistant reply"
        self.ua_analyses: Optional[List[UserAgentSecurityAnalysis]] = None

    async def _enter(self, name: str, *args):
        self.calls[name].append(args)
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if name in self.failures:
            raise self.failures[name]

    async def analyze_event(self, event_log):
        await self._enter("analyze_event", event_log)
        return self.analysis

    async def suggest_next_steps(self, context):
        await self._enter("suggest_next_steps", context)
        return self.steps

    async def split_and_classify(self, text):
        await self._enter("split_and_classify", text)
        return []

    async def chat(self, message, context):
        await self._enter("chat", message, context)
        return self.chat_reply

    async def summarize_phase(self, artifacts):
        await self._enter("summarize_phase", list(artifacts))
        if not artifacts:
            return EMPTY_PHASE_SUMMARY
        return self.phase_summary

    async def summarize_case(self, context):
        await self._enter("summarize_case", context)
        return self.case_summary

    async def extract_iocs(self, artifacts):
        await self._enter("extract_iocs", list(artifacts))
        return self.iocs

    async def analyze_user_agents(self, items):
        await self._enter("analyze_user_agents", list(items))
        if self.ua_analyses is not None:
            return self.ua_analyses
        return [
            UserAgentSecurityAnalysis(user_agent=item["user_agent"], summary="Looks normal", risk_level="Low")
            for item in items
        ]


class FakeRegistry:
    """Stands in for ProviderRegistry: returns queued contents in order"""

    def __init__(self, *contents, error: Optional[Exception] = None):
        self.contents = list(contents)
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    async def route_request(self, **kwargs) -> LLMResponse:
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return LLMResponse(
            content=self.contents.pop(0),
            confidence=0.9,
            provider="fake",
            model="fake-model",
            tokens_used=10,
            response_time_ms=1,
        )


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def workspace():
    return CaseWorkspace()


@pytest.fixture
def services(workspace, oracle):
    return build_services(workspace, oracle)


@pytest.fixture
def oracle_failure():
    return OracleError("provider unavailable")
