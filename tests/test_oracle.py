import json

import pytest

from sentinel_core_lib.exceptions import LLMProviderError, OracleError, OracleResponseError
from sentinel_core_lib.infrastructure.llm import EMPTY_PHASE_SUMMARY, EnrichmentOracle
from sentinel_core_lib.models import (
    AnalysisResult,
    Artifact,
    ArtifactType,
    IocType,
    KillChainPhase,
    Severity,
    TextContent,
)

from conftest import FakeRegistry, make_analysis


def evidence(text, phase=KillChainPhase.DELIVERY, artifact_type=ArtifactType.ANALYST_NOTE):
    return Artifact(artifact_type=artifact_type, title="t", content=TextContent(text=text), kill_chain_phase=phase)


@pytest.mark.asyncio
async def test_analyze_event_sends_schema_and_parses_answer():
    registry = FakeRegistry(make_analysis().model_dump_json())
    oracle = EnrichmentOracle(registry)

    result = await oracle.analyze_event("4625 logon failure")

    assert result == make_analysis()
    request = registry.requests[0]
    assert "4625 logon failure" in request["prompt"]
    assert request["response_schema"] == AnalysisResult.model_json_schema()


@pytest.mark.asyncio
async def test_malformed_json_is_a_hard_failure():
    oracle = EnrichmentOracle(FakeRegistry('{"summary": "cut off'))

    with pytest.raises(OracleResponseError):
        await oracle.analyze_event("log")


@pytest.mark.asyncio
async def test_wrong_shape_is_a_hard_failure():
    oracle = EnrichmentOracle(FakeRegistry(json.dumps({"steps": [{"step": "one"}]})))

    with pytest.raises(OracleError):
        await oracle.suggest_next_steps("context")


@pytest.mark.asyncio
async def test_provider_failure_propagates():
    oracle = EnrichmentOracle(FakeRegistry(error=LLMProviderError("All providers failed")))

    with pytest.raises(OracleError):
        await oracle.summarize_case("context")


@pytest.mark.asyncio
async def test_suggest_next_steps_unwraps_steps():
    oracle = EnrichmentOracle(FakeRegistry(json.dumps({"steps": [
        {"step": 1, "action": "Correlate", "details": "Check firewall logs"},
    ]})))

    steps = await oracle.suggest_next_steps("context")

    assert [s.action for s in steps] == ["Correlate"]


@pytest.mark.asyncio
async def test_split_returns_classified_chunks():
    oracle = EnrichmentOracle(FakeRegistry(json.dumps({"chunks": [
        {"phase": "Delivery", "title": "Email", "summary": "Phishing"},
        {"phase": "Command and Control", "title": "Beacon", "summary": "HTTPS beacon"},
    ]})))

    chunks = await oracle.split_and_classify("notes")

    assert [c.phase for c in chunks] == [KillChainPhase.DELIVERY, KillChainPhase.COMMAND_AND_CONTROL]


@pytest.mark.asyncio
async def test_empty_phase_is_answered_locally():
    registry = FakeRegistry()

    assert await EnrichmentOracle(registry).summarize_phase([]) == EMPTY_PHASE_SUMMARY
    assert registry.requests == []


@pytest.mark.asyncio
async def test_phase_summary_is_free_text():
    registry = FakeRegistry("- Phishing email delivered\n")

    summary = await EnrichmentOracle(registry).summarize_phase([evidence("phishing email")])

    assert summary == "- Phishing email delivered\n"
    assert "phishing email" in registry.requests[0]["prompt"]
    assert registry.requests[0].get("response_schema") is None


@pytest.mark.asyncio
async def test_extract_iocs_tags_phases():
    registry = FakeRegistry(json.dumps({"iocs": [
        {"type": "IP Address", "value": "10.0.0.5", "kill_chain_phase": "Command and Control"},
    ]}))

    iocs = await EnrichmentOracle(registry).extract_iocs([
        evidence("beacon to 10.0.0.5", KillChainPhase.COMMAND_AND_CONTROL),
    ])

    assert iocs[0].type == IocType.IP_ADDRESS
    assert iocs[0].kill_chain_phase == KillChainPhase.COMMAND_AND_CONTROL
    assert "(Phase: Command and Control)" in registry.requests[0]["prompt"]


@pytest.mark.asyncio
async def test_extract_iocs_without_evidence_skips_call():
    registry = FakeRegistry()
    index = evidence("- summary", artifact_type=ArtifactType.CASE_INDEX)

    assert await EnrichmentOracle(registry).extract_iocs([index]) == []
    assert registry.requests == []


@pytest.mark.asyncio
async def test_chat_prompt_carries_context_and_message():
    registry = FakeRegistry("Reply")

    assert await EnrichmentOracle(registry).chat("Who is 10.0.0.5?", '{"name": "Case"}') == "Reply"
    prompt = registry.requests[0]["prompt"]
    assert '{"name": "Case"}' in prompt
    assert 'User Message: "Who is 10.0.0.5?"' in prompt


@pytest.mark.asyncio
async def test_user_agent_analysis():
    registry = FakeRegistry(json.dumps({"analyses": [
        {"user_agent": "sqlmap/1.7", "summary": "Known attack tool", "risk_level": "High"},
    ]}))

    analyses = await EnrichmentOracle(registry).analyze_user_agents([
        {"user_agent": "sqlmap/1.7", "parsed": {"is_bot": True}},
    ])

    assert analyses[0].risk_level == Severity.HIGH
    assert 'User-Agent: "sqlmap/1.7"' in registry.requests[0]["prompt"]
