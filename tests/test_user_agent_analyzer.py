import httpx
import pytest

from sentinel_core_lib.clients import UserAgentClient
from sentinel_core_lib.models import Severity, UserAgentSecurityAnalysis
from sentinel_core_lib.tools import (
    PARSE_ERROR_MESSAGE,
    SECURITY_ERROR_MESSAGE,
    UserAgentAnalyzer,
    parse_user_agents,
)

GOOD_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"
BAD_UA = "broken-agent"


def parser_handler(request: httpx.Request) -> httpx.Response:
    if "broken" in str(request.url):
        return httpx.Response(400, json={"message": "Unparseable"})
    return httpx.Response(200, json={"browser": "Chrome", "is_outdated": True, "is_bot": False})


@pytest.fixture
def analyzer(oracle):
    client = UserAgentClient(base_url="https://ua.test", transport=httpx.MockTransport(parser_handler))
    return UserAgentAnalyzer(client, oracle)


def test_parse_user_agents_drops_blanks_and_duplicates():
    assert parse_user_agents(f"{GOOD_UA}\n\n  {GOOD_UA}  \ncurl/8.0\n") == [GOOD_UA, "curl/8.0"]


@pytest.mark.asyncio
async def test_parsed_agents_get_security_verdicts(analyzer, oracle):
    (result,) = await analyzer.analyze_text(GOOD_UA)

    assert result.parsed["browser"] == "Chrome"
    assert result.security.risk_level == Severity.LOW
    assert result.security_flags == ["outdated"]
    assert result.parse_error is None and result.security_error is None
    (items,) = oracle.calls["analyze_user_agents"][0]
    assert items == [{"user_agent": GOOD_UA, "parsed": result.parsed}]


@pytest.mark.asyncio
async def test_parse_failures_are_kept_per_row(analyzer, oracle):
    results = await analyzer.analyze([BAD_UA, GOOD_UA])

    assert [r.user_agent for r in results] == [BAD_UA, GOOD_UA]
    assert results[0].parse_error == PARSE_ERROR_MESSAGE
    assert results[0].security is None and results[0].security_error is None
    assert results[1].security is not None
    (items,) = oracle.calls["analyze_user_agents"][0]
    assert [item["user_agent"] for item in items] == [GOOD_UA]


@pytest.mark.asyncio
async def test_nothing_parsed_skips_the_oracle(analyzer, oracle):
    (result,) = await analyzer.analyze([BAD_UA])

    assert result.parse_error == PARSE_ERROR_MESSAGE
    assert oracle.calls["analyze_user_agents"] == []


@pytest.mark.asyncio
async def test_failed_assessment_marks_every_row(analyzer, oracle, oracle_failure):
    oracle.failures["analyze_user_agents"] = oracle_failure

    results = await analyzer.analyze([GOOD_UA, BAD_UA])

    assert [r.security_error for r in results] == [SECURITY_ERROR_MESSAGE, SECURITY_ERROR_MESSAGE]
    assert results[0].parsed is not None


@pytest.mark.asyncio
async def test_agent_missing_from_assessment_gets_error(analyzer, oracle):
    oracle.ua_analyses = [UserAgentSecurityAnalysis(user_agent="other", summary="?", risk_level="Low")]

    (result,) = await analyzer.analyze([GOOD_UA])

    assert result.security is None
    assert result.security_error == SECURITY_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_empty_input(analyzer):
    assert await analyzer.analyze_text("\n \n") == []
