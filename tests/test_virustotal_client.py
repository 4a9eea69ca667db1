import httpx
import pytest

from sentinel_core_lib.clients import UserAgentClient, VirusTotalClient
from sentinel_core_lib.clients.virustotal_client import (
    AUTH_FAILED_MESSAGE,
    NOT_FOUND_MESSAGE,
    RATE_LIMIT_MESSAGE,
    url_identifier,
)
from sentinel_core_lib.config import ThreatIntelSettings
from sentinel_core_lib.exceptions import ThreatIntelLookupError
from sentinel_core_lib.models import ScanType


def vt_client(handler) -> VirusTotalClient:
    return VirusTotalClient(api_key="vt-key", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_report_paths_and_api_key_header():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, request.headers["x-apikey"]))
        return httpx.Response(200, json={"data": {"id": "x", "attributes": {"reputation": 0}}})

    client = vt_client(handler)
    await client.get_report(ScanType.DOMAIN, "evil.example")
    await client.get_report(ScanType.HASH, "44d88612fea8a8f36de82e1278abb02f")
    await client.get_report(ScanType.IP, "203.0.113.7")
    report = await client.get_report("url", "http://evil.example/a?b=c")

    assert report == {"id": "x", "attributes": {"reputation": 0}}
    assert seen == [
        ("/api/v3/domains/evil.example", "vt-key"),
        ("/api/v3/files/44d88612fea8a8f36de82e1278abb02f", "vt-key"),
        ("/api/v3/ip_addresses/203.0.113.7", "vt-key"),
        (f"/api/v3/urls/{url_identifier('http://evil.example/a?b=c')}", "vt-key"),
    ]


def test_url_identifier_has_no_padding():
    assert url_identifier("http://a.b/") == "aHR0cDovL2EuYi8"


@pytest.mark.asyncio
@pytest.mark.parametrize("status, message", [
    (404, NOT_FOUND_MESSAGE),
    (429, RATE_LIMIT_MESSAGE),
    (401, AUTH_FAILED_MESSAGE),
])
async def test_known_statuses_map_to_messages(status, message):
    client = vt_client(lambda request: httpx.Response(status, json={"error": {"message": "ignored"}}))

    with pytest.raises(ThreatIntelLookupError) as excinfo:
        await client.get_ip_report("1.1.1.1")

    assert str(excinfo.value) == message
    assert excinfo.value.status_code == status


@pytest.mark.asyncio
async def test_other_errors_prefer_api_message():
    client = vt_client(lambda request: httpx.Response(400, json={"error": {"message": "Bad IP"}}))

    with pytest.raises(ThreatIntelLookupError, match="Bad IP"):
        await client.get_ip_report("not-an-ip")


@pytest.mark.asyncio
async def test_other_errors_without_body_use_status_message():
    client = vt_client(lambda request: httpx.Response(503, text="unavailable"))

    with pytest.raises(ThreatIntelLookupError) as excinfo:
        await client.get_ip_report("1.1.1.1")

    assert str(excinfo.value) == "API returned status 503. Please check the item and your key."


@pytest.mark.asyncio
async def test_network_failure_is_a_lookup_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ThreatIntelLookupError, match="Network error"):
        await vt_client(handler).get_domain_report("evil.example")


def test_from_settings_requires_key(monkeypatch):
    monkeypatch.delenv("VIRUSTOTAL_API_KEY", raising=False)

    with pytest.raises(ValueError):
        VirusTotalClient.from_settings(ThreatIntelSettings(_env_file=None))

    client = VirusTotalClient.from_settings(ThreatIntelSettings(
        _env_file=None, virustotal_api_key="k", virustotal_base_url="https://vt.test/api/v3/",
    ))
    assert client.base_url == "https://vt.test/api/v3"


# ============================================================
# User-Agent parser
# ============================================================

@pytest.mark.asyncio
async def test_user_agent_is_url_encoded():
    paths = []

    def handler(request):
        paths.append(request.url.raw_path.decode())
        return httpx.Response(200, json={"browser": "curl", "is_bot": True})

    client = UserAgentClient(base_url="https://ua.test/api/v1/ua", transport=httpx.MockTransport(handler))

    assert await client.parse("curl/8.0 (x)") == {"browser": "curl", "is_bot": True}
    assert paths[0].startswith("/api/v1/ua/curl%2F8.0")


@pytest.mark.asyncio
async def test_user_agent_parser_errors():
    client = UserAgentClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))

    with pytest.raises(ThreatIntelLookupError, match="User-Agent parser returned status 500."):
        await client.parse("Mozilla/5.0")
