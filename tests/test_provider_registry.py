from unittest.mock import patch

import pytest

from sentinel_core_lib.config import LLMSettings, Settings
from sentinel_core_lib.exceptions import LLMProviderError
from sentinel_core_lib.infrastructure.llm.providers import (
    BaseLLMProvider,
    GeminiProvider,
    LLMResponse,
    OpenAIProvider,
    ProviderConfig,
    ProviderRegistry,
    get_valid_provider_names,
)
from sentinel_core_lib.utils import is_transient_provider_error

LLM_ENV_VARS = [
    "CHAT_PROVIDER", "GEMINI_API_KEY", "GEMINI_MODEL", "GEMINI_API_BASE",
    "OPENAI_API_KEY", "OPENAI_MODEL", "OPENAI_API_BASE", "STRICT_PROVIDER_MODE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in LLM_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_settings(**llm) -> Settings:
    return Settings(_env_file=None, llm=LLMSettings(_env_file=None, **llm))


class ScriptedProvider(BaseLLMProvider):
    """Provider that replays a fixed answer or error"""

    def __init__(self, name, content="ok", error=None, confidence=0.9):
        super().__init__(ProviderConfig(name=name, api_key="k", models=["m"]))
        self._name = name
        self.content = content
        self.error = error
        self.confidence = confidence
        self.calls = []

    @property
    def provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return True

    async def generate(self, prompt, model=None, max_tokens=4096, temperature=0.4,
                       response_schema=None, **kwargs):
        self.calls.append({"prompt": prompt, "response_schema": response_schema})
        if self.error is not None:
            raise self.error
        return LLMResponse(
            content=self.content,
            confidence=self.confidence,
            provider=self._name,
            model="m",
            tokens_used=1,
            response_time_ms=1,
        )


def test_providers_without_keys_are_skipped():
    registry = ProviderRegistry(make_settings(gemini_api_key="g-key"))

    assert registry.get_available_providers() == ["gemini"]
    assert registry.get_fallback_chain() == ["gemini"]
    assert isinstance(registry.get_provider("gemini"), GeminiProvider)


def test_primary_provider_leads_fallback_chain():
    registry = ProviderRegistry(make_settings(provider="openai", gemini_api_key="g", openai_api_key="o"))

    assert registry.get_fallback_chain() == ["openai", "gemini"]
    assert isinstance(registry.get_provider("openai"), OpenAIProvider)


def test_strict_mode_disables_fallbacks():
    registry = ProviderRegistry(make_settings(
        provider="openai", gemini_api_key="g", openai_api_key="o", strict_provider_mode=True,
    ))

    assert registry.get_fallback_chain() == ["openai"]


def test_unknown_primary_defaults_to_gemini():
    registry = ProviderRegistry(make_settings(provider="nope", gemini_api_key="g", openai_api_key="o"))

    assert registry.get_fallback_chain() == ["gemini", "openai"]


def test_default_models_and_overrides():
    registry = ProviderRegistry(make_settings(gemini_api_key="g", openai_api_key="o", openai_model="gpt-4.1"))

    status = registry.get_provider_status()
    assert status["gemini"]["models"] == ["gemini-2.5-flash"]
    assert status["openai"]["models"] == ["gpt-4.1"]
    assert get_valid_provider_names() == ["gemini", "openai"]


@pytest.mark.asyncio
async def test_falls_back_to_next_provider():
    registry = ProviderRegistry(make_settings())
    broken = ScriptedProvider("first", error=LLMProviderError("503"))
    working = ScriptedProvider("second", content="answer")
    registry.register_provider("first", broken, primary=True)
    registry.register_provider("second", working)

    response = await registry.route_request(prompt="p", response_schema={"type": "object"})

    assert response.content == "answer"
    assert working.calls == [{"prompt": "p", "response_schema": {"type": "object"}}]
    assert len(broken.calls) == 1


@pytest.mark.asyncio
async def test_all_failing_raises_provider_error():
    registry = ProviderRegistry(make_settings())
    registry.register_provider("only", ScriptedProvider("only", error=RuntimeError("boom")))

    with pytest.raises(LLMProviderError) as excinfo:
        await registry.route_request(prompt="p")

    assert "boom" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_no_providers_raises_provider_error():
    with pytest.raises(LLMProviderError):
        await ProviderRegistry(make_settings()).route_request(prompt="p")


@pytest.mark.asyncio
async def test_best_low_confidence_answer_is_returned():
    registry = ProviderRegistry(make_settings())
    registry.register_provider("low", ScriptedProvider("low", content="low", confidence=0.2))
    registry.register_provider("lower", ScriptedProvider("lower", content="lower", confidence=0.1))

    response = await registry.route_request(prompt="p", confidence_threshold=0.5)

    assert response.content == "low"


# ============================================================
# Provider helpers
# ============================================================

def test_gemini_extracts_first_candidate_text():
    content, finish = GeminiProvider._extract_text({
        "candidates": [{"content": {"parts": [{"text": "{\"a\":"}, {"text": " 1}"}]}, "finishReason": "STOP"}],
    })

    assert (content, finish) == ('{"a": 1}', "STOP")
    assert GeminiProvider._extract_text({}) == ("", None)


def test_truncated_answers_lose_confidence():
    provider = GeminiProvider(ProviderConfig(name="gemini", api_key="k", base_url="u", models=["m"],
                                             confidence_score=0.85))
    complete = provider._calculate_confidence("x" * 40, "STOP")
    truncated = provider._calculate_confidence("x" * 40, "MAX_TOKENS")

    assert complete == pytest.approx(0.85)
    assert truncated < complete


def test_empty_content_is_a_provider_error():
    provider = ScriptedProvider("p")

    with pytest.raises(LLMProviderError):
        provider._validate_response_content("   ")
    assert provider._validate_response_content(" text ") == "text"


# ============================================================
# Transient failures
# ============================================================

class FlakyProvider(ScriptedProvider):
    """Fails with the queued errors before answering"""

    def __init__(self, name, errors):
        super().__init__(name, content="recovered")
        self.errors = list(errors)

    async def generate(self, prompt, **kwargs):
        if self.errors:
            self.calls.append({"prompt": prompt})
            raise self.errors.pop(0)
        return await super().generate(prompt, **kwargs)


def test_transient_error_classification():
    assert is_transient_provider_error(LLMProviderError("slow down", context={"status": 429}))
    assert is_transient_provider_error(LLMProviderError("down", context={"status": 503}))
    assert not is_transient_provider_error(LLMProviderError("bad key", context={"status": 401}))
    assert not is_transient_provider_error(LLMProviderError("empty content"))
    assert not is_transient_provider_error(ValueError("bug"))


@pytest.mark.asyncio
async def test_rate_limited_provider_is_retried_before_falling_back():
    registry = ProviderRegistry(make_settings())
    flaky = FlakyProvider("flaky", [LLMProviderError("slow down", context={"status": 429})])
    backup = ScriptedProvider("backup", content="backup")
    registry.register_provider("flaky", flaky, primary=True)
    registry.register_provider("backup", backup)

    response = await registry.route_request(prompt="p")

    assert response.content == "recovered"
    assert len(flaky.calls) == 2
    assert backup.calls == []


@pytest.mark.asyncio
async def test_permanent_error_is_not_retried():
    registry = ProviderRegistry(make_settings())
    flaky = FlakyProvider("flaky", [LLMProviderError("bad key", context={"status": 401})])
    registry.register_provider("flaky", flaky)

    with pytest.raises(LLMProviderError):
        await registry.route_request(prompt="p")

    assert len(flaky.calls) == 1


def test_response_timing_is_per_call():
    provider = ScriptedProvider("timed")
    clock = "sentinel_core_lib.infrastructure.llm.providers.base.time.monotonic"

    with patch(clock, side_effect=[10.0, 10.5, 11.0, 11.25]):
        first = provider._start_timing()
        second = provider._start_timing()
        assert provider._get_response_time_ms(first) == 1000
        assert provider._get_response_time_ms(second) == 750
