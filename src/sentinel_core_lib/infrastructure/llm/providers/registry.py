"""
Centralized Provider Registry for LLM providers.

This module provides a central registry for managing LLM providers, their
configurations and fallback strategy. Provider credentials come from the
unified settings (``settings.llm``); PROVIDER_SCHEMA is the single source of
truth for defaults.
"""

import logging
from typing import Any, Dict, List, Optional

from sentinel_core_lib.config import Settings, get_settings
from sentinel_core_lib.exceptions import LLMProviderError
from sentinel_core_lib.utils import provider_retry

from .base import BaseLLMProvider, LLMResponse, ProviderConfig
from .gemini import GeminiProvider
from .openai_provider import OpenAIProvider


# Data-driven provider schema - single source of truth
PROVIDER_SCHEMA = {
    "gemini": {
        "settings_prefix": "gemini",
        "api_key_var": "GEMINI_API_KEY",
        "default_base_url": "https://generativelanguage.googleapis.com/v1beta",
        "default_model": "gemini-2.5-flash",
        "provider_class": GeminiProvider,
        "confidence_score": 0.85,
    },
    "openai": {
        "settings_prefix": "openai",
        "api_key_var": "OPENAI_API_KEY",
        "default_base_url": "https://api.openai.com/v1",
        "default_model": "gpt-4o",
        "provider_class": OpenAIProvider,
        "confidence_score": 0.85,
    },
}

# Order in which non-primary providers are tried
FALLBACK_ORDER = ["gemini", "openai"]


class ProviderRegistry:
    """Central registry for managing LLM providers"""

    def __init__(self, settings: Optional[Settings] = None):
        self.logger = logging.getLogger(__name__)
        self.settings = settings or get_settings()
        self._providers: Dict[str, BaseLLMProvider] = {}
        self._fallback_chain: List[str] = []
        self._initialized = False

    def _ensure_initialized(self):
        """Ensure providers are initialized before use"""
        if not self._initialized:
            self.logger.info("Lazy-initializing provider registry...")
            self._initialize_from_settings()
            self._initialized = True

    def _initialize_from_settings(self):
        """Initialize providers based on settings configuration using schema"""
        primary_provider = self.settings.llm.provider

        if primary_provider not in PROVIDER_SCHEMA:
            valid_options = list(PROVIDER_SCHEMA.keys())
            self.logger.error(
                f"Invalid CHAT_PROVIDER: '{primary_provider}'. "
                f"Valid options: {valid_options}. Defaulting to 'gemini'"
            )
            primary_provider = "gemini"

        for provider_name, schema in PROVIDER_SCHEMA.items():
            config = self._create_provider_config(provider_name, schema)
            if config:
                self._initialize_provider(provider_name, config)

        self._setup_fallback_chain(primary_provider)

    def _create_provider_config(self, provider_name: str, schema: Dict) -> Optional[ProviderConfig]:
        """Create provider configuration from schema and settings"""
        llm = self.settings.llm
        prefix = schema["settings_prefix"]

        secret = getattr(llm, f"{prefix}_api_key")
        api_key = secret.get_secret_value() if secret else None
        model = getattr(llm, f"{prefix}_model") or schema["default_model"]
        base_url = getattr(llm, f"{prefix}_base_url") or schema["default_base_url"]

        if not api_key:
            self.logger.warning(
                f"Skipping provider '{provider_name}': "
                f"API key '{schema['api_key_var']}' not found in settings"
            )
            return None

        self.logger.debug(
            f"Provider '{provider_name}' config: model={model} base_url={base_url} "
            f"timeout={llm.request_timeout}s max_retries={llm.max_retries}"
        )

        return ProviderConfig(
            name=provider_name,
            api_key=api_key,
            base_url=base_url,
            models=[model],
            max_retries=llm.max_retries,
            timeout=llm.request_timeout,
            confidence_score=schema["confidence_score"],
        )

    def _initialize_provider(self, name: str, config: ProviderConfig):
        """Initialize a single provider using schema"""
        provider = PROVIDER_SCHEMA[name]["provider_class"](config)

        if provider.is_available():
            self._providers[name] = provider
            self.logger.info(f"Provider '{name}' initialized successfully")
        else:
            self.logger.warning(f"Provider '{name}' not available (missing config)")

    def _setup_fallback_chain(self, primary_provider: str):
        """Set up the provider fallback chain"""
        chain = [primary_provider] if primary_provider in self._providers else []
        strict_mode = self.settings.llm.strict_provider_mode

        if strict_mode:
            self.logger.info(f"Strict provider mode enabled - using only '{primary_provider}', no fallbacks")
        else:
            for provider in FALLBACK_ORDER:
                if provider != primary_provider and provider in self._providers:
                    chain.append(provider)

        self._fallback_chain = chain
        if chain:
            self.logger.info(f"Provider fallback chain: {' -> '.join(chain)}")
        else:
            self.logger.warning("No LLM provider configured; enrichment calls will fail")

    def register_provider(self, name: str, provider: BaseLLMProvider, primary: bool = False):
        """Register an already-built provider instance (custom backends, tests)"""
        self._ensure_initialized()
        self._providers[name] = provider
        if name in self._fallback_chain:
            self._fallback_chain.remove(name)
        if primary:
            self._fallback_chain.insert(0, name)
        else:
            self._fallback_chain.append(name)
        self.logger.info(f"Registered custom provider: {name}")

    def get_provider(self, name: str) -> Optional[BaseLLMProvider]:
        """Get a specific provider by name"""
        self._ensure_initialized()
        return self._providers.get(name)

    def get_available_providers(self) -> List[str]:
        """Get list of available provider names"""
        self._ensure_initialized()
        return list(self._providers.keys())

    def get_fallback_chain(self) -> List[str]:
        """Get the current fallback chain"""
        self._ensure_initialized()
        return self._fallback_chain.copy()

    async def route_request(
        self,
        prompt: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.4,
        confidence_threshold: float = 0.0,
        response_schema: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Route request through the fallback chain until success

        Args:
            prompt: Input prompt
            model: Specific model to use (optional)
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            confidence_threshold: Minimum confidence threshold
            response_schema: JSON Schema for structured output
            **kwargs: Additional parameters

        Returns:
            LLMResponse from successful provider

        Raises:
            LLMProviderError: If all providers fail
        """
        self._ensure_initialized()

        last_error: Optional[Exception] = None
        best_low_confidence_response = None

        for provider_name in self._fallback_chain:
            provider = self._providers.get(provider_name)
            if not provider:
                continue

            try:
                self.logger.debug(f"Trying provider: {provider_name}")
                async for attempt in provider_retry(provider.config.max_retries):
                    with attempt:
                        response = await provider.generate(
                            prompt=prompt,
                            model=model,
                            max_tokens=max_tokens,
                            temperature=temperature,
                            response_schema=response_schema,
                            **kwargs
                        )
            except Exception as e:
                self.logger.warning(f"Provider {provider_name} failed: {e}")
                last_error = e
                continue

            if response.confidence >= confidence_threshold:
                self.logger.debug(
                    f"Success with {provider_name} (confidence: {response.confidence:.2f})"
                )
                return response

            self.logger.warning(
                f"Low confidence from {provider_name} "
                f"({response.confidence:.2f} < {confidence_threshold})"
            )
            if (
                best_low_confidence_response is None
                or response.confidence > best_low_confidence_response.confidence
            ):
                best_low_confidence_response = response

        if best_low_confidence_response:
            self.logger.info(
                f"Returning best low-confidence response "
                f"(confidence: {best_low_confidence_response.confidence:.2f})"
            )
            return best_low_confidence_response

        error_msg = f"All providers failed. Last error: {last_error}"
        self.logger.error(error_msg)
        raise LLMProviderError(
            error_msg,
            context={"fallback_chain": self._fallback_chain.copy()},
        ) from last_error

    def get_provider_status(self) -> Dict[str, Dict[str, Any]]:
        """Get status information for all providers"""
        self._ensure_initialized()
        return {
            name: {
                "available": provider.is_available(),
                "models": provider.get_supported_models(),
                "confidence_score": provider.config.confidence_score,
                "in_fallback_chain": name in self._fallback_chain,
            }
            for name, provider in self._providers.items()
        }


# Global registry instance
_registry: Optional[ProviderRegistry] = None


def get_registry(settings: Optional[Settings] = None) -> ProviderRegistry:
    """Get the global provider registry instance"""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry(settings=settings)
    return _registry


def reset_registry():
    """Reset the global registry (mainly for testing)"""
    global _registry
    _registry = None


def get_valid_provider_names() -> List[str]:
    """Get list of valid provider names for CHAT_PROVIDER"""
    return list(PROVIDER_SCHEMA.keys())
