"""
LLM Provider Package

This package contains the centralized provider registry and implementations
for the LLM providers backing the enrichment oracle.
"""

from .base import BaseLLMProvider, LLMResponse, ProviderConfig
from .gemini import GeminiProvider
from .openai_provider import OpenAIProvider
from .registry import (
    PROVIDER_SCHEMA,
    ProviderRegistry,
    get_registry,
    get_valid_provider_names,
    reset_registry,
)

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "ProviderConfig",
    "ProviderRegistry",
    "PROVIDER_SCHEMA",
    "get_registry",
    "get_valid_provider_names",
    "reset_registry",
    "GeminiProvider",
    "OpenAIProvider",
]
