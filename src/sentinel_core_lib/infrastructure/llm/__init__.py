"""LLM infrastructure: provider registry and the enrichment oracle."""

from .oracle import EMPTY_PHASE_SUMMARY, EnrichmentOracle
from .providers import (
    BaseLLMProvider,
    LLMResponse,
    ProviderConfig,
    ProviderRegistry,
    get_registry,
    reset_registry,
)

__all__ = [
    "EMPTY_PHASE_SUMMARY",
    "EnrichmentOracle",
    "BaseLLMProvider",
    "LLMResponse",
    "ProviderConfig",
    "ProviderRegistry",
    "get_registry",
    "reset_registry",
]
