"""
Base provider interface for LLM providers.

This module defines the abstract base class that all LLM providers must implement,
ensuring consistent behavior and configuration across all provider implementations.

Structured output: callers pass ``response_schema`` (a JSON Schema dict) to
``generate()``; providers translate it into their native JSON mode and must
return the raw JSON text as ``content``.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sentinel_core_lib.exceptions import LLMProviderError


@dataclass
class LLMResponse:
    """Response from LLM provider"""

    content: str
    confidence: float
    provider: str
    model: str
    tokens_used: int
    response_time_ms: int
    finish_reason: Optional[str] = None


@dataclass
class ProviderConfig:
    """Configuration for an LLM provider"""

    name: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    models: List[str] = field(default_factory=list)
    max_retries: int = 1
    timeout: int = 60
    default_model: Optional[str] = None
    confidence_score: float = 0.8

    def __post_init__(self):
        if self.default_model is None and self.models:
            self.default_model = self.models[0]


class BaseLLMProvider(ABC):
    """Abstract base class for all LLM providers"""

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the unique name of this provider"""
        pass

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.4,
        response_schema: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a response using this provider

        Args:
            prompt: Input prompt
            model: Specific model to use (optional)
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            response_schema: JSON Schema the answer must follow (enables JSON mode)
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with generated content

        Raises:
            LLMProviderError: On HTTP failure or empty content
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is properly configured and available"""
        pass

    def get_supported_models(self) -> List[str]:
        """Get list of models supported by this provider"""
        return self.config.models.copy()

    def _start_timing(self) -> float:
        """Start timestamp for one call; kept by the caller, not the provider"""
        return time.monotonic()

    def _get_response_time_ms(self, start_time: float) -> int:
        """Milliseconds elapsed since start_time"""
        return int((time.monotonic() - start_time) * 1000)

    def _validate_response_content(self, content: Optional[str]) -> str:
        """Validate and clean response content"""
        if content is None:
            raise LLMProviderError(f"{self.provider_name} returned None content")

        content = content.strip()
        if not content:
            raise LLMProviderError(f"{self.provider_name} returned empty content")

        return content

    def get_effective_model(self, requested_model: Optional[str] = None) -> str:
        """Get the model to use, with fallback logic"""
        if requested_model and requested_model in self.config.models:
            return requested_model

        if self.config.default_model:
            return self.config.default_model

        if self.config.models:
            return self.config.models[0]

        raise LLMProviderError(f"No valid model available for provider {self.provider_name}")
