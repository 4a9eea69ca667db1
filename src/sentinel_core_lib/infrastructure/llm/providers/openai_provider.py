"""
OpenAI provider implementation.

This module implements the OpenAI-compatible chat completions provider
(also used for OpenRouter and self-hosted compatible endpoints).
"""

from typing import Any, Dict, Optional

import aiohttp

from sentinel_core_lib.exceptions import LLMProviderError
from .base import BaseLLMProvider, LLMResponse


class OpenAIProvider(BaseLLMProvider):
    """OpenAI LLM provider implementation"""

    @property
    def provider_name(self) -> str:
        return self.config.name or "openai"

    def is_available(self) -> bool:
        """Check if OpenAI provider is properly configured"""
        return bool(
            self.config.api_key and
            self.config.base_url and
            self.config.models
        )

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.4,
        response_schema: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> LLMResponse:
        """Generate response using the chat completions API

        Args:
            prompt: Input prompt
            model: Specific model to use
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            response_schema: JSON Schema for structured output (json_schema response format)
            **kwargs: Additional OpenAI-specific parameters
        """
        start_time = self._start_timing()
        effective_model = self.get_effective_model(model)

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        payload: Dict[str, Any] = {
            "model": effective_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        if response_schema is not None:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": response_schema.get("title", "response"),
                    "schema": response_schema,
                },
            }

        payload.update(kwargs)

        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self.config.base_url.rstrip('/')}/chat/completions",
                headers=headers,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:

                if response.status != 200:
                    error_text = await response.text()
                    raise LLMProviderError(
                        f"OpenAI API error {response.status}: {error_text}",
                        context={"status": response.status, "model": effective_model},
                    )

                data = await response.json()

        if not data.get("choices"):
            raise LLMProviderError("OpenAI API returned no choices")

        choice = data["choices"][0]
        content = self._validate_response_content(choice["message"].get("content"))
        finish_reason = choice.get("finish_reason")

        confidence = self.config.confidence_score
        if finish_reason == "length":
            confidence *= 0.6

        return LLMResponse(
            content=content,
            confidence=confidence,
            provider=self.provider_name,
            model=effective_model,
            tokens_used=data.get("usage", {}).get("total_tokens", 0),
            response_time_ms=self._get_response_time_ms(start_time),
            finish_reason=finish_reason,
        )
