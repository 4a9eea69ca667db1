"""
Google Gemini provider implementation.

This module implements the Google Gemini LLM provider over the
generateContent REST endpoint, including JSON mode via responseJsonSchema.
"""

import logging
from typing import Any, Dict, Optional

import aiohttp

from sentinel_core_lib.exceptions import LLMProviderError
from .base import BaseLLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class GeminiProvider(BaseLLMProvider):
    """Google Gemini LLM provider implementation"""

    @property
    def provider_name(self) -> str:
        return "gemini"

    def is_available(self) -> bool:
        """Check if Gemini provider is properly configured"""
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
        """
        Generate text using Google Gemini API

        Args:
            prompt: Input prompt for text generation
            model: Specific Gemini model to use
            max_tokens: Maximum tokens to generate (mapped to maxOutputTokens)
            temperature: Sampling temperature (0.0-2.0)
            response_schema: JSON Schema for structured output
            **kwargs: Additional parameters (top_p, top_k, stop_sequences)

        Returns:
            LLMResponse with generated text
        """
        start_time = self._start_timing()
        selected_model = self.get_effective_model(model)

        generation_config: Dict[str, Any] = {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        }
        if "top_p" in kwargs:
            generation_config["topP"] = kwargs["top_p"]
        if "top_k" in kwargs:
            generation_config["topK"] = kwargs["top_k"]
        if "stop_sequences" in kwargs:
            generation_config["stopSequences"] = kwargs["stop_sequences"]

        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseJsonSchema"] = response_schema

        request_body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

        url = f"{self.config.base_url.rstrip('/')}/models/{selected_model}:generateContent"
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.config.api_key,
        }

        async with aiohttp.ClientSession() as session:
            async with session.post(
                url,
                headers=headers,
                json=request_body,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout)
            ) as response:

                if response.status != 200:
                    error_text = await response.text()
                    raise LLMProviderError(
                        f"Gemini API request failed: {response.status} - {error_text}",
                        context={"status": response.status, "model": selected_model},
                    )

                response_data = await response.json()

        content, finish_reason = self._extract_text(response_data)
        tokens_used = response_data.get("usageMetadata", {}).get("candidatesTokenCount", 0)

        if not content and finish_reason in ("SAFETY", "BLOCKED_REASON_UNSPECIFIED"):
            raise LLMProviderError(
                "Gemini blocked the response (safety filters)",
                context={"finish_reason": finish_reason},
            )

        return LLMResponse(
            content=self._validate_response_content(content),
            confidence=self._calculate_confidence(content, finish_reason),
            provider=self.provider_name,
            model=selected_model,
            tokens_used=tokens_used,
            response_time_ms=self._get_response_time_ms(start_time),
            finish_reason=finish_reason,
        )

    @staticmethod
    def _extract_text(response_data: Dict[str, Any]):
        """Concatenate text parts of the first candidate"""
        candidates = response_data.get("candidates") or []
        if not candidates:
            return "", None

        candidate = candidates[0]
        content = ""
        for part in candidate.get("content", {}).get("parts", []):
            if "text" in part:
                content += part["text"]
        return content, candidate.get("finishReason")

    def _calculate_confidence(self, content: str, finish_reason: Optional[str]) -> float:
        """
        Calculate confidence score for Gemini response

        Natural completion keeps the configured score; truncated or
        filtered completions are discounted.
        """
        confidence = self.config.confidence_score

        if finish_reason == "MAX_TOKENS":
            confidence *= 0.6
        elif finish_reason in ("SAFETY", "RECITATION", "OTHER"):
            confidence *= 0.4

        if len(content.strip()) < 20:
            confidence *= 0.8

        return min(1.0, max(0.0, confidence))
