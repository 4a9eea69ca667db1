"""Unified settings for the Sentinel core library.

Configuration is read from environment variables and an optional .env file.
Environment variable names follow the provider conventions used across the
deployment (GEMINI_API_KEY, CHAT_PROVIDER, REDIS_HOST, ...), so existing
.env files keep working.

Example:
    ```python
    settings = get_settings()
    settings.llm.provider            # "gemini"
    settings.redis.host              # "localhost"
    settings.threat_intel.virustotal_api_key.get_secret_value()
    ```
"""

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    case_sensitive=False,
    extra="ignore",
    populate_by_name=True,
)


class LLMSettings(BaseSettings):
    """LLM provider selection and credentials"""

    model_config = _ENV_CONFIG

    provider: str = Field(
        default="gemini",
        validation_alias=AliasChoices("CHAT_PROVIDER", "provider"),
        description="Primary provider name (see PROVIDER_SCHEMA)",
    )

    gemini_api_key: Optional[SecretStr] = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_model: Optional[str] = Field(default=None, validation_alias="GEMINI_MODEL")
    gemini_base_url: Optional[str] = Field(default=None, validation_alias="GEMINI_API_BASE")

    openai_api_key: Optional[SecretStr] = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_model: Optional[str] = Field(default=None, validation_alias="OPENAI_MODEL")
    openai_base_url: Optional[str] = Field(default=None, validation_alias="OPENAI_API_BASE")

    request_timeout: int = Field(
        default=60,
        validation_alias="LLM_REQUEST_TIMEOUT",
        description="Per-request timeout in seconds",
    )
    max_retries: int = Field(default=1, validation_alias="LLM_MAX_RETRIES")

    strict_provider_mode: bool = Field(
        default=False,
        validation_alias="STRICT_PROVIDER_MODE",
        description="Use only the primary provider, never fall back",
    )


class RedisSettings(BaseSettings):
    """Redis connection for the persistence blob store"""

    model_config = SettingsConfigDict(**_ENV_CONFIG, env_prefix="REDIS_")

    mode: str = "standalone"
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    sentinel_hosts: Optional[str] = None
    master_set: str = "mymaster"


class ThreatIntelSettings(BaseSettings):
    """Third-party reputation and User-Agent parsing services"""

    model_config = _ENV_CONFIG

    virustotal_api_key: Optional[SecretStr] = Field(default=None, validation_alias="VIRUSTOTAL_API_KEY")
    virustotal_base_url: str = Field(
        default="https://www.virustotal.com/api/v3",
        validation_alias="VIRUSTOTAL_API_BASE",
    )
    user_agent_api_url: str = Field(
        default="https://evil-ua.com/api/v1/ua",
        validation_alias="USER_AGENT_API_URL",
    )
    request_timeout: float = Field(default=30.0, validation_alias="THREAT_INTEL_TIMEOUT")


class Settings(BaseSettings):
    """Top-level settings container"""

    model_config = _ENV_CONFIG

    llm: LLMSettings = Field(default_factory=LLMSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    threat_intel: ThreatIntelSettings = Field(default_factory=ThreatIntelSettings)

    persistence_key: str = Field(
        default="cyberSentinelCases",
        validation_alias="PERSISTENCE_KEY",
        description="Blob store key holding the serialized case collection",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process"""
    load_dotenv()
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings (mainly for testing)"""
    get_settings.cache_clear()
