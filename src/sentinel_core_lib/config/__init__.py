"""Configuration"""

from sentinel_core_lib.config.settings import (
    LLMSettings,
    RedisSettings,
    Settings,
    ThreatIntelSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "LLMSettings",
    "RedisSettings",
    "Settings",
    "ThreatIntelSettings",
    "get_settings",
    "reset_settings",
]
