"""HTTP clients for third-party threat intelligence services."""

from sentinel_core_lib.clients.base import BaseServiceClient
from sentinel_core_lib.clients.user_agent_client import UserAgentClient
from sentinel_core_lib.clients.virustotal_client import (
    AUTH_FAILED_MESSAGE,
    NOT_FOUND_MESSAGE,
    RATE_LIMIT_MESSAGE,
    VirusTotalClient,
    url_identifier,
)

__all__ = [
    "BaseServiceClient",
    "UserAgentClient",
    "VirusTotalClient",
    "url_identifier",
    "AUTH_FAILED_MESSAGE",
    "NOT_FOUND_MESSAGE",
    "RATE_LIMIT_MESSAGE",
]
