"""Common helpers shared by the case models.

- generate_id(): process-unique identifiers with a readable prefix
- utc_now(): timezone-aware "now"
"""

from datetime import datetime, timezone
from uuid import uuid4


def generate_id(prefix: str) -> str:
    """Generate a unique identifier such as ``art_3f2a9c1d0b7e``.

    Identifiers are never reused within a process lifetime; 48 random bits
    keep collisions out of reach for a single analyst workspace.
    """
    return f"{prefix}_{uuid4().hex[:12]}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
