"""Case persistence boundary.

The whole case collection is stored as one JSON document under a single key
of a key-value blob store. Loading never fails the caller: a missing,
unreadable or corrupt document yields an empty collection. Saving never
raises either; failures are logged and the in-memory state stays
authoritative.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from sentinel_core_lib.exceptions import PersistenceError
from sentinel_core_lib.models import Case

logger = logging.getLogger(__name__)

_CASE_LIST = TypeAdapter(List[Case])


class BlobStore(ABC):
    """Minimal key-value store for string documents"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the document stored under key, or None"""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous document"""


class InMemoryBlobStore(BlobStore):
    """Process-local blob store (tests, ephemeral workspaces)"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


class RedisBlobStore(BlobStore):
    """Blob store backed by a Redis string key"""

    def __init__(self, client: Redis):
        self.client = client

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.client.get(key)
            if isinstance(value, bytes):
                value = value.decode("utf-8")
        except RedisError as e:
            raise PersistenceError(f"Redis GET {key} failed: {e}", context={"key": key}) from e
        except UnicodeDecodeError as e:
            raise PersistenceError(f"Redis GET {key} returned non UTF-8 data: {e}", context={"key": key}) from e
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self.client.set(key, value)
        except RedisError as e:
            raise PersistenceError(f"Redis SET {key} failed: {e}", context={"key": key}) from e

    async def close(self) -> None:
        await self.client.aclose()


class CaseRepository:
    """Loads and saves the case collection as one JSON document"""

    def __init__(self, blob_store: BlobStore, key: str = "cyberSentinelCases"):
        self.blob_store = blob_store
        self.key = key

    async def load(self) -> List[Case]:
        """Read the collection; any failure degrades to an empty list"""
        try:
            raw = await self.blob_store.get(self.key)
        except PersistenceError as e:
            logger.error(f"Failed to load cases from '{self.key}': {e}")
            return []

        if not raw:
            return []

        try:
            cases = _CASE_LIST.validate_json(raw)
        except ValidationError as e:
            logger.error(
                f"Failed to parse cases from '{self.key}' ({e.error_count()} error(s)); starting empty"
            )
            return []

        logger.info(f"Loaded {len(cases)} case(s) from '{self.key}'")
        return cases

    async def save(self, cases: Sequence[Case]) -> bool:
        """Write the collection. Returns False (after logging) on failure."""
        document = _CASE_LIST.dump_json(list(cases)).decode("utf-8")
        try:
            await self.blob_store.set(self.key, document)
        except PersistenceError as e:
            logger.error(f"Failed to save {len(cases)} case(s) to '{self.key}': {e}")
            return False
        logger.debug(f"Saved {len(cases)} case(s) to '{self.key}'")
        return True
