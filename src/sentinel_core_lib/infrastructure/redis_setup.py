"""Redis Connection Factory with Sentinel Support

Provides the Redis connection behind the case persistence blob store:
- Standalone Redis (development/self-hosted)
- Redis Sentinel (HA deployments)

Connection parameters come from RedisSettings (REDIS_* environment variables).
"""

import logging
from typing import List, Optional, Tuple

from redis.asyncio import Redis
from redis.asyncio.sentinel import Sentinel

from sentinel_core_lib.config import RedisSettings, get_settings
from sentinel_core_lib.utils import service_startup_retry

logger = logging.getLogger(__name__)


def parse_sentinel_hosts(hosts_str: str) -> List[Tuple[str, int]]:
    """Parse comma-separated sentinel host:port string.

    Example:
        >>> parse_sentinel_hosts("sentinel1:26379,sentinel2")
        [('sentinel1', 26379), ('sentinel2', 26379)]
    """
    sentinels = []

    for host_port in hosts_str.split(","):
        host_port = host_port.strip()
        if not host_port:
            continue

        if ":" in host_port:
            host, port_str = host_port.rsplit(":", 1)
            sentinels.append((host, int(port_str)))
        else:
            # Default Sentinel port
            sentinels.append((host_port, 26379))

    return sentinels


@service_startup_retry
async def _verify_redis_connection(client: Redis) -> None:
    """Ping Redis, retrying while the server comes up"""
    await client.ping()
    logger.info("Redis connection verified")


async def get_redis_client(
    settings: Optional[RedisSettings] = None,
    decode_responses: bool = True,
    health_check_interval: int = 30,
) -> Redis:
    """Get Redis client with automatic Sentinel/Standalone selection.

    Args:
        settings: Redis settings (defaults to get_settings().redis)
        decode_responses: Decode responses to strings
        health_check_interval: Health check interval in seconds

    Returns:
        Async Redis client (either standalone or Sentinel-managed)

    Raises:
        ValueError: If Sentinel mode is configured but no sentinel hosts are set
        ConnectionError: If Redis connection fails after retries
    """
    settings = settings or get_settings().redis
    mode = settings.mode.lower()

    logger.info(f"Initializing Redis client in {mode} mode")

    if mode == "sentinel":
        if not settings.sentinel_hosts:
            raise ValueError("REDIS_SENTINEL_HOSTS is required for Sentinel mode")

        sentinels = parse_sentinel_hosts(settings.sentinel_hosts)
        if not sentinels:
            raise ValueError(f"No valid sentinel hosts found in: {settings.sentinel_hosts}")

        logger.info(
            f"Connecting to Redis Sentinel: master={settings.master_set}, sentinels={sentinels}"
        )

        sentinel_client = Sentinel(
            sentinels,
            sentinel_kwargs={"password": settings.password} if settings.password else {},
            health_check_interval=health_check_interval,
        )
        redis_client = sentinel_client.master_for(
            settings.master_set,
            db=settings.db,
            password=settings.password,
            decode_responses=decode_responses,
            health_check_interval=health_check_interval,
        )
    else:
        logger.info(f"Connecting to standalone Redis: {settings.host}:{settings.port}/{settings.db}")

        redis_client = Redis(
            host=settings.host,
            port=settings.port,
            db=settings.db,
            password=settings.password,
            decode_responses=decode_responses,
            health_check_interval=health_check_interval,
            socket_connect_timeout=5,
        )

    await _verify_redis_connection(redis_client)
    return redis_client
