"""Event publishing — Redis pub/sub when available, local hub otherwise.

Learn: Redis pub/sub is fire-and-forget. If no one is listening, the message
is lost. That's fine for real-time UI updates (the dashboard can always
query the API to catch up).

With Redis configured, every API instance publishes to
procmon:events:{room} and runs one relay task that pattern-subscribes
to procmon:events:* and feeds its own EventHub. That way a retry handled
by instance A reaches sockets connected to instance B. Without Redis
(or if it was unreachable at startup) events go straight into the hub,
and the same happens while the relay is resubscribing after a dropped
connection.
"""

import asyncio
import json
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from procmon.config import settings
from procmon.events.types import DASHBOARD_ROOM
from procmon.realtime.hub import hub

logger = structlog.get_logger()

CHANNEL_PREFIX = "procmon:events:"
RELAY_RETRY_SECONDS = 2.0

# Global Redis connection pool and relay task (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None
_relay_task: Optional[asyncio.Task] = None
_relay_subscribed = False


async def init_redis() -> aioredis.Redis:
    """Initialize the Redis connection pool and start the relay."""
    global _redis, _relay_task
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Verify connection
    try:
        await client.ping()
    except RedisError:
        await client.aclose()
        raise

    _redis = client
    _relay_task = asyncio.create_task(_relay())
    return _redis


async def close_redis() -> None:
    """Stop the relay and close the Redis connection pool."""
    global _redis, _relay_task
    if _relay_task:
        _relay_task.cancel()
        try:
            await _relay_task
        except asyncio.CancelledError:
            pass
        _relay_task = None
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


def encode_event(event: str, data: dict[str, Any]) -> str:
    """The JSON envelope every socket client receives."""
    return json.dumps({"event": event, "data": data}, default=str)


async def publish_event(
    event: str,
    data: dict[str, Any],
    room: str = DASHBOARD_ROOM,
) -> None:
    """Publish an event to a room.

    Learn: Services call this after mutating the store. `data` must be
    JSON-ready (use model_dump(mode="json", by_alias=True) for models).
    A Redis failure falls back to local delivery rather than failing
    the request that triggered the event.
    """
    payload = encode_event(event, data)
    if _redis is not None:
        try:
            await _redis.publish(f"{CHANNEL_PREFIX}{room}", payload)
        except RedisError as e:
            logger.warning("pubsub.publish_failed", error=str(e), event=event)
        else:
            if relay_alive():
                return
    hub.broadcast(room, payload)


def relay_alive() -> bool:
    """True while the relay is subscribed and feeding the local hub."""
    return _relay_subscribed and _relay_task is not None and not _relay_task.done()


async def _relay() -> None:
    """Forward Redis messages for every room into the local hub.

    Learn: A dropped connection must not silence this instance's sockets.
    While the subscription is down, relay_alive() is False and
    publish_event() also delivers locally; the relay resubscribes after
    RELAY_RETRY_SECONDS.
    """
    global _relay_subscribed
    while True:
        pubsub = get_redis().pubsub()
        try:
            await pubsub.psubscribe(f"{CHANNEL_PREFIX}*")
            _relay_subscribed = True
            logger.info("pubsub.relay_subscribed")
            async for message in pubsub.listen():
                if message["type"] != "pmessage":
                    continue
                room = message["channel"][len(CHANNEL_PREFIX):]
                hub.broadcast(room, message["data"])
        except RedisError as e:
            logger.warning("pubsub.relay_disconnected", error=str(e))
        finally:
            _relay_subscribed = False
            await pubsub.aclose()
        await asyncio.sleep(RELAY_RETRY_SECONDS)
