# Real-time "newEvent" broadcast: Redis Pub/Sub fan-out, delivered to browsers over SSE
# Redis Pub/Sub keeps publishers and subscribers decoupled across uvicorn workers.
# Publishing is best-effort: the HTTP request that triggered it never fails because of it.

import asyncio
import json
import os
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

import redis.asyncio as redis

from campuslink.utils.logger import get_logger

logger = get_logger(__name__)

# inside docker compose the host is the service name (redis), not localhost
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
REALTIME_ENABLED = os.getenv("REALTIME_ENABLED", "true").lower() in ("1", "true", "yes")
EVENTS_CHANNEL = "events:new"
NEW_EVENT = "newEvent"
HEARTBEAT_INTERVAL = 15.0
# upper bound on one publish; a stalled Redis must not hold the HTTP response
PUBLISH_TIMEOUT_SEC = float(os.getenv("PUBLISH_TIMEOUT_SEC", "2"))
REDIS_SOCKET_TIMEOUT_SEC = float(os.getenv("REDIS_SOCKET_TIMEOUT_SEC", "5"))

# one client per process, connections are opened lazily on first command.
# no socket_timeout on reads: the SSE subscriber blocks in get_message(timeout=...) itself
redis_client = redis.from_url(
    REDIS_URL,
    decode_responses=True,
    socket_connect_timeout=REDIS_SOCKET_TIMEOUT_SEC,
)


class EventBroadcaster:
    """Publishes named events to every subscriber of one channel."""

    def __init__(
        self,
        client: redis.Redis,
        channel: str = EVENTS_CHANNEL,
        timeout: float = PUBLISH_TIMEOUT_SEC,
    ):
        self.client = client
        self.channel = channel
        self.timeout = timeout

    async def publish(self, event_name: str, payload: Dict[str, Any]) -> bool:
        """False (never an exception) when the channel is unreachable or slower than self.timeout."""
        message = json.dumps(
            {
                "event": event_name,
                "payload": payload,
                "ts": datetime.now(timezone.utc).isoformat(),
            },
            ensure_ascii=False,
            default=str,
        )
        try:
            await asyncio.wait_for(self.client.publish(self.channel, message), self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Broadcast of %s on %s timed out after %.1fs", event_name, self.channel, self.timeout
            )
            return False
        except Exception as exc:
            logger.warning("Broadcast of %s on %s failed: %s", event_name, self.channel, exc)
            return False
        return True


broadcaster = EventBroadcaster(redis_client)


def get_broadcaster() -> Optional[EventBroadcaster]:
    """FastAPI dependency. None when realtime is switched off; callers must tolerate that."""
    if not REALTIME_ENABLED:
        return None
    return broadcaster


def format_sse(message: str) -> str:
    """Published JSON → one SSE frame named after its event, payload as data."""
    try:
        parsed = json.loads(message)
        event_name = parsed.get("event") or NEW_EVENT
        data = json.dumps(parsed.get("payload"), ensure_ascii=False)
    except (ValueError, AttributeError):
        event_name, data = NEW_EVENT, message
    return f"event: {event_name}\ndata: {data}\n\n"


async def stream_events(
    client: redis.Redis = redis_client,
    channel: str = EVENTS_CHANNEL,
) -> AsyncGenerator[str, None]:
    """
    Generator behind GET /events/stream.

    Subscribes to the events channel and relays each message as an SSE frame,
    with a ": ping" comment every HEARTBEAT_INTERVAL seconds so proxies keep
    the connection open. SSE connections are long-lived: the subscription is
    released in finally when the client disconnects.
    """
    pubsub = client.pubsub()
    try:
        await pubsub.subscribe(channel)
        last_heartbeat = datetime.now(timezone.utc).timestamp()

        while True:
            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            now = datetime.now(timezone.utc).timestamp()
            if now - last_heartbeat >= HEARTBEAT_INTERVAL:
                yield ": ping\n\n"
                last_heartbeat = now
            if message and message.get("type") == "message":
                yield format_sse(message.get("data") or "")
    except asyncio.CancelledError:
        pass
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()
