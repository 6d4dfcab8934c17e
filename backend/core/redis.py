"""Per-user Redis streams that carry notification pushes."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, Mapping

import redis
from django.conf import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_redis_client() -> "redis.Redis | None":
    url = getattr(settings, "REDIS_URL", "")
    return redis.Redis.from_url(url) if url else None


def user_stream_key(user_id: int) -> str:
    return f"events:user:{int(user_id)}"


def _encode(event_type: str, payload: Mapping[str, Any] | None) -> dict[str, str]:
    body = json.dumps(dict(payload or {}), separators=(",", ":"), default=str)
    return {"type": event_type, "payload": body}


def push_event(user_id: int, event_type: str, payload: Mapping[str, Any] | None) -> str | None:
    """Push a notification onto the recipient's stream; ``None`` when skipped or failed."""
    client = get_redis_client()
    if client is None:
        logger.debug("events: no REDIS_URL, push skipped", extra={"user_id": user_id})
        return None
    try:
        entry_id = client.xadd(
            user_stream_key(user_id),
            _encode(event_type, payload),
            maxlen=settings.EVENT_STREAM_MAXLEN,
            approximate=True,
        )
    except redis.RedisError:
        logger.warning(
            "events: push failed",
            extra={"user_id": user_id, "event_type": event_type},
            exc_info=True,
        )
        return None
    return entry_id.decode() if isinstance(entry_id, bytes) else str(entry_id)
