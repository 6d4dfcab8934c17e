"""Short-lived claims that stop the same notification going out twice."""

from __future__ import annotations

from django.conf import settings
from django.core.cache import caches


class NotificationDedupStore:
    """
    Cache-backed set of recently sent notification keys.

    Keys live for ``ttl`` seconds; on a shared cache backend the window
    is shared by every web and worker process.
    """

    def __init__(self, *, ttl: int | None = None, alias: str = "default", prefix: str = "notify-dedup"):
        self.ttl = ttl if ttl is not None else getattr(settings, "NOTIFICATION_DEDUP_TTL_SECONDS", 600)
        self.alias = alias
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def claim(self, key: str) -> bool:
        """True the first time ``key`` is seen inside the window."""
        return caches[self.alias].add(self._key(key), 1, timeout=self.ttl)

    def release(self, key: str) -> None:
        caches[self.alias].delete(self._key(key))
