"""Per-record mutex on the Django cache."""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Iterator

from django.conf import settings
from django.core.cache import caches

from payments.exceptions import RecordBusyError

logger = logging.getLogger(__name__)


class CacheRecordLock:
    """
    Serialize mutations of one record across processes.

    ``cache.add`` only succeeds for the first caller, which makes it a
    usable mutex on any shared backend (Redis, Memcached). Locks expire
    after ``timeout`` seconds so a crashed worker cannot wedge a record.
    """

    def __init__(
        self,
        *,
        alias: str = "default",
        prefix: str = "record-lock",
        timeout: int | None = None,
        wait: float | None = None,
        poll_interval: float = 0.05,
    ):
        self.alias = alias
        self.prefix = prefix
        self.timeout = timeout or getattr(settings, "RECORD_LOCK_TIMEOUT_SECONDS", 30)
        self.wait = wait if wait is not None else getattr(settings, "RECORD_LOCK_WAIT_SECONDS", 5.0)
        self.poll_interval = poll_interval

    @property
    def cache(self):
        return caches[self.alias]

    def _acquire(self, cache_key: str, token: str, blocking: bool) -> bool:
        deadline = time.monotonic() + (self.wait if blocking else 0)
        while True:
            if self.cache.add(cache_key, token, timeout=self.timeout):
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(self.poll_interval)

    @contextmanager
    def hold(self, key: str, *, blocking: bool = True) -> Iterator[None]:
        cache_key = f"{self.prefix}:{key}"
        token = uuid.uuid4().hex
        if not self._acquire(cache_key, token, blocking):
            raise RecordBusyError(f"{key} is locked by another worker")
        try:
            yield
        finally:
            if self.cache.get(cache_key) == token:
                self.cache.delete(cache_key)
            else:
                logger.warning("locks: %s expired before release", cache_key)
