import pytest
from django.core.cache import cache

from core.locks import CacheRecordLock
from payments.exceptions import RecordBusyError


def test_lock_is_exclusive_and_released():
    lock = CacheRecordLock(wait=0, timeout=30)

    with lock.hold("booking:1"):
        with pytest.raises(RecordBusyError):
            with lock.hold("booking:1", blocking=False):
                pass
        with lock.hold("booking:2", blocking=False):
            pass

    with lock.hold("booking:1", blocking=False):
        pass


def test_expired_lock_is_not_deleted_for_new_holder():
    lock = CacheRecordLock(wait=0, timeout=30)

    with lock.hold("tip:3"):
        # Simulate expiry followed by another worker taking the lock.
        cache.set("record-lock:tip:3", "someone-else", 30)

    assert cache.get("record-lock:tip:3") == "someone-else"
