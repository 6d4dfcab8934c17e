import json

import pytest

from core import redis as core_redis


class FakeRedis:
    def __init__(self):
        self.entries = []

    def xadd(self, key, fields, maxlen=None, approximate=None):
        self.entries.append((key, fields, maxlen))
        return b"1700000000000-0"


@pytest.fixture(autouse=True)
def _reset_client_cache():
    get_redis_client = core_redis.get_redis_client
    get_redis_client.cache_clear()
    yield
    get_redis_client.cache_clear()


def test_push_event_appends_to_user_stream(monkeypatch, settings):
    settings.EVENT_STREAM_MAXLEN = 50
    client = FakeRedis()
    monkeypatch.setattr(core_redis, "get_redis_client", lambda: client)

    entry_id = core_redis.push_event(12, "notification:tip_received", {"amount": 1500})

    key, fields, maxlen = client.entries[0]
    assert entry_id == "1700000000000-0"
    assert key == "events:user:12"
    assert fields["type"] == "notification:tip_received"
    assert json.loads(fields["payload"]) == {"amount": 1500}
    assert maxlen == 50


def test_push_event_without_redis_returns_none(settings):
    settings.REDIS_URL = ""

    assert core_redis.push_event(12, "notification:tip_received", {}) is None


def test_push_event_logs_redis_errors(monkeypatch):
    class DownRedis:
        def xadd(self, *args, **kwargs):
            raise core_redis.redis.ConnectionError("connection refused")

    monkeypatch.setattr(core_redis, "get_redis_client", lambda: DownRedis())

    assert core_redis.push_event(12, "notification:booking_expired", {"x": 1}) is None
