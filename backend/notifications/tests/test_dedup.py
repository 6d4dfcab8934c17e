from notifications.dedup import NotificationDedupStore


def test_claim_is_granted_once_inside_window():
    store = NotificationDedupStore(ttl=60)

    assert store.claim("booking:1:paid:2") is True
    assert store.claim("booking:1:paid:2") is False
    assert store.claim("booking:1:paid:3") is True


def test_release_allows_a_new_claim():
    store = NotificationDedupStore(ttl=60)
    store.claim("tip:4:tip_received:9")

    store.release("tip:4:tip_received:9")

    assert store.claim("tip:4:tip_received:9") is True
