"""Test doubles for the Stripe gateway and notification channels."""

from __future__ import annotations

from typing import Any, Callable

from payments.context import build_default_context
from payments.gateway import AccountStatus, CheckoutSession, StripeGateway


class FakeGateway:
    """Records capture/cancel calls; ``on_capture``/``on_cancel`` hooks may raise or mutate."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []
        self.sessions: list[dict[str, Any]] = []
        self.on_capture: Callable[[str], Any] | None = None
        self.on_cancel: Callable[[str], Any] | None = None
        self.accounts: dict[str, AccountStatus] = {}
        self.session_status = "open"

    def capture(self, intent_id: str):
        self.calls.append(("capture", intent_id))
        if self.on_capture is not None:
            return self.on_capture(intent_id)
        return {"id": intent_id, "status": "succeeded"}

    def cancel(self, intent_id: str):
        self.calls.append(("cancel", intent_id))
        if self.on_cancel is not None:
            return self.on_cancel(intent_id)
        return {"id": intent_id, "status": "canceled"}

    def retrieve_account(self, account_id: str) -> AccountStatus:
        self.calls.append(("retrieve_account", account_id))
        return self.accounts[account_id]

    def create_session(self, **params) -> CheckoutSession:
        self.sessions.append(params)
        number = len(self.sessions)
        return CheckoutSession(
            session_id=f"cs_test_{number}",
            session_url=f"https://checkout.stripe.test/cs_test_{number}",
            intent_id="",
            status="open",
        )

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        self.calls.append(("retrieve_session", session_id))
        return CheckoutSession(
            session_id=session_id,
            session_url=f"https://checkout.stripe.test/{session_id}",
            status=self.session_status,
        )

    def verify_signature(self, raw_body: bytes, signature: str, secret: str) -> dict:
        return StripeGateway().verify_signature(raw_body, signature, secret)

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.sent: list[tuple[int, Any]] = []
        self.fail = fail

    def notify(self, recipient_id: int, message) -> None:
        if self.fail:
            raise RuntimeError("notification backend down")
        self.sent.append((recipient_id, message))

    def types_for(self, recipient_id: int) -> list[str]:
        return [str(message.type) for rid, message in self.sent if rid == recipient_id]


class MemoryDedup:
    def __init__(self):
        self.keys: set[str] = set()

    def claim(self, key: str) -> bool:
        if key in self.keys:
            return False
        self.keys.add(key)
        return True

    def release(self, key: str) -> None:
        self.keys.discard(key)


def make_context(**overrides):
    """Production stores and machines wired to fakes for Stripe and delivery."""
    values = {
        "gateway": FakeGateway(),
        "notifier": RecordingNotifier(),
        "dedup": MemoryDedup(),
    }
    values.update(overrides)
    return build_default_context(**values)
