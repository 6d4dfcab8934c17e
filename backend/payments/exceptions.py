"""Domain errors raised by the payment flows."""


class PaymentFlowError(Exception):
    """Base class for payment flow failures."""


class RecordNotFound(PaymentFlowError):
    """No payable record matches the given identifier."""


class StaleRecordError(PaymentFlowError):
    """The record changed between read and conditional write."""


class IntentMismatchError(PaymentFlowError):
    """A Stripe id on the event differs from the one already on file."""


class MissingIntentError(PaymentFlowError):
    """The record has no PaymentIntent to capture or cancel."""


class ReactionNotAllowed(PaymentFlowError):
    """Only the record's counterparties may react to it."""


class ReactionAlreadyDecided(PaymentFlowError):
    """The record's reaction is no longer pending."""


class InvalidReaction(PaymentFlowError):
    """The submitted reaction is not accepted or rejected."""


class RecordBusyError(PaymentFlowError):
    """Another worker holds the lock for this record."""


class WebhookSignatureError(PaymentFlowError):
    """The webhook delivery could not be authenticated."""
