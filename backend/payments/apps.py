"""App configuration for Stripe payment flows."""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Register the payments app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
