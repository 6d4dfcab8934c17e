from django.apps import AppConfig


class GuestSpotsConfig(AppConfig):
    """Shop guest-spot bookings paid with an artist deposit."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "guest_spots"
    verbose_name = "Guest spots"
