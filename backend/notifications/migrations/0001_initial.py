import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("booking_created", "Booking created"),
                            ("booking_accepted", "Booking accepted"),
                            ("booking_rejected", "Booking rejected"),
                            ("booking_expired", "Booking expired"),
                            ("guest_spot_request", "Guest spot request"),
                            ("guest_spot_accepted", "Guest spot accepted"),
                            ("guest_spot_rejected", "Guest spot rejected"),
                            ("guest_spot_expired", "Guest spot expired"),
                            ("payment_success", "Payment success"),
                            ("payment_released", "Payment released"),
                            ("tip_received", "Tip received"),
                            ("stripe_account_activated", "Stripe account activated"),
                        ],
                        max_length=64,
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("body", models.TextField(blank=True)),
                ("data", models.JSONField(blank=True, default=dict)),
                ("read_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "recipient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["recipient", "read_at"], name="notif_recipient_read_idx"),
                    models.Index(fields=["recipient", "created_at"], name="notif_recipient_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "channel",
                    models.CharField(
                        choices=[("in_app", "In-app"), ("push", "Push"), ("email", "Email")],
                        max_length=8,
                    ),
                ),
                ("type", models.CharField(max_length=128)),
                ("record_family", models.CharField(blank=True, max_length=32)),
                ("record_id", models.IntegerField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("sent", "Sent"), ("skipped", "Skipped"), ("failed", "Failed")],
                        max_length=8,
                    ),
                ),
                ("error", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notification_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="notiflog_created_idx"),
                    models.Index(fields=["record_family", "record_id", "created_at"], name="notiflog_record_idx"),
                    models.Index(fields=["type", "created_at"], name="notiflog_type_created_idx"),
                ],
            },
        ),
    ]
