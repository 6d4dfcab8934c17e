import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import payments.models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.PositiveIntegerField(help_text="Total charged, in minor currency units.")),
                ("currency", models.CharField(default=payments.models._default_currency, max_length=8)),
                ("stripe_checkout_session_id", models.CharField(blank=True, db_index=True, default="", max_length=255)),
                ("stripe_payment_intent_id", models.CharField(blank=True, db_index=True, default="", max_length=255)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("unpaid", "Unpaid"),
                            ("authorized", "Authorized"),
                            ("paid", "Paid"),
                            ("cancelled", "Cancelled"),
                            ("failed", "Failed"),
                        ],
                        default="unpaid",
                        max_length=16,
                    ),
                ),
                (
                    "reaction",
                    models.CharField(
                        choices=[("pending", "Pending"), ("accepted", "Accepted"), ("rejected", "Rejected")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("reject_note", models.TextField(blank=True)),
                ("authorized_at", models.DateTimeField(blank=True, null=True)),
                ("day", models.DateField()),
                ("start_time", models.TimeField(blank=True, null=True)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "platform_fee",
                    models.PositiveIntegerField(default=0, help_text="Platform share of amount, in minor currency units."),
                ),
                (
                    "artist",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings_as_artist",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings_as_owner",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["payment_status", "authorized_at"], name="booking_status_auth_idx"),
                    models.Index(fields=["artist", "reaction"], name="booking_artist_reaction_idx"),
                    models.Index(fields=["owner", "created_at"], name="booking_owner_created_idx"),
                ],
            },
        ),
    ]
