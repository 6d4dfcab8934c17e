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
            name="GuestSpotBooking",
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
                ("selected_date", models.DateField()),
                ("selected_time", models.TimeField(blank=True, null=True)),
                ("comment", models.TextField(blank=True)),
                ("platform_commission_amount", models.PositiveIntegerField(default=0)),
                (
                    "artist",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="guest_spot_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "shop",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="guest_spot_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["payment_status", "authorized_at"], name="guestspot_status_auth_idx"),
                    models.Index(fields=["shop", "reaction"], name="guestspot_shop_reaction_idx"),
                    models.Index(fields=["artist", "created_at"], name="guestspot_artist_created_idx"),
                ],
            },
        ),
    ]
