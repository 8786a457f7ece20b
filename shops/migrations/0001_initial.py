import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Merchant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name="id")),
                (
                    "shop_name",
                    models.CharField(
                        help_text="Display name of the print shop.",
                        max_length=255,
                        verbose_name="shop name",
                    ),
                ),
                ("description", models.TextField(blank=True, null=True, verbose_name="description")),
                (
                    "location",
                    models.CharField(
                        blank=True,
                        help_text="Where on campus the shop is.",
                        max_length=255,
                        null=True,
                        verbose_name="location",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Whether the shop is active and visible.",
                        verbose_name="is active",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                (
                    "user",
                    models.OneToOneField(
                        help_text="Profile that owns this shop. At most one shop per profile.",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="merchant",
                        to="accounts.profile",
                        verbose_name="owner",
                    ),
                ),
            ],
            options={
                "verbose_name": "merchant",
                "verbose_name_plural": "merchants",
                "ordering": ["shop_name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("shop_name", ""), _negated=True),
                        name="merchant_shop_name_not_blank",
                    )
                ],
            },
        ),
    ]
