import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("shops", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PrintOrder",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        help_text="Timestamp when the record was created.",
                        verbose_name="created at",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="Timestamp when the record was last updated.",
                        verbose_name="updated at",
                    ),
                ),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name="id")),
                (
                    "file_name",
                    models.CharField(
                        help_text="Original name of the uploaded document.",
                        max_length=255,
                        verbose_name="file name",
                    ),
                ),
                (
                    "file_url",
                    models.CharField(
                        help_text="Location of the uploaded document in the print-files bucket.",
                        max_length=1024,
                        verbose_name="file url",
                    ),
                ),
                (
                    "file_size",
                    models.PositiveIntegerField(blank=True, help_text="Size in bytes.", null=True, verbose_name="file size"),
                ),
                ("pages", models.PositiveIntegerField(blank=True, default=1, null=True, verbose_name="pages")),
                ("copies", models.PositiveIntegerField(default=1, verbose_name="copies")),
                (
                    "notes",
                    models.TextField(blank=True, help_text="Instructions for the shop.", null=True, verbose_name="notes"),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("printing", "Printing"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        help_text="Current status of the print job.",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                (
                    "merchant",
                    models.ForeignKey(
                        help_text="Shop the order was sent to.",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="orders",
                        to="shops.merchant",
                        verbose_name="merchant",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Profile that placed the order.",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="print_orders",
                        to="accounts.profile",
                        verbose_name="customer",
                    ),
                ),
            ],
            options={
                "verbose_name": "print order",
                "verbose_name_plural": "print orders",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("copies__gte", 1)),
                        name="print_order_copies_gte_1",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("status__in", ["pending", "printing", "completed", "cancelled"])),
                        name="print_order_status_valid",
                    ),
                ],
            },
        ),
    ]
