"""
Print order: one job a customer sends to a merchant, referencing an
uploaded file by URL. Deleted only by cascade from its customer or merchant.
"""
from django.db import models
from django.utils.translation import gettext_lazy as _

from accounts.models import Profile
from common.models import TimeStampedModel, UUIDModel
from core.querysets import PrintOrderQuerySet
from shops.models import Merchant

from .choices import OrderStatus


class PrintOrder(UUIDModel, TimeStampedModel):
    """Print job - customer creates, merchant prints."""

    objects = PrintOrderQuerySet.as_manager()

    user = models.ForeignKey(
        Profile,
        on_delete=models.CASCADE,
        related_name="print_orders",
        verbose_name=_("customer"),
        help_text=_("Profile that placed the order."),
    )
    merchant = models.ForeignKey(
        Merchant,
        on_delete=models.CASCADE,
        related_name="orders",
        verbose_name=_("merchant"),
        help_text=_("Shop the order was sent to."),
    )
    file_name = models.CharField(
        max_length=255,
        verbose_name=_("file name"),
        help_text=_("Original name of the uploaded document."),
    )
    file_url = models.CharField(
        max_length=1024,
        verbose_name=_("file url"),
        help_text=_("Location of the uploaded document in the print-files bucket."),
    )
    file_size = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_("file size"),
        help_text=_("Size in bytes."),
    )
    pages = models.PositiveIntegerField(
        null=True,
        blank=True,
        default=1,
        verbose_name=_("pages"),
    )
    copies = models.PositiveIntegerField(
        default=1,
        verbose_name=_("copies"),
    )
    notes = models.TextField(
        null=True,
        blank=True,
        verbose_name=_("notes"),
        help_text=_("Instructions for the shop."),
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        verbose_name=_("status"),
        help_text=_("Current status of the print job."),
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("print order")
        verbose_name_plural = _("print orders")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(copies__gte=1),
                name="print_order_copies_gte_1",
            ),
            models.CheckConstraint(
                condition=models.Q(status__in=OrderStatus.values),
                name="print_order_status_valid",
            ),
        ]

    def __str__(self):
        return f"{self.file_name} x{self.copies} ({self.status})"

    def save(self, *args, **kwargs):
        update_fields = kwargs.get("update_fields")
        if update_fields and "updated_at" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "updated_at"]
        super().save(*args, **kwargs)

    def is_customer(self, user):
        return user.is_authenticated and self.user_id == user.pk

    def is_merchant_owner(self, user):
        return user.is_authenticated and self.merchant.user_id == user.pk
