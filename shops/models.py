"""
Merchant model: a campus print shop operated by one profile.
"""
from django.db import models
from django.utils.translation import gettext_lazy as _

from accounts.models import Profile
from common.models import UUIDModel
from core.querysets import MerchantQuerySet


class Merchant(UUIDModel):
    """Print shop - owner is the profile that elected merchant status."""

    objects = MerchantQuerySet.as_manager()

    user = models.OneToOneField(
        Profile,
        on_delete=models.CASCADE,
        related_name="merchant",
        verbose_name=_("owner"),
        help_text=_("Profile that owns this shop. At most one shop per profile."),
    )
    shop_name = models.CharField(
        max_length=255,
        verbose_name=_("shop name"),
        help_text=_("Display name of the print shop."),
    )
    description = models.TextField(
        null=True,
        blank=True,
        verbose_name=_("description"),
    )
    location = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        verbose_name=_("location"),
        help_text=_("Where on campus the shop is."),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("is active"),
        help_text=_("Whether the shop is active and visible."),
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name=_("created at"),
    )

    immutable_fields = ("user",)

    class Meta:
        ordering = ["shop_name"]
        verbose_name = _("merchant")
        verbose_name_plural = _("merchants")
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(shop_name=""),
                name="merchant_shop_name_not_blank",
            )
        ]

    def __str__(self):
        return self.shop_name

    def is_owner(self, user):
        """Check if user owns this shop."""
        return user.is_authenticated and self.user_id == user.pk
