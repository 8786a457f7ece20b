"""
Reusable querysets filtered by ownership.

- Merchant: active shops, shops owned by a user
- PrintOrder: customer's own orders, orders sent to a merchant owner
"""
from datetime import timedelta
from urllib.parse import quote

from django.db import models
from django.db.models import F, Q, Value
from django.db.models.functions import Greatest
from django.utils import timezone
from django.utils.http import RFC3986_SUBDELIMS


class MerchantQuerySet(models.QuerySet):
    """Queryset for Merchant - filter by activity or owner."""

    def active(self):
        return self.filter(is_active=True)

    def owned_by(self, user):
        """Filter to the merchant owned by the user (at most one)."""
        if not user or not user.is_authenticated:
            return self.none()
        return self.filter(user_id=user.pk)


class PrintOrderQuerySet(models.QuerySet):
    """
    Queryset for PrintOrder - filter by customer (own) or merchant owner.
    Bulk update() always refreshes updated_at.
    """

    def for_customer(self, user):
        """Filter to orders placed by the customer."""
        if not user or not user.is_authenticated:
            return self.none()
        return self.filter(user_id=user.pk)

    def for_merchant_owner(self, user):
        """Filter to orders sent to the merchant the user owns."""
        if not user or not user.is_authenticated:
            return self.none()
        return self.filter(merchant__user_id=user.pk)

    def for_customer_or_merchant(self, user):
        if not user or not user.is_authenticated:
            return self.none()
        return self.filter(Q(user_id=user.pk) | Q(merchant__user_id=user.pk))

    def with_status(self, *statuses):
        return self.filter(status__in=statuses)

    def referencing_object(self, name):
        """
        Orders whose file_url points at the stored object name. URLs built
        with reverse() carry the name percent-encoded, so both forms match.
        """
        condition = Q()
        for form in (name, quote(name, safe=RFC3986_SUBDELIMS + "/~:@")):
            condition |= Q(file_url=form) | Q(file_url__endswith=f"/{form}")
        return self.filter(condition)

    def update(self, **kwargs):
        # Never behind the stored value, as with single-row saves
        kwargs["updated_at"] = Greatest(
            Value(timezone.now(), output_field=models.DateTimeField()),
            F("updated_at") + timedelta(microseconds=1),
            output_field=models.DateTimeField(),
        )
        return super().update(**kwargs)
