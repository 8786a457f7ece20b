"""
Merchant operations. A profile becomes a merchant by switching its role and
opening exactly one shop; shops are deactivated, never deleted.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from accounts.models import AppRole, Profile
from accounts.services import set_role
from core.rows import insert_row, update_row

from .models import Merchant

logger = logging.getLogger(__name__)

MERCHANT_EDITABLE_FIELDS = ("shop_name", "description", "location", "is_active")


def create_merchant(actor, profile, shop_name, description=None, location=None):
    merchant = Merchant(
        user=profile,
        shop_name=shop_name,
        description=description,
        location=location,
    )
    insert_row(actor, merchant)
    logger.info("Merchant %s opened by %s", merchant.pk, profile.pk)
    return merchant


def become_merchant(actor, shop_name, description=None, location=None):
    """The acting profile elects merchant status and opens its shop."""
    profile = Profile.objects.get(pk=actor.pk)
    with transaction.atomic():
        if profile.role != AppRole.MERCHANT:
            set_role(actor, profile, AppRole.MERCHANT)
        return create_merchant(
            actor,
            profile,
            shop_name=shop_name,
            description=description,
            location=location,
        )


def update_merchant(actor, merchant, **changes):
    unknown = set(changes) - set(MERCHANT_EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            {name: "This field cannot be edited." for name in sorted(unknown)}
        )
    merchant = update_row(actor, merchant, **changes)
    logger.info("Merchant %s updated (%s)", merchant.pk, ", ".join(sorted(changes)))
    return merchant


def deactivate_merchant(actor, merchant):
    return update_merchant(actor, merchant, is_active=False)
