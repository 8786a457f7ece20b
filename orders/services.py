"""
Print order operations. Orders are created pending by the customer; either
the customer or the merchant owner may then update them.
"""
import logging

from django.core.exceptions import ValidationError

from accounts.models import Profile
from core.policies import registry
from core.rows import insert_row, update_row

from .choices import OrderStatus
from .models import PrintOrder

logger = logging.getLogger(__name__)

ORDER_EDITABLE_FIELDS = (
    "file_name", "file_url", "file_size", "pages", "copies", "notes", "status",
)


def create_order(actor, merchant, file_name, file_url, *, file_size=None,
                 pages=1, copies=1, notes=None, customer=None):
    """
    Place an order as actor. customer defaults to the actor's own profile;
    naming anyone else is denied by the insert policy.
    """
    if customer is None:
        customer = Profile.objects.get(pk=actor.pk)
    order = PrintOrder(
        user=customer,
        merchant=merchant,
        file_name=file_name,
        file_url=file_url,
        file_size=file_size,
        pages=pages,
        copies=copies,
        notes=notes,
        status=OrderStatus.PENDING,
    )
    insert_row(actor, order)
    logger.info("Order %s placed by %s with merchant %s", order.pk, customer.pk, merchant.pk)
    return order


def update_order(actor, order, **changes):
    unknown = set(changes) - set(ORDER_EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            {name: "This field cannot be edited." for name in sorted(unknown)}
        )
    previous_status = order.status
    order = update_row(actor, order, **changes)
    if order.status != previous_status:
        logger.info("Order %s: %s -> %s", order.pk, previous_status, order.status)
    return order


def set_order_status(actor, order, status):
    return update_order(actor, order, status=status)


def cancel_order(actor, order):
    return set_order_status(actor, order, OrderStatus.CANCELLED)


def orders_for_actor(actor, role=None):
    """
    Orders visible to actor. role narrows to orders placed ("customer") or
    received ("merchant").
    """
    qs = registry.scope(actor, PrintOrder.objects.select_related("merchant", "user"))
    if role == "customer":
        qs = qs.for_customer(actor)
    elif role == "merchant":
        qs = qs.for_merchant_owner(actor)
    return qs
