"""
Row-level policies for print orders.

Customers see and edit their own orders; merchant owners see and edit the
orders sent to their shop. Status changes must follow the lifecycle in
orders.choices unless PRINT_ORDERS_ENFORCE_TRANSITIONS is off.
"""
from django.conf import settings
from django.db.models import Q

from core.exceptions import TransitionDenied
from core.policies import Operation, policy, same_key
from shops.models import Merchant

from .choices import is_valid_transition
from .models import PrintOrder


def owns_merchant(key, merchant_id):
    return Merchant.objects.filter(pk=merchant_id, user_id=key).exists()


@policy(PrintOrder, Operation.SELECT, "Users can view their own orders",
        scope=lambda key: Q(user_id=key))
def view_own_orders(key, row):
    return same_key(key, row.user_id)


@policy(PrintOrder, Operation.SELECT, "Merchants can view orders sent to them",
        scope=lambda key: Q(merchant__user_id=key))
def view_received_orders(key, row):
    return owns_merchant(key, row.merchant_id)


@policy(PrintOrder, Operation.INSERT, "Users can create orders")
def create_own_orders(key, row):
    return same_key(key, row.user_id)


@policy(PrintOrder, Operation.UPDATE, "Users can update their own orders")
def update_own_orders(key, row):
    return same_key(key, row.user_id)


@policy(PrintOrder, Operation.UPDATE, "Merchants can update orders sent to them")
def update_received_orders(key, row):
    return owns_merchant(key, row.merchant_id)


@policy(PrintOrder, Operation.UPDATE, "Order status must follow the print lifecycle",
        restrictive=True, error_class=TransitionDenied)
def follow_status_lifecycle(key, row, old):
    if not getattr(settings, "PRINT_ORDERS_ENFORCE_TRANSITIONS", True):
        return True
    if old is None:
        return True
    return is_valid_transition(old.status, row.status)
