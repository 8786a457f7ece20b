"""Row-level policies for merchants: public read of active shops, owner writes."""
from django.db.models import Q

from core.policies import Operation, policy, same_key

from .models import Merchant


@policy(Merchant, Operation.SELECT, "Anyone can view active merchants",
        scope=lambda key: Q(is_active=True), public=True)
def view_active_merchants(key, row):
    return row.is_active


@policy(Merchant, Operation.SELECT, "Merchant owners can view their shop",
        scope=lambda key: Q(user_id=key))
def view_own_merchant(key, row):
    return same_key(key, row.user_id)


@policy(Merchant, Operation.UPDATE, "Merchant owners can update their shop")
def update_own_merchant(key, row):
    return same_key(key, row.user_id)


@policy(Merchant, Operation.INSERT, "Users can create merchant profile")
def insert_own_merchant(key, row):
    return same_key(key, row.user_id)
