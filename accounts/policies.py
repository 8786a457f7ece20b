"""Row-level policies for profiles: each identity sees and edits only its own."""
from django.db.models import Q

from core.policies import Operation, policy, same_key

from .models import Profile


@policy(Profile, Operation.SELECT, "Users can view their own profile",
        scope=lambda key: Q(pk=key))
def view_own_profile(key, row):
    return same_key(key, row.pk)


@policy(Profile, Operation.UPDATE, "Users can update their own profile")
def update_own_profile(key, row):
    return same_key(key, row.pk)


@policy(Profile, Operation.INSERT, "Users can insert their own profile")
def insert_own_profile(key, row):
    return same_key(key, row.pk)
