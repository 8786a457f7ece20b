"""
DRF permission classes backed by the row-level policy registry.

Reads: the object is looked up unfiltered and the select policies decide,
so a denied read is a 403 rather than a 404.
Writes: decided by the service layer (core.rows), which sees both the
stored and the new row.
"""
from rest_framework import permissions

from .policies import Operation, registry


class RowPolicyPermission(permissions.BasePermission):
    """Object-level read access decided by the select policies."""

    message = "Row-level policy denied this operation."

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return registry.allows(request.user, Operation.SELECT, obj)
        return True


class PublicReadOrAuthenticated(permissions.BasePermission):
    """Anyone may read (policies still filter rows); writes need a login."""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated)
