"""
Error taxonomy shared by every app.

- PolicyDenied: a row-level policy evaluated false (403 / 401).
- ConstraintViolation: uniqueness, foreign-key, check or immutability
  violation reported by the store (409).
Django ValidationError raised below the API layer becomes a 400.
"""
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.utils.translation import gettext_lazy as _
from rest_framework import exceptions, status
from rest_framework.views import exception_handler


class PolicyDenied(exceptions.PermissionDenied):
    default_detail = _("Row-level policy denied this operation.")
    default_code = "policy_denied"


class TransitionDenied(PolicyDenied):
    default_detail = _("This status transition is not allowed.")
    default_code = "transition_denied"


class ConstraintViolation(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _("The operation violates a data constraint.")
    default_code = "constraint_violation"


def api_exception_handler(exc, context):
    """DRF exception handler that also understands Django-level errors."""
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, "message_dict"):
            detail = exc.message_dict
        else:
            detail = exc.messages
        exc = exceptions.ValidationError(detail=detail)
    elif isinstance(exc, IntegrityError):
        exc = ConstraintViolation(detail=str(exc))
    return exception_handler(exc, context)
