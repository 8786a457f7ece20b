"""Choice enums and the status lifecycle for print orders."""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PRINTING = "printing", "Printing"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


# pending -> printing -> completed; pending -> cancelled.
ALLOWED_TRANSITIONS = (
    (OrderStatus.PENDING, OrderStatus.PRINTING),
    (OrderStatus.PRINTING, OrderStatus.COMPLETED),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
)

TERMINAL_STATUSES = (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


def is_valid_transition(old, new):
    """Leaving the status unchanged is always valid."""
    if old == new:
        return True
    return any(old == src and new == dst for src, dst in ALLOWED_TRANSITIONS)


def next_statuses(status):
    return [dst for src, dst in ALLOWED_TRANSITIONS if src == status]
