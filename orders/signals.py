"""
updated_at maintenance for print orders: every update of an existing row
overwrites it, whatever the writer supplied.
"""
from datetime import timedelta

from django.db.models.signals import pre_save
from django.dispatch import receiver
from django.utils import timezone

from .models import PrintOrder


def next_timestamp(previous):
    """Current time, or one microsecond past previous if the clock has not moved on."""
    now = timezone.now()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


@receiver(pre_save, sender=PrintOrder, dispatch_uid="orders.refresh_updated_at")
def refresh_updated_at(sender, instance, raw=False, **kwargs):
    if raw or instance._state.adding:
        return
    stored = (
        sender._base_manager.filter(pk=instance.pk)
        .values_list("updated_at", flat=True)
        .first()
    )
    if stored is None:
        return
    instance.updated_at = next_timestamp(stored)
