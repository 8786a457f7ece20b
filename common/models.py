import uuid

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class UUIDModel(models.Model):
    """Abstract base model with a generated UUID primary key."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("id"),
    )

    class Meta:
        abstract = True


class TimeStampedModel(models.Model):
    """Abstract base model with created_at and updated_at timestamps.

    updated_at is not auto_now: subclasses refresh it from a pre_save
    receiver so that it also moves when callers pass update_fields.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name=_("created at"),
        help_text=_("Timestamp when the record was created."),
    )
    updated_at = models.DateTimeField(
        default=timezone.now,
        verbose_name=_("updated at"),
        help_text=_("Timestamp when the record was last updated."),
    )

    class Meta:
        abstract = True
