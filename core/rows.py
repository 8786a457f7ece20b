"""
Policy-checked writes. Services mutate rows only through insert_row and
update_row so that every write is evaluated against core.policies and a
store error never leaves partial state behind.
"""
import logging

from django.db import IntegrityError, transaction

from .exceptions import ConstraintViolation
from .policies import Operation, registry

logger = logging.getLogger(__name__)


def _save(instance, **kwargs):
    try:
        with transaction.atomic():
            instance.save(**kwargs)
    except IntegrityError as exc:
        logger.warning("Constraint violation on %s: %s", instance._meta.label, exc)
        raise ConstraintViolation(detail=str(exc)) from exc
    return instance


def insert_row(actor, instance):
    """Insert instance as actor after the insert policies pass."""
    registry.enforce(actor, Operation.INSERT, instance)
    return _save(instance, force_insert=True)


def update_row(actor, instance, **changes):
    """
    Apply changes to instance and save them as actor.

    The update policies see the stored row (re-read from the database) and
    the new row. Fields listed in the model's ``immutable_fields`` may not
    change. Only the changed fields are written; concurrent writers to the
    same row are last-write-wins. If the write is refused, instance keeps
    the values it had before the call.
    """
    model = type(instance)
    old = model._base_manager.get(pk=instance.pk)
    previous = {name: getattr(instance, name) for name in changes}

    for name, value in changes.items():
        setattr(instance, name, value)

    try:
        for name in getattr(model, "immutable_fields", ()):
            attname = model._meta.get_field(name).attname
            if getattr(old, attname) != getattr(instance, attname):
                raise ConstraintViolation(detail=f"{name} cannot be changed.")

        registry.enforce(actor, Operation.UPDATE, instance, old=old)

        update_fields = [model._meta.get_field(name).name for name in changes]
        return _save(instance, update_fields=update_fields or None)
    except Exception:
        for name, value in previous.items():
            setattr(instance, name, value)
        raise
