"""
Row-level authorization policies.

Every data operation is evaluated against the policies registered for the
target type and operation, in the manner of database row-level security:

- Permissive policies are OR-ed: at least one must pass.
- Restrictive policies are AND-ed on top: every one must pass.
- INSERT evaluates the new row.
- UPDATE evaluates the permissive predicates against the stored row and
  against the new row; restrictive update predicates receive both rows.
- No permissive policy registered means the operation is denied.

Apps register their rules in <app>/policies.py with the ``policy``
decorator; the modules are imported from each AppConfig.ready().
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from django.db import models

from .exceptions import PolicyDenied

logger = logging.getLogger(__name__)


class Operation(models.TextChoices):
    SELECT = "select", "Select"
    INSERT = "insert", "Insert"
    UPDATE = "update", "Update"


def same_key(key, value):
    """Compare identity keys regardless of UUID vs. string representation."""
    return key is not None and value is not None and str(key) == str(value)


def actor_key(actor):
    """Identity key of the acting user, or None for anonymous actors."""
    if actor is None or not getattr(actor, "is_authenticated", False):
        return None
    return actor.pk


@dataclass(frozen=True)
class Policy:
    """A single named predicate over (actor key, row)."""

    name: str
    target: type
    operation: str
    check: Callable[..., bool]
    scope: Optional[Callable[[Any], models.Q]] = None
    restrictive: bool = False
    public: bool = False
    error_class: type = PolicyDenied

    def applies_to(self, target) -> bool:
        return isinstance(target, type) and issubclass(target, self.target)

    def passes(self, key, row, old=None) -> bool:
        if key is None and not self.public and not self.restrictive:
            return False
        if self.restrictive:
            return bool(self.check(key, row, old))
        return bool(self.check(key, row))


class PolicyRegistry:
    def __init__(self):
        self._policies = {}

    def register(self, policy: Policy) -> Policy:
        # Keyed by name so re-importing a policies module is harmless.
        self._policies[(policy.target, policy.operation, policy.name)] = policy
        return policy

    def policies_for(self, target, operation) -> list[Policy]:
        return [
            p for p in self._policies.values()
            if p.operation == operation and p.applies_to(target)
        ]

    def _denial(self, actor, operation, row, old=None):
        key = actor_key(actor)
        policies = self.policies_for(type(row), operation)
        permissive = [p for p in policies if not p.restrictive]
        restrictive = [p for p in policies if p.restrictive]

        label = _label(type(row))
        if operation == Operation.UPDATE:
            stored = row if old is None else old
            allowed = (
                any(p.passes(key, stored) for p in permissive)
                and any(p.passes(key, row) for p in permissive)
            )
        else:
            allowed = any(p.passes(key, row) for p in permissive)
        if not allowed:
            return PolicyDenied(
                detail=f"{operation} on {label} denied by row-level policy."
            )

        for p in restrictive:
            if not p.passes(key, row, old):
                return p.error_class(detail=f"{p.name} ({label}).")
        return None

    def allows(self, actor, operation, row, old=None) -> bool:
        return self._denial(actor, operation, row, old) is None

    def enforce(self, actor, operation, row, old=None):
        """Raise PolicyDenied (or the policy's own error) unless allowed."""
        denial = self._denial(actor, operation, row, old)
        if denial is not None:
            logger.warning(
                "Denied %s on %s for actor %s: %s",
                operation, _label(type(row)), actor_key(actor), denial.detail,
            )
            raise denial

    def scope(self, actor, queryset, operation=Operation.SELECT):
        """Filter queryset to the rows the actor may see (list endpoints)."""
        key = actor_key(actor)
        condition = None
        for p in self.policies_for(queryset.model, operation):
            if p.restrictive or p.scope is None:
                continue
            if key is None and not p.public:
                continue
            q = p.scope(key)
            condition = q if condition is None else condition | q
        if condition is None:
            return queryset.none()
        return queryset.filter(condition)


def _label(target):
    meta = getattr(target, "_meta", None)
    if meta is not None:
        return meta.label
    return getattr(target, "policy_label", target.__name__)


registry = PolicyRegistry()


def policy(target, operation, name, *, scope=None, restrictive=False,
           public=False, error_class=PolicyDenied):
    """Register the decorated predicate as a row-level policy."""

    def decorator(check):
        registry.register(
            Policy(
                name=name,
                target=target,
                operation=operation,
                check=check,
                scope=scope,
                restrictive=restrictive,
                public=public,
                error_class=error_class,
            )
        )
        return check

    return decorator
