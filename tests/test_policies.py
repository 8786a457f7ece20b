"""Tests for the row-level policy engine and its DRF permission classes."""
import uuid
from dataclasses import dataclass

from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory, SimpleTestCase, TestCase
from rest_framework.request import Request

from accounts.models import User
from core.exceptions import PolicyDenied, TransitionDenied
from core.permissions import PublicReadOrAuthenticated, RowPolicyPermission
from core.policies import Operation, Policy, PolicyRegistry, actor_key, same_key
from shops.services import become_merchant, deactivate_merchant


@dataclass
class Note:
    owner: str
    body: str = ""
    locked: bool = False

    policy_label = "tests.note"


@dataclass
class Actor:
    pk: str
    is_authenticated: bool = True


def owner_check(key, row):
    return same_key(key, row.owner)


class SameKeyTest(SimpleTestCase):
    def test_uuid_and_string_compare_equal(self):
        key = uuid.uuid4()
        self.assertTrue(same_key(key, str(key)))

    def test_none_never_matches(self):
        self.assertFalse(same_key(None, None))
        self.assertFalse(same_key(None, "x"))

    def test_actor_key(self):
        self.assertIsNone(actor_key(None))
        self.assertIsNone(actor_key(AnonymousUser()))
        self.assertEqual(actor_key(Actor("k1")), "k1")


class PolicyRegistryTest(SimpleTestCase):
    def setUp(self):
        self.registry = PolicyRegistry()
        self.registry.register(Policy("own select", Note, Operation.SELECT, owner_check))
        self.registry.register(Policy("own update", Note, Operation.UPDATE, owner_check))

    def test_no_permissive_policy_denies(self):
        self.assertFalse(self.registry.allows(Actor("k1"), Operation.INSERT, Note("k1")))

    def test_permissive_policies_are_ored(self):
        self.registry.register(
            Policy("public notes", Note, Operation.SELECT, lambda key, row: row.body == "public", public=True)
        )
        self.assertTrue(self.registry.allows(Actor("k2"), Operation.SELECT, Note("k1", body="public")))
        self.assertTrue(self.registry.allows(Actor("k1"), Operation.SELECT, Note("k1")))
        self.assertFalse(self.registry.allows(Actor("k2"), Operation.SELECT, Note("k1")))

    def test_anonymous_only_passes_public_policies(self):
        self.assertFalse(self.registry.allows(AnonymousUser(), Operation.SELECT, Note("k1")))

    def test_update_checks_stored_and_new_row(self):
        actor = Actor("k1")
        self.assertTrue(self.registry.allows(actor, Operation.UPDATE, Note("k1"), old=Note("k1")))
        # Taking over someone else's row
        self.assertFalse(self.registry.allows(actor, Operation.UPDATE, Note("k1"), old=Note("k2")))
        # Handing one's own row to someone else
        self.assertFalse(self.registry.allows(actor, Operation.UPDATE, Note("k2"), old=Note("k1")))

    def test_restrictive_policies_are_anded(self):
        self.registry.register(
            Policy(
                "locked notes stay locked",
                Note,
                Operation.UPDATE,
                lambda key, row, old: not (old and old.locked) or row.locked,
                restrictive=True,
                error_class=TransitionDenied,
            )
        )
        actor = Actor("k1")
        with self.assertRaises(TransitionDenied):
            self.registry.enforce(actor, Operation.UPDATE, Note("k1"), old=Note("k1", locked=True))
        self.registry.enforce(actor, Operation.UPDATE, Note("k1", locked=True), old=Note("k1"))

    def test_enforce_raises_policy_denied(self):
        with self.assertRaises(PolicyDenied) as ctx:
            self.registry.enforce(Actor("k2"), Operation.SELECT, Note("k1"))
        self.assertIn("tests.note", str(ctx.exception.detail))

    def test_register_is_idempotent_by_name(self):
        self.registry.register(Policy("own select", Note, Operation.SELECT, owner_check))
        self.assertEqual(len(self.registry.policies_for(Note, Operation.SELECT)), 1)


class PermissionClassTest(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.owner = User.objects.create_user(email="m1@x.edu", password="pass")
        self.other = User.objects.create_user(email="u2@x.edu", password="pass")
        self.merchant = become_merchant(self.owner, shop_name="Campus Prints")

    def _request(self, method, user):
        request = Request(getattr(self.factory, method)("/"))
        request.user = user
        return request

    def test_public_read(self):
        perm = PublicReadOrAuthenticated()
        self.assertTrue(perm.has_permission(self._request("get", AnonymousUser()), None))
        self.assertFalse(perm.has_permission(self._request("post", AnonymousUser()), None))
        self.assertTrue(perm.has_permission(self._request("post", self.other), None))

    def test_row_policy_read(self):
        perm = RowPolicyPermission()
        deactivate_merchant(self.owner, self.merchant)
        self.assertTrue(perm.has_object_permission(self._request("get", self.owner), None, self.merchant))
        self.assertFalse(perm.has_object_permission(self._request("get", self.other), None, self.merchant))

    def test_row_policy_leaves_writes_to_services(self):
        perm = RowPolicyPermission()
        self.assertTrue(perm.has_object_permission(self._request("patch", self.other), None, self.merchant))
