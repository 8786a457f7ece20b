"""Tests for merchants: one shop per profile, owner writes, visibility."""
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase
from rest_framework.test import APIClient

from accounts.models import AppRole, User
from core.exceptions import ConstraintViolation, PolicyDenied
from core.policies import Operation, registry
from core.rows import update_row

from .models import Merchant
from .services import become_merchant, create_merchant, deactivate_merchant, update_merchant


class MerchantServiceTest(TestCase):
    def setUp(self):
        self.m1 = User.objects.create_user(email="m1@x.edu", password="pass")
        self.u2 = User.objects.create_user(email="u2@x.edu", password="pass")

    def test_become_merchant_switches_role(self):
        merchant = become_merchant(self.m1, shop_name="Campus Prints", location="Library")
        self.m1.profile.refresh_from_db()
        self.assertEqual(self.m1.profile.role, AppRole.MERCHANT)
        self.assertEqual(merchant.user_id, self.m1.pk)
        self.assertTrue(merchant.is_active)

    def test_second_shop_for_same_profile_fails(self):
        become_merchant(self.m1, shop_name="Campus Prints")
        with self.assertRaises(ConstraintViolation):
            create_merchant(self.m1, self.m1.profile, shop_name="Second Shop")
        self.assertEqual(Merchant.objects.filter(user_id=self.m1.pk).count(), 1)

    def test_failed_become_merchant_keeps_role(self):
        become_merchant(self.m1, shop_name="Campus Prints")
        set_back = self.m1.profile
        set_back.role = AppRole.USER
        set_back.save()
        with self.assertRaises(ConstraintViolation):
            become_merchant(self.m1, shop_name="Second Shop")
        set_back.refresh_from_db()
        self.assertEqual(set_back.role, AppRole.USER)

    def test_shop_for_someone_else_denied(self):
        with self.assertRaises(PolicyDenied):
            create_merchant(self.u2, self.m1.profile, shop_name="Not Mine")

    def test_blank_shop_name_rejected_by_store(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            Merchant.objects.create(user=self.m1.profile, shop_name="")

    def test_owner_updates_shop(self):
        merchant = become_merchant(self.m1, shop_name="Campus Prints")
        update_merchant(self.m1, merchant, description="Color and B/W")
        merchant.refresh_from_db()
        self.assertEqual(merchant.description, "Color and B/W")

    def test_non_owner_update_denied(self):
        merchant = become_merchant(self.m1, shop_name="Campus Prints")
        with self.assertRaises(PolicyDenied):
            update_merchant(self.u2, merchant, shop_name="Taken Over")

    def test_owner_is_immutable(self):
        merchant = become_merchant(self.m1, shop_name="Campus Prints")
        with self.assertRaises(ConstraintViolation):
            update_row(self.m1, merchant, user=self.u2.profile)
        self.assertEqual(merchant.user_id, self.m1.pk)
        merchant.refresh_from_db()
        self.assertEqual(merchant.user_id, self.m1.pk)

    def test_unknown_field_rejected(self):
        merchant = become_merchant(self.m1, shop_name="Campus Prints")
        with self.assertRaises(ValidationError):
            update_merchant(self.m1, merchant, created_at=None)


class MerchantVisibilityTest(TestCase):
    def setUp(self):
        self.m1 = User.objects.create_user(email="m1@x.edu", password="pass")
        self.u2 = User.objects.create_user(email="u2@x.edu", password="pass")
        self.merchant = become_merchant(self.m1, shop_name="Campus Prints")

    def test_active_merchant_readable_by_anyone(self):
        self.assertTrue(registry.allows(AnonymousUser(), Operation.SELECT, self.merchant))
        self.assertTrue(registry.allows(self.u2, Operation.SELECT, self.merchant))

    def test_inactive_merchant_hidden_from_others(self):
        deactivate_merchant(self.m1, self.merchant)
        self.assertFalse(registry.allows(AnonymousUser(), Operation.SELECT, self.merchant))
        self.assertFalse(registry.allows(self.u2, Operation.SELECT, self.merchant))

    def test_inactive_merchant_visible_to_owner(self):
        deactivate_merchant(self.m1, self.merchant)
        self.assertTrue(registry.allows(self.m1, Operation.SELECT, self.merchant))
        self.assertIn(self.merchant, registry.scope(self.m1, Merchant.objects.all()))
        self.assertNotIn(self.merchant, registry.scope(self.u2, Merchant.objects.all()))


class MerchantAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.m1 = User.objects.create_user(email="m1@x.edu", password="pass")
        self.u2 = User.objects.create_user(email="u2@x.edu", password="pass")

    def test_become_merchant_endpoint(self):
        self.client.force_authenticate(user=self.m1)
        r = self.client.post("/api/merchants/", {"shop_name": "Campus Prints"}, format="json")
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["user"], str(self.m1.pk))
        r = self.client.post("/api/merchants/", {"shop_name": "Again"}, format="json")
        self.assertEqual(r.status_code, 409)

    def test_public_list_shows_active_only(self):
        become_merchant(self.m1, shop_name="Campus Prints")
        closed = become_merchant(self.u2, shop_name="Closed Shop")
        deactivate_merchant(self.u2, closed)
        r = self.client.get("/api/merchants/")
        self.assertEqual(r.status_code, 200)
        names = [m["shop_name"] for m in r.json()["results"]]
        self.assertEqual(names, ["Campus Prints"])

    def test_inactive_merchant_detail_forbidden_for_others(self):
        merchant = become_merchant(self.m1, shop_name="Campus Prints")
        deactivate_merchant(self.m1, merchant)
        self.client.force_authenticate(user=self.u2)
        r = self.client.get(f"/api/merchants/{merchant.pk}/")
        self.assertEqual(r.status_code, 403)
        self.client.force_authenticate(user=self.m1)
        r = self.client.get(f"/api/merchants/{merchant.pk}/")
        self.assertEqual(r.status_code, 200)

    def test_mine_and_deactivate(self):
        merchant = become_merchant(self.m1, shop_name="Campus Prints")
        self.client.force_authenticate(user=self.m1)
        r = self.client.get("/api/merchants/mine/")
        self.assertEqual(r.json()["id"], str(merchant.pk))
        r = self.client.post(f"/api/merchants/{merchant.pk}/deactivate/")
        self.assertEqual(r.status_code, 200)
        self.assertFalse(r.json()["is_active"])

    def test_non_owner_patch_forbidden(self):
        merchant = become_merchant(self.m1, shop_name="Campus Prints")
        self.client.force_authenticate(user=self.u2)
        r = self.client.patch(
            f"/api/merchants/{merchant.pk}/", {"shop_name": "Mine Now"}, format="json"
        )
        self.assertEqual(r.status_code, 403)
