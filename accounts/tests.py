"""Tests for identities, profile provisioning and profile policies."""
from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from core.exceptions import ConstraintViolation, PolicyDenied
from core.policies import Operation, registry

from .models import AppRole, Profile, User
from .services import InvalidRole, create_profile, set_role, signup_metadata, update_profile


class ProfileProvisioningTest(TestCase):
    def test_profile_created_with_identity(self):
        user = User.objects.create_user(email="a@x.edu", password="pass")
        profile = Profile.objects.get(pk=user.pk)
        self.assertEqual(profile.email, "a@x.edu")
        self.assertEqual(profile.role, AppRole.USER)
        self.assertEqual(profile.full_name, "")

    def test_exactly_one_profile_per_identity(self):
        user = User.objects.create_user(email="a@x.edu", password="pass")
        user.first_name = "Ada"
        user.save()
        self.assertEqual(Profile.objects.filter(pk=user.pk).count(), 1)

    def test_metadata_seeds_full_name_and_role(self):
        user = User.objects.create_user(
            email="m@x.edu",
            password="pass",
            metadata={"full_name": "Mary Print", "role": "merchant"},
        )
        self.assertEqual(user.profile.full_name, "Mary Print")
        self.assertEqual(user.profile.role, AppRole.MERCHANT)

    def test_invalid_role_rolls_back_identity(self):
        with self.assertRaises(InvalidRole):
            User.objects.create_user(
                email="bad@x.edu", password="pass", metadata={"role": "admin"}
            )
        self.assertFalse(User.objects.filter(email="bad@x.edu").exists())
        self.assertFalse(Profile.objects.filter(email="bad@x.edu").exists())

    def test_signup_metadata_drops_empty_values(self):
        self.assertEqual(
            signup_metadata({"full_name": "", "role": "user", "email": "a@x.edu"}),
            {"role": "user"},
        )


class ProfilePolicyTest(TestCase):
    def setUp(self):
        self.u1 = User.objects.create_user(email="u1@x.edu", password="pass")
        self.u2 = User.objects.create_user(email="u2@x.edu", password="pass")
        self.profile = self.u1.profile

    def test_owner_can_read(self):
        self.assertTrue(registry.allows(self.u1, Operation.SELECT, self.profile))

    def test_other_identity_cannot_read(self):
        self.assertFalse(registry.allows(self.u2, Operation.SELECT, self.profile))

    def test_scope_lists_only_own_profile(self):
        visible = registry.scope(self.u2, Profile.objects.all())
        self.assertEqual(list(visible.values_list("pk", flat=True)), [self.u2.pk])

    def test_owner_can_update(self):
        update_profile(self.u1, self.profile, full_name="Uno")
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.full_name, "Uno")

    def test_other_identity_cannot_update(self):
        with self.assertRaises(PolicyDenied):
            update_profile(self.u2, self.profile, full_name="Hijacked")
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.full_name, "")

    def test_role_not_editable_through_update_profile(self):
        with self.assertRaises(ValidationError):
            update_profile(self.u1, self.profile, role=AppRole.MERCHANT)

    def test_set_role_rejects_unknown_role(self):
        with self.assertRaises(InvalidRole):
            set_role(self.u1, self.profile, "admin")

    def test_insert_for_someone_else_denied(self):
        with self.assertRaises(PolicyDenied):
            create_profile(self.u2, user_id=self.u1.pk, email="u1@x.edu")

    def test_insert_existing_own_profile_conflicts(self):
        with self.assertRaises(ConstraintViolation):
            create_profile(self.u1, user_id=self.u1.pk, email="u1@x.edu")


class AuthAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_provisions_profile(self):
        r = self.client.post(
            "/api/auth/register/",
            {"email": "new@x.edu", "password": "s3cret-pass", "full_name": "New Person"},
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        profile = Profile.objects.get(email="new@x.edu")
        self.assertEqual(profile.full_name, "New Person")
        self.assertEqual(profile.role, AppRole.USER)

    def test_register_merchant_requires_shop_name(self):
        r = self.client.post(
            "/api/auth/register/",
            {"email": "shop@x.edu", "password": "s3cret-pass", "role": "merchant"},
            format="json",
        )
        self.assertEqual(r.status_code, 400)
        self.assertFalse(User.objects.filter(email="shop@x.edu").exists())

    def test_register_merchant_opens_shop(self):
        r = self.client.post(
            "/api/auth/register/",
            {
                "email": "shop@x.edu",
                "password": "s3cret-pass",
                "role": "merchant",
                "shop_name": "Campus Prints",
            },
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        profile = Profile.objects.get(email="shop@x.edu")
        self.assertTrue(profile.is_merchant)
        self.assertEqual(profile.merchant.shop_name, "Campus Prints")

    def test_token_carries_role(self):
        User.objects.create_user(email="t@x.edu", password="s3cret-pass")
        r = self.client.post(
            "/api/auth/token/",
            {"email": "t@x.edu", "password": "s3cret-pass"},
            format="json",
        )
        self.assertEqual(r.status_code, 200)
        self.assertIn("access", r.json())

    def test_profile_me(self):
        user = User.objects.create_user(email="me@x.edu", password="pass")
        self.client.force_authenticate(user=user)
        r = self.client.get("/api/profiles/me/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["id"], str(user.pk))
        r = self.client.patch("/api/profiles/me/", {"full_name": "Me"}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["full_name"], "Me")

    def test_read_other_profile_is_forbidden_not_missing(self):
        owner = User.objects.create_user(email="o@x.edu", password="pass")
        other = User.objects.create_user(email="x@x.edu", password="pass")
        self.client.force_authenticate(user=other)
        r = self.client.get(f"/api/profiles/{owner.pk}/")
        self.assertEqual(r.status_code, 403)

    def test_insert_existing_profile_returns_conflict(self):
        user = User.objects.create_user(email="dup@x.edu", password="pass")
        self.client.force_authenticate(user=user)
        r = self.client.post("/api/profiles/", {"email": "dup@x.edu"}, format="json")
        self.assertEqual(r.status_code, 409)
