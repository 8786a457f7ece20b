"""End-to-end marketplace scenarios over the REST API."""
import shutil
import tempfile

from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError, transaction
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from accounts.models import AppRole, Profile, User
from core.exceptions import ConstraintViolation
from orders.models import PrintOrder
from shops.models import Merchant
from shops.services import create_merchant

PDF_BYTES = b"%PDF-1.4\n%%EOF\n"


class IdentityScenarioTest(TestCase):
    def test_profile_appears_without_separate_insert(self):
        u1 = User.objects.create_user(email="a@x.edu", password="pass")
        profile = Profile.objects.get(pk=u1.pk)
        self.assertEqual(profile.email, "a@x.edu")
        self.assertEqual(profile.role, AppRole.USER)


class MerchantScenarioTest(TestCase):
    def test_second_merchant_for_same_profile_fails(self):
        m1 = User.objects.create_user(email="m1@x.edu", password="pass")
        client = APIClient()
        client.force_authenticate(user=m1)
        r = client.post("/api/merchants/", {"shop_name": "Campus Prints"}, format="json")
        self.assertEqual(r.status_code, 201)
        self.assertEqual(Profile.objects.get(pk=m1.pk).role, AppRole.MERCHANT)

        with self.assertRaises(ConstraintViolation):
            create_merchant(m1, m1.profile, shop_name="Campus Prints")
        with self.assertRaises(IntegrityError), transaction.atomic():
            Merchant.objects.create(user=m1.profile, shop_name="Campus Prints")
        self.assertEqual(Merchant.objects.filter(user_id=m1.pk).count(), 1)


class PrintJobScenarioTest(TestCase):
    def setUp(self):
        root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, root, ignore_errors=True)
        override = override_settings(
            STORAGES={
                **settings.STORAGES,
                "print-files": {
                    "BACKEND": "django.core.files.storage.FileSystemStorage",
                    "OPTIONS": {"location": root},
                },
            }
        )
        override.enable()
        self.addCleanup(override.disable)

        self.u1 = User.objects.create_user(email="u1@x.edu", password="pass")
        self.m1 = User.objects.create_user(email="m1@x.edu", password="pass")
        self.u2 = User.objects.create_user(email="u2@x.edu", password="pass")
        self.customer = APIClient()
        self.customer.force_authenticate(user=self.u1)
        self.shop = APIClient()
        self.shop.force_authenticate(user=self.m1)
        self.stranger = APIClient()
        self.stranger.force_authenticate(user=self.u2)

    def test_customer_merchant_and_stranger(self):
        r = self.shop.post("/api/merchants/", {"shop_name": "Campus Prints"}, format="json")
        merchant_id = r.json()["id"]

        upload = SimpleUploadedFile("doc.pdf", PDF_BYTES, content_type="application/pdf")
        r = self.customer.post(
            "/api/files/", {"file": upload, "name": f"{self.u1.pk}/doc.pdf"}, format="multipart"
        )
        self.assertEqual(r.status_code, 201)
        file_url = r.json()["url"]

        r = self.customer.post(
            "/api/orders/",
            {
                "merchant": merchant_id,
                "file_name": "doc.pdf",
                "file_url": file_url,
                "file_size": len(PDF_BYTES),
            },
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        order_id = r.json()["id"]
        self.assertEqual(r.json()["status"], "pending")

        # Merchant sees the order, its file, and moves it through the lifecycle
        r = self.shop.get("/api/orders/", {"as": "merchant"})
        self.assertEqual([o["id"] for o in r.json()["results"]], [order_id])
        r = self.shop.get(f"/api/orders/{order_id}/")
        self.assertEqual(r.status_code, 200)
        r = self.shop.get(file_url)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(b"".join(r.streaming_content), PDF_BYTES)

        r = self.shop.post(f"/api/orders/{order_id}/status/", {"status": "printing"}, format="json")
        self.assertEqual(r.status_code, 200)
        printing_at = PrintOrder.objects.get(pk=order_id).updated_at
        r = self.shop.post(f"/api/orders/{order_id}/status/", {"status": "completed"}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["status"], "completed")
        self.assertGreater(PrintOrder.objects.get(pk=order_id).updated_at, printing_at)

        # A third party can neither read nor update it, nor fetch the file
        self.assertEqual(self.stranger.get(f"/api/orders/{order_id}/").status_code, 403)
        r = self.stranger.patch(f"/api/orders/{order_id}/", {"notes": "mine"}, format="json")
        self.assertEqual(r.status_code, 403)
        self.assertEqual(self.stranger.get(file_url).status_code, 403)
        r = self.stranger.get("/api/orders/")
        self.assertEqual(r.json()["results"], [])
        self.assertIsNone(PrintOrder.objects.get(pk=order_id).notes)


class ConstraintScenarioTest(TestCase):
    def setUp(self):
        self.u1 = User.objects.create_user(email="u1@x.edu", password="pass")
        m1 = User.objects.create_user(email="m1@x.edu", password="pass")
        self.merchant = create_merchant(m1, m1.profile, shop_name="Campus Prints")

    def _create(self, **kwargs):
        with transaction.atomic():
            PrintOrder.objects.create(
                user=self.u1.profile,
                merchant=self.merchant,
                file_name="doc.pdf",
                file_url=f"/api/files/print-files/{self.u1.pk}/doc.pdf",
                **kwargs,
            )

    def test_zero_copies_rejected_by_store(self):
        with self.assertRaises(IntegrityError):
            self._create(copies=0)

    def test_unknown_status_rejected_by_store(self):
        with self.assertRaises(IntegrityError):
            self._create(status="shipped")
        self.assertFalse(PrintOrder.objects.exists())
