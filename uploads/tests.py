"""Tests for the print-files bucket and its storage policies."""
import shutil
import tempfile
from unittest import mock

from django.conf import settings
from django.core.cache import cache
from django.core.files.base import ContentFile
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from accounts.models import User
from core.exceptions import PolicyDenied
from orders.services import create_order
from shops.services import become_merchant

from .buckets import (
    Bucket,
    BucketNotFound,
    InvalidObjectName,
    ObjectExists,
    ObjectTooLarge,
    build_object_key,
    first_path_segment,
    get_bucket,
    validate_object_name,
)
from .policies import PRINT_FILES
from .throttling import UploadRateThrottle

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def pdf_upload(name="doc.pdf", content=PDF_BYTES):
    return SimpleUploadedFile(name, content, content_type="application/pdf")


class TempBucketMixin:
    def setUp(self):
        super().setUp()
        root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, root, ignore_errors=True)
        storages = {
            **settings.STORAGES,
            PRINT_FILES: {
                "BACKEND": "django.core.files.storage.FileSystemStorage",
                "OPTIONS": {"location": root},
            },
        }
        override = override_settings(STORAGES=storages)
        override.enable()
        self.addCleanup(override.disable)


class ObjectNameTest(TestCase):
    def test_first_path_segment(self):
        self.assertEqual(first_path_segment("abc/doc.pdf"), "abc")
        self.assertEqual(first_path_segment("abc/sub/doc.pdf"), "abc")
        self.assertIsNone(first_path_segment("doc.pdf"))
        self.assertIsNone(first_path_segment(""))

    def test_invalid_names(self):
        for name in ("", "/abs/doc.pdf", "a/../b.pdf", "a//b.pdf", "a\\b.pdf"):
            with self.subTest(name=name), self.assertRaises(InvalidObjectName):
                validate_object_name(name)

    def test_build_object_key_uses_owner_prefix(self):
        key = build_object_key("owner-key", "Thesis Final.PDF")
        self.assertTrue(key.startswith("owner-key/"))
        self.assertTrue(key.endswith(".pdf"))
        self.assertNotEqual(key, build_object_key("owner-key", "Thesis Final.PDF"))

    def test_unknown_bucket(self):
        with self.assertRaises(BucketNotFound):
            get_bucket("avatars")

    def test_print_files_bucket_is_private_with_limit(self):
        bucket = get_bucket(PRINT_FILES)
        self.assertFalse(bucket.public)
        self.assertEqual(bucket.file_size_limit, 50 * 1024 * 1024)


class BucketPolicyTest(TempBucketMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.u1 = User.objects.create_user(email="u1@x.edu", password="pass")
        self.u2 = User.objects.create_user(email="u2@x.edu", password="pass")
        self.bucket = get_bucket(PRINT_FILES)

    def test_upload_under_own_prefix_and_read_back(self):
        name = f"{self.u1.pk}/doc.pdf"
        stored = self.bucket.upload(self.u1, name, ContentFile(PDF_BYTES))
        self.assertEqual(stored.name, name)
        with self.bucket.open(self.u1, name) as handle:
            self.assertEqual(handle.read(), PDF_BYTES)

    def test_forged_prefix_denied(self):
        with self.assertRaises(PolicyDenied):
            self.bucket.upload(self.u2, f"{self.u1.pk}/doc.pdf", ContentFile(PDF_BYTES))
        self.assertFalse(self.bucket.exists(f"{self.u1.pk}/doc.pdf"))

    def test_name_without_folder_denied(self):
        with self.assertRaises(PolicyDenied):
            self.bucket.upload(self.u1, "doc.pdf", ContentFile(PDF_BYTES))

    def test_other_identity_cannot_read(self):
        name = f"{self.u1.pk}/doc.pdf"
        self.bucket.upload(self.u1, name, ContentFile(PDF_BYTES))
        with self.assertRaises(PolicyDenied):
            self.bucket.open(self.u2, name)

    def test_existing_object_not_replaced(self):
        name = f"{self.u1.pk}/doc.pdf"
        self.bucket.upload(self.u1, name, ContentFile(PDF_BYTES))
        with self.assertRaises(ObjectExists):
            self.bucket.upload(self.u1, name, ContentFile(b"%PDF-other"))

    def test_oversized_object_rejected(self):
        small = Bucket(PRINT_FILES, file_size_limit=10)
        with self.assertRaises(ObjectTooLarge):
            small.upload(self.u1, f"{self.u1.pk}/doc.pdf", ContentFile(PDF_BYTES))

    def test_merchant_reads_files_of_its_orders_only(self):
        owner = User.objects.create_user(email="m1@x.edu", password="pass")
        merchant = become_merchant(owner, shop_name="Campus Prints")
        ordered = f"{self.u1.pk}/ordered.pdf"
        private = f"{self.u1.pk}/private.pdf"
        self.bucket.upload(self.u1, ordered, ContentFile(PDF_BYTES))
        self.bucket.upload(self.u1, private, ContentFile(PDF_BYTES))
        create_order(self.u1, merchant, file_name="ordered.pdf", file_url=self.bucket.url(ordered))

        with self.bucket.open(owner, ordered) as handle:
            self.assertEqual(handle.read(), PDF_BYTES)
        with self.assertRaises(PolicyDenied):
            self.bucket.open(owner, private)


class FileAPITest(TempBucketMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.u1 = User.objects.create_user(email="u1@x.edu", password="pass")
        self.u2 = User.objects.create_user(email="u2@x.edu", password="pass")

    def test_upload_generates_key_under_own_prefix(self):
        self.client.force_authenticate(user=self.u1)
        r = self.client.post("/api/files/", {"file": pdf_upload()}, format="multipart")
        self.assertEqual(r.status_code, 201)
        data = r.json()
        self.assertEqual(data["bucket"], PRINT_FILES)
        self.assertTrue(data["name"].startswith(f"{self.u1.pk}/"))
        self.assertEqual(data["size"], len(PDF_BYTES))

        r = self.client.get(data["url"])
        self.assertEqual(r.status_code, 200)
        self.assertEqual(b"".join(r.streaming_content), PDF_BYTES)

    def test_upload_with_forged_name_forbidden(self):
        self.client.force_authenticate(user=self.u2)
        r = self.client.post(
            "/api/files/",
            {"file": pdf_upload(), "name": f"{self.u1.pk}/doc.pdf"},
            format="multipart",
        )
        self.assertEqual(r.status_code, 403)

    def test_non_pdf_rejected(self):
        self.client.force_authenticate(user=self.u1)
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        r = self.client.post("/api/files/", {"file": upload}, format="multipart")
        self.assertEqual(r.status_code, 400)

    @override_settings(PRINT_FILES_MAX_BYTES=16)
    def test_pdf_over_limit_rejected(self):
        self.client.force_authenticate(user=self.u1)
        r = self.client.post("/api/files/", {"file": pdf_upload()}, format="multipart")
        self.assertEqual(r.status_code, 400)

    def test_download_of_someone_elses_file_forbidden(self):
        self.client.force_authenticate(user=self.u1)
        r = self.client.post(
            "/api/files/",
            {"file": pdf_upload(), "name": f"{self.u1.pk}/doc.pdf"},
            format="multipart",
        )
        self.assertEqual(r.status_code, 201)
        self.client.force_authenticate(user=self.u2)
        r = self.client.get(f"/api/files/{PRINT_FILES}/{self.u1.pk}/doc.pdf")
        self.assertEqual(r.status_code, 403)

    def test_anonymous_upload_unauthorized(self):
        r = self.client.post("/api/files/", {"file": pdf_upload()}, format="multipart")
        self.assertEqual(r.status_code, 401)

    def test_merchant_reads_order_file_with_spaced_name(self):
        owner = User.objects.create_user(email="m1@x.edu", password="pass")
        merchant = become_merchant(owner, shop_name="Campus Prints")
        self.client.force_authenticate(user=self.u1)
        r = self.client.post(
            "/api/files/",
            {"file": pdf_upload(), "name": f"{self.u1.pk}/my doc.pdf"},
            format="multipart",
        )
        self.assertEqual(r.status_code, 201)
        url = r.json()["url"]
        self.assertTrue(url.endswith("/my%20doc.pdf"))
        create_order(self.u1, merchant, file_name="my doc.pdf", file_url=url)

        self.client.force_authenticate(user=owner)
        r = self.client.get(url)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(b"".join(r.streaming_content), PDF_BYTES)

    def test_upload_rate_limited(self):
        cache.clear()
        self.addCleanup(cache.clear)
        self.client.force_authenticate(user=self.u1)
        with mock.patch.object(UploadRateThrottle, "rate", "1/min"):
            r = self.client.post("/api/files/", {"file": pdf_upload()}, format="multipart")
            self.assertEqual(r.status_code, 201)
            r = self.client.post("/api/files/", {"file": pdf_upload()}, format="multipart")
            self.assertEqual(r.status_code, 429)
