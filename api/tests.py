"""API surface tests: health, schema, error mapping, upload validators."""
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError
from django.test import TestCase, override_settings
from rest_framework import serializers
from rest_framework.test import APIClient

from accounts.models import User
from core.exceptions import api_exception_handler

from .validators import validate_active_merchant, validate_pdf_upload


class HealthAndSchemaTest(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_health(self):
        r = self.client.get("/api/health/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"status": "ok"})

    def test_schema_is_public(self):
        r = self.client.get("/api/schema/")
        self.assertEqual(r.status_code, 200)

    def test_unknown_bucket_is_not_found(self):
        user = User.objects.create_user(email="u1@x.edu", password="pass")
        self.client.force_authenticate(user=user)
        r = self.client.get(f"/api/files/avatars/{user.pk}/me.png")
        self.assertEqual(r.status_code, 404)

    def test_orders_require_login(self):
        r = self.client.get("/api/orders/")
        self.assertEqual(r.status_code, 401)


class ExceptionHandlerTest(TestCase):
    def test_django_validation_error_is_bad_request(self):
        response = api_exception_handler(
            DjangoValidationError({"role": "Invalid role."}), {}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {"role": ["Invalid role."]})

    def test_integrity_error_is_conflict(self):
        response = api_exception_handler(IntegrityError("UNIQUE constraint failed"), {})
        self.assertEqual(response.status_code, 409)


class UploadValidatorTest(TestCase):
    def test_pdf_accepted(self):
        upload = SimpleUploadedFile("doc.pdf", b"%PDF-1.4", content_type="application/pdf")
        self.assertIs(validate_pdf_upload(upload), upload)

    def test_wrong_extension_rejected(self):
        upload = SimpleUploadedFile("doc.docx", b"%PDF-1.4", content_type="application/pdf")
        with self.assertRaises(serializers.ValidationError):
            validate_pdf_upload(upload)

    @override_settings(PRINT_FILES_MAX_BYTES=4)
    def test_size_limit(self):
        upload = SimpleUploadedFile("doc.pdf", b"%PDF-1.4", content_type="application/pdf")
        with self.assertRaises(serializers.ValidationError):
            validate_pdf_upload(upload)

    def test_missing_merchant_rejected(self):
        with self.assertRaises(serializers.ValidationError):
            validate_active_merchant(None)
