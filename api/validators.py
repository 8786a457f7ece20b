"""
Submission validators run before anything reaches the store: the uploaded
document must be a PDF within the size limit, and orders may only go to an
active merchant.
"""
from django.conf import settings
from rest_framework import serializers

PDF_CONTENT_TYPE = "application/pdf"


def validate_pdf_upload(upload):
    """Only PDF documents up to PRINT_FILES_MAX_BYTES are accepted."""
    content_type = getattr(upload, "content_type", "") or ""
    if content_type != PDF_CONTENT_TYPE or not upload.name.lower().endswith(".pdf"):
        raise serializers.ValidationError("Please upload a PDF file.")
    limit = settings.PRINT_FILES_MAX_BYTES
    if upload.size > limit:
        raise serializers.ValidationError(
            f"Maximum file size is {limit // (1024 * 1024)}MB."
        )
    return upload


def validate_active_merchant(merchant):
    if merchant is None or not merchant.is_active:
        raise serializers.ValidationError("Merchant must be active.")
    return merchant
