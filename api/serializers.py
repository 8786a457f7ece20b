"""
API serializers. Validation here is the caller-side check; authorization
and constraints are enforced again by the services and the store.
"""
from rest_framework import serializers

from accounts.models import Profile
from orders.choices import OrderStatus, next_statuses
from orders.models import PrintOrder
from shops.models import Merchant

from .validators import validate_active_merchant, validate_pdf_upload


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class ProfileSerializer(serializers.ModelSerializer):
    """Profile; owners may edit email and full_name."""

    id = serializers.UUIDField(source="pk", read_only=True)

    class Meta:
        model = Profile
        fields = ["id", "email", "full_name", "role", "created_at"]
        read_only_fields = ["id", "role", "created_at"]


class ProfileCreateSerializer(serializers.Serializer):
    """Insert a profile; id defaults to the requesting identity."""

    id = serializers.UUIDField(required=False)
    email = serializers.EmailField()
    full_name = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)


class ProfileSummarySerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="pk", read_only=True)

    class Meta:
        model = Profile
        fields = ["id", "email", "full_name"]


# ---------------------------------------------------------------------------
# Merchants
# ---------------------------------------------------------------------------


class MerchantSerializer(serializers.ModelSerializer):
    user = serializers.UUIDField(source="user_id", read_only=True)

    class Meta:
        model = Merchant
        fields = ["id", "user", "shop_name", "description", "location", "is_active", "created_at"]
        read_only_fields = ["id", "user", "created_at"]

    def validate_shop_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Shop name is required.")
        return value.strip()


class MerchantCreateSerializer(serializers.Serializer):
    """Elect merchant status and open a shop."""

    shop_name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    location = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)

    def validate_shop_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Shop name is required.")
        return value.strip()


class MerchantSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Merchant
        fields = ["id", "shop_name", "location"]


# ---------------------------------------------------------------------------
# Print orders
# ---------------------------------------------------------------------------


class PrintOrderReadSerializer(serializers.ModelSerializer):
    customer = ProfileSummarySerializer(source="user", read_only=True)
    merchant = MerchantSummarySerializer(read_only=True)
    next_statuses = serializers.SerializerMethodField()

    class Meta:
        model = PrintOrder
        fields = [
            "id",
            "customer",
            "merchant",
            "file_name",
            "file_url",
            "file_size",
            "pages",
            "copies",
            "notes",
            "status",
            "next_statuses",
            "created_at",
            "updated_at",
        ]

    def get_next_statuses(self, obj):
        return [str(s) for s in next_statuses(obj.status)]


class PrintOrderCreateSerializer(serializers.Serializer):
    """Submit a print job; status always starts pending."""

    merchant = serializers.PrimaryKeyRelatedField(queryset=Merchant.objects.all())
    file_name = serializers.CharField(max_length=255)
    file_url = serializers.CharField(max_length=1024)
    file_size = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    pages = serializers.IntegerField(required=False, allow_null=True, min_value=1, default=1)
    copies = serializers.IntegerField(required=False, min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def validate_merchant(self, value):
        validate_active_merchant(value)
        return value

    def validate_notes(self, value):
        return value or None


class PrintOrderUpdateSerializer(serializers.Serializer):
    file_name = serializers.CharField(required=False, max_length=255)
    file_url = serializers.CharField(required=False, max_length=1024)
    file_size = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    pages = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    copies = serializers.IntegerField(required=False, min_value=1)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    status = serializers.ChoiceField(required=False, choices=OrderStatus.choices)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class FileUploadSerializer(serializers.Serializer):
    """
    file: the PDF. name: object name inside the bucket; must start with the
    uploader's identity key. Built for the uploader when omitted.
    """

    file = serializers.FileField()
    name = serializers.CharField(required=False, max_length=512)

    def validate_file(self, value):
        validate_pdf_upload(value)
        return value


class StoredObjectSerializer(serializers.Serializer):
    bucket = serializers.CharField()
    name = serializers.CharField()
    size = serializers.IntegerField(allow_null=True)
    url = serializers.CharField()
