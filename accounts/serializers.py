from django.db import transaction
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import AppRole, User
from .services import signup_metadata


class UserSerializer(serializers.ModelSerializer):
    """The identity itself (not the profile)."""

    class Meta:
        model = User
        fields = ["id", "email", "metadata", "is_active", "date_joined"]
        read_only_fields = fields


class UserCreateSerializer(serializers.ModelSerializer):
    """
    Identity registration. full_name and role become signup metadata; a
    merchant signup with shop_name also opens the merchant's shop.
    """

    password = serializers.CharField(write_only=True, min_length=8)
    full_name = serializers.CharField(write_only=True, required=False, allow_blank=True, max_length=255)
    role = serializers.ChoiceField(write_only=True, required=False, choices=AppRole.choices)
    shop_name = serializers.CharField(write_only=True, required=False, allow_blank=True, max_length=255)

    class Meta:
        model = User
        fields = ["id", "email", "password", "full_name", "role", "shop_name"]
        read_only_fields = ["id"]

    def validate(self, attrs):
        if attrs.get("role") == AppRole.MERCHANT and not attrs.get("shop_name", "").strip():
            raise serializers.ValidationError({"shop_name": "Shop name is required for merchants."})
        return attrs

    def create(self, validated_data):
        from shops.services import become_merchant

        shop_name = validated_data.pop("shop_name", "").strip()
        metadata = signup_metadata(validated_data)
        validated_data.pop("full_name", None)
        validated_data.pop("role", None)
        with transaction.atomic():
            user = User.objects.create_user(metadata=metadata, **validated_data)
            if shop_name:
                become_merchant(user, shop_name=shop_name)
        return user


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    """JWT login by email (User.USERNAME_FIELD); the profile role rides along as a claim."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        profile = getattr(user, "profile", None)
        token["role"] = profile.role if profile is not None else AppRole.USER
        return token
