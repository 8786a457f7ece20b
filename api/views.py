"""
DRF viewsets and API views.

Detail lookups are unfiltered and then checked against the row-level
policies, so a row the caller may not touch answers 403, not 404. List
endpoints are filtered to the visible rows. Writes go through the services.
"""
from django.http import FileResponse
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import Profile
from accounts.services import create_profile, update_profile
from core.permissions import PublicReadOrAuthenticated, RowPolicyPermission
from core.policies import registry
from orders.filters import PrintOrderFilter
from orders.models import PrintOrder
from orders.services import (
    cancel_order,
    create_order,
    orders_for_actor,
    set_order_status,
    update_order,
)
from shops.models import Merchant
from shops.services import become_merchant, deactivate_merchant, update_merchant
from uploads.buckets import build_object_key, get_bucket
from uploads.policies import PRINT_FILES
from uploads.throttling import UploadRateThrottle

from .serializers import (
    FileUploadSerializer,
    MerchantCreateSerializer,
    MerchantSerializer,
    OrderStatusSerializer,
    PrintOrderCreateSerializer,
    PrintOrderReadSerializer,
    PrintOrderUpdateSerializer,
    ProfileCreateSerializer,
    ProfileSerializer,
    StoredObjectSerializer,
)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class ProfileMeView(APIView):
    """GET/PATCH /api/profiles/me/: the requesting identity's profile."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        profile = get_object_or_404(Profile, pk=request.user.pk)
        return Response(ProfileSerializer(profile).data)

    def patch(self, request):
        profile = get_object_or_404(Profile, pk=request.user.pk)
        serializer = ProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        update_profile(request.user, profile, **serializer.validated_data)
        return Response(ProfileSerializer(profile).data)


class ProfileViewSet(viewsets.GenericViewSet):
    """
    POST /api/profiles/: insert own profile (409 when it already exists).
    GET/PATCH /api/profiles/{id}/: only the owner.
    """

    queryset = Profile.objects.all()
    serializer_class = ProfileSerializer
    permission_classes = [IsAuthenticated, RowPolicyPermission]

    def list(self, request):
        profiles = registry.scope(request.user, self.get_queryset())
        return Response(ProfileSerializer(profiles, many=True).data)

    def create(self, request):
        serializer = ProfileCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        profile = create_profile(
            request.user,
            user_id=data.get("id", request.user.pk),
            email=data["email"],
            full_name=data.get("full_name"),
        )
        return Response(ProfileSerializer(profile).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(ProfileSerializer(self.get_object()).data)

    def partial_update(self, request, pk=None):
        profile = self.get_object()
        serializer = ProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        update_profile(request.user, profile, **serializer.validated_data)
        return Response(ProfileSerializer(profile).data)


# ---------------------------------------------------------------------------
# Merchants
# ---------------------------------------------------------------------------


class MerchantViewSet(viewsets.GenericViewSet):
    """
    GET /api/merchants/: active shops (plus the caller's own).
    POST /api/merchants/: caller becomes a merchant and opens a shop.
    GET /api/merchants/mine/: caller's shop.
    GET/PATCH /api/merchants/{id}/, POST /api/merchants/{id}/deactivate/.
    """

    queryset = Merchant.objects.all()
    serializer_class = MerchantSerializer
    permission_classes = [PublicReadOrAuthenticated, RowPolicyPermission]
    filterset_fields = ["location", "is_active"]

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action == "list":
            return registry.scope(self.request.user, qs)
        return qs

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(MerchantSerializer(page, many=True).data)
        return Response(MerchantSerializer(queryset, many=True).data)

    def create(self, request):
        serializer = MerchantCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        merchant = become_merchant(request.user, **serializer.validated_data)
        return Response(MerchantSerializer(merchant).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(MerchantSerializer(self.get_object()).data)

    def partial_update(self, request, pk=None):
        merchant = self.get_object()
        serializer = MerchantSerializer(merchant, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        update_merchant(request.user, merchant, **serializer.validated_data)
        return Response(MerchantSerializer(merchant).data)

    @action(detail=False, methods=["get"], url_path="mine", permission_classes=[IsAuthenticated])
    def mine(self, request):
        merchant = get_object_or_404(Merchant.objects.owned_by(request.user))
        return Response(MerchantSerializer(merchant).data)

    @action(detail=True, methods=["post"], url_path="deactivate")
    def deactivate(self, request, pk=None):
        merchant = deactivate_merchant(request.user, self.get_object())
        return Response(MerchantSerializer(merchant).data)


# ---------------------------------------------------------------------------
# Print orders
# ---------------------------------------------------------------------------


class PrintOrderViewSet(viewsets.GenericViewSet):
    """
    Customer: POST /api/orders/ (submit), GET /api/orders/?as=customer.
    Merchant: GET /api/orders/?as=merchant, POST /api/orders/{id}/status/.
    Either party: GET/PATCH /api/orders/{id}/, POST /api/orders/{id}/cancel/.
    """

    queryset = PrintOrder.objects.select_related("user", "merchant")
    serializer_class = PrintOrderReadSerializer
    permission_classes = [IsAuthenticated, RowPolicyPermission]
    filterset_class = PrintOrderFilter

    def get_queryset(self):
        if self.action == "list":
            return orders_for_actor(self.request.user, role=self.request.query_params.get("as"))
        return super().get_queryset()

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(PrintOrderReadSerializer(page, many=True).data)
        return Response(PrintOrderReadSerializer(queryset, many=True).data)

    def create(self, request):
        serializer = PrintOrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = create_order(request.user, **serializer.validated_data)
        return Response(PrintOrderReadSerializer(order).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(PrintOrderReadSerializer(self.get_object()).data)

    def partial_update(self, request, pk=None):
        order = self.get_object()
        serializer = PrintOrderUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        update_order(request.user, order, **serializer.validated_data)
        return Response(PrintOrderReadSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        order = self.get_object()
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        set_order_status(request.user, order, serializer.validated_data["status"])
        return Response(PrintOrderReadSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        order = cancel_order(request.user, self.get_object())
        return Response(PrintOrderReadSerializer(order).data)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class FileUploadView(APIView):
    """POST /api/files/: upload a PDF into the print-files bucket."""

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]
    throttle_classes = [UploadRateThrottle]

    def post(self, request):
        serializer = FileUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        upload = serializer.validated_data["file"]
        name = serializer.validated_data.get("name") or build_object_key(request.user.pk, upload.name)
        bucket = get_bucket(PRINT_FILES)
        stored = bucket.upload(request.user, name, upload)
        data = {
            "bucket": stored.bucket,
            "name": stored.name,
            "size": stored.size,
            "url": bucket.url(stored.name),
        }
        return Response(StoredObjectSerializer(data).data, status=status.HTTP_201_CREATED)


class FileObjectView(APIView):
    """GET /api/files/{bucket}/{name}: download, if a storage policy allows it."""

    permission_classes = [IsAuthenticated]

    def get(self, request, bucket, name):
        handle = get_bucket(bucket).open(request.user, name)
        return FileResponse(handle, filename=name.rsplit("/", 1)[-1])
