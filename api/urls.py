"""
API URL configuration with DRF routers.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r"profiles", views.ProfileViewSet, basename="profile")
router.register(r"merchants", views.MerchantViewSet, basename="merchant")
router.register(r"orders", views.PrintOrderViewSet, basename="order")

urlpatterns = [
    # Before the router so "me" is not taken for a profile id
    path("profiles/me/", views.ProfileMeView.as_view(), name="profile-me"),
    path("", include(router.urls)),
    path("files/", views.FileUploadView.as_view(), name="file-upload"),
    path("files/<str:bucket>/<path:name>", views.FileObjectView.as_view(), name="file-object"),
]
