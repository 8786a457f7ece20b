from rest_framework import generics
from rest_framework.permissions import AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView

from .serializers import EmailTokenObtainPairSerializer, UserCreateSerializer, UserSerializer


class RegisterView(generics.CreateAPIView):
    """Create an identity; its profile is provisioned automatically."""

    permission_classes = [AllowAny]
    serializer_class = UserCreateSerializer


class EmailTokenObtainPairView(TokenObtainPairView):
    serializer_class = EmailTokenObtainPairSerializer
    permission_classes = [AllowAny]


class MeView(generics.RetrieveAPIView):
    """Current identity."""

    serializer_class = UserSerializer

    def get_object(self):
        return self.request.user
