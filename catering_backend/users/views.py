# users/views.py
"""
USER AUTH VIEWS

Staff accounts are provisioned by an admin, so there is no public
registration endpoint.

Security hardening:
- Targeted throttling for login (anon) and me (user).
- JWT login uses the Authorization header, so no csrf_exempt is needed.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from .serializers import LoginSerializer, UserSerializer

User = get_user_model()


# ---------------- THROTTLES (TARGETED) ----------------
class LoginAnonThrottle(AnonRateThrottle):
    scope = "anon"


class MeUserThrottle(UserRateThrottle):
    scope = "user"


# ---------------- LOGIN (JWT + EMAIL) ----------------
class LoginView(generics.GenericAPIView):
    serializer_class = LoginSerializer
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [LoginAnonThrottle]

    @extend_schema(
        request=LoginSerializer,
        responses={200: dict},
        description="Authenticate a staff member with email + password and issue a JWT pair",
    )
    def post(self, request):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data["email"].strip().lower()
        password = serializer.validated_data["password"]

        user = User.objects.filter(email__iexact=email).first()
        if user is None or not user.check_password(password):
            return Response(
                {"detail": "Invalid email or password"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if not user.is_active:
            return Response(
                {"detail": "User account is disabled"},
                status=status.HTTP_403_FORBIDDEN,
            )

        refresh = RefreshToken.for_user(user)

        return Response(
            {
                "access": str(refresh.access_token),
                "refresh": str(refresh),
                "user": UserSerializer(user).data,
            },
            status=status.HTTP_200_OK,
        )


# ---------------- CURRENT USER ----------------
class MeView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [MeUserThrottle]

    @extend_schema(responses={200: dict}, description="Current staff member + capabilities")
    def get(self, request):
        return Response(
            {
                "authenticated": True,
                "user": UserSerializer(request.user).data,
            },
            status=status.HTTP_200_OK,
        )
