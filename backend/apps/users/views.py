"""
Login endpoint: exchanges credentials for a JWT access token.

Registration and role assignment happen outside this service.
"""

import logging

from django.contrib.auth import authenticate
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from core.exceptions import error_response
from apps.users.serializers import LoginSerializer, UserSerializer

logger = logging.getLogger(__name__)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def login(request):
    """
    POST /api/v1/auth/login

    Authenticate an actor and return a JWT access token.
    """
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = authenticate(
        request,
        username=serializer.validated_data["username"],
        password=serializer.validated_data["password"],
    )
    if user is None:
        logger.warning(
            "login_failed",
            extra={
                "operation": "LOGIN",
                "username": serializer.validated_data["username"],
            },
        )
        return error_response(
            "UNAUTHORIZED", "Invalid credentials", status.HTTP_401_UNAUTHORIZED
        )

    refresh = RefreshToken.for_user(user)
    logger.info("login_succeeded", extra={"operation": "LOGIN", "entity_id": str(user.id)})
    return Response(
        {
            "data": {
                "token": str(refresh.access_token),
                "refreshToken": str(refresh),
                "user": UserSerializer(user).data,
            }
        },
        status=status.HTTP_200_OK,
    )
