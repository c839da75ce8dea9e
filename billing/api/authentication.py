"""Bearer session-token authentication for the REST API."""

import logging

import jwt
from django.contrib.auth import get_user_model
from drf_spectacular.extensions import OpenApiAuthenticationExtension
from rest_framework import authentication, exceptions

from billing.services.auth_service import AuthService

logger = logging.getLogger(__name__)
User = get_user_model()


class BearerTokenAuthentication(authentication.BaseAuthentication):
    """
    ``Authorization: Bearer <token>``.

    Requests without the header stay anonymous (and fail the permission check
    with 401); a present but bad or expired token fails authentication outright.
    """

    keyword = "Bearer"

    def authenticate(self, request):
        auth = authentication.get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise exceptions.AuthenticationFailed("Not authorized, token failed")

        try:
            token = auth[1].decode()
            user_id = AuthService.decode_token(token)
        except (UnicodeError, jwt.InvalidTokenError) as e:
            logger.warning(f"Rejected bearer token: {e}")
            raise exceptions.AuthenticationFailed("Not authorized, token failed")

        user = User.objects.filter(id=user_id, is_active=True).first()
        if user is None:
            raise exceptions.AuthenticationFailed("Not authorized, token failed")
        return user, token

    def authenticate_header(self, request):
        return self.keyword


class BearerTokenScheme(OpenApiAuthenticationExtension):
    target_class = "billing.api.authentication.BearerTokenAuthentication"
    name = "bearerAuth"

    def get_security_definition(self, auto_schema):
        return {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
