"""
Authentication Services

Account registration, login, bearer session tokens and the password reset
flow. Passwords only ever exist as Django password hashes.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from billing.models import UserProfile
from billing.validation import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    TokenInvalidError,
    ValidationError,
)
from billing.validation.errors import ErrorCode, FieldError

from .email_service import EmailService

logger = logging.getLogger(__name__)
User = get_user_model()

DEFAULT_FRONTEND_URL = "http://localhost:5173"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _check_password_policy(password: str, user=None) -> None:
    try:
        validate_password(password, user=user)
    except DjangoValidationError as e:
        raise ValidationError(
            message="Password does not meet requirements",
            fields=[
                FieldError(field="password", code=ErrorCode.FIELD_INVALID.value, message=message)
                for message in e.messages
            ],
        )


class AuthService:

    @staticmethod
    def issue_token(user) -> str:
        """Signed session token; the ``id`` claim carries the user id."""
        now = timezone.now()
        payload = {
            "id": user.id,
            "iat": now,
            "exp": now + timedelta(days=settings.JWT_EXPIRES_DAYS),
        }
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> int:
        """
        Return the user id a token was issued for.

        Raises:
            jwt.InvalidTokenError: bad signature, malformed or expired token
        """
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        user_id = payload.get("id")
        if user_id is None:
            raise jwt.InvalidTokenError("Token has no subject")
        return user_id

    @classmethod
    def register(cls, email: str, password: str, company_profile: Optional[Dict[str, Any]] = None) -> Tuple[Any, str]:
        email = normalize_email(email)
        if User.objects.filter(username=email).exists() or User.objects.filter(email__iexact=email).exists():
            raise ConflictError("User already exists")

        _check_password_policy(password, user=User(username=email, email=email))

        try:
            with transaction.atomic():
                user = User(username=email, email=email)
                user.set_password(password)
                user.save()

                profile = UserProfile(user=user)
                profile.replace_company_profile(company_profile or {})
                profile.save()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            raise ConflictError("User already exists")

        logger.info(f"User {user.id} registered")
        return user, cls.issue_token(user)

    @classmethod
    def login(cls, email: str, password: str) -> Tuple[Any, str]:
        email = normalize_email(email)
        user = User.objects.filter(username=email).first()

        if user is None or not user.is_active or not user.check_password(password or ""):
            logger.warning(f"Failed login attempt for {email}")
            raise InvalidCredentialsError("Invalid credentials")

        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])
        logger.info(f"User {user.id} logged in")
        return user, cls.issue_token(user)

    @staticmethod
    def build_reset_url(token: str, origin: Optional[str] = None) -> str:
        base_url = settings.FRONTEND_URL or origin or DEFAULT_FRONTEND_URL
        return f"{base_url.rstrip('/')}/reset-password?token={token}"

    @classmethod
    def request_password_reset(cls, email: str, origin: Optional[str] = None) -> None:
        email = normalize_email(email)
        user = User.objects.filter(username=email).first()
        if user is None:
            raise NotFoundError("User not found")

        profile = ProfileService.get_profile(user)
        token = profile.issue_reset_token(hours=settings.PASSWORD_RESET_TOKEN_HOURS)
        logger.info(f"Password reset token issued for user {user.id}")

        EmailService.send_password_reset_email(email, cls.build_reset_url(token, origin))

    @staticmethod
    @transaction.atomic
    def complete_password_reset(token: str, new_password: str):
        profile = None
        if token:
            profile = (
                UserProfile.objects.select_for_update()
                .select_related("user")
                .filter(reset_token=token, reset_token_expires__gt=timezone.now())
                .first()
            )
        if profile is None:
            logger.warning("Password reset attempted with an invalid or expired token")
            raise TokenInvalidError("Token is invalid or has expired")

        user = profile.user
        _check_password_policy(new_password, user=user)
        user.set_password(new_password)
        user.save(update_fields=["password"])
        profile.clear_reset_token()

        logger.info(f"Password reset completed for user {user.id}")
        return user


class ProfileService:

    @staticmethod
    def get_profile(user) -> UserProfile:
        profile, created = UserProfile.objects.get_or_create(user=user)
        if created:
            logger.info(f"Created missing profile for user {user.id}")
        return profile

    @classmethod
    def update_company_profile(cls, user, company_profile: Dict[str, Any]) -> UserProfile:
        """Replace the company profile sub-document wholesale."""
        profile = cls.get_profile(user)
        profile.replace_company_profile(company_profile or {})
        profile.save()
        logger.info(f"Company profile updated for user {user.id}")
        return profile
