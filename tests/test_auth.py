"""
Authentication Tests
Registration, login, bearer tokens, password reset and the company profile.
"""
import re
from datetime import datetime, timedelta, timezone as dt_timezone
from unittest.mock import patch

import jwt
import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import mail
from django.test import override_settings

from billing.models import UserProfile
from billing.services import AuthService
from billing.validation import TokenInvalidError

from .conftest import bearer_client

User = get_user_model()

REGISTER_URL = "/api/auth/register"
LOGIN_URL = "/api/auth/login"
FORGOT_URL = "/api/auth/forgot-password"
RESET_URL = "/api/auth/reset-password"
PROFILE_URL = "/api/auth/profile"


@pytest.mark.django_db
class TestRegister:
    def test_register_returns_user_and_token(self, api_client, password):
        response = api_client.post(REGISTER_URL, {
            "email": "New.Person@Example.com",
            "password": password,
            "companyProfile": {"name": "Acme Pty Ltd", "abn": "11 222 333 444"},
        })

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "new.person@example.com"
        assert body["user"]["companyProfile"]["name"] == "Acme Pty Ltd"
        assert body["user"]["companyProfile"]["abn"] == "11 222 333 444"
        assert body["user"]["companyProfile"]["bsb"] == ""
        assert "password" not in body["user"]

        user = User.objects.get(email="new.person@example.com")
        assert AuthService.decode_token(body["token"]) == user.id
        assert user.check_password(password)
        assert user.password != password

    def test_duplicate_email_is_rejected_case_insensitively(self, api_client, user, password):
        response = api_client.post(REGISTER_URL, {"email": "OWNER@example.com", "password": password})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "RESOURCE_ALREADY_EXISTS"
        assert response.json()["error"]["message"] == "User already exists"
        assert User.objects.filter(email__iexact="owner@example.com").count() == 1

    def test_weak_password_is_rejected(self, api_client):
        response = api_client.post(REGISTER_URL, {"email": "weak@example.com", "password": "12345"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert {f["field"] for f in error["fields"]} == {"password"}
        assert not User.objects.filter(email="weak@example.com").exists()

    def test_missing_fields_report_field_errors(self, api_client):
        response = api_client.post(REGISTER_URL, {})

        assert response.status_code == 400
        fields = {f["field"] for f in response.json()["error"]["fields"]}
        assert fields == {"email", "password"}


@pytest.mark.django_db
class TestLogin:
    def test_login_success(self, api_client, user, password):
        response = api_client.post(LOGIN_URL, {"email": "Owner@Example.com", "password": password})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == user.id
        assert AuthService.decode_token(body["token"]) == user.id

    def test_wrong_password_and_unknown_email_fail_identically(self, api_client, user):
        wrong_password = api_client.post(LOGIN_URL, {"email": "owner@example.com", "password": "nope-nope-nope"})
        unknown_email = api_client.post(LOGIN_URL, {"email": "ghost@example.com", "password": "nope-nope-nope"})

        for response in (wrong_password, unknown_email):
            assert response.status_code == 400
            assert response.json()["error"] == {
                "code": "AUTHENTICATION_FAILED",
                "message": "Invalid credentials",
            }


@pytest.mark.django_db
class TestBearerToken:
    def test_missing_token_is_401(self, api_client):
        response = api_client.get("/api/invoices")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"

    def test_garbage_token_is_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        response = api_client.get("/api/invoices")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"

    def test_expired_token_is_401(self, api_client, user):
        issued = datetime.now(dt_timezone.utc) - timedelta(days=8)
        token = jwt.encode(
            {"id": user.id, "iat": issued, "exp": issued + timedelta(days=7)},
            settings.JWT_SECRET,
            algorithm="HS256",
        )
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        assert api_client.get("/api/invoices").status_code == 401

    def test_token_signed_with_other_secret_is_401(self, api_client, user):
        token = jwt.encode({"id": user.id}, "some-other-secret-entirely-000000", algorithm="HS256")
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        assert api_client.get("/api/invoices").status_code == 401

    def test_token_for_deleted_user_is_401(self, api_client, user):
        token = AuthService.issue_token(user)
        user.delete()
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        assert api_client.get("/api/invoices").status_code == 401

    def test_token_lifetime_is_configured_days(self, user):
        payload = jwt.decode(AuthService.issue_token(user), settings.JWT_SECRET, algorithms=["HS256"])

        assert payload["id"] == user.id
        assert payload["exp"] - payload["iat"] == settings.JWT_EXPIRES_DAYS * 24 * 60 * 60


@pytest.mark.django_db
class TestPasswordReset:
    def test_forgot_password_emails_reset_link(self, api_client, user):
        response = api_client.post(FORGOT_URL, {"email": "owner@example.com"})

        assert response.status_code == 200
        assert response.json() == {"message": "Password reset link sent to your email."}

        profile = UserProfile.objects.get(user=user)
        assert re.fullmatch(r"[0-9a-f]{40}", profile.reset_token)
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ["owner@example.com"]
        assert f"https://app.example.test/reset-password?token={profile.reset_token}" in mail.outbox[0].body
        # The token only travels by email
        assert profile.reset_token not in response.content.decode()

    def test_forgot_password_unknown_email_is_404(self, api_client):
        response = api_client.post(FORGOT_URL, {"email": "ghost@example.com"})

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "User not found"
        assert mail.outbox == []

    @override_settings(FRONTEND_URL="")
    def test_reset_url_falls_back_to_origin_then_localhost(self):
        assert AuthService.build_reset_url("abc", "https://web.example") == "https://web.example/reset-password?token=abc"
        assert AuthService.build_reset_url("abc") == "http://localhost:5173/reset-password?token=abc"

    def test_reset_sets_password_and_token_is_single_use(self, api_client, user):
        token = user.profile.issue_reset_token()

        first = api_client.post(RESET_URL, {"token": token, "password": "Brand-New-Pass-42"})
        second = api_client.post(RESET_URL, {"token": token, "password": "Another-Pass-43"})

        assert first.status_code == 200
        assert first.json() == {"message": "Password has been reset"}
        assert second.status_code == 400
        assert second.json()["error"]["code"] == "TOKEN_INVALID"
        assert second.json()["error"]["message"] == "Token is invalid or has expired"

        user.refresh_from_db()
        assert user.check_password("Brand-New-Pass-42")
        assert user.profile.reset_token is None
        assert user.profile.reset_token_expires is None

        login = api_client.post(LOGIN_URL, {"email": "owner@example.com", "password": "Brand-New-Pass-42"})
        assert login.status_code == 200

    def test_token_expires_exactly_one_hour_after_issue(self, user):
        issued_at = datetime(2026, 1, 5, 9, 0, tzinfo=dt_timezone.utc)
        with patch("django.utils.timezone.now", return_value=issued_at):
            token = user.profile.issue_reset_token()

        assert user.profile.reset_token_expires == issued_at + timedelta(hours=1)

        with patch("django.utils.timezone.now", return_value=issued_at + timedelta(hours=1)):
            with pytest.raises(TokenInvalidError):
                AuthService.complete_password_reset(token, "Brand-New-Pass-42")

    def test_token_still_valid_just_before_expiry(self, user):
        issued_at = datetime(2026, 1, 5, 9, 0, tzinfo=dt_timezone.utc)
        with patch("django.utils.timezone.now", return_value=issued_at):
            token = user.profile.issue_reset_token()

        with patch("django.utils.timezone.now", return_value=issued_at + timedelta(minutes=59, seconds=59)):
            AuthService.complete_password_reset(token, "Brand-New-Pass-42")

        user.refresh_from_db()
        assert user.check_password("Brand-New-Pass-42")

    def test_unknown_token_is_rejected(self, api_client):
        response = api_client.post(RESET_URL, {"token": "0" * 40, "password": "Brand-New-Pass-42"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "TOKEN_INVALID"


@pytest.mark.django_db
class TestProfile:
    def test_get_profile(self, auth_client, user):
        response = auth_client.get(PROFILE_URL)

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "owner@example.com"
        assert body["companyProfile"]["name"] == "Northwind Consulting Pty Ltd"
        assert body["companyProfile"]["bankName"] == "Commonwealth Bank"

    def test_put_replaces_company_profile(self, auth_client, user):
        response = auth_client.put(PROFILE_URL, {"companyProfile": {"name": "Renamed Co", "bsb": "012-003"}})

        assert response.status_code == 200
        company = response.json()["companyProfile"]
        assert company["name"] == "Renamed Co"
        assert company["bsb"] == "012-003"
        # Replaced wholesale, not merged
        assert company["bankName"] == ""

        user.profile.refresh_from_db()
        assert user.profile.company_name == "Renamed Co"

    def test_profile_is_created_for_users_without_one(self, db):
        bare = User.objects.create_user(username="bare@example.com", email="bare@example.com", password="x")

        response = bearer_client(bare).get(PROFILE_URL)

        assert response.status_code == 200
        assert UserProfile.objects.filter(user=bare).exists()

    def test_profile_requires_token(self, api_client):
        assert api_client.get(PROFILE_URL).status_code == 401

    def test_profile_does_not_touch_other_users(self, auth_client, other_user):
        auth_client.put(PROFILE_URL, {"companyProfile": {"name": "Mine"}})

        other_user.profile.refresh_from_db()
        assert other_user.profile.company_name == "Northwind Consulting Pty Ltd"
