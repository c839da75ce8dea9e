"""
Email Service - outbound notifications.

Delivery goes through Django's mail framework; the backend (SMTP or console)
is chosen in settings from the SMTP_* environment variables.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)

BRAND_NAME = "InvoiceDesk"


class EmailDeliveryError(Exception):
    pass


class EmailService:

    @staticmethod
    def smtp_configured() -> bool:
        return bool(getattr(settings, "SMTP_USER", "") and getattr(settings, "SMTP_PASS", ""))

    @staticmethod
    def send_password_reset_email(email: str, reset_url: str) -> None:
        """
        Deliver the password reset link.

        Without SMTP credentials the console backend prints the message and the
        URL is also logged so it can be picked up in development.

        Raises:
            EmailDeliveryError: when the mail backend rejects the message
        """
        if not EmailService.smtp_configured():
            logger.warning("SMTP credentials missing. Falling back to console logging.")
            logger.info(f"Password reset requested for {email}: {reset_url}")

        context = {
            "brand": BRAND_NAME,
            "reset_url": reset_url,
            "expires_hours": settings.PASSWORD_RESET_TOKEN_HOURS,
        }

        try:
            send_mail(
                subject=f"Password Reset Request - {BRAND_NAME}",
                message=render_to_string("billing/emails/password_reset.txt", context),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[email],
                html_message=render_to_string("billing/emails/password_reset.html", context),
                fail_silently=False,
            )
        except Exception as e:
            logger.error(f"Error sending password reset email to {email}: {e}")
            raise EmailDeliveryError("Failed to send reset email. Please check your SMTP settings.") from e

        logger.info(f"Password reset email sent to {email}")
