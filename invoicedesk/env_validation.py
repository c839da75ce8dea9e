import os
import logging
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)

# Needed in every environment; the app cannot serve a single request without them
REQUIRED_ENV_VARS = [
    "DATABASE_URL",
]

# Mandatory environment variables for production
REQUIRED_PRODUCTION_ENV_VARS = [
    "SECRET_KEY",
    "JWT_SECRET",
]


def validate_env():
    """
    Validate critical environment variables for Django settings.
    Runs at settings import; a missing database string aborts startup.
    """
    is_production = os.getenv("PRODUCTION", "false").lower() == "true"

    missing = [var for var in REQUIRED_ENV_VARS if not os.getenv(var, "").strip()]
    if missing:
        error_msg = f"CRITICAL: Missing required environment variables: {', '.join(missing)}"
        logger.critical(error_msg)
        raise ImproperlyConfigured(error_msg)

    secret_key = os.getenv("SECRET_KEY")
    if not secret_key:
        if is_production:
            raise ImproperlyConfigured("CRITICAL: SECRET_KEY is required in production.")
        logger.warning("SECRET_KEY not set, using insecure default for development.")

    if not os.getenv("JWT_SECRET") and not is_production:
        logger.warning("JWT_SECRET not set, signing session tokens with SECRET_KEY.")

    if is_production:
        missing = [var for var in REQUIRED_PRODUCTION_ENV_VARS if not os.getenv(var)]
        if missing:
            error_msg = f"CRITICAL: Missing required environment variables in production: {', '.join(missing)}"
            logger.critical(error_msg)
            raise ImproperlyConfigured(error_msg)

        # Enforce secure SECRET_KEY
        if secret_key and (secret_key.startswith("django-insecure") or len(secret_key) < 50):
            error_msg = "CRITICAL: SECRET_KEY must be a long, secure string in production"
            logger.critical(error_msg)
            raise ImproperlyConfigured(error_msg)

        if len(os.getenv("JWT_SECRET", "")) < 32:
            error_msg = "CRITICAL: JWT_SECRET must be at least 32 characters in production"
            logger.critical(error_msg)
            raise ImproperlyConfigured(error_msg)

    if not (os.getenv("SMTP_USER") and os.getenv("SMTP_PASS")):
        logger.warning("SMTP credentials missing. Password reset emails will be written to the console.")

    logger.info("Environment validation passed successfully")
