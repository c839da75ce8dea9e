"""
InvoiceDesk - WSGI Application

This module:
- Builds the WSGI application
- Opens the database connection once so a bad DATABASE_URL fails at startup
"""

import os
import sys
import logging

# Configure logging early for startup diagnostics
logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "invoicedesk.settings")

try:
    from django.core.wsgi import get_wsgi_application
    application = get_wsgi_application()
except Exception as e:
    logger.critical(f"Failed to initialize Django WSGI: {e}")
    sys.exit(1)

try:
    from django.db import connection
    connection.ensure_connection()
    logger.info("Database connection established")
except Exception as e:
    logger.critical(f"Database connection failed: {e}")
    sys.exit(1)
