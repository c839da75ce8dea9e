"""
InvoiceDesk - Gunicorn WSGI Server Configuration
================================================

Threaded workers in front of the Django application. The database connection
lifecycle is explicit: checked once when the app is loaded (wsgi.py), opened
again in every forked worker, and closed when a worker exits.
"""

import multiprocessing
import os
import logging

IS_PRODUCTION = os.getenv("PRODUCTION", "false").lower() == "true"

logging.basicConfig(
    level=logging.INFO if IS_PRODUCTION else logging.DEBUG,
    format='[%(asctime)s] %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# =============================================================================
# SERVER BINDING
# =============================================================================

PORT = int(os.getenv("PORT", 5000))
bind = [f"0.0.0.0:{PORT}"]


# =============================================================================
# WORKERS
# =============================================================================

def calculate_workers():
    cpu_count = multiprocessing.cpu_count()
    return min((cpu_count * 2) + 1, 9)


workers = int(os.getenv("WEB_CONCURRENCY", calculate_workers()))
worker_class = "gthread"
threads = int(os.getenv("GUNICORN_THREADS", 4))

max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", 1000))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", 100))

# PDF rendering holds a worker thread for the whole request
timeout = 120
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", 10))
keepalive = 5

limit_request_line = 8190
limit_request_fields = 100
limit_request_field_size = 8190

preload_app = True
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")


# =============================================================================
# LOGGING
# =============================================================================

accesslog = "-"
errorlog = "-"
loglevel = "info" if IS_PRODUCTION else "debug"
capture_output = True

access_log_format = (
    '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s '
    '"%(f)s" "%(a)s" response_time=%(D)s_us worker_id=%(p)s'
)

proc_name = "invoicedesk"


# =============================================================================
# LIFECYCLE HOOKS
# =============================================================================

def when_ready(server):
    logger.info(f"Gunicorn ready at {server.address} with {workers} workers")


def post_fork(server, worker):
    """Connections opened before the fork must not be shared; open a fresh one per worker."""
    from django.db import connections

    connections.close_all()
    try:
        connections["default"].ensure_connection()
        logger.info(f"Worker {worker.pid}: database connection opened")
    except Exception as e:
        logger.error(f"Worker {worker.pid}: database connection failed: {e}")
        raise


def worker_exit(server, worker):
    from django.db import connections

    connections.close_all()
    logger.info(f"Worker {worker.pid}: database connections closed")


def on_exit(server):
    logger.info("Gunicorn shutting down")
