"""
Gunicorn configuration for Savanna Marketplace.
All settings are driven from environment variables for container deployment.
"""

from __future__ import annotations

import logging
import multiprocessing
import os

# ===== Server Binding =====
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
wsgi_app = os.environ.get("GUNICORN_WSGI_APP", "savanna.wsgi:app")

# ===== Worker Settings =====
# gthread: auth providers are per-client objects shared by a worker's threads.
# Sessions live in auth_client_session, so any worker can serve any client.
worker_class = os.environ.get("GUNICORN_WORKER_CLASS", "gthread")
workers = int(os.environ.get("GUNICORN_WORKERS", str(multiprocessing.cpu_count() * 2 + 1)))
threads = int(os.environ.get("GUNICORN_THREADS", "4"))
max_requests = int(os.environ.get("GUNICORN_MAX_REQUESTS", "10000"))
max_requests_jitter = int(os.environ.get("GUNICORN_MAX_REQUESTS_JITTER", "1000"))

# ===== Timeout Settings =====
# Must exceed the Supabase HTTP timeout plus the profile write timeout.
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "60"))
graceful_timeout = int(os.environ.get("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.environ.get("GUNICORN_KEEPALIVE", "5"))

# ===== Logging Configuration =====
accesslog = os.environ.get("GUNICORN_ACCESSLOG", "-")
errorlog = os.environ.get("GUNICORN_ERRORLOG", "-")
loglevel = os.environ.get("GUNICORN_LOGLEVEL", "info")
capture_output = True
access_log_format = os.environ.get(
    "GUNICORN_ACCESS_LOG_FORMAT",
    '{"timestamp": "%(t)s", "remote": "%(h)s", "request": "%(r)s", '
    '"status": %(s)s, "bytes": %(b)s, "response_time": %(D)s, "pid": %(p)s}',
)

proc_name = os.environ.get("GUNICORN_PROC_NAME", "savanna")
forwarded_allow_ips = os.environ.get("GUNICORN_FORWARDED_ALLOW_IPS", "*")


# ===== Lifecycle Hooks =====
def on_starting(server):
    logger = logging.getLogger(__name__)
    logger.info(
        f"Gunicorn starting: workers={workers}, threads={threads}, "
        f"worker_class={worker_class}, timeout={timeout}s"
    )


def when_ready(server):
    logger = logging.getLogger(__name__)
    logger.info(f"Gunicorn ready. Listening on {bind}")


def worker_exit(server, worker):
    """Tear down every client's in-memory auth provider; persisted sessions stay."""
    logger = logging.getLogger(__name__)
    app = getattr(worker, "wsgi", None)
    registry = getattr(app, "extensions", {}).get("auth_registry") if app is not None else None
    if registry is None:
        return
    logger.info(f"Worker {worker.pid} closing {len(registry)} auth providers")
    registry.close_all()


def worker_abort(worker):
    logger = logging.getLogger(__name__)
    logger.warning(f"Worker {worker.pid} timed out (>{timeout}s), aborting")
