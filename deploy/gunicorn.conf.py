"""Gunicorn configuration for Grammar Coach Agent.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

The service is I/O-bound: a drills request is two sequential upstream
calls of up to 35s each, plus a possible repair round per batch.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 1024

# ─── Worker processes ───────────────────────────────────────────
#
# Async ASGI workers: one per core, capped at 4.

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# Worst case for /api/drills with full retry budgets is well past two
# minutes; the worker timeout must outlast it.

timeout = 300
graceful_timeout = 60
keepalive = 30

# ─── Worker recycling ──────────────────────────────────────────

max_requests = 2000
max_requests_jitter = 200

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"                     # stdout
errorlog = "-"                      # stderr
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = (
    '%(h)s %(t)s "%(r)s" %(s)s %(b)s %(D)sμs'
)

# ─── Process naming ─────────────────────────────────────────────

proc_name = "grammar-coach-agent"


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info(
        "Starting Grammar Coach Agent — workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )
