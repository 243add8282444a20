"""
Gunicorn configuration for the Lifelog API.

Tuned for Railway / Render single-instance containers.
Env vars that override defaults:
  PORT     — TCP port to bind (Railway sets this automatically)
  WORKERS  — number of worker processes (default: 1)

Reminder sessions and the per-window "generating" flags live in process
memory, so a user's requests must reach the same worker. Scale out with
sticky routing before raising WORKERS.
"""
import os

# Bind to the port Railway/Render injects via $PORT
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", "1"))

# Each worker runs Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Summary generation waits on the provider (SUMMARY_TIMEOUT_SECONDS, default 60 s).
timeout = 120

# stdout only; application loggers are configured by lifelog.core.logs.
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

# Lifespan shutdown stops every reminder session.
graceful_timeout = 30
