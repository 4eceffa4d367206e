"""
Gunicorn configuration for production deployment.
"""
import os

# Server socket
PORT = int(os.environ.get("PORT", 8000))
bind = f"0.0.0.0:{PORT}"
backlog = 2048

# Worker processes
# Each worker keeps its own SQLAlchemy pool (DB_POOL_SIZE connections), so
# workers * threads should stay within what the database allows.
workers = int(os.environ.get("WEB_CONCURRENCY", 2))
worker_class = "gthread"
threads = int(os.environ.get("GUNICORN_THREADS", 4))
timeout = 30
keepalive = 2
graceful_timeout = 30

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()

# Process naming
proc_name = "social-backend"


def worker_int(worker):
    """Called when a worker receives INT or QUIT signal."""
    import logging
    logging.warning(f"Worker {worker.pid} received INT/QUIT signal")


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    # Connections inherited from the master must not be shared across processes
    from social import database
    if database.engine is not None:
        database.engine.dispose(close=False)
