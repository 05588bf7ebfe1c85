"""
Gunicorn Configuration

Uvicorn workers for the economics API. Each process already folds partitions
on ECONOMICS_WORKER_COUNT threads, so the process count is the core count
divided by that pool size unless WORKERS is set.
"""

import multiprocessing
import os
from pathlib import Path

_threads_per_process = max(1, int(os.getenv("ECONOMICS_WORKER_COUNT", 4)))

# Server socket
bind = os.getenv("BIND", f"0.0.0.0:{os.getenv('PORT', '8000')}")
backlog = 1024

# Worker processes
workers = int(os.getenv("WORKERS", max(1, multiprocessing.cpu_count() // _threads_per_process)))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 5000
max_requests_jitter = 500
# Longest query plus headroom; ECONOMICS_QUERY_TIMEOUT_SECONDS cancels inside the engine first
timeout = int(os.getenv("GUNICORN_TIMEOUT", 180))
keepalive = 5
graceful_timeout = 30

proc_name = "seller-economics-api"

# Logging
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)s'


def on_starting(server):
    """Warn once when the data lake directory is absent."""
    facts_path = Path(os.getenv("DATA_FACTS_PATH", "./data/curated/facts"))
    if not facts_path.is_dir():
        server.log.warning("Facts path %s not found; queries will return no rows", facts_path)


def post_fork(server, worker):
    server.log.info("Worker %s spawned with %s aggregation threads", worker.pid, _threads_per_process)
