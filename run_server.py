#!/usr/bin/env python
"""
Economics API Server Entry Point

Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py --workers 4
    Gunicorn:     python run_server.py --gunicorn

    Or directly:
    gunicorn seller_economics.main:app -c gunicorn.conf.py
"""

import argparse
import os
import subprocess

import uvicorn

APP = "seller_economics.main:app"


def run_dev_server(port: int):
    """Single process with auto-reload on package changes."""
    uvicorn.run(
        APP,
        host="127.0.0.1",
        port=port,
        reload=True,
        reload_dirs=["seller_economics"],
        log_level="debug",
    )


def run_prod_server(port: int, workers: int):
    """Uvicorn's own process manager, no Gunicorn."""
    uvicorn.run(
        APP,
        host="0.0.0.0",
        port=port,
        workers=workers,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
    )


def run_gunicorn(port: int):
    subprocess.run(["gunicorn", APP, "-c", "gunicorn.conf.py", "--bind", f"0.0.0.0:{port}"], check=True)


def main():
    parser = argparse.ArgumentParser(description="Seller Economics API Server")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--dev", action="store_true", help="Development mode with auto-reload")
    mode.add_argument("--gunicorn", action="store_true", help="Run under Gunicorn with gunicorn.conf.py")
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", 8000)), help="Port to listen on")
    parser.add_argument(
        "--workers",
        type=int,
        default=int(os.getenv("WORKERS", 2)),
        help="Uvicorn worker processes in production mode",
    )
    args = parser.parse_args()

    if args.dev:
        print(f"🚀 Economics API (dev) on http://127.0.0.1:{args.port}/graphql")
        run_dev_server(args.port)
    elif args.gunicorn:
        print("🚀 Economics API under Gunicorn...")
        run_gunicorn(args.port)
    else:
        print(f"🚀 Economics API with {args.workers} Uvicorn workers...")
        run_prod_server(args.port, args.workers)


if __name__ == "__main__":
    main()
