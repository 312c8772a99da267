#!/usr/bin/env python3
"""
Postboard -- posts API with cookie-based sessions.

Usage:
  python main.py
  python main.py --port 3000
  python main.py --host 0.0.0.0 --port 8080 --reload

Environment variables:
  SECRET_KEY       Token signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG            true to auto-generate a throwaway SECRET_KEY for local development.
  ALLOWED_ORIGINS  Comma-separated origins allowed to call the API with credentials.
  DATABASE_URL     SQLAlchemy URL (default: sqlite file next to the code).
"""

import argparse

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="postboard",
        description="Run the Postboard API server.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=3000, help="Port to listen on (default: 3000)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
