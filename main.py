#!/usr/bin/env python3
"""
AuthGate -- token-gated access to a JSON collection API.

Usage:
  python main.py
  python main.py --reload

Environment variables (all optional except SECRET_KEY outside DEBUG mode):
  SECRET_KEY       Token signing key, at least 32 characters.
  DEBUG            true to auto-generate SECRET_KEY for local development.
  PORT / HOST      Listening address (default 0.0.0.0:8000).
  DB_FILE          Shared JSON document (default db.json).
  UPLOAD_FOLDER    Where POST /upload stores files (default public/).
  AUTH_READ        yes to require a token for GET requests (default no).
  AUTH_WRITE       no to allow anonymous writes (default yes).
  JWT_EXPIRATION   Token lifetime, e.g. 3600, 30m, 24h (default 24h).
  SALT             bcrypt cost factor (default 10).
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the AuthGate server.")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only).")
    args = parser.parse_args()

    settings = get_settings()
    print(f"AuthGate is running on port {settings.port}")
    uvicorn.run("api.main:app", host=settings.host, port=settings.port, reload=args.reload)


if __name__ == "__main__":
    main()
