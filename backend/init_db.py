"""
Tiny DB bootstrap script for FinHub.

- Reads DATABASE_URL (or falls back to the configured default).
- Creates all tables defined in finhub.models.

Usage (from backend/):
  python init_db.py
"""

from finhub.config import get_settings
from finhub.db import Database


def main() -> None:
    db = Database(get_settings().database_url)
    try:
        db.create_all()
    finally:
        db.dispose()
    print("FinHub tables created (or already exist).")


if __name__ == "__main__":
    main()
