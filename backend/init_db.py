"""
Initialize the database.

Run this script once to set up the tables:
    python init_db.py
"""

import logging

from shortlinks.config import settings
from shortlinks.database import init_db


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("=" * 50)
    print("Short Links - Database Initialization")
    print("=" * 50)
    print(f"Database: {settings.DATABASE_URL}")

    init_db()

    print("\nDatabase initialization complete!")
    print("\nYou can now start the server with:")
    print("    uvicorn shortlinks.main:app --reload")
