"""
Create the offers and analytics tables.
Run: python -m smart_offers.scripts.init_db
"""
from smart_offers.core.config import settings
from smart_offers.db.session import init_db


def main():
    print(f"Creating tables in {settings.DATABASE_URL} ...")
    init_db()
    print("Done!")


if __name__ == "__main__":
    main()
