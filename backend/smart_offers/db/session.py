from sqlmodel import SQLModel, create_engine
from smart_offers.core.config import settings


connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)


def init_db(bind=None) -> None:
    """Create all tables"""
    # Register table metadata before create_all
    from smart_offers import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
