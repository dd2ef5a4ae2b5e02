import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from smart_offers.api.deps import get_db
from smart_offers.db.session import init_db
from smart_offers.main import app


SHOP = "demo-store.myshopify.com"
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────

@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture()
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def client(engine):
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager: startup would create tables on the real DATABASE_URL
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def shop_headers():
    return {"X-Shopify-Shop-Domain": SHOP}


def offer_data(**overrides):
    """Valid quantity-break offer in wire (camelCase) shape."""
    data = {
        "shopId": SHOP,
        "name": "Buy more, save more",
        "type": "quantity_break",
        "status": "active",
        "products": ["111"],
        "discountType": "percentage",
        "tiers": [
            {"quantity": 2, "discount": 10},
            {"quantity": 3, "discount": 15},
            {"quantity": 5, "discount": 20},
        ],
    }
    data.update(overrides)
    return data
