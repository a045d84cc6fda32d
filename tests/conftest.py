"""
Pytest fixtures for the analytics engine and the API.

A small fashion catalog is shared by the in-memory and SQL-backed tests:

- P1 Boho Maxi Dress (Dresses, SUP1): two December orders, one returned
- P2 Denim Jacket (Outerwear, SUP2): November order, out of stock
- P3 Fringe Bag (Boho Chic, SUP1): one June order only
- P4 Linen Shirt (Tops): references a supplier that does not exist
- P5 Wool Scarf (Accessories, SUP2): never sold
- O5 references a product that does not exist
"""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from buyerlens.analytics import InMemoryRecordStore, ProductRecord, SaleOrderRecord, SupplierRecord
from buyerlens.db.models import Base, Product, SaleOrder, Supplier
from buyerlens.db.session import get_db
from buyerlens.main import app
from buyerlens.routers.reports_router import get_narrator

REFERENCE_DATE = datetime(2019, 12, 31, 23, 59, 59)

SUPPLIERS = [
    {"supplier_id": "SUP1", "name": "Supplier SUP1", "lead_time_days": 10, "quality_rating": 4.0},
    {"supplier_id": "SUP2", "name": "Supplier SUP2", "lead_time_days": 14, "quality_rating": 2.0},
    {"supplier_id": "SUP3", "name": "Supplier SUP3", "lead_time_days": 7, "quality_rating": 5.0},
]

PRODUCTS = [
    {"product_id": "P1", "name": "Boho Maxi Dress", "category": "Dresses", "material": "Cotton",
     "description": "Flowing boho silhouette", "cost_price": 20.0, "selling_price": 50.0,
     "supplier_id": "SUP1", "current_stock": 100},
    {"product_id": "P2", "name": "Denim Jacket", "category": "Outerwear", "material": "Denim",
     "description": "Classic fit", "cost_price": 30.0, "selling_price": 80.0,
     "supplier_id": "SUP2", "current_stock": 0},
    {"product_id": "P3", "name": "Fringe Bag", "category": "Boho Chic", "material": "Suede",
     "description": "Festival ready", "cost_price": 15.0, "selling_price": 40.0,
     "supplier_id": "SUP1", "current_stock": 40},
    {"product_id": "P4", "name": "Linen Shirt", "category": "Tops", "material": "Linen",
     "description": "Relaxed summer shirt", "cost_price": 10.0, "selling_price": 20.0,
     "supplier_id": "SUP9", "current_stock": 200},
    {"product_id": "P5", "name": "Wool Scarf", "category": "Accessories", "material": "Wool",
     "description": "Chunky knit", "cost_price": 5.0, "selling_price": 15.0,
     "supplier_id": "SUP2", "current_stock": 100},
]

SALE_ORDERS = [
    {"order_id": "O1", "product_id": "P1", "quantity": 2, "price": 100.0,
     "order_date": datetime(2019, 12, 1), "return_status": False},
    {"order_id": "O2", "product_id": "P1", "quantity": 1, "price": 50.0,
     "order_date": datetime(2019, 12, 15), "return_status": True},
    {"order_id": "O3", "product_id": "P2", "quantity": 3, "price": 240.0,
     "order_date": datetime(2019, 11, 20), "return_status": False},
    {"order_id": "O4", "product_id": "P3", "quantity": 1, "price": 40.0,
     "order_date": datetime(2019, 6, 1), "return_status": False},
    {"order_id": "O5", "product_id": "P404", "quantity": 1, "price": 999.0,
     "order_date": datetime(2019, 12, 10), "return_status": False},
    {"order_id": "O6", "product_id": "P4", "quantity": 4, "price": 80.0,
     "order_date": datetime(2019, 12, 20), "return_status": False},
]


class StubNarrator:
    """Records prompts instead of calling a model."""

    def __init__(self, reply: str = "stub narrative"):
        self.reply = reply
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        products=[ProductRecord(**p) for p in PRODUCTS],
        sale_orders=[SaleOrderRecord(**o) for o in SALE_ORDERS],
        suppliers=[SupplierRecord(**s) for s in SUPPLIERS],
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded_db(db):
    db.add_all([Supplier(**s) for s in SUPPLIERS])
    db.add_all([Product(**p) for p in PRODUCTS])
    db.add_all([SaleOrder(**o) for o in SALE_ORDERS])
    db.commit()
    return db


@pytest.fixture
def narrator() -> StubNarrator:
    return StubNarrator()


@pytest.fixture
def client(session_factory, narrator):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_narrator] = lambda: narrator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_client(client, seeded_db):
    return client
