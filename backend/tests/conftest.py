"""Pytest configuration and fixtures."""

import os

# Settings are read at import time; point them at a throwaway database first
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import _enable_sqlite_foreign_keys, get_db
from app.main import app
# Import all models to ensure they're registered with Base.metadata
from app.models import *
from app.models.inventory import InventoryItem
from app.models.order import POStatus, PurchaseOrder, PurchaseOrderItem
from app.models.supplier import Supplier
from app.models.system import SystemConfiguration

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    # Self-referencing category rows block DROP TABLE while FKs are enforced
    with engine.begin() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    from app.core.rate_limit import limiter
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def test_supplier(db_session: Session) -> Supplier:
    """Create a test supplier."""
    supplier = Supplier(
        name="MedSupply Co",
        contact_person="Jane Doe",
        email="orders@medsupply.example.com",
        phone="+1234567890",
    )
    db_session.add(supplier)
    db_session.commit()
    db_session.refresh(supplier)
    return supplier


@pytest.fixture
def test_item(db_session: Session, test_supplier: Supplier) -> InventoryItem:
    """Catalog item with 2 on hand, minimum 10 and maximum 50."""
    item = InventoryItem(
        name="Nitrile Gloves",
        sku="GLV-001",
        current_stock=2,
        minimum_stock=10,
        maximum_stock=50,
        unit_price=Decimal("4.50"),
        unit_of_measurement="boxes",
        supplier_id=test_supplier.id,
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def second_item(db_session: Session, test_supplier: Supplier) -> InventoryItem:
    """Catalog item well above its minimum."""
    item = InventoryItem(
        name="Gauze Pads",
        sku="GZE-010",
        current_stock=40,
        minimum_stock=5,
        maximum_stock=None,
        unit_price=Decimal("1.20"),
        unit_of_measurement="packs",
        supplier_id=test_supplier.id,
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def test_purchase_order(
    db_session: Session, test_supplier: Supplier, test_item: InventoryItem, second_item: InventoryItem
) -> PurchaseOrder:
    """Ordered purchase order: 20 gloves and 10 gauze pads."""
    po = PurchaseOrder(
        po_number="PO-2024-0001",
        supplier_id=test_supplier.id,
        status=POStatus.ORDERED,
        total_amount=Decimal("102.00"),
        order_date=date(2024, 3, 1),
        items=[
            PurchaseOrderItem(
                inventory_item_id=test_item.id,
                item_description=test_item.name,
                quantity=20,
                unit_price=Decimal("4.50"),
                total_price=Decimal("90.00"),
                unit_of_measure="boxes",
            ),
            PurchaseOrderItem(
                inventory_item_id=second_item.id,
                item_description=second_item.name,
                quantity=10,
                unit_price=Decimal("1.20"),
                total_price=Decimal("12.00"),
                unit_of_measure="packs",
            ),
        ],
    )
    db_session.add(po)
    db_session.commit()
    db_session.refresh(po)
    return po


@pytest.fixture
def auto_reorder_on(db_session: Session) -> SystemConfiguration:
    """System configuration with auto-reorder enabled."""
    config = SystemConfiguration(
        clinic_name="Test Clinic",
        currency="USD",
        auto_reorder=True,
        low_stock_threshold=10,
        expiry_warning_days=30,
    )
    db_session.add(config)
    db_session.commit()
    db_session.refresh(config)
    return config
