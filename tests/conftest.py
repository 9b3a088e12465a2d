"""
Pytest configuration and shared fixtures for the procurement test suite.

Every test gets its own in-memory SQLite database. The API client shares the
test's session so service-level setup and HTTP calls see the same rows.
"""
import os
import tempfile
from datetime import date
from typing import Generator

# Must be set before procurement.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "procurement-tests.log")
os.environ["HOME_STATE_CODE"] = "33"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from procurement.main import app
from procurement.database import Base, get_db
from procurement.handoff.channel import HandoffChannel, get_handoff_channel
from procurement.payments import schemas as payment_schemas
from procurement.payments import service as payment_service
from procurement.purchase import schemas as purchase_schemas
from procurement.purchase import service as purchase_service
from procurement.purchase_order import schemas as po_schemas
from procurement.purchase_order import service as po_service
from procurement.stock.items import models as item_models
from procurement.vendor import models as vendor_models


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def channel() -> HandoffChannel:
    return HandoffChannel()


@pytest.fixture
def client(db_session, channel) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_handoff_channel] = lambda: channel
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# -------------------------
# Seed data
# -------------------------
@pytest.fixture
def local_vendor(db_session) -> vendor_models.Vendor:
    """Vendor in the buyer's own state (Tamil Nadu, 33)."""
    vendor = vendor_models.Vendor(
        name="Chennai Wholesale Traders",
        gstin="33ABCDE1234F1Z5",
        state="Tamil Nadu",
        state_code="33",
    )
    db_session.add(vendor)
    db_session.commit()
    return vendor


@pytest.fixture
def interstate_vendor(db_session) -> vendor_models.Vendor:
    """Vendor in Karnataka (29)."""
    vendor = vendor_models.Vendor(
        name="Bengaluru Distributors",
        gstin="29PQRST6789K1Z2",
        state="Karnataka",
        state_code="29",
    )
    db_session.add(vendor)
    db_session.commit()
    return vendor


@pytest.fixture
def rice(db_session) -> item_models.Item:
    item = item_models.Item(name="Ponni Rice 25kg", barcode="8901234567890", gst_rate=18, min_stock_level=5)
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture
def oil(db_session) -> item_models.Item:
    item = item_models.Item(name="Groundnut Oil 1L", barcode="8909876543210", gst_rate=5)
    db_session.add(item)
    db_session.commit()
    return item


# -------------------------
# Document helpers
# -------------------------
@pytest.fixture
def make_order(db_session):
    def _make(vendor, lines, **kwargs):
        return po_service.create_purchase_order(
            db_session,
            po_schemas.PurchaseOrderCreate(
                vendor_id=vendor.id,
                po_date=kwargs.pop("po_date", date(2026, 10, 1)),
                lines=[po_schemas.PurchaseOrderLineIn(**line) for line in lines],
                **kwargs,
            ),
        )
    return _make


@pytest.fixture
def make_receipt(db_session):
    def _make(lines, invoice_number="INV-001", **kwargs):
        return purchase_service.create_receipt(
            db_session,
            purchase_schemas.PurchaseInvoiceCreate(
                invoice_number=invoice_number,
                invoice_date=kwargs.pop("invoice_date", date(2026, 10, 5)),
                lines=[purchase_schemas.PurchaseInvoiceLineIn(**line) for line in lines],
                **kwargs,
            ),
        )
    return _make


@pytest.fixture
def pay(db_session):
    def _pay(invoice, amount, **kwargs):
        return payment_service.record_payment(
            db_session,
            invoice.id,
            payment_schemas.PaymentCreate(amount=amount, payment_date=date(2026, 10, 10), **kwargs),
        )
    return _pay
