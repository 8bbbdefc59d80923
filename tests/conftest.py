"""
Shared fixtures: an in-memory database per test and fake payment, shipping
and mail providers wired into the app through dependency overrides.
"""

import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_ENABLED", "false")
os.environ.setdefault("RUN_MIGRATIONS", "false")
os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdef0123456789")
os.environ.setdefault("SHIP_FROM_NAME", "Warehouse")
os.environ.setdefault("SHIP_FROM_STREET1", "1 Dock St")
os.environ.setdefault("SHIP_FROM_CITY", "Austin")
os.environ.setdefault("SHIP_FROM_STATE", "TX")
os.environ.setdefault("SHIP_FROM_ZIP", "78701")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from commerce_ops.api.deps import get_mailer, get_payment_gateway, get_quote_cache, get_shipping_provider
from commerce_ops.domain.models import Base
from commerce_ops.infrastructure.db import get_db
from commerce_ops.infrastructure.quote_cache import ShippingQuoteCache
from commerce_ops.main import app


class FakeGateway:
    """Records refunds and payment links instead of calling Stripe."""

    is_configured = True

    def __init__(self):
        self.refunds = []
        self.links = []

    def refund(self, payment_intent, amount, reason, idempotency_key=None):
        self.refunds.append(
            {"payment_intent": payment_intent, "amount": amount, "reason": reason, "idempotency_key": idempotency_key}
        )
        return {"id": f"re_{len(self.refunds)}", "status": "succeeded"}

    def create_payment_link(self, invoice_id, invoice_number, items):
        self.links.append({"invoice_id": invoice_id, "invoice_number": invoice_number, "items": items})
        return f"https://pay.example.com/{invoice_number}"

    def construct_event(self, payload, signature_header):
        return json.loads(payload)


class FakeShipping:
    is_configured = True

    def __init__(self):
        self.purchases = []
        self.voided = []
        self.shipments = 0

    def get_rates(self, from_address, to_address, parcel):
        self.shipments += 1
        shipment_id = f"shp_{self.shipments}"
        return {
            "shipment_id": shipment_id,
            "rates": [
                {"rate_id": f"{shipment_id}_ground", "carrier": "USPS", "service": "Ground Advantage",
                 "price": 5.25, "currency": "USD", "estimated_days": 4},
                {"rate_id": f"{shipment_id}_priority", "carrier": "USPS", "service": "Priority Mail",
                 "price": 9.8, "currency": "USD", "estimated_days": 2},
            ],
        }

    def purchase_label(self, shipment_id, rate_id, idempotency_key=None):
        self.purchases.append({"shipment_id": shipment_id, "rate_id": rate_id, "idempotency_key": idempotency_key})
        return {
            "id": f"txn_{len(self.purchases)}",
            "shipment_id": shipment_id,
            "tracking_number": f"9400{len(self.purchases):06d}",
            "tracking_url": "https://tools.usps.com/track",
            "label_url": "https://labels.example.com/label.pdf",
            "carrier": "USPS",
            "service": "Ground Advantage",
            "rate": Decimal("5.25"),
        }

    def void_label(self, transaction_id):
        self.voided.append(transaction_id)
        return {"id": "rf_1", "status": "QUEUED"}


class FakeMailer:
    is_configured = True

    def __init__(self):
        self.sent = []

    def send(self, to, subject, text, html=None, reply_to=None):
        self.sent.append({"to": to, "subject": subject, "text": text})
        return f"email_{len(self.sent)}"


@pytest.fixture
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def payments():
    return FakeGateway()


@pytest.fixture
def shipping():
    return FakeShipping()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def quotes():
    return ShippingQuoteCache(ttl_seconds=900)


@pytest.fixture
def client(db_session, payments, shipping, mailer, quotes):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: payments
    app.dependency_overrides[get_shipping_provider] = lambda: shipping
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_quote_cache] = lambda: quotes
    yield TestClient(app)
    app.dependency_overrides.clear()


ADDRESS = {
    "full_name": "Ada Lovelace",
    "address1": "12 Analytical Way",
    "city": "Portland",
    "state": "OR",
    "zip_code": "97201",
}


@pytest.fixture
def make_product(client):
    def _make(**overrides):
        payload = {"name": "Desk Lamp", "price": 40, "stock": 20, "weight": 2, "dimensions": "10x8x4"}
        payload.update(overrides)
        response = client.post("/products/", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def make_order(client):
    def _make(items=None, **overrides):
        payload = {
            "customer_name": "Ada Lovelace",
            "customer_email": "ada@example.com",
            "items": items or [{"name": "Gift card", "quantity": 1, "price": 100}],
            "shipping_address": ADDRESS,
        }
        payload.update(overrides)
        response = client.post("/orders/", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
