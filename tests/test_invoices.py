"""Invoice creation, sending, status changes and the public view."""

import pytest

from commerce_ops.application.errors import ProviderError
from commerce_ops.core_settings import get_settings

ITEMS = [
    {"description": "Design sprint", "quantity": 2, "unit_price": 1200},
    {"description": "Hosting setup", "unit_price": 150.5},
]


@pytest.fixture
def invoice(client):
    response = client.post(
        "/invoices/",
        json={"customer_name": "Rosa", "customer_email": "rosa@example.com", "items": ITEMS, "tax_rate": 8.25},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreate:
    def test_totals_and_number(self, invoice):
        assert invoice["invoice_number"].startswith("INV-")
        assert invoice["status"] == "DRAFT"
        assert invoice["subtotal"] == 2550.5
        assert invoice["tax_amount"] == 210.42
        assert invoice["total"] == 2760.92
        assert [item["total"] for item in invoice["items"]] == [2400.0, 150.5]

    def test_flat_tax_amount(self, client):
        body = client.post(
            "/invoices/",
            json={"customer_name": "R", "customer_email": "r@example.com", "items": ITEMS, "tax_amount": 10},
        ).json()
        assert body["tax_amount"] == 10.0
        assert body["total"] == 2560.5

    def test_rate_and_amount_are_exclusive(self, client):
        response = client.post(
            "/invoices/",
            json={"customer_name": "R", "customer_email": "r@example.com", "items": ITEMS,
                  "tax_rate": 5, "tax_amount": 10},
        )
        assert response.status_code == 422

    def test_customer_copied_from_order(self, client, make_order):
        order = make_order()
        body = client.post("/invoices/", json={"order_id": order["id"], "items": ITEMS}).json()
        assert body["customer_email"] == "ada@example.com"
        assert body["order_id"] == order["id"]

    def test_customer_required(self, client):
        response = client.post("/invoices/", json={"items": ITEMS})
        assert response.status_code == 400
        assert response.json()["field"] == "customer_name"


class TestSend:
    def test_send_creates_link_and_mails(self, client, invoice, payments, mailer):
        response = client.post(f"/invoices/{invoice['id']}/send")
        assert response.status_code == 200
        sent = response.json()
        assert sent["status"] == "SENT"
        assert sent["sent_at"] is not None
        assert sent["stripe_payment_link"].endswith(invoice["invoice_number"])
        assert mailer.sent[0]["to"] == "rosa@example.com"
        assert sent["stripe_payment_link"] in mailer.sent[0]["text"]
        assert len(payments.links) == 1

    def test_resend_reuses_link(self, client, invoice, payments, mailer):
        client.post(f"/invoices/{invoice['id']}/send")
        resent = client.post(f"/invoices/{invoice['id']}/send").json()
        assert resent["status"] == "SENT"
        assert len(payments.links) == 1
        assert len(mailer.sent) == 2

    def test_failed_email_keeps_payment_link(self, client, invoice, payments, mailer, monkeypatch):
        working = mailer.send

        def bounce(*args, **kwargs):
            raise ProviderError("resend", "The rosa@example.com address is suppressed.", status_code=422)

        monkeypatch.setattr(mailer, "send", bounce)
        assert client.post(f"/invoices/{invoice['id']}/send").status_code == 502
        stored = client.get(f"/invoices/{invoice['id']}").json()
        assert stored["status"] == "DRAFT"
        assert stored["stripe_payment_link"].endswith(invoice["invoice_number"])

        monkeypatch.setattr(mailer, "send", working)
        assert client.post(f"/invoices/{invoice['id']}/send").json()["status"] == "SENT"
        assert len(payments.links) == 1

    def test_paid_invoice_cannot_be_sent(self, client, invoice):
        client.post(f"/invoices/{invoice['id']}/send")
        client.put(f"/invoices/{invoice['id']}/status", json={"status": "PAID"})
        response = client.post(f"/invoices/{invoice['id']}/send")
        assert response.status_code == 400
        assert response.json() == {"error": "Invoice has already been paid"}

    def test_payment_link_only(self, client, invoice):
        response = client.post(f"/invoices/{invoice['id']}/payment-link")
        assert response.status_code == 200
        assert response.json()["payment_link"].startswith("https://pay.example.com/")
        assert client.get(f"/invoices/{invoice['id']}").json()["status"] == "DRAFT"


class TestStatus:
    def test_forward_moves_stamp_times(self, client, invoice):
        body = client.put(f"/invoices/{invoice['id']}/status", json={"status": "SENT"}).json()
        assert body["sent_at"] is not None
        body = client.put(f"/invoices/{invoice['id']}/status", json={"status": "PAID"}).json()
        assert body["status"] == "PAID"
        assert body["paid_at"] is not None

    def test_backward_move_rejected(self, client, invoice):
        client.put(f"/invoices/{invoice['id']}/status", json={"status": "SENT"})
        response = client.put(f"/invoices/{invoice['id']}/status", json={"status": "DRAFT"})
        assert response.status_code == 400

    def test_same_status_is_noop(self, client, invoice):
        response = client.put(f"/invoices/{invoice['id']}/status", json={"status": "DRAFT"})
        assert response.status_code == 200

    def test_list_by_status(self, client, invoice):
        assert len(client.get("/invoices/", params={"status": "DRAFT"}).json()) == 1
        assert client.get("/invoices/", params={"status": "PAID"}).json() == []


class TestPublicView:
    def test_first_view_marks_viewed(self, client, invoice):
        client.post(f"/invoices/{invoice['id']}/send")
        response = client.get(f"/public/invoices/{invoice['invoice_number']}")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "VIEWED"
        assert "id" not in body
        assert client.get(f"/invoices/{invoice['id']}").json()["viewed_at"] is not None

    def test_public_view_needs_no_token(self, client, invoice, monkeypatch):
        monkeypatch.setattr(get_settings(), "AUTH_ENABLED", True)
        assert client.get("/invoices/").status_code == 401
        assert client.get(f"/public/invoices/{invoice['invoice_number']}").status_code == 200

    def test_unknown_number(self, client):
        assert client.get("/public/invoices/INV-1999-00001").status_code == 404
