"""Inquiry intake, triage, quotes and the message thread."""

import re

import pytest

from commerce_ops.application.errors import ProviderError

SERVICE_FORM = {
    "name": "Linus",
    "email": "linus@example.com",
    "company": "Penguin Co",
    "service_type": "WEB_DEVELOPMENT",
    "description": "We need a new storefront.",
    "project_details": {
        "services": ["WEBSITE"],
        "projectName": "Storefront",
        "features": ["shop", "blog"],
        "pages": "20-50",
        "hasDesign": "No, need design help",
    },
}


@pytest.fixture
def inquiry(client):
    response = client.post("/inquiries/", json=SERVICE_FORM)
    assert response.status_code == 201, response.text
    return client.get(f"/inquiries/{response.json()['id']}").json()


class TestIntake:
    def test_service_inquiry_number_and_details(self, inquiry):
        assert re.fullmatch(r"WEB-\d{6}-[A-Z0-9]{4}", inquiry["inquiry_number"])
        assert inquiry["status"] == "NEW"
        details = inquiry["attachments"]["projectDetails"]
        assert details["projectName"] == "Storefront"
        assert details["hasDesign"] == "No, need design help"

    def test_contact_form(self, client):
        response = client.post(
            "/inquiries/contact",
            json={"name": "Mo", "email": "mo@example.com", "subject": "Hello", "message": "Are you hiring?"},
        )
        assert response.status_code == 201
        created = client.get(f"/inquiries/{response.json()['id']}").json()
        assert created["inquiry_number"].startswith("CONTACT-")
        assert created["description"] == "Are you hiring?"
        assert created["attachments"] == {"subject": "Hello"}

    def test_blank_description_rejected(self, client):
        response = client.post("/inquiries/", json={**SERVICE_FORM, "description": ""})
        assert response.status_code == 422

    def test_list_and_search(self, client, inquiry):
        assert client.get("/inquiries/", params={"search": "penguin"}).json()["total"] == 1
        assert client.get("/inquiries/", params={"status": "DECLINED"}).json()["total"] == 0


class TestTriage:
    def test_update_with_version(self, client, inquiry):
        response = client.put(
            f"/inquiries/{inquiry['id']}",
            json={"status": "CONTACTED", "assigned_to": "sam", "version": inquiry["version"]},
        )
        assert response.status_code == 200
        assert response.json()["assigned_to"] == "sam"

        stale = client.put(f"/inquiries/{inquiry['id']}", json={"admin_notes": "x", "version": inquiry["version"]})
        assert stale.status_code == 409

    def test_decline(self, client, inquiry):
        assert client.post(f"/inquiries/{inquiry['id']}/decline").json()["status"] == "DECLINED"

    def test_delete_keeps_invoices(self, client, inquiry):
        invoice = client.post(
            "/invoices/", json={"inquiry_id": inquiry["id"], "items": [{"description": "Build", "unit_price": 100}]}
        ).json()
        assert client.delete(f"/inquiries/{inquiry['id']}").status_code == 204
        assert client.get(f"/inquiries/{inquiry['id']}").status_code == 404
        assert client.get(f"/invoices/{invoice['id']}").json()["inquiry_id"] is None

    def test_suggested_quote(self, client, inquiry):
        quote = client.get(f"/inquiries/{inquiry['id']}/suggested-quote").json()
        assert quote["amount"] == 2500 + 1000 + 2000 + 2000
        assert quote["monthly"] == 0


class TestQuotesAndThread:
    def test_send_quote(self, client, inquiry, mailer):
        response = client.post(f"/inquiries/{inquiry['id']}/quote", json={"amount": 7500, "notes": "Two sprints"})
        assert response.status_code == 201
        message = response.json()
        assert message["is_quote"] is True
        assert message["quote_amount"] == 7500.0

        assert mailer.sent[0]["to"] == "linus@example.com"
        assert inquiry["inquiry_number"] in mailer.sent[0]["subject"]
        assert "$7,500.00" in mailer.sent[0]["text"]

        updated = client.get(f"/inquiries/{inquiry['id']}").json()
        assert updated["status"] == "PROPOSAL_SENT"
        assert updated["estimated_cost"] == 7500.0

    def test_quote_needs_an_amount(self, client, inquiry, mailer):
        response = client.post(f"/inquiries/{inquiry['id']}/quote", json={"notes": "tbd"})
        assert response.status_code == 400
        assert mailer.sent == []

    def test_failed_mail_stores_nothing(self, client, inquiry, mailer):
        def fail(**kwargs):
            raise ProviderError("resend", "Domain not verified")

        mailer.send = fail
        response = client.post(f"/inquiries/{inquiry['id']}/quote", json={"amount": 100})
        assert response.status_code == 502
        assert response.json()["error"] == "Domain not verified"
        thread = client.get(f"/inquiries/{inquiry['id']}/messages").json()
        assert len(thread["messages"]) == 1

    def test_thread_starts_with_initial_message(self, client, inquiry):
        client.post(f"/inquiries/{inquiry['id']}/messages", json={"message": "Thanks, reviewing now"})
        client.post(
            f"/inquiries/{inquiry['id']}/messages", json={"message": "Great, any questions?", "from_admin": False}
        )

        thread = client.get(f"/inquiries/{inquiry['id']}/messages").json()
        assert thread["inquiry_type"] == "service"
        messages = thread["messages"]
        assert messages[0]["id"] == "initial"
        assert messages[0]["message"] == SERVICE_FORM["description"]
        assert [m["is_from_admin"] for m in messages[1:]] == [True, False]
        assert messages[2]["sender_email"] == "linus@example.com"

    def test_customer_reply_is_not_mailed(self, client, inquiry, mailer):
        client.post(f"/inquiries/{inquiry['id']}/messages", json={"message": "hi", "from_admin": False})
        assert mailer.sent == []
