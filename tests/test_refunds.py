"""Refunds through the payment gateway, including idempotent replays."""

from commerce_ops.application.errors import ProviderError


def paid_order(make_order, **overrides):
    defaults = {"payment_status": "SUCCEEDED", "status": "PAID", "stripe_payment_id": "pi_123"}
    defaults.update(overrides)
    return make_order(**defaults)


class TestRefundPreconditions:
    def test_order_without_payment_id(self, client, make_order):
        order = make_order(payment_status="SUCCEEDED")
        response = client.post(f"/orders/{order['id']}/refund", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "No payment ID found for this order"}

    def test_unpaid_order(self, client, make_order):
        order = make_order(stripe_payment_id="pi_123")
        response = client.post(f"/orders/{order['id']}/refund", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Can only refund orders with successful payments"}

    def test_amount_must_be_positive(self, client, make_order, payments):
        order = paid_order(make_order)
        response = client.post(f"/orders/{order['id']}/refund", json={"amount": 0})
        assert response.status_code == 400
        assert response.json() == {"error": "Refund amount must be greater than 0", "field": "amount"}
        assert payments.refunds == []

    def test_amount_cannot_exceed_total(self, client, make_order, payments):
        order = paid_order(make_order)
        response = client.post(f"/orders/{order['id']}/refund", json={"amount": 100.01})
        assert response.status_code == 400
        assert response.json()["error"] == "Refund amount cannot exceed order total"
        assert payments.refunds == []


class TestRefundProcessing:
    def test_full_refund(self, client, make_order, payments):
        order = paid_order(make_order)
        response = client.post(f"/orders/{order['id']}/refund", json={"reason": "duplicate"})
        assert response.status_code == 200
        body = response.json()
        assert body["refund_id"] == "re_1"
        assert body["amount"] == 100.0
        assert body["order"]["status"] == "REFUNDED"
        assert body["order"]["payment_status"] == "REFUNDED"
        assert body["order"]["refunded_amount"] == 100.0
        assert "Refund processed: $100.00 (duplicate)" in body["order"]["admin_notes"]
        assert payments.refunds[0]["payment_intent"] == "pi_123"
        assert payments.refunds[0]["reason"] == "duplicate"

    def test_partial_refund_keeps_order_status(self, client, make_order):
        order = paid_order(make_order)
        body = client.post(f"/orders/{order['id']}/refund", json={"amount": 40}).json()
        assert body["amount"] == 40.0
        assert body["order"]["status"] == "PAID"
        assert body["order"]["payment_status"] == "REFUNDED"

    def test_second_refund_is_rejected(self, client, make_order):
        order = paid_order(make_order)
        client.post(f"/orders/{order['id']}/refund", json={"amount": 40})
        response = client.post(f"/orders/{order['id']}/refund", json={"amount": 10})
        assert response.status_code == 400
        assert response.json() == {"error": "Order has already been refunded"}

    def test_idempotency_key_replays_stored_result(self, client, make_order, payments):
        order = paid_order(make_order)
        headers = {"Idempotency-Key": "refund-abc"}
        first = client.post(f"/orders/{order['id']}/refund", json={"amount": 25}, headers=headers)
        second = client.post(f"/orders/{order['id']}/refund", json={"amount": 25}, headers=headers)

        assert first.status_code == second.status_code == 200
        assert second.json()["refund_id"] == first.json()["refund_id"]
        assert len(payments.refunds) == 1
        assert payments.refunds[0]["idempotency_key"] == "refund-abc"

    def test_idempotency_key_reused_for_other_order(self, client, make_order):
        first = paid_order(make_order)
        second = paid_order(make_order, stripe_payment_id="pi_456")
        headers = {"Idempotency-Key": "shared-key"}
        client.post(f"/orders/{first['id']}/refund", json={}, headers=headers)

        response = client.post(f"/orders/{second['id']}/refund", json={}, headers=headers)
        assert response.status_code == 409


class TestGatewayFailure:
    def test_declined_refund_leaves_order_untouched(self, client, make_order, monkeypatch, payments):
        order = paid_order(make_order)

        def decline(*args, **kwargs):
            raise ProviderError("stripe", "Charge ch_1 has already been refunded.", status_code=400)

        monkeypatch.setattr(payments, "refund", decline)
        response = client.post(f"/orders/{order['id']}/refund", json={}, headers={"Idempotency-Key": "r-1"})
        assert response.status_code == 502
        assert response.json()["error"] == "Charge ch_1 has already been refunded."
        assert response.json()["provider"] == "stripe"

        after = client.get(f"/orders/{order['id']}").json()
        assert after["payment_status"] == "SUCCEEDED"
        assert after["status"] == "PAID"
        assert after["refund_id"] is None
        assert after["admin_notes"] == order["admin_notes"]

    def test_retry_after_failure_reaches_gateway(self, client, make_order, monkeypatch, payments):
        order = paid_order(make_order)
        working = payments.refund

        def timeout(*args, **kwargs):
            raise ProviderError("stripe", "stripe request timed out", retryable=True)

        monkeypatch.setattr(payments, "refund", timeout)
        headers = {"Idempotency-Key": "r-2"}
        assert client.post(f"/orders/{order['id']}/refund", json={}, headers=headers).json()["retryable"] is True

        monkeypatch.setattr(payments, "refund", working)
        response = client.post(f"/orders/{order['id']}/refund", json={}, headers=headers)
        assert response.status_code == 200
        assert response.json()["order"]["payment_status"] == "REFUNDED"
