"""Stripe payment gateway client.

Wraps the ``stripe`` SDK for the primitives the controllers consume:
refunds, payment links and webhook signature verification.
"""

import json
from decimal import Decimal
from typing import List, Optional

import stripe

from shared.core import get_logger
from commerce_ops.application.errors import PreconditionFailed, ProviderError, ValidationFailed
from commerce_ops.application.money import to_cents

logger = get_logger(__name__)

PROVIDER = "stripe"


def _provider_error(e: stripe.StripeError) -> ProviderError:
    status = e.http_status
    return ProviderError(
        PROVIDER,
        e.user_message or str(e),
        status_code=status,
        retryable=isinstance(e, (stripe.APIConnectionError, stripe.RateLimitError)) or (status or 0) >= 500,
    )


class StripeGateway:
    def __init__(
        self,
        secret_key: Optional[str],
        webhook_secret: Optional[str] = None,
        app_url: str = "http://localhost:3000",
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.app_url = app_url.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def _require_configured(self):
        if not self.is_configured:
            raise PreconditionFailed("Stripe is not configured. Please add STRIPE_SECRET_KEY to your environment.")

    def refund(
        self,
        payment_intent: str,
        amount: Decimal,
        reason: str,
        idempotency_key: Optional[str] = None,
    ) -> dict:
        """Refund ``amount`` (dollars) of a payment intent. Returns the Stripe refund object."""
        self._require_configured()
        try:
            refund = stripe.Refund.create(
                api_key=self.secret_key,
                payment_intent=payment_intent,
                amount=to_cents(amount),
                reason=reason,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            logger.warning(
                "Stripe refund failed",
                extra={"extra_fields": {"payment_intent": payment_intent, "error": e.user_message}},
            )
            raise _provider_error(e) from e
        logger.info(
            "Stripe refund created",
            extra={"extra_fields": {"refund_id": refund["id"], "payment_intent": payment_intent}},
        )
        return {"id": refund["id"], "status": refund["status"]}

    def create_payment_link(self, invoice_id: int, invoice_number: str, items: List[dict]) -> str:
        """Create a hosted payment link for an invoice; ``items`` carry description/quantity/unit_price."""
        self._require_configured()
        try:
            link = stripe.PaymentLink.create(
                api_key=self.secret_key,
                line_items=[
                    {
                        "price_data": {
                            "currency": "usd",
                            "product_data": {"name": item["description"]},
                            "unit_amount": to_cents(item["unit_price"]),
                        },
                        "quantity": item["quantity"],
                    }
                    for item in items
                ],
                after_completion={
                    "type": "redirect",
                    "redirect": {"url": f"{self.app_url}/payment/success?invoice={invoice_number}"},
                },
                metadata={"invoiceId": str(invoice_id), "invoiceNumber": invoice_number},
            )
        except stripe.StripeError as e:
            logger.warning(
                "Stripe payment link failed",
                extra={"extra_fields": {"invoice_number": invoice_number, "error": e.user_message}},
            )
            raise _provider_error(e) from e
        return link["url"]

    def construct_event(self, payload: bytes, signature_header: Optional[str]) -> dict:
        """Verify a webhook's ``Stripe-Signature`` and return the event as a plain dict."""
        if not self.webhook_secret:
            logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not set")
            raise PreconditionFailed("Webhook secret not configured")
        if not signature_header:
            raise ValidationFailed("Missing Stripe-Signature header", field="Stripe-Signature")
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        try:
            stripe.WebhookSignature.verify_header(
                payload, signature_header, self.webhook_secret, stripe.Webhook.DEFAULT_TOLERANCE
            )
        except stripe.SignatureVerificationError as e:
            raise ValidationFailed(f"Webhook Error: {e.user_message}", field="Stripe-Signature") from e
        try:
            return json.loads(payload)
        except ValueError as e:
            raise ValidationFailed("Invalid webhook payload") from e
