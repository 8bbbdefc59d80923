"""Shippo shipping-rate provider client."""

from decimal import Decimal
from typing import Optional

import httpx

from shared.core import get_logger
from commerce_ops.application.errors import PreconditionFailed, ProviderError, ValidationFailed
from commerce_ops.application.money import money
from .http import provider_call

logger = get_logger(__name__)

PROVIDER = "shippo"


class ShippoClient:
    def __init__(self, api_key: Optional[str], api_base: str = "https://api.goshippo.com", timeout: float = 15.0):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _request(self, method: str, path: str, json: Optional[dict] = None, idempotency_key: Optional[str] = None) -> dict:
        if not self.is_configured:
            raise PreconditionFailed(
                "Shipping provider not configured. Please add SHIPPO_API_KEY to your environment."
            )
        headers = {"Authorization": f"ShippoToken {self.api_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        with httpx.Client(timeout=self.timeout) as client:
            return provider_call(PROVIDER, client, method, f"{self.api_base}{path}", json=json, headers=headers)

    def get_rates(self, from_address: dict, to_address: dict, parcel: dict) -> dict:
        """Create a shipment and return its id with rate quotes sorted by price."""
        shipment = self._request(
            "POST",
            "/shipments/",
            json={
                "address_from": from_address,
                "address_to": to_address,
                "parcels": [parcel],
                "async": False,
            },
        )
        if shipment.get("status") == "ERROR":
            raise ProviderError(PROVIDER, _messages(shipment) or "Shipment could not be created")

        rates = [
            {
                "rate_id": rate["object_id"],
                "carrier": rate.get("provider"),
                "service": (rate.get("servicelevel") or {}).get("name"),
                "price": float(money(rate.get("amount"))),
                "currency": rate.get("currency", "USD"),
                "estimated_days": rate.get("estimated_days"),
                "duration_terms": rate.get("duration_terms"),
            }
            for rate in shipment.get("rates", [])
        ]
        rates.sort(key=lambda r: r["price"])
        return {"shipment_id": shipment["object_id"], "rates": rates}

    def purchase_label(self, shipment_id: str, rate_id: str, idempotency_key: Optional[str] = None) -> dict:
        """Buy the label for ``rate_id``. The rate must belong to ``shipment_id``."""
        rate = self._request("GET", f"/rates/{rate_id}")
        if rate.get("shipment") and rate["shipment"] != shipment_id:
            raise ValidationFailed("Rate does not belong to this shipment", field="rate_id")

        transaction = self._request(
            "POST",
            "/transactions/",
            json={"rate": rate_id, "label_file_type": "PDF", "async": False},
            idempotency_key=idempotency_key,
        )
        if transaction.get("status") != "SUCCESS":
            raise ProviderError(PROVIDER, _messages(transaction) or "Label purchase failed")

        logger.info(
            "Shippo label purchased",
            extra={"extra_fields": {"transaction_id": transaction.get("object_id"), "shipment_id": shipment_id}},
        )
        return {
            "id": transaction["object_id"],
            "shipment_id": shipment_id,
            "tracking_number": transaction.get("tracking_number"),
            "tracking_url": transaction.get("tracking_url_provider"),
            "label_url": transaction.get("label_url"),
            "carrier": rate.get("provider"),
            "service": (rate.get("servicelevel") or {}).get("name"),
            "rate": Decimal(str(rate.get("amount", "0"))),
        }

    def void_label(self, transaction_id: str) -> dict:
        """Ask the provider to void a purchased label. Returns the refund request status."""
        refund = self._request("POST", "/refunds/", json={"transaction": transaction_id, "async": False})
        return {"id": refund.get("object_id"), "status": refund.get("status")}


def _messages(obj: dict) -> str:
    return "; ".join(m.get("text", "") for m in obj.get("messages") or [] if m.get("text"))
