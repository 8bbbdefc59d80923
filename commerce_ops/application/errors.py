"""Custom exceptions for commerce_ops.

Controllers raise these; ``commerce_ops.main`` maps them onto HTTP responses.
"""

from typing import Optional


class CommerceOpsError(Exception):
    """Base exception for all commerce_ops errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationFailed(CommerceOpsError):
    """Raised when a request field is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.field:
            body["field"] = self.field
        return body


class PreconditionFailed(CommerceOpsError):
    """Raised when the target record is not in a state that allows the operation."""

    status_code = 400


class NotFound(CommerceOpsError):
    """Raised when an order, inquiry, invoice or product doesn't exist."""

    status_code = 404

    def __init__(self, entity: str, key=None):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found")


class ConflictError(CommerceOpsError):
    """Raised on a stale version, a duplicate active label, or a reused key."""

    status_code = 409


class ProviderError(CommerceOpsError):
    """Raised when Stripe, Shippo or the mail provider rejects a call.

    The provider's own message is kept verbatim.
    """

    status_code = 502

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        self.provider = provider
        self.provider_status = status_code
        self.retryable = retryable
        super().__init__(message)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["provider"] = self.provider
        body["retryable"] = self.retryable
        if self.provider_status is not None:
            body["providerStatus"] = self.provider_status
        return body


class StaleShipmentError(ProviderError):
    """Raised when a shipment id is unknown or its rate quotes have expired."""

    status_code = 409

    def __init__(self, shipment_id: str):
        self.shipment_id = shipment_id
        super().__init__(
            "shippo",
            f"Shipment {shipment_id} has expired or was not issued for this order. Request rates again.",
            retryable=True,
        )


def check_version(entity: str, current: int, expected: Optional[int]) -> None:
    """Reject a write made against an older snapshot of the record."""
    if expected is not None and expected != current:
        raise ConflictError(
            f"{entity} was modified by someone else (version {current}, expected {expected}). Reload and retry."
        )
