from typing import Optional

from sqlalchemy.orm import Session

from commerce_ops.domain.models import IdempotencyRecord
from .errors import ConflictError


class IdempotencyStore:
    """Stored outcomes of refund and label-purchase calls, keyed by the caller's Idempotency-Key."""

    def __init__(self, db: Session):
        self.db = db

    def lookup(self, operation: str, key: Optional[str], order_id: int) -> Optional[dict]:
        if not key:
            return None
        record = (
            self.db.query(IdempotencyRecord)
            .filter(IdempotencyRecord.operation == operation, IdempotencyRecord.key == key)
            .first()
        )
        if not record:
            return None
        if record.order_id != order_id:
            raise ConflictError(f"Idempotency-Key {key} was already used for another order")
        return record.response

    def record(self, operation: str, key: Optional[str], order_id: int, response: dict) -> None:
        """Add the outcome to the current transaction; committed with the state change it describes."""
        if not key:
            return
        self.db.add(IdempotencyRecord(operation=operation, key=key, order_id=order_id, response=response))
