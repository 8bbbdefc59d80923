"""Human-readable document numbers for orders, invoices and inquiries."""

import random
import string
from datetime import datetime
from typing import Callable, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core import get_logger
from commerce_ops.domain.enums import ServiceType
from .errors import ConflictError

logger = get_logger(__name__)

T = TypeVar("T")

SERVICE_PREFIXES = {
    ServiceType.WEB_DEVELOPMENT: "WEB",
    ServiceType.APP_DEVELOPMENT: "APP",
    ServiceType.AI_SOLUTIONS: "AI",
    ServiceType.CONSULTATION: "CON",
}
CONTACT_PREFIX = "CONTACT"
NUMBER_ATTEMPTS = 5


def next_sequential(db: Session, column, prefix: str) -> str:
    """Next number in format PREFIX-YYYY-NNNNN, one past the highest issued this calendar year."""
    year = datetime.now().year
    head = f"{prefix}-{year}-"
    highest = db.query(func.max(column)).filter(column.like(f"{head}%")).scalar()
    last = int(highest[len(head):]) if highest and highest[len(head):].isdigit() else 0
    return f"{head}{(last + 1):05d}"


def create_numbered(db: Session, column, prefix: str, create: Callable[[str], T]) -> T:
    """Run ``create(number)`` with the next sequential number.

    When a concurrent insert claims the same number first, the unique index
    rejects the write; the whole creation is then retried with a fresh number.
    """
    for attempt in range(1, NUMBER_ATTEMPTS + 1):
        number = next_sequential(db, column, prefix)
        try:
            return create(number)
        except IntegrityError:
            db.rollback()
            if db.query(column).filter(column == number).first() is None:
                raise
            logger.warning(
                f"Number {number} was taken concurrently, retrying",
                extra={"extra_fields": {"prefix": prefix, "attempt": attempt}},
            )
    raise ConflictError(f"Could not allocate a {prefix} number, please retry")


def inquiry_number(service_type: Optional[ServiceType] = None, contact: bool = False) -> str:
    """PREFIX-YYMMDD-XXXX with four random uppercase letters or digits."""
    if contact:
        prefix = CONTACT_PREFIX
    else:
        prefix = SERVICE_PREFIXES.get(ServiceType(service_type or ServiceType.OTHER), "SVC")
    stamp = datetime.now().strftime("%y%m%d")
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"{prefix}-{stamp}-{suffix}"


def is_contact_inquiry(number: str) -> bool:
    return number.startswith(f"{CONTACT_PREFIX}-")
