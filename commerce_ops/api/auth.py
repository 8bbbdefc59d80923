"""Admin bearer-token verification.

Tokens are issued elsewhere; this service only checks the signature, the
expiry and that the ``role`` claim is one of ``ADMIN_ROLES``.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request

from shared.core import get_logger, set_request_context
from commerce_ops.core_settings import Settings, get_settings

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def create_access_token(subject: str, role: str, settings: Settings, expires_minutes: int = 60) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": subject, "role": role, "iat": now, "exp": now + timedelta(minutes=expires_minutes)}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str, settings: Settings) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.PyJWTError:
        return None


def require_admin(request: Request, settings: Settings = Depends(get_settings)) -> dict:
    if not settings.AUTH_ENABLED:
        return {"sub": "anonymous", "role": "ADMIN"}
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Unauthorized")
    claims = decode_access_token(auth_header[len(BEARER_PREFIX):], settings)
    if not claims:
        raise HTTPException(status_code=401, detail="Invalid token")
    if claims.get("role") not in settings.admin_roles:
        logger.warning("Rejected non-admin token", extra={"extra_fields": {"sub": claims.get("sub")}})
        raise HTTPException(status_code=403, detail="Forbidden")
    set_request_context(user_id=str(claims.get("sub")))
    return claims
