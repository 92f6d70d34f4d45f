"""Per-request caller identity.

Identity is resolved once per request into a ``RequestContext`` value that
routers pass explicitly into engine calls.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Depends, HTTPException, Request

from app.core.config import settings


@dataclass(frozen=True)
class RequestContext:
    customer_id: int | None = None
    source: str = "anonymous"  # "jwt", "header" or "anonymous"

    @property
    def is_authenticated(self) -> bool:
        return self.customer_id is not None


def create_access_token(customer_id: int, expires_in_minutes: int = 60) -> str:
    """Issue a bearer token whose ``sub`` claim carries the customer id."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(customer_id),
        "iat": now,
        "exp": now + timedelta(minutes=expires_in_minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_access_token(token: str) -> int:
    """Decode a bearer token and return its customer id."""
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    return int(payload["sub"])


def get_request_context(request: Request) -> RequestContext:
    """Build the caller's context from the Authorization or X-Customer-Id header."""
    auth_header = request.headers.get("Authorization")
    if auth_header:
        if not auth_header.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Invalid authorization header format")
        token = auth_header[7:]
        if not token:
            raise HTTPException(status_code=401, detail="Bearer token is required")
        try:
            return RequestContext(customer_id=verify_access_token(token), source="jwt")
        except jwt.ExpiredSignatureError:
            raise HTTPException(status_code=401, detail="Token has expired") from None
        except (jwt.InvalidTokenError, KeyError, ValueError):
            raise HTTPException(status_code=401, detail="Invalid token") from None

    customer_header = request.headers.get("X-Customer-Id")
    if customer_header:
        try:
            return RequestContext(customer_id=int(customer_header), source="header")
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid X-Customer-Id header") from None

    return RequestContext()


def require_customer(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    if not ctx.is_authenticated:
        raise HTTPException(status_code=401, detail="Customer identity is required")
    return ctx
