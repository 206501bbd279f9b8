"""Authentication and authorization utilities.

Sessions are issued by the external auth provider (Supabase). This service
only verifies the bearer JWT and reads the user id from its ``sub`` claim.
"""

from dataclasses import dataclass
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging

from verifiedmeasure.config import settings
from verifiedmeasure.errors import AuthError
from verifiedmeasure.services.lead_store import LeadStore, get_store

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Authenticated caller."""
    id: str
    email: Optional[str] = None
    token: Optional[str] = None


def decode_access_token(token: str) -> dict:
    """Verify signature, expiry and audience (and issuer, when configured)."""
    issuer = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1" if settings.SUPABASE_URL else None
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=issuer,
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Verify the bearer token and return the associated user."""

    if credentials is None:
        header = request.headers.get("authorization", "")
        if header.lower().startswith("bearer"):
            raise AuthError("Missing bearer token.")
        raise AuthError("Missing Authorization header.")

    token = credentials.credentials.strip()
    if not token:
        raise AuthError("Missing bearer token.")

    try:
        payload = decode_access_token(token)
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise AuthError("Invalid token.")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Invalid session.")

    logger.debug(f"User authenticated: {user_id}")
    return CurrentUser(id=str(user_id), email=payload.get("email"), token=token)


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
    store: LeadStore = Depends(get_store),
) -> CurrentUser:
    """Verify current user holds the administrator capability."""

    if not await store.is_admin(current_user.id):
        logger.warning(f"Admin access denied for user: {current_user.id}")
        raise AuthError("Admin required.")

    return current_user
