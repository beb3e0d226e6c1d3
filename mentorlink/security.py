from typing import Optional

from fastapi import Request, Header, Cookie
from jose import JWTError, jwt
from pydantic import BaseModel

from .config import get_settings
from .exceptions import BusinessLogicError

import logging
logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


class CallerIdentity(BaseModel):
    uid: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class AuthenticationError(BusinessLogicError):
    """Raised when a bearer token is missing or cannot be verified"""
    code = "UNAUTHENTICATED"
    status_code = 401


# --- JWT Token Verification ---
# Tokens are issued by the external auth service; this side only verifies them.

def decode_access_token(token: str) -> CallerIdentity:
    """Verifies a JWT and returns the caller it names."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info("JWT decode failed: %s", e)
        raise AuthenticationError("Could not validate credentials")

    uid: Optional[str] = payload.get("sub")
    if uid is None:
        raise AuthenticationError("Could not validate credentials")
    return CallerIdentity(uid=uid, role=payload.get("role"))


def get_current_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
    access_token: Optional[str] = Cookie(None),
) -> Optional[CallerIdentity]:
    """
    Accepts either Authorization: Bearer <token> OR the 'access_token' cookie.
    Returns None when AUTH_REQUIRED is off, so callers are not checked.
    """
    if not get_settings().AUTH_REQUIRED:
        return None

    token = None
    if authorization:
        if authorization.startswith("Bearer "):
            token = authorization.split(" ", 1)[1]
        else:
            logger.info("Authorization header present but not Bearer.")

    # Fallback to cookie
    if not token:
        token = access_token or request.cookies.get("access_token")

    if not token:
        raise AuthenticationError("Could not validate credentials")

    return decode_access_token(token)
