"""
Identity provider contract.

Tokens are issued by the marketplace's auth collaborator; this service only
verifies them. Claims used: ``sub`` (user id) and ``role``
(customer, vendor, admin). ``create_access_token`` exists for trusted internal
issuers, load tests and the test suite.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from craftfair.core.config import get_settings

settings = get_settings()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Return the token claims, or None if the token is invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None
