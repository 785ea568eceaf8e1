"""
Request dependencies: database session and caller identity.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from craftfair.core.security import decode_access_token
from craftfair.db.session import get_db
from craftfair.services.identity import Caller, resolve_caller

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[Caller]:
    """Resolve the caller if a valid token was sent; anonymous otherwise."""
    if credentials is None:
        return None

    claims = decode_access_token(credentials.credentials)
    if not claims or "sub" not in claims:
        raise _unauthenticated("Invalid or expired token")

    caller = await resolve_caller(db, str(claims["sub"]))
    if caller is None:
        raise _unauthenticated("User no longer exists or is inactive")
    return caller


async def get_current_caller(
    caller: Optional[Caller] = Depends(get_optional_caller),
) -> Caller:
    if caller is None:
        raise _unauthenticated("Not authorized to access this route")
    return caller
