"""
Caller identity as seen by the registration lifecycle.

The auth collaborator vouches for ``user_id`` and ``role`` through the bearer
token; the vendor profile is looked up here because the registrant
capability needs both the vendor role and a profile row.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from craftfair.core.exceptions import UnauthorizedError
from craftfair.models.status import UserRole
from craftfair.models.user import User
from craftfair.models.vendor import Vendor


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: UserRole
    vendor_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_registrant(self) -> bool:
        return self.role == UserRole.VENDOR and self.vendor_id is not None


async def resolve_caller(db: AsyncSession, user_id: str) -> Optional[Caller]:
    """Build the caller for an authenticated user id. None if unknown or inactive."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        return None

    vendor_id = (
        await db.execute(select(Vendor.id).where(Vendor.user_id == user.id))
    ).scalar_one_or_none()
    return Caller(user_id=user.id, role=UserRole(user.role), vendor_id=vendor_id)


def require_admin(caller: Caller, message: str = "Only admins can manage registrations") -> None:
    if not caller.is_admin:
        raise UnauthorizedError(message)


def require_registrant(caller: Caller, message: str = "Only vendors can register for events") -> str:
    """Return the caller's vendor id, or refuse if the caller cannot register."""
    if not caller.is_registrant:
        raise UnauthorizedError(message)
    return caller.vendor_id
