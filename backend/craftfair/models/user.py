"""
Mirror of the marketplace user record.

Rows are owned by the auth collaborator; this service reads them to resolve
the caller's role and active flag.
"""

from sqlalchemy import Column, String, Boolean, CheckConstraint
from sqlalchemy.orm import relationship

from craftfair.db.base import Base, TimestampMixin
from craftfair.models.ids import new_id


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False, default="customer", index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    vendor = relationship("Vendor", back_populates="user", uselist=False, lazy="selectin")

    __table_args__ = (
        CheckConstraint("role IN ('customer', 'vendor', 'admin')", name="check_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
