"""
Vendor profile. Holding one is what makes a vendor-role user a registrant.
"""

from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship

from craftfair.db.base import Base, TimestampMixin
from craftfair.models.ids import new_id


class Vendor(Base, TimestampMixin):
    __tablename__ = "vendors"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    business_name = Column(String(255), nullable=False)
    logo_url = Column(String(500), nullable=True)

    user = relationship("User", back_populates="vendor")

    def __repr__(self) -> str:
        return f"<Vendor(id={self.id}, business_name={self.business_name})>"
