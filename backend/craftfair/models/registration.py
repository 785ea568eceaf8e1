"""
EventRegistration: one row per (event, vendor) pair.

Key design decisions:
- Unique constraint on (event_id, vendor_id): a pair never gets a second row;
  the existing row is transitioned in place.
- Cancellation is a status, never a DELETE. Rows disappear only when the
  parent event (or vendor) is deleted.
- Composite index (event_id, status, registration_date) serves the FIFO
  waitlist lookup.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from craftfair.db.base import Base, TimestampMixin
from craftfair.models.ids import new_id
from craftfair.models.status import RegistrationStatus


class EventRegistration(Base, TimestampMixin):
    __tablename__ = "event_registrations"

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vendor_id = Column(
        String(36), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(20), nullable=False, default=RegistrationStatus.PENDING.value)
    registration_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)

    vendor = relationship("Vendor", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("event_id", "vendor_id", name="uq_event_vendor_registration"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'waitlist', 'cancelled', 'attended')",
            name="check_registration_status",
        ),
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)", name="check_rating_range"
        ),
        Index("ix_registrations_event_status_date", "event_id", "status", "registration_date"),
    )

    @property
    def state(self) -> RegistrationStatus:
        return RegistrationStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<EventRegistration(id={self.id}, event={self.event_id}, "
            f"vendor={self.vendor_id}, status={self.status})>"
        )
