"""
Event model with participant-count tracking.

Key design decisions:
- `current_participants` is denormalized: it must always equal the number of
  registrations in a seat-holding status (confirmed, attended). It is only
  changed by guarded UPDATE statements in the registration service.
- `max_capacity` NULL means unlimited; the CHECK constraints refuse any row
  where the counter would exceed it, as a last line of defence.
- `version` is bumped on every counter change so concurrent readers can
  detect that the roster moved.
- Deleting an event cascades to its registrations (ON DELETE CASCADE).
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)

from craftfair.db.base import Base, TimestampMixin
from craftfair.models.ids import new_id


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    category = Column(String(20), nullable=False, default="other")
    event_type = Column(String(20), nullable=False, default="physical")
    location = Column(String(500), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    registration_deadline = Column(DateTime(timezone=True), nullable=True)
    max_capacity = Column(Integer, nullable=True)
    current_participants = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="draft")
    is_active = Column(Boolean, nullable=False, default=True)

    # Bumped on every participant-count change
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("current_participants >= 0", name="check_participants_non_negative"),
        CheckConstraint(
            "max_capacity IS NULL OR max_capacity > 0", name="check_max_capacity_positive"
        ),
        CheckConstraint(
            "max_capacity IS NULL OR current_participants <= max_capacity",
            name="check_participants_lte_capacity",
        ),
        CheckConstraint("end_date > start_date", name="check_end_after_start"),
        CheckConstraint(
            "registration_deadline IS NULL OR registration_deadline < start_date",
            name="check_deadline_before_start",
        ),
        CheckConstraint(
            "status IN ('draft', 'published', 'ongoing', 'completed', 'cancelled')",
            name="check_event_status",
        ),
        Index("ix_events_status", "status"),
        Index("ix_events_category", "category"),
        Index("ix_events_start_date", "start_date"),
    )

    @property
    def remaining_capacity(self) -> int | None:
        if self.max_capacity is None:
            return None
        return max(self.max_capacity - self.current_participants, 0)

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, name={self.name}, "
            f"participants={self.current_participants}/{self.max_capacity})>"
        )
