"""
Capacity enforcement for event rosters.

CONCURRENCY STRATEGY: Row Lock + Guarded UPDATE
================================================

Problem:
  Two admins approve the last two pending vendors at the same moment.
  Both read current_participants=1 with max_capacity=2, both increment.
  Result: 3/2, the roster is overbooked.

Solution:
  1. The event row is read with SELECT ... FOR UPDATE inside the request
     transaction, so writers for the same event queue behind each other.
  2. The increment itself is a single statement whose WHERE clause is the
     capacity rule:

       UPDATE events
          SET current_participants = current_participants + 1,
              version = version + 1
        WHERE id = :event_id
          AND (max_capacity IS NULL OR current_participants < max_capacity)

     rows_affected == 0 means the event is full. Check and increment cannot
     be split, even on engines that ignore FOR UPDATE (SQLite).
  3. The CHECK constraint current_participants <= max_capacity is the final
     safety net.

  current_participants is never cached; every decision reads the row.
"""

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from craftfair.models.event import Event


def can_confirm(event: Event) -> bool:
    """True iff the event has no cap or still has a free seat."""
    return event.max_capacity is None or event.current_participants < event.max_capacity


def has_capacity_clause():
    """SQL rendering of ``can_confirm`` for use in a WHERE clause."""
    return or_(Event.max_capacity.is_(None), Event.current_participants < Event.max_capacity)


async def lock_event(db: AsyncSession, event_id: str) -> Event | None:
    """Load the authoritative event row, locked for the rest of the transaction."""
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def claim_seat(db: AsyncSession, event_id: str) -> bool:
    """
    Atomically take one seat if the capacity rule allows it.
    Returns False, without writing anything, when the event is full.
    """
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, has_capacity_clause())
        .values(
            current_participants=Event.current_participants + 1,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def release_seat(db: AsyncSession, event_id: str) -> bool:
    """Give one seat back. Never drives the counter below zero."""
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.current_participants > 0)
        .values(
            current_participants=Event.current_participants - 1,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
