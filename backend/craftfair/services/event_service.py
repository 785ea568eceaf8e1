"""
Event read operations: listing, detail with roster, analytics.
Event create/edit/delete belong to the admin CRUD surface, not this service.
"""

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from craftfair.core.exceptions import NotFoundError
from craftfair.core.logging import get_logger
from craftfair.models.event import Event
from craftfair.models.registration import EventRegistration
from craftfair.models.status import SEAT_HOLDING, RegistrationStatus
from craftfair.services.identity import Caller, require_admin

logger = get_logger(__name__)


@dataclass
class EventDetail:
    event: Event
    participating_vendors: list = field(default_factory=list)
    pending_registrations: Optional[list[EventRegistration]] = None
    my_registration: Optional[EventRegistration] = None


async def get_event(db: AsyncSession, event_id: str) -> Event:
    """Get a single active event by ID."""
    # Counters move through core UPDATEs; refresh whatever the session holds
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id, Event.is_active.is_(True))
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()

    if not event:
        raise NotFoundError("Event not found")
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    status: Optional[str] = None,
    category: Optional[str] = None,
    registered_vendor_id: Optional[str] = None,
) -> tuple[list[Event], int]:
    """
    List active events ordered by start date. Uses ix_events_start_date.
    With registered_vendor_id, only events that vendor has a registration for
    (any status) are returned.
    """
    query = select(Event).where(Event.is_active.is_(True))

    if registered_vendor_id:
        query = query.where(
            select(EventRegistration.id)
            .where(
                EventRegistration.event_id == Event.id,
                EventRegistration.vendor_id == registered_vendor_id,
            )
            .exists()
        )

    if status:
        query = query.where(Event.status == status)
    if category:
        query = query.where(Event.category == category)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.start_date.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total


async def get_event_detail(
    db: AsyncSession, event_id: str, caller: Optional[Caller] = None
) -> EventDetail:
    """
    Event plus its public roster. Admins also get the pending queue;
    vendors get their own registration, whatever its status.
    """
    event = await get_event(db, event_id)

    result = await db.execute(
        select(EventRegistration)
        .where(
            EventRegistration.event_id == event_id,
            EventRegistration.status.in_(
                [s.value for s in SEAT_HOLDING] + [RegistrationStatus.PENDING.value]
            ),
        )
        .order_by(EventRegistration.registration_date.asc())
    )
    registrations = list(result.scalars().all())

    detail = EventDetail(
        event=event,
        participating_vendors=[r.vendor for r in registrations if r.state.holds_seat],
    )

    if caller is not None and caller.is_admin:
        detail.pending_registrations = [
            r for r in registrations if r.state == RegistrationStatus.PENDING
        ]

    if caller is not None and caller.vendor_id is not None:
        mine = await db.execute(
            select(EventRegistration).where(
                EventRegistration.event_id == event_id,
                EventRegistration.vendor_id == caller.vendor_id,
            )
        )
        detail.my_registration = mine.scalar_one_or_none()

    return detail


async def list_registrations(
    db: AsyncSession,
    caller: Caller,
    event_id: str,
    status: Optional[RegistrationStatus] = None,
) -> list[EventRegistration]:
    """Admin roster, oldest application first."""
    require_admin(caller)
    await get_event(db, event_id)

    query = select(EventRegistration).where(EventRegistration.event_id == event_id)
    if status is not None:
        query = query.where(EventRegistration.status == RegistrationStatus(status).value)

    result = await db.execute(
        query.order_by(EventRegistration.registration_date.asc(), EventRegistration.id.asc())
    )
    return list(result.scalars().all())


async def get_event_analytics(db: AsyncSession, caller: Caller, event_id: str) -> dict:
    """Registration statistics for one event."""
    require_admin(caller, "Only admins can view event analytics")
    event = await get_event(db, event_id)

    counts = dict(
        (
            await db.execute(
                select(EventRegistration.status, func.count())
                .where(EventRegistration.event_id == event_id)
                .group_by(EventRegistration.status)
            )
        ).all()
    )

    feedback_rows = (
        await db.execute(
            select(EventRegistration.rating, EventRegistration.feedback).where(
                EventRegistration.event_id == event_id,
                EventRegistration.rating.is_not(None),
            )
        )
    ).all()
    ratings = [row.rating for row in feedback_rows]

    capacity_percentage = None
    if event.max_capacity:
        capacity_percentage = round(event.current_participants / event.max_capacity * 100, 2)

    return {
        "event_id": event.id,
        "total_registrations": sum(counts.values()),
        "pending_count": counts.get(RegistrationStatus.PENDING.value, 0),
        "confirmed_count": counts.get(RegistrationStatus.CONFIRMED.value, 0),
        "waitlist_count": counts.get(RegistrationStatus.WAITLIST.value, 0),
        "cancelled_count": counts.get(RegistrationStatus.CANCELLED.value, 0),
        "attended_count": counts.get(RegistrationStatus.ATTENDED.value, 0),
        "current_participants": event.current_participants,
        "max_capacity": event.max_capacity,
        "capacity_percentage": capacity_percentage,
        "ratings": ratings,
        "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else 0,
        "feedback_count": sum(1 for row in feedback_rows if row.feedback),
    }


async def registrations_by_event(
    db: AsyncSession, vendor_id: str, event_ids: list[str]
) -> dict[str, EventRegistration]:
    """The vendor's own registration for each of the given events, keyed by event id."""
    if not event_ids:
        return {}

    result = await db.execute(
        select(EventRegistration).where(
            EventRegistration.vendor_id == vendor_id,
            EventRegistration.event_id.in_(event_ids),
        )
        .execution_options(populate_existing=True)
    )
    return {r.event_id: r for r in result.scalars().all()}
