"""
Event read endpoints. The public listing is cached in Redis; detail,
roster and analytics always read the database.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from craftfair.api.deps import get_current_caller, get_optional_caller
from craftfair.db.session import get_db
from craftfair.models.status import EventCategory, EventStatus, RegistrationStatus
from craftfair.schemas.event import (
    EventAnalyticsResponse,
    EventDetailResponse,
    EventListResponse,
    EventResponse,
)
from craftfair.schemas.registration import RegistrationResponse, VendorSummary
from craftfair.services.cache_service import (
    get_cached_events,
    make_event_list_key,
    set_cached_events,
)
from craftfair.services.event_service import (
    get_event_analytics,
    get_event_detail,
    list_events,
    list_registrations,
    registrations_by_event,
)
from craftfair.services.identity import Caller
from craftfair.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[EventStatus] = Query(None),
    category: Optional[EventCategory] = Query(None),
    my_registrations: bool = Query(False, description="Vendors only: events I registered for"),
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    """
    List active events by start date.
    Anonymous and admin listings are cached in Redis and invalidated whenever
    a participant count changes. Vendor listings carry the caller's own
    registration per event and always read the database.
    """
    status_value = status.value if status else None
    category_value = category.value if category else None
    vendor_id = caller.vendor_id if caller is not None else None

    if vendor_id is not None:
        events, total = await list_events(
            db,
            page,
            page_size,
            status_value,
            category_value,
            registered_vendor_id=vendor_id if my_registrations else None,
        )
        mine = await registrations_by_event(db, vendor_id, [e.id for e in events])

        responses = []
        for event in events:
            response = EventResponse.model_validate(event)
            if event.id in mine:
                response.my_registration = RegistrationResponse.model_validate(mine[event.id])
            responses.append(response)

        return EventListResponse(
            events=responses, total=total, page=page, page_size=page_size, cached=False
        )

    key = make_event_list_key(page, page_size, status_value, category_value)

    cached = await get_cached_events(key)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await list_events(db, page, page_size, status_value, category_value)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump() for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_events(key, response_data)

    return EventListResponse(**response_data)


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event_endpoint(
    event_id: str,
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    """Event with participating vendors; admins also see pending applications."""
    detail = await get_event_detail(db, event_id, caller)

    response = EventDetailResponse.model_validate(detail.event)
    response.participating_vendors = [
        VendorSummary.model_validate(v) for v in detail.participating_vendors
    ]
    if detail.pending_registrations is not None:
        response.pending_registrations = [
            RegistrationResponse.model_validate(r) for r in detail.pending_registrations
        ]
    if detail.my_registration is not None:
        response.my_registration = RegistrationResponse.model_validate(detail.my_registration)
    return response


@router.get("/{event_id}/registrations", response_model=list[RegistrationResponse])
async def list_registrations_endpoint(
    event_id: str,
    status: Optional[RegistrationStatus] = Query(None),
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Admin roster for one event, oldest application first."""
    return await list_registrations(db, caller, event_id, status)


@router.get("/{event_id}/analytics", response_model=EventAnalyticsResponse)
async def event_analytics_endpoint(
    event_id: str,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    return await get_event_analytics(db, caller, event_id)
