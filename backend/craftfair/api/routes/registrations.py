"""
Registration lifecycle endpoints.

Vendors submit, withdraw and leave feedback on their own registration;
admins approve or reject pending ones. Each response carries the event's
current_participants and max_capacity so clients can render remaining
capacity without a second request.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from craftfair.api.deps import get_current_caller
from craftfair.db.session import get_db
from craftfair.schemas.registration import (
    FeedbackCreate,
    RegistrationCreate,
    RegistrationOutcomeResponse,
    RegistrationReject,
    RegistrationResponse,
)
from craftfair.services.cache_service import invalidate_event_cache
from craftfair.services.identity import Caller
from craftfair.services.registration_service import (
    RegistrationOutcome,
    approve_registration,
    reject_registration,
    submit_feedback,
    submit_registration,
    unregister,
)

router = APIRouter(prefix="/events", tags=["Registrations"])


def _to_response(outcome: RegistrationOutcome, message: str) -> RegistrationOutcomeResponse:
    remaining = None
    if outcome.max_capacity is not None:
        remaining = max(outcome.max_capacity - outcome.current_participants, 0)

    promoted = None
    if outcome.promoted is not None:
        promoted = RegistrationResponse.model_validate(outcome.promoted)

    return RegistrationOutcomeResponse(
        message=message,
        registration=RegistrationResponse.model_validate(outcome.registration),
        current_participants=outcome.current_participants,
        max_capacity=outcome.max_capacity,
        remaining_capacity=remaining,
        promoted_registration=promoted,
    )


@router.post(
    "/{event_id}/register",
    response_model=RegistrationOutcomeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_for_event(
    event_id: str,
    payload: RegistrationCreate | None = None,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Apply to an event. The registration waits for admin approval."""
    notes = payload.notes if payload else None
    outcome = await submit_registration(db, caller, event_id, notes=notes)
    return _to_response(outcome, "Registration submitted successfully! Waiting for admin approval.")


@router.delete("/{event_id}/register", response_model=RegistrationOutcomeResponse)
async def unregister_from_event(
    event_id: str,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw before the event starts. A vacated seat goes to the waitlist head."""
    outcome = await unregister(db, caller, event_id)
    await db.commit()
    await invalidate_event_cache()
    return _to_response(outcome, "Successfully unregistered from event")


@router.post("/{event_id}/feedback", response_model=RegistrationOutcomeResponse)
async def submit_event_feedback(
    event_id: str,
    payload: FeedbackCreate,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    outcome = await submit_feedback(
        db, caller, event_id, rating=payload.rating, feedback=payload.feedback
    )
    return _to_response(outcome, "Feedback submitted successfully")


@router.put(
    "/{event_id}/registrations/{registration_id}/approve",
    response_model=RegistrationOutcomeResponse,
)
async def approve_event_registration(
    event_id: str,
    registration_id: str,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Confirm a pending registration if the event still has a free seat."""
    outcome = await approve_registration(db, caller, event_id, registration_id)
    await db.commit()
    await invalidate_event_cache()
    return _to_response(outcome, "Registration approved successfully")


@router.put(
    "/{event_id}/registrations/{registration_id}/reject",
    response_model=RegistrationOutcomeResponse,
)
async def reject_event_registration(
    event_id: str,
    registration_id: str,
    payload: RegistrationReject | None = None,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    reason = payload.reason if payload else None
    outcome = await reject_registration(db, caller, event_id, registration_id, reason=reason)
    return _to_response(outcome, "Registration rejected successfully")
