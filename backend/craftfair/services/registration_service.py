"""
Registration lifecycle: submit, approve, reject, unregister, feedback.

Every operation runs inside the caller's request transaction (see
``craftfair.db.session.get_db``) and follows the same shape:

  1. Lock the event row (SELECT ... FOR UPDATE) when the operation may touch
     the participant count.
  2. Load the registration and ask the state machine for the next status.
  3. Write the status with a guarded UPDATE (``WHERE status = <expected>``)
     so a concurrent transition that got there first is detected, not
     overwritten.
  4. Move the participant counter with the capacity-guarded statements in
     ``craftfair.services.capacity``.

Unregistering from a confirmed seat releases the seat and promotes the
earliest waitlisted registration in the same transaction, so the headcount
invariant holds at every point another transaction can observe.
"""

import functools
import inspect
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from craftfair.core.clock import as_utc, utcnow
from craftfair.core.exceptions import (
    CapacityExceededError,
    DeadlinePassedError,
    DuplicateRegistrationError,
    EventAlreadyStartedError,
    EventNotYetEndedError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    RegistrationError,
    ValidationError,
)
from craftfair.core.logging import bound_operation, get_logger
from craftfair.core.metrics import (
    record_capacity_rejection,
    record_promotion,
    record_transition,
    registration_latency,
)
from craftfair.models.event import Event
from craftfair.models.registration import EventRegistration
from craftfair.models.status import (
    EventStatus,
    RegistrationAction,
    RegistrationStatus,
    transition,
)
from craftfair.services.capacity import can_confirm, claim_seat, lock_event, release_seat
from craftfair.services.identity import Caller, require_admin, require_registrant

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class RegistrationOutcome:
    registration: EventRegistration
    current_participants: int
    max_capacity: Optional[int]
    promoted: Optional[EventRegistration] = None


def lifecycle_operation(name: str):
    """
    Wrap a lifecycle operation with log context, metrics and the
    persistence-failure policy: storage errors are logged with the operation
    and identifiers, then surfaced as an opaque PersistenceError. Nothing is
    retried here.
    """

    def decorator(func):
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            arguments = signature.bind(*args, **kwargs).arguments
            caller: Caller = arguments["caller"]
            start = time.perf_counter()

            with bound_operation(
                name,
                event_id=arguments.get("event_id"),
                registration_id=arguments.get("registration_id"),
                user_id=caller.user_id,
            ):
                try:
                    outcome = await func(*args, **kwargs)
                except RegistrationError as exc:
                    record_transition(name, "rejected")
                    logger.info("registration_operation_refused", reason=exc.code)
                    raise
                except SQLAlchemyError as exc:
                    record_transition(name, "error")
                    logger.error(
                        "registration_persistence_failed",
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    raise PersistenceError() from exc
                finally:
                    registration_latency.labels(operation=name).observe(
                        time.perf_counter() - start
                    )

            record_transition(name, "success")
            return outcome

        return wrapper

    return decorator


async def _get_active_event(db: AsyncSession, event_id: str, lock: bool = False) -> Event:
    if lock:
        event = await lock_event(db, event_id)
    else:
        result = await db.execute(select(Event).where(Event.id == event_id))
        event = result.scalar_one_or_none()

    if event is None or not event.is_active:
        raise NotFoundError("Event not found")
    return event


async def _find_registration(
    db: AsyncSession,
    event_id: str,
    *,
    registration_id: Optional[str] = None,
    vendor_id: Optional[str] = None,
) -> Optional[EventRegistration]:
    query = select(EventRegistration).where(EventRegistration.event_id == event_id)
    if registration_id is not None:
        query = query.where(EventRegistration.id == registration_id)
    if vendor_id is not None:
        query = query.where(EventRegistration.vendor_id == vendor_id)

    result = await db.execute(
        query.with_for_update().execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _write_status(
    db: AsyncSession,
    registration: EventRegistration,
    expected: RegistrationStatus,
    new_status: RegistrationStatus,
    **fields,
) -> None:
    """Guarded status write: only lands if nobody moved the row meanwhile."""
    result = await db.execute(
        update(EventRegistration)
        .where(
            EventRegistration.id == registration.id,
            EventRegistration.status == expected.value,
        )
        .values(status=new_status.value, **fields)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Another transaction transitioned this registration first
        await db.rollback()
        raise InvalidStateError("Registration was modified concurrently. Please reload and retry.")
    await db.refresh(registration)


async def _outcome(
    db: AsyncSession,
    event_id: str,
    registration: EventRegistration,
    promoted: Optional[EventRegistration] = None,
) -> RegistrationOutcome:
    row = (
        await db.execute(
            select(Event.current_participants, Event.max_capacity).where(Event.id == event_id)
        )
    ).one()
    return RegistrationOutcome(
        registration=registration,
        current_participants=row.current_participants,
        max_capacity=row.max_capacity,
        promoted=promoted,
    )


@lifecycle_operation("submit")
async def submit_registration(
    db: AsyncSession,
    caller: Caller,
    event_id: str,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RegistrationOutcome:
    """
    Apply to participate in a published event.
    Pending registrations do not occupy a seat, so the counter is untouched.
    """
    vendor_id = require_registrant(caller)
    now = now or utcnow()

    event = await _get_active_event(db, event_id)

    if event.status != EventStatus.PUBLISHED.value:
        raise InvalidStateError("Cannot register for unpublished events")

    deadline = as_utc(event.registration_deadline)
    if deadline is not None and now > deadline:
        raise DeadlinePassedError()

    existing = await _find_registration(db, event_id, vendor_id=vendor_id)
    if existing is not None:
        raise DuplicateRegistrationError()

    registration = EventRegistration(
        event_id=event_id,
        vendor_id=vendor_id,
        status=RegistrationStatus.PENDING.value,
        registration_date=now,
        notes=notes,
    )
    db.add(registration)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race against the same vendor's concurrent submission
        await db.rollback()
        raise DuplicateRegistrationError() from None
    await db.refresh(registration)

    logger.info("registration_submitted", registration_id=registration.id, vendor_id=vendor_id)
    return await _outcome(db, event_id, registration)


@lifecycle_operation("approve")
async def approve_registration(
    db: AsyncSession,
    caller: Caller,
    event_id: str,
    registration_id: str,
) -> RegistrationOutcome:
    """
    Confirm a pending registration, taking one seat.
    Fails with CapacityExceeded, writing nothing, when the event is full.
    """
    require_admin(caller)

    event = await lock_event(db, event_id)
    if event is None:
        raise NotFoundError("Event not found")

    registration = await _find_registration(db, event_id, registration_id=registration_id)
    if registration is None:
        raise NotFoundError("Registration not found")

    current = registration.state
    next_status = transition(current, RegistrationAction.APPROVE)

    if not can_confirm(event) or not await claim_seat(db, event_id):
        record_capacity_rejection()
        logger.warning(
            "capacity_exceeded",
            current_participants=event.current_participants,
            max_capacity=event.max_capacity,
        )
        raise CapacityExceededError()

    await _write_status(db, registration, current, next_status)

    logger.info("registration_approved", vendor_id=registration.vendor_id)
    return await _outcome(db, event_id, registration)


@lifecycle_operation("reject")
async def reject_registration(
    db: AsyncSession,
    caller: Caller,
    event_id: str,
    registration_id: str,
    reason: Optional[str] = None,
) -> RegistrationOutcome:
    """Cancel a pending registration. It never held a seat, so no counter change."""
    require_admin(caller)

    event = await lock_event(db, event_id)
    if event is None:
        raise NotFoundError("Event not found")

    registration = await _find_registration(db, event_id, registration_id=registration_id)
    if registration is None:
        raise NotFoundError("Registration not found")

    current = registration.state
    next_status = transition(current, RegistrationAction.REJECT)

    fields = {"notes": reason} if reason else {}
    await _write_status(db, registration, current, next_status, **fields)

    logger.info("registration_rejected", vendor_id=registration.vendor_id, has_reason=bool(reason))
    return await _outcome(db, event_id, registration)


async def promote_next_waitlisted(
    db: AsyncSession, event_id: str
) -> Optional[EventRegistration]:
    """
    Confirm the waitlisted registration with the earliest registration_date.
    Ties on registration_date fall back to id so the order is total.
    Must run inside a transaction that already holds the event row lock.
    """
    result = await db.execute(
        select(EventRegistration)
        .where(
            EventRegistration.event_id == event_id,
            EventRegistration.status == RegistrationStatus.WAITLIST.value,
        )
        .order_by(EventRegistration.registration_date.asc(), EventRegistration.id.asc())
        .limit(1)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    candidate = result.scalar_one_or_none()
    if candidate is None:
        return None

    next_status = transition(candidate.state, RegistrationAction.PROMOTE)
    if not await claim_seat(db, event_id):
        logger.warning("waitlist_promotion_skipped", reason="no_capacity")
        return None

    await _write_status(db, candidate, RegistrationStatus.WAITLIST, next_status)

    record_promotion()
    logger.info(
        "waitlist_promoted",
        promoted_registration_id=candidate.id,
        vendor_id=candidate.vendor_id,
    )
    return candidate


@lifecycle_operation("unregister")
async def unregister(
    db: AsyncSession,
    caller: Caller,
    event_id: str,
    now: Optional[datetime] = None,
) -> RegistrationOutcome:
    """
    Withdraw the caller's own registration before the event starts.
    Vacating a confirmed seat promotes the head of the waitlist.
    """
    vendor_id = require_registrant(caller, "Only vendors can unregister from events")
    now = now or utcnow()

    event = await _get_active_event(db, event_id, lock=True)

    registration = await _find_registration(db, event_id, vendor_id=vendor_id)
    if registration is None:
        raise NotFoundError("You are not registered for this event")

    if now >= as_utc(event.start_date):
        raise EventAlreadyStartedError()

    previous = registration.state
    next_status = transition(previous, RegistrationAction.UNREGISTER)
    await _write_status(db, registration, previous, next_status)

    promoted = None
    if previous.holds_seat:
        await release_seat(db, event_id)
        promoted = await promote_next_waitlisted(db, event_id)

    logger.info(
        "registration_withdrawn",
        registration_id=registration.id,
        previous_status=previous.value,
        promoted_registration_id=promoted.id if promoted else None,
    )
    return await _outcome(db, event_id, registration, promoted)


def _validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


@lifecycle_operation("feedback")
async def submit_feedback(
    db: AsyncSession,
    caller: Caller,
    event_id: str,
    rating: int,
    feedback: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RegistrationOutcome:
    """
    Record rating/feedback after the event ends and mark the registration
    attended. Resubmitting overwrites the previous rating and feedback.
    An attended registration keeps its seat, so the counter is untouched.
    """
    rating = _validate_rating(rating)
    vendor_id = require_registrant(caller, "Only vendors can submit feedback")
    now = now or utcnow()

    event = await _get_active_event(db, event_id)

    registration = await _find_registration(db, event_id, vendor_id=vendor_id)
    if registration is None:
        raise NotFoundError("You did not register for this event")

    if now < as_utc(event.end_date):
        raise EventNotYetEndedError()

    current = registration.state
    next_status = transition(current, RegistrationAction.ATTEND)
    await _write_status(db, registration, current, next_status, rating=rating, feedback=feedback)

    logger.info("feedback_submitted", registration_id=registration.id, rating=rating)
    return await _outcome(db, event_id, registration)
