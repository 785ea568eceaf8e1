"""
Closed status types and the registration state machine.

Registration status is never assigned directly: every change goes through
``transition(current, action)``, which consults ``TRANSITIONS`` and either
returns the next status or raises ``InvalidStateError``. Anything not in the
table is illegal, including every move out of ``cancelled``.
"""

import enum

from craftfair.core.exceptions import InvalidStateError


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventCategory(str, enum.Enum):
    CRAFT_FAIR = "craft_fair"
    WORKSHOP = "workshop"
    EXHIBITION = "exhibition"
    MARKETPLACE = "marketplace"
    CONFERENCE = "conference"
    NETWORKING = "networking"
    OTHER = "other"


class EventType(str, enum.Enum):
    PHYSICAL = "physical"
    VIRTUAL = "virtual"
    HYBRID = "hybrid"


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"


class RegistrationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    WAITLIST = "waitlist"
    CANCELLED = "cancelled"
    ATTENDED = "attended"

    @property
    def holds_seat(self) -> bool:
        return self in SEAT_HOLDING

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL


class RegistrationAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    UNREGISTER = "unregister"
    PROMOTE = "promote"
    ATTEND = "attend"


SEAT_HOLDING = frozenset({RegistrationStatus.CONFIRMED, RegistrationStatus.ATTENDED})
TERMINAL = frozenset({RegistrationStatus.CANCELLED, RegistrationStatus.ATTENDED})

TRANSITIONS: dict[tuple[RegistrationStatus, RegistrationAction], RegistrationStatus] = {
    (RegistrationStatus.PENDING, RegistrationAction.APPROVE): RegistrationStatus.CONFIRMED,
    (RegistrationStatus.PENDING, RegistrationAction.REJECT): RegistrationStatus.CANCELLED,
    (RegistrationStatus.PENDING, RegistrationAction.UNREGISTER): RegistrationStatus.CANCELLED,
    (RegistrationStatus.CONFIRMED, RegistrationAction.UNREGISTER): RegistrationStatus.CANCELLED,
    (RegistrationStatus.CONFIRMED, RegistrationAction.ATTEND): RegistrationStatus.ATTENDED,
    (RegistrationStatus.WAITLIST, RegistrationAction.PROMOTE): RegistrationStatus.CONFIRMED,
    (RegistrationStatus.WAITLIST, RegistrationAction.UNREGISTER): RegistrationStatus.CANCELLED,
    # feedback resubmission overwrites rating/feedback in place
    (RegistrationStatus.ATTENDED, RegistrationAction.ATTEND): RegistrationStatus.ATTENDED,
}


def transition(current: RegistrationStatus, action: RegistrationAction) -> RegistrationStatus:
    current = RegistrationStatus(current)
    try:
        return TRANSITIONS[(current, RegistrationAction(action))]
    except KeyError:
        raise InvalidStateError(
            f"Cannot {RegistrationAction(action).value} a registration that is {current.value}"
        ) from None


def allowed_actions(current: RegistrationStatus) -> set[RegistrationAction]:
    current = RegistrationStatus(current)
    return {action for (state, action) in TRANSITIONS if state == current}
