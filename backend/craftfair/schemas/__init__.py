from craftfair.schemas.event import (
    EventResponse,
    EventDetailResponse,
    EventListResponse,
    EventAnalyticsResponse,
)
from craftfair.schemas.registration import (
    VendorSummary,
    RegistrationCreate,
    RegistrationReject,
    FeedbackCreate,
    RegistrationResponse,
    RegistrationOutcomeResponse,
)

__all__ = [
    "EventResponse", "EventDetailResponse", "EventListResponse", "EventAnalyticsResponse",
    "VendorSummary", "RegistrationCreate", "RegistrationReject", "FeedbackCreate",
    "RegistrationResponse", "RegistrationOutcomeResponse",
]
