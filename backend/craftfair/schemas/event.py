"""
Pydantic schemas for event read responses.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from craftfair.schemas.registration import RegistrationResponse, VendorSummary


class EventResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str]
    category: str
    event_type: str
    location: Optional[str]
    start_date: datetime
    end_date: datetime
    registration_deadline: Optional[datetime]
    max_capacity: Optional[int]
    current_participants: int
    remaining_capacity: Optional[int]
    status: str
    created_at: datetime
    # Set only for vendor callers
    my_registration: Optional[RegistrationResponse] = None

    model_config = {"from_attributes": True}


class EventDetailResponse(EventResponse):
    participating_vendors: list[VendorSummary] = []
    pending_registrations: Optional[list[RegistrationResponse]] = None


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class EventAnalyticsResponse(BaseModel):
    event_id: str
    total_registrations: int
    pending_count: int
    confirmed_count: int
    waitlist_count: int
    cancelled_count: int
    attended_count: int
    current_participants: int
    max_capacity: Optional[int]
    capacity_percentage: Optional[float]
    ratings: list[int]
    average_rating: float
    feedback_count: int
