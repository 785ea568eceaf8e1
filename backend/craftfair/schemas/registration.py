"""
Pydantic schemas for registration requests and lifecycle responses.

Rating bounds are checked by the lifecycle service, which reports them
as a typed validation_error.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class VendorSummary(BaseModel):
    id: str
    business_name: str
    logo_url: Optional[str] = None

    model_config = {"from_attributes": True}


class RegistrationCreate(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class RegistrationReject(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)


class FeedbackCreate(BaseModel):
    rating: int = Field(..., strict=True)
    feedback: Optional[str] = Field(None, max_length=5000)


class RegistrationResponse(BaseModel):
    id: str
    event_id: str
    vendor_id: str
    status: str
    registration_date: datetime
    notes: Optional[str]
    rating: Optional[int]
    feedback: Optional[str]
    vendor: Optional[VendorSummary] = None

    model_config = {"from_attributes": True}


class RegistrationOutcomeResponse(BaseModel):
    message: str
    registration: RegistrationResponse
    current_participants: int
    max_capacity: Optional[int]
    remaining_capacity: Optional[int]
    promoted_registration: Optional[RegistrationResponse] = None
