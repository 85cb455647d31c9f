"""
Shared request and response models for API endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class TimeSlotResponse(BaseModel):
    date: str
    start_time: str  # Format: "HH:MM"
    end_time: str  # Format: "HH:MM"
    available: bool


class AvailabilityDayResponse(BaseModel):
    date: str
    day_of_week: int  # 0=Sunday
    slots: List[TimeSlotResponse]


class AvailabilityResponse(BaseModel):
    business_id: str
    service_id: str
    days: List[AvailabilityDayResponse]


class NextAvailableSlotResponse(BaseModel):
    date: str
    start_time: str
    end_time: str


class ConflictSuggestions(BaseModel):
    next_available_slot: Optional[NextAvailableSlotResponse] = None


class ConflictCheckRequest(BaseModel):
    business_id: str
    service_id: str
    appointment_date: str  # Format: "YYYY-MM-DD"
    start_time: str  # Format: "HH:MM"
    exclude_appointment_id: Optional[str] = None


class ConflictCheckResponse(BaseModel):
    is_available: bool
    conflicts: List[str]
    suggestions: Optional[ConflictSuggestions] = None


class AppointmentCreateRequest(BaseModel):
    business_id: str
    service_id: str
    appointment_date: str
    start_time: str
    customer_name: str = Field(..., max_length=255)
    customer_email: str = Field(..., max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=1000)


class AppointmentRescheduleRequest(BaseModel):
    appointment_date: str
    start_time: str
    reason: Optional[str] = Field(None, max_length=500)


class AppointmentResponse(BaseModel):
    id: str
    business_id: str
    service_id: str
    appointment_date: str
    start_time: str
    end_time: str
    status: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    confirmation_number: str
    service_price: int


class WarmingResultResponse(BaseModel):
    success: bool
    businesses_warmed: int
    errors: List[str]
    duration_ms: float


class WarmingStatusResponse(BaseModel):
    is_warming: bool
    last_warming_time: Optional[str] = None
    next_warming_time: Optional[str] = None
    should_warm: bool
