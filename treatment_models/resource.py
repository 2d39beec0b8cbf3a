"""
Resource and history models for the Treatment Slot Engine.

This module defines the 'Supply' side and the context the scorer reads:
1. Practitioners (Human resources with weekly shifts)
2. Patients (Clinical profile and scheduling history)
3. Commitments (Existing bookings that block time)
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Dict
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict


class AvailabilityBlock(BaseModel):
    """A specific weekly window when a practitioner is working."""
    day_of_week: int = Field(ge=0, le=6, description="0=Monday, 6=Sunday")
    start_time: time = Field(description="Shift start")
    end_time: time = Field(description="Shift end")

    @model_validator(mode='after')
    def validate_times(self):
        if self.start_time >= self.end_time:
            raise ValueError("End time must be strictly after start time")
        return self

    def covers(self, start: datetime, duration_minutes: int) -> bool:
        """True if a session starting at `start` fits ENTIRELY inside this block."""
        if start.weekday() != self.day_of_week:
            return False
        block_start = datetime.combine(start.date(), self.start_time)
        block_end = datetime.combine(start.date(), self.end_time)
        return block_start <= start and start + timedelta(minutes=duration_minutes) <= block_end


class PractitionerProfile(BaseModel):
    """
    Human resource with qualifications, weekly availability and track record.
    """
    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(default="", description="Name of the practitioner")

    qualified_treatment_types: List[str] = Field(
        default_factory=list,
        description="Treatment keys this practitioner may deliver"
    )

    # Scheduling Constraints
    availability: List[AvailabilityBlock] = Field(
        default_factory=list,
        description="Standard weekly working hours"
    )
    days_off: List[date] = Field(
        default_factory=list,
        description="Specific dates of unavailability (Holidays, Leave)"
    )

    # Scoring Inputs
    experience_years: float = Field(default=0.0, ge=0)
    specialization_scores: Dict[str, float] = Field(
        default_factory=dict,
        description="Per-treatment specialization match (0-1)"
    )
    on_time_completion_rate: Optional[float] = Field(
        default=None, ge=0.0, le=1.0,
        description="Share of past sessions finished on schedule"
    )
    average_overrun_minutes: int = Field(
        default=0, ge=0,
        description="Typical minutes a session runs past its slot"
    )

    facility_id: Optional[str] = Field(default=None, description="Default treatment room")

    @field_validator('qualified_treatment_types')
    @classmethod
    def normalise_types(cls, v):
        return [t.strip().lower() for t in v]

    def works_on(self, day: date) -> bool:
        """Does this practitioner have any shift on `day`?"""
        if day in self.days_off:
            return False
        return any(b.day_of_week == day.weekday() for b in self.availability)

    def is_available(self, start: datetime, duration_minutes: int) -> bool:
        """Does a session at `start` fit entirely inside one declared shift?"""
        if not self.works_on(start.date()):
            return False
        return any(b.covers(start, duration_minutes) for b in self.availability)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "prac_01",
            "name": "Dr. Meera Nair",
            "qualified_treatment_types": ["abhyanga", "shirodhara"],
            "availability": [
                {"day_of_week": 0, "start_time": "08:00:00", "end_time": "17:00:00"}
            ],
            "experience_years": 12,
            "specialization_scores": {"abhyanga": 0.95},
            "on_time_completion_rate": 0.9,
            "facility_id": "room_a"
        }
    })


class PatientProfile(BaseModel):
    """Clinical profile and scheduling history of a patient."""
    id: str = Field(min_length=1, description="Unique identifier")
    age: Optional[int] = Field(default=None, ge=0, le=130)
    constitution_score: Optional[float] = Field(
        default=None, ge=0.0, le=1.0,
        description="Normalised constitution (prakriti) assessment"
    )
    prior_treatment_count: int = Field(default=0, ge=0)
    historical_response_rate: Optional[float] = Field(
        default=None, ge=0.0, le=1.0,
        description="Share of past treatments with a positive response"
    )
    preferred_hours: List[int] = Field(
        default_factory=list,
        description="Hours of day the patient has historically booked"
    )

    @field_validator('preferred_hours')
    @classmethod
    def validate_hours(cls, v):
        for h in v:
            if not 0 <= h <= 23:
                raise ValueError(f"Preferred hour {h} is outside 0-23")
        return v


class Commitment(BaseModel):
    """
    An existing booking that blocks time for its owners.
    The range is half-open: [start, end).
    """
    id: str = Field(description="Identifier of the existing appointment")
    start: datetime
    end: datetime

    practitioner_id: Optional[str] = None
    patient_id: Optional[str] = None
    facility_id: Optional[str] = None

    @model_validator(mode='after')
    def validate_range(self):
        if self.end <= self.start:
            raise ValueError("Commitment end must be after start")
        return self
