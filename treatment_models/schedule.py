"""
Schedule data models for the Treatment Slot Engine.

This module defines the 'Output' of the scheduling engine:
scored candidate slots, the conflicts found against them,
and the result of trying to resolve those conflicts.
"""

from typing import List, Optional, Dict
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime, timedelta


class ConflictClass(str, Enum):
    """Dimension along which double-booking is checked."""
    PRACTITIONER = "practitioner"
    PATIENT = "patient"
    FACILITY = "facility"


class CandidateSlot(BaseModel):
    """
    A proposed (practitioner, time, duration) tuple with its confidence.
    Produced fresh per request and never persisted by the engine.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "practitioner_id": "prac_01",
                "patient_id": "pat_001",
                "treatment_type": "abhyanga",
                "start": "2026-10-20T10:00:00",
                "duration_minutes": 60,
                "confidence": 0.95,
                "within_timing_window": True,
                "estimated_duration_minutes": 65,
                "facility_id": "room_a",
            }
        },
    )

    # --- Core Scheduling Data ---
    practitioner_id: str
    patient_id: str
    treatment_type: str
    start: datetime
    duration_minutes: int = Field(gt=0, le=480)

    # --- Scoring ---
    confidence: float = Field(ge=0.0, le=1.0, description="Scheduling success likelihood")
    within_timing_window: bool = Field(
        default=False,
        description="True if the start hour is one of the treatment's preferred hours"
    )
    estimated_duration_minutes: int = Field(
        gt=0,
        description="Duration including the practitioner's typical overrun"
    )
    score_breakdown: Dict[str, float] = Field(
        default_factory=dict,
        description="Base model score and each bonus that went into confidence"
    )

    # --- Resource Allocation ---
    facility_id: Optional[str] = Field(default=None, description="Assigned treatment room")

    @field_validator('confidence', mode='before')
    @classmethod
    def clamp_confidence(cls, v):
        return max(0.0, min(1.0, float(v)))

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)


class ConflictRecord(BaseModel):
    """One collision between a proposed slot and an existing commitment."""
    model_config = ConfigDict(frozen=True)

    conflict_class: ConflictClass
    commitment_id: str = Field(description="ID of the colliding existing commitment")
    overlap_start: datetime
    overlap_end: datetime


class ResolutionOutcome(BaseModel):
    """
    Result of booking or resolving a slot.
    On success `slot` is set; on failure `alternatives` lists what a human could pick.
    """
    success: bool
    slot: Optional[CandidateSlot] = Field(default=None, description="Booked / resolved slot")
    extra_sessions: List[CandidateSlot] = Field(
        default_factory=list,
        description="Remaining sittings when a long treatment was split"
    )
    alternatives: List[CandidateSlot] = Field(default_factory=list)
    conflicts: List[ConflictRecord] = Field(
        default_factory=list,
        description="Conflicts found on the originally proposed slot"
    )
    strategy: Optional[str] = Field(
        default=None,
        description="Name of the resolution strategy that produced `slot`"
    )

    @property
    def sessions(self) -> List[CandidateSlot]:
        """All sittings that make up the booking, in order."""
        if self.slot is None:
            return []
        return [self.slot, *self.extra_sessions]
