"""
Treatment request and scoring-input models for the Treatment Slot Engine.
"""

from datetime import datetime
from typing import Optional, List, Tuple
from pydantic import BaseModel, Field, field_validator, ConfigDict


class TreatmentRequest(BaseModel):
    """
    A patient's request for a treatment session.
    Immutable once handed to the scheduler.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "patient_id": "pat_001",
                "treatment_type": "abhyanga",
                "practitioner_id": "prac_01",
                "preferred_datetime": "2026-10-20T10:00:00",
                "duration_minutes": 60,
            }
        },
    )

    patient_id: str = Field(min_length=1, description="ID of the patient being treated")
    treatment_type: str = Field(min_length=1, description="Treatment key, e.g. 'abhyanga'")

    practitioner_id: Optional[str] = Field(
        default=None,
        description="Explicit practitioner. If None, any qualified practitioner may be used."
    )
    preferred_datetime: Optional[datetime] = Field(
        default=None,
        description="Requested start. Its date anchors the generation horizon."
    )
    duration_minutes: Optional[int] = Field(
        default=None,
        gt=0,
        le=480,
        description="Session length. Defaults to the treatment's canonical duration."
    )
    facility_id: Optional[str] = Field(
        default=None,
        description="Treatment room. Defaults to the practitioner's room."
    )

    @field_validator('treatment_type')
    @classmethod
    def normalise_treatment_type(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("treatment_type cannot be blank")
        return v


class TimingPolicy(BaseModel):
    """Static timing knowledge for one treatment type."""
    model_config = ConfigDict(frozen=True)

    preferred_hours: Tuple[int, ...] = Field(description="Ordered hours of day (0-23)")
    duration_minutes: int = Field(gt=0, le=480, description="Canonical session length")
    splittable: bool = Field(
        default=False,
        description="If True, a long session may be delivered as two shorter sittings"
    )

    @field_validator('preferred_hours')
    @classmethod
    def validate_hours(cls, v):
        if not v:
            raise ValueError("A timing policy needs at least one preferred hour")
        for h in v:
            if not 0 <= h <= 23:
                raise ValueError(f"Hour {h} is outside 0-23")
        # Ordered set: sorted, no duplicates
        return tuple(sorted(set(v)))


# Order is part of the scoring model's contract. Changing it invalidates
# any persisted estimator.
FEATURE_ORDER: Tuple[str, ...] = (
    "hour_of_day",
    "day_of_week",
    "patient_age",
    "constitution_score",
    "experience_years",
    "specialization_match",
    "prior_treatment_count",
    "historical_response_rate",
)


class FeatureVector(BaseModel):
    """Fixed-order numeric description of a (patient, practitioner, time) pairing."""
    model_config = ConfigDict(frozen=True)

    hour_of_day: int = Field(ge=0, le=23)
    day_of_week: int = Field(ge=0, le=6, description="0=Monday, 6=Sunday")
    patient_age: float = Field(ge=0)
    constitution_score: float = Field(ge=0.0, le=1.0)
    experience_years: float = Field(ge=0)
    specialization_match: float = Field(ge=0.0, le=1.0)
    prior_treatment_count: int = Field(ge=0)
    historical_response_rate: float = Field(ge=0.0, le=1.0)

    def to_list(self) -> List[float]:
        return [float(getattr(self, name)) for name in FEATURE_ORDER]
