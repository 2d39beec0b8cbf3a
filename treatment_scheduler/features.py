"""
Feature Extraction.

Turns a (patient, practitioner, treatment, time) pairing into the fixed-order
numeric vector the scoring model consumes.
"""

from datetime import datetime
from typing import Optional, Union

from treatment_models import FeatureVector, PatientProfile, PractitionerProfile
from .errors import SchedulingValidationError

# Population-neutral substitutes for missing profile data
DEFAULT_AGE = 35
DEFAULT_CONSTITUTION = 0.5
DEFAULT_SPECIALIZATION = 0.8
DEFAULT_RESPONSE_RATE = 0.5


def coerce_datetime(value: Union[datetime, str]) -> datetime:
    """Accept a datetime or an ISO-8601 string. Anything else is malformed."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError as exc:
            raise SchedulingValidationError(f"Malformed candidate datetime: {value!r}") from exc
    raise SchedulingValidationError(f"Candidate datetime must be a datetime, got {type(value).__name__}")


class FeatureExtractor:
    """Pure feature builder. Holds no state."""

    def extract(
        self,
        patient: Optional[PatientProfile],
        practitioner: Optional[PractitionerProfile],
        treatment_type: str,
        candidate: Union[datetime, str]
    ) -> FeatureVector:
        if patient is None:
            raise SchedulingValidationError("A patient profile is required for feature extraction")
        if practitioner is None:
            raise SchedulingValidationError("A practitioner profile is required for feature extraction")

        when = coerce_datetime(candidate)
        key = treatment_type.strip().lower()

        age = patient.age if patient.age is not None else DEFAULT_AGE
        constitution = (
            patient.constitution_score if patient.constitution_score is not None else DEFAULT_CONSTITUTION
        )
        response_rate = (
            patient.historical_response_rate
            if patient.historical_response_rate is not None else DEFAULT_RESPONSE_RATE
        )
        specialization = practitioner.specialization_scores.get(key, DEFAULT_SPECIALIZATION)

        return FeatureVector(
            hour_of_day=when.hour,
            day_of_week=when.weekday(),
            patient_age=age,
            constitution_score=constitution,
            experience_years=practitioner.experience_years,
            specialization_match=specialization,
            prior_treatment_count=patient.prior_treatment_count,
            historical_response_rate=response_rate,
        )
