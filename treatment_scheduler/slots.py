"""
Slot Generation and Ranking.

Enumerates candidate start times over the generation horizon, keeps those the
practitioner can actually work, and scores each one:

    confidence = min(1.0, model score + timing bonus + preference bonus + efficiency bonus)

Only candidates strictly above the acceptance threshold survive. The final
list is ranked by confidence (desc), then start time (asc).
"""

import logging
from datetime import date as date_type, datetime, time, timedelta
from typing import Iterator, List, Optional, Tuple

from treatment_models import (
    CandidateSlot,
    PatientProfile,
    PractitionerProfile,
    TimingPolicy,
    TreatmentRequest,
)
from .config import SchedulingConfig
from .features import FeatureExtractor
from .policies import TimingPolicyTable
from .scoring import ScoringModel, clamp

logger = logging.getLogger(__name__)


def ranking_key(slot: CandidateSlot) -> Tuple[float, datetime]:
    """Sort key for the recommendation ranking."""
    return (-slot.confidence, slot.start)


class SlotGenerator:
    """
    Produces ranked CandidateSlots for one practitioner.
    Stateless between calls; every input is passed in.
    """

    def __init__(
        self,
        scoring_model: ScoringModel,
        policies: TimingPolicyTable,
        config: Optional[SchedulingConfig] = None,
        extractor: Optional[FeatureExtractor] = None
    ):
        self.scoring_model = scoring_model
        self.policies = policies
        self.config = config or SchedulingConfig()
        self.extractor = extractor or FeatureExtractor()

    # --- Horizon helpers ---

    def horizon_days(self, start_date: date_type) -> List[date_type]:
        return [start_date + timedelta(days=offset) for offset in range(self.config.horizon_days)]

    def in_horizon(self, when: datetime, start_date: date_type) -> bool:
        return start_date <= when.date() < start_date + timedelta(days=self.config.horizon_days)

    def duration_for(self, request: TreatmentRequest, policy: Optional[TimingPolicy] = None) -> int:
        if request.duration_minutes:
            return request.duration_minutes
        policy = policy or self.policies.get(request.treatment_type)
        return policy.duration_minutes

    # --- Generation ---

    def generate(
        self,
        request: TreatmentRequest,
        practitioner: PractitionerProfile,
        patient: PatientProfile,
        start_date: date_type,
        now: Optional[datetime] = None
    ) -> List[CandidateSlot]:
        """Return accepted candidates in ranking order. Empty if nothing is available."""
        slots = sorted(self.iter_candidates(request, practitioner, patient, start_date, now), key=ranking_key)
        logger.debug(f"{len(slots)} candidate(s) for {request.treatment_type} with {practitioner.id}")
        return slots

    def iter_candidates(
        self,
        request: TreatmentRequest,
        practitioner: PractitionerProfile,
        patient: PatientProfile,
        start_date: date_type,
        now: Optional[datetime] = None
    ) -> Iterator[CandidateSlot]:
        """
        Lazily yield accepted candidates in chronological (unranked) order.
        """
        policy = self.policies.get(request.treatment_type)
        duration = self.duration_for(request, policy)

        for day in self.horizon_days(start_date):
            if not practitioner.works_on(day):
                continue

            for hour in policy.preferred_hours:
                start = datetime.combine(day, time(hour=hour))
                if now is not None and start < now:
                    continue
                if not practitioner.is_available(start, duration):
                    continue

                slot = self.score_slot(request, practitioner, patient, start, duration, policy)
                if slot.confidence > self.config.acceptance_threshold:
                    yield slot

    # --- Scoring ---

    def score_slot(
        self,
        request: TreatmentRequest,
        practitioner: PractitionerProfile,
        patient: PatientProfile,
        start: datetime,
        duration: Optional[int] = None,
        policy: Optional[TimingPolicy] = None
    ) -> CandidateSlot:
        """
        Score one start time for one practitioner. Does NOT apply the
        acceptance threshold or availability checks.
        """
        policy = policy or self.policies.get(request.treatment_type)
        duration = duration or self.duration_for(request, policy)

        features = self.extractor.extract(patient, practitioner, request.treatment_type, start)
        base = self.scoring_model.predict(features)

        timing_bonus = self._timing_bonus(start, policy)
        preference_bonus = self._preference_bonus(start, patient)
        efficiency_bonus = self._efficiency_bonus(practitioner)

        confidence = clamp(round(base + timing_bonus + preference_bonus + efficiency_bonus, 6))

        return CandidateSlot(
            practitioner_id=practitioner.id,
            patient_id=request.patient_id,
            treatment_type=request.treatment_type,
            start=start,
            duration_minutes=duration,
            confidence=confidence,
            within_timing_window=start.hour in policy.preferred_hours,
            estimated_duration_minutes=duration + practitioner.average_overrun_minutes,
            facility_id=request.facility_id or practitioner.facility_id,
            score_breakdown={
                "model": base,
                "timing_bonus": timing_bonus,
                "preference_bonus": preference_bonus,
                "efficiency_bonus": efficiency_bonus,
            },
        )

    def _timing_bonus(self, start: datetime, policy: TimingPolicy) -> float:
        """Treatment delivered at one of its classical hours."""
        if start.hour in policy.preferred_hours:
            return self.config.bonuses.timing
        return 0.0

    def _preference_bonus(self, start: datetime, patient: PatientProfile) -> float:
        """
        Patient's historical time affinity.
        Exact hour match: full weight. Within one hour: half weight.
        """
        if not patient.preferred_hours:
            return 0.0
        distance = min(abs(start.hour - h) for h in patient.preferred_hours)
        if distance == 0:
            return self.config.bonuses.preference
        if distance == 1:
            return self.config.bonuses.preference / 2
        return 0.0

    def _efficiency_bonus(self, practitioner: PractitionerProfile) -> float:
        """Practitioners who finish on time keep the rest of the day intact."""
        if practitioner.on_time_completion_rate is None:
            return 0.0
        return self.config.bonuses.efficiency * practitioner.on_time_completion_rate
