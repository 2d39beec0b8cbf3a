"""
The Treatment Scheduling Engine.

This module implements the entry points the rest of the clinic system calls:
1. recommend() - ranked options for a treatment request, no side effects.
2. book() - confirm a chosen (or the best) slot, resolving conflicts on the way.
3. score() - direct access to the scoring model for inspection.

All data comes through injected collaborators. The engine keeps no state
between calls, so independent requests can run concurrently without locking.
"""

import logging
from datetime import date as date_type, datetime
from typing import Callable, List, Optional

from treatment_models import (
    CandidateSlot,
    FeatureVector,
    PractitionerProfile,
    ResolutionOutcome,
    TreatmentRequest,
)
from .collaborators import BookingNotifier, BookingPersistence, SchedulingDataAccess
from .config import SchedulingConfig
from .conflicts import ConflictDetector
from .errors import BookingWriteConflict, SchedulingValidationError
from .policies import TimingPolicyTable
from .resolver import ConflictResolver, ResolutionContext
from .scoring import ScoringModel, load_scoring_model
from .slots import SlotGenerator, ranking_key

logger = logging.getLogger(__name__)


class SchedulingEngine:
    """
    Main orchestrator.
    Ingests a TreatmentRequest, outputs ranked slots or a ResolutionOutcome.
    """

    def __init__(
        self,
        data_access: SchedulingDataAccess,
        scoring_model: Optional[ScoringModel] = None,
        policies: Optional[TimingPolicyTable] = None,
        config: Optional[SchedulingConfig] = None,
        persistence: Optional[BookingPersistence] = None,
        notifier: Optional[BookingNotifier] = None,
        detector: Optional[ConflictDetector] = None,
        resolver: Optional[ConflictResolver] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config = config or SchedulingConfig()
        self.data_access = data_access
        self.persistence = persistence
        self.notifier = notifier
        self.clock = clock

        # Scoring variant is chosen once, here
        self.scoring_model = scoring_model or load_scoring_model(self.config.model_path)
        self.policies = policies or TimingPolicyTable()

        # Initialize Helpers
        self.generator = SlotGenerator(self.scoring_model, self.policies, self.config)
        self.detector = detector or ConflictDetector()
        self.resolver = resolver or ConflictResolver()

        logger.info(f"Scheduling engine ready ({self.scoring_model.mode} scoring, "
                    f"{self.config.horizon_days}-day horizon)")

    # --- Public API ---

    def score(self, features: FeatureVector) -> float:
        return self.scoring_model.predict(features)

    def recommend(self, request: TreatmentRequest, limit: Optional[int] = None) -> List[CandidateSlot]:
        """
        Ranked candidate slots for the request. Read-only.
        An empty list means "no availability" and is not an error.
        """
        self._validate(request)
        now = self.clock()
        start_date = self._anchor_date(request, now)

        patient = self.data_access.get_patient_profile(request.patient_id)
        slots = []
        for practitioner in self._practitioners_for(request):
            slots.extend(self.generator.iter_candidates(request, practitioner, patient, start_date, now))
        slots.sort(key=ranking_key)

        if limit is not None:
            slots = slots[:limit]
        logger.info(f"Recommending {len(slots)} slot(s) for {request.patient_id} ({request.treatment_type})")
        return slots

    def book(self, request: TreatmentRequest, chosen: Optional[CandidateSlot] = None) -> ResolutionOutcome:
        """
        Book the chosen slot, or the best available one.

        Conflict-free chosen slots are returned unchanged. Conflicted ones go
        through the resolver. Persistence and notification run only on success.
        """
        self._validate(request)
        if chosen is not None:
            self._validate_choice(request, chosen)

        attempts = self.config.max_write_retries + 1
        for attempt in range(attempts):
            outcome = self._plan_booking(request, chosen)
            if not outcome.success:
                return outcome
            try:
                self._confirm(request, outcome)
                return outcome
            except BookingWriteConflict as exc:
                logger.warning(f"Write conflict on attempt {attempt + 1}/{attempts}: {exc}")
                # Re-plan the caller's original choice against a fresh snapshot
                last_error, attempted = exc, outcome.sessions

        return self._write_failure(request, attempted, last_error)

    # --- Booking pipeline ---

    def _plan_booking(self, request: TreatmentRequest, chosen: Optional[CandidateSlot]) -> ResolutionOutcome:
        if chosen is None:
            candidates = self.recommend(request)
            if not candidates:
                logger.info(f"No slots available for {request.patient_id} ({request.treatment_type})")
                return ResolutionOutcome(success=False)
            proposed = candidates[0]
        else:
            proposed = chosen

        context = self._context_for(request, proposed)
        conflicts = context.conflicts_for(proposed)
        if not conflicts:
            return ResolutionOutcome(success=True, slot=proposed)

        return self.resolver.resolve(proposed, conflicts, context)

    def _context_for(self, request: TreatmentRequest, proposed: CandidateSlot) -> ResolutionContext:
        now = self.clock()
        return ResolutionContext(
            request=request,
            practitioner=self.data_access.get_practitioner_profile(proposed.practitioner_id),
            patient=self.data_access.get_patient_profile(request.patient_id),
            policy=self.policies.get(request.treatment_type),
            start_date=self._anchor_date(request, now),
            generator=self.generator,
            detector=self.detector,
            data_access=self.data_access,
            now=now,
            proposed=proposed,
        )

    def _write_failure(
        self,
        request: TreatmentRequest,
        attempted: List[CandidateSlot],
        error: BookingWriteConflict
    ) -> ResolutionOutcome:
        """
        Out of write retries. Report what the write side clashed with and
        offer alternatives like an exhausted resolution does.
        """
        context = self._context_for(request, attempted[0])
        conflicts = error.conflicts or [record for slot in attempted for record in context.conflicts_for(slot)]
        alternatives = self.resolver.relaxed_alternatives(context)
        logger.warning(f"Giving up on {request.patient_id} after write conflicts with {error.commitment_ids}; "
                       f"offering {len(alternatives)} alternative(s)")
        return ResolutionOutcome(success=False, alternatives=alternatives, conflicts=conflicts)

    def _confirm(self, request: TreatmentRequest, outcome: ResolutionOutcome) -> None:
        sessions = outcome.sessions
        if self.persistence is not None:
            self.persistence.persist_booking(request, sessions)
        if self.notifier is not None:
            self.notifier.notify_booking(request, sessions)
        logger.info(f"Booked {request.treatment_type} for {request.patient_id} at "
                    f"{sessions[0].start:%Y-%m-%d %H:%M} with {sessions[0].practitioner_id}")

    # --- Helpers ---

    def _practitioners_for(self, request: TreatmentRequest) -> List[PractitionerProfile]:
        if request.practitioner_id:
            return [self.data_access.get_practitioner_profile(request.practitioner_id)]
        return list(self.data_access.get_qualified_practitioners(request.treatment_type))

    def _anchor_date(self, request: TreatmentRequest, now: datetime) -> date_type:
        """Horizon starts on the preferred date, never before today."""
        today = now.date()
        if request.preferred_datetime is None:
            return today
        return max(today, request.preferred_datetime.date())

    def _validate(self, request: TreatmentRequest) -> None:
        if not request.patient_id:
            raise SchedulingValidationError("patient_id is required")
        if request.duration_minutes is not None and request.duration_minutes <= 0:
            raise SchedulingValidationError("duration_minutes must be positive")
        # Strict tables raise here for unknown treatment types
        self.policies.get(request.treatment_type)

    def _validate_choice(self, request: TreatmentRequest, chosen: CandidateSlot) -> None:
        if chosen.patient_id != request.patient_id:
            raise SchedulingValidationError("Chosen slot belongs to a different patient")
        if chosen.treatment_type != request.treatment_type:
            raise SchedulingValidationError("Chosen slot is for a different treatment type")
        if not chosen.practitioner_id:
            raise SchedulingValidationError("Chosen slot has no practitioner")
