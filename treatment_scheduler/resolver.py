"""
Conflict Resolution Engine.

When a proposed slot collides with existing commitments, the resolver walks an
ordered chain of strategies, least disruptive first:
1. reschedule_adjacent - nudge the time within the same day.
2. find_alternative_practitioner - same time, different qualified practitioner.
3. suggest_different_time - same practitioner, best free slot in the horizon.
4. split_long_treatment - deliver a long therapy as two shorter sittings.

The first strategy that yields a verified conflict-free result wins. If all of
them fail, the caller gets ranked alternatives for a human to choose from.
"""

import math
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date as date_type, datetime, time, timedelta
from typing import Dict, Iterator, List, Optional, Sequence

from treatment_models import (
    CandidateSlot,
    Commitment,
    ConflictRecord,
    PatientProfile,
    PractitionerProfile,
    ResolutionOutcome,
    TimingPolicy,
    TreatmentRequest,
)
from .collaborators import SchedulingDataAccess
from .conflicts import ConflictDetector
from .slots import SlotGenerator, ranking_key

logger = logging.getLogger(__name__)


@dataclass
class ResolutionContext:
    """
    Everything a strategy needs for one resolution run.
    Commitments are fetched lazily through the collaborator and cached per run only.
    """
    request: TreatmentRequest
    practitioner: PractitionerProfile
    patient: PatientProfile
    policy: TimingPolicy
    start_date: date_type
    generator: SlotGenerator
    detector: ConflictDetector
    data_access: SchedulingDataAccess
    now: Optional[datetime] = None
    proposed: Optional[CandidateSlot] = None
    _commitments: Dict[str, List[Commitment]] = field(default_factory=dict, repr=False)
    _qualified: Optional[List[PractitionerProfile]] = field(default=None, repr=False)

    @property
    def config(self):
        return self.generator.config

    @property
    def date_range(self):
        """The horizon, widened to cover the proposed slot wherever it falls."""
        start = datetime.combine(self.start_date, time.min)
        end = start + timedelta(days=self.config.horizon_days + 1)
        if self.proposed is not None:
            start = min(start, self.proposed.start)
            end = max(end, self.proposed.end)
        return start, end

    def commitments_for(self, slot: CandidateSlot) -> List[Commitment]:
        """Union of practitioner, patient and facility commitments, de-duplicated by id."""
        owners = [slot.practitioner_id, slot.patient_id]
        if slot.facility_id:
            owners.append(slot.facility_id)

        merged: Dict[str, Commitment] = {}
        for owner_id in owners:
            if owner_id not in self._commitments:
                self._commitments[owner_id] = list(
                    self.data_access.get_existing_commitments(owner_id, self.date_range)
                )
            for c in self._commitments[owner_id]:
                merged.setdefault(c.id, c)
        return list(merged.values())

    def conflicts_for(self, slot: CandidateSlot, extra: Sequence[Commitment] = ()) -> List[ConflictRecord]:
        return self.detector.detect(slot, [*self.commitments_for(slot), *extra])

    def is_clear(self, slot: CandidateSlot, extra: Sequence[Commitment] = ()) -> bool:
        return not self.conflicts_for(slot, extra)

    def qualified_practitioners(self) -> List[PractitionerProfile]:
        if self._qualified is None:
            self._qualified = list(self.data_access.get_qualified_practitioners(self.request.treatment_type))
        return self._qualified

    def is_bookable(self, practitioner: PractitionerProfile, start: datetime, duration: int) -> bool:
        """Inside the horizon, not in the past, and inside a declared shift."""
        if self.now is not None and start < self.now:
            return False
        if not self.generator.in_horizon(start, self.start_date):
            return False
        return practitioner.is_available(start, duration)

    def accepted(self, slot: CandidateSlot) -> bool:
        return slot.confidence > self.config.acceptance_threshold


class ResolutionStrategy(ABC):
    """One step of the resolution chain."""

    name: str = "abstract"

    @abstractmethod
    def attempt(
        self,
        slot: CandidateSlot,
        conflicts: List[ConflictRecord],
        context: ResolutionContext
    ) -> Optional[ResolutionOutcome]:
        """Return a successful outcome, or None to pass to the next strategy."""

    def _success(self, slot: CandidateSlot, extra: Sequence[CandidateSlot] = ()) -> ResolutionOutcome:
        return ResolutionOutcome(success=True, slot=slot, extra_sessions=list(extra), strategy=self.name)


class RescheduleAdjacent(ResolutionStrategy):
    """Shift later/earlier in fixed increments, same day only."""

    name = "reschedule_adjacent"

    def shift_offsets(self, increment: int, max_attempts: int) -> Iterator[int]:
        """+1, -1, +2, -2 ... increments, `max_attempts` values in total."""
        step = 1
        produced = 0
        while produced < max_attempts:
            for sign in (1, -1):
                if produced >= max_attempts:
                    return
                yield sign * step * increment
                produced += 1
            step += 1

    def attempt(self, slot, conflicts, context):
        cfg = context.config
        practitioner = context.practitioner

        for offset in self.shift_offsets(cfg.shift_increment_minutes, cfg.max_shift_attempts):
            start = slot.start + timedelta(minutes=offset)
            if start.date() != slot.start.date():
                continue
            if not context.is_bookable(practitioner, start, slot.duration_minutes):
                continue

            shifted = context.generator.score_slot(
                context.request, practitioner, context.patient, start,
                slot.duration_minutes, context.policy
            )
            if not context.accepted(shifted):
                continue
            if context.is_clear(shifted):
                logger.info(f"Resolved by shifting {offset:+d} min to {start:%H:%M}")
                return self._success(shifted)
        return None


class FindAlternativePractitioner(ResolutionStrategy):
    """Keep the time, change who delivers the treatment."""

    name = "find_alternative_practitioner"

    def attempt(self, slot, conflicts, context):
        options = []
        for practitioner in context.qualified_practitioners():
            if practitioner.id == slot.practitioner_id:
                continue
            if not context.is_bookable(practitioner, slot.start, slot.duration_minutes):
                continue
            candidate = context.generator.score_slot(
                context.request, practitioner, context.patient, slot.start,
                slot.duration_minutes, context.policy
            )
            if context.accepted(candidate):
                options.append(candidate)

        for candidate in sorted(options, key=ranking_key):
            if context.is_clear(candidate):
                logger.info(f"Resolved by reassigning to practitioner {candidate.practitioner_id}")
                return self._success(candidate)
        return None


class SuggestDifferentTime(ResolutionStrategy):
    """Keep the practitioner, take their best free slot across the horizon."""

    name = "suggest_different_time"

    def attempt(self, slot, conflicts, context):
        request = context.request.model_copy(update={"duration_minutes": slot.duration_minutes})
        ranked = context.generator.generate(
            request, context.practitioner, context.patient, context.start_date, context.now
        )
        for candidate in ranked:
            if candidate.start == slot.start:
                continue
            if context.is_clear(candidate):
                logger.info(f"Resolved by moving to {candidate.start:%Y-%m-%d %H:%M}")
                return self._success(candidate)
        return None


class SplitLongTreatment(ResolutionStrategy):
    """
    Deliver a long, splittable therapy as two half-length sittings.
    The second sitting starts after the first ends and no more than
    `max_split_gap_days` later.
    """

    name = "split_long_treatment"

    def attempt(self, slot, conflicts, context):
        cfg = context.config
        if not context.policy.splittable:
            return None
        if slot.duration_minutes <= cfg.split_threshold_minutes:
            return None

        half = math.ceil(slot.duration_minutes / 2)
        request = context.request.model_copy(update={"duration_minutes": half})
        ranked = context.generator.generate(
            request, context.practitioner, context.patient, context.start_date, context.now
        )
        free = [c for c in ranked if context.is_clear(c)]

        max_gap = timedelta(days=cfg.max_split_gap_days)
        for first in free:
            first_block = Commitment(
                id="__split_first__",
                start=first.start,
                end=first.end,
                practitioner_id=first.practitioner_id,
                patient_id=first.patient_id,
                facility_id=first.facility_id,
            )
            for second in free:
                if second.start < first.end:
                    continue
                if second.start.date() - first.start.date() > max_gap:
                    continue
                if context.is_clear(second, extra=[first_block]):
                    logger.info(
                        f"Resolved by splitting into {first.start:%Y-%m-%d %H:%M} "
                        f"and {second.start:%Y-%m-%d %H:%M}"
                    )
                    return self._success(first, [second])
        return None


DEFAULT_STRATEGIES = (
    RescheduleAdjacent,
    FindAlternativePractitioner,
    SuggestDifferentTime,
    SplitLongTreatment,
)


class ConflictResolver:
    """
    Runs the strategy chain. Order is fixed by default; tests may inject their own.
    """

    def __init__(self, strategies: Optional[Sequence[ResolutionStrategy]] = None):
        self.strategies = list(strategies) if strategies is not None else [s() for s in DEFAULT_STRATEGIES]

    def resolve(
        self,
        slot: CandidateSlot,
        conflicts: List[ConflictRecord],
        context: ResolutionContext
    ) -> ResolutionOutcome:
        if not conflicts:
            return ResolutionOutcome(success=True, slot=slot)

        logger.info(
            f"Resolving {len(conflicts)} conflict(s) for {slot.treatment_type} "
            f"at {slot.start:%Y-%m-%d %H:%M} with {slot.practitioner_id}"
        )

        for strategy in self.strategies:
            outcome = strategy.attempt(slot, conflicts, context)
            if outcome is None:
                logger.debug(f"Strategy {strategy.name} found nothing")
                continue

            # A resolution must never introduce an unchecked conflict
            if any(context.conflicts_for(s) for s in outcome.sessions):
                logger.warning(f"Strategy {strategy.name} returned a conflicted slot; skipping")
                continue

            return outcome.model_copy(update={"conflicts": list(conflicts)})

        alternatives = self.relaxed_alternatives(context)
        logger.info(f"Resolution chain exhausted; offering {len(alternatives)} alternative(s)")
        return ResolutionOutcome(success=False, alternatives=alternatives, conflicts=list(conflicts))

    def relaxed_alternatives(self, context: ResolutionContext) -> List[CandidateSlot]:
        """
        Top-N candidates across the original and every qualified practitioner,
        without filtering on conflicts.
        """
        practitioners = {context.practitioner.id: context.practitioner}
        for p in context.qualified_practitioners():
            practitioners.setdefault(p.id, p)

        pool = []
        for practitioner in practitioners.values():
            pool.extend(context.generator.iter_candidates(
                context.request, practitioner, context.patient, context.start_date, context.now
            ))
        pool.sort(key=ranking_key)
        return pool[:context.config.max_alternatives]
