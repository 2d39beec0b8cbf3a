"""
Tests for ConflictResolver and the individual resolution strategies.
"""

from datetime import datetime

import pytest

from treatment_models import Commitment, ConflictClass, TreatmentRequest
from treatment_scheduler import (
    ConflictResolver,
    FindAlternativePractitioner,
    RescheduleAdjacent,
    ResolutionStrategy,
    SplitLongTreatment,
    SuggestDifferentTime,
)

MONDAY_10 = datetime(2026, 10, 19, 10, 0)


def block(cid, start, end, **owners):
    return Commitment(id=cid, start=start, end=end, **owners)


class SpyStrategy(ResolutionStrategy):
    """Wraps a strategy and records whether it ran."""

    def __init__(self, inner):
        self.inner = inner
        self.name = inner.name
        self.calls = 0

    def attempt(self, slot, conflicts, context):
        self.calls += 1
        return self.inner.attempt(slot, conflicts, context)


class ReturnsOriginal(ResolutionStrategy):
    """Broken strategy: claims success with the still-conflicted slot."""

    name = "returns_original"

    def attempt(self, slot, conflicts, context):
        return self._success(slot)


@pytest.fixture
def proposed(generator, store, abhyanga_request):
    def _proposed(start=MONDAY_10, request=abhyanga_request, practitioner_id="prac_a"):
        return generator.score_slot(
            request,
            store.get_practitioner_profile(practitioner_id),
            store.get_patient_profile(request.patient_id),
            start,
        )
    return _proposed


class TestRescheduleAdjacent:

    def test_shift_offsets_alternate_and_grow(self):
        assert list(RescheduleAdjacent().shift_offsets(30, 5)) == [30, -30, 60, -60, 90]

    def test_thirty_minute_shift_wins(self, store, make_context, proposed, abhyanga_request):
        """A 30-minute shift is tried before anyone else is asked."""
        store.add_commitment(block("appt_blk", MONDAY_10, datetime(2026, 10, 19, 10, 30), practitioner_id="prac_a"))
        context = make_context(abhyanga_request)
        slot = proposed()
        conflicts = context.conflicts_for(slot)

        spy_alternative = SpyStrategy(FindAlternativePractitioner())
        resolver = ConflictResolver([RescheduleAdjacent(), spy_alternative, SuggestDifferentTime()])
        outcome = resolver.resolve(slot, conflicts, context)

        assert outcome.success
        assert outcome.strategy == "reschedule_adjacent"
        assert outcome.slot.start == datetime(2026, 10, 19, 10, 30)
        assert outcome.slot.practitioner_id == "prac_a"
        assert outcome.conflicts == conflicts
        assert spy_alternative.calls == 0

    def test_gives_up_when_the_day_is_full(self, store, make_context, proposed, abhyanga_request):
        """Practitioner blocked all Monday: every same-day shift still conflicts."""
        store.add_commitment(block("all_day", datetime(2026, 10, 19, 0, 0), datetime(2026, 10, 20, 0, 0),
                                   practitioner_id="prac_a"))
        context = make_context(abhyanga_request)
        slot = proposed()

        assert RescheduleAdjacent().attempt(slot, context.conflicts_for(slot), context) is None


class TestStrategyChain:
    """Least-disruption-first ordering."""

    def test_changes_practitioner_when_shifts_fail(self, store, make_context, proposed, abhyanga_request):
        store.add_commitment(block("shift_full", datetime(2026, 10, 19, 8), datetime(2026, 10, 19, 18),
                                   practitioner_id="prac_a"))
        context = make_context(abhyanga_request)
        slot = proposed()

        outcome = ConflictResolver().resolve(slot, context.conflicts_for(slot), context)

        assert outcome.success
        assert outcome.strategy == "find_alternative_practitioner"
        assert outcome.slot.practitioner_id == "prac_b"
        assert outcome.slot.start == MONDAY_10
        assert outcome.slot.facility_id == "room_b"

    def test_moves_time_when_nobody_else_is_qualified(self, store, make_context, proposed, abhyanga_request):
        store.practitioners.pop("prac_b")
        store.add_commitment(block("shift_full", datetime(2026, 10, 19, 8), datetime(2026, 10, 19, 18),
                                   practitioner_id="prac_a"))
        context = make_context(abhyanga_request)
        slot = proposed()

        outcome = ConflictResolver().resolve(slot, context.conflicts_for(slot), context)

        assert outcome.success
        assert outcome.strategy == "suggest_different_time"
        assert outcome.slot.practitioner_id == "prac_a"
        assert outcome.slot.start == datetime(2026, 10, 20, 9, 0)

    def test_exhaustion_returns_alternatives(self, store, make_context, proposed, abhyanga_request):
        """Patient busy for the whole horizon: nothing resolves, humans get options."""
        store.add_commitment(block("inpatient_stay", datetime(2026, 10, 19), datetime(2026, 11, 3),
                                   patient_id="pat_001"))
        context = make_context(abhyanga_request)
        slot = proposed()
        conflicts = context.conflicts_for(slot)

        outcome = ConflictResolver().resolve(slot, conflicts, context)

        assert not outcome.success
        assert outcome.slot is None
        assert outcome.conflicts == conflicts
        assert [c.conflict_class for c in conflicts] == [ConflictClass.PATIENT]
        assert len(outcome.alternatives) == 5
        assert {"prac_a", "prac_b"} <= {a.practitioner_id for a in outcome.alternatives}
        for earlier, later in zip(outcome.alternatives, outcome.alternatives[1:]):
            assert (-earlier.confidence, earlier.start) <= (-later.confidence, later.start)

    def test_conflicted_result_is_never_accepted(self, store, make_context, proposed, abhyanga_request):
        store.add_commitment(block("appt_blk", MONDAY_10, datetime(2026, 10, 19, 10, 30), practitioner_id="prac_a"))
        context = make_context(abhyanga_request)
        slot = proposed()

        outcome = ConflictResolver([ReturnsOriginal(), RescheduleAdjacent()]).resolve(
            slot, context.conflicts_for(slot), context
        )

        assert outcome.strategy == "reschedule_adjacent"
        assert context.is_clear(outcome.slot)

    def test_no_conflicts_passes_through(self, make_context, proposed, abhyanga_request):
        context = make_context(abhyanga_request)
        slot = proposed()

        outcome = ConflictResolver().resolve(slot, [], context)

        assert outcome.success
        assert outcome.slot == slot
        assert outcome.strategy is None

    def test_commitments_fetched_once_per_owner(self, store, make_context, proposed, abhyanga_request):
        store.add_commitment(block("appt_blk", MONDAY_10, datetime(2026, 10, 19, 10, 30), practitioner_id="prac_a"))
        context = make_context(abhyanga_request)
        slot = proposed()

        ConflictResolver().resolve(slot, context.conflicts_for(slot), context)

        # prac_a, pat_001 and room_a
        assert store.call_counts["get_existing_commitments"] == 3


class TestSplitLongTreatment:

    @pytest.fixture
    def pizhichil_request(self):
        return TreatmentRequest(patient_id="pat_001", treatment_type="pizhichil", practitioner_id="prac_a")

    def test_splits_into_two_sittings(self, store, make_context, proposed, pizhichil_request):
        store.add_commitment(block("appt_blk", MONDAY_10, datetime(2026, 10, 19, 11), practitioner_id="prac_a"))
        context = make_context(pizhichil_request)
        slot = proposed(start=datetime(2026, 10, 19, 9), request=pizhichil_request)
        assert slot.duration_minutes == 120

        outcome = ConflictResolver([SplitLongTreatment()]).resolve(slot, context.conflicts_for(slot), context)

        assert outcome.success
        assert outcome.strategy == "split_long_treatment"
        first, second = outcome.sessions
        assert (first.start, first.duration_minutes) == (datetime(2026, 10, 19, 9), 60)
        assert (second.start, second.duration_minutes) == (datetime(2026, 10, 20, 9), 60)
        assert second.start >= first.end

    def test_not_applicable_to_unsplittable_treatment(self, make_context, proposed):
        request = TreatmentRequest(patient_id="pat_001", treatment_type="abhyanga", duration_minutes=150)
        context = make_context(request)
        slot = proposed(request=request)

        assert SplitLongTreatment().attempt(slot, [], context) is None

    def test_not_applicable_below_threshold(self, make_context, proposed):
        request = TreatmentRequest(patient_id="pat_001", treatment_type="pizhichil", duration_minutes=60)
        context = make_context(request)
        slot = proposed(request=request)

        assert SplitLongTreatment().attempt(slot, [], context) is None
