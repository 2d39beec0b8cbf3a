"""
Conflict Detection Logic.

This module answers the question: "Which existing commitments collide with this slot?"
It checks three independent dimensions in a fixed order:
practitioner, patient, facility. Ranges are half-open, so back-to-back
sessions never conflict.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from treatment_models import CandidateSlot, Commitment, ConflictClass, ConflictRecord

logger = logging.getLogger(__name__)


def overlaps(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    """Standard overlap logic on half-open ranges: StartA < EndB and StartB < EndA."""
    return s1 < e2 and s2 < e1


def overlap_range(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> Optional[Tuple[datetime, datetime]]:
    if not overlaps(s1, e1, s2, e2):
        return None
    return max(s1, s2), min(e1, e2)


class ConflictDetector:
    """
    Pure conflict checker. Commitments must already be fetched by the caller.
    """

    def __init__(self, facility_capacities: Optional[Dict[str, int]] = None):
        # Rooms that can host more than one session at a time (e.g. a steam hall)
        self.facility_capacities = dict(facility_capacities or {})

    def detect(self, proposed: CandidateSlot, existing: Iterable[Commitment]) -> List[ConflictRecord]:
        """
        Master check. Returns an empty list if the slot is clear.
        """
        commitments = list(existing)
        conflicts: List[ConflictRecord] = []

        conflicts.extend(self._check_owner(
            proposed, commitments, ConflictClass.PRACTITIONER,
            lambda c: c.practitioner_id == proposed.practitioner_id
        ))
        conflicts.extend(self._check_owner(
            proposed, commitments, ConflictClass.PATIENT,
            lambda c: c.patient_id == proposed.patient_id
        ))
        if proposed.facility_id:
            conflicts.extend(self._check_facility(proposed, commitments))

        if conflicts:
            logger.debug(
                f"{len(conflicts)} conflict(s) for {proposed.practitioner_id} at {proposed.start:%Y-%m-%d %H:%M}"
            )
        return conflicts

    def is_clear(self, proposed: CandidateSlot, existing: Iterable[Commitment]) -> bool:
        return not self.detect(proposed, existing)

    def _check_owner(self, proposed, commitments, conflict_class, belongs) -> List[ConflictRecord]:
        records = []
        for c in commitments:
            if not belongs(c):
                continue
            window = overlap_range(proposed.start, proposed.end, c.start, c.end)
            if window:
                records.append(ConflictRecord(
                    conflict_class=conflict_class,
                    commitment_id=c.id,
                    overlap_start=window[0],
                    overlap_end=window[1],
                ))
        return records

    def _check_facility(self, proposed: CandidateSlot, commitments: List[Commitment]) -> List[ConflictRecord]:
        """
        Room capacity check: conflict only once concurrent usage reaches capacity.
        """
        capacity = self.facility_capacities.get(proposed.facility_id, 1)
        usage = self._check_owner(
            proposed, commitments, ConflictClass.FACILITY,
            lambda c: c.facility_id is not None and c.facility_id == proposed.facility_id
        )
        full = self._saturated_windows(usage, capacity)
        return [
            r for r in usage
            if any(overlaps(r.overlap_start, r.overlap_end, start, end) for start, end in full)
        ]

    @staticmethod
    def _saturated_windows(records: List[ConflictRecord], capacity: int) -> List[Tuple[datetime, datetime]]:
        """
        Sweep the overlap windows and return the stretches where concurrent
        usage is at or above capacity.
        """
        # Ends sort before starts at the same instant (half-open ranges)
        events = sorted(
            [(r.overlap_start, 1) for r in records] + [(r.overlap_end, -1) for r in records]
        )
        windows = []
        active = 0
        for i, (moment, delta) in enumerate(events):
            active += delta
            if active >= capacity and i + 1 < len(events) and events[i + 1][0] > moment:
                windows.append((moment, events[i + 1][0]))
        return windows
