"""
Collaborator interfaces and an in-memory implementation.

The engine never performs I/O itself. Everything it needs is fetched through
these narrow protocols, which the surrounding system implements on top of its
own database, calendar and messaging stack.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from treatment_models import (
    CandidateSlot,
    Commitment,
    PatientProfile,
    PractitionerProfile,
    TreatmentRequest,
)
from .conflicts import ConflictDetector, overlaps
from .errors import BookingWriteConflict, CollaboratorFailure

logger = logging.getLogger(__name__)

DateRange = Tuple[datetime, datetime]


class SchedulingDataAccess(Protocol):
    """Read side. Each call returns already-fetched, immutable data."""

    def get_existing_commitments(self, owner_id: str, date_range: DateRange) -> List[Commitment]:
        """Commitments held by a practitioner, patient or facility id inside the range."""
        ...

    def get_practitioner_profile(self, practitioner_id: str) -> PractitionerProfile:
        ...

    def get_patient_profile(self, patient_id: str) -> PatientProfile:
        ...

    def get_qualified_practitioners(self, treatment_type: str) -> List[PractitionerProfile]:
        ...


class BookingPersistence(Protocol):
    """Write side. Must re-validate on commit and raise BookingWriteConflict if taken."""

    def persist_booking(self, request: TreatmentRequest, sessions: Sequence[CandidateSlot]) -> List[str]:
        ...


class BookingNotifier(Protocol):
    """Invoked only after a booking has been persisted."""

    def notify_booking(self, request: TreatmentRequest, sessions: Sequence[CandidateSlot]) -> None:
        ...


class InMemorySchedulingStore:
    """
    Dictionary-backed implementation of all three collaborators.
    Used by the demo runner and the test-suite.
    """

    def __init__(
        self,
        practitioners: Iterable[PractitionerProfile] = (),
        patients: Iterable[PatientProfile] = (),
        commitments: Iterable[Commitment] = (),
        facility_capacities: Optional[Dict[str, int]] = None
    ):
        # Index resources for O(1) lookup
        self.practitioners: Dict[str, PractitionerProfile] = {p.id: p for p in practitioners}
        self.patients: Dict[str, PatientProfile] = {p.id: p for p in patients}
        self.commitments: List[Commitment] = list(commitments)
        # Write-side check uses the same rules as the engine
        self.detector = ConflictDetector(facility_capacities)

        self.notifications: List[Tuple[str, List[CandidateSlot]]] = []
        self.call_counts: Dict[str, int] = defaultdict(int)
        self._sequence = 0

    # --- Read side ---

    def get_existing_commitments(self, owner_id: str, date_range: DateRange) -> List[Commitment]:
        self.call_counts["get_existing_commitments"] += 1
        start, end = date_range
        return [
            c for c in self.commitments
            if owner_id in (c.practitioner_id, c.patient_id, c.facility_id)
            and overlaps(c.start, c.end, start, end)
        ]

    def get_practitioner_profile(self, practitioner_id: str) -> PractitionerProfile:
        self.call_counts["get_practitioner_profile"] += 1
        try:
            return self.practitioners[practitioner_id]
        except KeyError:
            raise CollaboratorFailure(f"Practitioner {practitioner_id} not found") from None

    def get_patient_profile(self, patient_id: str) -> PatientProfile:
        self.call_counts["get_patient_profile"] += 1
        try:
            return self.patients[patient_id]
        except KeyError:
            raise CollaboratorFailure(f"Patient {patient_id} not found") from None

    def get_qualified_practitioners(self, treatment_type: str) -> List[PractitionerProfile]:
        self.call_counts["get_qualified_practitioners"] += 1
        key = treatment_type.strip().lower()
        return [p for p in self.practitioners.values() if key in p.qualified_treatment_types]

    # --- Write side ---

    def persist_booking(self, request: TreatmentRequest, sessions: Sequence[CandidateSlot]) -> List[str]:
        """
        Optimistic commit: re-check every session against the CURRENT commitments,
        then store them all or none.
        """
        clashes = [record for slot in sessions for record in self.detector.detect(slot, self.commitments)]
        if clashes:
            taken = list(dict.fromkeys(record.commitment_id for record in clashes))
            raise BookingWriteConflict(
                f"Slot taken since snapshot (clashes with {', '.join(taken)})",
                commitment_ids=taken,
                conflicts=clashes,
            )

        ids = []
        for slot in sessions:
            self._sequence += 1
            commitment = Commitment(
                id=f"appt_{self._sequence:04d}",
                start=slot.start,
                end=slot.end,
                practitioner_id=slot.practitioner_id,
                patient_id=slot.patient_id,
                facility_id=slot.facility_id,
            )
            self.commitments.append(commitment)
            ids.append(commitment.id)
        logger.info(f"Persisted {len(ids)} session(s) for {request.patient_id}: {ids}")
        return ids

    def notify_booking(self, request: TreatmentRequest, sessions: Sequence[CandidateSlot]) -> None:
        self.notifications.append((request.patient_id, list(sessions)))

    def add_commitment(self, commitment: Commitment) -> None:
        self.commitments.append(commitment)
