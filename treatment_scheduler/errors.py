"""
Exception taxonomy for the Treatment Slot Engine.

"No slots found" and "conflict could not be resolved" are normal outcomes
(an empty list / a failed ResolutionOutcome) and have no exception here.
"""


class SchedulingError(Exception):
    """Base class for every error the engine raises."""


class SchedulingValidationError(SchedulingError, ValueError):
    """Malformed request or input. Surfaced immediately, never retried."""


class CollaboratorFailure(SchedulingError):
    """An injected data-access call failed. The engine propagates it unchanged."""


class BookingWriteConflict(SchedulingError):
    """
    Raised by the persistence collaborator when its optimistic check finds
    the slot was taken after the engine's commitments snapshot was read.
    """

    def __init__(self, message: str, commitment_ids=None, conflicts=None):
        super().__init__(message)
        self.commitment_ids = list(commitment_ids or [])
        self.conflicts = list(conflicts or [])
