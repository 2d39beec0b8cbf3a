"""
Treatment Slot Engine.

Ranks candidate treatment slots, detects double-bookings and resolves them.
"""

from .collaborators import (
    BookingNotifier,
    BookingPersistence,
    InMemorySchedulingStore,
    SchedulingDataAccess
)
from .config import BonusWeights, SchedulingConfig
from .conflicts import ConflictDetector
from .engine import SchedulingEngine
from .errors import (
    BookingWriteConflict,
    CollaboratorFailure,
    SchedulingError,
    SchedulingValidationError
)
from .features import FeatureExtractor
from .policies import DEFAULT_POLICY, TimingPolicyTable
from .resolver import (
    ConflictResolver,
    FindAlternativePractitioner,
    RescheduleAdjacent,
    ResolutionContext,
    ResolutionStrategy,
    SplitLongTreatment,
    SuggestDifferentTime
)
from .scoring import (
    RuleBasedScoringModel,
    ScoringModel,
    TrainedScoringModel,
    create_scoring_model,
    load_scoring_model
)
from .slots import SlotGenerator

__all__ = [
    # --- Entry point ---
    "SchedulingEngine",
    "SchedulingConfig",
    "BonusWeights",

    # --- Components ---
    "FeatureExtractor",
    "ScoringModel",
    "RuleBasedScoringModel",
    "TrainedScoringModel",
    "create_scoring_model",
    "load_scoring_model",
    "TimingPolicyTable",
    "DEFAULT_POLICY",
    "SlotGenerator",
    "ConflictDetector",
    "ConflictResolver",
    "ResolutionContext",
    "ResolutionStrategy",
    "RescheduleAdjacent",
    "FindAlternativePractitioner",
    "SuggestDifferentTime",
    "SplitLongTreatment",

    # --- Collaborators ---
    "SchedulingDataAccess",
    "BookingPersistence",
    "BookingNotifier",
    "InMemorySchedulingStore",

    # --- Errors ---
    "SchedulingError",
    "SchedulingValidationError",
    "CollaboratorFailure",
    "BookingWriteConflict",
]
