"""
Data models package for the Treatment Slot Engine.

This package exports the three core pillars of the data architecture:
1. Demand (TreatmentRequest, TimingPolicy, FeatureVector)
2. Supply (PractitionerProfile, PatientProfile, Commitment)
3. Output (CandidateSlot, ConflictRecord, ResolutionOutcome)
"""

from .treatment import (
    TreatmentRequest,
    TimingPolicy,
    FeatureVector,
    FEATURE_ORDER
)

from .resource import (
    AvailabilityBlock,
    PractitionerProfile,
    PatientProfile,
    Commitment
)

from .schedule import (
    CandidateSlot,
    ConflictClass,
    ConflictRecord,
    ResolutionOutcome
)

__all__ = [
    # --- Demand Models ---
    "TreatmentRequest",
    "TimingPolicy",
    "FeatureVector",
    "FEATURE_ORDER",

    # --- Resource & Context Models ---
    "AvailabilityBlock",
    "PractitionerProfile",
    "PatientProfile",
    "Commitment",

    # --- Output Models ---
    "CandidateSlot",
    "ConflictClass",
    "ConflictRecord",
    "ResolutionOutcome",
]
