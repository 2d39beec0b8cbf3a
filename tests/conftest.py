"""
Shared fixtures for the Treatment Slot Engine test-suite.

All scenarios are anchored on Monday 2026-10-19 07:00 so calendars are stable.
"""

from datetime import datetime, time

import pytest

from treatment_models import (
    AvailabilityBlock,
    PatientProfile,
    PractitionerProfile,
    TreatmentRequest,
)
from treatment_scheduler import (
    ConflictDetector,
    InMemorySchedulingStore,
    RuleBasedScoringModel,
    ResolutionContext,
    SchedulingConfig,
    SchedulingEngine,
    ScoringModel,
    SlotGenerator,
    TimingPolicyTable,
)

NOW = datetime(2026, 10, 19, 7, 0)  # Monday


class ConstantScoringModel(ScoringModel):
    """Returns the same score for every feature vector."""

    mode = "constant"

    def __init__(self, value: float):
        self.value = value
        self.calls = 0

    def predict(self, features):
        self.calls += 1
        return self.value


def shifts(start=time(8, 0), end=time(18, 0), days=range(7)):
    return [AvailabilityBlock(day_of_week=d, start_time=start, end_time=end) for d in days]


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def practitioner_a():
    return PractitionerProfile(
        id="prac_a",
        name="Dr. Meera Nair",
        qualified_treatment_types=["abhyanga", "pizhichil", "shirodhara"],
        availability=shifts(),
        experience_years=10,
        specialization_scores={"abhyanga": 0.9},
        facility_id="room_a",
    )


@pytest.fixture
def practitioner_b():
    return PractitionerProfile(
        id="prac_b",
        name="Dr. Arjun Menon",
        qualified_treatment_types=["abhyanga"],
        availability=shifts(),
        experience_years=3,
        facility_id="room_b",
    )


@pytest.fixture
def elderly_patient():
    return PatientProfile(id="pat_001", age=65, constitution_score=0.6, prior_treatment_count=3)


@pytest.fixture
def young_patient():
    return PatientProfile(id="pat_002", age=41)


@pytest.fixture
def store(practitioner_a, practitioner_b, elderly_patient, young_patient):
    return InMemorySchedulingStore(
        practitioners=[practitioner_a, practitioner_b],
        patients=[elderly_patient, young_patient],
    )


@pytest.fixture
def config():
    return SchedulingConfig()


@pytest.fixture
def policies():
    return TimingPolicyTable()


@pytest.fixture
def generator(policies, config):
    return SlotGenerator(RuleBasedScoringModel(), policies, config)


@pytest.fixture
def detector():
    return ConflictDetector()


@pytest.fixture
def abhyanga_request():
    return TreatmentRequest(patient_id="pat_001", treatment_type="abhyanga", practitioner_id="prac_a")


@pytest.fixture
def engine(store, config):
    return SchedulingEngine(
        data_access=store,
        scoring_model=RuleBasedScoringModel(),
        config=config,
        persistence=store,
        notifier=store,
        clock=lambda: NOW,
    )


@pytest.fixture
def make_context(store, generator, detector, policies):
    """Build a ResolutionContext for a request against the shared store."""

    def _make(request, practitioner_id="prac_a", patient_id=None):
        return ResolutionContext(
            request=request,
            practitioner=store.get_practitioner_profile(practitioner_id),
            patient=store.get_patient_profile(patient_id or request.patient_id),
            policy=policies.get(request.treatment_type),
            start_date=NOW.date(),
            generator=generator,
            detector=detector,
            data_access=store,
            now=NOW,
        )

    return _make
