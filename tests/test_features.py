"""
Tests for FeatureExtractor.
"""

from datetime import datetime

import pytest

from treatment_models import FEATURE_ORDER, PatientProfile, PractitionerProfile
from treatment_scheduler import FeatureExtractor, SchedulingValidationError


class TestFeatureExtractor:
    """Test feature vector construction."""

    @pytest.fixture
    def extractor(self):
        return FeatureExtractor()

    def test_copies_profile_values(self, extractor, elderly_patient, practitioner_a):
        """Known profile values flow straight into the vector."""
        vector = extractor.extract(elderly_patient, practitioner_a, "abhyanga", datetime(2026, 10, 20, 10, 0))

        assert vector.hour_of_day == 10
        assert vector.day_of_week == 1
        assert vector.patient_age == 65
        assert vector.constitution_score == 0.6
        assert vector.experience_years == 10
        assert vector.specialization_match == 0.9
        assert vector.prior_treatment_count == 3

    def test_missing_values_use_neutral_defaults(self, extractor):
        """Unknown age, constitution, response rate and specialization are substituted."""
        patient = PatientProfile(id="pat_x")
        practitioner = PractitionerProfile(id="prac_x")

        vector = extractor.extract(patient, practitioner, "nasya", datetime(2026, 10, 24, 8, 0))

        assert vector.patient_age == 35
        assert vector.constitution_score == 0.5
        assert vector.specialization_match == 0.8
        assert vector.historical_response_rate == 0.5
        assert vector.day_of_week == 5

    def test_treatment_key_is_case_insensitive(self, extractor, elderly_patient, practitioner_a):
        vector = extractor.extract(elderly_patient, practitioner_a, " Abhyanga ", datetime(2026, 10, 20, 9))
        assert vector.specialization_match == 0.9

    def test_accepts_iso_string(self, extractor, elderly_patient, practitioner_a):
        vector = extractor.extract(elderly_patient, practitioner_a, "abhyanga", "2026-10-21T15:30:00")
        assert vector.hour_of_day == 15
        assert vector.day_of_week == 2

    def test_malformed_datetime_raises(self, extractor, elderly_patient, practitioner_a):
        with pytest.raises(SchedulingValidationError):
            extractor.extract(elderly_patient, practitioner_a, "abhyanga", "next tuesday-ish")

        with pytest.raises(SchedulingValidationError):
            extractor.extract(elderly_patient, practitioner_a, "abhyanga", 1700000000)

    def test_missing_patient_raises(self, extractor, practitioner_a):
        with pytest.raises(SchedulingValidationError):
            extractor.extract(None, practitioner_a, "abhyanga", datetime(2026, 10, 20, 9))

    def test_vector_order_matches_contract(self, extractor, elderly_patient, practitioner_a):
        """to_list() follows FEATURE_ORDER exactly."""
        vector = extractor.extract(elderly_patient, practitioner_a, "abhyanga", datetime(2026, 10, 20, 9))

        assert vector.to_list() == [float(getattr(vector, name)) for name in FEATURE_ORDER]
        assert FEATURE_ORDER[0] == "hour_of_day"
        assert FEATURE_ORDER[-1] == "historical_response_rate"
        assert len(vector.to_list()) == 8
