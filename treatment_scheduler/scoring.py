"""
Scoring Model for the Treatment Slot Engine.

Maps a FeatureVector to a 0.0 - 1.0 success probability. Two variants share
one interface and are picked once, at construction:
1. TrainedScoringModel - wraps any estimator with a scikit-learn style predict().
2. RuleBasedScoringModel - deterministic heuristic used when no estimator exists.
"""

import os
import math
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import joblib
import numpy as np

from treatment_models import FeatureVector

logger = logging.getLogger(__name__)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class ScoringModel(ABC):
    """Feature vector in, probability out."""

    mode: str = "abstract"

    @abstractmethod
    def predict(self, features: FeatureVector) -> float:
        """Return a success probability in [0, 1]."""


class TrainedScoringModel(ScoringModel):
    """
    Delegates to an injected regression estimator.
    Whatever the estimator returns, the result is clamped to [0, 1].
    """

    mode = "trained"

    def __init__(self, estimator: Any):
        if not hasattr(estimator, "predict"):
            raise TypeError("Estimator must expose a predict(X) method")
        self.estimator = estimator

    def predict(self, features: FeatureVector) -> float:
        row = np.asarray([features.to_list()], dtype=float)
        raw = float(np.ravel(self.estimator.predict(row))[0])
        if not math.isfinite(raw):
            logger.warning(f"Estimator returned non-finite score {raw}; treating as 0.0")
            return 0.0
        return clamp(raw)


class RuleBasedScoringModel(ScoringModel):
    """
    Deterministic fallback. Starts at 0.5 and applies additive adjustments:
    - Morning peak (09-11h): +0.2
    - Afternoon window (14-16h): +0.1
    - Weekday: +0.1
    - Patient over 60 treated before noon: +0.1
    """

    mode = "rule_based"

    BASE_SCORE = 0.5

    def predict(self, features: FeatureVector) -> float:
        score = self.BASE_SCORE
        hour = features.hour_of_day

        if 9 <= hour <= 11:
            score += 0.2
        elif 14 <= hour <= 16:
            score += 0.1

        if features.day_of_week < 5:
            score += 0.1

        if features.patient_age > 60 and hour < 12:
            score += 0.1

        # Round away float noise so literal expectations hold (0.5+0.2+0.1+0.1 == 0.9)
        return clamp(round(score, 6))


def create_scoring_model(estimator: Optional[Any] = None) -> ScoringModel:
    """Pick the scoring variant from the availability of a trained estimator."""
    if estimator is None:
        return RuleBasedScoringModel()
    return TrainedScoringModel(estimator)


def load_scoring_model(path: Optional[str]) -> ScoringModel:
    """
    Load a joblib-persisted estimator from `path`.
    A missing path or file falls back to rule-based scoring; a corrupt file raises.
    """
    if not path or not os.path.exists(path):
        logger.warning(f"No trained estimator at {path!r}. Using rule-based scoring.")
        return RuleBasedScoringModel()

    estimator = joblib.load(path)
    logger.info(f"Loaded trained estimator {type(estimator).__name__} from {path}")
    return TrainedScoringModel(estimator)
