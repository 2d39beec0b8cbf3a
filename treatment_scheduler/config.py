"""
Runtime configuration for the Treatment Slot Engine.

Every tunable lives on one settings model so a deployment can override it
from the environment without touching code:
TREATMENT_SCHEDULER_<FIELD>, and TREATMENT_SCHEDULER_BONUSES__<NAME> for the bonus weights.
"""

from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

# Each bonus is capped so the clamp on the total score stays meaningful.
MAX_BONUS = 0.15


class BonusWeights(BaseModel):
    """Weights of the policy bonuses added on top of the model score."""
    model_config = ConfigDict(frozen=True)

    timing: float = Field(default=0.10, ge=0.0, le=MAX_BONUS, description="Preferred-hour match")
    preference: float = Field(default=0.10, ge=0.0, le=MAX_BONUS, description="Patient time affinity")
    efficiency: float = Field(default=0.05, ge=0.0, le=MAX_BONUS, description="Practitioner punctuality")


class SchedulingConfig(BaseSettings):
    """All engine tunables with their production defaults."""
    model_config = SettingsConfigDict(
        env_prefix="TREATMENT_SCHEDULER_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        protected_namespaces=(),
    )

    # --- Generation ---
    horizon_days: int = Field(default=14, ge=1, le=90, description="Forward-looking window")
    acceptance_threshold: float = Field(default=0.5, ge=0.0, lt=1.0)
    bonuses: BonusWeights = Field(default_factory=BonusWeights)

    # --- Resolution ---
    shift_increment_minutes: int = Field(default=30, ge=5, le=240)
    max_shift_attempts: int = Field(default=8, ge=0)
    split_threshold_minutes: int = Field(default=90, ge=10)
    max_split_gap_days: int = Field(default=1, ge=0)
    max_alternatives: int = Field(default=5, ge=0)

    # --- Booking ---
    max_write_retries: int = Field(default=1, ge=0)

    # --- Scoring ---
    model_path: Optional[str] = Field(
        default=None,
        description="joblib file holding a trained estimator. Rule-based scoring if absent."
    )
