"""
Timing Policy Table.

Static per-treatment knowledge: which hours of the day suit a therapy and how
long a session canonically runs. Used both to generate candidate hours and to
award the timing bonus.
"""

import logging
from types import MappingProxyType
from typing import Mapping, Optional

from treatment_models import TimingPolicy
from .errors import SchedulingValidationError

logger = logging.getLogger(__name__)

DEFAULT_POLICY = TimingPolicy(preferred_hours=(9, 10, 11, 14, 15), duration_minutes=60)

# Morning-weighted for oil therapies, early for eliminative (shodhana) procedures.
AYURVEDIC_POLICIES = {
    "abhyanga":   TimingPolicy(preferred_hours=(9, 10, 11), duration_minutes=60),
    "shirodhara": TimingPolicy(preferred_hours=(9, 10, 16), duration_minutes=60),
    "swedana":    TimingPolicy(preferred_hours=(10, 11, 14), duration_minutes=30),
    "nasya":      TimingPolicy(preferred_hours=(8, 9, 10), duration_minutes=30),
    "udvartana":  TimingPolicy(preferred_hours=(9, 10, 15), duration_minutes=45),
    "kati_basti": TimingPolicy(preferred_hours=(10, 11, 15, 16), duration_minutes=45),
    "basti":      TimingPolicy(preferred_hours=(8, 9, 10), duration_minutes=90),
    "pizhichil":  TimingPolicy(preferred_hours=(9, 10, 14), duration_minutes=120, splittable=True),
    "virechana":  TimingPolicy(preferred_hours=(7, 8, 9), duration_minutes=180, splittable=True),
}


class TimingPolicyTable:
    """
    Read-only treatment-type -> TimingPolicy lookup with a named default entry.

    With `strict=True` an unknown treatment type is a validation error instead
    of resolving to the default.
    """

    def __init__(
        self,
        policies: Optional[Mapping[str, TimingPolicy]] = None,
        default: Optional[TimingPolicy] = DEFAULT_POLICY,
        strict: bool = False
    ):
        source = AYURVEDIC_POLICIES if policies is None else policies
        self._policies = MappingProxyType({k.strip().lower(): v for k, v in source.items()})
        self.default = default
        self.strict = strict

    def __contains__(self, treatment_type: str) -> bool:
        return treatment_type.strip().lower() in self._policies

    @property
    def treatment_types(self):
        return tuple(self._policies)

    def get(self, treatment_type: str) -> TimingPolicy:
        key = treatment_type.strip().lower()
        policy = self._policies.get(key)
        if policy is not None:
            return policy

        if self.strict or self.default is None:
            raise SchedulingValidationError(
                f"Unknown treatment type '{treatment_type}' and no default policy"
            )
        logger.debug(f"No timing policy for '{key}', using default")
        return self.default
