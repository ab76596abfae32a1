"""Scheduler parameter vector.

The weights follow the published FSRS-5 defaults. They are passed into the
Scheduler as an immutable value so several configurations (per-user tuning,
tests) can coexist.
"""

import math
import re
from dataclasses import dataclass


# FSRS-5 default weights (w0-w18)
DEFAULT_WEIGHTS = (
    0.40255,  # w0:  initial stability, Again
    1.18385,  # w1:  initial stability, Hard
    3.173,  # w2:  initial stability, Good
    15.69105,  # w3:  initial stability, Easy
    7.1949,  # w4:  initial difficulty base
    0.5345,  # w5:  initial difficulty rating slope
    1.4604,  # w6:  difficulty change per rating step
    0.0046,  # w7:  difficulty mean reversion
    1.54575,  # w8:  recall stability growth
    0.1192,  # w9:  recall stability saturation
    1.01925,  # w10: recall retrievability factor
    1.9395,  # w11: lapse stability base
    0.11,  # w12: lapse difficulty exponent
    0.29605,  # w13: lapse stability exponent
    2.2698,  # w14: lapse retrievability factor
    0.2315,  # w15: hard penalty
    2.9898,  # w16: easy bonus
    0.51655,  # w17: short-term stability factor
    0.6621,  # w18: short-term rating offset
)

DEFAULT_LEARNING_STEPS = (1.0, 10.0)  # minutes
DEFAULT_RELEARNING_STEPS = (10.0,)  # minutes

STABILITY_MIN = 0.01

_STEP_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$")
_STEP_UNIT_MINUTES = {"s": 1 / 60, "m": 1.0, "": 1.0, "h": 60.0, "d": 1440.0}


@dataclass(frozen=True)
class SchedulerParameters:
    """Immutable configuration for the Scheduler."""

    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    request_retention: float = 0.9
    maximum_interval: int = 365  # days
    minimum_interval: int = 1  # days, floor for Review-phase intervals
    enable_fuzz: bool = True
    learning_steps: tuple[float, ...] = DEFAULT_LEARNING_STEPS
    relearning_steps: tuple[float, ...] = DEFAULT_RELEARNING_STEPS
    easy_step_factor: float = 2.0  # Easy vs Good interval while in learning steps

    def __post_init__(self):
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))
        object.__setattr__(self, "learning_steps", tuple(float(s) for s in self.learning_steps))
        object.__setattr__(self, "relearning_steps", tuple(float(s) for s in self.relearning_steps))

        if len(self.weights) != len(DEFAULT_WEIGHTS):
            raise ValueError(f"Expected {len(DEFAULT_WEIGHTS)} weights, got {len(self.weights)}")
        if not 0 < self.request_retention < 1:
            raise ValueError("request_retention must be between 0 and 1 (exclusive)")
        if self.minimum_interval < 1 or self.maximum_interval < self.minimum_interval:
            raise ValueError("Require 1 <= minimum_interval <= maximum_interval")
        for name in ("learning_steps", "relearning_steps"):
            steps = getattr(self, name)
            if not steps:
                raise ValueError(f"{name} must contain at least one step")
            if any(step <= 0 for step in steps):
                raise ValueError(f"{name} must be positive")
            if list(steps) != sorted(steps):
                raise ValueError(f"{name} must be in ascending order")
        if self.easy_step_factor < 1:
            raise ValueError("easy_step_factor must be >= 1")

    @property
    def w(self) -> tuple[float, ...]:
        return self.weights

    @property
    def lapse_stability_factor(self) -> float:
        """Minimum factor by which a lapse divides stability."""
        return math.exp(self.w[17] * self.w[18])


def parse_steps(value: str) -> tuple[float, ...]:
    """Parse a comma-separated step list such as "1m, 10m" into minutes.

    Bare numbers are minutes; s/m/h/d suffixes are accepted.
    """
    steps = []
    for part in value.split(","):
        if not part.strip():
            continue
        match = _STEP_PATTERN.match(part)
        if not match:
            raise ValueError(f"Invalid step: {part.strip()!r}")
        amount, unit = match.groups()
        steps.append(float(amount) * _STEP_UNIT_MINUTES[unit])
    return tuple(steps)
