"""
Scheduler parameter vector.

One immutable value per user, produced either by defaults or by an optimizer
run, and passed explicitly into every scheduling call.
"""

import math
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from mneme.domain import constants as c


class SchedulerParameters(BaseModel):
    """
    Model weights plus the scalar scheduling knobs.

    Serializes with camelCase aliases (``requestRetention``, ``learningSteps``)
    and accepts either spelling on input.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    w: tuple[float, ...] = c.DEFAULT_WEIGHTS
    request_retention: float = Field(default=c.REQUEST_RETENTION, gt=0.0, lt=1.0)
    maximum_interval: int = Field(default=c.MAXIMUM_INTERVAL, ge=1)
    decay: float = Field(default=c.DECAY, lt=0.0)
    learning_steps: tuple[float, ...] = c.LEARNING_STEPS
    relearning_steps: tuple[float, ...] = c.RELEARNING_STEPS
    graduating_interval: int = Field(default=c.GRADUATING_INTERVAL, ge=1)
    easy_interval: int = Field(default=c.EASY_INTERVAL, ge=1)
    enable_fuzz: bool = c.ENABLE_FUZZ
    fuzz_factor: float = Field(default=c.FUZZ_FACTOR, ge=0.0, lt=1.0)
    enable_short_term: bool = c.ENABLE_SHORT_TERM

    @field_validator("w")
    @classmethod
    def check_weights(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if len(v) != c.WEIGHT_COUNT:
            raise ValueError(f"expected {c.WEIGHT_COUNT} weights, got {len(v)}")
        if not all(math.isfinite(x) for x in v):
            raise ValueError("weights must be finite numbers")
        return v

    @field_validator("learning_steps", "relearning_steps")
    @classmethod
    def check_steps(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if any(step < 0 for step in v):
            raise ValueError("learning steps must be non-negative minutes")
        return v

    @property
    def factor(self) -> float:
        """Curve factor chosen so that R(S, S) = 0.9."""
        return c.TARGET_RETENTION_AT_STABILITY ** (1 / self.decay) - 1

    def with_weights(self, weights: Sequence[float]) -> "SchedulerParameters":
        """Return a copy carrying a whole new weight vector."""
        weights = tuple(float(x) for x in weights)
        if len(weights) == c.MIN_WEIGHT_COUNT:
            # Short-term pair missing: keep the current values.
            weights = weights + tuple(self.w[c.MIN_WEIGHT_COUNT :])
        return self.model_validate({**self.model_dump(), "w": weights})

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, data: str | bytes) -> "SchedulerParameters":
        return cls.model_validate_json(data)


DEFAULT_PARAMETERS = SchedulerParameters()
