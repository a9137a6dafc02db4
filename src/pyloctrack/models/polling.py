"""Location request configuration."""

from __future__ import annotations

from datetime import timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class PowerPriority(StrEnum):
    """Accuracy/power trade-off requested from the location provider."""

    HIGH_ACCURACY = "high_accuracy"
    BALANCED_POWER_ACCURACY = "balanced_power_accuracy"
    LOW_POWER = "low_power"
    NO_POWER = "no_power"


class PollingConfig(BaseModel):
    """How often the location source should deliver samples.

    Parameters
    ----------
    interval : timedelta
        Desired interval between samples.
    fastest_interval : timedelta
        Lower bound on the interval; samples are never requested faster.
    max_wait : timedelta
        Longest a provider may batch or wait for a single fix.
    priority : PowerPriority
        Accuracy/power trade-off.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    interval: timedelta = timedelta(minutes=5)
    fastest_interval: timedelta = timedelta(minutes=5)
    max_wait: timedelta = timedelta(minutes=5)
    priority: PowerPriority = PowerPriority.LOW_POWER

    @field_validator("interval", "fastest_interval", "max_wait")
    @classmethod
    def _positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("durations must be positive")
        return value

    @model_validator(mode="after")
    def _fastest_not_above_interval(self) -> PollingConfig:
        if self.fastest_interval > self.interval:
            raise ValueError("fastest_interval must not exceed interval")
        return self
