"""Precision levels trading computational cost against accuracy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class PrecisionLevel(IntEnum):
    """How much computation the analysis routines may spend."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2


@dataclass(frozen=True)
class ComputeConfig:
    """Iteration, tolerance and update-rate settings for one precision level."""

    precision: PrecisionLevel
    max_iterations: int
    tolerance: float
    update_freq_hz: int
    use_approximations: bool

    @classmethod
    def low(cls) -> "ComputeConfig":
        """Fast, basic calculations: 50 Hz, 5 iterations."""
        return cls(PrecisionLevel.LOW, 5, 0.01, 50, True)

    @classmethod
    def medium(cls) -> "ComputeConfig":
        """Balanced performance: 100 Hz, 10 iterations."""
        return cls(PrecisionLevel.MEDIUM, 10, 0.005, 100, False)

    @classmethod
    def high(cls) -> "ComputeConfig":
        """Maximum accuracy: 200 Hz, 20 iterations."""
        return cls(PrecisionLevel.HIGH, 20, 0.001, 200, False)

    def delta_time(self) -> float:
        """Seconds between two updates at the configured frequency."""
        return 1.0 / float(self.update_freq_hz)