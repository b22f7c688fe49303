"""Gait patterns: per-leg phase offsets, step sizes and phase progression."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from .interfaces import Velocities
from .parameters import NUM_LEGS, Parameters

PhaseOffsets = Tuple[float, ...]
"""One phase offset in [0, 1) per leg, ordered AR, BR, CR, CL, BL, AL."""

_VELOCITY_THRESHOLD = 0.001

_ADAPTIVE_BASE: PhaseOffsets = (1 / 8, 0 / 8, 3 / 8, 6 / 8, 4 / 8, 7 / 8)
_WAVE: PhaseOffsets = (2 / 6, 3 / 6, 4 / 6, 1 / 6, 0 / 6, 5 / 6)
_RIPPLE: PhaseOffsets = (2 / 6, 0 / 6, 4 / 6, 1 / 6, 3 / 6, 5 / 6)
_METACHRONAL_FORWARD: PhaseOffsets = (0 / 6, 1 / 6, 2 / 6, 3 / 6, 4 / 6, 5 / 6)
_METACHRONAL_REVERSE: PhaseOffsets = (5 / 6, 4 / 6, 3 / 6, 2 / 6, 1 / 6, 0 / 6)
_TRIPOD: PhaseOffsets = tuple((leg % 2) * 0.5 for leg in range(NUM_LEGS))

_TILT_STEP_THRESHOLD = 15.0
_STEP_HEIGHT_RANGE = (15.0, 50.0)
_STEP_LENGTH_RANGE = (20.0, 80.0)


class GaitType(Enum):
    """Walking patterns the robot can use."""

    TRIPOD = 0
    WAVE = 1
    RIPPLE = 2
    METACHRONAL = 3
    ADAPTIVE = 4


@dataclass(frozen=True)
class StepParameters:
    """Step height and length in millimetres."""

    height: float
    length: float


_FACTOR_NAMES: Dict[GaitType, Tuple[str, str]] = {
    GaitType.TRIPOD: ("tripod_length_factor", "tripod_height_factor"),
    GaitType.WAVE: ("wave_length_factor", "wave_height_factor"),
    GaitType.RIPPLE: ("ripple_length_factor", "ripple_height_factor"),
    GaitType.METACHRONAL: ("metachronal_length_factor", "metachronal_height_factor"),
    GaitType.ADAPTIVE: ("adaptive_length_factor", "adaptive_height_factor"),
}

_BASE_OFFSETS: Dict[GaitType, PhaseOffsets] = {
    GaitType.TRIPOD: _TRIPOD,
    GaitType.WAVE: _WAVE,
    GaitType.RIPPLE: _RIPPLE,
    GaitType.METACHRONAL: _METACHRONAL_FORWARD,
    GaitType.ADAPTIVE: _ADAPTIVE_BASE,
}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _blend(a: PhaseOffsets, b: PhaseOffsets, factor: float) -> PhaseOffsets:
    return tuple(x * (1.0 - factor) + y * factor for x, y in zip(a, b))


def phase_offsets(gait: GaitType) -> PhaseOffsets:
    """Starting phase offsets of every leg for a gait."""
    return _BASE_OFFSETS[gait]


def metachronal_offsets(reverse: bool) -> PhaseOffsets:
    """Metachronal wave running clockwise, or the other way when reversed."""
    return _METACHRONAL_REVERSE if reverse else _METACHRONAL_FORWARD


def metachronal_reversed(velocities: Velocities) -> bool:
    """Whether the commanded motion calls for a reversed metachronal wave.

    Forward/backward motion decides first; otherwise clockwise rotation
    reverses the wave; lateral motion or standing still keeps it forward.
    """
    if abs(velocities.linear_x) > _VELOCITY_THRESHOLD:
        return velocities.linear_x < 0.0
    if abs(velocities.angular_z) > _VELOCITY_THRESHOLD:
        return velocities.angular_z < 0.0
    return False


def adaptive_offsets(tilt_magnitude: float, stability_index: float) -> PhaseOffsets:
    """Adaptive gait offsets for the given tilt (degrees) and stability (0..1).

    Steep slopes blend towards a tripod pattern, low stability towards a
    wave pattern; otherwise the base adaptive pattern is used.
    """
    if tilt_magnitude > 10.0:
        tripod_factor = min((tilt_magnitude - 10.0) / 20.0, 1.0)
        return _blend(_ADAPTIVE_BASE, _TRIPOD, tripod_factor)
    if stability_index < 0.3:
        wave_factor = (0.3 - stability_index) / 0.3
        return _blend(_ADAPTIVE_BASE, _WAVE, wave_factor)
    return _ADAPTIVE_BASE


def step_parameters(params: Parameters, gait: GaitType) -> StepParameters:
    """Step size for a gait, scaled from the robot's size and kept within limits."""
    factors = params.gait_factors
    leg_reach = params.leg_reach()
    height_base = params.robot_height
    length_name, height_name = _FACTOR_NAMES[gait]
    length = leg_reach * getattr(factors, length_name)
    height = height_base * getattr(factors, height_name)
    length = _clamp(
        length, leg_reach * factors.min_length_factor, leg_reach * factors.max_length_factor
    )
    height = _clamp(
        height, height_base * factors.min_height_factor, height_base * factors.max_height_factor
    )
    return StepParameters(height=height, length=length)


def adjust_for_tilt(step: StepParameters, tilt: float) -> StepParameters:
    """Shrink the step on steep ground and keep it within the absolute limits."""
    height, length = step.height, step.length
    if tilt > _TILT_STEP_THRESHOLD:
        height *= 0.8
        length *= 0.7
    return StepParameters(
        height=_clamp(height, *_STEP_HEIGHT_RANGE),
        length=_clamp(length, *_STEP_LENGTH_RANGE),
    )


def advance_phase(phase: float, dt: float, frequency: float) -> float:
    """Advance a gait phase by dt seconds at the given cycle frequency, wrapping once."""
    phase += dt * frequency
    if phase >= 1.0:
        phase -= 1.0
    return phase