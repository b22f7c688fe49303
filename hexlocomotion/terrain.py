"""Terrain assessment from foot pressure and body tilt."""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

from .gait import GaitType
from .interfaces import FSRData, IMUData, LegState
from .mathutils import Point3D

_ORIENTATION_LIMIT = 15.0
_SLOPE_GAIN = 0.5
_NO_EDGE_DISTANCE = 1000.0


def _contact_pressures(readings: Sequence[FSRData]) -> list:
    return [reading.pressure for reading in readings if reading.in_contact]


def average_contact_pressure(readings: Sequence[FSRData]) -> Optional[float]:
    """Mean pressure of the feet in contact, or None when no foot touches ground."""
    pressures = _contact_pressures(readings)
    if not pressures:
        return None
    return sum(pressures) / len(pressures)


def pressure_variance(readings: Sequence[FSRData]) -> Optional[float]:
    """Population variance of contact pressures, or None when no foot touches ground."""
    pressures = _contact_pressures(readings)
    if not pressures:
        return None
    mean = sum(pressures) / len(pressures)
    return sum((p - mean) ** 2 for p in pressures) / len(pressures)


def should_adapt_gait(readings: Sequence[FSRData], imu: IMUData, fsr_max_pressure: float) -> bool:
    """Whether uneven, tilted or heavily loaded ground calls for gait adaptation."""
    average = average_contact_pressure(readings)
    variance = pressure_variance(readings)
    if average is None or variance is None:
        return False
    high_variance = variance > fsr_max_pressure * 0.1
    significant_tilt = imu.tilt_magnitude() > 5.0
    high_pressure = average > fsr_max_pressure * 0.7
    return high_variance or significant_tilt or high_pressure


def gait_for_terrain(
    readings: Sequence[FSRData], fsr_max_pressure: float, current: GaitType
) -> GaitType:
    """Wave gait under heavy load, tripod otherwise; unchanged without ground contact."""
    average = average_contact_pressure(readings)
    if average is None:
        return current
    if average > fsr_max_pressure * 0.8:
        return GaitType.WAVE
    return GaitType.TRIPOD


def center_of_pressure(
    positions: Sequence[Point3D],
    states: Sequence[LegState],
    readings: Sequence[FSRData],
) -> Tuple[float, float]:
    """Pressure-weighted centre of the loaded stance feet in the XY plane."""
    x = y = total = 0.0
    for position, state, reading in zip(positions, states, readings):
        if state is LegState.STANCE and reading.in_contact and reading.pressure > 0:
            x += position.x * reading.pressure
            y += position.y * reading.pressure
            total += reading.pressure
    if total > 0:
        return x / total, y / total
    return x, y


def stability_index(
    positions: Sequence[Point3D],
    states: Sequence[LegState],
    cop: Tuple[float, float],
    stability_margin: float,
) -> float:
    """Distance from the centre of pressure to the nearest stance foot, scaled to 0..1."""
    distances = (
        math.hypot(position.x - cop[0], position.y - cop[1])
        for position, state in zip(positions, states)
        if state is LegState.STANCE
    )
    nearest = min(distances, default=_NO_EDGE_DISTANCE)
    nearest = min(nearest, _NO_EDGE_DISTANCE)
    index = nearest / (stability_margin * 3.0)
    return max(0.0, min(1.0, index))


def slope_compensation(
    orientation: Sequence[float], imu: IMUData, dt: float
) -> Tuple[float, float, float]:
    """Body roll, pitch, yaw after leaning against the measured tilt for dt seconds."""
    roll, pitch, yaw = (float(value) for value in orientation)
    if not imu.is_valid:
        return roll, pitch, yaw
    roll += -imu.roll * _SLOPE_GAIN * dt
    pitch += -imu.pitch * _SLOPE_GAIN * dt
    roll = max(-_ORIENTATION_LIMIT, min(_ORIENTATION_LIMIT, roll))
    pitch = max(-_ORIENTATION_LIMIT, min(_ORIENTATION_LIMIT, pitch))
    return roll, pitch, yaw