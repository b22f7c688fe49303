"""Robot geometry, joint limits and tuning parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

NUM_LEGS = 6
DOF_PER_LEG = 3


@dataclass
class IKConfig:
    """Settings for the inverse kinematics solver."""

    max_iterations: int = 20
    pos_threshold_mm: float = 0.5
    use_damping: bool = True
    damping_lambda: float = 0.01
    clamp_joints: bool = True
    use_multiple_starts: bool = False


@dataclass
class GaitFactors:
    """Step length (times leg reach) and height (times body height) per gait."""

    tripod_length_factor: float = 0.35
    tripod_height_factor: float = 0.30
    wave_length_factor: float = 0.25
    wave_height_factor: float = 0.20
    ripple_length_factor: float = 0.30
    ripple_height_factor: float = 0.25
    metachronal_length_factor: float = 0.28
    metachronal_height_factor: float = 0.22
    adaptive_length_factor: float = 0.30
    adaptive_height_factor: float = 0.25
    min_length_factor: float = 0.10
    max_length_factor: float = 0.40
    min_height_factor: float = 0.10
    max_height_factor: float = 0.40


@dataclass
class Parameters:
    """Physical description and control settings of the hexapod.

    Lengths are in millimetres, angles in degrees.
    """

    hexagon_radius: float = 0.0
    coxa_length: float = 0.0
    femur_length: float = 0.0
    tibia_length: float = 0.0
    robot_height: float = 0.0
    height_offset: float = 0.0
    robot_weight: float = 0.0
    control_frequency: float = 50.0
    coxa_angle_limits: Tuple[float, float] = (-65.0, 65.0)
    femur_angle_limits: Tuple[float, float] = (-75.0, 75.0)
    tibia_angle_limits: Tuple[float, float] = (-45.0, 45.0)
    fsr_max_pressure: float = 10.0
    stability_margin: float = 20.0
    ik: IKConfig = field(default_factory=IKConfig)
    gait_factors: GaitFactors = field(default_factory=GaitFactors)

    def leg_reach(self) -> float:
        """Full length of a stretched leg."""
        return self.coxa_length + self.femur_length + self.tibia_length

    def is_valid_geometry(self) -> bool:
        """True when the body radius and all segment lengths are positive."""
        return all(
            value > 0
            for value in (self.hexagon_radius, self.coxa_length, self.femur_length, self.tibia_length)
        )