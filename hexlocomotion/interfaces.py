"""Sensor readings, leg states and the collaborator interfaces of the locomotion system."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from .mathutils import JointAngles, Point3D
from .parameters import Parameters

LegPose = Tuple[list, list]
"""Leg tip positions and joint angles for all legs, as two lists."""


class LegState(Enum):
    """Whether a leg is carrying load or moving through the air."""

    STANCE = 0
    SWING = 1


@dataclass(frozen=True)
class IMUData:
    """Body attitude in degrees."""

    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    is_valid: bool = True

    def tilt_magnitude(self) -> float:
        """Combined roll and pitch tilt in degrees."""
        return math.sqrt(self.roll * self.roll + self.pitch * self.pitch)


@dataclass(frozen=True)
class FSRData:
    """Foot pressure sensor reading."""

    pressure: float = 0.0
    in_contact: bool = False


@dataclass(frozen=True)
class Velocities:
    """Commanded body velocities."""

    linear_x: float = 0.0
    linear_y: float = 0.0
    angular_z: float = 0.0


@runtime_checkable
class IMUInterface(Protocol):
    def initialize(self) -> bool: ...

    def calibrate(self) -> bool: ...

    def is_connected(self) -> bool: ...

    def read(self) -> IMUData: ...


@runtime_checkable
class FSRInterface(Protocol):
    def initialize(self) -> bool: ...

    def calibrate(self, leg: int) -> bool: ...

    def read(self, leg: int) -> FSRData: ...

    def update(self) -> None: ...


@runtime_checkable
class ServoInterface(Protocol):
    def initialize(self) -> bool: ...

    def set_joint_angle(self, leg: int, joint: int, angle: float) -> None: ...

    def joint_angle(self, leg: int, joint: int) -> float: ...


@runtime_checkable
class KinematicModel(Protocol):
    """Leg kinematics of the robot."""

    params: Parameters

    def inverse_kinematics(self, leg: int, target: Point3D) -> JointAngles: ...

    def forward_kinematics(self, leg: int, angles: JointAngles) -> Point3D: ...

    def leg_transform(self, leg: int, angles: JointAngles) -> np.ndarray: ...

    def analytic_jacobian(self, leg: int, angles: JointAngles) -> np.ndarray: ...

    def check_joint_limits(self, leg: int, angles: JointAngles) -> bool: ...

    def constrain_angle(self, angle: float, min_angle: float, max_angle: float) -> float: ...

    def validate(self) -> bool: ...

    def leg_origin(self, leg: int) -> Point3D: ...


@runtime_checkable
class PoseControl(Protocol):
    """Computes whole-body poses; each method returns the new legs or None on failure."""

    def set_body_pose(
        self,
        position: Sequence[float],
        orientation: Sequence[float],
        leg_positions: Sequence[Point3D],
        joint_angles: Sequence[JointAngles],
    ) -> Optional[LegPose]: ...

    def set_standing_pose(self, height: float) -> Optional[LegPose]: ...

    def set_crouch_pose(self, height: float) -> Optional[LegPose]: ...

    def set_leg_position(
        self,
        leg: int,
        position: Point3D,
        leg_positions: Sequence[Point3D],
        joint_angles: Sequence[JointAngles],
    ) -> Optional[LegPose]: ...


@runtime_checkable
class WalkControl(Protocol):
    """Gait generator producing foot trajectories."""

    def set_gait_type(self, gait: object) -> bool: ...

    def plan_gait_sequence(self, vx: float, vy: float, omega: float) -> bool: ...

    def update_gait_phase(self, dt: float) -> None: ...

    def current_velocities(self) -> Velocities: ...

    def foot_trajectory(
        self,
        leg: int,
        phase: float,
        step_height: float,
        step_length: float,
        stance_duration: float,
        swing_duration: float,
        robot_height: float,
        phase_offsets: Sequence[float],
        leg_states: Sequence[LegState],
        fsr: Optional[FSRInterface],
        imu: Optional[IMUInterface],
    ) -> Point3D: ...


@runtime_checkable
class AdmittanceControl(Protocol):
    """Orientation and stability control."""

    def maintain_orientation(self, target: Point3D, current: Point3D, dt: float) -> Tuple[bool, Point3D]: ...

    def orientation_error(self, current: Point3D) -> Point3D: ...

    def check_stability(self, leg_positions: Sequence[Point3D], leg_states: Sequence[LegState]) -> bool: ...