"""Manual body and leg posing driven by operator input."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Sequence

import numpy as np

from .interfaces import KinematicModel
from .mathutils import (
    JointAngles,
    Point3D,
    euler_point_to_quaternion,
    magnitude,
    quaternion_to_euler_point,
)
from .parameters import NUM_LEGS


class PoseMode(Enum):
    """How operator input is interpreted."""

    TRANSLATION = 0
    ROTATION = 1
    LEG_INDIVIDUAL = 2
    BODY_HEIGHT = 3
    COMBINED = 4
    MANUAL_BODY = 5
    CUSTOM = 6


def _identity_quaternion() -> np.ndarray:
    return np.array([1.0, 0.0, 0.0, 0.0])


def _zero_legs() -> List[Point3D]:
    return [Point3D() for _ in range(NUM_LEGS)]


@dataclass
class PoseState:
    """Body pose and per-leg positions."""

    body_position: Point3D = field(default_factory=Point3D)
    body_rotation: Point3D = field(default_factory=Point3D)
    leg_positions: List[Point3D] = field(default_factory=_zero_legs)
    body_height: float = 90.0
    pose_blend_factor: float = 0.0
    body_quaternion: np.ndarray = field(default_factory=_identity_quaternion)
    use_quaternion: bool = False
    pose_active: bool = False

    def copy(self) -> "PoseState":
        """An independent copy of this state."""
        return replace(
            self,
            leg_positions=list(self.leg_positions),
            body_quaternion=np.array(self.body_quaternion, dtype=float),
        )


@dataclass
class PoseLimits:
    """Bounds applied to manual pose changes."""

    translation_limits: Point3D = field(default_factory=lambda: Point3D(50.0, 50.0, 30.0))
    rotation_limits: Point3D = field(default_factory=lambda: Point3D(0.524, 0.524, math.pi))
    height_min: float = 50.0
    height_max: float = 150.0
    leg_reach_limit: float = math.inf


@dataclass
class InputScaling:
    """Gain applied to raw input for each kind of adjustment."""

    translation_scale: float = 1.0
    rotation_scale: float = 0.01
    leg_scale: float = 1.0
    height_scale: float = 1.0


@dataclass(frozen=True)
class PoseApplication:
    """Result of applying a pose to all legs."""

    leg_positions: List[Point3D]
    joint_angles: List[JointAngles]
    success: bool


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def _lerp_point(start: Point3D, end: Point3D, t: float) -> Point3D:
    return Point3D(_lerp(start.x, end.x, t), _lerp(start.y, end.y, t), _lerp(start.z, end.z, t))


class ManualPoseController:
    """Turns operator input into smoothly interpolated body poses."""

    def __init__(self, model: KinematicModel) -> None:
        self.model = model
        self.mode = PoseMode.TRANSLATION
        self.interpolation_speed = 0.1
        self.smooth_transitions = True
        self.pose_limits = PoseLimits()
        self.input_scaling = InputScaling()
        self.current_pose = PoseState()
        self.target_pose = PoseState()
        self._presets: Dict[str, PoseState] = {}

    def initialize(self) -> None:
        """Set limits from the robot geometry, create default presets and reset."""
        params = self.model.params
        self.pose_limits = PoseLimits(leg_reach_limit=params.femur_length + params.tibia_length)
        self._presets["neutral"] = PoseState(body_height=90.0)
        self._presets["high"] = PoseState(body_height=120.0)
        self._presets["low"] = PoseState(body_height=60.0)
        self._presets["forward_lean"] = PoseState(
            body_rotation=Point3D(0.0, 0.174, 0.0), body_height=90.0
        )
        self.reset_pose()

    def set_pose_mode(self, mode: PoseMode) -> None:
        self.mode = mode

    def process_input(self, x: float, y: float, z: float) -> None:
        """Apply one input sample according to the current mode."""
        mode = self.mode
        if mode is PoseMode.TRANSLATION:
            self._translate(x, y, z)
        elif mode is PoseMode.ROTATION:
            self._rotate(x, y, z)
        elif mode is PoseMode.LEG_INDIVIDUAL:
            self._move_leg(int(x), 0.0, y, z)
        elif mode is PoseMode.BODY_HEIGHT:
            self.current_pose.body_height += z * self.input_scaling.height_scale
        elif mode is PoseMode.COMBINED:
            self._translate(x * 0.6, y * 0.6, 0.0)
            self._rotate(x * 0.4, y * 0.4, z)
        elif mode is PoseMode.MANUAL_BODY:
            self._translate(x * 0.7, y * 0.7, 0.0)
            self._rotate(x * 0.3, y * 0.3, z)

        pose = self.current_pose
        pose.body_position = self._constrain_translation(pose.body_position)
        pose.body_rotation = self._constrain_rotation(pose.body_rotation)
        pose.body_height = self._constrain_height(pose.body_height)

    def process_input_extended(self, x: float, y: float, z: float, aux: float) -> None:
        """Apply input with an extra axis: leg index or translation/rotation blend."""
        if self.mode is PoseMode.LEG_INDIVIDUAL:
            self._move_leg(int(aux), x, y, z)
        elif self.mode is PoseMode.COMBINED:
            self._translate(x * aux, y * aux, z * aux)
            rest = 1.0 - aux
            self._rotate(x * rest, y * rest, z * rest)
        else:
            self.process_input(x, y, z)

    def set_target_pose(self, target: PoseState) -> None:
        """Set the pose to move towards, constrained to the limits."""
        pose = target.copy()
        pose.body_position = self._constrain_translation(pose.body_position)
        pose.body_rotation = self._constrain_rotation(pose.body_rotation)
        pose.body_height = self._constrain_height(pose.body_height)
        pose.leg_positions = [
            self._constrain_leg_position(leg, position)
            for leg, position in enumerate(pose.leg_positions)
        ]
        self.target_pose = pose

    def update_pose_interpolation(self, dt: float) -> None:
        """Move the current pose towards the target for a time step of dt seconds."""
        if not self.smooth_transitions:
            self.current_pose = self.target_pose.copy()
            return

        alpha = min(1.0, self.interpolation_speed * dt * 60.0)
        current, target = self.current_pose, self.target_pose
        current.body_position = _lerp_point(current.body_position, target.body_position, alpha)
        current.body_rotation = _lerp_point(current.body_rotation, target.body_rotation, alpha)
        current.body_height = _lerp(current.body_height, target.body_height, alpha)
        current.leg_positions = [
            _lerp_point(now, goal, alpha)
            for now, goal in zip(current.leg_positions, target.leg_positions)
        ]
        current.pose_blend_factor = _lerp(
            current.pose_blend_factor, target.pose_blend_factor, alpha
        )

    def reset_pose(self) -> None:
        """Return both poses to defaults with legs at their stance positions."""
        self.current_pose = PoseState()
        self.target_pose = PoseState()
        height = self.current_pose.body_height
        defaults = [self.default_leg_position(leg, height) for leg in range(NUM_LEGS)]
        self.current_pose.leg_positions = list(defaults)
        self.target_pose.leg_positions = list(defaults)

    def set_smooth_transitions(self, enable: bool, speed: float = 0.1) -> None:
        self.smooth_transitions = enable
        self.interpolation_speed = _clamp(speed, 0.01, 1.0)

    def save_pose_preset(self, name: str) -> None:
        self._presets[name] = self.current_pose.copy()

    def load_pose_preset(self, name: str) -> bool:
        """Make a stored preset the target; False if no preset has that name."""
        preset = self._presets.get(name)
        if preset is None:
            return False
        self.set_target_pose(preset)
        return True

    def pose_preset_names(self) -> List[str]:
        return sorted(self._presets)

    def apply_pose(self, pose: PoseState) -> PoseApplication:
        """Compute leg tip positions and joint angles that realise a pose."""
        cos_yaw = math.cos(pose.body_rotation.z)
        sin_yaw = math.sin(pose.body_rotation.z)
        positions: List[Point3D] = []
        angles: List[JointAngles] = []
        success = True
        for leg, adjustment in enumerate(pose.leg_positions):
            offset = self.default_leg_position(leg, pose.body_height) + pose.body_position
            rotated = Point3D(
                offset.x * cos_yaw - offset.y * sin_yaw,
                offset.x * sin_yaw + offset.y * cos_yaw,
                offset.z,
            )
            tip = rotated + adjustment
            joints = self.model.inverse_kinematics(leg, tip)
            if not self.model.check_joint_limits(leg, joints):
                success = False
            positions.append(tip)
            angles.append(joints)
        return PoseApplication(positions, angles, success)

    def default_leg_position(self, leg_index: int, height: float) -> Point3D:
        """Default stance position of a leg at the given body height."""
        angle = leg_index * math.pi / 3.0
        radius = self.model.params.hexagon_radius * 0.8
        return Point3D(radius * math.cos(angle), radius * math.sin(angle), -height)

    def set_pose_quaternion(
        self, position: Point3D, quaternion: Sequence[float], blend_factor: float
    ) -> None:
        """Set both target and current pose from a position and an orientation quaternion."""
        quat = np.array(quaternion, dtype=float)
        euler = quaternion_to_euler_point(quat)
        for pose in (self.target_pose, self.current_pose):
            pose.body_position = position
            pose.body_quaternion = quat.copy()
            pose.pose_blend_factor = blend_factor
            pose.use_quaternion = True
            pose.pose_active = True
            pose.body_rotation = euler

    def interpolate_to_quaternion_pose(
        self, target_pos: Point3D, target_quat: Sequence[float], speed: float
    ) -> None:
        """Step towards a position and orientation, using slerp for the rotation."""
        if not self.smooth_transitions or speed >= 1.0:
            self.set_pose_quaternion(target_pos, target_quat, 1.0)
            self.current_pose = self.target_pose.copy()
            return

        speed = _clamp(speed, 0.0, 1.0)
        pose = self.current_pose
        pose.body_position = _lerp_point(pose.body_position, target_pos, speed)

        current = self.current_quaternion()
        target = np.array(target_quat, dtype=float)
        dot = float(current @ target)
        if dot < 0.0:
            target = -target
            dot = -dot

        if dot > 0.9995:
            blended = current + speed * (target - current)
            norm = float(np.linalg.norm(blended))
            if norm > 0.0:
                blended = blended / norm
        else:
            theta_0 = math.acos(abs(dot))
            sin_theta_0 = math.sin(theta_0)
            theta = theta_0 * speed
            sin_theta = math.sin(theta)
            s0 = math.cos(theta) - dot * sin_theta / sin_theta_0
            s1 = sin_theta / sin_theta_0
            blended = s0 * current + s1 * target

        pose.body_quaternion = blended
        pose.use_quaternion = True
        pose.pose_active = True
        pose.body_rotation = quaternion_to_euler_point(blended)

    def current_quaternion(self) -> np.ndarray:
        """Orientation of the current pose as a quaternion (w, x, y, z)."""
        if self.current_pose.use_quaternion:
            return np.array(self.current_pose.body_quaternion, dtype=float)
        return euler_point_to_quaternion(self.current_pose.body_rotation)

    def set_use_quaternion(self, use_quat: bool) -> None:
        """Switch the orientation representation, converting the stored values."""
        current, target = self.current_pose, self.target_pose
        if use_quat and not current.use_quaternion:
            current.body_quaternion = euler_point_to_quaternion(current.body_rotation)
            target.body_quaternion = euler_point_to_quaternion(target.body_rotation)
        elif not use_quat and current.use_quaternion:
            current.body_rotation = quaternion_to_euler_point(current.body_quaternion)
            target.body_rotation = quaternion_to_euler_point(target.body_quaternion)
        current.use_quaternion = use_quat
        target.use_quaternion = use_quat

    def _translate(self, x: float, y: float, z: float) -> None:
        scale = self.input_scaling.translation_scale
        self.current_pose.body_position = self.current_pose.body_position + Point3D(
            x * scale, y * scale, z * scale
        )

    def _rotate(self, roll: float, pitch: float, yaw: float) -> None:
        scale = self.input_scaling.rotation_scale
        self.current_pose.body_rotation = self.current_pose.body_rotation + Point3D(
            roll * scale, pitch * scale, yaw * scale
        )

    def _move_leg(self, leg_index: int, x: float, y: float, z: float) -> None:
        if not 0 <= leg_index < NUM_LEGS:
            return
        scale = self.input_scaling.leg_scale
        legs = self.current_pose.leg_positions
        moved = legs[leg_index] + Point3D(x * scale, y * scale, z * scale)
        legs[leg_index] = self._constrain_leg_position(leg_index, moved)

    def _constrain_translation(self, translation: Point3D) -> Point3D:
        lim = self.pose_limits.translation_limits
        return Point3D(
            _clamp(translation.x, -lim.x, lim.x),
            _clamp(translation.y, -lim.y, lim.y),
            _clamp(translation.z, -lim.z, lim.z),
        )

    def _constrain_rotation(self, rotation: Point3D) -> Point3D:
        lim = self.pose_limits.rotation_limits
        return Point3D(
            _clamp(rotation.x, -lim.x, lim.x),
            _clamp(rotation.y, -lim.y, lim.y),
            _clamp(rotation.z, -lim.z, lim.z),
        )

    def _constrain_height(self, height: float) -> float:
        return _clamp(height, self.pose_limits.height_min, self.pose_limits.height_max)

    def _constrain_leg_position(self, leg_index: int, position: Point3D) -> Point3D:
        origin = self.model.leg_origin(leg_index)
        relative = position - origin
        dist = magnitude(relative)
        limit = self.pose_limits.leg_reach_limit
        if dist > limit:
            return origin + relative * (limit / dist)
        return position