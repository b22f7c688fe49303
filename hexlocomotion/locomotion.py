"""Top-level locomotion control: gait sequencing, kinematics, posture and stability."""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from . import terrain
from .gait import (
    GaitType,
    StepParameters,
    adaptive_offsets,
    adjust_for_tilt,
    advance_phase,
    metachronal_offsets,
    metachronal_reversed,
    phase_offsets,
    step_parameters,
)
from .interfaces import (
    AdmittanceControl,
    FSRInterface,
    IMUInterface,
    KinematicModel,
    LegState,
    PoseControl,
    ServoInterface,
    WalkControl,
)
from .mathutils import JointAngles, Point3D, degrees_to_radians, rotate_point
from .parameters import NUM_LEGS, Parameters

import math

_MAX_DT = 0.1
_STEP_HEIGHT_RANGE = (15.0, 50.0)
_STEP_LENGTH_RANGE = (20.0, 80.0)
_CONTROL_FREQUENCY_RANGE = (10.0, 200.0)
_STABLE_THRESHOLD = 0.2


class ErrorCode(Enum):
    """Kinds of failure the locomotion system reports."""

    NO_ERROR = 0
    IMU_ERROR = 1
    FSR_ERROR = 2
    SERVO_ERROR = 3
    KINEMATICS_ERROR = 4
    STABILITY_ERROR = 5
    PARAMETER_ERROR = 6


_ERROR_MESSAGES = {
    ErrorCode.NO_ERROR: "No errors",
    ErrorCode.IMU_ERROR: "IMU error",
    ErrorCode.FSR_ERROR: "FSR sensor error",
    ErrorCode.SERVO_ERROR: "Servo error",
    ErrorCode.KINEMATICS_ERROR: "Kinematics error",
    ErrorCode.STABILITY_ERROR: "Stability error",
    ErrorCode.PARAMETER_ERROR: "Parameter error",
}


class LocomotionError(Exception):
    """A locomotion operation failed; ``code`` tells which subsystem."""

    def __init__(self, code: ErrorCode, detail: str = "") -> None:
        self.code = code
        message = _ERROR_MESSAGES.get(code, "Unknown error")
        super().__init__(f"{message}: {detail}" if detail else message)


class LocomotionSystem:
    """Coordinates sensors, servos and controllers to make the hexapod walk."""

    def __init__(
        self,
        params: Parameters,
        model: KinematicModel,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.params = params
        self.model = model
        self._clock = clock if clock is not None else time.monotonic

        self.imu: Optional[IMUInterface] = None
        self.fsr: Optional[FSRInterface] = None
        self.servo: Optional[ServoInterface] = None
        self.pose_controller: Optional[PoseControl] = None
        self.walk_controller: Optional[WalkControl] = None
        self.admittance_controller: Optional[AdmittanceControl] = None

        self.gait = GaitType.TRIPOD
        self.gait_phase = 0.0
        self.step_height = 30.0
        self.step_length = 50.0
        self.stance_duration = 0.5
        self.swing_duration = 0.5
        self.cycle_frequency = 2.0
        self.enabled = False
        self.last_update_time = 0.0
        self.dt = 0.02
        self.last_error = ErrorCode.NO_ERROR

        self.body_position = np.array([0.0, 0.0, params.robot_height])
        self.body_orientation = np.zeros(3)
        self.phase_offsets: List[float] = list(phase_offsets(GaitType.TRIPOD))

        self.leg_positions: List[Point3D] = []
        self.joint_angles: List[JointAngles] = []
        self.leg_states: List[LegState] = []
        self._initialize_default_pose()

    # ----- setup -------------------------------------------------------------

    def _fail(self, code: ErrorCode, detail: str = "") -> LocomotionError:
        self.last_error = code
        return LocomotionError(code, detail)

    def initialize(
        self,
        imu: Optional[IMUInterface],
        fsr: Optional[FSRInterface],
        servo: Optional[ServoInterface],
        pose_controller: Optional[PoseControl],
        walk_controller: Optional[WalkControl],
        admittance_controller: Optional[AdmittanceControl],
    ) -> None:
        """Attach and start the hardware interfaces and controllers.

        Raises LocomotionError naming the subsystem that failed.
        """
        collaborators = (imu, fsr, servo, pose_controller, walk_controller, admittance_controller)
        if any(item is None for item in collaborators):
            raise self._fail(ErrorCode.PARAMETER_ERROR, "missing interface")

        self.imu, self.fsr, self.servo = imu, fsr, servo
        if not imu.initialize():
            raise self._fail(ErrorCode.IMU_ERROR)
        if not fsr.initialize():
            raise self._fail(ErrorCode.FSR_ERROR)
        if not servo.initialize():
            raise self._fail(ErrorCode.SERVO_ERROR)

        self.pose_controller = pose_controller
        self.walk_controller = walk_controller
        self.admittance_controller = admittance_controller

        if not self.model.validate():
            raise self._fail(ErrorCode.PARAMETER_ERROR, "invalid robot model")

        self.enabled = True
        self.last_update_time = self._clock()

    def calibrate(self) -> bool:
        """Calibrate the IMU and every foot sensor, then stand up.

        Returns False when the system is not enabled; raises on sensor failure.
        """
        if not self.enabled:
            return False
        if not self.imu.calibrate():
            raise self._fail(ErrorCode.IMU_ERROR, "calibration failed")
        for leg in range(NUM_LEGS):
            if not self.fsr.calibrate(leg):
                raise self._fail(ErrorCode.FSR_ERROR, f"calibration of leg {leg} failed")
        self.set_standing_pose()
        return True

    def _initialize_default_pose(self) -> None:
        p = self.params
        self.leg_positions = []
        for leg in range(NUM_LEGS):
            angle = degrees_to_radians(leg * 60.0)
            self.leg_positions.append(
                Point3D(
                    p.hexagon_radius * math.cos(angle) + p.coxa_length,
                    p.hexagon_radius * math.sin(angle),
                    -p.robot_height,
                )
            )
        self.joint_angles = [JointAngles(0.0, 45.0, -90.0) for _ in range(NUM_LEGS)]
        self.leg_states = [LegState.STANCE] * NUM_LEGS

    # ----- kinematics --------------------------------------------------------

    def inverse_kinematics(self, leg: int, target: Point3D) -> JointAngles:
        return self.model.inverse_kinematics(leg, target)

    def forward_kinematics(self, leg: int, angles: JointAngles) -> Point3D:
        return self.model.forward_kinematics(leg, angles)

    def leg_transform(self, leg: int, angles: JointAngles) -> np.ndarray:
        return self.model.leg_transform(leg, angles)

    def jacobian(self, leg: int, angles: JointAngles) -> np.ndarray:
        return self.model.analytic_jacobian(leg, angles)

    def transform_world_to_body(self, point: Point3D) -> Point3D:
        """Express a world point in the body frame: R^T · (p - p0)."""
        rel = Point3D(
            point.x - self.body_position[0],
            point.y - self.body_position[1],
            point.z - self.body_position[2],
        )
        return rotate_point(rel, -self.body_orientation)

    def set_leg_joint_angles(self, leg: int, angles: JointAngles) -> bool:
        """Clamp angles to the joint limits, store them and send them to the servos.

        Returns False if there is no servo interface, or if the angles are out
        of limits while joint clamping is disabled.
        """
        if self.servo is None:
            return False
        p = self.params
        limits = (p.coxa_angle_limits, p.femur_angle_limits, p.tibia_angle_limits)
        within = all(low <= value <= high for value, (low, high) in zip(angles, limits))
        clamped = JointAngles(
            *(self.model.constrain_angle(value, low, high) for value, (low, high) in zip(angles, limits))
        )
        if not p.ik.clamp_joints and not within:
            return False
        self.joint_angles[leg] = clamped
        for joint, value in enumerate(clamped):
            self.servo.set_joint_angle(leg, joint, value)
        return True

    # ----- gait --------------------------------------------------------------

    def set_gait_type(self, gait: GaitType) -> bool:
        """Switch gait, resetting the phase and the per-leg offsets."""
        if self.walk_controller is None:
            return False
        self.gait = gait
        self.gait_phase = 0.0
        self.phase_offsets = list(phase_offsets(gait))
        return self.walk_controller.set_gait_type(gait)

    def _update_metachronal_pattern(self) -> None:
        if self.gait is not GaitType.METACHRONAL:
            return
        reverse = False
        if self.walk_controller is not None:
            reverse = metachronal_reversed(self.walk_controller.current_velocities())
        self.phase_offsets = list(metachronal_offsets(reverse))

    def _update_adaptive_pattern(self) -> None:
        if self.gait is not GaitType.ADAPTIVE:
            return
        if not self._sensing_ready():
            return
        readings = self._fsr_readings()
        imu_data = self.imu.read()
        if terrain.should_adapt_gait(readings, imu_data, self.params.fsr_max_pressure):
            self.phase_offsets = list(
                adaptive_offsets(imu_data.tilt_magnitude(), self.stability_index())
            )

    def _sensing_ready(self) -> bool:
        return self.enabled and self.fsr is not None and self.imu is not None

    def _fsr_readings(self) -> list:
        return [self.fsr.read(leg) for leg in range(NUM_LEGS)]

    def plan_gait_sequence(self, vx: float, vy: float, omega: float) -> bool:
        if self.walk_controller is None:
            return False
        return self.walk_controller.plan_gait_sequence(vx, vy, omega)

    def update_gait_phase(self) -> None:
        """Advance the walk controller and the shared gait phase by one time step."""
        if self.walk_controller is None:
            return
        self.walk_controller.update_gait_phase(self.dt)
        self.gait_phase = advance_phase(self.gait_phase, self.dt, self.cycle_frequency)

    def foot_trajectory(self, leg: int, phase: float) -> Point3D:
        """Target tip position of a leg at a gait phase."""
        if self.walk_controller is None:
            return Point3D()
        return self.walk_controller.foot_trajectory(
            leg,
            phase,
            self.step_height,
            self.step_length,
            self.stance_duration,
            self.swing_duration,
            self.params.robot_height,
            list(self.phase_offsets),
            list(self.leg_states),
            self.fsr,
            self.imu,
        )

    # ----- motion commands ---------------------------------------------------

    def _move(self, vx: float, vy: float, omega: float, duration: Optional[float]) -> bool:
        if not self.enabled:
            return False
        if duration is None:
            return self.plan_gait_sequence(vx, vy, omega)
        self.plan_gait_sequence(vx, vy, omega)
        start = self._clock()
        while self._clock() - start < duration:
            self.update()
        self.stop_movement()
        return True

    def walk_forward(self, velocity: float, duration: Optional[float] = None) -> bool:
        """Walk forward; with a duration in seconds, block, then stop."""
        return self._move(velocity, 0.0, 0.0, duration)

    def walk_backward(self, velocity: float, duration: Optional[float] = None) -> bool:
        return self._move(-velocity, 0.0, 0.0, duration)

    def turn_in_place(self, angular_velocity: float, duration: Optional[float] = None) -> bool:
        return self._move(0.0, 0.0, angular_velocity, duration)

    def walk_sideways(
        self, velocity: float, right_direction: bool = True, duration: Optional[float] = None
    ) -> bool:
        lateral = velocity if right_direction else -velocity
        return self._move(0.0, lateral, 0.0, duration)

    def stop_movement(self) -> bool:
        """Command zero velocity and run one update to hold the pose."""
        if not self.enabled:
            return False
        self.plan_gait_sequence(0.0, 0.0, 0.0)
        self.update()
        return True

    # ----- orientation and stability ------------------------------------------

    def maintain_orientation(self, target_rpy: Sequence[float]) -> bool:
        """Drive the body orientation towards a roll, pitch, yaw target."""
        if not self.enabled or self.admittance_controller is None:
            return False
        target = Point3D(*(float(v) for v in target_rpy))
        current = Point3D(*(float(v) for v in self.body_orientation))
        result, updated = self.admittance_controller.maintain_orientation(target, current, self.dt)
        self.body_orientation = np.array([updated.x, updated.y, updated.z])
        return result

    def reproject_standing_feet(self) -> None:
        """Recompute joint angles of stance legs after the body has moved."""
        for leg in range(NUM_LEGS):
            if self.leg_states[leg] is not LegState.STANCE:
                continue
            tip_body = self.transform_world_to_body(self.leg_positions[leg])
            angles = self.inverse_kinematics(leg, tip_body)
            self.set_leg_joint_angles(leg, angles)
            self.leg_positions[leg] = self.forward_kinematics(leg, angles)

    def correct_body_tilt(self) -> bool:
        """Level the body while keeping its yaw."""
        return self.maintain_orientation((0.0, 0.0, float(self.body_orientation[2])))

    def orientation_error(self) -> np.ndarray:
        if self.admittance_controller is None:
            return np.zeros(3)
        current = Point3D(*(float(v) for v in self.body_orientation))
        error = self.admittance_controller.orientation_error(current)
        return np.array([error.x, error.y, error.z])

    def check_stability_margin(self) -> bool:
        if not self.enabled or self.admittance_controller is None:
            return False
        return self.admittance_controller.check_stability(list(self.leg_positions), list(self.leg_states))

    def center_of_pressure(self) -> Tuple[float, float]:
        """Pressure-weighted XY centre of the loaded stance feet."""
        if self.fsr is None:
            return 0.0, 0.0
        return terrain.center_of_pressure(self.leg_positions, self.leg_states, self._fsr_readings())

    def stability_index(self) -> float:
        """Stability between 0 and 1; 0 when the stability margin check fails."""
        if not self.check_stability_margin():
            return 0.0
        cop = self.center_of_pressure()
        return terrain.stability_index(
            self.leg_positions, self.leg_states, cop, self.params.stability_margin
        )

    def is_statically_stable(self) -> bool:
        return self.stability_index() > _STABLE_THRESHOLD

    # ----- poses ---------------------------------------------------------------

    def _apply_legs(self, result) -> None:
        positions, angles = result
        self.leg_positions = list(positions)
        self.joint_angles = list(angles)

    def set_body_pose(self, position: Sequence[float], orientation: Sequence[float]) -> bool:
        """Move the body to a pose; raises LocomotionError if it cannot be reached."""
        if not self.enabled or self.pose_controller is None:
            return False
        result = self.pose_controller.set_body_pose(
            position, orientation, list(self.leg_positions), list(self.joint_angles)
        )
        if result is None:
            raise self._fail(ErrorCode.KINEMATICS_ERROR, "body pose unreachable")
        self._apply_legs(result)
        self.body_position = np.array(position, dtype=float)
        self.body_orientation = np.array(orientation, dtype=float)
        return True

    def set_standing_pose(self) -> bool:
        if self.pose_controller is None:
            return False
        result = self.pose_controller.set_standing_pose(self.params.robot_height)
        if result is None:
            return False
        self._apply_legs(result)
        return True

    def set_crouch_pose(self) -> bool:
        if self.pose_controller is None:
            return False
        result = self.pose_controller.set_crouch_pose(self.params.robot_height)
        if result is None:
            return False
        self._apply_legs(result)
        return True

    def set_leg_position(self, leg: int, position: Point3D) -> bool:
        """Place one leg tip; raises LocomotionError if the position is unreachable."""
        if not self.enabled or not 0 <= leg < NUM_LEGS or self.pose_controller is None:
            return False
        result = self.pose_controller.set_leg_position(
            leg, position, list(self.leg_positions), list(self.joint_angles)
        )
        if result is None:
            raise self._fail(ErrorCode.KINEMATICS_ERROR, f"leg {leg} position unreachable")
        self._apply_legs(result)
        return True

    # ----- main loop -----------------------------------------------------------

    def update(self) -> bool:
        """Run one control cycle. Returns False when the system is not enabled."""
        if not self.enabled:
            return False

        now = self._clock()
        self.dt = min(now - self.last_update_time, _MAX_DT)
        self.last_update_time = now

        if self.fsr is not None:
            self.fsr.update()

        self._adapt_gait_to_terrain()
        self._update_step_parameters()
        self._adjust_step_parameters()
        self._compensate_for_slope()

        self.update_gait_phase()
        self._update_metachronal_pattern()
        self._update_adaptive_pattern()

        for leg in range(NUM_LEGS):
            target = self.foot_trajectory(leg, self.gait_phase)
            angles = self.inverse_kinematics(leg, target)
            if self.set_leg_joint_angles(leg, angles):
                self.leg_positions[leg] = target
            else:
                self.last_error = ErrorCode.KINEMATICS_ERROR

        if self.imu is not None and self.imu.is_connected():
            self.correct_body_tilt()

        if not self.check_stability_margin():
            self.last_error = ErrorCode.STABILITY_ERROR
        return True

    def _adapt_gait_to_terrain(self) -> None:
        if self.fsr is None:
            return
        self.gait = terrain.gait_for_terrain(
            self._fsr_readings(), self.params.fsr_max_pressure, self.gait
        )

    def _update_step_parameters(self) -> None:
        step = step_parameters(self.params, self.gait)
        self.step_height, self.step_length = step.height, step.length

    def _adjust_step_parameters(self) -> None:
        if self.imu is None:
            return
        imu_data = self.imu.read()
        if not imu_data.is_valid:
            return
        step = adjust_for_tilt(
            StepParameters(self.step_height, self.step_length), imu_data.tilt_magnitude()
        )
        self.step_height, self.step_length = step.height, step.length

    def _compensate_for_slope(self) -> None:
        if self.imu is None:
            return
        self.body_orientation = np.array(
            terrain.slope_compensation(self.body_orientation, self.imu.read(), self.dt)
        )

    # ----- errors --------------------------------------------------------------

    @staticmethod
    def error_message(error: ErrorCode) -> str:
        return _ERROR_MESSAGES.get(error, "Unknown error")

    def handle_error(self, error: ErrorCode) -> bool:
        """Record an error and try to recover from it; True if recovery succeeded."""
        self.last_error = error
        if error is ErrorCode.IMU_ERROR:
            return self.imu.initialize() if self.imu is not None else False
        if error is ErrorCode.FSR_ERROR:
            if self.fsr is None:
                return False
            for leg in range(NUM_LEGS):
                self.fsr.calibrate(leg)
            return True
        if error is ErrorCode.SERVO_ERROR:
            return self.servo.initialize() if self.servo is not None else False
        if error is ErrorCode.STABILITY_ERROR:
            return self.set_crouch_pose()
        if error is ErrorCode.KINEMATICS_ERROR:
            return self.set_standing_pose()
        return False

    # ----- configuration -------------------------------------------------------

    def update_leg_states(self) -> None:
        """Derive stance/swing state of every leg from foot contact."""
        if self.fsr is None:
            return
        self.leg_states = [
            LegState.STANCE if reading.in_contact else LegState.SWING
            for reading in self._fsr_readings()
        ]

    def set_step_parameters(self, height: float, length: float) -> None:
        """Set step height (15-50 mm) and length (20-80 mm)."""
        if not (_STEP_HEIGHT_RANGE[0] <= height <= _STEP_HEIGHT_RANGE[1]) or not (
            _STEP_LENGTH_RANGE[0] <= length <= _STEP_LENGTH_RANGE[1]
        ):
            raise self._fail(ErrorCode.PARAMETER_ERROR, "step parameters out of range")
        self.step_height = height
        self.step_length = length

    def set_parameters(self, params: Parameters) -> bool:
        """Replace the robot parameters; returns whether the model validates."""
        if not params.is_valid_geometry():
            raise self._fail(ErrorCode.PARAMETER_ERROR, "non-positive geometry")
        self.params = params
        return self.model.validate()

    def set_control_frequency(self, frequency: float) -> None:
        """Set the control loop frequency in Hz (10-200)."""
        low, high = _CONTROL_FREQUENCY_RANGE
        if not low <= frequency <= high:
            raise self._fail(ErrorCode.PARAMETER_ERROR, "control frequency out of range")
        self.params.control_frequency = frequency

    def leg_reach(self) -> float:
        return self.params.leg_reach()

    def effective_step_length(self) -> float:
        """Step length reduced for low stability and steep ground, within safe limits."""
        factors = self.params.gait_factors
        reach = self.leg_reach()

        stability_factor = 1.0
        if self.enabled:
            index = self.stability_index()
            if index < 0.5:
                stability_factor = 0.7 + 0.3 * index

        terrain_factor = 1.0
        if self.imu is not None and self.imu.is_connected():
            imu_data = self.imu.read()
            if imu_data.is_valid:
                tilt = imu_data.tilt_magnitude()
                if tilt > 10.0:
                    terrain_factor = max(0.6, 1.0 - (tilt - 10.0) / 20.0)

        length = self.step_length * stability_factor * terrain_factor
        return max(reach * factors.min_length_factor, min(reach * factors.max_length_factor, length))