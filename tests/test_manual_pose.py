import math

import numpy as np
import pytest

from hexlocomotion.manual_pose import (
    InputScaling,
    ManualPoseController,
    PoseMode,
    PoseState,
)
from hexlocomotion.mathutils import JointAngles, Point3D, euler_point_to_quaternion
from hexlocomotion.parameters import NUM_LEGS, Parameters


class _FakeModel:
    def __init__(self, within_limits=True):
        self.params = Parameters(
            hexagon_radius=200,
            coxa_length=50,
            femur_length=100,
            tibia_length=150,
            robot_height=100,
            coxa_angle_limits=(-90, 90),
            femur_angle_limits=(-90, 90),
            tibia_angle_limits=(-90, 90),
        )
        self.within_limits = within_limits
        self.ik_calls = []

    def inverse_kinematics(self, leg, target):
        self.ik_calls.append((leg, target))
        return JointAngles(leg * 1.0, 2.0, 3.0)

    def check_joint_limits(self, leg, angles):
        return self.within_limits

    def leg_origin(self, leg):
        return Point3D(0.0, 0.0, 0.0)


@pytest.fixture
def controller():
    ctrl = ManualPoseController(_FakeModel())
    ctrl.initialize()
    ctrl.input_scaling = InputScaling(
        translation_scale=1.0, rotation_scale=0.01, leg_scale=1.0, height_scale=1.0
    )
    return ctrl


def _quat_diff(a, b):
    return float(np.sum(np.abs(np.asarray(a) - np.asarray(b))))


def test_quaternion_consistency_after_set_pose(controller):
    controller.set_use_quaternion(True)
    quat = euler_point_to_quaternion(Point3D(10.0, -5.0, 15.0))
    controller.set_pose_quaternion(Point3D(5.0, -5.0, 95.0), quat, 1.0)
    assert _quat_diff(quat, controller.current_quaternion()) < 0.01
    assert controller.current_pose.body_position == Point3D(5.0, -5.0, 95.0)
    assert controller.target_pose.pose_active


def test_quaternion_interpolation_converges(controller):
    controller.set_use_quaternion(True)
    controller.set_pose_quaternion(
        Point3D(5.0, -5.0, 95.0), euler_point_to_quaternion(Point3D(10.0, -5.0, 15.0)), 1.0
    )
    target_quat = euler_point_to_quaternion(Point3D(25.0, 20.0, 35.0))
    target_pos = Point3D(15.0, 10.0, 105.0)
    for _ in range(10):
        controller.interpolate_to_quaternion_pose(target_pos, target_quat, 0.3)
    assert _quat_diff(target_quat, controller.current_quaternion()) < 0.5
    assert controller.current_pose.body_position.x == pytest.approx(15.0, abs=0.5)


def test_interpolation_step_reduces_distance(controller):
    controller.set_use_quaternion(True)
    start = euler_point_to_quaternion(Point3D(0.0, 0.0, 0.0))
    controller.set_pose_quaternion(Point3D(), start, 1.0)
    target = euler_point_to_quaternion(Point3D(40.0, 0.0, 0.0))
    before = _quat_diff(target, controller.current_quaternion())
    controller.interpolate_to_quaternion_pose(Point3D(), target, 0.5)
    after = _quat_diff(target, controller.current_quaternion())
    assert after < before
    assert controller.current_pose.body_rotation.x == pytest.approx(20.0, abs=0.1)


def test_full_speed_interpolation_jumps_to_target(controller):
    target = euler_point_to_quaternion(Point3D(20.0, 15.0, 30.0))
    controller.interpolate_to_quaternion_pose(Point3D(10.0, 5.0, 110.0), target, 1.0)
    assert _quat_diff(target, controller.current_quaternion()) < 1e-9
    assert controller.current_pose.pose_blend_factor == 1.0
    assert controller.current_pose.body_rotation.x == pytest.approx(20.0, abs=1e-6)


def test_set_use_quaternion_false_converts_back(controller):
    controller.set_use_quaternion(True)
    quat = euler_point_to_quaternion(Point3D(30.0, 45.0, 60.0))
    controller.set_pose_quaternion(Point3D(), quat, 1.0)
    controller.set_use_quaternion(False)
    rot = controller.current_pose.body_rotation
    assert (rot.x, rot.y, rot.z) == pytest.approx((30.0, 45.0, 60.0), abs=0.01)
    assert controller.current_pose.use_quaternion is False


def test_preset_names_are_sorted(controller):
    assert controller.pose_preset_names() == ["forward_lean", "high", "low", "neutral"]


def test_load_presets(controller):
    assert controller.load_pose_preset("high")
    assert controller.target_pose.body_height == 120.0
    assert controller.load_pose_preset("forward_lean")
    assert controller.target_pose.body_rotation.y == pytest.approx(0.174)
    assert not controller.load_pose_preset("missing")


def test_save_and_load_preset(controller):
    controller.set_pose_mode(PoseMode.BODY_HEIGHT)
    controller.process_input(0.0, 0.0, 20.0)
    controller.save_pose_preset("mine")
    assert "mine" in controller.pose_preset_names()
    controller.reset_pose()
    assert controller.load_pose_preset("mine")
    assert controller.target_pose.body_height == pytest.approx(110.0)


def test_translation_input_and_limits(controller):
    controller.set_pose_mode(PoseMode.TRANSLATION)
    controller.process_input(10.0, -5.0, 3.0)
    assert controller.current_pose.body_position == Point3D(10.0, -5.0, 3.0)
    controller.process_input(100.0, -100.0, 100.0)
    assert controller.current_pose.body_position == Point3D(50.0, -50.0, 30.0)


def test_rotation_input_clamped(controller):
    controller.set_pose_mode(PoseMode.ROTATION)
    controller.process_input(100.0, -100.0, 1000.0)
    rot = controller.current_pose.body_rotation
    assert rot.x == pytest.approx(0.524)
    assert rot.y == pytest.approx(-0.524)
    assert rot.z == pytest.approx(math.pi)


def test_height_input_clamped(controller):
    controller.set_pose_mode(PoseMode.BODY_HEIGHT)
    controller.process_input(0.0, 0.0, 500.0)
    assert controller.current_pose.body_height == 150.0
    controller.process_input(0.0, 0.0, -500.0)
    assert controller.current_pose.body_height == 50.0


def test_combined_input_splits(controller):
    controller.set_pose_mode(PoseMode.COMBINED)
    controller.process_input(10.0, 0.0, 5.0)
    assert controller.current_pose.body_position.x == pytest.approx(6.0)
    assert controller.current_pose.body_rotation.x == pytest.approx(0.04)
    assert controller.current_pose.body_rotation.z == pytest.approx(0.05)


def test_extended_combined_uses_blend(controller):
    controller.set_pose_mode(PoseMode.COMBINED)
    controller.process_input_extended(10.0, 0.0, 0.0, 0.25)
    assert controller.current_pose.body_position.x == pytest.approx(2.5)
    assert controller.current_pose.body_rotation.x == pytest.approx(0.075)


def test_individual_leg_input_and_reach_limit(controller):
    controller.set_pose_mode(PoseMode.LEG_INDIVIDUAL)
    before = controller.current_pose.leg_positions[2]
    controller.process_input(2.0, 5.0, 0.0)
    assert controller.current_pose.leg_positions[2].y == pytest.approx(before.y + 5.0)
    controller.process_input_extended(1000.0, 0.0, 0.0, 3.0)
    leg = controller.current_pose.leg_positions[3]
    assert math.sqrt(leg.x ** 2 + leg.y ** 2 + leg.z ** 2) == pytest.approx(250.0)


def test_individual_leg_out_of_range_ignored(controller):
    controller.set_pose_mode(PoseMode.LEG_INDIVIDUAL)
    before = list(controller.current_pose.leg_positions)
    controller.process_input(7.0, 5.0, 5.0)
    assert controller.current_pose.leg_positions == before


def test_set_target_pose_constrains(controller):
    legs = [Point3D() for _ in range(NUM_LEGS)]
    legs[0] = Point3D(1000.0, 0.0, 0.0)
    controller.set_target_pose(
        PoseState(body_position=Point3D(80.0, 0.0, 0.0), leg_positions=legs, body_height=10.0)
    )
    assert controller.target_pose.body_position.x == 50.0
    assert controller.target_pose.body_height == 50.0
    assert controller.target_pose.leg_positions[0].x == pytest.approx(250.0)


def test_update_interpolation_halfway(controller):
    controller.set_smooth_transitions(True, 0.5)
    controller.set_target_pose(PoseState(body_height=130.0))
    controller.update_pose_interpolation(1.0 / 60.0)
    assert controller.current_pose.body_height == pytest.approx(110.0)


def test_update_interpolation_without_smoothing(controller):
    controller.set_smooth_transitions(False)
    controller.set_target_pose(PoseState(body_position=Point3D(10.0, 0.0, 0.0), body_height=70.0))
    controller.update_pose_interpolation(0.01)
    assert controller.current_pose.body_height == 70.0
    assert controller.current_pose.body_position == Point3D(10.0, 0.0, 0.0)


def test_smooth_transition_speed_clamped(controller):
    controller.set_smooth_transitions(True, 5.0)
    assert controller.interpolation_speed == 1.0
    controller.set_smooth_transitions(True, 0.0)
    assert controller.interpolation_speed == 0.01


def test_default_leg_position(controller):
    pos = controller.default_leg_position(1, 100.0)
    assert pos.x == pytest.approx(80.0)
    assert pos.y == pytest.approx(160.0 * math.sin(math.pi / 3.0))
    assert pos.z == -100.0


def test_reset_places_legs_at_defaults(controller):
    height = controller.current_pose.body_height
    expected = [controller.default_leg_position(i, height) for i in range(NUM_LEGS)]
    assert controller.current_pose.leg_positions == expected
    assert controller.target_pose.leg_positions == expected


def test_apply_pose_success():
    model = _FakeModel()
    ctrl = ManualPoseController(model)
    ctrl.initialize()
    result = ctrl.apply_pose(PoseState(body_position=Point3D(10.0, 0.0, 0.0), body_height=100.0))
    assert result.success
    assert result.leg_positions[0] == Point3D(170.0, 0.0, -100.0)
    assert result.joint_angles[2] == JointAngles(2.0, 2.0, 3.0)
    assert len(model.ik_calls) == NUM_LEGS


def test_apply_pose_yaw_rotation():
    ctrl = ManualPoseController(_FakeModel())
    ctrl.initialize()
    result = ctrl.apply_pose(
        PoseState(body_rotation=Point3D(0.0, 0.0, math.pi / 2.0), body_height=100.0)
    )
    assert result.leg_positions[0].x == pytest.approx(0.0, abs=1e-9)
    assert result.leg_positions[0].y == pytest.approx(160.0)


def test_apply_pose_reports_limit_violation():
    ctrl = ManualPoseController(_FakeModel(within_limits=False))
    ctrl.initialize()
    result = ctrl.apply_pose(PoseState(body_height=100.0))
    assert result.success is False
    assert len(result.joint_angles) == NUM_LEGS