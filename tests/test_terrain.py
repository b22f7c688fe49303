import pytest

from hexlocomotion.gait import GaitType
from hexlocomotion.interfaces import FSRData, IMUData, LegState
from hexlocomotion.mathutils import Point3D
from hexlocomotion.parameters import NUM_LEGS
from hexlocomotion.terrain import (
    average_contact_pressure,
    center_of_pressure,
    gait_for_terrain,
    pressure_variance,
    should_adapt_gait,
    slope_compensation,
    stability_index,
)

MAX_PRESSURE = 10.0


def uniform(pressure, contact=True):
    return [FSRData(pressure=pressure, in_contact=contact) for _ in range(NUM_LEGS)]


def test_average_without_contact_is_none():
    assert average_contact_pressure(uniform(5.0, contact=False)) is None
    assert pressure_variance(uniform(5.0, contact=False)) is None


def test_average_of_uniform_readings():
    assert average_contact_pressure(uniform(4.0)) == pytest.approx(4.0)


def test_average_ignores_feet_in_air():
    readings = uniform(2.0)
    readings[0] = FSRData(pressure=9.0, in_contact=False)
    assert average_contact_pressure(readings) == pytest.approx(2.0)


def test_average_lies_between_extremes():
    readings = [FSRData(pressure=p, in_contact=True) for p in (1.0, 2.0, 3.0, 7.0, 8.0, 9.0)]
    average = average_contact_pressure(readings)
    assert 1.0 < average < 9.0


def test_variance_uniform_is_zero_and_spread_is_positive():
    assert pressure_variance(uniform(4.0)) == pytest.approx(0.0)
    spread = [FSRData(pressure=p, in_contact=True) for p in (1.0, 9.0, 1.0, 9.0, 1.0, 9.0)]
    assert pressure_variance(spread) > 0.0


def test_should_adapt_false_on_flat_even_ground():
    assert should_adapt_gait(uniform(2.0), IMUData(), MAX_PRESSURE) is False


def test_should_adapt_on_tilt():
    assert should_adapt_gait(uniform(2.0), IMUData(roll=6.0), MAX_PRESSURE) is True


def test_should_adapt_on_high_pressure():
    assert should_adapt_gait(uniform(9.0), IMUData(), MAX_PRESSURE) is True


def test_should_adapt_on_uneven_pressure():
    spread = [FSRData(pressure=p, in_contact=True) for p in (0.5, 6.0, 0.5, 6.0, 0.5, 6.0)]
    assert should_adapt_gait(spread, IMUData(), MAX_PRESSURE) is True


def test_should_adapt_false_without_contact():
    readings = uniform(9.0, contact=False)
    assert should_adapt_gait(readings, IMUData(roll=45.0), MAX_PRESSURE) is False


def test_gait_for_terrain_heavy_load_is_wave():
    assert gait_for_terrain(uniform(9.0), MAX_PRESSURE, GaitType.TRIPOD) is GaitType.WAVE


def test_gait_for_terrain_light_load_is_tripod():
    assert gait_for_terrain(uniform(1.0), MAX_PRESSURE, GaitType.RIPPLE) is GaitType.TRIPOD


def test_gait_for_terrain_without_contact_keeps_current():
    readings = uniform(9.0, contact=False)
    assert gait_for_terrain(readings, MAX_PRESSURE, GaitType.METACHRONAL) is GaitType.METACHRONAL


def test_center_of_pressure_single_loaded_foot():
    positions = [Point3D(100.0 * leg, -30.0 * leg, -90.0) for leg in range(NUM_LEGS)]
    states = [LegState.STANCE] * NUM_LEGS
    readings = uniform(0.0)
    readings[2] = FSRData(pressure=5.0, in_contact=True)
    cop = center_of_pressure(positions, states, readings)
    assert cop == pytest.approx((positions[2].x, positions[2].y))


def test_center_of_pressure_ignores_swing_legs():
    positions = [Point3D(10.0, 20.0, -90.0)] * NUM_LEGS
    positions = list(positions)
    positions[0] = Point3D(500.0, 500.0, -90.0)
    states = [LegState.STANCE] * NUM_LEGS
    states[0] = LegState.SWING
    cop = center_of_pressure(positions, states, uniform(3.0))
    assert cop == pytest.approx((10.0, 20.0))


def test_center_of_pressure_without_load_is_origin():
    positions = [Point3D(100.0, 100.0, -90.0)] * NUM_LEGS
    states = [LegState.STANCE] * NUM_LEGS
    assert center_of_pressure(positions, states, uniform(0.0)) == (0.0, 0.0)


def test_stability_index_far_from_feet_is_one():
    positions = [Point3D(400.0, 0.0, -90.0)] * NUM_LEGS
    states = [LegState.STANCE] * NUM_LEGS
    assert stability_index(positions, states, (0.0, 0.0), 20.0) == pytest.approx(1.0)


def test_stability_index_on_a_foot_is_zero():
    positions = [Point3D(400.0, 0.0, -90.0)] * NUM_LEGS
    states = [LegState.STANCE] * NUM_LEGS
    assert stability_index(positions, states, (400.0, 0.0), 20.0) == pytest.approx(0.0)


def test_stability_index_grows_with_distance():
    positions = [Point3D(40.0, 0.0, -90.0)] * NUM_LEGS
    states = [LegState.STANCE] * NUM_LEGS
    near = stability_index(positions, states, (30.0, 0.0), 20.0)
    far = stability_index(positions, states, (10.0, 0.0), 20.0)
    assert 0.0 < near < far <= 1.0


def test_slope_compensation_level_ground_unchanged():
    assert slope_compensation((1.0, -2.0, 3.0), IMUData(), 0.02) == pytest.approx((1.0, -2.0, 3.0))


def test_slope_compensation_leans_against_tilt():
    roll, pitch, yaw = slope_compensation((0.0, 0.0, 7.0), IMUData(roll=10.0, pitch=-10.0), 0.1)
    assert roll < 0.0
    assert pitch > 0.0
    assert yaw == pytest.approx(7.0)


def test_slope_compensation_is_clamped():
    roll, pitch, _ = slope_compensation((14.9, -14.9, 0.0), IMUData(roll=-100.0, pitch=100.0), 1.0)
    assert roll == pytest.approx(15.0)
    assert pitch == pytest.approx(-15.0)


def test_slope_compensation_ignores_invalid_imu():
    imu = IMUData(roll=30.0, pitch=30.0, is_valid=False)
    assert slope_compensation((1.0, 2.0, 3.0), imu, 0.5) == pytest.approx((1.0, 2.0, 3.0))