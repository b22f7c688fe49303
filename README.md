# hexlocomotion

Locomotion control for six-legged walking robots.

`hexlocomotion` coordinates a hexapod's sensors, servos and controllers. It
switches between gaits and sets each leg's phase offset. It sizes steps from
the robot's geometry and adapts gait and step size to foot pressure and body
tilt. It also keeps joint angles within their limits, estimates stability and
lets an operator pose the body by hand.

The robot-specific parts are supplied by you as objects that follow small
interfaces: the IMU, foot force sensors, servos, the kinematic model, and the
pose, walk and admittance controllers.

## Installation

```
pip install hexlocomotion
```

To run the test suite:

```
pip install "hexlocomotion[test]"
pytest
```

## Modules

- `hexlocomotion.mathutils`: `Point3D` and `JointAngles`, and the following
  helpers:
  - angle conversion: `degrees_to_radians`, `radians_to_degrees`, and
    `normalize_angle`, which wraps an angle into [-180, 180];
  - rotation: `rotation_matrix_x`/`y`/`z` and `rotate_point`, which applies
    Rz·Ry·Rx with angles in degrees;
  - distance and reach: `distance_3d`, `distance`, `magnitude`,
    `is_point_reachable` and `is_point_in_reach`;
  - transforms and quaternions: `dh_transform`, `quaternion_multiply`,
    `quaternion_inverse`, `euler_to_quaternion`, `quaternion_to_euler`,
    `euler_point_to_quaternion`, `quaternion_to_euler_point`,
    `point_to_vector` and `vector_to_point`.

  Quaternions are numpy arrays ordered (w, x, y, z).
- `hexlocomotion.precision`: `PrecisionLevel` and `ComputeConfig`, which has
  three presets:

  | Preset     | Iterations | Tolerance | Rate   | Approximations |
  |------------|------------|-----------|--------|----------------|
  | `low()`    | 5          | 0.01      | 50 Hz  | on             |
  | `medium()` | 10         | 0.005     | 100 Hz | off            |
  | `high()`   | 20         | 0.001     | 200 Hz | off            |

  `delta_time()` gives the seconds between updates.
- `hexlocomotion.parameters`:
  - `Parameters` holds geometry in mm, joint limits in degrees, control
    frequency, the pressure and stability thresholds, an `IKConfig` and
    `GaitFactors`;
  - `leg_reach()` returns coxa + femur + tibia;
  - `is_valid_geometry()` checks that all lengths are positive;
  - the module also defines the constants `NUM_LEGS` and `DOF_PER_LEG`.
- `hexlocomotion.interfaces`: data types and the interfaces (protocols) you
  implement.
  - Data types: `IMUData` (with `tilt_magnitude()`), `FSRData`, `Velocities`
    and `LegState` (`STANCE`, `SWING`).
  - Interfaces: `IMUInterface`, `FSRInterface`, `ServoInterface`,
    `KinematicModel`, `PoseControl`, `WalkControl` and `AdmittanceControl`.
- `hexlocomotion.gait`: `GaitType` (`TRIPOD`, `WAVE`, `RIPPLE`,
  `METACHRONAL`, `ADAPTIVE`) and the following functions:
  - `phase_offsets(gait)` gives one offset per leg, in the order AR, BR, CR,
    CL, BL, AL.
  - `metachronal_offsets(reverse)` gives the metachronal offsets, running the
    wave in reverse when asked.
  - `metachronal_reversed(velocities)` decides from the commanded velocities
    whether the metachronal wave runs in reverse.
  - `adaptive_offsets(tilt, stability)` starts from the adaptive base
    pattern. It blends towards tripod above 10° of tilt, and towards wave
    when stability is below 0.3.
  - `step_parameters(params, gait)` returns a `StepParameters`.
  - `adjust_for_tilt(step, tilt)` shrinks the step above 15° of tilt and
    clamps it to 15–50 mm in height and 20–80 mm in length.
  - `advance_phase(phase, dt, frequency)` moves the gait phase forward.
- `hexlocomotion.terrain`: functions over foot-sensor readings and body tilt.
  - `average_contact_pressure` and `pressure_variance` summarise the feet in
    contact.
  - `should_adapt_gait` decides whether the ground calls for gait adaptation.
  - `gait_for_terrain` picks wave under heavy load and tripod otherwise.
  - `center_of_pressure` and `stability_index` estimate stability.
  - `slope_compensation` leans the body against the measured tilt, limited
    to ±15°.
- `hexlocomotion.manual_pose`: operator posing.
  - `ManualPoseController` turns input into body translation, rotation,
    height or single-leg moves, chosen by `PoseMode`.
  - Poses are kept within `PoseLimits`, and input is scaled by
    `InputScaling`.
  - It interpolates smoothly towards a target `PoseState`, and can also move
    towards a position and quaternion, using slerp for the rotation.
  - Presets can be saved and loaded by name. `initialize()` creates
    `neutral`, `high`, `low` and `forward_lean`.
  - `apply_pose(pose)` returns a `PoseApplication` with tip positions, joint
    angles and a success flag.
- `hexlocomotion.locomotion`: `LocomotionSystem`, the top-level controller,
  with `ErrorCode` and `LocomotionError`.

## Examples

Converting an orientation to a quaternion and back:

```python
from hexlocomotion.mathutils import euler_to_quaternion, quaternion_to_euler

q = euler_to_quaternion((30.0, 45.0, 60.0))   # degrees in, (w, x, y, z) out
roll, pitch, yaw = quaternion_to_euler(q)      # back to degrees
```

Getting per-leg phase offsets and a step size for a gait:

```python
from hexlocomotion.gait import GaitType, phase_offsets, step_parameters
from hexlocomotion.parameters import Parameters

params = Parameters(hexagon_radius=400, coxa_length=50,
                    femur_length=101, tibia_length=208, robot_height=150)
offsets = phase_offsets(GaitType.WAVE)
step = step_parameters(params, GaitType.WAVE)  # step.height, step.length in mm
```

Driving a robot:

```python
from hexlocomotion.gait import GaitType
from hexlocomotion.locomotion import LocomotionSystem

system = LocomotionSystem(params, model=my_model)
system.initialize(imu, fsr, servo, pose_controller, walk_controller,
                  admittance_controller)
system.set_gait_type(GaitType.TRIPOD)
system.walk_forward(0.1, duration=2.0)   # blocks for two seconds, then stops
```

Here `my_model`, `imu`, `fsr`, `servo` and the three controllers are your own
objects following the interfaces in `hexlocomotion.interfaces`.

`LocomotionSystem` takes an optional `clock` callable returning seconds. It
defaults to `time.monotonic`; pass your own to run it in simulation or tests.

Each call to `update()` runs one control cycle:

1. It adapts gait and step size to the terrain and compensates for slope.
2. It advances the gait phase.
3. It computes foot targets through the walk controller.
4. It solves them through the model and sends clamped joint angles to the
   servos.
5. It levels the body and checks stability.

## Errors

Operations that cannot be carried out raise `LocomotionError`. Its `code`
attribute is an `ErrorCode` that names the failing subsystem. The error is
raised by:

- `initialize()`: a missing interface, a sensor or servo that fails to start,
  or an invalid model;
- `calibrate()`: a sensor that fails to calibrate;
- `set_body_pose()` and `set_leg_position()`: an unreachable pose;
- `set_step_parameters()`: a height outside 15–50 mm or a length outside
  20–80 mm;
- `set_control_frequency()`: a frequency outside 10–200 Hz;
- `set_parameters()`: non-positive geometry.

Commands issued while the system is not enabled return `False`. So do
commands that need a controller that is absent. The most recent problem is
kept in `last_error`. `handle_error(code)` attempts a recovery:

- it re-initialises the IMU or the servos;
- it recalibrates the foot sensors;
- it crouches after a stability error;
- it stands up after a kinematics error.

## What this package does not do

- It contains no leg kinematics solver. Inverse and forward kinematics,
  Jacobians, joint-limit checks and model validation come from the
  `KinematicModel` you supply.
- It does not generate foot trajectories or plan gait sequences.
  `LocomotionSystem` passes these to your `WalkControl`.
- Whole-body standing, crouch and body poses come from your `PoseControl`.
  Orientation holding and the stability check come from your
  `AdmittanceControl`.
- It includes no hardware drivers. The IMU, force sensors and servos are
  reached only through the interfaces you implement.
- It has no command-line program. It does not compute workspace or velocity
  limits.