"""Geometry helpers: points, rotations, DH transforms and quaternions.

Angles passed to the rotation, DH and Euler helpers are in degrees.
Quaternions are four-element arrays ordered (w, x, y, z).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np


@dataclass(frozen=True)
class Point3D:
    """A point or vector in 3D space."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: object) -> "Point3D":
        if not isinstance(other, Point3D):
            return NotImplemented
        return Point3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: object) -> "Point3D":
        if not isinstance(other, Point3D):
            return NotImplemented
        return Point3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Point3D":
        return Point3D(-self.x, -self.y, -self.z)

    def __mul__(self, factor: object) -> "Point3D":
        if not isinstance(factor, (int, float)):
            return NotImplemented
        return Point3D(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def as_array(self) -> np.ndarray:
        """The point as a numpy vector."""
        return np.array([self.x, self.y, self.z], dtype=float)


@dataclass(frozen=True)
class JointAngles:
    """Coxa, femur and tibia angles of one leg, in degrees."""

    coxa: float = 0.0
    femur: float = 0.0
    tibia: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.coxa
        yield self.femur
        yield self.tibia


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def radians_to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def normalize_angle(angle: float) -> float:
    """Wrap an angle in degrees into [-180, 180]."""
    while angle > 180.0:
        angle -= 360.0
    while angle < -180.0:
        angle += 360.0
    return angle


def rotation_matrix_x(angle: float) -> np.ndarray:
    rad = degrees_to_radians(angle)
    c, s = math.cos(rad), math.sin(rad)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def rotation_matrix_y(angle: float) -> np.ndarray:
    rad = degrees_to_radians(angle)
    c, s = math.cos(rad), math.sin(rad)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rotation_matrix_z(angle: float) -> np.ndarray:
    rad = degrees_to_radians(angle)
    c, s = math.cos(rad), math.sin(rad)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def rotate_point(point: Point3D, rotation: Sequence[float]) -> Point3D:
    """Rotate a point by roll, pitch, yaw (degrees), applied as Rz·Ry·Rx."""
    roll, pitch, yaw = (float(v) for v in rotation)
    matrix = rotation_matrix_z(yaw) @ rotation_matrix_y(pitch) @ rotation_matrix_x(roll)
    return vector_to_point(matrix @ point.as_array())


def distance_3d(p1: Point3D, p2: Point3D) -> float:
    return math.sqrt((p1.x - p2.x) ** 2 + (p1.y - p2.y) ** 2 + (p1.z - p2.z) ** 2)


def distance(p1: Point3D, p2: Point3D) -> float:
    return distance_3d(p1, p2)


def magnitude(point: Point3D) -> float:
    return math.sqrt(point.x * point.x + point.y * point.y + point.z * point.z)


def is_point_reachable(point: Point3D, max_reach: float) -> bool:
    """True if the point lies within max_reach of the origin."""
    return magnitude(point) <= max_reach


def is_point_in_reach(point: Point3D, min_reach: float, max_reach: float) -> bool:
    """True if the point's distance from the origin lies in [min_reach, max_reach]."""
    dist = magnitude(point)
    return min_reach <= dist <= max_reach


def quaternion_multiply(q1: Sequence[float], q2: Sequence[float]) -> np.ndarray:
    """Hamilton product q1·q2."""
    w1, x1, y1, z1 = (float(v) for v in q1)
    w2, x2, y2, z2 = (float(v) for v in q2)
    return np.array(
        [
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        ]
    )


def quaternion_inverse(q: Sequence[float]) -> np.ndarray:
    """Inverse quaternion; a zero quaternion is returned unchanged."""
    quat = np.asarray(q, dtype=float)
    norm_sq = float(quat @ quat)
    if norm_sq > 0.0:
        return np.array([quat[0], -quat[1], -quat[2], -quat[3]]) / norm_sq
    return quat.copy()


def dh_transform(a: float, alpha: float, d: float, theta: float) -> np.ndarray:
    """Denavit-Hartenberg homogeneous transform; alpha and theta in degrees."""
    ct = math.cos(degrees_to_radians(theta))
    st = math.sin(degrees_to_radians(theta))
    ca = math.cos(degrees_to_radians(alpha))
    sa = math.sin(degrees_to_radians(alpha))
    return np.array(
        [
            [ct, -st * ca, st * sa, a * ct],
            [st, ct * ca, -ct * sa, a * st],
            [0.0, sa, ca, d],
            [0.0, 0.0, 0.0, 1.0],
        ]
    )


def quaternion_to_euler(quaternion: Sequence[float]) -> np.ndarray:
    """Convert a quaternion to roll, pitch, yaw in degrees."""
    w, x, y, z = (float(v) for v in quaternion)
    roll = math.atan2(2.0 * (w * x + y * z), 1.0 - 2.0 * (x * x + y * y))
    sinp = 2.0 * (w * y - z * x)
    pitch = math.copysign(math.pi / 2.0, sinp) if abs(sinp) >= 1.0 else math.asin(sinp)
    yaw = math.atan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z))
    return np.array([radians_to_degrees(roll), radians_to_degrees(pitch), radians_to_degrees(yaw)])


def euler_to_quaternion(euler: Sequence[float]) -> np.ndarray:
    """Convert roll, pitch, yaw in degrees to a quaternion."""
    roll, pitch, yaw = (degrees_to_radians(float(v)) for v in euler)
    cy, sy = math.cos(yaw * 0.5), math.sin(yaw * 0.5)
    cp, sp = math.cos(pitch * 0.5), math.sin(pitch * 0.5)
    cr, sr = math.cos(roll * 0.5), math.sin(roll * 0.5)
    return np.array(
        [
            cr * cp * cy + sr * sp * sy,
            sr * cp * cy - cr * sp * sy,
            cr * sp * cy + sr * cp * sy,
            cr * cp * sy - sr * sp * cy,
        ]
    )


def point_to_vector(point: Point3D) -> np.ndarray:
    return point.as_array()


def vector_to_point(vec: Sequence[float]) -> Point3D:
    return Point3D(float(vec[0]), float(vec[1]), float(vec[2]))


def euler_point_to_quaternion(euler_degrees: Point3D) -> np.ndarray:
    return euler_to_quaternion(point_to_vector(euler_degrees))


def quaternion_to_euler_point(quaternion: Sequence[float]) -> Point3D:
    return vector_to_point(quaternion_to_euler(quaternion))