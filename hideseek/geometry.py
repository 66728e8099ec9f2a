"""
Rigid-Transform Geometry Helpers

Quaternions are numpy arrays in (w, x, y, z) order. World axes follow the
simulator convention: +y is forward, +x is right and +z is up.
"""

from dataclasses import dataclass

import numpy as np


FWD = np.array([0.0, 1.0, 0.0])
RIGHT = np.array([1.0, 0.0, 0.0])
UP = np.array([0.0, 0.0, 1.0])

IDENTITY_QUAT = np.array([1.0, 0.0, 0.0, 0.0])


def quat_from_angle_axis(angle: float, axis) -> np.ndarray:
    axis = np.asarray(axis, dtype=np.float64)
    axis = axis / np.linalg.norm(axis)
    half = 0.5 * angle
    s = np.sin(half)
    return np.array([np.cos(half), axis[0] * s, axis[1] * s, axis[2] * s])


def quat_mul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product a * b (apply b first, then a)."""
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return np.array([
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    ])


def quat_inv(q: np.ndarray) -> np.ndarray:
    """Inverse of a unit quaternion (its conjugate)."""
    return np.array([q[0], -q[1], -q[2], -q[3]])


def quat_normalize(q: np.ndarray) -> np.ndarray:
    return q / np.linalg.norm(q)


def quat_rotate(q: np.ndarray, v) -> np.ndarray:
    """Rotate vector v by unit quaternion q."""
    v = np.asarray(v, dtype=np.float64)
    u = q[1:]
    w = q[0]
    t = 2.0 * np.cross(u, v)
    return v + w * t + np.cross(u, t)


def quat_to_matrix(q: np.ndarray) -> np.ndarray:
    w, x, y, z = q
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
        [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
        [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
    ])


def yaw_of(q: np.ndarray) -> float:
    """
    Signed rotation about +z carried by q.

    Roll and pitch are ignored, which is exact for upright bodies.
    """
    w, x, y, z = q
    return float(np.arctan2(2.0 * (w * z + x * y),
                            1.0 - 2.0 * (y * y + z * z)))


def relative_yaw(observer_rot: np.ndarray, target_rot: np.ndarray) -> float:
    """Yaw of observer_rot * target_rot^-1."""
    return yaw_of(quat_mul(observer_rot, quat_inv(target_rot)))


def to_local_frame(origin: np.ndarray, rot: np.ndarray, point) -> np.ndarray:
    """Express a world-space point in the frame at (origin, rot)."""
    return quat_rotate(quat_inv(rot), np.asarray(point) - origin)


def from_local_frame(origin: np.ndarray, rot: np.ndarray, local) -> np.ndarray:
    return quat_rotate(rot, local) + origin


@dataclass
class AABB:
    """Axis-aligned bounding box given by its min and max corners."""

    pmin: np.ndarray
    pmax: np.ndarray

    @classmethod
    def from_half_extents(cls, half_extents) -> "AABB":
        h = np.asarray(half_extents, dtype=np.float64)
        return cls(-h, h.copy())

    def corners(self) -> np.ndarray:
        lo, hi = self.pmin, self.pmax
        return np.array([
            [x, y, z]
            for x in (lo[0], hi[0])
            for y in (lo[1], hi[1])
            for z in (lo[2], hi[2])
        ])

    def apply_trs(self, translation, rotation: np.ndarray, scale) -> "AABB":
        """
        Bound this box after scaling, rotating and translating it.

        The result is the axis-aligned hull of the eight transformed
        corners, so it is conservative for rotated shapes.
        """
        scaled = self.corners() * np.asarray(scale, dtype=np.float64)
        rotated = scaled @ quat_to_matrix(rotation).T
        moved = rotated + np.asarray(translation, dtype=np.float64)
        return AABB(moved.min(axis=0), moved.max(axis=0))

    def overlaps(self, other: "AABB") -> bool:
        # Touching faces do not count as overlap
        return bool(np.all(self.pmin < other.pmax) and
                    np.all(other.pmin < self.pmax))
