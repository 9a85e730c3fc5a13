"""Pinhole camera projection with radial and tangential lens distortion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np


def _rotation_matrix(rotation: Sequence[float] | np.ndarray) -> np.ndarray:
    """Accept a 3x3 rotation matrix (or its nine values) or a rotation vector."""
    values = np.asarray(rotation, dtype=np.float64)
    if values.size == 9:
        return values.reshape(3, 3)
    if values.size == 3:
        vector = values.reshape(3)
        theta = float(np.linalg.norm(vector))
        if theta < 1e-12:
            return np.eye(3)
        axis = vector / theta
        cross = np.array(
            [
                [0.0, -axis[2], axis[1]],
                [axis[2], 0.0, -axis[0]],
                [-axis[1], axis[0], 0.0],
            ]
        )
        return (
            np.cos(theta) * np.eye(3)
            + (1.0 - np.cos(theta)) * np.outer(axis, axis)
            + np.sin(theta) * cross
        )
    raise ValueError("rotation must be a 3x3 matrix or a 3-element rotation vector")


def _distortion(dist_coeffs: Sequence[float] | np.ndarray | None) -> np.ndarray:
    values = np.zeros(8)
    if dist_coeffs is None:
        return values
    given = np.asarray(dist_coeffs, dtype=np.float64).reshape(-1)
    if given.size not in (0, 4, 5, 8):
        raise ValueError("distortion coefficients must have 0, 4, 5 or 8 values")
    values[: given.size] = given
    return values


def project_points(
    points: Sequence[Sequence[float]] | np.ndarray,
    rotation: Sequence[float] | np.ndarray,
    tvec: Sequence[float] | np.ndarray,
    camera_matrix: Sequence[float] | np.ndarray,
    dist_coeffs: Sequence[float] | np.ndarray | None = None,
) -> np.ndarray:
    """Project 3-D points into pixel coordinates.

    ``rotation`` is a 3x3 matrix or a rotation vector, ``dist_coeffs`` holds
    ``k1, k2, p1, p2[, k3[, k4, k5, k6]]``. Returns an ``N x 2`` float32 array.
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.size == 0:
        return np.zeros((0, 2), dtype=np.float32)
    pts = pts.reshape(-1, 3) if pts.ndim != 2 or pts.shape[1] != 3 else pts
    if pts.shape[1] != 3:
        raise ValueError("points must be an N x 3 array")

    rot = _rotation_matrix(rotation)
    trans = np.asarray(tvec, dtype=np.float64).reshape(-1)
    if trans.size != 3:
        raise ValueError("tvec must have three values")
    intrinsics = np.asarray(camera_matrix, dtype=np.float64)
    if intrinsics.size != 9:
        raise ValueError("camera_matrix must be 3x3")
    intrinsics = intrinsics.reshape(3, 3)
    k1, k2, p1, p2, k3, k4, k5, k6 = _distortion(dist_coeffs)

    cam = pts @ rot.T + trans
    z = cam[:, 2]
    inv_z = np.divide(1.0, z, out=np.ones_like(z), where=z != 0)
    x = cam[:, 0] * inv_z
    y = cam[:, 1] * inv_z

    r2 = x * x + y * y
    r4 = r2 * r2
    r6 = r4 * r2
    radial = (1.0 + k1 * r2 + k2 * r4 + k3 * r6) / (1.0 + k4 * r2 + k5 * r4 + k6 * r6)
    xd = x * radial + 2.0 * p1 * x * y + p2 * (r2 + 2.0 * x * x)
    yd = y * radial + p1 * (r2 + 2.0 * y * y) + 2.0 * p2 * x * y

    fx, fy = intrinsics[0, 0], intrinsics[1, 1]
    cx, cy = intrinsics[0, 2], intrinsics[1, 2]
    return np.column_stack((xd * fx + cx, yd * fy + cy)).astype(np.float32)


@dataclass(frozen=True, eq=False)
class CameraCalibration:
    """Extrinsic and intrinsic parameters of a calibrated camera."""

    rotation: np.ndarray
    tvec: np.ndarray
    camera_matrix: np.ndarray
    dist_coeffs: np.ndarray

    @classmethod
    def from_parameters(
        cls,
        rotation: Sequence[float],
        tvec: Sequence[float],
        camera_matrix: Sequence[float],
        dist_coeffs: Sequence[float],
    ) -> CameraCalibration:
        """Build a calibration from flat row-major parameter lists.

        Needs at least nine rotation values, three translation values, nine
        camera-matrix values and five distortion coefficients.
        """
        rot = list(rotation)
        trans = list(tvec)
        cam = list(camera_matrix)
        dist = list(dist_coeffs)
        if len(rot) < 9:
            raise ValueError("rotation needs nine values")
        if len(trans) < 3:
            raise ValueError("tvec needs three values")
        if len(cam) < 9:
            raise ValueError("camera_matrix needs nine values")
        if len(dist) < 5:
            raise ValueError("dist_coeffs needs five values")
        return cls(
            rotation=np.array(rot[:9], dtype=np.float64).reshape(3, 3),
            tvec=np.array(trans[:3], dtype=np.float64),
            camera_matrix=np.array(cam[:9], dtype=np.float64).reshape(3, 3),
            dist_coeffs=np.array(dist[:5], dtype=np.float64),
        )

    def project(self, points: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
        """Project 3-D points into this camera's image, as an ``N x 2`` array."""
        return project_points(
            points, self.rotation, self.tvec, self.camera_matrix, self.dist_coeffs
        )