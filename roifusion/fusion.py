"""Assigning lidar points to image regions of interest."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, replace
from typing import Any, Sequence

import numpy as np

from roifusion.projection import CameraCalibration

IMG_WIDTH = 1440.0
IMG_HEIGHT = 1080.0

DEFAULT_MIN_Y = -200.0
DEFAULT_MAX_Y = 200.0
DEFAULT_MIN_Z = -10.0
DEFAULT_MAX_Z = 10.0

FLOAT32 = 7
"""Datatype code of a 32-bit float field."""


@dataclass(frozen=True)
class PointField:
    """Description of one field inside each point of a cloud."""

    name: str
    offset: int
    datatype: int = FLOAT32
    count: int = 1


def _xyz_fields() -> list[PointField]:
    return [PointField("x", 0), PointField("y", 4), PointField("z", 8)]


@dataclass
class PointCloud:
    """A packed point cloud: fixed-size point records stored in a byte string."""

    header: Any = None
    height: int = 1
    width: int = 0
    fields: list[PointField] = field(default_factory=_xyz_fields)
    is_bigendian: bool = False
    point_step: int = 12
    row_step: int = 0
    data: bytes = b""
    is_dense: bool = False

    @classmethod
    def from_points(
        cls, points: Sequence[Sequence[float]] | np.ndarray, header: Any = None
    ) -> PointCloud:
        """Pack ``x, y, z`` points as little-endian float32 records."""
        xyz = np.asarray(points, dtype="<f4")
        if xyz.size == 0:
            xyz = np.zeros((0, 3), dtype="<f4")
        elif xyz.ndim != 2 or xyz.shape[1] < 3:
            raise ValueError("points must be an N x 3 array")
        xyz = np.ascontiguousarray(xyz[:, :3])
        count = xyz.shape[0]
        return cls(
            header=header,
            height=1,
            width=count,
            fields=_xyz_fields(),
            is_bigendian=False,
            point_step=12,
            row_step=12 * count,
            data=xyz.tobytes(),
            is_dense=False,
        )

    def _offset(self, name: str) -> int:
        for item in self.fields:
            if item.name == name:
                return item.offset
        raise ValueError(f"Field {name} does not exist")

    def points(self) -> np.ndarray:
        """Return the ``x, y, z`` fields of every point as an ``N x 3`` float32 array."""
        offsets = [self._offset(name) for name in ("x", "y", "z")]
        if self.point_step <= 0:
            raise ValueError("point_step must be positive")
        if max(offsets) + 4 > self.point_step:
            raise ValueError("field lies outside the point record")
        count = len(self.data) // self.point_step
        if count == 0:
            return np.zeros((0, 3), dtype=np.float32)
        fmt = (">" if self.is_bigendian else "<") + "f4"
        record = np.dtype(
            {
                "names": ["x", "y", "z"],
                "formats": [fmt, fmt, fmt],
                "offsets": offsets,
                "itemsize": self.point_step,
            }
        )
        values = np.frombuffer(self.data, dtype=record, count=count)
        return np.column_stack(
            [values[name].astype(np.float32) for name in ("x", "y", "z")]
        )


@dataclass(frozen=True)
class RegionOfInterest:
    """An axis-aligned pixel region of an image."""

    x_offset: int = 0
    y_offset: int = 0
    height: int = 0
    width: int = 0
    do_rectify: bool = False

    def contains(self, x: float, y: float) -> bool:
        """Whether a pixel position lies in the region; right and bottom edges excluded."""
        return (
            self.x_offset <= x < self.x_offset + self.width
            and self.y_offset <= y < self.y_offset + self.height
        )


@dataclass
class FeatureObject:
    """A detected object together with its image region and point cluster."""

    roi: RegionOfInterest = field(default_factory=RegionOfInterest)
    cluster: PointCloud = field(default_factory=PointCloud)
    object: Any = None


@dataclass
class DetectedObjectsWithFeature:
    """A stamped set of detected objects."""

    header: Any = None
    feature_objects: list[FeatureObject] = field(default_factory=list)


def crop_points(
    points: Sequence[Sequence[float]] | np.ndarray,
    min_y: float = DEFAULT_MIN_Y,
    max_y: float = DEFAULT_MAX_Y,
    min_z: float = DEFAULT_MIN_Z,
    max_z: float = DEFAULT_MAX_Z,
) -> np.ndarray:
    """Keep the points in front of the sensor (``x >= 0``) and inside the y and z bounds.

    Extra columns such as intensity are kept alongside the coordinates.
    """
    pts = np.asarray(points, dtype=np.float32)
    if pts.size == 0:
        width = pts.shape[1] if pts.ndim == 2 else 3
        return np.zeros((0, width), dtype=np.float32)
    if pts.ndim != 2 or pts.shape[1] < 3:
        raise ValueError("points must have at least three columns")
    x, y, z = pts[:, 0], pts[:, 1], pts[:, 2]
    mask = (x >= 0) & (y >= min_y) & (y <= max_y) & (z >= min_z) & (z <= max_z)
    return pts[mask]


def points_roi_fusion(
    rois: DetectedObjectsWithFeature,
    points: Sequence[Sequence[float]] | np.ndarray,
    calibration: CameraCalibration,
    image_width: float = IMG_WIDTH,
    image_height: float = IMG_HEIGHT,
) -> DetectedObjectsWithFeature:
    """Give each region of interest the cloud of points that project into it.

    Points projecting outside the image are dropped; a point inside several
    regions goes into each of their clouds. The input message is not changed.
    """
    pts = np.asarray(points, dtype=np.float32)
    if pts.size == 0:
        pts = np.zeros((0, 3), dtype=np.float32)
    elif pts.ndim != 2 or pts.shape[1] < 3:
        raise ValueError("points must be an N x 3 array")
    pts = pts[:, :3]

    members: list[list[np.ndarray]] = [[] for _ in rois.feature_objects]
    pixels = calibration.project(pts) if len(pts) else np.zeros((0, 2), dtype=np.float32)

    for point, (u, v) in zip(pts, pixels):
        if u < 0 or v < 0 or u > image_width or v > image_height:
            continue
        for bucket, obj in zip(members, rois.feature_objects):
            if obj.roi.contains(u, v):
                bucket.append(point)

    fused = [
        replace(obj, cluster=PointCloud.from_points(bucket, rois.header))
        for obj, bucket in zip(rois.feature_objects, members)
    ]
    return DetectedObjectsWithFeature(header=rois.header, feature_objects=fused)


def _pack_xyz(x: float, y: float, z: float) -> bytes:
    return struct.pack("<3f", x, y, z)