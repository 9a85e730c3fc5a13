"""Drawing regions of interest and their projected point clusters onto an image."""

from __future__ import annotations

import random
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from roifusion.fusion import IMG_HEIGHT, IMG_WIDTH, PointCloud
from roifusion.projection import CameraCalibration

Color = Tuple[int, int, int]

RECTANGLE_THICKNESS = 2


def cluster_pixels(
    cloud: PointCloud,
    calibration: CameraCalibration,
    image_width: float = IMG_WIDTH,
    image_height: float = IMG_HEIGHT,
) -> np.ndarray:
    """Project a cluster's points and keep those landing inside the image.

    Returns an ``N x 2`` float32 array of pixel positions ``(x, y)``.
    """
    points = cloud.points()
    if len(points) == 0:
        return np.zeros((0, 2), dtype=np.float32)
    pixels = calibration.project(points)
    x, y = pixels[:, 0], pixels[:, 1]
    mask = (x >= 0) & (y >= 0) & (x < image_width) & (y < image_height)
    return pixels[mask]


def _fill(image: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: Color) -> None:
    """Fill the inclusive rectangle ``[x0, x1] x [y0, y1]``, clipped to the image."""
    height, width = image.shape[:2]
    xa, xb = max(x0, 0), min(x1, width - 1)
    ya, yb = max(y0, 0), min(y1, height - 1)
    if xa > xb or ya > yb:
        return
    image[ya : yb + 1, xa : xb + 1] = color


def _draw_rectangle(
    image: np.ndarray, corner1: Tuple[int, int], corner2: Tuple[int, int], color: Color
) -> None:
    left, right = sorted((corner1[0], corner2[0]))
    top, bottom = sorted((corner1[1], corner2[1]))
    half = RECTANGLE_THICKNESS // 2
    _fill(image, left - half, top - half, right + half, top + half, color)
    _fill(image, left - half, bottom - half, right + half, bottom + half, color)
    _fill(image, left - half, top - half, left + half, bottom + half, color)
    _fill(image, right - half, top - half, right + half, bottom + half, color)


def _draw_dot(image: np.ndarray, x: int, y: int, color: Color) -> None:
    for dx, dy in ((0, 0), (1, 0), (-1, 0), (0, 1), (0, -1)):
        _fill(image, x + dx, y + dy, x + dx, y + dy, color)


def draw_fusion(
    image: np.ndarray,
    objects: Any,
    calibration: CameraCalibration,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Draw every object's region and projected cluster in a random colour.

    ``image`` is an ``H x W x 3`` BGR array and is not modified; ``objects``
    is a ``DetectedObjectsWithFeature`` or a sequence of feature objects.
    Returns the annotated copy.
    """
    canvas = np.array(image, copy=True)
    if canvas.ndim != 3 or canvas.shape[2] != 3:
        raise ValueError("image must be an H x W x 3 array")
    feature_objects: Sequence[Any] = getattr(objects, "feature_objects", objects)
    rng = random.Random(seed)
    height, width = canvas.shape[:2]

    for obj in feature_objects:
        color = (rng.randrange(256), rng.randrange(256), rng.randrange(256))
        roi = obj.roi
        _draw_rectangle(
            canvas,
            (roi.x_offset, roi.y_offset),
            (roi.x_offset + roi.width, roi.y_offset + roi.height),
            color,
        )
        for u, v in cluster_pixels(obj.cluster, calibration, width, height):
            _draw_dot(canvas, int(np.rint(u)), int(np.rint(v)), color)
    return canvas