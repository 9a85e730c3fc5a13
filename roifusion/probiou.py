"""Oriented boxes, probabilistic IoU and rotated non-maximum suppression."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

EPS = 1e-7
CONFIDENCE_THRESHOLD = 0.25


@dataclass(frozen=True)
class OrientedBoundingBox:
    """A rotated box given by its centre, size and angle in radians."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    angle: float = 0.0


@dataclass(frozen=True)
class OrientedDetection:
    """One detected object with an oriented box, confidence and class index."""

    box: OrientedBoundingBox
    conf: float = 0.0
    class_id: int = 0


def covariance_components(box: OrientedBoundingBox) -> Tuple[float, float, float]:
    """Return the ``(a, b, c)`` terms of the box's Gaussian covariance matrix."""
    a = box.width * box.width / 12.0
    b = box.height * box.height / 12.0
    cos_t = math.cos(box.angle)
    sin_t = math.sin(box.angle)
    cos_sq = cos_t * cos_t
    sin_sq = sin_t * sin_t
    return (
        a * cos_sq + b * sin_sq,
        a * sin_sq + b * cos_sq,
        (a - b) * cos_t * sin_t,
    )


def _log(value: float) -> float:
    if value > 0.0:
        return math.log(value)
    if value == 0.0:
        return -math.inf
    return math.nan


def _clamp(value: float, low: float, high: float) -> float:
    # NaN passes through unchanged.
    if value < low:
        return low
    if value > high:
        return high
    return value


def _probiou(
    centre1: Tuple[float, float],
    cov1: Tuple[float, float, float],
    centre2: Tuple[float, float],
    cov2: Tuple[float, float, float],
    eps: float,
) -> float:
    x1, y1 = centre1
    x2, y2 = centre2
    a1, b1, c1 = cov1
    a2, b2, c2 = cov2

    sum_a = a1 + a2
    sum_b = b1 + b2
    sum_c = c1 + c2
    determinant = sum_a * sum_b - sum_c * sum_c
    denom = determinant + eps

    dx = x1 - x2
    dy = y1 - y2
    t1 = (sum_a * dy * dy + sum_b * dx * dx) * 0.25 / denom
    t2 = (sum_c * (x2 - x1) * dy) * 0.5 / denom

    term1 = max(a1 * b1 - c1 * c1, 0.0)
    term2 = max(a2 * b2 - c2 * c2, 0.0)
    sqrt_term = math.sqrt(term1 * term2)
    t3 = 0.5 * _log(determinant / (4.0 * sqrt_term + eps) + eps)

    bd = _clamp(t1 + t2 + t3, eps, 100.0)
    inner = 1.0 - math.exp(-bd) + eps
    hd = math.sqrt(inner) if inner >= 0.0 else math.nan
    return 1.0 - hd


def batch_probiou(
    obb1: Sequence[OrientedBoundingBox],
    obb2: Sequence[OrientedBoundingBox],
    eps: float = EPS,
) -> list[list[float]]:
    """Return the matrix of probabilistic IoU values between two box sets."""
    second = [((box.x, box.y), covariance_components(box)) for box in obb2]
    matrix = []
    for box in obb1:
        centre = (box.x, box.y)
        cov = covariance_components(box)
        matrix.append([_probiou(centre, cov, c2, v2, eps) for c2, v2 in second])
    return matrix


def nms_rotated(
    boxes: Sequence[OrientedBoundingBox],
    scores: Sequence[float],
    threshold: float = 0.75,
) -> list[int]:
    """Rotated non-maximum suppression.

    Returns the indices of the kept boxes by descending score. A box is
    dropped when its IoU with any higher-scoring box reaches ``threshold``,
    whether or not that box was itself kept.
    """
    if len(boxes) != len(scores):
        raise ValueError("boxes and scores must have the same length")
    order = sorted(range(len(boxes)), key=lambda i: scores[i], reverse=True)
    ordered = [boxes[i] for i in order]
    ious = batch_probiou(ordered, ordered)
    return [
        order[j]
        for j in range(len(ordered))
        if not any(ious[i][j] >= threshold for i in range(j))
    ]


def non_max_suppression(
    detections: Sequence[OrientedDetection],
    conf_threshold: float = CONFIDENCE_THRESHOLD,
    iou_threshold: float = 0.75,
    max_det: int = 1000,
) -> list[OrientedDetection]:
    """Keep confident detections that survive rotated NMS, at most ``max_det``."""
    candidates = [det for det in detections if det.conf > conf_threshold]
    if not candidates:
        return []
    keep = nms_rotated(
        [det.box for det in candidates],
        [det.conf for det in candidates],
        iou_threshold,
    )
    return [candidates[i] for i in keep[: max(max_det, 0)]]