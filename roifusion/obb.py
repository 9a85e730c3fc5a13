"""Output decoding for YOLOv8 oriented-bounding-box models."""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from roifusion.probiou import (
    CONFIDENCE_THRESHOLD,
    OrientedBoundingBox,
    OrientedDetection,
    non_max_suppression,
)

Size = Tuple[int, int]
"""An image size given as ``(width, height)``."""

DEFAULT_IOU_THRESHOLD = 0.25
DEFAULT_TOPK = 500


def _round(value: float) -> int:
    """Round half away from zero, as C's ``round`` does."""
    magnitude = math.floor(abs(value) + 0.5)
    return int(-magnitude if value < 0 else magnitude)


def _clip(value: float, high: float) -> float:
    return min(max(value, 0.0), high)


def decode_obb(
    output: np.ndarray,
    original_size: Size,
    resized_size: Size,
    conf_threshold: float = CONFIDENCE_THRESHOLD,
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
    topk: int = DEFAULT_TOPK,
) -> list[OrientedDetection]:
    """Turn a raw ``[1, 4 + classes + 1, N]`` model output into oriented detections.

    Each column holds a box centre, its size, the class scores and finally
    the rotation angle in radians. Columns whose best score exceeds
    ``conf_threshold`` are mapped from the letterboxed image back onto the
    original one, their centre and size are clipped to the image, and the
    result is filtered by rotated non-maximum suppression keeping at most
    ``topk`` detections by descending confidence.
    """
    data = np.asarray(output, dtype=np.float32)
    if data.ndim == 3:
        data = data[0]
    if data.ndim != 2:
        raise ValueError("output must have shape [1, features, detections]")

    num_features, num_detections = data.shape
    num_labels = num_features - 5
    if num_detections == 0 or num_labels <= 0:
        return []

    inp_w, inp_h = (float(np.float32(v)) for v in resized_size)
    orig_w, orig_h = (float(np.float32(v)) for v in original_size)
    r = min(inp_h / orig_h, inp_w / orig_w)
    pad_w = _round(orig_w * r)
    pad_h = _round(orig_h * r)
    dw = (inp_w - pad_w) / 2.0
    dh = (inp_h - pad_h) / 2.0
    ratio = 1.0 / r

    class_scores = data[4 : 4 + num_labels]
    class_ids = np.argmax(class_scores, axis=0)
    best_scores = class_scores[class_ids, np.arange(num_detections)]
    angles = data[4 + num_labels]

    candidates: list[OrientedDetection] = []
    for column in np.flatnonzero(best_scores > np.float32(conf_threshold)):
        x, y, w, h = (float(data[row, column]) for row in range(4))
        box = OrientedBoundingBox(
            x=_clip((x - dw) * ratio, orig_w),
            y=_clip((y - dh) * ratio, orig_h),
            width=_clip(w * ratio, orig_w),
            height=_clip(h * ratio, orig_h),
            angle=float(angles[column]),
        )
        candidates.append(
            OrientedDetection(box, float(best_scores[column]), int(class_ids[column]))
        )

    return non_max_suppression(candidates, conf_threshold, iou_threshold, topk)