"""Axis-aligned boxes, coordinate rescaling and greedy non-maximum suppression."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple, TypeVar

Number = TypeVar("Number", int, float)

Size = Tuple[int, int]
"""An image size given as ``(width, height)``."""

CONFIDENCE_THRESHOLD = 0.4
IOU_THRESHOLD = 0.45


def _round(value: float) -> int:
    """Round half away from zero, as C's ``round`` does."""
    magnitude = math.floor(abs(value) + 0.5)
    return int(-magnitude if value < 0 else magnitude)


@dataclass(frozen=True)
class BoundingBox:
    """An integer box given by its top-left corner and its size."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def area(self) -> float:
        return float(self.width * self.height)

    def intersect(self, other: BoundingBox) -> BoundingBox:
        """Return the overlap of two boxes; an empty overlap has zero size."""
        x_start = max(self.x, other.x)
        y_start = max(self.y, other.y)
        x_end = min(self.x + self.width, other.x + other.width)
        y_end = min(self.y + self.height, other.y + other.height)
        return BoundingBox(x_start, y_start, max(0, x_end - x_start), max(0, y_end - y_start))


@dataclass(frozen=True)
class Detection:
    """One detected object: its box, confidence and class index."""

    box: BoundingBox
    conf: float = 0.0
    class_id: int = 0


def clamp(value: Number, low: Number, high: Number) -> Number:
    """Restrict ``value`` to ``[low, high]``, swapping the bounds if reversed."""
    valid_low, valid_high = (low, high) if low < high else (high, low)
    if value < valid_low:
        return valid_low
    if value > valid_high:
        return valid_high
    return value


def vector_product(values: Sequence[int]) -> int:
    """Return the product of all values; an empty sequence gives 1."""
    return math.prod(values)


def scale_coords(
    image_shape: Size, coords: BoundingBox, original_shape: Size, clip: bool
) -> BoundingBox:
    """Map a box from the letterboxed image back onto the original image."""
    image_w, image_h = image_shape
    orig_w, orig_h = original_shape
    gain = min(image_h / orig_h, image_w / orig_w)

    pad_x = _round((image_w - orig_w * gain) / 2.0)
    pad_y = _round((image_h - orig_h * gain) / 2.0)

    x = _round((coords.x - pad_x) / gain)
    y = _round((coords.y - pad_y) / gain)
    width = _round(coords.width / gain)
    height = _round(coords.height / gain)

    if clip:
        x = clamp(x, 0, orig_w)
        y = clamp(y, 0, orig_h)
        width = clamp(width, 0, orig_w - x)
        height = clamp(height, 0, orig_h - y)
    return BoundingBox(x, y, width, height)


def best_class_info(row: Sequence[float], num_classes: int) -> Tuple[float, int]:
    """Return ``(confidence, class_id)`` of the best class score in a row.

    The first four entries of the row are box coordinates; class scores follow.
    Scores that are not above zero never win, and ties keep the earlier class.
    """
    best_conf = 0.0
    best_class = 0
    for class_id, score in enumerate(row[4 : 4 + num_classes]):
        if score > best_conf:
            best_conf = score
            best_class = class_id
    return best_conf, best_class


def nms_boxes(
    boxes: Sequence[BoundingBox],
    scores: Sequence[float],
    score_threshold: float,
    nms_threshold: float,
) -> list[int]:
    """Greedy non-maximum suppression.

    Returns the indices of the kept boxes, ordered by descending score.
    Boxes scoring below ``score_threshold`` are dropped; a box is suppressed
    when its IoU with an already kept box exceeds ``nms_threshold``.
    """
    if len(boxes) != len(scores):
        raise ValueError("boxes and scores must have the same length")

    candidates = sorted(
        (i for i, score in enumerate(scores) if score >= score_threshold),
        key=lambda i: scores[i],
        reverse=True,
    )
    areas = [box.area() for box in boxes]
    suppressed: set[int] = set()
    kept: list[int] = []

    for position, current in enumerate(candidates):
        if current in suppressed:
            continue
        kept.append(current)
        box = boxes[current]
        right = box.x + box.width
        bottom = box.y + box.height

        for other in candidates[position + 1 :]:
            if other in suppressed:
                continue
            cmp = boxes[other]
            inter_w = min(right, cmp.x + cmp.width) - max(box.x, cmp.x)
            inter_h = min(bottom, cmp.y + cmp.height) - max(box.y, cmp.y)
            if inter_w <= 0 or inter_h <= 0:
                continue
            intersection = float(inter_w * inter_h)
            union = areas[current] + areas[other] - intersection
            iou = intersection / union if union > 0.0 else 0.0
            if iou > nms_threshold:
                suppressed.add(other)
    return kept