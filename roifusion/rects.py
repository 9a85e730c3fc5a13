"""Corner-form detections, their rescaling and rectangle non-maximum suppression."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence, Tuple

Size = Tuple[int, int]
"""An image size given as ``(width, height)``."""

Rect = Tuple[float, float, float, float]
"""A rectangle given as ``(x, y, width, height)``."""

CONFIDENCE_THRESHOLD = 0.45
NMS_THRESHOLD = 0.4


@dataclass(frozen=True)
class CornerDetection:
    """A detection whose box is given by its top-left and bottom-right corners."""

    x1: int
    y1: int
    x2: int
    y2: int
    class_id: int
    confidence: float

    @property
    def rect(self) -> Rect:
        """The box as ``(x, y, width, height)``."""
        return (self.x1, self.y1, self.x2 - self.x1, self.y2 - self.y1)


def scale_result_coords_to_original(
    image_shape: Size, detection: CornerDetection, original_shape: Size
) -> CornerDetection:
    """Map a detection from the letterboxed image back onto the original image.

    Padding and the rescaled corners are truncated toward zero.
    """
    image_w, image_h = image_shape
    orig_w, orig_h = original_shape
    gain = min(image_w / orig_w, image_h / orig_h)
    pad_x = int((image_w - orig_w * gain) / 2.0)
    pad_y = int((image_h - orig_h * gain) / 2.0)
    return replace(
        detection,
        x1=int((detection.x1 - pad_x) / gain),
        y1=int((detection.y1 - pad_y) / gain),
        x2=int((detection.x2 - pad_x) / gain),
        y2=int((detection.y2 - pad_y) / gain),
    )


def _is_empty(rect: Rect) -> bool:
    return rect[2] <= 0 or rect[3] <= 0


def _intersection_area(a: Rect, b: Rect) -> float:
    if _is_empty(a) or _is_empty(b):
        return 0.0
    x1 = max(a[0], b[0])
    y1 = max(a[1], b[1])
    width = min(a[0] + a[2], b[0] + b[2]) - x1
    height = min(a[1] + a[3], b[1] + b[3]) - y1
    if width <= 0 or height <= 0:
        return 0.0
    return float(width * height)


def _overlap(a: Rect, b: Rect) -> float:
    area_a = a[2] * a[3]
    area_b = b[2] * b[3]
    if area_a + area_b <= 0:
        return 1.0
    inter = _intersection_area(a, b)
    return inter / (area_a + area_b - inter)


def nms_rects(
    boxes: Sequence[Rect],
    scores: Sequence[float],
    score_threshold: float = CONFIDENCE_THRESHOLD,
    nms_threshold: float = NMS_THRESHOLD,
) -> list[int]:
    """Greedy non-maximum suppression over ``(x, y, width, height)`` rectangles.

    Only boxes scoring strictly above ``score_threshold`` take part. They are
    visited by descending score, equal scores keeping their input order, and a
    box is kept when its IoU with every kept box is at most ``nms_threshold``.
    Returns the kept indices in the order they were kept.
    """
    if len(boxes) != len(scores):
        raise ValueError("boxes and scores must have the same length")
    rects = [tuple(box) for box in boxes]
    if any(len(rect) != 4 for rect in rects):
        raise ValueError("each box must be (x, y, width, height)")

    order = sorted(
        (i for i, score in enumerate(scores) if score > score_threshold),
        key=lambda i: scores[i],
        reverse=True,
    )
    kept: list[int] = []
    for index in order:
        if all(_overlap(rects[index], rects[k]) <= nms_threshold for k in kept):
            kept.append(index)
    return kept