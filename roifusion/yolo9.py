"""Output decoding for YOLOv9 detection models."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from roifusion.rects import (
    CONFIDENCE_THRESHOLD,
    NMS_THRESHOLD,
    CornerDetection,
    nms_rects,
    scale_result_coords_to_original,
)

Size = Tuple[int, int]
"""An image size given as ``(width, height)``."""


def decode_yolo9(
    output: np.ndarray, original_size: Size, resized_size: Size
) -> list[CornerDetection]:
    """Turn a raw ``[1, 4 + classes, N]`` model output into corner detections.

    Each column holds a box centre, its size and the class scores. Columns
    whose best score reaches the confidence threshold are converted to
    corners, mapped back onto the original image and filtered by
    non-maximum suppression. Detections are returned by descending confidence.
    """
    data = np.asarray(output, dtype=np.float32)
    if data.ndim == 3:
        data = data[0]
    if data.ndim != 2:
        raise ValueError("output must have shape [1, attributes, predictions]")

    num_attributes, num_predictions = data.shape
    num_classes = num_attributes - 4
    if num_predictions == 0 or num_classes <= 0:
        return []

    class_scores = data[4:]
    class_ids = np.argmax(class_scores, axis=0)
    best_scores = class_scores[class_ids, np.arange(num_predictions)]
    half = np.float32(2.0)

    detections: list[CornerDetection] = []
    for column in np.flatnonzero(best_scores >= np.float32(CONFIDENCE_THRESHOLD)):
        cx, cy, w, h = (data[row, column] for row in range(4))
        corner = CornerDetection(
            x1=int(cx - w / half),
            y1=int(cy - h / half),
            x2=int(cx + w / half),
            y2=int(cy + h / half),
            class_id=int(class_ids[column]),
            confidence=float(best_scores[column]),
        )
        detections.append(scale_result_coords_to_original(resized_size, corner, original_size))

    keep = nms_rects(
        [det.rect for det in detections],
        [det.confidence for det in detections],
        CONFIDENCE_THRESHOLD,
        NMS_THRESHOLD,
    )
    return [detections[i] for i in keep]