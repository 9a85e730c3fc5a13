"""Input preparation and output decoding for YOLOv8 detection models."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from roifusion.boxes import (
    CONFIDENCE_THRESHOLD,
    IOU_THRESHOLD,
    BoundingBox,
    Detection,
    nms_boxes,
    scale_coords,
)
from roifusion.letterbox import DEFAULT_PAD_COLOR, letterbox, to_chw_blob

Size = Tuple[int, int]
"""An image size given as ``(width, height)``."""

CLASS_OFFSET = 7680
"""Per-class shift applied to boxes so that NMS never mixes classes."""


def preprocess(
    image: np.ndarray, input_shape: Size, dynamic_shape: bool = False
) -> Tuple[np.ndarray, Size]:
    """Letterbox an image and turn it into a ``1 x C x H x W`` float tensor.

    ``input_shape`` is the model's ``(width, height)``. With ``dynamic_shape``
    the padding is trimmed to the stride, so the tensor may be smaller.
    Returns the tensor and the ``(width, height)`` of the letterboxed image.
    """
    resized = letterbox(
        image,
        input_shape,
        DEFAULT_PAD_COLOR,
        auto=dynamic_shape,
        scale_fill=False,
        scale_up=True,
        stride=32,
    )
    blob = to_chw_blob(resized)[np.newaxis]
    return blob, (resized.shape[1], resized.shape[0])


def decode_yolo8(
    output: np.ndarray,
    original_size: Size,
    resized_size: Size,
    conf_threshold: float = CONFIDENCE_THRESHOLD,
    iou_threshold: float = IOU_THRESHOLD,
) -> list[Detection]:
    """Turn a raw ``[1, 4 + classes, N]`` model output into detections.

    Each column holds a box centre, its size and the class scores. Columns
    whose best score exceeds ``conf_threshold`` are mapped back onto the
    original image and filtered by class-aware non-maximum suppression.
    Detections are returned by descending confidence.
    """
    data = np.asarray(output, dtype=np.float32)
    if data.ndim == 3:
        data = data[0]
    if data.ndim != 2:
        raise ValueError("output must have shape [1, features, detections]")

    num_features, num_detections = data.shape
    num_classes = num_features - 4
    if num_detections == 0 or num_classes <= 0:
        return []

    class_scores = data[4:]
    class_ids = np.argmax(class_scores, axis=0)
    best_scores = class_scores[class_ids, np.arange(num_detections)]
    threshold = float(np.float32(conf_threshold))

    boxes: list[BoundingBox] = []
    shifted: list[BoundingBox] = []
    confs: list[float] = []
    labels: list[int] = []

    for column in np.flatnonzero(best_scores > np.float32(conf_threshold)):
        cx, cy, w, h = (data[row, column] for row in range(4))
        left = cx - w / np.float32(2.0)
        top = cy - h / np.float32(2.0)
        raw = BoundingBox(int(left), int(top), int(w), int(h))
        scaled = scale_coords(resized_size, raw, original_size, True)
        class_id = int(class_ids[column])
        offset = class_id * CLASS_OFFSET
        boxes.append(scaled)
        shifted.append(
            BoundingBox(scaled.x + offset, scaled.y + offset, scaled.width, scaled.height)
        )
        confs.append(float(best_scores[column]))
        labels.append(class_id)

    keep = nms_boxes(shifted, confs, threshold, iou_threshold)
    return [Detection(boxes[i], confs[i], labels[i]) for i in keep]