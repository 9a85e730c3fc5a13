"""YOLO output decoding, box and rotated-box NMS, and lidar-to-camera ROI point fusion."""

__version__ = "0.1.0"

__all__ = [
    "boxes",
    "fusion",
    "labels",
    "letterbox",
    "obb",
    "probiou",
    "projection",
    "rects",
    "visualize",
    "yolo8",
    "yolo9",
]