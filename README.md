# roifusion

Building blocks for a camera and lidar perception pipeline, using NumPy only.
Sizes are always `(width, height)` pairs; images are `H x W x C` NumPy arrays
in BGR channel order.

| Module | What it provides |
| --- | --- |
| `roifusion.boxes` | `BoundingBox`, `Detection`, `clamp`, `vector_product`, `scale_coords`, `best_class_info`, greedy NMS `nms_boxes` |
| `roifusion.rects` | `CornerDetection`, `scale_result_coords_to_original`, rectangle NMS `nms_rects` |
| `roifusion.probiou` | `OrientedBoundingBox`, `OrientedDetection`, `covariance_components`, `batch_probiou`, `nms_rotated`, `non_max_suppression` |
| `roifusion.letterbox` | `resize_bilinear`, `letterbox`, `to_chw_blob` |
| `roifusion.labels` | `load_class_names`, `generate_colors`, and the `MersenneTwister` generator they use |
| `roifusion.yolo8` | `preprocess`, `decode_yolo8` |
| `roifusion.yolo9` | `decode_yolo9` |
| `roifusion.obb` | `decode_obb` for oriented-box models |
| `roifusion.projection` | `project_points`, `CameraCalibration` |
| `roifusion.fusion` | `PointField`, `PointCloud`, `RegionOfInterest`, `FeatureObject`, `DetectedObjectsWithFeature`, `crop_points`, `points_roi_fusion` |
| `roifusion.visualize` | `cluster_pixels`, `draw_fusion` |

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Preparing input and decoding YOLOv8 output

```python
import numpy as np
from roifusion.yolo8 import preprocess, decode_yolo8

image = np.zeros((480, 640, 3), dtype=np.uint8)
blob, resized_size = preprocess(image, (640, 640), False)   # blob: 1 x 3 x H x W float32
# output = run_your_model(blob)                              # shape (1, 4 + classes, N)
output = np.zeros((1, 84, 8400), dtype=np.float32)
detections = decode_yolo8(output, (640, 480), resized_size, 0.4, 0.45)
for det in detections:
    print(det.class_id, det.conf, det.box)
```

`decode_yolo8` keeps columns whose best class score exceeds the confidence
threshold, maps them back onto the original image with `scale_coords`, and
runs NMS per class. Detections come back by descending confidence.

`decode_yolo9(output, original_size, resized_size)` does the same for
YOLOv9 output, with fixed thresholds (confidence 0.45, NMS 0.4), and
returns `CornerDetection` objects (`x1, y1, x2, y2, class_id, confidence`).

## Oriented boxes

```python
from roifusion.probiou import OrientedBoundingBox, OrientedDetection, non_max_suppression

dets = [
    OrientedDetection(OrientedBoundingBox(50, 50, 20, 10, 0.0), 0.9, 0),
    OrientedDetection(OrientedBoundingBox(51, 50, 20, 10, 0.05), 0.8, 0),
]
kept = non_max_suppression(dets, 0.25, 0.75, 1000)
```

Overlap is measured with probabilistic IoU (`batch_probiou`).
`roifusion.obb.decode_obb(output, original_size, resized_size, conf_threshold,
iou_threshold, topk)` decodes a `[1, 4 + classes + 1, N]` output whose last
row is the angle in radians.

## Class names and colours

`load_class_names(path)` reads one name per line and raises `OSError` if the
file cannot be read. `generate_colors(names, seed=42)` gives one reproducible
`(b, g, r)` colour per name.

## Fusing lidar points with 2-D detections

```python
import numpy as np
from roifusion.projection import CameraCalibration
from roifusion.fusion import (
    DetectedObjectsWithFeature,
    FeatureObject,
    RegionOfInterest,
    crop_points,
    points_roi_fusion,
)

calibration = CameraCalibration.from_parameters(
    rotation=[1, 0, 0, 0, 1, 0, 0, 0, 1],
    tvec=[0, 0, 0],
    camera_matrix=[800, 0, 720, 0, 800, 540, 0, 0, 1],
    dist_coeffs=[0, 0, 0, 0, 0],
)
raw_points = np.array([[0.0, 0.0, 5.0], [1.0, 0.5, 5.0]], dtype=np.float32)
rois = DetectedObjectsWithFeature(
    feature_objects=[FeatureObject(roi=RegionOfInterest(x_offset=600, y_offset=450, height=200, width=300))]
)
points = crop_points(raw_points, -200.0, 200.0, -10.0, 10.0)
fused = points_roi_fusion(rois, points, calibration, 1440.0, 1080.0)
for obj in fused.feature_objects:
    print(obj.roi, len(obj.cluster.points()))
```

`crop_points` keeps points with `x >= 0` inside the y and z bounds.
`points_roi_fusion` returns a new message whose feature objects each carry a
`PointCloud` of the x, y, z float32 points projecting inside their region;
points outside the image are dropped, and a point inside several regions
goes into each of them.

`roifusion.visualize.draw_fusion(image, objects, calibration, seed)` returns
a copy of a BGR image with every region outlined and its projected cluster
points dotted, each object in a random colour drawn from `seed`.

## What the package does not do

- It does not run detection models; you pass in the arrays your runtime
  produces.
- It does not subscribe to or publish messages, synchronise topics, or
  decode compressed images; the message classes in `roifusion.fusion` are
  plain dataclasses.
- It does not draw detection boxes, masks or text labels; drawing is limited
  to `draw_fusion`'s rectangles and dots.