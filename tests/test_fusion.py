import struct

import numpy as np
import pytest

from roifusion.fusion import (
    FLOAT32,
    DetectedObjectsWithFeature,
    FeatureObject,
    PointCloud,
    PointField,
    RegionOfInterest,
    crop_points,
    points_roi_fusion,
)
from roifusion.projection import CameraCalibration


@pytest.fixture
def calibration():
    return CameraCalibration.from_parameters(
        [1, 0, 0, 0, 1, 0, 0, 0, 1],
        [0, 0, 0],
        [100, 0, 0, 0, 100, 0, 0, 0, 1],
        [0, 0, 0, 0, 0],
    )


def test_from_points_round_trip():
    pts = [[1.5, -2.0, 3.25], [0.0, 4.0, -1.0]]
    cloud = PointCloud.from_points(pts, header={"frame_id": "lidar"})
    assert np.array_equal(cloud.points(), np.array(pts, dtype=np.float32))
    assert cloud.header == {"frame_id": "lidar"}


def test_from_points_layout():
    cloud = PointCloud.from_points([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    assert cloud.width == 2
    assert cloud.height == 1
    assert cloud.point_step == 12
    assert cloud.row_step == cloud.point_step * cloud.width
    assert [(f.name, f.offset) for f in cloud.fields] == [("x", 0), ("y", 4), ("z", 8)]
    assert all(f.datatype == FLOAT32 and f.count == 1 for f in cloud.fields)
    assert not cloud.is_bigendian
    assert not cloud.is_dense


def test_from_points_bytes_are_little_endian_floats():
    cloud = PointCloud.from_points([[1.0, 2.0, 3.0]])
    assert cloud.data == struct.pack("<3f", 1.0, 2.0, 3.0)


def test_empty_cloud():
    cloud = PointCloud.from_points([])
    assert cloud.width == 0
    assert cloud.row_step == 0
    assert cloud.points().shape == (0, 3)


def test_points_reads_big_endian_with_custom_offsets():
    data = struct.pack(">4f", 9.0, 1.0, 2.0, 3.0)
    cloud = PointCloud(
        width=1,
        fields=[PointField("intensity", 0), PointField("x", 4), PointField("y", 8), PointField("z", 12)],
        is_bigendian=True,
        point_step=16,
        row_step=16,
        data=data,
    )
    assert cloud.points().tolist() == [[1.0, 2.0, 3.0]]


def test_points_missing_field_raises():
    cloud = PointCloud(fields=[PointField("x", 0), PointField("y", 4)], point_step=8, data=b"\0" * 8)
    with pytest.raises(ValueError):
        cloud.points()


def test_roi_contains_edges():
    roi = RegionOfInterest(x_offset=10, y_offset=20, height=5, width=5)
    assert roi.contains(10, 20)
    assert roi.contains(14.9, 24.9)
    assert not roi.contains(15, 22)
    assert not roi.contains(12, 25)
    assert not roi.contains(9.99, 22)


def test_crop_points_filters_bounds():
    pts = np.array(
        [
            [1.0, 0.0, 0.0],
            [-1.0, 0.0, 0.0],
            [1.0, 300.0, 0.0],
            [1.0, 0.0, 20.0],
            [0.0, -200.0, 10.0],
        ]
    )
    kept = crop_points(pts)
    assert kept.tolist() == [[1.0, 0.0, 0.0], [0.0, -200.0, 10.0]]


def test_crop_points_keeps_extra_columns_and_custom_bounds():
    pts = np.array([[1.0, 0.5, 0.5, 7.0], [1.0, 2.0, 0.5, 8.0]])
    kept = crop_points(pts, min_y=-1, max_y=1, min_z=-1, max_z=1)
    assert kept.tolist() == [[1.0, 0.5, 0.5, 7.0]]


def test_crop_points_rejects_bad_shape():
    with pytest.raises(ValueError):
        crop_points([[1.0, 2.0]])


def _rois():
    return DetectedObjectsWithFeature(
        header={"stamp": 1},
        feature_objects=[
            FeatureObject(roi=RegionOfInterest(x_offset=50, y_offset=50, height=100, width=100)),
            FeatureObject(roi=RegionOfInterest(x_offset=0, y_offset=0, height=50, width=50)),
            FeatureObject(roi=RegionOfInterest(x_offset=80, y_offset=80, height=100, width=100)),
        ],
    )


def test_points_roi_fusion_assigns_points(calibration):
    rois = _rois()
    pts = [[1.0, 1.0, 1.0], [0.2, 0.2, 1.0], [-1.0, 1.0, 1.0], [20.0, 1.0, 1.0]]
    fused = points_roi_fusion(rois, pts, calibration)

    assert fused.header == rois.header
    assert len(fused.feature_objects) == 3
    clouds = [obj.cluster for obj in fused.feature_objects]
    assert clouds[0].points().tolist() == [[1.0, 1.0, 1.0]]
    assert clouds[1].points().tolist() == [pytest.approx([0.2, 0.2, 1.0])]
    assert clouds[2].points().tolist() == [[1.0, 1.0, 1.0]]
    assert all(c.row_step == c.point_step * c.width for c in clouds)
    assert all(c.header == rois.header for c in clouds)


def test_points_roi_fusion_keeps_rois_and_input(calibration):
    rois = _rois()
    fused = points_roi_fusion(rois, [[1.0, 1.0, 1.0]], calibration)
    assert [obj.roi for obj in fused.feature_objects] == [obj.roi for obj in rois.feature_objects]
    assert all(obj.cluster.width == 0 for obj in rois.feature_objects)


def test_points_roi_fusion_empty_region_gets_empty_cloud(calibration):
    fused = points_roi_fusion(_rois(), [], calibration)
    for obj in fused.feature_objects:
        assert obj.cluster.width == 0
        assert obj.cluster.data == b""
        assert [f.name for f in obj.cluster.fields] == ["x", "y", "z"]


def test_points_roi_fusion_respects_image_size(calibration):
    rois = DetectedObjectsWithFeature(
        feature_objects=[FeatureObject(roi=RegionOfInterest(0, 0, 1000, 1000))]
    )
    fused = points_roi_fusion(rois, [[1.0, 1.0, 1.0]], calibration, image_width=50, image_height=50)
    assert fused.feature_objects[0].cluster.width == 0


def test_points_roi_fusion_rejects_bad_points(calibration):
    with pytest.raises(ValueError):
        points_roi_fusion(_rois(), [[1.0, 2.0]], calibration)