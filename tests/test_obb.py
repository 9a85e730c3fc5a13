import numpy as np
import pytest

from roifusion.obb import decode_obb


def make_output(columns, num_classes):
    """Build a [1, 4 + classes + 1, N] tensor from (x, y, w, h, scores, angle) rows."""
    rows = []
    for x, y, w, h, scores, angle in columns:
        assert len(scores) == num_classes
        rows.append([x, y, w, h, *scores, angle])
    return np.asarray(rows, dtype=np.float32).T[np.newaxis]


def test_identity_letterbox_keeps_box():
    out = make_output([(100.0, 120.0, 30.0, 40.0, [0.1, 0.9], 0.5)], 2)
    dets = decode_obb(out, (640, 640), (640, 640))
    assert len(dets) == 1
    det = dets[0]
    assert det.class_id == 1
    assert det.conf == pytest.approx(0.9)
    assert det.box.x == pytest.approx(100.0)
    assert det.box.y == pytest.approx(120.0)
    assert det.box.width == pytest.approx(30.0)
    assert det.box.height == pytest.approx(40.0)
    assert det.box.angle == pytest.approx(0.5)


def test_below_threshold_is_dropped():
    out = make_output([(100.0, 100.0, 10.0, 10.0, [0.2, 0.1], 0.0)], 2)
    assert decode_obb(out, (640, 640), (640, 640), conf_threshold=0.25) == []


def test_threshold_is_strict():
    out = make_output([(100.0, 100.0, 10.0, 10.0, [0.5], 0.0)], 1)
    assert decode_obb(out, (640, 640), (640, 640), conf_threshold=0.5) == []


def test_too_few_features_gives_nothing():
    out = np.ones((1, 5, 3), dtype=np.float32)
    assert decode_obb(out, (640, 640), (640, 640)) == []


def test_no_detections_gives_nothing():
    out = np.zeros((1, 7, 0), dtype=np.float32)
    assert decode_obb(out, (640, 640), (640, 640)) == []


def test_bad_rank_raises():
    with pytest.raises(ValueError):
        decode_obb(np.zeros(7, dtype=np.float32), (640, 640), (640, 640))


def test_two_dimensional_output_accepted():
    out = make_output([(50.0, 60.0, 10.0, 12.0, [0.8], 0.0)], 1)[0]
    dets = decode_obb(out, (640, 640), (640, 640))
    assert [d.class_id for d in dets] == [0]


def test_centre_of_letterbox_maps_to_centre_of_original():
    original = (1280, 640)
    resized = (640, 640)
    out = make_output([(320.0, 320.0, 10.0, 10.0, [0.9], 0.0)], 1)
    dets = decode_obb(out, original, resized)
    assert len(dets) == 1
    assert dets[0].box.x == pytest.approx(original[0] / 2)
    assert dets[0].box.y == pytest.approx(original[1] / 2)
    assert dets[0].box.width == pytest.approx(2 * 10.0)


def test_coordinates_clipped_to_image():
    out = make_output([(-20.0, 700.0, 900.0, 5.0, [0.9], 0.0)], 1)
    dets = decode_obb(out, (640, 640), (640, 640))
    box = dets[0].box
    assert box.x == 0.0
    assert box.y == 640.0
    assert box.width == 640.0
    assert box.height == pytest.approx(5.0)


def test_overlapping_boxes_suppressed():
    out = make_output(
        [
            (100.0, 100.0, 50.0, 50.0, [0.6], 0.0),
            (100.0, 100.0, 50.0, 50.0, [0.9], 0.0),
        ],
        1,
    )
    dets = decode_obb(out, (640, 640), (640, 640))
    assert len(dets) == 1
    assert dets[0].conf == pytest.approx(0.9)


def test_distant_boxes_kept_by_descending_confidence():
    out = make_output(
        [
            (50.0, 50.0, 20.0, 20.0, [0.5, 0.1], 0.0),
            (500.0, 500.0, 20.0, 20.0, [0.1, 0.8], 0.0),
        ],
        2,
    )
    dets = decode_obb(out, (640, 640), (640, 640))
    confs = [d.conf for d in dets]
    assert confs == sorted(confs, reverse=True)
    assert [d.class_id for d in dets] == [1, 0]


def test_topk_limits_results():
    out = make_output(
        [
            (50.0, 50.0, 20.0, 20.0, [0.5], 0.0),
            (300.0, 300.0, 20.0, 20.0, [0.7], 0.0),
            (550.0, 550.0, 20.0, 20.0, [0.9], 0.0),
        ],
        1,
    )
    dets = decode_obb(out, (640, 640), (640, 640), topk=2)
    assert len(dets) == 2
    assert dets[0].conf == pytest.approx(0.9)
    assert dets[1].conf == pytest.approx(0.7)