import numpy as np
import pytest

from roifusion.letterbox import letterbox, resize_bilinear, to_chw_blob


def _image(height, width, value=7):
    return np.full((height, width, 3), value, dtype=np.uint8)


def test_resize_same_size_is_identity():
    img = np.arange(60, dtype=np.uint8).reshape(4, 5, 3)
    out = resize_bilinear(img, 5, 4)
    assert np.array_equal(out, img)
    assert out is not img


def test_resize_constant_image_stays_constant():
    img = _image(10, 20, 42)
    out = resize_bilinear(img, 33, 17)
    assert out.shape == (17, 33, 3)
    assert out.dtype == np.uint8
    assert np.all(out == 42)


def test_resize_gradient_is_monotonic_and_bounded():
    img = np.array([[0.0, 100.0]], dtype=np.float32)
    out = resize_bilinear(img, 8, 1)
    row = out[0]
    assert np.all(np.diff(row) >= 0)
    assert row.min() >= 0.0
    assert row.max() <= 100.0


def test_resize_rejects_bad_size():
    with pytest.raises(ValueError):
        resize_bilinear(_image(4, 4), 0, 4)


def test_letterbox_exact_shape_without_auto():
    img = _image(100, 200)
    out = letterbox(img, (64, 64), auto=False)
    assert out.shape == (64, 64, 3)
    assert np.all(out[0] == 114)
    assert np.all(out[-1] == 114)
    assert np.all(out[32] == 7)


def test_letterbox_same_shape_keeps_content():
    img = np.arange(64 * 64 * 3, dtype=np.uint8).reshape(64, 64, 3)
    out = letterbox(img, (64, 64), auto=False)
    assert np.array_equal(out, img)


def test_letterbox_auto_reduces_padding_to_stride():
    img = _image(320, 480)
    out = letterbox(img, (640, 640), auto=True)
    assert out.shape == (437, 640, 3)


def test_letterbox_scale_fill_stretches():
    img = _image(30, 90, 55)
    out = letterbox(img, (64, 48), auto=False, scale_fill=True)
    assert out.shape == (48, 64, 3)
    assert np.all(out == 55)


def test_letterbox_without_scale_up_keeps_small_image():
    img = _image(10, 10, 200)
    out = letterbox(img, (64, 64), auto=False, scale_up=False)
    assert out.shape == (64, 64, 3)
    ys, xs = np.nonzero(out[:, :, 0] == 200)
    assert ys.max() - ys.min() + 1 == 10
    assert xs.max() - xs.min() + 1 == 10


def test_letterbox_custom_color_and_grayscale():
    img = np.full((20, 40), 9, dtype=np.uint8)
    out = letterbox(img, (40, 40), color=(3, 3, 3), auto=False)
    assert out.shape == (40, 40)
    assert out[0, 0] == 3
    assert out[20, 20] == 9


def test_letterbox_rejects_empty_image():
    with pytest.raises(ValueError):
        letterbox(np.zeros((0, 5, 3), dtype=np.uint8), (32, 32))


def test_to_chw_blob_layout_and_scale():
    img = np.arange(2 * 3 * 3, dtype=np.uint8).reshape(2, 3, 3) * 10
    blob = to_chw_blob(img)
    assert blob.shape == (3, 2, 3)
    assert blob.dtype == np.float32
    for c in range(3):
        assert np.allclose(blob[c], img[:, :, c] / 255.0)


def test_to_chw_blob_grayscale_adds_channel():
    img = np.full((4, 5), 255, dtype=np.uint8)
    blob = to_chw_blob(img)
    assert blob.shape == (1, 4, 5)
    assert np.allclose(blob, 1.0)