"""Aspect-preserving resize with padding, and image-to-tensor conversion."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

Size = Tuple[int, int]
"""An image size given as ``(width, height)``."""

DEFAULT_PAD_COLOR = (114, 114, 114)


def _round(value: float) -> int:
    """Round half away from zero, as C's ``round`` does."""
    magnitude = math.floor(abs(value) + 0.5)
    return int(-magnitude if value < 0 else magnitude)


def _trunc_div(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def _trunc_mod(a: int, b: int) -> int:
    """Remainder whose sign follows the dividend."""
    return a - b * _trunc_div(a, b)


def resize_bilinear(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize an ``H x W`` or ``H x W x C`` image with bilinear interpolation.

    Pixel centres are aligned the usual way (half-pixel offset) and samples
    outside the source are clamped to its border. Integer images are rounded
    and saturated back to their own type.
    """
    src = np.asarray(image)
    if src.ndim not in (2, 3):
        raise ValueError("image must have two or three dimensions")
    if width <= 0 or height <= 0:
        raise ValueError("target size must be positive")
    in_h, in_w = src.shape[:2]
    if in_h == 0 or in_w == 0:
        raise ValueError("image must not be empty")
    if (in_w, in_h) == (width, height):
        return src.copy()

    def axis(out_len: int, in_len: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        coords = (np.arange(out_len) + 0.5) * (in_len / out_len) - 0.5
        coords = np.clip(coords, 0.0, in_len - 1)
        lower = np.floor(coords).astype(np.intp)
        upper = np.minimum(lower + 1, in_len - 1)
        return lower, upper, coords - lower

    x0, x1, fx = axis(width, in_w)
    y0, y1, fy = axis(height, in_h)
    extra = (1,) * (src.ndim - 2)
    wx = fx.reshape((1, width) + extra)
    wy = fy.reshape((height, 1) + extra)

    data = src.astype(np.float64)
    top_rows = data[y0]
    bottom_rows = data[y1]
    top = top_rows[:, x0] * (1.0 - wx) + top_rows[:, x1] * wx
    bottom = bottom_rows[:, x0] * (1.0 - wx) + bottom_rows[:, x1] * wx
    result = top * (1.0 - wy) + bottom * wy

    if np.issubdtype(src.dtype, np.integer):
        info = np.iinfo(src.dtype)
        return np.clip(np.rint(result), info.min, info.max).astype(src.dtype)
    return result.astype(src.dtype)


def _pad(
    image: np.ndarray, top: int, bottom: int, left: int, right: int, color: Sequence[float]
) -> np.ndarray:
    if min(top, bottom, left, right) < 0:
        raise ValueError("image does not fit into the requested shape")
    height, width = image.shape[:2]
    shape = (height + top + bottom, width + left + right) + image.shape[2:]
    if image.ndim == 3:
        channels = image.shape[2]
        fill = [color[c] if c < len(color) else 0 for c in range(channels)]
    else:
        fill = color[0] if len(color) else 0
    out = np.empty(shape, dtype=image.dtype)
    out[...] = fill
    out[top : top + height, left : left + width] = image
    return out


def letterbox(
    image: np.ndarray,
    new_shape: Size,
    color: Sequence[float] = DEFAULT_PAD_COLOR,
    auto: bool = True,
    scale_fill: bool = False,
    scale_up: bool = True,
    stride: int = 32,
) -> np.ndarray:
    """Resize ``image`` to fit ``new_shape`` (width, height), keeping its aspect ratio.

    With ``auto`` the padding is reduced modulo ``stride``, so the result may
    be smaller than ``new_shape``. With ``scale_fill`` (and not ``auto``) the
    image is stretched to exactly ``new_shape``. Otherwise the image is padded
    evenly on both sides to exactly ``new_shape``.
    """
    src = np.asarray(image)
    if src.ndim not in (2, 3) or src.shape[0] == 0 or src.shape[1] == 0:
        raise ValueError("image must be a non-empty two- or three-dimensional array")
    new_w, new_h = new_shape
    rows, cols = src.shape[:2]

    ratio = min(np.float32(new_h) / np.float32(rows), np.float32(new_w) / np.float32(cols))
    if not scale_up:
        ratio = min(ratio, np.float32(1.0))

    unpad_w = _round(float(np.float32(cols) * ratio))
    unpad_h = _round(float(np.float32(rows) * ratio))
    dw = new_w - unpad_w
    dh = new_h - unpad_h

    if auto:
        dw = _trunc_div(_trunc_mod(dw, stride), 2)
        dh = _trunc_div(_trunc_mod(dh, stride), 2)
    elif scale_fill:
        unpad_w, unpad_h = new_w, new_h
        dw = dh = 0

    resized = src if (cols, rows) == (unpad_w, unpad_h) else resize_bilinear(src, unpad_w, unpad_h)

    pad_left = _trunc_div(dw, 2)
    pad_top = _trunc_div(dh, 2)
    return _pad(resized, pad_top, dh - pad_top, pad_left, dw - pad_left, color)


def to_chw_blob(image: np.ndarray) -> np.ndarray:
    """Scale an image to ``[0, 1]`` floats and lay it out channel-first."""
    src = np.asarray(image)
    if src.ndim == 2:
        src = src[:, :, np.newaxis]
    if src.ndim != 3:
        raise ValueError("image must have two or three dimensions")
    scaled = src.astype(np.float32) * np.float32(1.0 / 255.0)
    return np.ascontiguousarray(np.transpose(scaled, (2, 0, 1)))