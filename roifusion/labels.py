"""Class-name files and deterministic per-class colours."""

from __future__ import annotations

from functools import lru_cache
from os import PathLike
from typing import Iterator, Sequence, Tuple, Union

Color = Tuple[int, int, int]

_MASK32 = 0xFFFFFFFF
_N = 624
_M = 397
_MATRIX_A = 0x9908B0DF
_UPPER = 0x80000000
_LOWER = 0x7FFFFFFF


class MersenneTwister:
    """The 32-bit Mersenne Twister (mt19937) with its standard seeding."""

    def __init__(self, seed: int = 5489) -> None:
        state = [seed & _MASK32]
        for i in range(1, _N):
            prev = state[-1]
            state.append((1812433253 * (prev ^ (prev >> 30)) + i) & _MASK32)
        self._state = state
        self._index = _N

    def _twist(self) -> None:
        state = self._state
        for i in range(_N):
            y = (state[i] & _UPPER) | (state[(i + 1) % _N] & _LOWER)
            value = state[(i + _M) % _N] ^ (y >> 1)
            if y & 1:
                value ^= _MATRIX_A
            state[i] = value
        self._index = 0

    def next_uint32(self) -> int:
        """Return the next 32-bit output."""
        if self._index >= _N:
            self._twist()
        y = self._state[self._index]
        self._index += 1
        y ^= y >> 11
        y ^= (y << 7) & 0x9D2C5680
        y ^= (y << 15) & 0xEFC60000
        y ^= y >> 18
        return y & _MASK32

    def __iter__(self) -> Iterator[int]:
        return self

    def __next__(self) -> int:
        return self.next_uint32()

    def uniform_int(self, low: int, high: int) -> int:
        """Return an integer uniformly drawn from ``[low, high]``.

        Uses multiply-and-shift downscaling with rejection, so the draw is
        unbiased. The span may be at most 2**32 values.
        """
        if low > high:
            raise ValueError("low must not exceed high")
        span = high - low
        if span > _MASK32:
            raise ValueError("range wider than 32 bits is not supported")
        if span == _MASK32:
            return low + self.next_uint32()
        extent = span + 1
        product = self.next_uint32() * extent
        low_bits = product & _MASK32
        if low_bits < extent:
            threshold = (-extent & _MASK32) % extent
            while low_bits < threshold:
                product = self.next_uint32() * extent
                low_bits = product & _MASK32
        return low + (product >> 32)


def load_class_names(path: Union[str, PathLike]) -> list[str]:
    """Read one class name per line, dropping a trailing carriage return.

    Raises ``OSError`` if the file cannot be read.
    """
    with open(path, encoding="utf-8", newline="") as handle:
        text = handle.read()
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


@lru_cache(maxsize=None)
def _colors_for(names: Tuple[str, ...], seed: int) -> Tuple[Color, ...]:
    rng = MersenneTwister(seed)
    return tuple(
        (rng.uniform_int(0, 255), rng.uniform_int(0, 255), rng.uniform_int(0, 255))
        for _ in names
    )


def generate_colors(class_names: Sequence[str], seed: int = 42) -> list[Color]:
    """Return one reproducible BGR colour per class name."""
    return list(_colors_for(tuple(class_names), seed))