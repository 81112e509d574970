"""
Sample buffers the convolution and rescale engines operate on.

A buffer wraps a floating-point numpy array and records which axes are
rows (height), columns (width) and, optionally, channels. The engines only
ever touch ``samples`` through those axes, so one algorithm covers
single-channel grids, RGB grids and higher-rank arrays alike.

Adapters:
- LumaBuffer: (H, W)
- RgbBuffer: (H, W, 3)
- ArrayBuffer: any rank >= 2 with explicit axes
"""

import copy
from typing import Iterator, Optional, Union

import numpy as np


class UnsupportedFormatError(Exception):
    """Raised when samples are not in an encoding the core can process."""
    pass


class Buffer:
    """
    Base adapter: a float array plus its axis roles.

    Args:
        samples: Floating-point array, mutated in place by the engines
        row_axis: Axis along the height
        column_axis: Axis along the width
        channel_axis: Axis holding channels, or None for a scalar field
    """

    def __init__(
        self,
        samples: np.ndarray,
        row_axis: int,
        column_axis: int,
        channel_axis: Optional[int] = None,
    ):
        if not isinstance(samples, np.ndarray):
            raise TypeError(f"Expected numpy array, got {type(samples).__name__}")
        if not np.issubdtype(samples.dtype, np.floating):
            raise UnsupportedFormatError(
                f"Samples must be floating point, got {samples.dtype}"
            )
        if samples.ndim < 2:
            raise ValueError(f"Buffer needs at least 2 dimensions, got {samples.ndim}")
        if not samples.flags.writeable:
            raise ValueError("Buffer samples must be writeable")

        ndim = samples.ndim
        axes = [row_axis, column_axis]
        if channel_axis is not None:
            axes.append(channel_axis)

        normalized = []
        for axis in axes:
            if not -ndim <= axis < ndim:
                raise ValueError(f"Axis {axis} out of range for {ndim}-D samples")
            normalized.append(axis % ndim)

        if len(set(normalized)) != len(normalized):
            raise ValueError(f"Axes must be distinct, got {axes}")

        self._samples = samples
        self.row_axis = normalized[0]
        self.column_axis = normalized[1]
        self.channel_axis = normalized[2] if channel_axis is not None else None

    # ------------------------------------------------------------------
    # Extents
    # ------------------------------------------------------------------

    @property
    def samples(self) -> np.ndarray:
        """Live sample array (not a copy)."""
        return self._samples

    @property
    def shape(self) -> tuple[int, ...]:
        return self._samples.shape

    @property
    def width(self) -> int:
        return self._samples.shape[self.column_axis]

    @property
    def height(self) -> int:
        return self._samples.shape[self.row_axis]

    @property
    def channels(self) -> int:
        if self.channel_axis is None:
            return 1
        return self._samples.shape[self.channel_axis]

    @property
    def size(self) -> int:
        return self._samples.size

    # ------------------------------------------------------------------
    # Sample access
    # ------------------------------------------------------------------

    def _index(self, x: int, y: int) -> tuple:
        idx = [slice(None)] * self._samples.ndim
        idx[self.column_axis] = x
        idx[self.row_axis] = y
        return tuple(idx)

    def get(self, x: int, y: int) -> Union[float, tuple[float, ...], np.ndarray]:
        """
        Sample(s) at column ``x``, row ``y``.

        Returns a float for scalar fields, a tuple for one channel axis and
        an array copy when more axes remain.
        """
        value = self._samples[self._index(x, y)]
        if np.ndim(value) == 0:
            return float(value)
        if value.ndim == 1:
            return tuple(float(v) for v in value)
        return value.copy()

    def set(self, x: int, y: int, value) -> None:
        self._samples[self._index(x, y)] = value

    def channel(self, c: int) -> np.ndarray:
        """View of one channel."""
        if self.channel_axis is None:
            if c != 0:
                raise IndexError(f"Channel {c} out of range for single-channel buffer")
            return self._samples

        if not 0 <= c < self.channels:
            raise IndexError(f"Channel {c} out of range for {self.channels} channels")

        idx = [slice(None)] * self._samples.ndim
        idx[self.channel_axis] = c
        return self._samples[tuple(idx)]

    def coordinates(self) -> Iterator[tuple[int, int]]:
        """Yield (x, y) column by column."""
        for x in range(self.width):
            for y in range(self.height):
                yield x, y

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def copy(self) -> "Buffer":
        clone = copy.copy(self)
        clone._samples = self._samples.copy()
        return clone

    @staticmethod
    def zeros(
        width: int,
        height: int,
        channels: int = 1,
        dtype=np.float32,
    ) -> "Buffer":
        """New zero-filled buffer; adapter chosen by channel count."""
        if width < 0 or height < 0 or channels < 1:
            raise ValueError(
                f"Invalid buffer extents: {width}x{height}x{channels}"
            )

        if channels == 1:
            return LumaBuffer(np.zeros((height, width), dtype=dtype))
        if channels == 3:
            return RgbBuffer(np.zeros((height, width, 3), dtype=dtype))
        return ArrayBuffer(
            np.zeros((height, width, channels), dtype=dtype),
            row_axis=0,
            column_axis=1,
            channel_axis=2,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(width={self.width}, height={self.height}, "
            f"channels={self.channels}, dtype={self._samples.dtype})"
        )


class LumaBuffer(Buffer):
    """Single-channel (H, W) grid."""

    def __init__(self, samples: np.ndarray):
        if getattr(samples, "ndim", None) != 2:
            raise ValueError(f"LumaBuffer expects (H, W), got shape {np.shape(samples)}")
        super().__init__(samples, row_axis=0, column_axis=1)


class RgbBuffer(Buffer):
    """Three-channel (H, W, 3) grid."""

    def __init__(self, samples: np.ndarray):
        shape = np.shape(samples)
        if len(shape) != 3 or shape[2] != 3:
            raise ValueError(f"RgbBuffer expects (H, W, 3), got shape {shape}")
        super().__init__(samples, row_axis=0, column_axis=1, channel_axis=2)


class ArrayBuffer(Buffer):
    """
    Array of any rank >= 2.

    Axes other than the row, column and channel axes are batch axes: each
    pass runs independently for every fixed index along them.
    """

    def __init__(
        self,
        samples: np.ndarray,
        row_axis: int = 0,
        column_axis: int = 1,
        channel_axis: Optional[int] = None,
    ):
        super().__init__(samples, row_axis, column_axis, channel_axis)


def as_buffer(obj) -> Buffer:
    """
    Wrap ``obj`` in the matching adapter.

    - Buffer: returned unchanged
    - 2-D float array: LumaBuffer
    - 3-D float array: RgbBuffer when the last axis is 3, otherwise
      ArrayBuffer with channels on the last axis
    - higher rank: ArrayBuffer over axes (0, 1), no channel axis

    Raises:
        UnsupportedFormatError: Non-floating samples
        TypeError: Anything that is not an array
    """
    if isinstance(obj, Buffer):
        return obj

    if not isinstance(obj, np.ndarray):
        raise TypeError(
            f"Cannot use {type(obj).__name__} as a sample buffer; "
            "convert images with sepconv.formats first"
        )

    if not np.issubdtype(obj.dtype, np.floating):
        raise UnsupportedFormatError(
            f"Samples must be floating point, got {obj.dtype}; "
            "use sepconv.formats.to_float for integer encodings"
        )

    if obj.ndim == 2:
        return LumaBuffer(obj)
    if obj.ndim == 3:
        if obj.shape[2] == 3:
            return RgbBuffer(obj)
        return ArrayBuffer(obj, row_axis=0, column_axis=1, channel_axis=2)
    return ArrayBuffer(obj)
