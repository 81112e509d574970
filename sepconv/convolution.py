"""
Separable convolution.

The kernel runs along the width first (horizontal pass), then along the
height (vertical pass), over every channel and every batch index
independently. Channels are never mixed.

Two sweep modes:
- IN_PLACE (default): each pass writes straight into the buffer while it
  sweeps, so taps behind the current coordinate read already-filtered
  samples. This reproduces the reference output.
- DOUBLE_BUFFERED: each pass reads a snapshot taken before it starts,
  which is textbook separable convolution. Output differs from IN_PLACE
  for any kernel with taps behind the center.

In both modes the vertical pass sees the fully settled horizontal result.
"""

import logging
from enum import Enum
from typing import Iterable, Union

import numpy as np

from .boundary import BoundaryError, in_bounds, index_table, out_of_bounds_count
from .buffers import Buffer, UnsupportedFormatError, as_buffer
from .kernel import Kernel

logger = logging.getLogger(__name__)


class ConvolutionMode(str, Enum):
    IN_PLACE = "in_place"
    DOUBLE_BUFFERED = "double_buffered"


def _check_stride(stride) -> int:
    if isinstance(stride, bool) or not isinstance(stride, (int, np.integer)):
        raise ValueError(f"Stride must be an integer, got {stride!r}")
    if stride < 1:
        raise ValueError(f"Stride must be >= 1, got {stride}")
    return int(stride)


def _as_kernel(kernel: Union[Kernel, Iterable[float]]) -> Kernel:
    if isinstance(kernel, Kernel):
        return kernel
    return Kernel(kernel)


def _resolve_table(
    kernel: Kernel,
    stride: int,
    extent: int,
    axis_name: str,
    strict: bool,
) -> np.ndarray:
    """
    Source index table for one axis, with the out-of-range policy applied.

    Out-of-range entries are pinned to the nearest edge and logged, or
    raise BoundaryError when ``strict``.
    """
    table = index_table(kernel.size, stride, extent)

    if in_bounds(table, extent):
        return table

    count = out_of_bounds_count(table, extent)
    message = (
        f"{count} tap(s) of a {kernel.size}-tap kernel at stride {stride} "
        f"fall outside the {axis_name} extent {extent}"
    )

    if strict:
        raise BoundaryError(message)

    logger.warning("%s; pinning them to the nearest edge", message)
    return np.clip(table, 0, extent - 1)


def _run_pass(
    samples: np.ndarray,
    kernel: Kernel,
    table: np.ndarray,
    axis: int,
    mode: ConvolutionMode,
) -> None:
    """One pass along ``axis``; writes into ``samples``."""
    lines = np.moveaxis(samples, axis, 0)
    weights = [float(w) for w in kernel.values]

    if mode is ConvolutionMode.DOUBLE_BUFFERED:
        source = lines.copy()
        acc = np.zeros_like(lines)
        for k, w in enumerate(weights):
            acc += w * source[table[:, k]]
        lines[...] = acc
        return

    # In place: coordinate i is written before i + 1 is computed.
    for i in range(lines.shape[0]):
        acc = np.zeros_like(lines[i])
        for k, w in enumerate(weights):
            acc += w * lines[table[i, k]]
        lines[i] = acc


def convolve_axis(
    samples: np.ndarray,
    kernel: Union[Kernel, Iterable[float]],
    stride: int = 1,
    axis: int = 0,
    mode: ConvolutionMode = ConvolutionMode.IN_PLACE,
    strict: bool = False,
) -> np.ndarray:
    """
    Filter a float array along a single axis, in place.

    Args:
        samples: Floating-point array of any rank
        kernel: Kernel or weight sequence
        stride: Tap spacing in samples
        axis: Axis to filter along
        mode: Sweep mode
        strict: Raise BoundaryError instead of pinning out-of-range taps

    Returns:
        ``samples``
    """
    kernel = _as_kernel(kernel)
    stride = _check_stride(stride)
    mode = ConvolutionMode(mode)

    if not np.issubdtype(samples.dtype, np.floating):
        raise UnsupportedFormatError(f"Samples must be floating point, got {samples.dtype}")

    if samples.size == 0:
        return samples

    extent = samples.shape[axis]
    table = _resolve_table(kernel, stride, extent, f"axis {axis}", strict)
    _run_pass(samples, kernel, table, axis, mode)
    return samples


def convolve(
    buffer: Union[Buffer, np.ndarray],
    kernel: Union[Kernel, Iterable[float]],
    stride: int = 1,
    mode: ConvolutionMode = ConvolutionMode.IN_PLACE,
    strict: bool = False,
) -> Union[Buffer, np.ndarray]:
    """
    Apply ``kernel`` along the width, then the height, in place.

    Args:
        buffer: Buffer adapter or float ndarray (wrapped via ``as_buffer``)
        kernel: Kernel or weight sequence, shared by both passes
        stride: Tap spacing in samples (dilation), >= 1
        mode: IN_PLACE (reference) or DOUBLE_BUFFERED
        strict: Raise BoundaryError when taps reach outside the buffer

    Returns:
        The object passed as ``buffer``, mutated.

    Raises:
        ValueError: Bad stride or kernel
        BoundaryError: Only with ``strict``; the buffer is left untouched
        UnsupportedFormatError: Non-floating samples
    """
    buf = as_buffer(buffer)
    kernel = _as_kernel(kernel)
    stride = _check_stride(stride)
    mode = ConvolutionMode(mode)

    if buf.size == 0:
        logger.debug("Empty buffer %r, nothing to convolve", buf)
        return buffer

    # Both tables are resolved before the first write.
    horizontal = _resolve_table(kernel, stride, buf.width, "width", strict)
    vertical = _resolve_table(kernel, stride, buf.height, "height", strict)

    logger.debug(
        "Convolving %r with %d taps, stride=%d, mode=%s",
        buf, kernel.size, stride, mode.value,
    )

    _run_pass(buf.samples, kernel, horizontal, buf.column_axis, mode)
    _run_pass(buf.samples, kernel, vertical, buf.row_axis, mode)

    return buffer
