"""
Reflective boundary index mapping.

For a tap that lands outside the buffer, the source coordinate is folded
back inside: negative targets reflect around zero, targets beyond
``extent - half`` fold back by the overshoot.

The far-edge fold is taken from ``extent``, not ``extent - 1``, and is not
clamped. For kernels whose reach (``half * stride``) approaches the extent
the result can leave ``[0, extent - 1]``; ``index_table`` and ``in_bounds``
let callers detect that before any sample is read.
"""

import numpy as np


class BoundaryError(ValueError):
    """Raised when a kernel/stride pair reaches outside the buffer."""
    pass


def map_index(
    stride: int,
    kernel_size: int,
    tap_offset: int,
    coordinate: int,
    extent: int,
) -> int:
    """
    Source coordinate for one tap.

    Args:
        stride: Spacing between taps in samples (>= 1)
        kernel_size: Number of taps in the kernel
        tap_offset: Tap position relative to the kernel center
        coordinate: Coordinate being filtered (0-based)
        extent: Width or height along the filtered axis

    Returns:
        Coordinate to read. Not clamped; see module docstring.

    Example:
        >>> map_index(1, 3, -1, 0, 10)
        1
        >>> map_index(1, 3, 1, 9, 10)
        9
    """
    if stride < 1:
        raise ValueError(f"Stride must be >= 1, got {stride}")

    half = kernel_size // 2
    index = coordinate + tap_offset * stride

    if index < 0:
        index = -index
    elif index > extent - half:
        overshoot = index - extent + half
        index = extent - overshoot

    return index


def index_table(kernel_size: int, stride: int, extent: int) -> np.ndarray:
    """
    Mapped source coordinates for a whole axis.

    Returns:
        int64 array of shape (extent, kernel_size); row ``i`` holds the
        source coordinate of every tap when filtering coordinate ``i``.
    """
    half = kernel_size // 2
    table = np.empty((extent, kernel_size), dtype=np.int64)

    for coordinate in range(extent):
        for k in range(kernel_size):
            table[coordinate, k] = map_index(
                stride, kernel_size, k - half, coordinate, extent
            )

    return table


def in_bounds(table: np.ndarray, extent: int) -> bool:
    """True if every entry of ``table`` is a valid coordinate."""
    if table.size == 0:
        return True
    return bool(table.min() >= 0 and table.max() <= extent - 1)


def out_of_bounds_count(table: np.ndarray, extent: int) -> int:
    return int(np.count_nonzero((table < 0) | (table > extent - 1)))
