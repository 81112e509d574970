"""
1-D kernel shared by both passes of a separable convolution.

A kernel is a fixed sequence of real weights. Tap ``k`` sits at offset
``k - size // 2`` from the sample being filtered, for odd and even sizes
alike.
"""

import math
from typing import Iterable, Iterator, Optional

import cv2
import numpy as np


class Kernel:
    """
    Immutable tap set.

    Args:
        values: Real weights, at least one, all finite.

    Example:
        >>> k = Kernel([0.25, 0.5, 0.25])
        >>> k.half, list(k.offsets())
        (1, [-1, 0, 1])
    """

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[float]):
        arr = np.array(list(values), dtype=np.float64).ravel()

        if arr.size == 0:
            raise ValueError("Kernel needs at least one weight")
        if not np.all(np.isfinite(arr)):
            raise ValueError(f"Kernel weights must be finite: {arr.tolist()}")

        arr.flags.writeable = False
        self._values = arr

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def identity(cls) -> "Kernel":
        """Single unit tap; convolving with it changes nothing."""
        return cls([1.0])

    @classmethod
    def box(cls, size: int) -> "Kernel":
        """Equal weights summing to 1."""
        if size < 1:
            raise ValueError(f"Box size must be >= 1, got {size}")
        return cls(np.full(size, 1.0 / size))

    @classmethod
    def gaussian(cls, sigma: float, size: Optional[int] = None) -> "Kernel":
        """
        Normalized Gaussian taps from OpenCV.

        Args:
            sigma: Standard deviation in samples, > 0
            size: Odd tap count; derived from sigma when omitted

        Returns:
            Kernel whose weights sum to 1
        """
        if sigma <= 0 or not math.isfinite(sigma):
            raise ValueError(f"Gaussian sigma must be > 0, got {sigma}")

        if size is None:
            size = int(2 * round(2 * sigma) + 1)
            size = max(3, size)
            if size % 2 == 0:
                size += 1
        elif size < 1 or size % 2 == 0:
            raise ValueError(f"Gaussian size must be odd and >= 1, got {size}")

        taps = cv2.getGaussianKernel(size, sigma, ktype=cv2.CV_64F)
        return cls(taps.ravel())

    @classmethod
    def sobel(cls, order: int = 1, size: int = 3) -> "Kernel":
        """
        Sobel derivative taps (edge kernel).

        The same taps run along both axes, so the result responds to the
        mixed derivative d/dx d/dy of the given order.
        """
        if order < 1:
            raise ValueError(f"Derivative order must be >= 1, got {order}")
        if size not in (3, 5, 7) or order >= size:
            raise ValueError(f"Unsupported Sobel size {size} for order {order}")

        kx, _ = cv2.getDerivKernels(order, 0, size, ktype=cv2.CV_64F)
        return cls(kx.ravel())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def values(self) -> np.ndarray:
        """Read-only weight array."""
        return self._values

    @property
    def size(self) -> int:
        return int(self._values.size)

    @property
    def half(self) -> int:
        """Center padding, ``size // 2``."""
        return self.size // 2

    def offsets(self) -> range:
        """Tap offsets relative to the center, in tap order."""
        return range(-self.half, self.size - self.half)

    def taps(self) -> Iterator[tuple[int, float]]:
        """Yield ``(offset, weight)`` pairs."""
        return zip(self.offsets(), (float(v) for v in self._values))

    def sum(self) -> float:
        return float(self._values.sum())

    def normalized(self) -> "Kernel":
        """Copy whose weights sum to 1."""
        total = self.sum()
        if total == 0.0:
            raise ValueError("Cannot normalize a kernel whose weights sum to 0")
        return Kernel(self._values / total)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[float]:
        return (float(v) for v in self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Kernel):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    def __hash__(self) -> int:
        return hash(tuple(self._values.tolist()))

    def __repr__(self) -> str:
        weights = ", ".join(f"{v:.6g}" for v in self._values)
        return f"Kernel([{weights}])"
