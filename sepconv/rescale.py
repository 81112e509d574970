"""
Min/max rescaling into a target interval.

Observed extrema are anchored to [0, 1]: the minimum used is never above
0.0 and the maximum never below 1.0, so a buffer that already lies inside
[0, 1] is treated as normalized and left unchanged by a rescale to
RescaleRange.MAX.

Only finite samples count towards the extrema. NaN and infinite samples
are carried through the affine map unchanged in kind.
"""

import logging
import math
from dataclasses import dataclass
from typing import ClassVar, Union

import numpy as np

from .buffers import Buffer, as_buffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RescaleRange:
    """Target interval. Use ``RescaleRange.MAX`` for [0, 1]."""

    min: float
    max: float

    MAX: ClassVar["RescaleRange"]

    @classmethod
    def custom(cls, min: float, max: float) -> "RescaleRange":
        if not (math.isfinite(min) and math.isfinite(max)):
            raise ValueError(f"Rescale bounds must be finite, got ({min}, {max})")
        return cls(float(min), float(max))

    @property
    def span(self) -> float:
        return self.max - self.min


RescaleRange.MAX = RescaleRange(0.0, 1.0)


def _anchored_extrema(samples: np.ndarray) -> tuple[float, float]:
    finite = samples[np.isfinite(samples)]
    if finite.size == 0:
        return 0.0, 1.0
    return min(float(finite.min()), 0.0), max(float(finite.max()), 1.0)


def min_max(buffer: Union[Buffer, np.ndarray]) -> tuple[float, float]:
    """
    Anchored (min, max) over every sample of every channel.

    Returns:
        (min(observed, 0.0), max(observed, 1.0))
    """
    buf = as_buffer(buffer)
    return _anchored_extrema(buf.samples)


def channel_min_max(buffer: Union[Buffer, np.ndarray]) -> list[tuple[float, float]]:
    """Anchored (min, max) per channel, in channel order."""
    buf = as_buffer(buffer)
    return [_anchored_extrema(buf.channel(c)) for c in range(buf.channels)]


def rescale_value(
    min: float,
    max: float,
    value,
    range: RescaleRange = RescaleRange.MAX,
):
    """
    Affine map of ``value`` from [min, max] onto ``range``.

    Works on scalars and arrays. When ``max == min`` there is no source
    interval to map from; every value maps to ``range.min`` and a warning
    is logged.
    """
    span = max - min

    if span == 0:
        logger.warning(
            "Degenerate rescale interval [%s, %s]; mapping to %s", min, max, range.min
        )
        if isinstance(value, np.ndarray):
            return np.full_like(value, range.min)
        return range.min

    return range.min + (value - min) * range.span / span


def rescale(
    buffer: Union[Buffer, np.ndarray],
    range: RescaleRange = RescaleRange.MAX,
) -> Union[Buffer, np.ndarray]:
    """Rescale all channels with one anchored (min, max) pair, in place."""
    buf = as_buffer(buffer)
    if buf.size == 0:
        return buffer

    lo, hi = min_max(buf)
    logger.debug("Rescaling %r from [%g, %g] to [%g, %g]", buf, lo, hi, range.min, range.max)

    samples = buf.samples
    samples[...] = rescale_value(lo, hi, samples, range)
    return buffer


def channel_wise_rescale(
    buffer: Union[Buffer, np.ndarray],
    range: RescaleRange = RescaleRange.MAX,
) -> Union[Buffer, np.ndarray]:
    """Rescale each channel with its own anchored (min, max) pair, in place."""
    buf = as_buffer(buffer)
    if buf.size == 0:
        return buffer

    for c, (lo, hi) in enumerate(channel_min_max(buf)):
        logger.debug("Channel %d: [%g, %g] -> [%g, %g]", c, lo, hi, range.min, range.max)
        view = buf.channel(c)
        view[...] = rescale_value(lo, hi, view, range)

    return buffer


def rescale_between(
    buffer: Union[Buffer, np.ndarray],
    source: RescaleRange,
    target: RescaleRange,
) -> Union[Buffer, np.ndarray]:
    """
    Map the known interval ``source`` onto ``target``, in place.

    No extrema are measured and nothing is anchored, which makes this the
    inverse of a previous ``rescale`` when ``source`` is that call's target
    and ``target`` is the (min, max) it measured.
    """
    buf = as_buffer(buffer)
    if buf.size == 0:
        return buffer

    samples = buf.samples
    samples[...] = rescale_value(source.min, source.max, samples, target)
    return buffer
