"""
Filter configuration and a small orchestrator around the engines.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

import numpy as np
from PIL import Image

from .buffers import Buffer, as_buffer
from .convolution import ConvolutionMode, convolve
from .formats import buffer_to_image, from_float, image_to_buffer, output_mode, to_float
from .kernel import Kernel
from .rescale import RescaleRange, channel_min_max, channel_wise_rescale, min_max, rescale

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FilterConfig:
    """
    Parameters for one convolve (+ optional rescale) run.

    Everything is passed explicitly; there is no environment lookup.
    """

    kernel: Kernel = field(default_factory=Kernel.identity)
    stride: int = 1
    mode: ConvolutionMode = ConvolutionMode.IN_PLACE
    strict: bool = False  # raise instead of pinning out-of-range taps

    rescale: bool = False
    rescale_range: RescaleRange = RescaleRange.MAX
    channel_wise: bool = False

    def validate(self) -> None:
        if not isinstance(self.kernel, Kernel):
            raise ValueError(f"kernel must be a Kernel, got {type(self.kernel).__name__}")
        if isinstance(self.stride, bool) or not isinstance(self.stride, int):
            raise ValueError(f"stride must be an int, got {self.stride!r}")
        if self.stride < 1:
            raise ValueError("stride must be >= 1")
        try:
            ConvolutionMode(self.mode)
        except ValueError:
            raise ValueError(f"Unknown convolution mode: {self.mode!r}") from None
        if not isinstance(self.rescale_range, RescaleRange):
            raise ValueError("rescale_range must be a RescaleRange")


class FilterProcessor:
    """
    Applies one FilterConfig to buffers, arrays and images.

    Workflow:
        1. FilterProcessor(config) - validates the config
        2. process() / process_array() / process_image()
        3. last_extrema / last_channel_extrema - anchored (min, max) the
           last rescale measured, or None when it did not rescale
    """

    def __init__(self, config: Optional[FilterConfig] = None):
        self.config = config if config is not None else FilterConfig()
        self.config.validate()

        self.last_extrema: Optional[tuple[float, float]] = None
        self.last_channel_extrema: Optional[list[tuple[float, float]]] = None

    def reconfigure(self, **changes) -> FilterConfig:
        """Replace config fields; returns the new config."""
        config = dataclasses.replace(self.config, **changes)
        config.validate()
        self.config = config
        return config

    def process(self, buffer: Union[Buffer, np.ndarray]) -> Union[Buffer, np.ndarray]:
        """
        Convolve, then rescale if configured, in place.

        Args:
            buffer: Buffer adapter or float ndarray

        Returns:
            ``buffer``
        """
        cfg = self.config
        buf = as_buffer(buffer)

        convolve(buf, cfg.kernel, stride=cfg.stride, mode=cfg.mode, strict=cfg.strict)

        self.last_extrema = None
        self.last_channel_extrema = None

        if cfg.rescale:
            if cfg.channel_wise:
                self.last_channel_extrema = channel_min_max(buf)
                channel_wise_rescale(buf, cfg.rescale_range)
            else:
                self.last_extrema = min_max(buf)
                rescale(buf, cfg.rescale_range)

        logger.debug(
            "Processed %r (rescale=%s, channel_wise=%s)", buf, cfg.rescale, cfg.channel_wise
        )
        return buffer

    def process_array(self, array: np.ndarray) -> np.ndarray:
        """Process an array of any supported encoding into a new array of the same dtype."""
        array = np.asarray(array)
        samples = to_float(array)
        self.process(samples)
        return from_float(samples, array.dtype)

    def process_image(self, image: Image.Image) -> Image.Image:
        """
        Process a Pillow image.

        Returns:
            New image in ``formats.output_mode(image.mode)``
        """
        target = output_mode(image.mode)
        buf = image_to_buffer(image)
        self.process(buf)
        return buffer_to_image(buf, target)
