"""
Separable filtering and min/max rescaling for sample grids.

This package contains:
- Kernel value object and factories (box, Gaussian, Sobel)
- Reflective boundary index mapping
- Two-pass separable convolution over luma, RGB and N-D buffers
- Anchored min/max rescaling, global or per channel
- Conversions from 8/16-bit and Pillow encodings to float buffers
"""

__version__ = "0.1.0"

from .boundary import BoundaryError, index_table, map_index
from .buffers import ArrayBuffer, Buffer, LumaBuffer, RgbBuffer, UnsupportedFormatError, as_buffer
from .convolution import ConvolutionMode, convolve, convolve_axis
from .kernel import Kernel
from .processor import FilterConfig, FilterProcessor
from .rescale import (
    RescaleRange,
    channel_min_max,
    channel_wise_rescale,
    min_max,
    rescale,
    rescale_between,
    rescale_value,
)

__all__ = [
    "ArrayBuffer",
    "BoundaryError",
    "Buffer",
    "ConvolutionMode",
    "FilterConfig",
    "FilterProcessor",
    "Kernel",
    "LumaBuffer",
    "RescaleRange",
    "RgbBuffer",
    "UnsupportedFormatError",
    "as_buffer",
    "channel_min_max",
    "channel_wise_rescale",
    "convolve",
    "convolve_axis",
    "index_table",
    "map_index",
    "min_max",
    "rescale",
    "rescale_between",
    "rescale_value",
]
