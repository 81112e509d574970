"""
Conversions between stored pixel encodings and float sample buffers.

The engines only operate on real-valued samples. Quantized sources are
scaled into [0, 1] on the way in and clamped + rounded on the way out;
nothing is clamped in between, so intermediate values outside [0, 1]
survive until the final conversion.

Pillow images:
    L, LA, I;16 (any byte order)  -> LumaBuffer
    F                             -> LumaBuffer (no scaling)
    RGB, RGBA                     -> RgbBuffer (alpha dropped)

Filtered luma images come back as 16-bit (I;16), float luma stays F and
RGB comes back as 8-bit RGB, since Pillow has no float RGB mode.
"""

import logging
from typing import Iterable, Union

import numpy as np
from PIL import Image

from .buffers import Buffer, LumaBuffer, RgbBuffer, UnsupportedFormatError, as_buffer
from .convolution import ConvolutionMode, convolve
from .kernel import Kernel
from .rescale import RescaleRange, channel_wise_rescale, rescale

logger = logging.getLogger(__name__)

LUMA_MODES = ("L", "LA", "I;16", "I;16L", "I;16B", "I;16N")
FLOAT_MODES = ("F",)
RGB_MODES = ("RGB", "RGBA")

U8_MAX = 255.0
U16_MAX = 65535.0


# ============================================================================
# Array encodings
# ============================================================================

def _scale_for(dtype: np.dtype) -> float:
    dtype = np.dtype(dtype)
    if dtype.kind == "u" and dtype.itemsize == 1:
        return U8_MAX
    if dtype.kind == "u" and dtype.itemsize == 2:
        return U16_MAX
    raise UnsupportedFormatError(f"Unsupported sample encoding: {dtype}")


def to_float(array: np.ndarray) -> np.ndarray:
    """
    Samples as float32 in the working domain.

    Args:
        array: uint8, uint16 or floating-point array

    Returns:
        New float32 array; integer encodings scaled to [0, 1]

    Raises:
        UnsupportedFormatError: Any other dtype
    """
    array = np.asarray(array)

    if np.issubdtype(array.dtype, np.floating):
        return array.astype(np.float32, copy=True)

    scale = _scale_for(array.dtype)
    return array.astype(np.float32) / scale


def from_float(samples: np.ndarray, dtype) -> np.ndarray:
    """
    Float samples back to a stored encoding.

    Integer targets clamp to [0, 1], scale and round half up; NaN becomes 0.
    Floating targets are cast without clamping.
    """
    dtype = np.dtype(dtype)

    if dtype.kind == "f":
        return np.asarray(samples).astype(dtype, copy=True)

    scale = _scale_for(dtype)
    clipped = np.clip(np.nan_to_num(samples, nan=0.0), 0.0, 1.0)
    return (clipped * scale + 0.5).astype(dtype)


def _to_hwc(buf: Buffer) -> np.ndarray:
    """Samples reordered to (H, W) or (H, W, C)."""
    axes = [buf.row_axis, buf.column_axis]
    if buf.channel_axis is not None:
        axes.append(buf.channel_axis)
    if buf.samples.ndim != len(axes):
        raise UnsupportedFormatError(
            f"Cannot turn a {buf.samples.ndim}-D buffer with batch axes into an image"
        )
    return np.transpose(buf.samples, axes)


def convolve_array(
    array: np.ndarray,
    kernel: Union[Kernel, Iterable[float]],
    stride: int = 1,
    mode: ConvolutionMode = ConvolutionMode.IN_PLACE,
    strict: bool = False,
) -> np.ndarray:
    """
    Convolve an array of any supported encoding.

    Returns:
        New array with the same shape and dtype as ``array``
    """
    array = np.asarray(array)
    samples = to_float(array)
    convolve(samples, kernel, stride=stride, mode=mode, strict=strict)
    return from_float(samples, array.dtype)


def rescale_array(
    array: np.ndarray,
    range: RescaleRange = RescaleRange.MAX,
    channel_wise: bool = False,
) -> np.ndarray:
    """Rescale an array of any supported encoding into a new array."""
    array = np.asarray(array)
    samples = to_float(array)
    if channel_wise:
        channel_wise_rescale(samples, range)
    else:
        rescale(samples, range)
    return from_float(samples, array.dtype)


# ============================================================================
# Pillow images
# ============================================================================

def image_to_buffer(image: Image.Image) -> Buffer:
    """
    Float buffer holding the samples of ``image``.

    Raises:
        UnsupportedFormatError: Palette, bilevel, CMYK and other modes
    """
    mode = image.mode

    if mode in LUMA_MODES:
        if mode == "LA":
            image = image.convert("L")
        return LumaBuffer(to_float(np.asarray(image)))

    if mode in FLOAT_MODES:
        return LumaBuffer(np.asarray(image, dtype=np.float32).copy())

    if mode in RGB_MODES:
        if mode == "RGBA":
            image = image.convert("RGB")
        return RgbBuffer(to_float(np.asarray(image)))

    raise UnsupportedFormatError(f"Unsupported image mode: {mode}")


def buffer_to_image(buffer: Union[Buffer, np.ndarray], mode: str) -> Image.Image:
    """
    Encode a float buffer as a Pillow image.

    Args:
        buffer: Single-channel buffer for L / I;16 / F, three channels for RGB
        mode: "L", "I;16", "F" or "RGB"
    """
    buf = as_buffer(buffer)
    hwc = _to_hwc(buf)

    if mode in ("L", "I;16", "F"):
        if hwc.ndim != 2:
            raise UnsupportedFormatError(
                f"Mode {mode} needs a single-channel buffer, got {buf.channels} channels"
            )
        dtype = {"L": np.uint8, "I;16": np.uint16, "F": np.float32}[mode]
        return Image.fromarray(np.ascontiguousarray(from_float(hwc, dtype)))

    if mode == "RGB":
        if hwc.ndim != 3 or hwc.shape[2] != 3:
            raise UnsupportedFormatError(
                f"Mode RGB needs a 3-channel buffer, got {buf.channels} channels"
            )
        return Image.fromarray(np.ascontiguousarray(from_float(hwc, np.uint8)))

    raise UnsupportedFormatError(f"Unsupported output mode: {mode}")


def output_mode(source_mode: str) -> str:
    """Mode a filtered image is returned in, given its source mode."""
    if source_mode in LUMA_MODES:
        return "I;16"
    if source_mode in FLOAT_MODES:
        return "F"
    if source_mode in RGB_MODES:
        return "RGB"
    raise UnsupportedFormatError(f"Unsupported image mode: {source_mode}")


def convolve_image(
    image: Image.Image,
    kernel: Union[Kernel, Iterable[float]],
    stride: int = 1,
    mode: ConvolutionMode = ConvolutionMode.IN_PLACE,
    strict: bool = False,
) -> Image.Image:
    """
    Convolve a Pillow image.

    Returns:
        New image in ``output_mode(image.mode)``
    """
    target = output_mode(image.mode)
    buf = image_to_buffer(image)

    logger.debug("Convolving %s image %dx%d -> %s", image.mode, buf.width, buf.height, target)

    convolve(buf, kernel, stride=stride, mode=mode, strict=strict)
    return buffer_to_image(buf, target)


def rescale_image(
    image: Image.Image,
    range: RescaleRange = RescaleRange.MAX,
    channel_wise: bool = False,
) -> Image.Image:
    """Rescale a Pillow image into a new image in ``output_mode(image.mode)``."""
    target = output_mode(image.mode)
    buf = image_to_buffer(image)

    if channel_wise:
        channel_wise_rescale(buf, range)
    else:
        rescale(buf, range)

    return buffer_to_image(buf, target)
