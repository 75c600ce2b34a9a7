"""
Image Operations
================
Raster primitives used by the evaluator.

Images are ``uint8`` numpy arrays of shape ``(height, width)`` or
``(height, width, channels)`` with 3 or 4 channels. Decoding and encoding go
through Pillow; resampling and filtering use ``scipy.ndimage``.
"""
from __future__ import annotations

import io
import logging
import math
import os
from typing import TYPE_CHECKING, Union

import numpy as np
from PIL import Image as PILImage
from scipy import ndimage

from imfx import config
from imfx.errors import DecodeError, EncodeError, ImageTooLarge

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

_MODES_BY_CHANNELS: dict[int, str] = {3: "RGB", 4: "RGBA"}
_BLUR_TRUNCATE = 4.0


def load_image(path: PathLike) -> npt.NDArray[np.uint8]:
    """
    Read an image file into an RGBA array.

    Args:
        path: Path of any format Pillow can decode.

    Raises:
        DecodeError: If the file is missing or cannot be decoded.

    Returns:
        Array of shape (height, width, 4).
    """
    try:
        with PILImage.open(path) as im:
            source_mode = im.mode
            rgba = im.convert("RGBA")
    except FileNotFoundError as e:
        raise DecodeError(str(path), "no such file") from e
    except (OSError, ValueError, PILImage.DecompressionBombError) as e:
        raise DecodeError(str(path), str(e) or e.__class__.__name__) from e

    array = np.array(rgba, dtype=np.uint8)
    logger.debug(f"Loaded {path} ({array.shape[1]}x{array.shape[0]}, mode {source_mode}).")
    return array


def clone(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    """Return an independent copy of `image`."""
    return image.copy()


def resize(image: npt.NDArray[np.uint8], factor: float) -> npt.NDArray[np.uint8]:
    """
    Scale `image` uniformly by `factor` using bilinear interpolation.

    The target size is ``round(dim * factor)`` on each axis, never less than one
    pixel. A factor of exactly 1 returns `image` itself.

    Raises:
        ValueError: If `factor` is negative or not finite.
        ImageTooLarge: If the result would exceed ``config.MAX_IMAGE_PIXELS``.
    """
    if not math.isfinite(factor) or factor < 0:
        raise ValueError(f"Invalid scale factor: {factor}.")
    if factor == 1.0:
        return image

    height, width = image.shape[:2]
    target_height = max(1, round(height * factor))
    target_width = max(1, round(width * factor))
    if target_height * target_width > config.MAX_IMAGE_PIXELS:
        raise ImageTooLarge(target_width, target_height, config.MAX_IMAGE_PIXELS)
    zoom = (target_height / height, target_width / width) + (1.0,) * (image.ndim - 2)

    resized = ndimage.zoom(image.astype(np.float64), zoom, order=1, mode="nearest")
    logger.debug(f"Resized {width}x{height} by {factor:.4f} to {resized.shape[1]}x{resized.shape[0]}.")
    return _to_uint8(resized, image.dtype)


def gaussian_blur(image: npt.NDArray[np.uint8], sigma: float) -> npt.NDArray[np.uint8]:
    """
    Blur the spatial axes of `image` with a Gaussian kernel.

    Args:
        image: Source image.
        sigma: Standard deviation in pixels. Zero returns `image` unchanged.

    Raises:
        ValueError: If `sigma` is negative.
    """
    if sigma < 0:
        raise ValueError(f"Blur sigma must be non-negative, got {sigma}.")
    if sigma == 0:
        return image

    height, width = image.shape[:2]
    # Kernel radius capped at twice the image extent.
    radius = int(_BLUR_TRUNCATE * sigma + 0.5)
    radii = (min(radius, 2 * height), min(radius, 2 * width)) + (0,) * (image.ndim - 2)
    sigmas = (sigma, sigma) + (0.0,) * (image.ndim - 2)
    blurred = ndimage.gaussian_filter(image.astype(np.float64), sigma=sigmas, mode="mirror", radius=radii)
    return _to_uint8(blurred, image.dtype)


def overlay_centered(
    base: npt.NDArray[np.uint8],
    overlay: npt.NDArray[np.uint8],
) -> npt.NDArray[np.uint8]:
    """
    Copy `overlay` onto the centre of `base`, in place.

    The overlay's top-left corner lands at ``base // 2 - overlay // 2`` on each
    axis. Parts falling outside `base` are clipped. Overlay pixels replace base
    pixels (no alpha blending) after being converted to the base's channel layout.

    Returns:
        `base`, with unchanged dimensions.
    """
    overlay = conform_channels(overlay, base)

    base_h, base_w = base.shape[:2]
    over_h, over_w = overlay.shape[:2]
    top = base_h // 2 - over_h // 2
    left = base_w // 2 - over_w // 2

    y0, y1 = max(top, 0), min(top + over_h, base_h)
    x0, x1 = max(left, 0), min(left + over_w, base_w)
    if y0 < y1 and x0 < x1:
        base[y0:y1, x0:x1] = overlay[y0 - top:y1 - top, x0 - left:x1 - left]
    else:
        logger.debug("Overlay lies completely outside the base image.")
    return base


def conform_channels(
    image: npt.NDArray[np.uint8],
    reference: npt.NDArray[np.uint8],
) -> npt.NDArray[np.uint8]:
    """Convert `image` to the channel layout of `reference` via Pillow modes."""
    source_mode, target_mode = _mode_of(image), _mode_of(reference)
    if source_mode == target_mode:
        return image
    converted = PILImage.fromarray(np.ascontiguousarray(image, dtype=np.uint8)).convert(target_mode)
    return np.array(converted, dtype=np.uint8)


def encode_image(image: npt.NDArray[np.uint8], fmt: str = config.OUTPUT_FORMAT) -> bytes:
    """
    Serialise `image` into an in-memory file of the given Pillow format.

    Raises:
        EncodeError: If the format is not one of ``config.LOSSLESS_FORMATS`` or
            Pillow rejects the array.
    """
    fmt = fmt.upper()
    if fmt not in config.LOSSLESS_FORMATS:
        raise EncodeError(f"cannot encode image as {fmt}: not a lossless format ({', '.join(config.LOSSLESS_FORMATS)})")
    buffer = io.BytesIO()
    try:
        PILImage.fromarray(np.ascontiguousarray(image)).save(buffer, format=fmt)
    except (KeyError, OSError, TypeError, ValueError) as e:
        raise EncodeError(f"cannot encode image as {fmt}: {e}") from e
    return buffer.getvalue()


def _to_uint8(values: npt.NDArray[np.float64], dtype: np.dtype) -> npt.NDArray[np.uint8]:
    return np.clip(np.rint(values), 0, 255).astype(dtype)


def _mode_of(image: npt.NDArray[np.uint8]) -> str:
    if image.ndim == 2:
        return "L"
    if image.ndim == 3 and image.shape[2] in _MODES_BY_CHANNELS:
        return _MODES_BY_CHANNELS[image.shape[2]]
    raise ValueError(f"Unsupported image shape: {image.shape}.")
