"""Decode image bytes into a common RGBA pixel representation."""

from __future__ import annotations

import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from pixelverify.errors import DecodeError
from pixelverify.models.comparison import DecodedImage

RGBA_CHANNELS = 4

# Integer modes Pillow uses for 16-bit grayscale sources
_WIDE_GRAYSCALE_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")


def decode_image(data: bytes, side: str) -> DecodedImage:
    """Decode ``data`` to RGBA, adding an opaque alpha channel when missing.

    ``side`` names the image ("rendered" or "fixture") in the DecodeError.
    """
    if not data:
        raise DecodeError(side, "empty buffer")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgba = _to_rgba(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(side, str(e)) from e

    pixels = np.asarray(rgba, dtype=np.uint8)
    height, width = pixels.shape[:2]
    return DecodedImage(width=width, height=height, channels=RGBA_CHANNELS, pixels=pixels)


def _to_rgba(img: Image.Image) -> Image.Image:
    if img.mode not in _WIDE_GRAYSCALE_MODES:
        return img.convert("RGBA")
    # convert() clamps values above 255; scale to 8 bits instead
    wide = np.clip(np.asarray(img, dtype=np.int64), 0, 0xFFFF)
    return Image.fromarray((wide >> 8).astype(np.uint8)).convert("RGBA")


def encode_jpeg(image: DecodedImage, quality: int = 90) -> bytes:
    """Compress an RGBA image to JPEG, dropping alpha."""
    buf = io.BytesIO()
    Image.fromarray(image.pixels).convert("RGB").save(buf, format="JPEG", quality=quality)
    return buf.getvalue()
