"""Pixel-exact image diff.

The distance of a pixel is the largest absolute difference over its four RGBA
channels, so a threshold of 0 means bit-exact equality. The diff image paints
mismatched pixels opaque red and everything else as a faded grayscale copy of
the fixture.
"""

from __future__ import annotations

import numpy as np

from pixelverify.models.comparison import DecodedImage, DiffResult

MISMATCH_COLOR = (255, 0, 0, 255)
FADE_ALPHA = 0.1


def channel_distance(rendered: DecodedImage, fixture: DecodedImage) -> np.ndarray:
    """Per-pixel max channel delta, shape (height, width)."""
    a = rendered.pixels.astype(np.int16)
    b = fixture.pixels.astype(np.int16)
    return np.abs(a - b).max(axis=2)


def _faded_gray(fixture: DecodedImage) -> np.ndarray:
    rgb = fixture.pixels[..., :3].astype(np.float32)
    # Rec. 601 luma, blended toward white
    luma = rgb @ np.array([0.299, 0.587, 0.114], dtype=np.float32)
    faded = 255.0 + (luma - 255.0) * FADE_ALPHA
    gray = np.clip(np.rint(faded), 0, 255).astype(np.uint8)
    out = np.empty(fixture.pixels.shape, dtype=np.uint8)
    out[..., 0] = gray
    out[..., 1] = gray
    out[..., 2] = gray
    out[..., 3] = 255
    return out


def diff_images(
    rendered: DecodedImage,
    fixture: DecodedImage,
    rendered_bytes: bytes = b"",
    threshold: int = 0,
) -> DiffResult:
    """Compare two images of identical geometry.

    The caller must have checked that dimensions and channel counts agree.
    """
    if rendered.dimensions != fixture.dimensions:
        raise ValueError(f"diff_images requires equal geometry: {rendered.dimensions} vs {fixture.dimensions}")

    distance = channel_distance(rendered, fixture)
    mask = distance > threshold
    count = int(np.count_nonzero(mask))

    pixels = _faded_gray(fixture)
    pixels[mask] = MISMATCH_COLOR

    bbox = None
    if count:
        ys, xs = np.nonzero(mask)
        bbox = (int(xs.min()), int(ys.min()), int(xs.max()), int(ys.max()))

    return DiffResult(
        mismatched_pixel_count=count,
        total_pixels=rendered.width * rendered.height,
        max_channel_delta=int(distance.max()) if distance.size else 0,
        mismatch_bbox=bbox,
        diff_image=DecodedImage(
            width=fixture.width, height=fixture.height, channels=fixture.channels, pixels=pixels
        ),
        rendered_bytes=rendered_bytes,
    )
