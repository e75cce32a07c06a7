"""Pixel-diff comparator — verifies a live image against its stored fixture.

Pipeline per call: stabilize → (fetch + decode rendered ‖ load + decode
fixture) → geometry check → diff → artifacts → verdict. The two decode
branches run concurrently and are joined before the geometry check.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from pixelverify.comparator.artifacts import ArtifactWriter
from pixelverify.comparator.decoder import decode_image
from pixelverify.comparator.pixel_diff import diff_images
from pixelverify.errors import (
    DecodeError,
    FetchFailedError,
    FixtureNotFoundError,
    GeometryMismatchError,
    PixelMismatchError,
    VerificationError,
)
from pixelverify.models.comparison import (
    ComparisonIdentity,
    ComparisonVerdict,
    DecodedImage,
    DiffResult,
)
from pixelverify.models.config import ComparisonConfig, TimeoutConfig
from pixelverify.stability.monitor import StabilizationMonitor, SurfaceHandle

logger = logging.getLogger(__name__)


class PixelDiffComparator:
    """Compares the image shown on a surface with a fixture on disk."""

    def __init__(
        self,
        config: ComparisonConfig | None = None,
        timeouts: TimeoutConfig | None = None,
        monitor: StabilizationMonitor | None = None,
        output_dir: Path | None = None,
    ):
        self.config = config or ComparisonConfig()
        self.timeouts = timeouts or TimeoutConfig()
        self.monitor = monitor or StabilizationMonitor(self.timeouts, self.config.content_attribute)
        self.artifacts = ArtifactWriter(
            Path(output_dir or self.config.output_dir), jpeg_quality=self.config.diff_jpeg_quality
        )

    async def compare(
        self,
        surface: SurfaceHandle,
        identity: ComparisonIdentity,
        threshold: int | None = None,
        max_mismatched_pixels: int | None = None,
    ) -> ComparisonVerdict:
        """Wait for the surface to settle, then compare it with its fixture."""
        start = time.monotonic()
        content_id: str | None = None
        try:
            stability = await self.monitor.await_stable(surface)
            content_id = stability.final_content_id
            url = surface.resolve_url(content_id)
            (rendered_bytes, rendered), fixture = await self._join(
                self._fetch_rendered(surface, url), self._load_fixture(identity)
            )
            return self._evaluate(
                identity, rendered_bytes, rendered, fixture, threshold, max_mismatched_pixels, start, content_id
            )
        except VerificationError as e:
            return self._failed(identity, e, start, content_id)

    async def compare_bytes(
        self,
        rendered_bytes: bytes,
        identity: ComparisonIdentity,
        threshold: int | None = None,
        max_mismatched_pixels: int | None = None,
    ) -> ComparisonVerdict:
        """Compare an already captured image with its fixture."""
        start = time.monotonic()
        try:
            rendered, fixture = await self._join(
                asyncio.to_thread(decode_image, rendered_bytes, "rendered"), self._load_fixture(identity)
            )
            return self._evaluate(
                identity, rendered_bytes, rendered, fixture, threshold, max_mismatched_pixels, start, None
            )
        except VerificationError as e:
            return self._failed(identity, e, start, None)

    async def _join(self, rendered_branch, fixture_branch):
        """Run both branches to completion; rendered-side errors win."""
        rendered, fixture = await asyncio.gather(rendered_branch, fixture_branch, return_exceptions=True)
        for outcome in (rendered, fixture):
            if isinstance(outcome, BaseException):
                raise outcome
        return rendered, fixture

    async def _fetch_rendered(self, surface: SurfaceHandle, url: str) -> tuple[bytes, DecodedImage]:
        try:
            status, body = await surface.fetch_bytes(url, self.timeouts.fetch_timeout_ms)
        except Exception as e:
            raise FetchFailedError(url, f"{type(e).__name__}: {e}") from e
        if not 200 <= status < 300:
            raise FetchFailedError(url, f"HTTP {status}", status=status)
        if not body:
            raise FetchFailedError(url, "empty response body", status=status)
        return body, await asyncio.to_thread(decode_image, body, "rendered")

    async def _load_fixture(self, identity: ComparisonIdentity) -> DecodedImage:
        path = identity.fixture_path(self.config.fixture_extension)
        if not path.is_file():
            raise FixtureNotFoundError(str(path))
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise DecodeError("fixture", str(e)) from e
        return await asyncio.to_thread(decode_image, data, "fixture")

    def _evaluate(
        self,
        identity: ComparisonIdentity,
        rendered_bytes: bytes,
        rendered: DecodedImage,
        fixture: DecodedImage,
        threshold: int | None,
        max_mismatched_pixels: int | None,
        start: float,
        content_id: str | None,
    ) -> ComparisonVerdict:
        if rendered.dimensions != fixture.dimensions:
            raise GeometryMismatchError(rendered.dimensions, fixture.dimensions)

        pixel_threshold = self.config.threshold if threshold is None else threshold
        tolerated = self.config.max_mismatched_pixels if max_mismatched_pixels is None else max_mismatched_pixels
        diff = diff_images(rendered, fixture, rendered_bytes, threshold=pixel_threshold)
        details = _diff_details(diff, pixel_threshold)
        rendered_path, diff_path = self.artifacts.write_all(identity, diff)

        verdict = ComparisonVerdict(
            identity=identity,
            passed=diff.mismatched_pixel_count <= tolerated,
            mismatched_pixel_count=diff.mismatched_pixel_count,
            total_pixels=diff.total_pixels,
            details={**details, "tolerated": tolerated},
            content_id=content_id,
            rendered_artifact=rendered_path or None,
            diff_artifact=diff_path or None,
            duration_seconds=round(time.monotonic() - start, 3),
        )
        if verdict.passed:
            verdict.message = f"Image {identity.label} matches fixture"
            logger.info("%s: %s", identity.label, verdict.message)
            return verdict

        error = PixelMismatchError(identity.label, diff.mismatched_pixel_count, tolerated, **details)
        verdict.error = error.kind
        verdict.details = error.details
        verdict.message = error.message
        verdict._exception = error
        logger.info("%s: %s (diff: %s)", identity.label, error.message, diff_path or "not written")
        return verdict

    def _failed(
        self, identity: ComparisonIdentity, error: VerificationError, start: float, content_id: str | None
    ) -> ComparisonVerdict:
        logger.info("%s: %s", identity.label, error.message)
        verdict = ComparisonVerdict(
            identity=identity,
            passed=False,
            error=error.kind,
            message=error.message,
            details=error.details,
            content_id=content_id,
            duration_seconds=round(time.monotonic() - start, 3),
        )
        verdict._exception = error
        return verdict


def _diff_details(diff: DiffResult, threshold: int) -> dict:
    return {
        "threshold": threshold,
        "max_channel_delta": diff.max_channel_delta,
        "mismatch_bbox": list(diff.mismatch_bbox) if diff.mismatch_bbox else None,
        "dimensions": [diff.diff_image.width, diff.diff_image.height, diff.diff_image.channels],
    }
