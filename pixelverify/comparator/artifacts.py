"""Artifact writer — persists rendered captures and diff images for inspection."""

from __future__ import annotations

import logging
from pathlib import Path

from pixelverify.comparator.decoder import encode_jpeg
from pixelverify.models.comparison import ComparisonIdentity, DiffResult

logger = logging.getLogger(__name__)


class ArtifactWriter:
    """Writes diagnostic files named after the comparison identity.

    Writes are best-effort: failures are logged and reported as an empty path.
    """

    def __init__(self, output_dir: Path, jpeg_quality: int = 90):
        self.output_dir = Path(output_dir)
        self.jpeg_quality = jpeg_quality

    def write_rendered(self, identity: ComparisonIdentity, data: bytes) -> str:
        """Save the rendered capture exactly as fetched."""
        path = self.output_dir / identity.rendered_artifact_name
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            return str(path)
        except OSError as e:
            logger.warning("Writing rendered artifact %s failed: %s", path, e)
            return ""

    def write_diff(self, identity: ComparisonIdentity, diff: DiffResult) -> str:
        """Save a JPEG visualization of the diff."""
        path = self.output_dir / identity.diff_artifact_name
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(encode_jpeg(diff.diff_image, self.jpeg_quality))
            return str(path)
        except OSError as e:
            logger.warning("Writing diff artifact %s failed: %s", path, e)
            return ""

    def write_all(self, identity: ComparisonIdentity, diff: DiffResult) -> tuple[str, str]:
        return self.write_rendered(identity, diff.rendered_bytes), self.write_diff(identity, diff)
