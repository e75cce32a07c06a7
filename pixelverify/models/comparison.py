"""Data structures produced and consumed by a single image comparison."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

RENDERED_ARTIFACT_EXTENSION = "jpg"
DIFF_ARTIFACT_EXTENSION = "jpg"


class ErrorKind(str, Enum):
    NOT_VISIBLE = "not_visible"
    UNSTABLE = "unstable"
    FETCH_FAILED = "fetch_failed"
    FIXTURE_NOT_FOUND = "fixture_not_found"
    DECODE_ERROR = "decode_error"
    GEOMETRY_MISMATCH = "geometry_mismatch"
    PIXEL_MISMATCH = "pixel_mismatch"


class ComparisonIdentity(BaseModel):
    """Names the fixture to compare against and the artifacts to write."""

    model_config = ConfigDict(frozen=True)

    series_prefix: str
    image_index: int = Field(ge=1)
    fixture_directory: str

    @property
    def label(self) -> str:
        return f"{self.series_prefix}_{self.image_index}"

    def fixture_path(self, extension: str = "jpeg") -> Path:
        return Path(self.fixture_directory) / f"{self.label}.{extension.lstrip('.')}"

    @property
    def rendered_artifact_name(self) -> str:
        return f"rendered_{self.label}.{RENDERED_ARTIFACT_EXTENSION}"

    @property
    def diff_artifact_name(self) -> str:
        return f"diff_{self.label}.{DIFF_ARTIFACT_EXTENSION}"


class StabilityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_stable: bool
    final_content_id: str
    elapsed_seconds: float
    attempts: int = 1


@dataclass(frozen=True, eq=False)
class DecodedImage:
    """RGBA pixels of shape (height, width, channels), dtype uint8."""

    width: int
    height: int
    channels: int
    pixels: np.ndarray

    @property
    def dimensions(self) -> tuple[int, int, int]:
        return (self.width, self.height, self.channels)


@dataclass(frozen=True, eq=False)
class DiffResult:
    mismatched_pixel_count: int
    total_pixels: int
    max_channel_delta: int
    mismatch_bbox: Optional[tuple[int, int, int, int]]  # (left, top, right, bottom), inclusive
    diff_image: DecodedImage
    rendered_bytes: bytes


class ComparisonVerdict(BaseModel):
    """Outcome of one comparison, handed to the surrounding test layer."""

    identity: ComparisonIdentity
    passed: bool
    mismatched_pixel_count: int = 0
    total_pixels: int = 0
    error: Optional[ErrorKind] = None
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)
    content_id: Optional[str] = None
    rendered_artifact: Optional[str] = None
    diff_artifact: Optional[str] = None
    duration_seconds: float = 0.0

    _exception: Optional[Exception] = PrivateAttr(default=None)

    def raise_for_failure(self) -> None:
        """Re-raise the error behind a failing verdict; no-op when it passed."""
        if self.passed:
            return
        if self._exception is not None:
            raise self._exception
        raise AssertionError(self.message or f"Comparison failed for {self.identity.label}")
