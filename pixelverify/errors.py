"""Failure taxonomy for a comparison attempt.

Every error carries structured ``details`` so that a failure can be diagnosed
from the verdict alone, without re-running the comparison.
"""

from __future__ import annotations

from typing import Any

from pixelverify.models.comparison import ErrorKind


class VerificationError(Exception):
    kind: ErrorKind

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class NotVisibleError(VerificationError):
    kind = ErrorKind.NOT_VISIBLE

    def __init__(self, selector: str, timeout_ms: int):
        super().__init__(
            f"Surface '{selector}' did not become visible within {timeout_ms}ms",
            selector=selector,
            timeout_ms=timeout_ms,
        )


class UnstableError(VerificationError):
    kind = ErrorKind.UNSTABLE

    def __init__(self, initial: str | None, current: str | None, settle_window_ms: int, attempts: int = 1):
        super().__init__(
            f"Content identifier changed within {settle_window_ms}ms settle window "
            f"({initial!r} -> {current!r}, {attempts} attempt(s))",
            initial=initial,
            current=current,
            settle_window_ms=settle_window_ms,
            attempts=attempts,
        )


class FetchFailedError(VerificationError):
    kind = ErrorKind.FETCH_FAILED

    def __init__(self, url: str, reason: str, status: int | None = None):
        super().__init__(f"Fetching {url} failed: {reason}", url=url, status=status, reason=reason)


class FixtureNotFoundError(VerificationError):
    kind = ErrorKind.FIXTURE_NOT_FOUND

    def __init__(self, path: str):
        super().__init__(f"Fixture not found: {path}", path=path)


class DecodeError(VerificationError):
    kind = ErrorKind.DECODE_ERROR

    def __init__(self, side: str, reason: str):
        super().__init__(f"Could not decode {side} image: {reason}", side=side, reason=reason)
        self.side = side


class GeometryMismatchError(VerificationError):
    kind = ErrorKind.GEOMETRY_MISMATCH

    def __init__(self, rendered_dims: tuple[int, int, int], fixture_dims: tuple[int, int, int]):
        super().__init__(
            "Image geometry differs: rendered {}x{}x{} vs fixture {}x{}x{}".format(
                *rendered_dims, *fixture_dims
            ),
            rendered_dims=list(rendered_dims),
            fixture_dims=list(fixture_dims),
        )


class PixelMismatchError(VerificationError):
    kind = ErrorKind.PIXEL_MISMATCH

    def __init__(self, label: str, count: int, tolerated: int, **details: Any):
        super().__init__(
            f"Image {label} has {count} mismatched pixels (tolerated: {tolerated})",
            label=label,
            count=count,
            tolerated=tolerated,
            **details,
        )
        self.count = count
