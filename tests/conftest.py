"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from pixelverify.models.comparison import ComparisonIdentity
from pixelverify.models.config import ComparisonConfig, TimeoutConfig, VerifierConfig


# ============================================================================
# Image Helpers
# ============================================================================


def make_image(width: int = 8, height: int = 8, color=(40, 80, 120), mode: str = "RGB") -> Image.Image:
    """Create a solid-color image."""
    return Image.new(mode, (width, height), color)


def image_bytes(img: Image.Image, fmt: str = "PNG") -> bytes:
    """Encode a PIL image to bytes."""
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def with_pixel(img: Image.Image, xy: tuple[int, int], color) -> Image.Image:
    """Return a copy of ``img`` with one pixel changed."""
    changed = img.copy()
    changed.putpixel(xy, color)
    return changed


# ============================================================================
# Fake Surface
# ============================================================================


class FakeSurface:
    """In-memory stand-in for the live image element."""

    description = "[data-testid=\"medical-image\"]"

    def __init__(
        self,
        content_ids: Optional[list] = None,
        content_id_fn: Optional[Callable[[], Optional[str]]] = None,
        visible: bool = True,
        network_idle: bool = True,
        response=(200, b""),
    ):
        self.content_ids = content_ids if content_ids is not None else ["/images/series_1/1.jpeg"]
        self.content_id_fn = content_id_fn
        self.visible = visible
        self.network_idle = network_idle
        self.response = response
        self.reads = 0
        self.idle_calls = 0
        self.fetched: list[str] = []

    async def wait_for_visible(self, timeout_ms: int) -> bool:
        return self.visible

    async def is_visible(self) -> bool:
        return self.visible

    async def get_attribute(self, name: str) -> Optional[str]:
        if self.content_id_fn is not None:
            return self.content_id_fn()
        value = self.content_ids[min(self.reads, len(self.content_ids) - 1)]
        self.reads += 1
        return value

    async def wait_for_network_idle(self, timeout_ms: int) -> bool:
        self.idle_calls += 1
        return self.network_idle

    def resolve_url(self, content_id: str) -> str:
        return f"https://viewer.test{content_id}"

    async def fetch_bytes(self, url: str, timeout_ms: int) -> tuple[int, bytes]:
        self.fetched.append(url)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def fast_timeouts() -> TimeoutConfig:
    """Timeouts short enough for unit tests."""
    return TimeoutConfig(
        visible_timeout_ms=1000,
        settle_window_ms=10,
        navigation_settle_ms=10,
        network_idle_timeout_ms=100,
        fetch_timeout_ms=1000,
        series_switch_delay_ms=0,
    )


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "output"


@pytest.fixture
def comparison_config(output_dir: Path) -> ComparisonConfig:
    """Lossless fixtures so single-pixel edits survive encoding."""
    return ComparisonConfig(fixture_extension="png", output_dir=str(output_dir))


@pytest.fixture
def fixture_dir(tmp_path: Path) -> Path:
    path = tmp_path / "fixture" / "series1"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def identity(fixture_dir: Path) -> ComparisonIdentity:
    return ComparisonIdentity(series_prefix="series_1", image_index=3, fixture_directory=str(fixture_dir))


@pytest.fixture
def verifier_config(tmp_path: Path, fast_timeouts: TimeoutConfig) -> VerifierConfig:
    return VerifierConfig(
        target_url="https://viewer.test/",
        timeouts=fast_timeouts,
        report_output_dir=str(tmp_path / "reports"),
    )


# ============================================================================
# Playwright Mocks
# ============================================================================


@pytest.fixture
def mock_locator() -> MagicMock:
    """Create a mock Playwright locator."""
    locator = MagicMock()
    locator.wait_for = AsyncMock()
    locator.is_visible = AsyncMock(return_value=True)
    locator.is_disabled = AsyncMock(return_value=False)
    locator.get_attribute = AsyncMock(return_value="/images/1.jpeg")
    locator.click = AsyncMock()
    locator.text_content = AsyncMock(return_value="1 / 7")
    return locator


@pytest.fixture
def mock_page(mock_locator: MagicMock) -> MagicMock:
    """Create a mock Playwright page whose locators all resolve to ``mock_locator``."""
    page = MagicMock()
    page.url = "https://viewer.test/study/42"
    page.locator = MagicMock(return_value=mock_locator)
    page.goto = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.request = MagicMock()
    page.request.get = AsyncMock()
    return page
