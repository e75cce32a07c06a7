"""Tests for the image viewer page driver."""

from unittest.mock import AsyncMock, patch

import pytest

from pixelverify.driver.surface import PlaywrightSurface
from pixelverify.driver.viewer_page import ImageViewerPage
from pixelverify.models.comparison import StabilityResult
from pixelverify.models.config import SeriesConfig


@pytest.fixture
def series_2() -> SeriesConfig:
    return SeriesConfig(
        name="Series 2",
        fixture_prefix="series_2",
        total_images=6,
        fixture_dir="fixture/series2",
        button_selector='[data-testid="series-2-button"]',
    )


@pytest.fixture
def mock_expect():
    with patch("pixelverify.driver.viewer_page.expect") as expect:
        expect.return_value = AsyncMock()
        yield expect


@pytest.mark.asyncio
class TestImageViewerPage:
    """Tests for ImageViewerPage."""

    async def test_surface_targets_image_selector(self, mock_page, fast_timeouts):
        viewer = ImageViewerPage(mock_page, timeouts=fast_timeouts)

        surface = viewer.surface()

        assert isinstance(surface, PlaywrightSurface)
        assert surface.selector == '[data-testid="medical-image"]'

    async def test_accept_disclaimer_when_visible(self, mock_page, mock_locator):
        viewer = ImageViewerPage(mock_page)

        assert await viewer.accept_disclaimer() is True
        mock_locator.click.assert_awaited_once()

    async def test_accept_disclaimer_when_absent(self, mock_page, mock_locator):
        mock_locator.is_visible.return_value = False
        viewer = ImageViewerPage(mock_page)

        assert await viewer.accept_disclaimer() is False
        mock_locator.click.assert_not_awaited()

    async def test_slice_info(self, mock_page, mock_locator):
        mock_locator.text_content.return_value = "3 / 7"
        viewer = ImageViewerPage(mock_page)

        assert await viewer.get_slice_info() == (3, 7)

    async def test_slice_info_malformed(self, mock_page, mock_locator):
        mock_locator.text_content.return_value = "loading"
        viewer = ImageViewerPage(mock_page)

        with pytest.raises(ValueError):
            await viewer.get_slice_info()

    async def test_is_next_disabled(self, mock_page, mock_locator):
        mock_locator.is_disabled.return_value = True
        viewer = ImageViewerPage(mock_page)

        assert await viewer.is_next_disabled() is True
        mock_page.locator.assert_called_with('[data-testid="next-image-button"]')

    async def test_click_next_waits_for_new_image(self, mock_page, mock_locator, mock_expect, fast_timeouts):
        viewer = ImageViewerPage(mock_page, timeouts=fast_timeouts)
        viewer.monitor.await_stable = AsyncMock(
            return_value=StabilityResult(is_stable=True, final_content_id="/img/2.jpeg", elapsed_seconds=0.01)
        )

        await viewer.click_next()

        mock_locator.click.assert_awaited_once()
        mock_expect.return_value.to_be_enabled.assert_awaited_once()
        mock_expect.return_value.not_to_have_attribute.assert_awaited_once_with(
            "src", "/images/1.jpeg", timeout=fast_timeouts.visible_timeout_ms
        )
        viewer.monitor.await_stable.assert_awaited_once()
        assert viewer.monitor.await_stable.call_args.kwargs["settle_window_ms"] == fast_timeouts.navigation_settle_ms

    async def test_switch_series_noop_when_active(self, mock_page, mock_locator, mock_expect, series_2):
        mock_locator.get_attribute.return_value = "true"
        viewer = ImageViewerPage(mock_page)

        assert await viewer.switch_to_series(series_2) is False
        mock_locator.click.assert_not_awaited()

    async def test_switch_series(self, mock_page, mock_locator, mock_expect, series_2, fast_timeouts):
        mock_locator.get_attribute.side_effect = ["false", "Series 1 - Image 7"]
        viewer = ImageViewerPage(mock_page, timeouts=fast_timeouts)

        assert await viewer.switch_to_series(series_2) is True

        mock_locator.click.assert_awaited_once()
        mock_page.wait_for_timeout.assert_awaited_once_with(fast_timeouts.series_switch_delay_ms)
        mock_expect.return_value.not_to_have_attribute.assert_awaited_once_with(
            "alt", "Series 1 - Image 7", timeout=fast_timeouts.visible_timeout_ms
        )
        mock_expect.return_value.to_have_attribute.assert_awaited_once_with("aria-pressed", "true")
        mock_page.wait_for_load_state.assert_awaited_once()

    async def test_switch_series_requires_selector(self, mock_page):
        viewer = ImageViewerPage(mock_page)
        series = SeriesConfig(name="Orphan", fixture_prefix="x", total_images=1, fixture_dir="f")

        with pytest.raises(ValueError):
            await viewer.switch_to_series(series)
