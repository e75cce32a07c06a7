"""Page driver for the image viewer: disclaimer, navigation and series switching."""

from __future__ import annotations

import logging

from playwright.async_api import Page, expect

from pixelverify.driver.surface import PlaywrightSurface
from pixelverify.models.config import SelectorConfig, SeriesConfig, TimeoutConfig
from pixelverify.stability.monitor import StabilizationMonitor

logger = logging.getLogger(__name__)


class ImageViewerPage:
    """Drives the viewer UI between comparisons."""

    def __init__(
        self,
        page: Page,
        selectors: SelectorConfig | None = None,
        timeouts: TimeoutConfig | None = None,
        content_attribute: str = "src",
    ):
        self.page = page
        self.selectors = selectors or SelectorConfig()
        self.timeouts = timeouts or TimeoutConfig()
        self.content_attribute = content_attribute
        self.monitor = StabilizationMonitor(self.timeouts, content_attribute)

    def surface(self) -> PlaywrightSurface:
        return PlaywrightSurface(self.page, self.selectors.image)

    async def goto(self, url: str) -> None:
        await self.page.goto(url)

    async def accept_disclaimer(self) -> bool:
        """Dismiss the welcome popup if it is showing."""
        button = self.page.locator(self.selectors.disclaimer_accept)
        if await button.is_visible():
            await button.click()
            logger.debug("Accepted welcome disclaimer")
            return True
        return False

    async def click_next(self) -> None:
        """Advance to the next image and wait until it has settled."""
        next_button = self.page.locator(self.selectors.next_button)
        await expect(next_button).to_be_enabled(timeout=self.timeouts.visible_timeout_ms)
        image = self.page.locator(self.selectors.image)
        previous = await image.get_attribute(self.content_attribute)

        await next_button.click()
        await expect(image).not_to_have_attribute(
            self.content_attribute, previous or "", timeout=self.timeouts.visible_timeout_ms
        )
        await self.monitor.await_stable(self.surface(), settle_window_ms=self.timeouts.navigation_settle_ms)

    async def switch_to_series(self, series: SeriesConfig) -> bool:
        """Select a series; returns False when it was already active."""
        if not series.button_selector:
            raise ValueError(f"Series '{series.name}' has no button_selector")
        button = self.page.locator(series.button_selector)
        if await button.get_attribute("aria-pressed") == "true":
            logger.debug("Already on %s", series.name)
            return False

        # The alt text names the series, so it changes even when the first src is cached
        image = self.page.locator(self.selectors.image)
        initial_alt = await image.get_attribute("alt")

        await expect(button).to_be_enabled(timeout=self.timeouts.visible_timeout_ms)
        await button.click()
        await self.page.wait_for_timeout(self.timeouts.series_switch_delay_ms)
        await expect(image).not_to_have_attribute(
            "alt", initial_alt or "", timeout=self.timeouts.visible_timeout_ms
        )
        await self.page.wait_for_load_state("networkidle", timeout=self.timeouts.network_idle_timeout_ms)
        await expect(button).to_have_attribute("aria-pressed", "true")
        logger.info("Switched to %s", series.name)
        return True

    async def get_slice_info(self) -> tuple[int, int]:
        """Parse the "current / total" slice counter."""
        text = await self.page.locator(self.selectors.slice_information).text_content()
        if not text or "/" not in text:
            raise ValueError(f"Unexpected slice information: {text!r}")
        current, total = (int(part.strip()) for part in text.split("/", 1))
        return current, total

    async def is_next_disabled(self) -> bool:
        return await self.page.locator(self.selectors.next_button).is_disabled()
