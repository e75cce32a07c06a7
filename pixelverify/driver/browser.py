"""Browser launch helpers for deterministic image rendering."""

from __future__ import annotations

from playwright.async_api import Browser, BrowserContext, Playwright

# Force a consistent color profile so rendered pixels match fixtures across hosts
_RENDERING_ARGS = [
    "--force-color-profile=srgb",
    "--disable-lcd-text",
    "--font-render-hinting=none",
]


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch Chromium with flags that keep rendering reproducible."""
    return await playwright.chromium.launch(headless=headless, args=list(_RENDERING_ARGS))


async def create_context(browser: Browser, viewport: dict) -> BrowserContext:
    """Create a browser context pinned to a 1:1 device pixel ratio."""
    return await browser.new_context(
        viewport=viewport,
        device_scale_factor=1,
        locale="en-US",
        timezone_id="UTC",
    )
