"""Playwright-backed handle onto the displayed image element."""

from __future__ import annotations

import base64
import logging
from typing import Optional
from urllib.parse import unquote_to_bytes, urljoin

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)


def decode_data_uri(uri: str) -> bytes:
    """Return the payload of a ``data:`` URI."""
    header, _, payload = uri.partition(",")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote_to_bytes(payload)


class PlaywrightSurface:
    """Read-only surface over a single locator on a Playwright page."""

    def __init__(self, page: Page, selector: str):
        self.page = page
        self.selector = selector
        self.locator = page.locator(selector)

    @property
    def description(self) -> str:
        return self.selector

    async def wait_for_visible(self, timeout_ms: int) -> bool:
        try:
            await self.locator.wait_for(state="visible", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def is_visible(self) -> bool:
        return await self.locator.is_visible()

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self.locator.get_attribute(name)

    async def wait_for_network_idle(self, timeout_ms: int) -> bool:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    def resolve_url(self, content_id: str) -> str:
        if content_id.startswith("data:"):
            return content_id
        return urljoin(self.page.url, content_id)

    async def fetch_bytes(self, url: str, timeout_ms: int) -> tuple[int, bytes]:
        """Fetch through the page's request context so cookies are shared.

        Transport failures propagate as Playwright errors.
        """
        if url.startswith("data:"):
            return 200, decode_data_uri(url)
        response = await self.page.request.get(url, timeout=timeout_ms)
        body = await response.body()
        logger.debug("Fetched %s: HTTP %d, %d bytes", url, response.status, len(body))
        return response.status, body
