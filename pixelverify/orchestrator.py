"""Run orchestrator — walks every configured series and compares each image."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path

from playwright.async_api import async_playwright

from pixelverify.comparator.comparator import PixelDiffComparator
from pixelverify.driver.browser import create_context, launch_browser
from pixelverify.driver.viewer_page import ImageViewerPage
from pixelverify.models.comparison import ComparisonIdentity
from pixelverify.models.config import SeriesConfig, VerifierConfig
from pixelverify.models.run_result import NavigationError, RunResult
from pixelverify.reporter.json_report import generate_json_report

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates browser setup, series navigation, comparison and reporting."""

    def __init__(self, config: VerifierConfig):
        self.config = config
        self.run_id = f"run_{uuid.uuid4().hex[:8]}"
        self.comparator = PixelDiffComparator(
            config=config.comparison,
            timeouts=config.timeouts,
            output_dir=Path(config.comparison.output_dir),
        )

    def run(self) -> RunResult:
        """Execute a full verification run and write the JSON report."""
        return asyncio.run(self._run())

    async def _run(self) -> RunResult:
        start = time.time()
        run_result = RunResult(
            run_id=self.run_id,
            started_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            target_url=self.config.target_url,
        )
        logger.info("=== Starting verification run %s for %s ===", self.run_id, self.config.target_url)

        async with async_playwright() as p:
            browser = await launch_browser(p, headless=self.config.headless)
            try:
                context = await create_context(
                    browser,
                    viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
                )
                page = await context.new_page()
                viewer = ImageViewerPage(
                    page,
                    selectors=self.config.selectors,
                    timeouts=self.config.timeouts,
                    content_attribute=self.config.comparison.content_attribute,
                )
                await viewer.goto(self.config.target_url)
                await viewer.accept_disclaimer()
                await self.verify_all(viewer, run_result)
            finally:
                await browser.close()

        run_result.completed_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        run_result.duration_seconds = round(time.time() - start, 2)
        generate_json_report(run_result, Path(self.config.report_output_dir))
        logger.info(
            "=== Run complete: %d passed, %d failed in %.1fs ===",
            run_result.passed, run_result.failed, run_result.duration_seconds,
        )
        return run_result

    async def verify_all(self, viewer: ImageViewerPage, run_result: RunResult) -> RunResult:
        """Compare every image of every series in configuration order."""
        for series_index, series in enumerate(self.config.series):
            if series_index > 0:
                try:
                    await viewer.switch_to_series(series)
                except Exception as e:
                    self._navigation_failed(run_result, series, 1, "switch_series", e)
                    continue
            if not await self.verify_series(viewer, series, run_result):
                break
        return run_result

    async def verify_series(self, viewer: ImageViewerPage, series: SeriesConfig, run_result: RunResult) -> bool:
        """Walk one series; returns False when the run should stop."""
        logger.info("--- %s: %d images ---", series.name, series.total_images)
        for image_index in range(1, series.total_images + 1):
            identity = ComparisonIdentity(
                series_prefix=series.fixture_prefix,
                image_index=image_index,
                fixture_directory=series.fixture_dir,
            )
            verdict = await self.comparator.compare(viewer.surface(), identity)
            run_result.record(verdict)
            if not verdict.passed and self.config.stop_on_failure:
                logger.info("Stopping after first failure (%s)", identity.label)
                return False

            try:
                if image_index < series.total_images:
                    await viewer.click_next()
                elif not await viewer.is_next_disabled():
                    self._navigation_failed(
                        run_result, series, image_index, "next_disabled",
                        "Next button still enabled on the last image",
                    )
            except Exception as e:
                self._navigation_failed(run_result, series, image_index, "next", e)
                return not self.config.stop_on_failure
        return True

    def _navigation_failed(
        self, run_result: RunResult, series: SeriesConfig, image_index: int, action: str, error: Exception | str
    ) -> None:
        logger.warning("%s image %d: %s failed: %s", series.name, image_index, action, error)
        run_result.navigation_errors.append(
            NavigationError(series_name=series.name, image_index=image_index, action=action, message=str(error))
        )
