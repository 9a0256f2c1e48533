"""Playwright-based screenshot of a playing YouTube video."""

from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright
import structlog

from video_analyzer.core.exceptions import ScreenshotError

logger = structlog.get_logger(__name__)

PLAYER_SELECTOR = "video"
PLAY_BUTTON_SELECTOR = ".ytp-large-play-button"
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class PlaywrightScreenshotter:
    """Capture the video player of a page with headless Chromium.

    A fresh browser is launched per capture and always closed afterwards.
    Navigation and player readiness are bounded by their own timeouts.
    """

    def __init__(
        self,
        viewport_width: int = 1280,
        viewport_height: int = 720,
        navigation_timeout_ms: int = 30_000,
        player_timeout_ms: int = 10_000,
        playback_wait_ms: int = 2_000,
        headless: bool = True,
    ) -> None:
        self.viewport = {"width": viewport_width, "height": viewport_height}
        self.navigation_timeout_ms = navigation_timeout_ms
        self.player_timeout_ms = player_timeout_ms
        self.playback_wait_ms = playback_wait_ms
        self.headless = headless

    async def capture(self, url: str, output_path: Path) -> Path:
        """Navigate to ``url``, start playback and save a viewport PNG.

        Raises:
            ScreenshotError: On navigation/player timeouts or browser failures
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch(
                    headless=self.headless, args=BROWSER_ARGS
                )
                try:
                    page = await browser.new_page(viewport=self.viewport)
                    await page.goto(
                        url,
                        wait_until="networkidle",
                        timeout=self.navigation_timeout_ms,
                    )
                    await page.wait_for_selector(
                        PLAYER_SELECTOR, timeout=self.player_timeout_ms
                    )
                    await self._start_playback(page)
                    await page.screenshot(path=str(output_path), full_page=False)
                finally:
                    await browser.close()
        except PlaywrightTimeoutError as exc:
            raise ScreenshotError(f"Timed out loading video page: {exc}") from exc
        except PlaywrightError as exc:
            raise ScreenshotError(f"Browser automation failed: {exc}") from exc

        logger.info("Screenshot captured", url=url, path=str(output_path))
        return output_path

    async def _start_playback(self, page: Page) -> None:
        try:
            play_button = await page.query_selector(PLAY_BUTTON_SELECTOR)
            if play_button is not None:
                await play_button.click()
                await page.wait_for_timeout(self.playback_wait_ms)
        except PlaywrightError as exc:
            logger.info(
                "Could not click play button, video might autoplay", error=str(exc)
            )
