"""Responsive-layout screenshots across device profiles."""

from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import async_playwright

from smokeqa.models.config import ViewportConfig
from smokeqa.utils.browser import create_context, launch_browser

logger = logging.getLogger(__name__)


async def capture_responsive_screenshots(
    url: str,
    output_dir: Path,
    viewports: list[ViewportConfig],
    settle_ms: int = 3000,
    navigation_timeout_ms: int = 30000,
    headless: bool = True,
) -> list[Path]:
    """Save one viewport screenshot per device profile as ``<name>.png``.

    Each device gets its own context so user agent and mobile emulation
    apply from the first request. A failing device does not stop the others.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    saved: list[Path] = []

    async with async_playwright() as p:
        browser = await launch_browser(p, headless=headless)
        try:
            for viewport in viewports:
                path = output_dir / f"{viewport.name}.png"
                context = await create_context(browser, viewport)
                try:
                    page = await context.new_page()
                    await page.goto(url, wait_until="domcontentloaded", timeout=navigation_timeout_ms)
                    await page.wait_for_timeout(settle_ms)
                    await page.screenshot(path=str(path), timeout=60000)
                    saved.append(path)
                    logger.info("Saved %s screenshot (%dx%d) to %s",
                                viewport.name, viewport.width, viewport.height, path)
                except Exception as e:
                    logger.error("Screenshot failed for %s: %s", viewport.name, e)
                finally:
                    await context.close()
        finally:
            await browser.close()

    return saved
