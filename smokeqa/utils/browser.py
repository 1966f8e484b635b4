"""Browser helpers: launching Chromium and creating recording or device contexts."""

from __future__ import annotations

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright

from smokeqa.models.config import ViewportConfig


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch Chromium."""
    return await playwright.chromium.launch(
        headless=headless,
        args=[
            "--disable-blink-features=AutomationControlled",
        ],
    )


async def create_context(
    browser: Browser,
    viewport: ViewportConfig,
    record_video_dir: Optional[str] = None,
) -> BrowserContext:
    """Create a browser context for a viewport profile.

    Args:
        viewport: Size and device traits. Mobile profiles get touch support
            and a device scale factor of 2.
        record_video_dir: When set, every page opened in the context is recorded
            to a .webm file in this directory.
    """
    size = {"width": viewport.width, "height": viewport.height}
    context_kwargs: dict = {
        "viewport": size,
        "is_mobile": viewport.is_mobile,
        "has_touch": viewport.is_mobile,
        "device_scale_factor": 2 if viewport.is_mobile else 1,
    }
    if viewport.user_agent:
        context_kwargs["user_agent"] = viewport.user_agent
    if record_video_dir:
        context_kwargs["record_video_dir"] = record_video_dir
        context_kwargs["record_video_size"] = size

    return await browser.new_context(**context_kwargs)
