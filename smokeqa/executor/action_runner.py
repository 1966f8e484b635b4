"""Action runner: translates Step models to Playwright calls."""

from __future__ import annotations

import logging

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from smokeqa.models.test_case import ActionType, Step
from smokeqa.url_utils import url_contains

logger = logging.getLogger(__name__)

# check selectors that refer to the document title rather than a DOM element
TITLE_SELECTORS = frozenset({"title", "head > title", "head title", "document.title"})

HIGHLIGHT_LOOKUP_TIMEOUT_MS = 2000

_OVERLAY_SCRIPT = """({id, title}) => {
    const old = document.getElementById('__qa_tc_overlay');
    if (old) old.remove();
    const overlay = document.createElement('div');
    overlay.id = '__qa_tc_overlay';
    overlay.textContent = `${id} | ${title}`;
    Object.assign(overlay.style, {
        position: 'fixed', top: '16px', left: '50%', transform: 'translateX(-50%)',
        padding: '10px 18px', background: 'rgba(0,0,0,0.75)', color: '#fff',
        fontSize: '16px', fontWeight: '600', zIndex: '999999', borderRadius: '8px',
        pointerEvents: 'none', boxShadow: '0 4px 12px rgba(0,0,0,0.3)'
    });
    (document.body || document.documentElement).appendChild(overlay);
}"""

_OUTLINE_ON = """node => {
    node.style.outline = '4px solid #ff0000';
    node.style.outlineOffset = '2px';
    node.scrollIntoView({block: 'center', inline: 'center'});
}"""

_OUTLINE_OFF = """node => {
    node.style.outline = '';
    node.style.outlineOffset = '';
}"""


async def show_case_overlay(page: Page, case_id: str, title: str) -> None:
    """Pin a banner naming the running case so the recording is easy to follow."""
    try:
        await page.evaluate(_OVERLAY_SCRIPT, {"id": case_id, "title": title})
    except Exception as e:
        logger.debug("Could not show overlay for %s: %s", case_id, e)


async def highlight(page: Page, locator: Locator, duration_ms: int = 1000) -> None:
    """Outline the element, scroll it into view, hold for the recording, then remove the outline.

    Purely cosmetic: a missing or detached element is left for the
    action itself to report.
    """
    try:
        handle = await locator.element_handle(timeout=HIGHLIGHT_LOOKUP_TIMEOUT_MS)
        if handle is None:
            return
        await handle.evaluate(_OUTLINE_ON)
        await page.wait_for_timeout(duration_ms)
        await handle.evaluate(_OUTLINE_OFF)
    except Exception as e:
        logger.debug("Highlight skipped: %s", e)


def parse_wait_ms(value: str | None, default_ms: int = 1000) -> int:
    if not value:
        return default_ms
    try:
        return max(0, int(float(value)))
    except ValueError:
        logger.warning("Invalid wait value '%s', using %dms", value, default_ms)
        return default_ms


def _require_selector(step: Step) -> str:
    if not step.selector:
        raise ValueError(f"{step.action.value} action requires a selector")
    return step.selector


async def _check(page: Page, step: Step, timeout: int, highlight_ms: int) -> None:
    selector = _require_selector(step)
    if selector.strip().lower() in TITLE_SELECTORS:
        title = (await page.title()).strip()
        logger.debug("Checking document title: '%s'", title)
        if not title:
            raise AssertionError("Expected a non-empty document title")
        if step.value and step.value not in title:
            raise AssertionError(f"Expected title containing '{step.value}', got '{title}'")
        return

    locator = page.locator(selector).first
    await highlight(page, locator, highlight_ms)
    try:
        await locator.wait_for(state="visible", timeout=timeout)
    except PlaywrightTimeoutError as e:
        raise AssertionError(f"Element not visible within {timeout}ms: {selector}") from e


async def _click_new_tab(
    page: Page, step: Step, timeout: int, new_tab_timeout: int, highlight_ms: int,
) -> None:
    locator = page.locator(_require_selector(step)).first
    await highlight(page, locator, highlight_ms)
    async with page.context.expect_page(timeout=new_tab_timeout) as new_page_info:
        await locator.click(force=True, timeout=timeout)
    new_page = await new_page_info.value
    try:
        await new_page.wait_for_load_state("domcontentloaded", timeout=new_tab_timeout)
        logger.debug("New tab opened: %s", new_page.url)
    finally:
        await new_page.close()


def _check_url(page: Page, step: Step) -> None:
    expected = step.value or ""
    if not expected:
        raise ValueError("checkUrl action requires a value")
    if url_contains(page.url, expected):
        return
    # The navigation may have opened a tab instead of navigating in place
    for other in page.context.pages:
        if other is not page and url_contains(other.url, expected):
            logger.debug("Expected URL found in another tab: %s", other.url)
            return
    raise AssertionError(f"Expected URL containing '{expected}', got '{page.url}'")


async def run_step(
    page: Page,
    step: Step,
    timeout: int = 10000,
    new_tab_timeout: int = 10000,
    highlight_ms: int = 1000,
    default_wait_ms: int = 1000,
) -> None:
    """Execute a single step on the Playwright page.

    Args:
        page: Playwright page instance.
        step: The step to execute.
        timeout: Per-action timeout in milliseconds.
        new_tab_timeout: How long clickNewTab waits for the tab to open and load.
        highlight_ms: How long the highlight outline stays visible.
        default_wait_ms: Duration of a wait step without a value.
    """
    logger.debug("Running step: %s | selector=%s | value=%s | %s",
                 step.action.value, step.selector, step.value, step.desc)

    match step.action:
        case ActionType.CHECK:
            await _check(page, step, timeout, highlight_ms)

        case ActionType.CLICK:
            locator = page.locator(_require_selector(step)).first
            await highlight(page, locator, highlight_ms)
            await locator.click(force=True, timeout=timeout)

        case ActionType.TYPE:
            locator = page.locator(_require_selector(step)).first
            await highlight(page, locator, highlight_ms)
            await locator.fill(step.value or "", timeout=timeout)

        case ActionType.WAIT:
            await page.wait_for_timeout(parse_wait_ms(step.value, default_wait_ms))

        case ActionType.CLICK_NEW_TAB:
            await _click_new_tab(page, step, timeout, new_tab_timeout, highlight_ms)

        case ActionType.CHECK_URL:
            _check_url(page, step)

        case _:
            raise ValueError(f"Unknown action type: {step.action}")
