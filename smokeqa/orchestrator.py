"""Session controller: drives one run from page load to the saved report."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from playwright.async_api import Page, async_playwright

from smokeqa.ai.client import AIClient, set_debug_dir
from smokeqa.crawler.dom_summarizer import extract_page_context, truncate_context
from smokeqa.executor.evidence_collector import finalize_video, reset_video_dir
from smokeqa.executor.executor import CaseExecutor
from smokeqa.executor.responsive import capture_responsive_screenshots
from smokeqa.models.config import FrameworkConfig
from smokeqa.models.report import RunReport
from smokeqa.planner.generator import GenerationClient
from smokeqa.planner.planner import Planner
from smokeqa.reporter.json_report import generate_json_report
from smokeqa.reporter.recorder import ResultRecorder
from smokeqa.utils.browser import create_context, launch_browser

logger = logging.getLogger(__name__)


class Orchestrator:
    """Owns the browser session for one run and drives every stage in order."""

    def __init__(self, config: FrameworkConfig, ai_client: AIClient | None = None):
        self.config = config
        self.ai_client = ai_client
        self.video_dir = Path(config.video_dir)
        self.report_path = Path(config.report_output_dir) / config.report_filename
        set_debug_dir(Path(config.debug_dir))

    def run(self) -> RunReport:
        """Run the full session and persist the report and video."""
        return asyncio.run(self.run_session())

    async def run_session(self) -> RunReport:
        start = time.time()
        cfg = self.config
        logger.info("=== Starting AI test case run for %s (%d cases) ===",
                    cfg.target_url, cfg.target_case_count)
        recorder = ResultRecorder(cfg.target_url, cfg.success_rate_excludes_na)
        try:
            reset_video_dir(self.video_dir)
        except OSError as e:
            logger.warning("Could not reset video directory %s: %s", self.video_dir, e)

        ai_client = self.ai_client
        if ai_client is None:
            try:
                ai_client = AIClient(model=cfg.ai_model, max_tokens=cfg.ai_max_tokens)
            except EnvironmentError as e:
                recorder.record_fatal(e)

        if ai_client is not None:
            try:
                await self._run_browser_session(recorder, ai_client)
            except Exception as e:
                recorder.record_fatal(e)

        try:
            video = finalize_video(self.video_dir, cfg.video_filename)
        except OSError as e:
            logger.error("Could not finalize video in %s: %s", self.video_dir, e)
            video = None
        report = recorder.build_report(
            usage=ai_client.usage if ai_client is not None else None,
            requested=cfg.target_case_count,
            video_path=str(video) if video else None,
        )
        generate_json_report(report, self.report_path)
        logger.info("Report saved to %s", self.report_path)
        logger.info("=== Run complete in %.1fs: %d passed, %d failed, %d N/A of %d ===",
                    time.time() - start, report.summary.passed, report.summary.failed,
                    report.summary.na, report.summary.total)
        return report

    async def _run_browser_session(self, recorder: ResultRecorder, ai_client: AIClient) -> None:
        cfg = self.config
        async with async_playwright() as p:
            browser = await launch_browser(p, headless=cfg.headless)
            try:
                context = await create_context(
                    browser, cfg.viewport, record_video_dir=str(self.video_dir),
                )
                try:
                    page = await context.new_page()
                    try:
                        page_context = await self._load_page_context(page)
                    except Exception as e:
                        recorder.record_fatal(e)
                        return

                    planner = Planner(
                        GenerationClient(
                            ai_client,
                            temperature=cfg.ai_temperature,
                            temperature_step=cfg.ai_temperature_step,
                            max_tokens=cfg.ai_max_tokens,
                        ),
                        batch_size=cfg.generation_batch_size,
                        max_attempts=cfg.max_generation_attempts,
                        language=cfg.language,
                    )
                    # The AI client is synchronous; keep the event loop free while it runs
                    outcome = await asyncio.to_thread(
                        planner.generate, page_context, cfg.target_case_count,
                    )
                    logger.info("Executing %d generated test case(s)", len(outcome.cases))

                    executor = CaseExecutor(page, cfg)
                    for case in outcome.cases:
                        recorder.record(await executor.run(case))
                finally:
                    # Closing the context flushes the video file
                    await self._close(context, "browser context")
            finally:
                await self._close(browser, "browser")

    @staticmethod
    async def _close(resource, name: str) -> None:
        """Close a browser resource; a failure here must not cost the recorded results."""
        try:
            await resource.close()
        except Exception as e:
            logger.warning("Failed to close %s: %s", name, e)

    async def _load_page_context(self, page: Page) -> str:
        cfg = self.config
        logger.info("Loading %s", cfg.target_url)
        await page.goto(
            cfg.target_url,
            wait_until="domcontentloaded",
            timeout=cfg.navigation_timeout_seconds * 1000,
        )
        await page.wait_for_timeout(cfg.settle_ms)
        context = await extract_page_context(page, max_depth=cfg.dom_max_depth)
        return truncate_context(context, cfg.context_max_chars)

    def run_screenshots(self) -> list[Path]:
        """Capture responsive screenshots for every configured device profile."""
        cfg = self.config
        return asyncio.run(capture_responsive_screenshots(
            cfg.target_url,
            Path(cfg.screenshot_dir),
            cfg.viewports,
            settle_ms=cfg.settle_ms,
            navigation_timeout_ms=cfg.navigation_timeout_seconds * 1000,
            headless=cfg.headless,
        ))
