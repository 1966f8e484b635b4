"""Tests for the session controller."""

import json
import os
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from smokeqa.orchestrator import Orchestrator

from conftest import DISTINCT_TITLES, make_design_dict, make_page


class _Browser:
    """Patches the Playwright entry points used by the orchestrator."""

    def __init__(self, page, record_video: bool = True):
        self.page = page
        self.context = AsyncMock()
        self.context.new_page.return_value = page
        self.browser = AsyncMock()
        self.record_video = record_video
        self.playwright_cm = AsyncMock()
        self.playwright_cm.__aenter__.return_value = Mock()

    async def _create_context(self, browser, viewport, record_video_dir=None):
        if self.record_video and record_video_dir:
            Path(record_video_dir, "page@1a2b.webm").write_bytes(b"x" * 64)
        return self.context

    def __enter__(self):
        self._patches = [
            patch("smokeqa.orchestrator.async_playwright", return_value=self.playwright_cm),
            patch("smokeqa.orchestrator.launch_browser", AsyncMock(return_value=self.browser)),
            patch("smokeqa.orchestrator.create_context", side_effect=self._create_context),
        ]
        for p in self._patches:
            p.start()
        return self

    def __exit__(self, *exc):
        for p in reversed(self._patches):
            p.stop()
        return False


def _generated(titles: list[str]) -> str:
    return json.dumps([
        make_design_dict(title, f"#el-{i}", case_id=f"TC-{i + 1:03d}")
        for i, title in enumerate(titles)
    ], ensure_ascii=False)


def _ai_returning(mock_ai_client, text: str):
    def complete(**kwargs):
        mock_ai_client.usage.add(1000, 250)
        return text
    mock_ai_client.complete.side_effect = complete
    return mock_ai_client


@pytest.mark.asyncio
class TestRunSession:
    """Tests for Orchestrator.run_session."""

    async def test_full_run(self, framework_config, mock_ai_client):
        page, _ = make_page()
        ai_client = _ai_returning(mock_ai_client, _generated(DISTINCT_TITLES[:3]))

        with _Browser(page) as fake, \
                patch("smokeqa.orchestrator.extract_page_context",
                      AsyncMock(return_value="<body><button id='el-0'>Go</button></body>")):
            report = await Orchestrator(framework_config, ai_client=ai_client).run_session()

        assert report.error is None
        assert [c.id for c in report.test_cases] == ["TC-001", "TC-002", "TC-003"]
        assert report.summary.total == 3
        assert report.summary.passed == 3
        assert report.summary.success_rate == 100
        assert report.summary.warning is None
        assert report.usage.total_tokens == 1250
        assert report.usage.prompt_tokens == 1000

        video = Path(framework_config.video_dir) / "test-video.webm"
        assert report.video_path == str(video)
        assert video.exists()

        saved = json.loads((Path(framework_config.report_output_dir) / "tc-report.json")
                           .read_text(encoding="utf-8"))
        assert saved["summary"]["total"] == len(saved["testCases"]) == 3
        assert saved["usage"]["totalTokens"] == 1250

        fake.context.close.assert_awaited_once()
        fake.browser.close.assert_awaited_once()

    async def test_shortfall_warning(self, framework_config, mock_ai_client):
        config = framework_config.model_copy(update={"max_generation_attempts": 2})
        ai_client = _ai_returning(mock_ai_client, _generated(DISTINCT_TITLES[:2]))

        with _Browser(make_page()[0]), \
                patch("smokeqa.orchestrator.extract_page_context", AsyncMock(return_value="<body/>")):
            report = await Orchestrator(config, ai_client=ai_client).run_session()

        assert report.error is None
        assert report.summary.total == 2
        assert report.summary.warning == "Requested 3 test cases but only 2 could be generated."
        assert ai_client.complete.call_count == 2

    async def test_unresolvable_host(self, framework_config, mock_ai_client):
        page, _ = make_page()
        page.goto.side_effect = PlaywrightError(
            "page.goto: net::ERR_NAME_NOT_RESOLVED at https://nope.invalid/",
        )
        config = framework_config.model_copy(update={"target_url": "https://nope.invalid"})

        with _Browser(page, record_video=False) as fake:
            report = await Orchestrator(config, ai_client=mock_ai_client).run_session()

        assert report.error == "URL을 찾을 수 없습니다. 주소를 다시 확인해주세요."
        assert report.test_cases == []
        assert report.summary.total == 0
        assert report.summary.warning is None
        assert report.video_path is None
        mock_ai_client.complete.assert_not_called()
        fake.context.close.assert_awaited_once()
        fake.browser.close.assert_awaited_once()

        saved = json.loads((Path(config.report_output_dir) / "tc-report.json")
                           .read_text(encoding="utf-8"))
        assert saved["error"] == "URL을 찾을 수 없습니다. 주소를 다시 확인해주세요."
        assert saved["testCases"] == []

    async def test_extraction_failure_is_fatal(self, framework_config, mock_ai_client):
        with _Browser(make_page()[0]), \
                patch("smokeqa.orchestrator.extract_page_context",
                      AsyncMock(side_effect=PlaywrightError("Execution context was destroyed"))):
            report = await Orchestrator(framework_config, ai_client=mock_ai_client).run_session()

        assert report.error == "Execution context was destroyed"
        assert report.test_cases == []

    async def test_missing_api_key(self, framework_config):
        with patch.dict(os.environ, {}, clear=True), \
                patch("smokeqa.orchestrator.async_playwright") as playwright:
            report = await Orchestrator(framework_config).run_session()

        assert "ANTHROPIC_API_KEY" in report.error
        assert report.summary.total == 0
        assert report.usage.total_tokens == 0
        playwright.assert_not_called()

    async def test_generation_failures_still_produce_report(self, framework_config,
                                                            mock_ai_client):
        mock_ai_client.complete.side_effect = RuntimeError("overloaded")

        with _Browser(make_page()[0]), \
                patch("smokeqa.orchestrator.extract_page_context", AsyncMock(return_value="<body/>")):
            report = await Orchestrator(framework_config, ai_client=mock_ai_client).run_session()

        assert report.error is None
        assert report.test_cases == []
        assert report.summary.warning == "Requested 3 test cases but only 0 could be generated."
        assert mock_ai_client.complete.call_count == framework_config.max_generation_attempts

    async def test_video_failure_still_writes_report(self, framework_config, mock_ai_client):
        ai_client = _ai_returning(mock_ai_client, _generated(DISTINCT_TITLES[:3]))

        with _Browser(make_page()[0]), \
                patch("smokeqa.orchestrator.extract_page_context", AsyncMock(return_value="<body/>")), \
                patch("smokeqa.orchestrator.finalize_video",
                      side_effect=PermissionError("video locked")):
            report = await Orchestrator(framework_config, ai_client=ai_client).run_session()

        assert report.error is None
        assert report.summary.total == 3
        assert report.video_path is None
        saved = json.loads((Path(framework_config.report_output_dir) / "tc-report.json")
                           .read_text(encoding="utf-8"))
        assert saved["summary"]["total"] == 3
        assert saved["videoPath"] is None

    async def test_video_dir_reset_failure_is_not_fatal(self, framework_config, mock_ai_client):
        ai_client = _ai_returning(mock_ai_client, _generated(DISTINCT_TITLES[:3]))
        Path(framework_config.video_dir).mkdir(parents=True, exist_ok=True)

        with _Browser(make_page()[0]), \
                patch("smokeqa.orchestrator.extract_page_context", AsyncMock(return_value="<body/>")), \
                patch("smokeqa.orchestrator.reset_video_dir", side_effect=OSError("busy")):
            report = await Orchestrator(framework_config, ai_client=ai_client).run_session()

        assert report.error is None
        assert report.summary.total == 3
        assert (Path(framework_config.report_output_dir) / "tc-report.json").exists()

    async def test_teardown_failure_keeps_results(self, framework_config, mock_ai_client):
        ai_client = _ai_returning(mock_ai_client, _generated(DISTINCT_TITLES[:3]))

        with _Browser(make_page()[0]) as fake, \
                patch("smokeqa.orchestrator.extract_page_context", AsyncMock(return_value="<body/>")):
            fake.context.close.side_effect = PlaywrightError(
                "Target page, context or browser has been closed",
            )
            fake.browser.close.side_effect = PlaywrightError("Browser has been closed")
            report = await Orchestrator(framework_config, ai_client=ai_client).run_session()

        assert report.error is None
        assert [c.id for c in report.test_cases] == ["TC-001", "TC-002", "TC-003"]
        assert report.summary.passed == 3
        fake.browser.close.assert_awaited_once()


class TestRunScreenshots:
    """Tests for Orchestrator.run_screenshots."""

    def test_delegates_with_config(self, framework_config):
        capture = AsyncMock(return_value=[Path("desktop.png")])
        with patch("smokeqa.orchestrator.capture_responsive_screenshots", capture):
            saved = Orchestrator(framework_config).run_screenshots()

        assert saved == [Path("desktop.png")]
        args, kwargs = capture.call_args
        assert args[0] == "https://example.com"
        assert args[1] == Path(framework_config.screenshot_dir)
        assert [v.name for v in args[2]] == ["desktop", "tablet", "mobile"]
        assert kwargs["navigation_timeout_ms"] == 30000
