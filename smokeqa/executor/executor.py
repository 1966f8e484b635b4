"""Case executor: runs one test case design against the shared page."""

from __future__ import annotations

import logging
import time

from playwright.async_api import Page

from smokeqa.models.config import FrameworkConfig
from smokeqa.models.report import CaseStatus, FailureKind, TestCaseResult
from smokeqa.models.test_case import ActionType, Step, TestCaseDesign

from .action_runner import run_step, show_case_overlay
from .failure import classify_failure

logger = logging.getLogger(__name__)

NO_STEPS_LOG = "No executable steps were generated for this test case"
NO_VALIDATION_LOG = "No validation step: the case never checks its outcome"

_CLEAR_STORAGE_SCRIPT = """() => {
    try { window.localStorage.clear(); } catch (e) {}
    try { window.sessionStorage.clear(); } catch (e) {}
}"""


def clean_steps(steps: list[Step]) -> list[Step]:
    """Drop a wait that opens the case; waiting before the first real action adds nothing."""
    if steps and steps[0].action == ActionType.WAIT:
        return list(steps[1:])
    return list(steps)


class CaseExecutor:
    """Executes test case designs one at a time on a single page.

    Each case starts from a clean slate: extra tabs closed, cookies and
    web storage cleared, and the target URL reloaded.
    """

    def __init__(self, page: Page, config: FrameworkConfig):
        self.page = page
        self.config = config
        self.target_url = config.target_url

    async def run(self, case: TestCaseDesign) -> TestCaseResult:
        start = time.time()
        logger.info("Running %s: %s", case.id, case.title)

        if not case.steps:
            return self._result(case, CaseStatus.FAIL, NO_STEPS_LOG, FailureKind.GENERAL)

        try:
            await self._isolate()
        except Exception as e:
            logger.warning("Could not reset the page before %s: %s", case.id, e)
            return self._result(case, CaseStatus.NA, f"Could not load the target page: {e}")

        await show_case_overlay(self.page, case.id, case.title)

        steps = clean_steps(case.steps)
        for i, step in enumerate(steps):
            logger.debug("  Step %d/%d: %s %s", i + 1, len(steps),
                         step.action.value, step.desc or step.selector or step.value or "")
            try:
                await run_step(
                    self.page,
                    step,
                    timeout=self.config.action_timeout_seconds * 1000,
                    new_tab_timeout=self.config.new_tab_timeout_seconds * 1000,
                    highlight_ms=self.config.highlight_ms,
                    default_wait_ms=self.config.default_wait_ms,
                )
            except Exception as e:
                kind = classify_failure(e)
                logger.debug("  Step %d failed (%s) after %.1fs: %s",
                             i + 1, kind.value, time.time() - start, e)
                return self._result(case, CaseStatus.FAIL, str(e), kind)

        if not any(step.action == ActionType.CHECK for step in steps):
            return self._result(case, CaseStatus.FAIL, NO_VALIDATION_LOG, FailureKind.GENERAL)

        logger.debug("  %s finished in %.1fs", case.id, time.time() - start)
        return self._result(case, CaseStatus.PASS)

    async def _isolate(self) -> None:
        context = self.page.context
        for other in list(context.pages):
            if other is not self.page:
                await other.close()
        await context.clear_cookies()

        nav_timeout = self.config.navigation_timeout_seconds * 1000
        await self.page.goto(self.target_url, wait_until="domcontentloaded", timeout=nav_timeout)
        await self.page.evaluate(_CLEAR_STORAGE_SCRIPT)
        await self.page.reload(wait_until="domcontentloaded", timeout=nav_timeout)
        await self.page.wait_for_timeout(self.config.case_settle_ms)

    @staticmethod
    def _result(
        case: TestCaseDesign,
        status: CaseStatus,
        details: str = "",
        failure_type: FailureKind | None = None,
    ) -> TestCaseResult:
        return TestCaseResult(
            id=case.id,
            title=case.title,
            precondition=case.precondition,
            test_step=case.test_step,
            expected_results=case.expected_results,
            result=status,
            failure_type=failure_type,
            details=details,
            code=case.steps_json(),
        )
