"""Result recorder: accumulates case outcomes and builds the run report."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from smokeqa.models.report import (
    CaseStatus,
    RunReport,
    Summary,
    TestCaseResult,
    TokenUsage,
)

logger = logging.getLogger(__name__)

# (substring, user-facing message) for whole-run network failures
FATAL_ERROR_MESSAGES: tuple[tuple[str, str], ...] = (
    ("ERR_NAME_NOT_RESOLVED", "URL을 찾을 수 없습니다. 주소를 다시 확인해주세요."),
    ("getaddrinfo", "URL을 찾을 수 없습니다. 주소를 다시 확인해주세요."),
    ("ERR_CONNECTION_REFUSED", "서버에 연결할 수 없습니다. 서버가 실행 중인지 확인해주세요."),
    ("ECONNREFUSED", "서버에 연결할 수 없습니다. 서버가 실행 중인지 확인해주세요."),
    ("ERR_INTERNET_DISCONNECTED", "네트워크에 연결되어 있지 않습니다."),
)


def describe_fatal_error(error: BaseException | str) -> str:
    """Rewrite known network errors for users; pass anything else through verbatim."""
    message = str(error)
    for needle, friendly in FATAL_ERROR_MESSAGES:
        if needle in message:
            return friendly
    return message


def success_rate(passed: int, total: int, na: int = 0, exclude_na: bool = False) -> int:
    """Passed cases as a rounded percentage of the chosen denominator."""
    denominator = total - na if exclude_na else total
    if denominator <= 0:
        return 0
    return int(passed / denominator * 100 + 0.5)


class ResultRecorder:
    """Collects one TestCaseResult per executed case plus an optional fatal error."""

    def __init__(self, target_url: str, exclude_na_from_rate: bool = False):
        self.target_url = target_url
        self.exclude_na_from_rate = exclude_na_from_rate
        self.results: list[TestCaseResult] = []
        self.error: Optional[str] = None
        self.passed = 0
        self.failed = 0
        self.blocked = 0
        self.na = 0

    def record(self, result: TestCaseResult) -> None:
        self.results.append(result)
        if result.result == CaseStatus.PASS:
            self.passed += 1
            logger.info("[PASS] %s: %s", result.id, result.title)
        elif result.result == CaseStatus.FAIL:
            self.failed += 1
            logger.error("[FAIL] %s: %s (%s) - %s", result.id, result.title,
                         result.failure_type, result.details.splitlines()[0] if result.details else "")
        elif result.result == CaseStatus.BLOCKED:
            self.blocked += 1
            logger.warning("[BLOCKED] %s: %s", result.id, result.title)
        else:
            self.na += 1
            logger.warning("[N/A] %s: %s - %s", result.id, result.title, result.details)

    def record_fatal(self, error: BaseException | str) -> None:
        """Record a whole-run failure. Cases recorded so far are discarded."""
        self.error = describe_fatal_error(error)
        self.results = []
        self.passed = self.failed = self.blocked = self.na = 0
        logger.error("Fatal run error: %s", error)

    def summary(self, requested: Optional[int] = None) -> Summary:
        total = len(self.results)
        warning = None
        if requested is not None and self.error is None and total < requested:
            warning = f"Requested {requested} test cases but only {total} could be generated."
        return Summary(
            total=total,
            passed=self.passed,
            failed=self.failed,
            blocked=self.blocked,
            na=self.na,
            success_rate=success_rate(self.passed, total, self.na, self.exclude_na_from_rate),
            warning=warning,
        )

    def build_report(
        self,
        usage: TokenUsage | None = None,
        requested: Optional[int] = None,
        video_path: Optional[str] = None,
    ) -> RunReport:
        return RunReport(
            url=self.target_url,
            timestamp=datetime.now(timezone.utc).isoformat(),
            error=self.error,
            usage=usage or TokenUsage(),
            test_cases=list(self.results),
            summary=self.summary(requested),
            video_path=video_path,
        )
