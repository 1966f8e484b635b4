"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from smokeqa.models.config import FrameworkConfig
from smokeqa.models.report import TokenUsage
from smokeqa.models.test_case import TestCaseDesign


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def framework_config(tmp_path: Path) -> FrameworkConfig:
    """Config with every output under tmp_path and no artificial delays."""
    return FrameworkConfig(
        target_url="https://example.com",
        target_case_count=3,
        settle_ms=0,
        case_settle_ms=0,
        highlight_ms=0,
        report_output_dir=str(tmp_path / "reports"),
        video_dir=str(tmp_path / "videos"),
        screenshot_dir=str(tmp_path / "screenshots"),
        debug_dir=str(tmp_path / "debug"),
    )


# ============================================================================
# Design Fixtures
# ============================================================================


def make_design_dict(
    title: str,
    selector: str = "#target",
    case_id: str = "TC-001",
    steps: Any = None,
) -> dict:
    """Raw generator output for one well-formed case."""
    if steps is None:
        steps = [
            {"action": "click", "selector": selector, "desc": "click it"},
            {"action": "check", "selector": f"{selector}-result", "desc": "result shows"},
        ]
    return {
        "id": case_id,
        "title": title,
        "precondition": "사이트 접속",
        "testStep": "1. 클릭\n2. 확인",
        "expectedResults": "결과가 표시된다",
        "steps": steps,
    }


def make_design(title: str, selector: str = "#target", **kwargs) -> TestCaseDesign:
    return TestCaseDesign.model_validate(make_design_dict(title, selector, **kwargs))


# Titles with pairwise disjoint character sets, so none is a near-duplicate of another
DISTINCT_TITLES = ["ab", "cd", "ef", "gh", "ij", "kl", "mn", "op", "qr", "st", "uv", "wx"]


@pytest.fixture
def distinct_designs() -> list[TestCaseDesign]:
    return [make_design(title, f"#el-{i}") for i, title in enumerate(DISTINCT_TITLES)]


@pytest.fixture
def sample_design() -> TestCaseDesign:
    return TestCaseDesign.model_validate({
        "id": "TC-001",
        "title": "로고 클릭 시 메인 이동",
        "precondition": "사이트 접속",
        "testStep": "1. 로고 클릭\n2. URL 확인",
        "expectedResults": "메인 페이지로 이동한다",
        "steps": [
            {"action": "check", "selector": "#logo", "desc": "로고 노출"},
            {"action": "click", "selector": "nav .home", "desc": "홈 클릭"},
            {"action": "wait", "value": 1000, "desc": "대기"},
            {"action": "checkUrl", "value": "/main", "desc": "URL 확인"},
        ],
    })


# ============================================================================
# Playwright Mock Fixtures
# ============================================================================


def make_page(url: str = "https://example.com/") -> tuple[AsyncMock, AsyncMock]:
    """Build a mock page whose ``locator(...).first`` is a shared mock locator.

    ``element_handle`` resolves to None so highlighting is skipped unless a
    test opts in.
    """
    locator = AsyncMock()
    locator.element_handle = AsyncMock(return_value=None)
    root = Mock()
    root.first = locator

    page = AsyncMock()
    page.url = url
    page.locator = Mock(return_value=root)
    page.title = AsyncMock(return_value="Example Domain")

    context = Mock()
    context.pages = [page]
    context.clear_cookies = AsyncMock()
    page.context = context
    return page, locator


@pytest.fixture
def mock_page_and_locator():
    return make_page()


@pytest.fixture
def mock_page(mock_page_and_locator):
    return mock_page_and_locator[0]


@pytest.fixture
def mock_locator(mock_page_and_locator):
    return mock_page_and_locator[1]


# ============================================================================
# AI Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_anthropic_response():
    """Factory for messages.create responses."""
    def _make(text: str, input_tokens: int = 100, output_tokens: int = 50,
              stop_reason: str = "end_turn"):
        response = Mock()
        block = Mock()
        block.text = text
        response.content = [block]
        response.usage = Mock(input_tokens=input_tokens, output_tokens=output_tokens)
        response.stop_reason = stop_reason
        return response
    return _make


@pytest.fixture
def mock_ai_client():
    """An AIClient stand-in with real usage accounting."""
    client = Mock()
    client.usage = TokenUsage()
    return client
