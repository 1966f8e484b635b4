"""Run report data structures persisted at the end of a run."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CaseStatus(str, Enum):
    PASS = "Pass"
    FAIL = "Fail"
    BLOCKED = "Blocked"
    NA = "N/A"


class FailureKind(str, Enum):
    SELECTOR = "Fail-Selector"
    ASSERTION = "Fail-Assertion"
    NAVIGATION = "Fail-Navigation"
    GENERAL = "Fail-General"


class TestCaseResult(BaseModel):
    """Outcome of one executed case. Field names follow the report's JSON keys."""

    __test__ = False

    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    id: str
    title: str
    precondition: str = ""
    test_step: str = Field(default="", alias="testStep")
    expected_results: str = Field(default="", alias="expectedResults")
    result: CaseStatus
    failure_type: Optional[FailureKind] = Field(default=None, alias="failureType")
    details: str = ""
    code: str = ""


class TokenUsage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt_tokens: int = Field(default=0, alias="promptTokens")
    completion_tokens: int = Field(default=0, alias="completionTokens")
    total_tokens: int = Field(default=0, alias="totalTokens")

    def add(self, prompt_tokens: int, completion_tokens: int) -> None:
        self.prompt_tokens += prompt_tokens
        self.completion_tokens += completion_tokens
        self.total_tokens += prompt_tokens + completion_tokens


class Summary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    passed: int = 0
    failed: int = 0
    blocked: int = 0
    na: int = 0
    success_rate: int = Field(default=0, alias="successRate")  # percent
    warning: Optional[str] = None


class RunReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    timestamp: str
    error: Optional[str] = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    test_cases: list[TestCaseResult] = Field(default_factory=list, alias="testCases")
    summary: Summary = Field(default_factory=Summary)
    video_path: Optional[str] = Field(default=None, alias="videoPath")

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
