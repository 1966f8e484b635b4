"""Configuration models for the smoke QA runner."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

MOBILE_SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 13_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/13.0 Mobile/15E148 Safari/604.1"
)
MOBILE_SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 14_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/14.0 Mobile/15E148 Safari/604.1"
)


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720
    name: str = "desktop"
    is_mobile: bool = False
    user_agent: Optional[str] = None


class FrameworkConfig(BaseModel):
    # Target
    target_url: str
    target_case_count: int = 10

    # Generation (refill loop)
    generation_batch_size: int = 10
    max_generation_attempts: int = 10

    # AI settings
    ai_model: str = "claude-sonnet-4-20250514"
    ai_max_tokens: int = 8000
    ai_temperature: float = 0.5
    ai_temperature_step: float = 0.05
    language: str = "Korean"  # language of titles, preconditions, steps and expectations

    # Page context
    dom_max_depth: int = 10
    context_max_chars: int = 20000

    # Timing
    navigation_timeout_seconds: int = 30
    action_timeout_seconds: int = 10
    new_tab_timeout_seconds: int = 10
    settle_ms: int = 2000  # after the first load, for SPA rendering
    case_settle_ms: int = 1000  # after each per-case reload
    highlight_ms: int = 1000
    default_wait_ms: int = 1000

    # Browser
    headless: bool = True
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    viewports: list[ViewportConfig] = Field(
        default_factory=lambda: [
            ViewportConfig(width=1920, height=1080, name="desktop"),
            ViewportConfig(
                width=768, height=1024, name="tablet",
                is_mobile=True, user_agent=MOBILE_SAFARI_IPAD,
            ),
            ViewportConfig(
                width=375, height=667, name="mobile",
                is_mobile=True, user_agent=MOBILE_SAFARI_IPHONE,
            ),
        ]
    )

    # Output
    report_output_dir: str = "./reports"
    report_filename: str = "tc-report.json"
    video_dir: str = "./videos"
    video_filename: str = "test-video.webm"
    screenshot_dir: str = "./screenshots"
    debug_dir: str = "./.smokeqa/debug"

    # Report semantics
    success_rate_excludes_na: bool = False

    @field_validator("target_case_count", "generation_batch_size", "max_generation_attempts")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("ai_temperature")
    @classmethod
    def temperature_in_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"ai_temperature must be between 0.0 and 1.0, got {v}")
        return v

    @classmethod
    def load(cls, path: str | Path) -> "FrameworkConfig":
        """Read a config previously written by ``save``."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Write the config as indented JSON, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
