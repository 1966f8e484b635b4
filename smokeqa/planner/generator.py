"""Generation client: turns a prompt into candidate test case designs."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from smokeqa.ai.client import AIClient
from smokeqa.ai.prompts.generation import GENERATION_SYSTEM_PROMPT
from smokeqa.models.report import TokenUsage
from smokeqa.models.test_case import TestCaseDesign

logger = logging.getLogger(__name__)

MAX_TEMPERATURE = 1.0


def parse_designs(raw_items: list[Any]) -> list[TestCaseDesign]:
    """Schema-check each raw item and keep the ones that validate."""
    designs = []
    for i, item in enumerate(raw_items):
        if not isinstance(item, dict):
            logger.warning("Skipping generated item %d: not an object", i)
            continue
        try:
            designs.append(TestCaseDesign.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "Skipping generated item %d (%s): %d schema error(s): %s",
                i, item.get("title", "untitled"), e.error_count(),
                e.errors()[0]["msg"],
            )
    return designs


class GenerationClient:
    """Calls the text-generation service and parses its output.

    Never raises: transport and parse failures are logged and come back as
    an empty batch so the refill loop can simply try again.
    """

    def __init__(
        self,
        ai_client: AIClient,
        temperature: float = 0.5,
        temperature_step: float = 0.05,
        max_tokens: int | None = None,
    ):
        self.ai_client = ai_client
        self.temperature = temperature
        self.temperature_step = temperature_step
        self.max_tokens = max_tokens

    @property
    def usage(self) -> TokenUsage:
        return self.ai_client.usage

    def temperature_for(self, attempt: int) -> float:
        """Sampling temperature for a 0-based attempt; grows slightly per retry."""
        return round(min(MAX_TEMPERATURE, self.temperature + attempt * self.temperature_step), 2)

    def invoke(self, prompt: str, attempt: int = 0) -> list[TestCaseDesign]:
        try:
            text = self.ai_client.complete(
                system_prompt=GENERATION_SYSTEM_PROMPT,
                user_message=prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature_for(attempt),
            )
        except Exception as e:
            logger.error("Test case generation request failed: %s", e)
            return []

        try:
            raw_items = AIClient.parse_json_array(text)
        except ValueError as e:
            logger.error("Could not parse generated test cases: %s", e)
            logger.debug("Raw response (first 500 chars): %s", text[:500])
            return []

        designs = parse_designs(raw_items)
        logger.info("Generation returned %d candidate(s) (%d raw)", len(designs), len(raw_items))
        return designs
