"""Refill loop: requests generated test cases until the target count is met."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from smokeqa.ai.prompts.generation import build_generation_prompt, format_case_id
from smokeqa.models.test_case import TestCaseDesign

from .generator import GenerationClient
from .schema_validator import filter_candidates

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    NEED_MORE = "need_more"
    REQUEST = "request"
    VALIDATE = "validate"
    SATISFIED = "satisfied"
    EXHAUSTED = "exhausted"


@dataclass
class GenerationState:
    """Run-scoped accumulator threaded through the loop and the validator."""

    accepted: list[TestCaseDesign] = field(default_factory=list)
    titles: list[str] = field(default_factory=list)
    signatures: set[str] = field(default_factory=set)
    attempts: int = 0


@dataclass
class GenerationOutcome:
    cases: list[TestCaseDesign]
    requested: int
    attempts: int
    state: LoopState

    @property
    def shortfall(self) -> int:
        return max(0, self.requested - len(self.cases))


class Planner:
    """Drives prompt building, generation and validation until satisfied or out of attempts."""

    def __init__(
        self,
        generation_client: GenerationClient,
        batch_size: int = 10,
        max_attempts: int = 10,
        language: str = "Korean",
    ):
        self.generation_client = generation_client
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.language = language

    def generate(
        self,
        page_context: str,
        target_count: int,
        state: GenerationState | None = None,
    ) -> GenerationOutcome:
        state = state or GenerationState()
        loop_state = LoopState.NEED_MORE
        logger.info("Generating %d test cases (batch size %d, up to %d attempts)",
                    target_count, self.batch_size, self.max_attempts)

        while loop_state == LoopState.NEED_MORE:
            remaining = target_count - len(state.accepted)
            if remaining <= 0:
                loop_state = LoopState.SATISFIED
                break
            if state.attempts >= self.max_attempts:
                loop_state = LoopState.EXHAUSTED
                break

            loop_state = LoopState.REQUEST
            request_count = min(self.batch_size, remaining)
            start_id = format_case_id(len(state.accepted) + 1)
            prompt = build_generation_prompt(
                page_context=page_context,
                count=request_count,
                start_id=start_id,
                exclude_titles=list(state.titles),
                language=self.language,
            )
            logger.info("Attempt %d/%d: requesting %d case(s) starting at %s",
                        state.attempts + 1, self.max_attempts, request_count, start_id)
            candidates = self.generation_client.invoke(prompt, attempt=state.attempts)
            state.attempts += 1

            loop_state = LoopState.VALIDATE
            accepted = filter_candidates(
                candidates, state.titles, state.signatures, limit=remaining,
            )
            state.accepted.extend(accepted)
            logger.info("Accepted %d of %d candidate(s); %d/%d total",
                        len(accepted), len(candidates),
                        len(state.accepted), target_count)
            loop_state = LoopState.NEED_MORE

        if loop_state == LoopState.EXHAUSTED:
            logger.warning("Generation budget exhausted after %d attempts: %d/%d cases",
                           state.attempts, len(state.accepted), target_count)

        return GenerationOutcome(
            cases=list(state.accepted),
            requested=target_count,
            attempts=state.attempts,
            state=loop_state,
        )
