"""Claude API client wrapper used for test case generation."""

from __future__ import annotations

import json
import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Optional

import anthropic

from smokeqa.models.report import TokenUsage

logger = logging.getLogger(__name__)

# Where AI exchanges are dumped; the session controller points this at the run's debug dir
_debug_dir: Path | None = None
DEFAULT_DEBUG_DIR = Path(".smokeqa") / "debug"

_FENCE_RE = re.compile(r"```(?:json|javascript|js)?\s*", re.IGNORECASE)


def set_debug_dir(path: Path) -> None:
    global _debug_dir
    path.mkdir(parents=True, exist_ok=True)
    _debug_dir = path


def _get_debug_dir() -> Path:
    debug_dir = _debug_dir if _debug_dir is not None else DEFAULT_DEBUG_DIR
    debug_dir.mkdir(parents=True, exist_ok=True)
    return debug_dir


class AIClient:
    """Synchronous Claude client that keeps a running token count for the report."""

    def __init__(self, model: str = "claude-sonnet-4-20250514", max_tokens: int = 8000):
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise EnvironmentError(
                "ANTHROPIC_API_KEY is not set; export it before running smokeqa."
            )
        self.client = anthropic.Anthropic(api_key=api_key, timeout=300.0)
        self.model = model
        self.max_tokens = max_tokens
        self.usage = TokenUsage()
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.5,
    ) -> str:
        """Run one Messages API call and return the concatenated text blocks.

        API errors are logged, dumped to the debug directory and re-raised.
        """
        self._call_count += 1
        call_number = self._call_count
        limit = max_tokens or self.max_tokens
        logger.info("AI call #%d to %s (temperature %.2f, prompt %d chars)",
                    call_number, self.model, temperature, len(user_message))

        started = time.monotonic()
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=limit,
                temperature=temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_message}],
            )
        except anthropic.APIError as e:
            logger.error("AI call #%d failed: %s", call_number, e)
            self._save_exchange_log(
                call_number=call_number,
                temperature=temperature,
                system_prompt=system_prompt,
                user_message=user_message,
                response_text="",
                error=str(e),
            )
            raise

        text = "".join(block.text for block in response.content if hasattr(block, "text"))
        self._record_usage(response)
        logger.info("AI call #%d answered in %.1fs: %d chars, %d tokens used so far",
                    call_number, time.monotonic() - started, len(text), self.usage.total_tokens)
        if response.stop_reason == "max_tokens":
            logger.warning(
                "AI response was truncated at max_tokens=%d; the JSON array may be incomplete.",
                limit,
            )

        self._save_exchange_log(
            call_number=call_number,
            temperature=temperature,
            system_prompt=system_prompt,
            user_message=user_message,
            response_text=text,
            error=None,
        )
        return text

    def _record_usage(self, response: Any) -> None:
        usage = getattr(response, "usage", None)
        if usage is None:
            return
        prompt_tokens = getattr(usage, "input_tokens", 0) or 0
        completion_tokens = getattr(usage, "output_tokens", 0) or 0
        if isinstance(prompt_tokens, int) and isinstance(completion_tokens, int):
            self.usage.add(prompt_tokens, completion_tokens)

    # ------------------------------------------------------------------
    # Response parsing
    # ------------------------------------------------------------------

    @staticmethod
    def strip_code_fences(text: str) -> str:
        """Remove markdown code fence markers wherever they appear."""
        return _FENCE_RE.sub("", text).replace("```", "").strip()

    @staticmethod
    def parse_json_array(text: str) -> list[Any]:
        """Parse an AI response that should contain a JSON array.

        Accepts a bare array, an array wrapped in code fences or prose, and
        an object that wraps the array under ``testCases``/``test_cases``.
        Raises ``ValueError`` when no array can be recovered.
        """
        cleaned = AIClient.strip_code_fences(text)
        if not cleaned:
            raise ValueError("AI returned an empty response")

        try:
            data = json.loads(cleaned, strict=False)
        except json.JSONDecodeError:
            # Drop prose around the array and trailing commas, then retry
            first = cleaned.find("[")
            last = cleaned.rfind("]")
            if first == -1 or last <= first:
                raise ValueError("AI response contains no JSON array")
            candidate = re.sub(r",\s*([}\]])", r"\1", cleaned[first:last + 1])
            try:
                data = json.loads(candidate, strict=False)
            except json.JSONDecodeError as e:
                raise ValueError(f"AI returned invalid JSON: {e}") from e

        if isinstance(data, dict):
            for key in ("testCases", "test_cases"):
                if isinstance(data.get(key), list):
                    return data[key]
            raise ValueError("AI returned a JSON object without a test case array")
        if not isinstance(data, list):
            raise ValueError(f"AI returned {type(data).__name__}, expected a JSON array")
        return data

    # ------------------------------------------------------------------
    # Debug dumps
    # ------------------------------------------------------------------

    def _save_exchange_log(
        self,
        call_number: int,
        temperature: float,
        system_prompt: str,
        user_message: str,
        response_text: str,
        error: str | None,
    ) -> None:
        """Dump one exchange as ``generation_NNN_<timestamp>.json``; never fails the call."""
        record = {
            "call": call_number,
            "model": self.model,
            "temperature": temperature,
            "at": time.strftime("%Y-%m-%dT%H:%M:%S"),
            "system": system_prompt,
            "user": user_message,
            "response": response_text,
            "error": error,
            "usage": self.usage.model_dump(by_alias=True),
        }
        try:
            path = _get_debug_dir() / f"generation_{call_number:03d}_{time.strftime('%Y%m%d_%H%M%S')}.json"
            path.write_text(json.dumps(record, ensure_ascii=False, indent=2), encoding="utf-8")
            logger.debug("AI exchange #%d written to %s", call_number, path)
        except OSError as e:
            logger.debug("Could not write AI exchange #%d: %s", call_number, e)
