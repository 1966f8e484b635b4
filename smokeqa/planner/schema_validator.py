"""Structural validation and de-duplication of generated test case designs."""

from __future__ import annotations

import logging
import re
from typing import Optional

from smokeqa.ai.prompts.generation import format_case_id
from smokeqa.models.test_case import (
    INTERACTION_ACTIONS,
    SELECTOR_ACTIONS,
    ActionType,
    TestCaseDesign,
)

logger = logging.getLogger(__name__)

TITLE_SIMILARITY_THRESHOLD = 0.6

# Text-matching and XPath selectors are not part of the CSS subset the executor accepts.
_FORBIDDEN_SELECTOR_PATTERNS = (
    re.compile(r":has-text\(", re.IGNORECASE),
    re.compile(r":text(-is|-matches)?\(", re.IGNORECASE),
    re.compile(r":contains\(", re.IGNORECASE),
    re.compile(r"(^|>>\s*)text\s*=", re.IGNORECASE),
    re.compile(r"(^|>>\s*)xpath\s*=", re.IGNORECASE),
    re.compile(r"^\(?//"),
)

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    return _WHITESPACE_RE.sub("", title)


def title_similarity(a: str, b: str) -> float:
    """Jaccard index over the character sets of two whitespace-stripped titles."""
    set_a = set(normalize_title(a))
    set_b = set(normalize_title(b))
    if not set_a and not set_b:
        return 1.0
    return len(set_a & set_b) / len(set_a | set_b)


def has_forbidden_selector(selector: str) -> bool:
    return any(p.search(selector.strip()) for p in _FORBIDDEN_SELECTOR_PATTERNS)


def rejection_reason(
    design: TestCaseDesign,
    accepted_titles: list[str],
    signatures: set[str],
) -> Optional[str]:
    """Return why a design must be dropped, or None when it is acceptable."""
    steps = design.steps
    if not steps:
        return "missing, empty or non-array steps"

    if design.signature in signatures:
        return "duplicate action/selector sequence"

    for title in accepted_titles:
        similarity = title_similarity(design.title, title)
        if similarity > TITLE_SIMILARITY_THRESHOLD:
            return f"title too similar to '{title}' ({similarity:.2f})"

    if len(steps) == 1 and steps[0].action == ActionType.CHECK:
        return "single check step is not an end-to-end test"

    actions = {step.action for step in steps}
    if actions & INTERACTION_ACTIONS and ActionType.CHECK not in actions:
        return "click without a check step"

    for i, step in enumerate(steps):
        if step.action in SELECTOR_ACTIONS and not step.selector:
            return f"step {i}: {step.action.value} requires a selector"
        if step.selector and has_forbidden_selector(step.selector):
            return f"step {i}: unsupported selector '{step.selector}'"

    return None


def filter_candidates(
    candidates: list[TestCaseDesign],
    accepted_titles: list[str],
    signatures: set[str],
    limit: Optional[int] = None,
) -> list[TestCaseDesign]:
    """Keep the acceptable candidates and give them their final sequential IDs.

    ``accepted_titles`` and ``signatures`` are updated in place with every
    accepted design, so later candidates in the same batch (and later
    batches) are checked against them. The next ID continues from
    ``len(accepted_titles)``. At most ``limit`` designs are accepted when given.
    """
    accepted = []
    for design in candidates:
        if limit is not None and len(accepted) >= limit:
            logger.debug("Batch limit of %d reached; ignoring remaining candidates", limit)
            break
        reason = rejection_reason(design, accepted_titles, signatures)
        if reason:
            logger.info("Rejected %s '%s': %s", design.id or "?", design.title, reason)
            continue

        final = design.model_copy(update={"id": format_case_id(len(accepted_titles) + 1)})
        accepted_titles.append(final.title)
        signatures.add(final.signature)
        accepted.append(final)
        logger.debug("Accepted %s: %s", final.id, final.title)

    return accepted
