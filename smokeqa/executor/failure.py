"""Failure classification for step errors."""

from __future__ import annotations

from smokeqa.models.report import FailureKind

# Checked in order; first substring found in the lowercased message wins.
FAILURE_PATTERNS: tuple[tuple[str, FailureKind], ...] = (
    ("not visible", FailureKind.ASSERTION),
    ("to be visible", FailureKind.ASSERTION),
    ("expected", FailureKind.ASSERTION),
    ("assert", FailureKind.ASSERTION),
    ("strict mode violation", FailureKind.SELECTOR),
    ("locator", FailureKind.SELECTOR),
    ("selector", FailureKind.SELECTOR),
    ("no element", FailureKind.SELECTOR),
    ("not attached", FailureKind.SELECTOR),
    ("timeout", FailureKind.NAVIGATION),
    ("navigat", FailureKind.NAVIGATION),
    ("net::err", FailureKind.NAVIGATION),
    ("target closed", FailureKind.NAVIGATION),
    ("has been closed", FailureKind.NAVIGATION),
)


def classify_failure(error: BaseException | str) -> FailureKind:
    """Map an error (or its message) to a failure kind by message content."""
    message = str(error).lower()
    for pattern, kind in FAILURE_PATTERNS:
        if pattern in message:
            return kind
    return FailureKind.GENERAL
