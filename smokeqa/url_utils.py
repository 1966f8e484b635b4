"""Shared URL utilities: normalize target URLs and match expected fragments."""

from __future__ import annotations

from urllib.parse import unquote, urlparse


def normalize_target_url(url: str) -> str:
    """Add an https scheme when the user typed a bare host."""
    url = url.strip()
    parsed = urlparse(url)
    if not parsed.scheme:
        return f"https://{url}"
    return url


def url_contains(url: str, expected: str) -> bool:
    """Substring match against the raw and the percent-decoded URL."""
    if not expected:
        return False
    return expected in url or expected in unquote(url)
