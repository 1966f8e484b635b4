"""Prompts for AI test case generation."""

from __future__ import annotations

GENERATION_SYSTEM_PROMPT = """You are a defensive QA engineer AI who can verify any website. You design stable smoke tests from a simplified HTML structure and express each test as a sequence of typed browser actions.

CRITICAL RULES FOR YOUR RESPONSE:
- Return ONLY a valid, parseable JSON array. No markdown, no code fences, no comments, no explanatory text.
- Do NOT include any text before the opening [ or after the closing ].
- Do NOT use trailing commas."""

ALLOWED_ACTIONS = ("check", "click", "type", "wait", "clickNewTab", "checkUrl")

DESIGN_PRINCIPLES = """## Design Principles

1. **Stable selectors:** Prefer data-testid, data-cy, id, name, aria-label and role attributes, then short class selectors. Copy selectors from the HTML structure above; never invent elements that are not in it.
2. **Unsupported selectors:** Do NOT use :has-text(), :text(), :contains(), text= or XPath selectors. Use plain CSS only.
3. **Verify every interaction:** Every test that uses click or clickNewTab MUST contain at least one check step that verifies the outcome.
4. **End-to-end flows:** Prefer short user flows (interact, then verify) over a single isolated check. A test with only one check step is not acceptable.
5. **Coverage across regions:** Spread the tests over the page's structural regions (header, navigation, main content, forms, footer).
6. **Navigation:** After a click that navigates within the same tab, add a wait step (1000-2000 ms) and then a checkUrl step with a distinctive URL fragment.
7. **New tabs:** Links with target="_blank" or external stores open a new tab. Use clickNewTab for them instead of click, followed by a check step on the original page.
8. **Login redirects:** Do not design tests that require signing in. If a link leads to a login page, verify only that the redirect happened with checkUrl.
9. **Page title:** To verify the document title use a check step with selector "title"."""


def _output_format(start_id: str, language: str) -> str:
    return (
        "## Output Format\n\n"
        f"Write title, precondition, testStep and expectedResults in {language}. "
        "Write desc fields in English.\n"
        f"Each step's action MUST be one of: {', '.join(ALLOWED_ACTIONS)}.\n"
        "- check / click / clickNewTab: selector required.\n"
        "- type: selector and value (the text to enter) required.\n"
        "- wait: value is the duration in milliseconds, no selector.\n"
        "- checkUrl: value is a substring the current URL must contain, no selector.\n\n"
        "[\n"
        "  {\n"
        f'    "id": "{start_id}",\n'
        '    "title": "Main logo navigates home",\n'
        '    "precondition": "Target URL is open",\n'
        '    "testStep": "1. Check the logo 2. Click the home link 3. Check the URL",\n'
        '    "expectedResults": "The home page is shown",\n'
        '    "steps": [\n'
        '      {"action": "check", "selector": "header .logo", "desc": "Logo is visible"},\n'
        '      {"action": "click", "selector": "nav a[href=\'/\']", "desc": "Click home link"},\n'
        '      {"action": "wait", "value": "1000", "desc": "Wait for navigation"},\n'
        '      {"action": "checkUrl", "value": "/", "desc": "URL is the home page"}\n'
        "    ]\n"
        "  }\n"
        "]"
    )


def format_case_id(number: int) -> str:
    """Format a sequential case number as ``TC-NNN``."""
    return f"TC-{number:03d}"


def build_generation_prompt(
    page_context: str,
    count: int,
    start_id: str,
    exclude_titles: list[str],
    language: str = "Korean",
) -> str:
    """Build the user message for a generation call.

    The page context comes first so the prefix stays identical across
    refill calls within one run.
    """
    parts = [
        f"## Page HTML Structure\n\n```html\n{page_context}\n```\n",
        (
            "## Task\n\n"
            f"Design exactly {count} new smoke test cases for this page. "
            f"Number them sequentially starting at {start_id}.\n"
        ),
    ]

    if exclude_titles:
        titles = "\n".join(f"- {t}" for t in exclude_titles)
        parts.append(
            "## Already Designed (do NOT repeat)\n\n"
            "These tests already exist. Do not produce tests with the same or similar "
            "titles, and do not repeat their action sequences:\n"
            f"{titles}\n"
        )

    parts.append(DESIGN_PRINCIPLES + "\n")
    parts.append(_output_format(start_id, language) + "\n")
    parts.append(
        "## Instructions\n\n"
        f"Return ONLY the JSON array of {count} test cases. Nothing outside the array is permitted."
    )
    return "\n".join(parts)
