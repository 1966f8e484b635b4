"""DOM summarization: condenses a live page into prompt-sized page context."""

from __future__ import annotations

import logging

from playwright.async_api import Page

logger = logging.getLogger(__name__)

IGNORED_TAGS = ("script", "style", "svg", "path", "noscript", "meta", "link", "iframe")
ALLOWED_ATTRIBUTES = (
    "id", "class", "name", "type", "placeholder", "aria-label", "role",
    "href", "title", "data-testid", "data-cy", "alt",
)
INTERACTIVE_TAGS = ("a", "button", "input", "textarea", "select", "label")

MAX_TEXT_LENGTH = 50
MAX_CLASS_LENGTH = 30
MAX_CLASS_TOKENS = 3

# Visibility is decided from explicit attributes only (hidden, aria-hidden),
# which keeps the output deterministic for an unchanged DOM.
_SUMMARIZE_SCRIPT = """({maxDepth, ignoredTags, allowList, interactiveTags,
                        maxText, maxClassLength, maxClassTokens}) => {
    const ignored = new Set(ignoredTags);
    const allowed = new Set(allowList);
    const interactive = new Set(interactiveTags);

    function escapeAttr(value) {
        return value.replace(/&/g, '&amp;').replace(/"/g, '&quot;');
    }

    function simplify(node, depth) {
        if (depth > maxDepth) return '';

        if (node.nodeType === Node.TEXT_NODE) {
            const text = node.textContent.trim();
            if (!text) return '';
            return text.length > maxText ? text.substring(0, maxText) + '...' : text;
        }
        if (node.nodeType !== Node.ELEMENT_NODE) return '';

        const tag = node.tagName.toLowerCase();
        if (ignored.has(tag)) return '';
        if (node.hasAttribute('hidden') || node.getAttribute('aria-hidden') === 'true') return '';

        let attrs = '';
        let hasAllowedAttr = false;
        for (const attr of node.attributes) {
            if (!allowed.has(attr.name)) continue;
            let value = attr.value;
            if (attr.name === 'class' && value.length > maxClassLength) {
                value = value.trim().split(/\\s+/).slice(0, maxClassTokens).join(' ');
            }
            attrs += ` ${attr.name}="${escapeAttr(value)}"`;
            hasAllowedAttr = true;
        }

        let children = '';
        for (const child of node.childNodes) {
            children += simplify(child, depth + 1);
        }

        if (!interactive.has(tag) && !hasAllowedAttr && children.trim() === '') {
            return '';
        }
        return `<${tag}${attrs}>${children}</${tag}>`;
    }

    return document.body ? simplify(document.body, 0) : '';
}"""


async def extract_page_context(page: Page, max_depth: int = 10) -> str:
    """Serialize the page's body into a filtered, depth-bounded tag string.

    Read-only: the page is not modified. Errors propagate to the caller,
    which treats a failed extraction as a fatal run error.
    """
    context = await page.evaluate(
        _SUMMARIZE_SCRIPT,
        {
            "maxDepth": max_depth,
            "ignoredTags": list(IGNORED_TAGS),
            "allowList": list(ALLOWED_ATTRIBUTES),
            "interactiveTags": list(INTERACTIVE_TAGS),
            "maxText": MAX_TEXT_LENGTH,
            "maxClassLength": MAX_CLASS_LENGTH,
            "maxClassTokens": MAX_CLASS_TOKENS,
        },
    )
    context = context or ""
    logger.info("Extracted page context: %d chars", len(context))
    if len(context) > 200:
        logger.debug("Context preview: %s...", context[:200])
    return context


def truncate_context(context: str, max_chars: int) -> str:
    """Cut the context to the prompt budget. The result is reused unchanged for every generation call."""
    if len(context) <= max_chars:
        return context
    logger.debug("Truncating page context from %d to %d chars", len(context), max_chars)
    return context[:max_chars]
