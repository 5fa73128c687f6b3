"""URL helpers for marketplace pages.

Classifies marketplace URLs (category listings, agent detail pages, search
placeholders) and extracts category slugs from category page URLs.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

CATEGORIES_SEGMENT = "categories"
AGENTS_SEGMENT = "agents"
_SEARCH_MARKER = "search?q="
_NAVIGATION_PLACEHOLDER = "NAVIGATE_TO:"


def _path_parts(url: str) -> list[str]:
    try:
        parsed = urlparse(url)
    except ValueError:
        return []
    return [part for part in parsed.path.strip("/").split("/") if part]


def extract_slug_from_url(url: str) -> str:
    """Extract a category slug from a URL path.

    Args:
        url: Category page URL such as https://subagents.sh/categories/ai-ml.

    Returns:
        Segment following "categories", otherwise the last path segment,
        or "" when the URL has no path.
    """
    if not url:
        return ""

    parts = _path_parts(url)
    for index, part in enumerate(parts):
        if part == CATEGORIES_SEGMENT and index + 1 < len(parts):
            return parts[index + 1]

    if parts:
        return parts[-1]

    logger.debug(f"No slug in URL {url}")
    return ""


def is_listing_page(url: str) -> bool:
    """Check whether a URL is a single category listing (/categories/<slug>)."""
    parts = _path_parts(url)
    return CATEGORIES_SEGMENT in parts and parts[-1] != CATEGORIES_SEGMENT


def is_detail_page(url: str) -> bool:
    """Check whether a URL points at an agent detail page (/agents/<slug>)."""
    parts = _path_parts(url)
    return any(
        part == AGENTS_SEGMENT and index + 1 < len(parts)
        for index, part in enumerate(parts)
    )


def has_usable_content_url(url: str) -> bool:
    """Check whether a stored content URL can be used for extraction.

    Search result URLs and navigation placeholders left by the agent cards
    are not detail pages and need discovery first.
    """
    if not url:
        return False
    if _SEARCH_MARKER in url:
        return False
    return not url.startswith(_NAVIGATION_PLACEHOLDER)
