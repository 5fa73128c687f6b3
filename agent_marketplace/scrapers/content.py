"""Agent definition extraction from agent detail pages.

The detail pages render the full agent definition as front-matter text
somewhere in the DOM. The content script tries several heuristics; this
module navigates to the page, runs the script and retries the whole detection
when nothing recognisable has mounted yet.
"""

import asyncio
import logging
from typing import Any

from ..errors import ExtractionError
from .base import BaseExtractor, BrowserController, ScriptSource

DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF = 1.0
MIN_CONTENT_LENGTH = 200
DEFINITION_DELIMITER = "---"
REQUIRED_MARKERS = ("name:", "description:")


def looks_like_agent_definition(text: str, min_length: int = MIN_CONTENT_LENGTH) -> bool:
    """Check whether text is a structured agent definition.

    Args:
        text: Candidate text.
        min_length: Minimum stripped length to accept.

    Returns:
        True if the text opens with the front-matter delimiter, is long enough
        and carries every required field marker.
    """
    candidate = text.strip()
    if len(candidate) < min_length:
        return False
    if not candidate.startswith(DEFINITION_DELIMITER):
        return False
    return all(marker in candidate for marker in REQUIRED_MARKERS)


class ContentExtractor(BaseExtractor):
    """Extracts the full agent definition from a detail page."""

    script_name = "content"

    def __init__(
        self,
        scripts: ScriptSource,
        attempts: int = DEFAULT_ATTEMPTS,
        backoff: float = DEFAULT_BACKOFF,
        min_length: int = MIN_CONTENT_LENGTH,
        logger: logging.Logger | None = None,
    ):
        """Initialize content extractor.

        Args:
            scripts: Source of script bodies.
            attempts: Detection passes before giving up.
            backoff: Base delay in seconds; pass n waits backoff * n before the next.
            min_length: Minimum definition length.
            logger: Logger for extraction diagnostics.
        """
        super().__init__(scripts, logger=logger)
        self.attempts = max(1, attempts)
        self.backoff = backoff
        self.min_length = min_length

    async def extract(self, browser: BrowserController | None, url: str) -> str:
        """Navigate to a detail page and extract the agent definition.

        Args:
            browser: Browser to drive.
            url: Agent detail page URL.

        Returns:
            The definition text, or "" when no candidate qualified.

        Raises:
            ExtractionError: If the script cannot be loaded or run, or returns
                an unexpected result type.
            NavigationError: If the page cannot be loaded.
        """
        browser = self._require_browser(browser)
        script = self._load_script()

        await browser.navigate(url)

        for attempt in range(1, self.attempts + 1):
            result = await self._run_script(browser, script)
            content = self._coerce(result).strip()

            if looks_like_agent_definition(content, self.min_length):
                self.logger.info(f"Extracted {len(content)} chars of content from {url}")
                return content

            self.logger.debug(
                f"Content attempt {attempt}/{self.attempts} for {url} found no definition"
            )
            if attempt < self.attempts:
                await asyncio.sleep(self.backoff * attempt)

        self.logger.warning(f"No agent definition found on {url}")
        return ""

    def _coerce(self, result: Any) -> str:
        if result is None:
            return ""
        if isinstance(result, str):
            return result
        if isinstance(result, dict) and isinstance(result.get("content"), str):
            return result["content"]
        raise ExtractionError(
            f"unexpected content result type: {type(result).__name__}",
            operation=self.operation,
        )
