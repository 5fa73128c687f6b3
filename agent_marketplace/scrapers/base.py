"""Base extractor protocol and abstractions for marketplace data extraction.

Defines the collaborator interfaces the extraction pipeline and the service
depend on, so that the Playwright browser and the concrete extractors can be
replaced by fakes in tests.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from ..errors import ExtractionError, ScriptExecutionError, ScriptLoadError
from ..models import Agent, Category

logger = logging.getLogger(__name__)


class BrowserController(Protocol):
    """Protocol for the single browser session driven by the extractors.

    Methods:
        navigate: Load a URL and wait for its content to be ready.
        run_script: Evaluate a script in the page and return its value.
        wait_for_element: Block until a selector is visible.
        scroll: Scroll the viewport vertically.
        close: Release the session.
    """

    async def navigate(self, url: str) -> None:
        ...

    async def run_script(self, src: str, arg: Any = None) -> Any:
        ...

    async def wait_for_element(self, selector: str) -> None:
        ...

    async def scroll(self, offset_px: int) -> None:
        ...

    async def close(self) -> None:
        ...


class ScriptSource(Protocol):
    """Protocol for named script lookup."""

    def load(self, name: str) -> str:
        ...


class CategoryExtractorProtocol(Protocol):
    async def extract(self, browser: BrowserController | None) -> list[Category]:
        ...


class AgentExtractorProtocol(Protocol):
    async def extract(self, browser: BrowserController | None, category: str) -> list[Agent]:
        ...


class ContentExtractorProtocol(Protocol):
    async def extract(self, browser: BrowserController | None, url: str) -> str:
        ...


class BaseExtractor:
    """Base class providing script access shared by all extractors.

    Script loading and evaluation failures are reported as ExtractionError so
    callers only deal with one failure kind per extraction.
    """

    script_name = ""

    def __init__(self, scripts: ScriptSource, logger: logging.Logger | None = None):
        """Initialize base extractor.

        Args:
            scripts: Source of script bodies.
            logger: Logger for extraction diagnostics.
        """
        self.scripts = scripts
        self.logger = logger or logging.getLogger(f"{__name__}.{self.script_name}")

    def _require_browser(self, browser: BrowserController | None) -> BrowserController:
        if browser is None:
            raise ExtractionError("browser is not available", operation=self.operation)
        return browser

    @property
    def operation(self) -> str:
        return f"extract_{self.script_name}"

    def _load_script(self) -> str:
        try:
            return self.scripts.load(self.script_name)
        except ScriptLoadError as e:
            raise ExtractionError(
                f"failed to load {self.script_name} script: {e.message}",
                operation=self.operation,
            ) from e

    async def _run_script(self, browser: BrowserController, script: str, arg: Any = None) -> Any:
        try:
            return await browser.run_script(script, arg)
        except ScriptExecutionError as e:
            raise ExtractionError(
                f"failed to execute {self.script_name} script: {e.message}",
                operation=self.operation,
                url=e.url,
            ) from e


@dataclass(frozen=True)
class ExtractorSet:
    """The three extractors the service drives."""

    categories: CategoryExtractorProtocol
    agents: AgentExtractorProtocol
    content: ContentExtractorProtocol

    @classmethod
    def from_catalog(
        cls, scripts: ScriptSource, logger: logging.Logger | None = None
    ) -> "ExtractorSet":
        """Build the default extractors over one script catalog."""
        from .agents import AgentExtractor
        from .categories import CategoryExtractor
        from .content import ContentExtractor

        return cls(
            categories=CategoryExtractor(scripts, logger=logger),
            agents=AgentExtractor(scripts, logger=logger),
            content=ContentExtractor(scripts, logger=logger),
        )


__all__ = [
    "AgentExtractorProtocol",
    "BaseExtractor",
    "BrowserController",
    "CategoryExtractorProtocol",
    "ContentExtractorProtocol",
    "ExtractorSet",
    "ScriptSource",
]
