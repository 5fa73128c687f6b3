"""Shared fakes and fixtures.

No test here launches a real browser: the service and extractors are driven
through FakeBrowser, whose script results come from a FakeSite that mimics the
marketplace pages, and FakeScripts, which serves each script body as its own
name so the site can dispatch on it.
"""

from typing import Any

import pytest

from agent_marketplace.config import CacheSettings
from agent_marketplace.errors import NavigationError, ScriptExecutionError, ScriptLoadError
from agent_marketplace.scrapers.agents import AgentExtractor
from agent_marketplace.scrapers.base import ExtractorSet
from agent_marketplace.scrapers.categories import CategoryExtractor
from agent_marketplace.scrapers.content import ContentExtractor
from agent_marketplace.scrapers.scripts import SCRIPT_NAMES
from agent_marketplace.services.cache_service import CacheService
from agent_marketplace.services.marketplace import CURRENT_URL_JS, MarketplaceService

BASE_URL = "https://subagents.test"

AGENT_DEFINITION = (
    "---\n"
    "name: code-reviewer\n"
    "description: Reviews pull requests for correctness, style and security issues.\n"
    "tools: Read, Grep, Glob\n"
    "---\n\n"
    "You are a senior reviewer. Read the diff carefully, point out bugs first, "
    "then readability problems, and finish with concrete suggestions."
)


class FakeScripts:
    """Script source returning each script's name as its body."""

    def __init__(self, missing: tuple[str, ...] = ()):
        self.missing = set(missing)

    def load(self, name: str) -> str:
        if name not in SCRIPT_NAMES or name in self.missing:
            raise ScriptLoadError(f"unknown script '{name}'", operation="load_script")
        return name


class FakeBrowser:
    """In-memory BrowserController recording every call."""

    def __init__(self, handler: Any = None, failing_urls: tuple[str, ...] = ()):
        self.handler = handler or (lambda src, arg, url: None)
        self.failing_urls = set(failing_urls)
        self.navigations: list[str] = []
        self.scripts_run: list[tuple[str, Any]] = []
        self.current_url: str | None = None
        self.closed = False

    async def navigate(self, url: str) -> None:
        self.navigations.append(url)
        if url in self.failing_urls:
            raise NavigationError("page failed to load", operation="navigate", url=url)
        self.current_url = url

    async def run_script(self, src: str, arg: Any = None) -> Any:
        self.scripts_run.append((src, arg))
        return self.handler(src, arg, self.current_url)

    async def wait_for_element(self, selector: str) -> None:
        return None

    async def scroll(self, offset_px: int) -> None:
        return None

    async def close(self) -> None:
        self.closed = True

    def scripts_named(self, name: str) -> list[tuple[str, Any]]:
        return [call for call in self.scripts_run if call[0] == name]


class FakeSite:
    """Script results of a small marketplace, keyed by page URL."""

    def __init__(self) -> None:
        self.categories: list[dict[str, Any]] = []
        self.agents: dict[str, list[dict[str, Any]]] = {}
        self.broken_categories: set[str] = set()
        self.content: dict[str, Any] = {}
        self.links: dict[str, str] = {}
        self._clicked: str | None = None

    def add_category(self, name: str, slug: str, agent_count: int = 1) -> None:
        self.categories.append(
            {
                "name": name,
                "description": f"{name} agents",
                "agentCount": agent_count,
                "url": f"{BASE_URL}/categories/{slug}",
            }
        )

    def add_agent(self, category: str, name: str, **fields: Any) -> None:
        record = {"name": name, "description": f"{name} does things", "author": "alice"}
        record.update(fields)
        self.agents.setdefault(category, []).append(record)

    def __call__(self, src: str, arg: Any, url: str | None) -> Any:
        if src == "categories":
            return {"categories": self.categories, "diagnostic": {}, "error": None}
        if src == "agents":
            slug = (url or "").rstrip("/").rsplit("/", 1)[-1]
            if slug in self.broken_categories:
                raise ScriptExecutionError("card walk failed", operation="run_script", url=url)
            return {"agents": self.agents.get(slug, []), "debug": {}}
        if src == "content":
            return self.content.get(url, "")
        if src == "agent_link":
            self._clicked = self.links.get(arg)
            return "CLICKED" if self._clicked else None
        if src == CURRENT_URL_JS:
            return self._clicked or url
        return None


@pytest.fixture
def site() -> FakeSite:
    return FakeSite()


@pytest.fixture
def browser(site: FakeSite) -> FakeBrowser:
    return FakeBrowser(handler=site)


@pytest.fixture
def scripts() -> FakeScripts:
    return FakeScripts()


@pytest.fixture
def extractors(scripts: FakeScripts) -> ExtractorSet:
    return ExtractorSet(
        categories=CategoryExtractor(scripts),
        agents=AgentExtractor(scripts),
        content=ContentExtractor(scripts, backoff=0),
    )


@pytest.fixture
def cache() -> CacheService:
    return CacheService(CacheSettings(enabled=True, ttl_hours=1, max_size_mb=1))


@pytest.fixture
def service(
    browser: FakeBrowser, cache: CacheService, extractors: ExtractorSet, scripts: FakeScripts
) -> MarketplaceService:
    return MarketplaceService(
        browser=browser,
        cache=cache,
        extractors=extractors,
        base_url=BASE_URL,
        discovery_pause=0,
        scripts=scripts,
    )


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def agent_definition() -> str:
    return AGENT_DEFINITION


@pytest.fixture
def make_browser():
    """Build a FakeBrowser around a custom script handler."""

    def factory(handler: Any = None, failing_urls: tuple[str, ...] = ()) -> FakeBrowser:
        return FakeBrowser(handler=handler, failing_urls=failing_urls)

    return factory
