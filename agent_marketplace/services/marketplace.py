"""Marketplace service orchestrating browser, extraction and cache.

Every read follows the cache-aside pattern: the cache is consulted first and
only a miss drives the browser. Agent list fetches also warm the single-agent
entries and the agent to category index so that later single-agent reads do
not have to scan categories again.

Browser work is serialised with one lock per service instance. The lock is
taken around each navigate and extract sequence only, never across nested
service calls, so a scan over many categories interleaves fairly with other
callers.
"""

import asyncio
import logging

from ..errors import AgentNotFoundError, InvalidCategoryError, MarketplaceError
from ..models import Agent, CacheStats, Category
from ..scrapers.base import BrowserController, ExtractorSet, ScriptSource
from ..scrapers.scripts import ScriptCatalog
from ..urls import has_usable_content_url, is_detail_page
from .cache_service import CacheService

logger = logging.getLogger(__name__)

AGENT_LINK_SCRIPT = "agent_link"
CLICKED = "CLICKED"
CURRENT_URL_JS = "() => window.location.href"


class MarketplaceService:
    """Read API over the marketplace site.

    Attributes:
        browser: Browser session shared by all extractions.
        cache: Cache for categories, agent lists and agent lookups.
        extractors: Category, agent and content extractors.
        base_url: Marketplace root URL without trailing slash.
    """

    def __init__(
        self,
        browser: BrowserController,
        cache: CacheService,
        extractors: ExtractorSet,
        base_url: str,
        discovery_pause: float = 2.0,
        scripts: ScriptSource | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize the service.

        Args:
            browser: Browser controller.
            cache: Cache service.
            extractors: Extractor set.
            base_url: Marketplace root URL.
            discovery_pause: Seconds to wait after clicking an agent card
                before reading the resulting URL.
            scripts: Script source for the agent link script.
            logger: Logger for service activity.
        """
        self.browser = browser
        self.cache = cache
        self.extractors = extractors
        self.base_url = base_url.rstrip("/")
        self.discovery_pause = discovery_pause
        self.scripts = scripts or ScriptCatalog()
        self.logger = logger or logging.getLogger(__name__)
        self._browser_lock = asyncio.Lock()

    def categories_url(self) -> str:
        return f"{self.base_url}/categories"

    def category_url(self, category: str) -> str:
        return f"{self.base_url}/categories/{category}"

    def agents_url(self) -> str:
        return f"{self.base_url}/agents"

    async def get_categories(self) -> list[Category]:
        """Return all marketplace categories.

        Raises:
            NavigationError: If the categories page cannot be loaded.
            ExtractionError: If the categories cannot be extracted.
        """
        cached = self.cache.get_categories()
        if cached is not None:
            return cached

        async with self._browser_lock:
            await self.browser.navigate(self.categories_url())
            categories = await self.extractors.categories.extract(self.browser)

        self.cache.set_categories(categories)
        return categories

    async def get_agents(self, category: str) -> list[Agent]:
        """Return the agents listed in one category.

        Args:
            category: Category slug.

        Raises:
            InvalidCategoryError: If the slug is empty.
            NavigationError: If the category page cannot be loaded.
            ExtractionError: If the agents cannot be extracted.
        """
        category = category.strip()
        if not category:
            raise InvalidCategoryError("category slug is empty", operation="get_agents")

        cached = self.cache.get_agents(category)
        if cached is not None:
            return cached

        async with self._browser_lock:
            await self.browser.navigate(self.category_url(category))
            agents = await self.extractors.agents.extract(self.browser, category)

        self.cache.set_agents(category, agents)
        self._warm_agent_index(category, agents)
        return agents

    def _warm_agent_index(self, category: str, agents: list[Agent]) -> None:
        for agent in agents:
            self.cache.set_agent(agent.id, agent)
            self.cache.set_agent_category(agent.id, category)
            if agent.slug != agent.id:
                self.cache.set_agent(agent.slug, agent)
                self.cache.set_agent_category(agent.slug, category)

    @staticmethod
    def _find(agents: list[Agent], agent_id: str) -> Agent | None:
        for agent in agents:
            if agent.id == agent_id or agent.slug == agent_id:
                return agent
        return None

    async def get_agent(self, agent_id: str) -> Agent:
        """Resolve a single agent by id or slug.

        Tries the agent cache, then the category named by the agent index,
        then every category in turn. Categories that fail to load during the
        full scan are skipped.

        Raises:
            AgentNotFoundError: If no category lists the agent.
        """
        agent_id = agent_id.strip()
        if not agent_id:
            raise AgentNotFoundError("agent id is empty", operation="get_agent")

        cached = self.cache.get_agent(agent_id)
        if cached is not None:
            return cached

        indexed_category = self.cache.get_agent_category(agent_id)
        if indexed_category:
            try:
                agent = self._find(await self.get_agents(indexed_category), agent_id)
            except MarketplaceError as e:
                self.logger.debug(f"Indexed category {indexed_category} for {agent_id} failed: {e}")
            else:
                if agent is not None:
                    return agent
                self.logger.debug(f"Index for {agent_id} pointed at stale category {indexed_category}")

        for category in await self.get_categories():
            try:
                agents = await self.get_agents(category.slug)
            except MarketplaceError as e:
                self.logger.warning(f"Skipping category {category.slug} while looking up {agent_id}: {e}")
                continue

            agent = self._find(agents, agent_id)
            if agent is not None:
                return agent

        raise AgentNotFoundError(f"agent '{agent_id}' not found", operation="get_agent")

    async def get_agent_content(self, agent_id: str) -> str:
        """Return the full definition of an agent.

        Falls back to the agent's description when no detail page can be
        found, extraction fails, or the extracted text is not longer than the
        description.

        Raises:
            AgentNotFoundError: If the agent cannot be resolved.
        """
        agent = await self.get_agent(agent_id)

        if not has_usable_content_url(agent.content_url):
            discovered = await self._discover_content_url(agent)
            if discovered is None:
                self.logger.info(f"No detail page for {agent.id}, returning description")
                return agent.description
            agent = agent.with_content_url(discovered)
            self.cache.set_agent(agent.id, agent)
            if agent.slug != agent.id:
                self.cache.set_agent(agent.slug, agent)

        try:
            async with self._browser_lock:
                content = await self.extractors.content.extract(self.browser, agent.content_url)
        except MarketplaceError as e:
            self.logger.warning(f"Content extraction for {agent.id} failed: {e}")
            return agent.description

        if len(content) <= len(agent.description):
            return agent.description
        return content

    async def _discover_content_url(self, agent: Agent) -> str | None:
        """Find an agent's detail page by clicking its card on the agents listing.

        The URL is read after a fixed pause rather than a navigation signal,
        so a slow transition yields None.
        """
        listing_url = self.agents_url()
        try:
            script = self.scripts.load(AGENT_LINK_SCRIPT)
            async with self._browser_lock:
                await self.browser.navigate(listing_url)
                result = await self.browser.run_script(script, agent.name)
                if result != CLICKED:
                    self.logger.debug(f"No card for {agent.name!r} on {listing_url}")
                    return None

                await asyncio.sleep(self.discovery_pause)
                current = await self.browser.run_script(CURRENT_URL_JS)
        except MarketplaceError as e:
            self.logger.warning(f"Detail page discovery for {agent.id} failed: {e}")
            return None

        if not isinstance(current, str) or current == listing_url or not is_detail_page(current):
            self.logger.debug(f"Click on {agent.name!r} did not reach a detail page: {current}")
            return None

        self.logger.info(f"Discovered detail page for {agent.id}: {current}")
        return current

    async def search(self, query: str) -> list[Agent]:
        """Find agents whose fields contain the query, case-insensitively.

        Matches name, description, author, category and tags. An empty query
        matches every agent. Categories that fail to load are skipped.
        """
        needle = query.strip().lower()
        results: list[Agent] = []
        seen: set[str] = set()

        for category in await self.get_categories():
            try:
                agents = await self.get_agents(category.slug)
            except MarketplaceError as e:
                self.logger.warning(f"Skipping category {category.slug} in search: {e}")
                continue

            for agent in agents:
                if agent.id in seen or not _matches(agent, needle):
                    continue
                seen.add(agent.id)
                results.append(agent)

        return results

    async def refresh_cache(self) -> list[Category]:
        """Clear the cache and warm it with a fresh category listing."""
        self.cache.clear()
        return await self.get_categories()

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()

    async def health_check(self) -> bool:
        """Check that the marketplace root can be loaded."""
        try:
            async with self._browser_lock:
                await self.browser.navigate(self.base_url)
        except MarketplaceError as e:
            self.logger.warning(f"Marketplace health check failed: {e}")
            return False
        return True


def _matches(agent: Agent, needle: str) -> bool:
    if not needle:
        return True
    fields = [agent.name, agent.description, agent.author, agent.category, *agent.tags]
    return any(needle in field.lower() for field in fields)
