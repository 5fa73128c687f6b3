"""Agent extraction from a category listing page."""

from pydantic import ValidationError

from ..errors import ExtractionError
from ..models import MAX_AGENT_RATING, Agent
from ..utils import get_float, get_string, get_string_list, slugify
from .base import BaseExtractor, BrowserController
from .types import RawAgent


class AgentExtractor(BaseExtractor):
    """Extracts the agent cards rendered on /categories/<slug>."""

    script_name = "agents"

    async def extract(self, browser: BrowserController | None, category: str) -> list[Agent]:
        """Extract agents from the current category page.

        Args:
            browser: Browser already navigated to the category page.
            category: Slug of that category, assigned to every agent.

        Returns:
            Agents in page order, without duplicates.

        Raises:
            ExtractionError: If the script fails or returns an unexpected shape.
        """
        browser = self._require_browser(browser)
        script = self._load_script()
        result = await self._run_script(browser, script)

        if not isinstance(result, dict) or "agents" not in result:
            raise ExtractionError(
                f"unexpected agents result type: {type(result).__name__}",
                operation=self.operation,
            )

        if result.get("debug"):
            self.logger.debug(f"Agents script debug for {category}: {result['debug']}")

        raw_agents = result["agents"] or []
        if not isinstance(raw_agents, list):
            raise ExtractionError("agents field is not a list", operation=self.operation)

        agents: list[Agent] = []
        seen: set[str] = set()
        for item in raw_agents:
            if not isinstance(item, dict):
                continue
            try:
                agent = self._convert(item, category)
            except ValidationError as e:
                self.logger.warning(f"Dropping invalid agent card in {category}: {e}")
                continue
            if agent is None or agent.slug in seen:
                continue
            seen.add(agent.slug)
            agents.append(agent)

        self.logger.info(f"Extracted {len(agents)} agents from category {category}")
        return agents

    def _convert(self, item: RawAgent, category: str) -> Agent | None:
        name = get_string(item, "name")
        slug = slugify(name)
        if not slug:
            return None

        rating = min(max(get_float(item, "rating"), 0.0), MAX_AGENT_RATING)

        return Agent(
            id=slug,
            slug=slug,
            name=name,
            description=get_string(item, "description"),
            author=get_string(item, "author") or "Unknown",
            category=category,
            rating=rating,
            content_url=get_string(item, "url"),
            tags=get_string_list(item, "tags"),
        )
