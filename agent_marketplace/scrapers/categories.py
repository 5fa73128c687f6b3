"""Category extraction from the marketplace categories page.

Runs the categories script against the listing page and turns its loosely
typed output into validated, deduplicated Category records sorted by name.
"""

from typing import Any

from pydantic import ValidationError

from ..errors import ExtractionError
from ..models import MAX_CATEGORY_DESCRIPTION_LENGTH, MAX_CATEGORY_NAME_LENGTH, Category
from ..urls import extract_slug_from_url
from ..utils import get_int, get_string, slugify
from .base import BaseExtractor, BrowserController
from .types import RawCategory


class CategoryExtractor(BaseExtractor):
    """Extracts categories from the rendered /categories page."""

    script_name = "categories"

    async def extract(self, browser: BrowserController | None) -> list[Category]:
        """Extract all categories from the current page.

        Args:
            browser: Browser already navigated to the categories page.

        Returns:
            Valid categories sorted case-insensitively by name. An empty
            list is a valid result.

        Raises:
            ExtractionError: If the browser is missing, the script cannot be
                loaded or run, or it returns nothing usable.
        """
        browser = self._require_browser(browser)
        script = self._load_script()
        result = await self._run_script(browser, script)

        raw_items = self._unwrap(result)
        categories: list[Category] = []
        seen: set[str] = set()

        for item in raw_items:
            if not isinstance(item, dict):
                continue
            try:
                category = self._convert(item)
            except ValidationError as e:
                self.logger.warning(f"Dropping invalid category: {e}")
                continue
            if category is None:
                continue
            if category.slug in seen:
                self.logger.debug(f"Skipping duplicate category {category.slug}")
                continue
            seen.add(category.slug)
            categories.append(category)

        categories.sort(key=lambda c: c.name.lower())
        self.logger.info(f"Extracted {len(categories)} categories")
        return categories

    def _unwrap(self, result: Any) -> list[Any]:
        if result is None:
            raise ExtractionError("categories script returned no data", operation=self.operation)

        if isinstance(result, list):
            return result

        if isinstance(result, dict) and "categories" in result:
            if result.get("error"):
                self.logger.warning(f"Categories script reported: {result['error']}")
            if result.get("diagnostic"):
                self.logger.debug(f"Categories script diagnostic: {result['diagnostic']}")

            items = result["categories"]
            if items is None:
                return []
            if isinstance(items, list):
                return items

        raise ExtractionError(
            f"unexpected categories result type: {type(result).__name__}",
            operation=self.operation,
        )

    def _convert(self, item: RawCategory) -> Category | None:
        """Build a Category from one raw entry, None if it must be dropped."""
        name = get_string(item, "name")
        if not name:
            return None

        url = get_string(item, "url")
        slug = extract_slug_from_url(url) or slugify(name)
        description = get_string(item, "description")
        agent_count = get_int(item, "agentCount")

        problem = validate_category(name, slug, description, agent_count)
        if problem:
            self.logger.warning(f"Dropping invalid category {name[:40]!r}: {problem}")
            return None

        return Category(
            id=slug,
            name=name,
            slug=slug,
            description=description,
            agent_count=agent_count,
            url=url,
        )


def validate_category(name: str, slug: str, description: str, agent_count: int) -> str | None:
    """Check category invariants.

    Returns:
        Description of the first violated rule, None if the category is valid.
    """
    if not name:
        return "name is empty"
    if len(name) > MAX_CATEGORY_NAME_LENGTH:
        return f"name longer than {MAX_CATEGORY_NAME_LENGTH} characters"
    if len(description) > MAX_CATEGORY_DESCRIPTION_LENGTH:
        return f"description longer than {MAX_CATEGORY_DESCRIPTION_LENGTH} characters"
    if agent_count < 0:
        return "agent count is negative"
    if not slug:
        return "slug is empty"
    return None
