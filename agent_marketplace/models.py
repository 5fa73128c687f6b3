"""Data models for the marketplace client.

Defines Pydantic models for the catalog records scraped from the marketplace
(categories and agents) and for cache performance statistics. Catalog records
are frozen: once extracted they are only replaced, never edited in place.
"""

from pydantic import BaseModel, ConfigDict, Field

MAX_CATEGORY_NAME_LENGTH = 100
MAX_CATEGORY_DESCRIPTION_LENGTH = 500
MAX_AGENT_RATING = 5.0


class Category(BaseModel):
    """Marketplace category scraped from the categories listing page.

    Attributes:
        id: Same value as slug.
        name: Display name of the category.
        slug: URL path segment following /categories/.
        description: Short description shown on the listing card.
        agent_count: Number of agents the site reports for this category.
        url: Absolute URL of the category page.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    slug: str
    description: str = ""
    agent_count: int = 0
    url: str = ""


class Agent(BaseModel):
    """Marketplace agent scraped from a category page.

    Attributes:
        id: Same value as slug.
        slug: Slug generated from the agent name.
        name: Display name of the agent.
        description: Card description text.
        author: Author handle, "Unknown" when the card has none.
        category: Slug of the category page the agent was scraped from.
        rating: Score between 0 and 5, 0 meaning unrated.
        content_url: Detail page URL, empty when not yet discovered.
        tags: Free-form tags shown on the card.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    slug: str
    name: str
    description: str = ""
    author: str = ""
    category: str = ""
    rating: float = Field(default=0.0, ge=0.0, le=MAX_AGENT_RATING)
    content_url: str = ""
    tags: list[str] = Field(default_factory=list)

    def with_content_url(self, url: str) -> "Agent":
        """Return a copy of this agent pointing at a discovered detail page."""
        return self.model_copy(update={"content_url": url})


class CacheStats(BaseModel):
    """Cache performance counters.

    Attributes:
        hits: Reads served from the cache.
        misses: Reads that found nothing usable.
        evictions: Entries dropped to stay within the size budget.
        size: Live entries currently held; expired entries are not counted.
        hit_rate: hits / (hits + misses), 0 when nothing was read.
    """

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    hit_rate: float = 0.0
