"""Raw records returned by the extraction scripts.

These describe what the page scripts promise, not what they always deliver:
extractors still treat every field as optional and loosely typed.
"""

from typing import TypedDict


class RawCategory(TypedDict, total=False):
    name: str
    description: str
    agentCount: int | str
    url: str


class RawAgent(TypedDict, total=False):
    name: str
    description: str
    author: str
    rating: float | str
    url: str
    tags: list[str] | str
