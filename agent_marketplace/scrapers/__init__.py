"""Browser control and extraction pipeline for the marketplace site."""

from .agents import AgentExtractor
from .base import BaseExtractor, BrowserController, ExtractorSet
from .categories import CategoryExtractor
from .content import ContentExtractor
from .scripts import ScriptCatalog

__all__ = [
    "AgentExtractor",
    "BaseExtractor",
    "BrowserController",
    "CategoryExtractor",
    "ContentExtractor",
    "ExtractorSet",
    "ScriptCatalog",
]
