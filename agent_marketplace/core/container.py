"""Dependency-injection container.

This module defines a dependency-injection (DI) container that wires together
the marketplace client's components: configuration, the browser session, the
script catalog, the extractors, the cache and the service on top of them.
Tests override individual providers to swap in fakes.
"""

from dependency_injector import containers, providers

from agent_marketplace.config import Config
from agent_marketplace.scrapers.base import ExtractorSet
from agent_marketplace.scrapers.headless import PlaywrightBrowser
from agent_marketplace.scrapers.scripts import ScriptCatalog
from agent_marketplace.services.cache_service import CacheService
from agent_marketplace.services.marketplace import MarketplaceService


class Container(containers.DeclarativeContainer):
    """DI container for the application.

    This container holds the wiring for all the application's components.
    """

    config_path = providers.Object(None)
    settings = providers.Singleton(Config, config_path=config_path)

    # Scraping
    script_catalog = providers.Singleton(ScriptCatalog)
    browser = providers.Singleton(PlaywrightBrowser, settings=settings.provided.browser)
    extractors = providers.Singleton(ExtractorSet.from_catalog, scripts=script_catalog)

    # Services
    cache_service = providers.Singleton(CacheService, settings=settings.provided.cache)
    marketplace_service = providers.Singleton(
        MarketplaceService,
        browser=browser,
        cache=cache_service,
        extractors=extractors,
        base_url=settings.provided.marketplace.base_url,
        scripts=script_catalog,
    )
