"""Configuration management for the marketplace client.

Handles all application configuration including environment variables, an
optional YAML config file, and default settings. Provides structured
configuration classes for the marketplace origin, the cache and the browser.
"""

from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .errors import ConfigurationError

DEFAULT_BASE_URL = "https://subagents.sh"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
CONFIG_FILENAME = "marketplace.yml"


class EnvFirstSettings(BaseSettings):
    """Settings section where environment variables outrank explicit values.

    Config passes the YAML file contents as init values; environment
    variables override them, and both override the field defaults.
    """

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings, dotenv_settings, file_secret_settings


class MarketplaceSettings(EnvFirstSettings):
    """Marketplace origin settings.

    Attributes:
        base_url: Root URL of the marketplace site.
        debug: Whether to log at DEBUG level.
    """

    model_config = SettingsConfigDict(env_prefix="MARKETPLACE_")

    base_url: str = DEFAULT_BASE_URL
    debug: bool = False


class CacheSettings(EnvFirstSettings):
    """In-process cache settings.

    Attributes:
        enabled: Whether reads and writes touch the cache at all.
        ttl_hours: Maximum age of an entry before it is treated as absent.
        max_size_mb: Approximate memory budget for cached payloads.
    """

    model_config = SettingsConfigDict(env_prefix="MARKETPLACE_CACHE_")

    enabled: bool = True
    ttl_hours: float = Field(default=1.0, gt=0)
    max_size_mb: int = Field(default=50, gt=0)

    @property
    def ttl(self) -> timedelta:
        """Entry time-to-live as a timedelta."""
        return timedelta(hours=self.ttl_hours)

    @property
    def max_size_bytes(self) -> int:
        """Memory budget in bytes."""
        return self.max_size_mb * 1024 * 1024


class BrowserSettings(EnvFirstSettings):
    """Headless browser settings and page wait timings.

    Attributes:
        headless: Run the browser without a window.
        timeout_seconds: Navigation and selector timeout.
        window_width: Viewport width in pixels.
        window_height: Viewport height in pixels.
        user_agent: User agent string sent with every request.
        executable_path: Explicit browser binary, skips detection when set.
        readiness_poll_attempts: Checks for rendered results on listing pages.
        readiness_poll_interval: Seconds between readiness checks.
        hydration_pause: Seconds to wait once results are rendered.
        scroll_cycles: Bottom/middle scroll cycles to mount lazy content.
        scroll_pause: Seconds to wait after each scroll.
        load_more_max_clicks: Upper bound on "Load More" clicks per page.
        load_more_pause: Seconds to wait after each "Load More" click.
        load_more_overshoot: Extra cards tolerated beyond the expected count.
        static_page_pause: Seconds to wait on pages without a result list.
    """

    model_config = SettingsConfigDict(env_prefix="MARKETPLACE_BROWSER_")

    headless: bool = True
    timeout_seconds: int = Field(default=30, gt=0)
    window_width: int = 1920
    window_height: int = 1080
    user_agent: str = DEFAULT_USER_AGENT
    executable_path: str | None = None

    readiness_poll_attempts: int = 5
    readiness_poll_interval: float = 0.25
    hydration_pause: float = 3.0
    scroll_cycles: int = 3
    scroll_pause: float = 1.0
    load_more_max_clicks: int = 10
    load_more_pause: float = 2.0
    load_more_overshoot: int = 5
    static_page_pause: float = 3.0


class Config:
    """Application configuration manager.

    Centralizes loading of environment variables, the optional YAML file and
    default values, and exposes typed sections for each component.
    """

    def __init__(self, config_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to a YAML file, defaults to ./marketplace.yml.
        """
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILENAME

        self.config_path = Path(config_path)
        data = self._load_file()

        try:
            self.marketplace = MarketplaceSettings(**data.get("marketplace", {}))
            self.cache = CacheSettings(**data.get("cache", {}))
            self.browser = BrowserSettings(**data.get("browser", {}))
        except ValidationError as e:
            raise ConfigurationError(
                f"invalid settings in {self.config_path} or environment: {e}",
                operation="load_config",
            ) from e

    def _load_file(self) -> dict[str, Any]:
        """Load YAML overrides, returning an empty mapping when absent.

        Returns:
            Mapping of section name to settings values.
        """
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"{self.config_path} is not valid YAML: {e}", operation="load_config"
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{self.config_path} must contain a mapping of sections", operation="load_config"
            )

        return {
            section: values
            for section, values in data.items()
            if isinstance(values, dict)
        }
