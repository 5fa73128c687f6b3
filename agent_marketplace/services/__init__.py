"""Cache and orchestration services."""

from .cache_service import CacheKey, CacheKind, CacheService
from .marketplace import MarketplaceService

__all__ = ["CacheKey", "CacheKind", "CacheService", "MarketplaceService"]
