"""Agent Marketplace Client Package.

Retrieves catalog data (categories, agents and agent definitions) from a
JavaScript-rendered marketplace by driving a headless browser, running
extraction scripts against the live DOM, and caching the results.

The application follows a modular architecture with separate concerns for:
- Browser control and page readiness handling
- Extraction scripts and record validation
- In-process TTL caching with derived indices
- Service orchestration with cache-aside reads and fallbacks
"""
