"""Catalog of the JavaScript extraction scripts shipped with the package.

Scripts live next to this module under js/ and are addressed by logical name.
Each script is a function source evaluated in the page and promises a fixed
result shape to the extractor that consumes it:

- categories: {categories: [{name, description, agentCount, url}], diagnostic, error}
- agents: {agents: [{name, description, author, rating, url, tags}], debug}
- content: string with the best agent definition candidate, or ""
- agent_link(agentName): "CLICKED" after clicking the agent card, else null
"""

import logging
from importlib import resources

from ..errors import ScriptLoadError

logger = logging.getLogger(__name__)

SCRIPT_NAMES = ("categories", "agents", "content", "agent_link")


class ScriptCatalog:
    """Read-only lookup of extraction script bodies by logical name."""

    def __init__(self, package: str = __package__ or "agent_marketplace.scrapers") -> None:
        self.package = package
        self._bodies: dict[str, str] = {}

    def available(self) -> list[str]:
        """Return the logical names this catalog serves."""
        return list(SCRIPT_NAMES)

    def load(self, name: str) -> str:
        """Return the body of a named script.

        Args:
            name: One of SCRIPT_NAMES.

        Returns:
            Script source text.

        Raises:
            ScriptLoadError: If the name is unknown or the file is missing or empty.
        """
        if name in self._bodies:
            return self._bodies[name]

        if name not in SCRIPT_NAMES:
            raise ScriptLoadError(f"unknown script '{name}'", operation="load_script")

        try:
            script_file = resources.files(self.package) / "js" / f"{name}.js"
            body = script_file.read_text(encoding="utf-8")
        except (FileNotFoundError, ModuleNotFoundError) as e:
            raise ScriptLoadError(
                f"failed to load script '{name}': {e}", operation="load_script"
            ) from e

        if not body.strip():
            raise ScriptLoadError(f"script '{name}' is empty", operation="load_script")

        logger.debug(f"Loaded script {name} ({len(body)} chars)")
        self._bodies[name] = body
        return body
