"""Marketplace error taxonomy.

Every failure raised by the browser, extraction and service layers derives
from MarketplaceError. The subclasses group failures by how a caller should
react to them:

- ConfigurationError: missing browser engine or extraction script, fatal.
- NavigationError: page load failures, retryable by the caller's policy.
- ExtractionError: a script ran but its result could not be used.
- NotFoundError: the requested agent or category does not exist.
"""

from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for marketplace failures.

    Attributes:
        operation: Short name of the failing operation (navigate, extract, ...).
        url: Page involved in the failure, if any.
    """

    def __init__(self, message: str, *, operation: str | None = None, url: str | None = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.url = url

    def __str__(self) -> str:
        prefix = f"marketplace {self.operation} failed" if self.operation else "marketplace error"
        if self.url:
            return f"{prefix} for {self.url}: {self.message}"
        return f"{prefix}: {self.message}"


class ConfigurationError(MarketplaceError):
    """Invalid or incomplete local setup."""


class BrowserNotFoundError(ConfigurationError):
    """No compatible browser executable could be located."""


class ScriptLoadError(ConfigurationError):
    """An extraction script is missing or empty."""


class NavigationError(MarketplaceError):
    """The browser engine failed to load a page."""


class NavigationTimeout(NavigationError):
    """Page load exceeded the configured timeout."""


class BrowserClosedError(MarketplaceError):
    """Operation attempted on a closed browser session."""


class ScriptExecutionError(MarketplaceError):
    """A script raised while being evaluated in the page."""


class ElementNotFoundError(MarketplaceError):
    """A selector never became visible."""


class ExtractionError(MarketplaceError):
    """Script output could not be turned into catalog records."""


class NotFoundError(MarketplaceError):
    """Requested entity does not exist in the marketplace."""


class AgentNotFoundError(NotFoundError):
    """No category lists an agent with the requested id or slug."""


class InvalidCategoryError(NotFoundError):
    """Category slug is empty or otherwise unusable."""


def _cause_chain(error: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = error
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__
    return chain


def is_retryable(error: BaseException) -> bool:
    """Check whether an error is transient and the call may be repeated.

    Args:
        error: Exception raised by a marketplace operation.

    Returns:
        True if a navigation failure appears anywhere in the cause chain.
    """
    return any(isinstance(exc, NavigationError) for exc in _cause_chain(error))


def is_permanent(error: BaseException) -> bool:
    """Check whether retrying an error can never succeed.

    Args:
        error: Exception raised by a marketplace operation.

    Returns:
        True for configuration and not-found failures anywhere in the cause chain.
    """
    return any(
        isinstance(exc, (ConfigurationError, NotFoundError)) for exc in _cause_chain(error)
    )
