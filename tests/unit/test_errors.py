"""Tests for the error taxonomy and its classification helpers."""

from agent_marketplace.errors import (
    AgentNotFoundError,
    BrowserNotFoundError,
    ConfigurationError,
    ExtractionError,
    InvalidCategoryError,
    MarketplaceError,
    NavigationError,
    NavigationTimeout,
    NotFoundError,
    ScriptLoadError,
    is_permanent,
    is_retryable,
)


def test_hierarchy():
    assert issubclass(BrowserNotFoundError, ConfigurationError)
    assert issubclass(ScriptLoadError, ConfigurationError)
    assert issubclass(NavigationTimeout, NavigationError)
    assert issubclass(AgentNotFoundError, NotFoundError)
    assert issubclass(InvalidCategoryError, NotFoundError)
    for cls in (ConfigurationError, NavigationError, ExtractionError, NotFoundError):
        assert issubclass(cls, MarketplaceError)


def test_str_includes_operation_and_url():
    error = NavigationTimeout("timed out", operation="navigate", url="https://x.test/a")
    assert str(error) == "marketplace navigate failed for https://x.test/a: timed out"
    assert str(MarketplaceError("boom")) == "marketplace error: boom"


def test_navigation_errors_are_retryable():
    assert is_retryable(NavigationTimeout("slow"))
    assert not is_permanent(NavigationError("down"))


def test_retryable_through_cause_chain():
    try:
        try:
            raise NavigationError("down")
        except NavigationError as e:
            raise ExtractionError("could not extract") from e
    except ExtractionError as wrapped:
        assert is_retryable(wrapped)


def test_permanent_errors():
    assert is_permanent(BrowserNotFoundError("no chrome"))
    assert is_permanent(AgentNotFoundError("missing"))
    assert not is_retryable(ScriptLoadError("missing script"))
    assert not is_permanent(ExtractionError("bad shape"))
