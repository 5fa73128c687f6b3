"""Tests for the bundled extraction script catalog."""

import pytest

from agent_marketplace.errors import ConfigurationError, ScriptLoadError
from agent_marketplace.scrapers.scripts import SCRIPT_NAMES, ScriptCatalog


def test_every_bundled_script_loads():
    catalog = ScriptCatalog()

    assert catalog.available() == list(SCRIPT_NAMES)
    for name in SCRIPT_NAMES:
        body = catalog.load(name)
        assert "=>" in body


def test_agent_link_script_takes_the_agent_name():
    assert ScriptCatalog().load("agent_link").lstrip().startswith("(agentName) =>")


def test_load_is_memoised():
    catalog = ScriptCatalog()
    assert catalog.load("content") is catalog.load("content")


def test_unknown_script_is_a_configuration_error():
    with pytest.raises(ScriptLoadError) as exc_info:
        ScriptCatalog().load("pricing")

    assert isinstance(exc_info.value, ConfigurationError)


def test_missing_package_is_a_load_error():
    with pytest.raises(ScriptLoadError):
        ScriptCatalog(package="agent_marketplace_missing_scripts").load("agents")
