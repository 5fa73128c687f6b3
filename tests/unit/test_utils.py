"""Tests for slug generation and raw value coercion."""

import re

import pytest

from agent_marketplace.utils import (
    clean_text,
    get_float,
    get_int,
    get_string,
    get_string_list,
    slugify,
)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Code Reviewer", "code-reviewer"),
        ("AI & ML", "ai-ml"),
        ("  --Hello,   World!--  ", "hello-world"),
        ("already-a-slug", "already-a-slug"),
        ("Python 3.12 Expert", "python-3-12-expert"),
        ("!!!", ""),
    ],
)
def test_slugify(text, expected):
    """Test slug generation from display names."""
    assert slugify(text) == expected


@pytest.mark.parametrize(
    "text",
    ["Code Reviewer", "AI & ML", "a__b", "Ünïcode Name", "x", "  spaced  out  ", "UPPER_case-Mix 42"],
)
def test_slugify_is_idempotent_and_well_formed(text):
    """Slugs contain only lowercase alphanumerics and single inner hyphens."""
    slug = slugify(text)
    assert slugify(slug) == slug
    if slug:
        assert SLUG_PATTERN.match(slug)


def test_clean_text_collapses_whitespace():
    assert clean_text("  Data \n\t Science  ") == "Data Science"


def test_get_string():
    data = {"name": "  Code\nReviewer ", "count": 3}
    assert get_string(data, "name") == "Code Reviewer"
    assert get_string(data, "count") == ""
    assert get_string(data, "missing") == ""


def test_get_int_accepts_numbers_and_numeric_strings():
    data = {"a": 5, "b": 7.9, "c": " 12 ", "d": "many", "e": None}
    assert get_int(data, "a") == 5
    assert get_int(data, "b") == 7
    assert get_int(data, "c") == 12
    assert get_int(data, "d") == 0
    assert get_int(data, "e") == 0


def test_get_float():
    data = {"a": 4, "b": "4.5", "c": "n/a", "d": True}
    assert get_float(data, "a") == 4.0
    assert get_float(data, "b") == 4.5
    assert get_float(data, "c") == 0.0
    assert get_float(data, "d") == 0.0


def test_get_string_list():
    assert get_string_list({"tags": ["python", " review ", 3, ""]}, "tags") == ["python", "review"]
    assert get_string_list({"tags": "python, review,,"}, "tags") == ["python", "review"]
    assert get_string_list({"tags": None}, "tags") == []


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), "NaN", "inf"])
def test_non_finite_numbers_coerce_to_zero(value):
    """Non-finite script values never raise and never leak through."""
    assert get_int({"n": value}, "n") == 0
    assert get_float({"n": value}, "n") == 0.0


def test_get_float_rejects_ints_too_large_for_a_float():
    assert get_float({"n": 10**400}, "n") == 0.0
