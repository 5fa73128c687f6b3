"""Text and value helpers shared by the extractors.

Scripts evaluated in the page return loosely typed JSON values. The helpers
here coerce those values into clean Python types without raising, and derive
URL-safe slugs from display names.
"""

import math
import re
from collections.abc import Mapping
from typing import Any

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def slugify(text: str) -> str:
    """Convert text to a URL-friendly slug.

    Lower-cases the text, collapses every run of characters outside [a-z0-9]
    into a single hyphen and trims hyphens from both ends.

    Args:
        text: Display name or any free text.

    Returns:
        Slug such as "code-reviewer", empty if the text has no alphanumerics.
    """
    return _NON_SLUG_CHARS.sub("-", text.lower()).strip("-")


def clean_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and strip the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def get_string(data: Mapping[str, Any], key: str) -> str:
    """Read a string field, cleaning whitespace; non-strings yield ""."""
    value = data.get(key)
    if isinstance(value, str):
        return clean_text(value)
    return ""


def get_int(data: Mapping[str, Any], key: str) -> int:
    """Read an integer field from an int, finite float or numeric string; else 0."""
    value = data.get(key)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def get_float(data: Mapping[str, Any], key: str) -> float:
    """Read a finite float from a number or numeric string; else 0.0."""
    value = data.get(key)
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def get_string_list(data: Mapping[str, Any], key: str) -> list[str]:
    """Read a list of strings, accepting a comma-separated string as well."""
    value = data.get(key)
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = [item for item in value if isinstance(item, str)]
    else:
        return []
    return [cleaned for cleaned in (clean_text(item) for item in items) if cleaned]
