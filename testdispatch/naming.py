"""Derive canonical test identifiers from test source locations."""

from __future__ import annotations

import re
from typing import Sequence

from testdispatch.errors import NormalizationError

DEFAULT_SOURCE_SUFFIXES: tuple[str, ...] = (".f90", ".F90")
PATH_SEPARATORS: tuple[str, ...] = ("/", "\\")
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_identifier(value: str) -> bool:
    return IDENTIFIER_RE.fullmatch(value) is not None


def strip_source_suffix(location: str, suffixes: Sequence[str]) -> str:
    matches = [suffix for suffix in suffixes if suffix and location.endswith(suffix)]
    if not matches:
        expected = ", ".join(repr(suffix) for suffix in suffixes) or "<none configured>"
        raise NormalizationError(
            f"test location {location!r} does not end with a recognized source suffix "
            f"(expected one of: {expected})"
        )
    longest = max(matches, key=len)
    return location[: -len(longest)]


def normalize(
    location: str,
    suffixes: Sequence[str] = DEFAULT_SOURCE_SUFFIXES,
) -> str:
    """Return the canonical name of ``location``.

    The recognized source suffix is stripped and every path separator is
    replaced by ``_``. The result must be usable as a linker identifier.
    """

    stem = strip_source_suffix(location, suffixes)
    name = stem
    for separator in PATH_SEPARATORS:
        name = name.replace(separator, "_")

    if not name:
        raise NormalizationError(f"test location {location!r} has an empty name")
    if not is_identifier(name):
        raise NormalizationError(
            f"test location {location!r} normalizes to {name!r}, which is not a valid "
            "routine identifier (letters, digits, and underscores, not starting with a digit)"
        )
    return name
