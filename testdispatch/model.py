"""Value types shared by the normalizer, mangler, generator, and registrar."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Platform(str, Enum):
    """Symbol-mangling convention of the compiler that builds the test routines."""

    UPPERCASE_NO_SUFFIX = "uppercase-no-suffix"
    LOWERCASE_TRAILING_UNDERSCORE = "lowercase-trailing-underscore"
    LOWERCASE_NO_SUFFIX = "lowercase-no-suffix"


@dataclass(frozen=True)
class TestPair:
    __test__ = False

    location: str
    canonical_name: str
    symbol: str


@dataclass(frozen=True)
class TestSuite:
    """One build's complete, ordered pair set.

    The dispatcher and the registrations must both be produced from the same
    suite value so that every registered symbol is compiled into the dispatcher.
    """

    __test__ = False

    platform: Platform
    pairs: tuple[TestPair, ...]

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(pair.symbol for pair in self.pairs)


@dataclass(frozen=True)
class TestCase:
    __test__ = False

    name: str
    canonical_name: str
    symbol: str
    command: tuple[str, str]
