"""Build the immutable pair set shared by the dispatcher and the registrations."""

from __future__ import annotations

from typing import Sequence

from testdispatch.dispatcher import is_reserved
from testdispatch.errors import CollisionError
from testdispatch.mangling import mangle, parse_platform
from testdispatch.model import Platform, TestPair, TestSuite
from testdispatch.naming import DEFAULT_SOURCE_SUFFIXES, normalize


def find_collisions(pairs: Sequence[TestPair]) -> tuple[tuple[str, tuple[str, ...]], ...]:
    by_symbol: dict[str, list[str]] = {}
    for pair in pairs:
        by_symbol.setdefault(pair.symbol, []).append(pair.location)
    return tuple(
        (symbol, tuple(locations))
        for symbol, locations in by_symbol.items()
        if len(locations) > 1
    )


def build_suite(
    locations: Sequence[str],
    platform: Platform | str,
    suffixes: Sequence[str] = DEFAULT_SOURCE_SUFFIXES,
) -> TestSuite:
    platform = parse_platform(platform)
    pairs: list[TestPair] = []
    for location in locations:
        canonical_name = normalize(location, suffixes)
        pairs.append(
            TestPair(
                location=location,
                canonical_name=canonical_name,
                symbol=mangle(canonical_name, platform),
            )
        )

    collisions = find_collisions(pairs)
    if collisions:
        details = "; ".join(
            f"{symbol!r} <- {', '.join(repr(location) for location in locations)}"
            for symbol, locations in collisions
        )
        raise CollisionError(
            f"test locations collide on {platform.value} symbols: {details}",
            collisions=collisions,
        )

    for pair in pairs:
        if is_reserved(pair.symbol):
            raise CollisionError(
                f"test location {pair.location!r} mangles to {pair.symbol!r}, which is "
                "reserved by the dispatcher"
            )

    return TestSuite(platform=platform, pairs=tuple(pairs))
