"""Register one dispatcher invocation per test with the execution engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from testdispatch.config import display_path, read_json_document, validate_document
from testdispatch.errors import ConfigError
from testdispatch.model import Platform, TestCase, TestPair, TestSuite

MANIFEST_MODE = "testdispatch-registrations-v1"

MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "testdispatch registrations",
    "type": "object",
    "required": ["mode", "platform", "dispatcher", "tests"],
    "properties": {
        "mode": {"const": MANIFEST_MODE},
        "platform": {"enum": [platform.value for platform in Platform]},
        "dispatcher": {"type": "string", "minLength": 1},
        "tests": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "canonical_name", "symbol", "command"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "canonical_name": {"type": "string", "minLength": 1},
                    "symbol": {"type": "string", "minLength": 1},
                    "command": {
                        "type": "array",
                        "prefixItems": [{"type": "string"}, {"type": "string"}],
                        "items": False,
                        "minItems": 2,
                    },
                },
            },
        },
    },
}


def register(pairs: Sequence[TestPair], dispatcher_path: str) -> tuple[TestCase, ...]:
    """Return one test case per pair, named after its original location."""

    return tuple(
        TestCase(
            name=pair.location,
            canonical_name=pair.canonical_name,
            symbol=pair.symbol,
            command=(dispatcher_path, pair.symbol),
        )
        for pair in pairs
    )


def render_manifest(
    suite: TestSuite,
    cases: Sequence[TestCase],
    *,
    dispatcher_path: str,
) -> str:
    payload = {
        "mode": MANIFEST_MODE,
        "platform": suite.platform.value,
        "dispatcher": dispatcher_path,
        "tests": [
            {
                "name": case.name,
                "canonical_name": case.canonical_name,
                "symbol": case.symbol,
                "command": list(case.command),
            }
            for case in cases
        ],
    }
    return json.dumps(payload, indent=2) + "\n"


def cmake_quote(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("$", "\\$")
        .replace(";", "\\;")
    )
    return f'"{escaped}"'


def render_ctest(cases: Sequence[TestCase]) -> str:
    lines = ["# Test registrations generated by testdispatch. Do not edit."]
    for case in cases:
        executable, symbol = case.command
        lines.append(
            f"add_test(NAME {cmake_quote(case.name)} "
            f"COMMAND {cmake_quote(executable)} {cmake_quote(symbol)})"
        )
    return "\n".join(lines) + "\n"


def check_manifest_entries(payload: dict[str, Any], *, path: Path) -> None:
    """Require every entry to invoke the manifest's dispatcher with its own unique symbol."""

    dispatcher = payload["dispatcher"]
    seen_names: dict[str, int] = {}
    seen_symbols: dict[str, int] = {}
    for index, entry in enumerate(payload["tests"]):
        entry_ref = f"tests/{index}"
        problem: str | None = None
        if entry["command"][0] != dispatcher:
            problem = (
                f"{entry_ref}/command/0 is {entry['command'][0]!r}, "
                f"expected dispatcher {dispatcher!r}"
            )
        elif entry["command"][1] != entry["symbol"]:
            problem = (
                f"{entry_ref}/command/1 is {entry['command'][1]!r}, "
                f"expected symbol {entry['symbol']!r}"
            )
        elif entry["name"] in seen_names:
            problem = (
                f"{entry_ref}/name duplicates tests/{seen_names[entry['name']]}/name "
                f"{entry['name']!r}"
            )
        elif entry["symbol"] in seen_symbols:
            problem = (
                f"{entry_ref}/symbol duplicates tests/{seen_symbols[entry['symbol']]}/symbol "
                f"{entry['symbol']!r}"
            )
        if problem is not None:
            raise ConfigError(
                f"registration manifest file {display_path(path)} is inconsistent: {problem}"
            )
        seen_names[entry["name"]] = index
        seen_symbols[entry["symbol"]] = index


def load_manifest(path: Path) -> tuple[TestCase, ...]:
    payload = read_json_document(path, artifact="registration manifest")
    validate_document(payload, MANIFEST_SCHEMA, path=path, artifact="registration manifest")
    check_manifest_entries(payload, path=path)
    return tuple(
        TestCase(
            name=entry["name"],
            canonical_name=entry["canonical_name"],
            symbol=entry["symbol"],
            command=(entry["command"][0], entry["command"][1]),
        )
        for entry in payload["tests"]
    )
