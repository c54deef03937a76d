"""Load and validate JSON suite configuration files."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from testdispatch.errors import ConfigError
from testdispatch.mangling import parse_platform, resolve_platform
from testdispatch.model import Platform
from testdispatch.naming import DEFAULT_SOURCE_SUFFIXES

SUITE_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "testdispatch suite",
    "type": "object",
    "additionalProperties": False,
    "required": ["dispatcher", "tests"],
    "properties": {
        "dispatcher": {"type": "string", "minLength": 1},
        "platform": {"enum": [platform.value for platform in Platform]},
        "toolchain": {
            "type": "object",
            "additionalProperties": False,
            "required": ["compiler_id"],
            "properties": {
                "compiler_id": {"type": "string", "minLength": 1},
                "system": {"type": "string", "minLength": 1},
            },
        },
        "source_suffixes": {
            "type": "array",
            "minItems": 1,
            "items": {"type": "string", "pattern": "^\\.[^/\\\\]+$"},
        },
        "tests": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
        },
    },
    "oneOf": [
        {"required": ["platform"], "not": {"required": ["toolchain"]}},
        {"required": ["toolchain"], "not": {"required": ["platform"]}},
    ],
}

Draft202012Validator.check_schema(SUITE_SCHEMA)


@dataclass(frozen=True)
class SuiteConfig:
    dispatcher: str
    platform: Platform
    source_suffixes: tuple[str, ...]
    tests: tuple[str, ...]


def display_path(path: Path) -> str:
    return path.as_posix()


def read_json_document(path: Path, *, artifact: str) -> Any:
    if not path.exists():
        raise ConfigError(f"{artifact} file does not exist: {display_path(path)}")
    if not path.is_file():
        raise ConfigError(f"{artifact} path is not a file: {display_path(path)}")
    try:
        raw_text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError(f"{artifact} file is not valid UTF-8: {display_path(path)}") from exc
    except OSError as exc:
        raise ConfigError(f"unable to read {artifact} file {display_path(path)}: {exc}") from exc
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"{artifact} file is not valid JSON: {display_path(path)} "
            f"(line {exc.lineno} column {exc.colno}: {exc.msg})"
        ) from exc


def validate_document(payload: Any, schema: dict[str, Any], *, path: Path, artifact: str) -> None:
    try:
        Draft202012Validator(schema).validate(payload)
    except ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise ConfigError(
            f"{artifact} file {display_path(path)} failed schema validation at {location}: "
            f"{exc.message}"
        ) from exc


def parse_suite_config(payload: dict[str, Any]) -> SuiteConfig:
    if "platform" in payload:
        platform = parse_platform(payload["platform"])
    else:
        toolchain = payload["toolchain"]
        platform = resolve_platform(toolchain["compiler_id"], toolchain.get("system"))

    return SuiteConfig(
        dispatcher=payload["dispatcher"],
        platform=platform,
        source_suffixes=tuple(payload.get("source_suffixes", DEFAULT_SOURCE_SUFFIXES)),
        tests=tuple(payload["tests"]),
    )


def load_suite_config(path: Path) -> SuiteConfig:
    payload = read_json_document(path, artifact="suite config")
    validate_document(payload, SUITE_SCHEMA, path=path, artifact="suite config")
    return parse_suite_config(payload)
