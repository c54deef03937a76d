from __future__ import annotations

import json
from pathlib import Path

import pytest

from testdispatch.errors import ConfigError
from testdispatch.model import Platform, TestCase
from testdispatch.registrar import (
    MANIFEST_MODE,
    cmake_quote,
    load_manifest,
    register,
    render_ctest,
    render_manifest,
)
from testdispatch.suite import build_suite

DISPATCHER = "build/test_dispatcher"


def scenario_suite():
    return build_suite(
        ["tests/test_succeeds_1.f90", "tests/test_fails_1.f90"],
        Platform.LOWERCASE_TRAILING_UNDERSCORE,
    )


def test_register_emits_one_case_per_pair_named_after_location() -> None:
    cases = register(scenario_suite().pairs, DISPATCHER)

    assert cases == (
        TestCase(
            name="tests/test_succeeds_1.f90",
            canonical_name="tests_test_succeeds_1",
            symbol="tests_test_succeeds_1_",
            command=(DISPATCHER, "tests_test_succeeds_1_"),
        ),
        TestCase(
            name="tests/test_fails_1.f90",
            canonical_name="tests_test_fails_1",
            symbol="tests_test_fails_1_",
            command=(DISPATCHER, "tests_test_fails_1_"),
        ),
    )


def test_registered_symbols_match_dispatcher_symbols() -> None:
    suite = scenario_suite()
    cases = register(suite.pairs, DISPATCHER)
    assert tuple(case.symbol for case in cases) == suite.symbols


def test_render_manifest_shape() -> None:
    suite = scenario_suite()
    payload = json.loads(
        render_manifest(suite, register(suite.pairs, DISPATCHER), dispatcher_path=DISPATCHER)
    )

    assert payload["mode"] == MANIFEST_MODE
    assert payload["platform"] == "lowercase-trailing-underscore"
    assert payload["dispatcher"] == DISPATCHER
    assert [entry["name"] for entry in payload["tests"]] == [
        "tests/test_succeeds_1.f90",
        "tests/test_fails_1.f90",
    ]
    assert payload["tests"][1]["command"] == [DISPATCHER, "tests_test_fails_1_"]


def test_load_manifest_reads_rendered_manifest(tmp_path: Path) -> None:
    suite = scenario_suite()
    cases = register(suite.pairs, DISPATCHER)
    manifest = tmp_path / "tests.json"
    manifest.write_text(
        render_manifest(suite, cases, dispatcher_path=DISPATCHER), encoding="utf-8"
    )

    assert load_manifest(manifest) == cases


def test_load_manifest_rejects_mode_drift(tmp_path: Path) -> None:
    manifest = tmp_path / "tests.json"
    manifest.write_text(
        json.dumps(
            {
                "mode": "testdispatch-registrations-v0",
                "platform": "uppercase-no-suffix",
                "dispatcher": DISPATCHER,
                "tests": [],
            }
        ),
        encoding="utf-8",
    )
    with pytest.raises(ConfigError, match="at mode"):
        load_manifest(manifest)


def test_load_manifest_rejects_command_with_extra_arguments(tmp_path: Path) -> None:
    manifest = tmp_path / "tests.json"
    manifest.write_text(
        json.dumps(
            {
                "mode": MANIFEST_MODE,
                "platform": "uppercase-no-suffix",
                "dispatcher": DISPATCHER,
                "tests": [
                    {
                        "name": "tests/test_a.f90",
                        "canonical_name": "tests_test_a",
                        "symbol": "TESTS_TEST_A",
                        "command": [DISPATCHER, "TESTS_TEST_A", "--verbose"],
                    }
                ],
            }
        ),
        encoding="utf-8",
    )
    with pytest.raises(ConfigError, match="tests/0/command"):
        load_manifest(manifest)


def write_manifest_entries(tmp_path: Path, entries: list[dict[str, object]]) -> Path:
    manifest = tmp_path / "tests.json"
    manifest.write_text(
        json.dumps(
            {
                "mode": MANIFEST_MODE,
                "platform": "uppercase-no-suffix",
                "dispatcher": DISPATCHER,
                "tests": entries,
            }
        ),
        encoding="utf-8",
    )
    return manifest


def manifest_entry(name: str, symbol: str, command: list[str]) -> dict[str, object]:
    return {
        "name": name,
        "canonical_name": symbol.lower(),
        "symbol": symbol,
        "command": command,
    }


def test_load_manifest_rejects_command_symbol_drift(tmp_path: Path) -> None:
    manifest = write_manifest_entries(
        tmp_path,
        [manifest_entry("tests/test_a.f90", "TESTS_A", [DISPATCHER, "TESTS_B"])],
    )
    with pytest.raises(ConfigError, match="tests/0/command/1 is 'TESTS_B'"):
        load_manifest(manifest)


def test_load_manifest_rejects_foreign_dispatcher(tmp_path: Path) -> None:
    manifest = write_manifest_entries(
        tmp_path,
        [
            manifest_entry("tests/test_a.f90", "TESTS_A", [DISPATCHER, "TESTS_A"]),
            manifest_entry("tests/test_b.f90", "TESTS_B", ["/bin/other", "TESTS_B"]),
        ],
    )
    with pytest.raises(ConfigError, match="tests/1/command/0 is '/bin/other'"):
        load_manifest(manifest)


def test_load_manifest_rejects_duplicate_symbols_and_names(tmp_path: Path) -> None:
    manifest = write_manifest_entries(
        tmp_path,
        [
            manifest_entry("tests/test_a.f90", "TESTS_A", [DISPATCHER, "TESTS_A"]),
            manifest_entry("tests/Test_A.f90", "TESTS_A", [DISPATCHER, "TESTS_A"]),
        ],
    )
    with pytest.raises(ConfigError, match="tests/1/symbol duplicates tests/0/symbol"):
        load_manifest(manifest)

    manifest = write_manifest_entries(
        tmp_path,
        [
            manifest_entry("tests/test_a.f90", "TESTS_A", [DISPATCHER, "TESTS_A"]),
            manifest_entry("tests/test_a.f90", "TESTS_B", [DISPATCHER, "TESTS_B"]),
        ],
    )
    with pytest.raises(ConfigError, match="tests/1/name duplicates tests/0/name"):
        load_manifest(manifest)


def test_render_ctest_adds_one_test_per_case() -> None:
    cases = register(scenario_suite().pairs, DISPATCHER)
    assert render_ctest(cases) == (
        "# Test registrations generated by testdispatch. Do not edit.\n"
        'add_test(NAME "tests/test_succeeds_1.f90" '
        'COMMAND "build/test_dispatcher" "tests_test_succeeds_1_")\n'
        'add_test(NAME "tests/test_fails_1.f90" '
        'COMMAND "build/test_dispatcher" "tests_test_fails_1_")\n'
    )


def test_cmake_quote_escapes_special_characters() -> None:
    assert cmake_quote('C:\\build\\"x"$y;z') == r'"C:\\build\\\"x\"\$y\;z"'
