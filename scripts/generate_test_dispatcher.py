#!/usr/bin/env python3
"""Generate the test dispatcher source and its test registrations for one build."""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from testdispatch.config import SuiteConfig, load_suite_config  # noqa: E402
from testdispatch.dispatcher import generate  # noqa: E402
from testdispatch.mangling import parse_platform, resolve_platform  # noqa: E402
from testdispatch.model import Platform  # noqa: E402
from testdispatch.naming import DEFAULT_SOURCE_SUFFIXES  # noqa: E402
from testdispatch.registrar import register, render_ctest, render_manifest  # noqa: E402
from testdispatch.suite import build_suite  # noqa: E402

DEFAULT_OUT_DIR = ROOT / "tmp" / "testdispatch"
DISPATCHER_SOURCE_NAME = "test_dispatcher.c"
MANIFEST_NAME = "tests.json"
CTEST_NAME = "CTestDispatch.cmake"

EXIT_OK = 0
EXIT_INPUT_ERROR = 2


@dataclass(frozen=True)
class GeneratedArtifacts:
    dispatcher_source: str
    manifest: str
    ctest: str
    test_count: int


def display_path(path: Path) -> str:
    absolute = path.resolve()
    try:
        return absolute.relative_to(ROOT).as_posix()
    except ValueError:
        return absolute.as_posix()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON suite file; replaces --test/--platform/--compiler-id/--dispatcher.",
    )
    parser.add_argument(
        "--test",
        dest="tests",
        action="append",
        default=[],
        help="Test location, e.g. tests/test_succeeds_1.f90 (repeatable, order is kept).",
    )
    parser.add_argument(
        "--platform",
        choices=[platform.value for platform in Platform],
        help="Symbol-mangling convention of the routine compiler.",
    )
    parser.add_argument(
        "--compiler-id",
        help="Resolve the platform from a CMake Fortran compiler id (GNU, Intel, ...).",
    )
    parser.add_argument(
        "--system",
        help="CMake system name used with --compiler-id (Linux, Windows, Darwin, ...).",
    )
    parser.add_argument(
        "--dispatcher",
        help="Path of the linked dispatcher executable used in the registrations.",
    )
    parser.add_argument(
        "--source-suffix",
        dest="source_suffixes",
        action="append",
        default=[],
        help=(
            "Recognized test source suffix (repeatable, default: "
            + ", ".join(DEFAULT_SOURCE_SUFFIXES)
            + ")."
        ),
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=DEFAULT_OUT_DIR,
        help=f"Output directory (default: {display_path(DEFAULT_OUT_DIR)}).",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> SuiteConfig:
    if args.config is not None:
        if args.tests or args.platform or args.compiler_id or args.dispatcher:
            raise ValueError(
                "--config cannot be combined with --test, --platform, --compiler-id, "
                "or --dispatcher"
            )
        config = load_suite_config(args.config)
        if args.source_suffixes:
            config = SuiteConfig(
                dispatcher=config.dispatcher,
                platform=config.platform,
                source_suffixes=tuple(args.source_suffixes),
                tests=config.tests,
            )
        return config

    if args.dispatcher is None:
        raise ValueError("--dispatcher is required without --config")
    if (args.platform is None) == (args.compiler_id is None):
        raise ValueError("exactly one of --platform or --compiler-id is required")
    if args.platform is not None:
        platform = parse_platform(args.platform)
    else:
        platform = resolve_platform(args.compiler_id, args.system)
    return SuiteConfig(
        dispatcher=args.dispatcher,
        platform=platform,
        source_suffixes=tuple(args.source_suffixes) or DEFAULT_SOURCE_SUFFIXES,
        tests=tuple(args.tests),
    )


def build_artifacts(config: SuiteConfig) -> GeneratedArtifacts:
    suite = build_suite(config.tests, config.platform, config.source_suffixes)
    cases = register(suite.pairs, config.dispatcher)
    return GeneratedArtifacts(
        dispatcher_source=generate(suite.pairs),
        manifest=render_manifest(suite, cases, dispatcher_path=config.dispatcher),
        ctest=render_ctest(cases),
        test_count=len(cases),
    )


def write_artifacts(out_dir: Path, artifacts: GeneratedArtifacts) -> list[Path]:
    """Stage every artifact next to its target, then move them all into place."""

    out_dir.mkdir(parents=True, exist_ok=True)
    staged: list[tuple[Path, Path]] = []
    try:
        for name, content in (
            (DISPATCHER_SOURCE_NAME, artifacts.dispatcher_source),
            (MANIFEST_NAME, artifacts.manifest),
            (CTEST_NAME, artifacts.ctest),
        ):
            target = out_dir / name
            temporary = out_dir / f".{name}.tmp"
            temporary.write_text(content, encoding="utf-8", newline="\n")
            staged.append((temporary, target))
    except OSError:
        for temporary, _ in staged:
            temporary.unlink(missing_ok=True)
        raise

    for temporary, target in staged:
        os.replace(temporary, target)
    return [target for _, target in staged]


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
        artifacts = build_artifacts(config)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        written = write_artifacts(args.out_dir, artifacts)
    except OSError as exc:
        print(f"error: unable to write generated files: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    print(
        f"TEST-DISPATCH-PASS: {artifacts.test_count} test(s) registered for "
        f"{config.platform.value} symbols"
    )
    for path in written:
        print(f"wrote {display_path(path)}")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
