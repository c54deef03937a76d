"""Test identity and dispatch for natively compiled test routines."""

from __future__ import annotations

from testdispatch.dispatcher import UNKNOWN_SYMBOL_EXIT_CODE, generate
from testdispatch.errors import (
    CollisionError,
    ConfigError,
    NormalizationError,
    PlatformError,
    TestDispatchError,
)
from testdispatch.mangling import mangle, parse_platform, resolve_platform
from testdispatch.model import Platform, TestCase, TestPair, TestSuite
from testdispatch.naming import DEFAULT_SOURCE_SUFFIXES, normalize
from testdispatch.registrar import register
from testdispatch.suite import build_suite

__all__ = [
    "CollisionError",
    "ConfigError",
    "DEFAULT_SOURCE_SUFFIXES",
    "NormalizationError",
    "Platform",
    "PlatformError",
    "TestCase",
    "TestDispatchError",
    "TestPair",
    "TestSuite",
    "UNKNOWN_SYMBOL_EXIT_CODE",
    "build_suite",
    "generate",
    "mangle",
    "normalize",
    "parse_platform",
    "register",
    "resolve_platform",
]
