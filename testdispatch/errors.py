"""Errors raised while deriving, generating, and registering test dispatch."""

from __future__ import annotations


class TestDispatchError(ValueError):
    """Base class for generation-time failures; all of them are fatal to the build step."""

    __test__ = False


class NormalizationError(TestDispatchError):
    """Raised when a test location cannot be turned into a canonical identifier."""


class CollisionError(TestDispatchError):
    """Raised when distinct test locations resolve to the same linker symbol."""

    def __init__(
        self,
        message: str,
        *,
        collisions: tuple[tuple[str, tuple[str, ...]], ...] = (),
    ) -> None:
        super().__init__(message)
        self.collisions = collisions


class PlatformError(TestDispatchError):
    """Raised when no symbol-mangling convention is known for a toolchain."""


class ConfigError(TestDispatchError):
    """Raised when a suite config or registration manifest is unreadable or invalid."""
