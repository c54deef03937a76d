"""Map canonical test names to the symbols a platform's linker exports."""

from __future__ import annotations

from typing import Callable

from testdispatch.errors import NormalizationError, PlatformError
from testdispatch.model import Platform
from testdispatch.naming import is_identifier

ANY_SYSTEM = "*"

MANGLERS: dict[Platform, Callable[[str], str]] = {
    Platform.UPPERCASE_NO_SUFFIX: lambda name: name.upper(),
    Platform.LOWERCASE_TRAILING_UNDERSCORE: lambda name: name.lower() + "_",
    Platform.LOWERCASE_NO_SUFFIX: lambda name: name.lower(),
}

# Keyed by (system, compiler id) using CMake's CMAKE_SYSTEM_NAME and
# CMAKE_Fortran_COMPILER_ID spellings. Exact system entries win over ANY_SYSTEM.
TOOLCHAIN_PLATFORMS: dict[tuple[str, str], Platform] = {
    ("Windows", "Intel"): Platform.UPPERCASE_NO_SUFFIX,
    ("Windows", "IntelLLVM"): Platform.UPPERCASE_NO_SUFFIX,
    (ANY_SYSTEM, "GNU"): Platform.LOWERCASE_TRAILING_UNDERSCORE,
    (ANY_SYSTEM, "Intel"): Platform.LOWERCASE_TRAILING_UNDERSCORE,
    (ANY_SYSTEM, "IntelLLVM"): Platform.LOWERCASE_TRAILING_UNDERSCORE,
    (ANY_SYSTEM, "LLVMFlang"): Platform.LOWERCASE_TRAILING_UNDERSCORE,
    (ANY_SYSTEM, "Flang"): Platform.LOWERCASE_TRAILING_UNDERSCORE,
    (ANY_SYSTEM, "NAG"): Platform.LOWERCASE_TRAILING_UNDERSCORE,
    (ANY_SYSTEM, "PGI"): Platform.LOWERCASE_TRAILING_UNDERSCORE,
    (ANY_SYSTEM, "NVHPC"): Platform.LOWERCASE_TRAILING_UNDERSCORE,
    (ANY_SYSTEM, "Cray"): Platform.LOWERCASE_TRAILING_UNDERSCORE,
    (ANY_SYSTEM, "XL"): Platform.LOWERCASE_NO_SUFFIX,
}


def parse_platform(value: str | Platform) -> Platform:
    if isinstance(value, Platform):
        return value
    try:
        return Platform(value)
    except ValueError as exc:
        choices = ", ".join(platform.value for platform in Platform)
        raise PlatformError(
            f"unknown platform {value!r} (expected one of: {choices})"
        ) from exc


def resolve_platform(compiler_id: str, system: str | None = None) -> Platform:
    if system is not None:
        exact = TOOLCHAIN_PLATFORMS.get((system, compiler_id))
        if exact is not None:
            return exact
    fallback = TOOLCHAIN_PLATFORMS.get((ANY_SYSTEM, compiler_id))
    if fallback is None:
        where = f" on {system}" if system else ""
        raise PlatformError(
            f"no symbol-mangling convention known for compiler {compiler_id!r}{where}"
        )
    return fallback


def mangle(name: str, platform: Platform) -> str:
    if not is_identifier(name):
        raise NormalizationError(f"cannot mangle {name!r}: not a valid routine identifier")
    try:
        mangler = MANGLERS[platform]
    except KeyError as exc:
        raise PlatformError(f"no mangler registered for platform {platform!r}") from exc
    return mangler(name)
