"""Generate the C entry point that dispatches a symbol argument to a test routine."""

from __future__ import annotations

from typing import Sequence, Union

from testdispatch.errors import CollisionError, NormalizationError
from testdispatch.model import TestPair
from testdispatch.naming import is_identifier

# automake and Meson treat 99 as a hard error rather than a test failure.
UNKNOWN_SYMBOL_EXIT_CODE = 99

RESERVED_PREFIX = "testdispatch_"

# Everything <stdio.h> may declare, including the POSIX and BSD extensions
# hosted C libraries expose in their default modes.
STDIO_IDENTIFIERS = frozenset(
    {
        "BUFSIZ",
        "EOF",
        "FILE",
        "FILENAME_MAX",
        "FOPEN_MAX",
        "L_ctermid",
        "L_tmpnam",
        "NULL",
        "P_tmpdir",
        "SEEK_CUR",
        "SEEK_END",
        "SEEK_SET",
        "TMP_MAX",
        "clearerr",
        "clearerr_unlocked",
        "ctermid",
        "cuserid",
        "dprintf",
        "fclose",
        "fcloseall",
        "fdopen",
        "feof",
        "feof_unlocked",
        "ferror",
        "ferror_unlocked",
        "fflush",
        "fflush_unlocked",
        "fgetc",
        "fgetc_unlocked",
        "fgetln",
        "fgetpos",
        "fgets",
        "fgets_unlocked",
        "fileno",
        "fileno_unlocked",
        "flockfile",
        "fmemopen",
        "fopen",
        "fopencookie",
        "fpos_t",
        "fprintf",
        "fpurge",
        "fputc",
        "fputc_unlocked",
        "fputs",
        "fputs_unlocked",
        "fread",
        "fread_unlocked",
        "freopen",
        "fscanf",
        "fseek",
        "fseeko",
        "fsetpos",
        "ftell",
        "ftello",
        "ftrylockfile",
        "funlockfile",
        "funopen",
        "fwrite",
        "fwrite_unlocked",
        "getc",
        "getc_unlocked",
        "getchar",
        "getchar_unlocked",
        "getdelim",
        "getline",
        "gets",
        "getw",
        "obstack_printf",
        "obstack_vprintf",
        "off_t",
        "open_memstream",
        "pclose",
        "perror",
        "popen",
        "printf",
        "putc",
        "putc_unlocked",
        "putchar",
        "putchar_unlocked",
        "puts",
        "putw",
        "remove",
        "rename",
        "renameat",
        "renameat2",
        "renamex_np",
        "rewind",
        "scanf",
        "setbuf",
        "setbuffer",
        "setlinebuf",
        "setvbuf",
        "size_t",
        "snprintf",
        "sprintf",
        "sscanf",
        "ssize_t",
        "stderr",
        "stdin",
        "stdout",
        "tempnam",
        "tmpfile",
        "tmpnam",
        "tmpnam_r",
        "ungetc",
        "va_list",
        "vasprintf",
        "asprintf",
        "vdprintf",
        "vfprintf",
        "vfscanf",
        "vprintf",
        "vscanf",
        "vsnprintf",
        "vsprintf",
        "vsscanf",
    }
)

# C99 through C23 keywords; underscore-prefixed ones are covered by is_reserved.
C_KEYWORDS = frozenset(
    {
        "alignas",
        "alignof",
        "auto",
        "bool",
        "break",
        "case",
        "char",
        "const",
        "constexpr",
        "continue",
        "default",
        "do",
        "double",
        "else",
        "enum",
        "extern",
        "false",
        "float",
        "for",
        "goto",
        "if",
        "inline",
        "int",
        "long",
        "nullptr",
        "register",
        "restrict",
        "return",
        "short",
        "signed",
        "sizeof",
        "static",
        "static_assert",
        "struct",
        "switch",
        "thread_local",
        "true",
        "typedef",
        "typeof",
        "typeof_unqual",
        "union",
        "unsigned",
        "void",
        "volatile",
        "while",
    }
)

RESERVED_IDENTIFIERS = frozenset({"main"}) | STDIO_IDENTIFIERS | C_KEYWORDS

PairLike = Union[TestPair, tuple[str, str]]


def is_reserved(symbol: str) -> bool:
    if symbol in RESERVED_IDENTIFIERS:
        return True
    if symbol.casefold().startswith(RESERVED_PREFIX):
        return True
    # _X... and __... belong to the C implementation
    return symbol.startswith("__") or (
        len(symbol) > 1 and symbol[0] == "_" and symbol[1].isupper()
    )


def coerce_pairs(pairs: Sequence[PairLike]) -> list[tuple[str, str]]:
    coerced: list[tuple[str, str]] = []
    for pair in pairs:
        if isinstance(pair, TestPair):
            coerced.append((pair.canonical_name, pair.symbol))
        else:
            canonical_name, symbol = pair
            coerced.append((canonical_name, symbol))
    return coerced


def check_symbols(pairs: Sequence[tuple[str, str]]) -> None:
    seen: dict[str, list[str]] = {}
    for canonical_name, symbol in pairs:
        if not is_identifier(symbol):
            raise NormalizationError(f"symbol {symbol!r} is not a valid C identifier")
        if is_reserved(symbol):
            raise CollisionError(
                f"symbol {symbol!r} (from {canonical_name!r}) collides with an identifier "
                "reserved by the dispatcher"
            )
        seen.setdefault(symbol, []).append(canonical_name)

    duplicates = tuple(
        (symbol, tuple(names)) for symbol, names in seen.items() if len(names) > 1
    )
    if duplicates:
        details = "; ".join(
            f"{symbol!r} <- {', '.join(repr(name) for name in names)}"
            for symbol, names in duplicates
        )
        raise CollisionError(f"duplicate dispatcher symbols: {details}", collisions=duplicates)


def generate(pairs: Sequence[PairLike]) -> str:
    """Return C99 source for a dispatcher over ``pairs``.

    The program takes exactly one argument, looks it up by exact string match
    in a static table of the declared routines, and returns the matched
    routine's status as its exit code. Anything else exits with
    ``UNKNOWN_SYMBOL_EXIT_CODE`` without calling a routine.
    """

    entries = coerce_pairs(pairs)
    check_symbols(entries)

    # <stdio.h> is the only header; test symbols must stay clear of
    # STDIO_IDENTIFIERS.
    lines: list[str] = [
        "/*",
        " * Test dispatcher generated by testdispatch. Do not edit.",
        " *",
        " * usage: <dispatcher> <test-symbol>",
        " */",
        "#include <stdio.h>",
        "",
        f"#define TESTDISPATCH_UNKNOWN_SYMBOL {UNKNOWN_SYMBOL_EXIT_CODE}",
        "",
    ]
    for canonical_name, symbol in entries:
        lines.append(f"/* {canonical_name} */")
        lines.append(f"extern int {symbol}(void);")
    if entries:
        lines.append("")

    lines.extend(
        [
            "typedef int (*testdispatch_routine)(void);",
            "",
            "struct testdispatch_entry {",
            "  const char *symbol;",
            "  testdispatch_routine routine;",
            "};",
            "",
            "static const struct testdispatch_entry testdispatch_table[] = {",
        ]
    )
    for _, symbol in entries:
        lines.append(f'  {{"{symbol}", {symbol}}},')
    lines.extend(
        [
            "  {NULL, NULL},",
            "};",
            "",
            "static int testdispatch_equal(const char *left, const char *right) {",
            "  while (*left != '\\0' && *left == *right) {",
            "    ++left;",
            "    ++right;",
            "  }",
            "  return *left == *right;",
            "}",
            "",
            "int main(int argc, char **argv) {",
            "  const struct testdispatch_entry *entry;",
            "",
            "  if (argc != 2) {",
            '    fprintf(stderr, "usage: %s <test-symbol>\\n", argc > 0 ? argv[0] : "dispatcher");',
            "    return TESTDISPATCH_UNKNOWN_SYMBOL;",
            "  }",
            "  for (entry = testdispatch_table; entry->symbol != NULL; ++entry) {",
            "    if (testdispatch_equal(argv[1], entry->symbol)) {",
            "      return entry->routine();",
            "    }",
            "  }",
            '  fprintf(stderr, "unknown test symbol: %s\\n", argv[1]);',
            "  return TESTDISPATCH_UNKNOWN_SYMBOL;",
            "}",
        ]
    )
    return "\n".join(lines) + "\n"
