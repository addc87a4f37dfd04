"""Go build constraints: which source files `go build` would compile."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List

KNOWN_OS = frozenset(
    {
        "aix",
        "android",
        "darwin",
        "dragonfly",
        "freebsd",
        "hurd",
        "illumos",
        "ios",
        "js",
        "linux",
        "nacl",
        "netbsd",
        "openbsd",
        "plan9",
        "solaris",
        "wasip1",
        "windows",
        "zos",
    }
)

KNOWN_ARCH = frozenset(
    {
        "386",
        "amd64",
        "amd64p32",
        "arm",
        "armbe",
        "arm64",
        "arm64be",
        "loong64",
        "mips",
        "mipsle",
        "mips64",
        "mips64le",
        "mips64p32",
        "mips64p32le",
        "ppc",
        "ppc64",
        "ppc64le",
        "riscv",
        "riscv64",
        "s390",
        "s390x",
        "sparc",
        "sparc64",
        "wasm",
    }
)

UNIX_OS = frozenset(
    {
        "aix",
        "android",
        "darwin",
        "dragonfly",
        "freebsd",
        "hurd",
        "illumos",
        "ios",
        "linux",
        "netbsd",
        "openbsd",
        "solaris",
    }
)

# GOOS values that also satisfy another GOOS tag.
_OS_ALIASES = {
    "android": "linux",
    "illumos": "solaris",
    "ios": "darwin",
}

_RELEASE_TAG = re.compile(r"^go1\.\d+$")
_EXPR_TOKEN = re.compile(r"\s*(\|\||&&|!|\(|\)|[A-Za-z0-9_.]+)")
_PLUS_BUILD_TERM = re.compile(r"^!?[A-Za-z0-9_.]+$")


class ConstraintError(ValueError):
    """Raised for a `//go:build` line that cannot be parsed."""


@dataclass(frozen=True)
class BuildContext:
    """Target platform and tags used to select files in a package directory."""

    goos: str
    goarch: str
    cgo_enabled: bool = True
    tags: FrozenSet[str] = field(default_factory=frozenset)

    def match_tag(self, tag: str) -> bool:
        if tag in (self.goos, self.goarch) or tag in self.tags:
            return True
        if _OS_ALIASES.get(self.goos) == tag:
            return True
        if tag == "unix":
            return self.goos in UNIX_OS
        if tag == "gc":
            return True
        if tag == "cgo":
            return self.cgo_enabled
        return bool(_RELEASE_TAG.match(tag))

    def match_file_name(self, file_name: str) -> bool:
        """Apply the `_GOOS`, `_GOARCH` and `_GOOS_GOARCH` file name suffix rules."""
        stem = file_name.split(".", 1)[0]
        index = stem.find("_")
        if index < 0:
            return True
        parts = stem[index:].split("_")
        if parts and parts[-1] == "test":
            parts = parts[:-1]
        if len(parts) >= 2 and parts[-2] in KNOWN_OS and parts[-1] in KNOWN_ARCH:
            return self.match_tag(parts[-2]) and self.match_tag(parts[-1])
        if parts and (parts[-1] in KNOWN_OS or parts[-1] in KNOWN_ARCH):
            return self.match_tag(parts[-1])
        return True

    def include_file(self, file_name: str, source: str) -> bool:
        """Report whether a non-test Go file would be part of the package build."""
        if not is_source_file(file_name):
            return False
        if not self.match_file_name(file_name):
            return False
        expression = find_build_expression(source)
        if expression is not None:
            try:
                return evaluate(expression, self.match_tag)
            except ConstraintError:
                return False
        # `// +build` lines only count when no `//go:build` line is present.
        return all(
            match_plus_build(line, self.match_tag) for line in find_plus_build_lines(source)
        )


def is_source_file(file_name: str) -> bool:
    if not file_name.endswith(".go") or file_name.endswith("_test.go"):
        return False
    return not file_name.startswith(("_", "."))


def find_build_expression(source: str) -> str | None:
    """Return the `//go:build` expression from the file header, if any."""
    in_block = False
    for raw in source.splitlines():
        line = raw.strip()
        if in_block:
            if "*/" in line:
                in_block = False
            continue
        if not line:
            continue
        if line.startswith("//"):
            if line.startswith("//go:build") and (len(line) == 10 or line[10].isspace()):
                return line[len("//go:build") :].strip()
            continue
        if line.startswith("/*"):
            in_block = "*/" not in line[2:]
            continue
        break
    return None


def find_plus_build_lines(source: str) -> List[str]:
    """Return the arguments of each legacy `// +build` line in the file header.

    Only the leading run of `//` comments is searched, and a line counts only
    when a blank line follows it before the package clause.
    """
    found: List[str] = []
    pending: List[str] = []
    for raw in source.splitlines():
        line = raw.strip()
        if not line:
            found.extend(pending)
            pending = []
            continue
        if not line.startswith("//"):
            break
        fields = line[2:].split()
        if fields and fields[0] == "+build":
            pending.append(" ".join(fields[1:]))
    return found


def match_plus_build(line: str, match_tag: Callable[[str], bool]) -> bool:
    """Evaluate one `// +build` line: spaces separate ORed options, commas ANDed terms."""
    return any(
        all(_match_plus_term(term, match_tag) for term in option.split(","))
        for option in line.split()
    )


def _match_plus_term(term: str, match_tag: Callable[[str], bool]) -> bool:
    if not _PLUS_BUILD_TERM.match(term):
        return False
    if term.startswith("!"):
        return not match_tag(term[1:])
    return match_tag(term)


def evaluate(expression: str, match_tag: Callable[[str], bool]) -> bool:
    """Evaluate a build constraint expression with `!`, `&&`, `||` and parentheses."""
    tokens = _tokenize(expression)
    parser = _ExprParser(tokens, match_tag)
    result = parser.parse_or()
    if parser.pos != len(tokens):
        raise ConstraintError(f"unexpected token {tokens[parser.pos]!r} in {expression!r}")
    return result


def _tokenize(expression: str) -> List[str]:
    tokens: List[str] = []
    pos = 0
    stripped = expression.rstrip()
    while pos < len(stripped):
        match = _EXPR_TOKEN.match(stripped, pos)
        if match is None:
            raise ConstraintError(f"invalid build constraint {expression!r}")
        tokens.append(match.group(1))
        pos = match.end()
    if not tokens:
        raise ConstraintError("empty build constraint")
    return tokens


class _ExprParser:
    def __init__(self, tokens: List[str], match_tag: Callable[[str], bool]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.match_tag = match_tag

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _take(self) -> str:
        token = self._peek()
        if token is None:
            raise ConstraintError("unexpected end of build constraint")
        self.pos += 1
        return token

    def parse_or(self) -> bool:
        result = self.parse_and()
        while self._peek() == "||":
            self._take()
            rhs = self.parse_and()
            result = result or rhs
        return result

    def parse_and(self) -> bool:
        result = self.parse_not()
        while self._peek() == "&&":
            self._take()
            rhs = self.parse_not()
            result = result and rhs
        return result

    def parse_not(self) -> bool:
        token = self._take()
        if token == "!":
            return not self.parse_not()
        if token == "(":
            result = self.parse_or()
            if self._take() != ")":
                raise ConstraintError("missing closing parenthesis")
            return result
        if token in ("&&", "||", ")"):
            raise ConstraintError(f"unexpected operator {token!r}")
        return self.match_tag(token)


__all__ = [
    "BuildContext",
    "ConstraintError",
    "KNOWN_ARCH",
    "KNOWN_OS",
    "evaluate",
    "find_build_expression",
    "find_plus_build_lines",
    "is_source_file",
    "match_plus_build",
]
