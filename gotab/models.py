"""Core data models shared across gotab components."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, TextIO


@dataclass(frozen=True)
class Token:
    """One space-delimited word of the command line."""

    text: str
    committed: bool


@dataclass(frozen=True)
class Candidate:
    """A completion suggestion and whether it can be completed further."""

    text: str
    directory: bool = False

    def render(self) -> str:
        # Bash relies on the trailing space to finish the word.
        return self.text + (os.sep if self.directory else " ")


class CandidateWriter:
    """Streams candidates to an output stream, one per line, as they are found."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self.count = 0

    def __call__(self, candidate: Candidate) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(candidate.render() + "\n")
        self.count += 1


@dataclass(frozen=True)
class DocOptions:
    """Flags collected from committed `go doc` option tokens."""

    match_case: bool = False
    unexported: bool = False
    show_cmd: bool = False


@dataclass
class PackageSymbols:
    """Declaration names found in a single Go package directory.

    The lists are kept in the order the introspector produced them.
    """

    name: str
    directory: str
    consts: List[str] = field(default_factory=list)
    vars: List[str] = field(default_factory=list)
    funcs: List[str] = field(default_factory=list)
    types: Dict[str, List[str]] = field(default_factory=dict)

    def names(self) -> Iterator[str]:
        """Yield every declaration name, methods as `Type.Method`."""
        yield from self.consts
        yield from self.vars
        yield from self.funcs
        for type_name, methods in self.types.items():
            yield type_name
            for method in methods:
                yield f"{type_name}.{method}"


__all__ = ["Candidate", "CandidateWriter", "DocOptions", "PackageSymbols", "Token"]
