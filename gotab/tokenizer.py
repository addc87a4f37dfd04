"""Command-line tokenizer that stops at the word under the cursor."""

from __future__ import annotations

from typing import Iterator, Mapping

from .models import Token


class InvocationError(RuntimeError):
    """Raised when the shell did not provide a usable completion context."""


class Tokenizer:
    """Walks the command line left to right until the cursor is reached.

    Every call to :meth:`next` returns the next word. Words the cursor has
    already moved past are ``committed``. The word at the cursor is returned
    truncated at the cursor and is never committed. Anything after the
    cursor is ignored.
    """

    def __init__(self, line: str, point: int) -> None:
        self._line = line
        self._point = point

    @classmethod
    def from_environ(cls, environ: Mapping[str, str], command: str = "go") -> "Tokenizer":
        """Build a tokenizer from bash's COMP_LINE/COMP_POINT and skip the command name."""
        line = environ.get("COMP_LINE")
        raw_point = environ.get("COMP_POINT")
        if line is None or raw_point is None:
            raise InvocationError("COMP_LINE and COMP_POINT environment variables not set")
        try:
            point = int(raw_point, 10)
        except ValueError as exc:
            raise InvocationError(f"COMP_POINT is not an integer: {raw_point!r}") from exc
        if point < 0 or point > len(line):
            raise InvocationError(f"COMP_POINT {point} is outside of COMP_LINE")
        if not line.startswith(command + " "):
            raise InvocationError(f"COMP_LINE does not start with {command!r}")

        tokenizer = cls(line, point)
        tokenizer.next()
        return tokenizer

    def next(self) -> Token:
        """Return the next word, truncating and finishing at the cursor."""
        line = self._line
        stripped = len(line) - len(line.lstrip(" "))
        line, point = line[stripped:], self._point - stripped

        end = line.find(" ")
        if end < 0:
            end = len(line)
        text = line[:end]

        if point > len(text):
            self._line, self._point = line[end:], point - end
            return Token(text, committed=True)

        # Cursor lies inside or right after this word; nothing else matters.
        self._line, self._point = "", 0
        return Token(text[: max(point, 0)], committed=False)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next()
            yield token
            if not token.committed:
                return


__all__ = ["InvocationError", "Tokenizer"]
