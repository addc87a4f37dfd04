"""Symbol name matching for `go doc` completions."""

from __future__ import annotations

import unicodedata
from typing import Callable, Optional

from .models import Candidate, DocOptions


def is_exported(name: str) -> bool:
    """Report whether the part after the last dot starts with an upper-case letter."""
    simple = name.rsplit(".", 1)[-1]
    return bool(simple) and unicodedata.category(simple[0]) == "Lu"


def fold(char: str) -> str:
    """Return the representative of the simple case-folding class of `char`.

    Only single-character mappings count as simple folds, so characters whose
    folding expands (such as U+0130) stay in a class of their own.
    """
    folded = char.casefold()
    if len(folded) == 1:
        return folded
    lowered = char.lower()
    if len(lowered) == 1:
        return lowered
    return char


def match_symbol(token: str, name: str, match_case: bool = False) -> Optional[str]:
    """Return the completed text for `name` if `token` matches it, else None.

    An exact prefix always matches. Without `match_case`, each typed lower-case
    character may also stand for any case variant of the character at the same
    position. The result keeps what the user typed and appends the rest of
    `name` in its own spelling.
    """
    if name.startswith(token):
        return name
    if match_case:
        return None

    if len(token) > len(name):
        return None
    for typed, actual in zip(token, name):
        if typed == actual:
            continue
        if unicodedata.category(typed) == "Ll" and fold(typed) == fold(actual):
            continue
        return None
    return token + name[len(token) :]


def suggest_symbol(
    emit: Callable[[Candidate], None],
    options: DocOptions,
    tok_root: str,
    token: str,
    name: str,
) -> bool:
    """Emit `name` as a candidate when it is visible and matches `token`."""
    if not options.unexported and not is_exported(name):
        return False
    completion = match_symbol(token, name, options.match_case)
    if completion is None:
        return False
    emit(Candidate(tok_root + completion))
    return True


__all__ = ["fold", "is_exported", "match_symbol", "suggest_symbol"]
