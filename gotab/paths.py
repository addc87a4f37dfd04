"""Package and filesystem path suggestions."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Tuple

from .logging import get_logger
from .models import Candidate

_logger = get_logger("paths")

Emit = Callable[[Candidate], None]


@dataclass(frozen=True)
class SearchRoots:
    """Workspace roots followed by the system root, each holding a sources tree."""

    workspace_roots: Sequence[str] = field(default_factory=tuple)
    system_root: str | None = None
    sources_dir: str = "src"

    def expand(self, rel_path: str) -> List[str]:
        """Return `<root>/<sources_dir>/<rel_path>` for every configured root, in order."""
        paths: List[str] = []
        for root in self.workspace_roots:
            if root:
                paths.append(join_path(root, self.sources_dir, rel_path))
        if self.system_root:
            paths.append(join_path(self.system_root, self.sources_dir, rel_path))
        return paths


def join_path(*parts: str) -> str:
    """Join with slashes and clean the result; later absolute parts do not reset it."""
    joined = "/".join(part for part in parts if part)
    if not joined:
        return ""
    return posixpath.normpath(joined)


def split_token(token: str) -> Tuple[str, str]:
    """Split a partial path into the directory part (with its slash) and the rest."""
    if is_dir_token(token):
        return token, ""
    index = token.rfind("/")
    return token[: index + 1], token[index + 1 :]


def is_dir_token(token: str) -> bool:
    return len(token) > 0 and token.endswith(os.sep)


def list_dirs(dir_path: str) -> List[str]:
    """Names of the subdirectories of `dir_path`, following symlinks one level."""
    dirs: List[str] = []
    for entry in _scan(dir_path):
        try:
            is_dir = entry.is_dir()
        except OSError:
            is_dir = False
        if is_dir:
            dirs.append(entry.name)
    return dirs


def is_package(dir_path: str, source_suffix: str = ".go") -> bool:
    """Cheap package check: at least one entry with the source suffix exists."""
    return any(entry.name.endswith(source_suffix) for entry in _scan(dir_path))


def has_packages(dir_path: str) -> bool:
    """Cheap namespace check: the directory has at least one subdirectory."""
    return len(list_dirs(dir_path)) > 0


def _matches(name: str, base: str) -> bool:
    if not name.startswith(base):
        return False
    # Hidden entries only show up once the user started typing a name.
    if name.startswith(".") and not base:
        return False
    return True


def suggest_packages(
    token: str, roots: SearchRoots, emit: Emit, source_suffix: str = ".go"
) -> None:
    """Emit package and namespace candidates for `token` from every search root."""
    root, base = split_token(token)
    for dir_path in roots.expand(root):
        for name in list_dirs(dir_path):
            if not _matches(name, base):
                continue
            path = join_path(dir_path, name)
            if is_package(path, source_suffix):
                emit(Candidate(root + name))
            if has_packages(path):
                emit(Candidate(root + name, directory=True))


def suggest_paths(token: str, emit: Emit) -> None:
    """Emit file and directory candidates for `token` relative to the working directory."""
    root, base = split_token(token)
    for entry in _scan(root or "."):
        if not _matches(entry.name, base):
            continue
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            is_dir = False
        emit(Candidate(root + entry.name, directory=is_dir))


def _scan(dir_path: str) -> List[os.DirEntry]:
    try:
        with os.scandir(dir_path) as it:
            entries = list(it)
    except OSError as exc:
        _logger.debug("Skipping unreadable directory %s: %s", dir_path, exc)
        return []
    entries.sort(key=lambda entry: entry.name)
    return entries


__all__ = [
    "SearchRoots",
    "has_packages",
    "is_package",
    "join_path",
    "list_dirs",
    "split_token",
    "suggest_packages",
    "suggest_paths",
]
