"""Suggestion engine: turns a tokenized `go` command line into candidates."""

from __future__ import annotations

import dataclasses
import os
from typing import Callable, List, Optional

from .config import GotabConfig
from .introspect import PackageIntrospector
from .logging import get_logger
from .matcher import suggest_symbol
from .models import Candidate, DocOptions
from .paths import SearchRoots, split_token, suggest_packages, suggest_paths
from .tokenizer import Tokenizer

_logger = get_logger("engine")

# `go doc` flags as suggested, in this order.
DOC_FLAGS = ("-u", "-c", "-cmd")

_DOC_OPTION_FIELDS = {
    "-c": "match_case",
    "--c": "match_case",
    "-u": "unexported",
    "--u": "unexported",
    "-cmd": "show_cmd",
    "--cmd": "show_cmd",
}

_ENTRY_POINT_PACKAGE = "main"


class CompletionEngine:
    """Dispatches on the `go` subcommand and emits completion candidates."""

    def __init__(
        self,
        config: GotabConfig,
        introspector: PackageIntrospector,
        emit: Callable[[Candidate], None],
        cwd: Optional[str] = None,
    ) -> None:
        self._config = config
        self._introspector = introspector
        self._emit = emit
        self._cwd = cwd
        self._roots: SearchRoots = config.search_roots()

    def run(self, tokenizer: Tokenizer) -> None:
        """Consume `tokenizer` up to the cursor and emit every candidate for it."""
        token = tokenizer.next()
        if not token.committed:
            self.suggest_tools(token.text)
        elif token.text == "doc":
            self.handle_doc(tokenizer)
        else:
            self.handle_default(tokenizer)

    def suggest_tools(self, prefix: str) -> None:
        for tool in self._config.tools:
            if tool.startswith(prefix):
                self._emit(Candidate(tool))

    def handle_default(self, tokenizer: Tokenizer) -> None:
        """`go <cmd> ...`: the live word may be a package or a plain path."""
        live = _live_token(tokenizer)
        self.suggest_packages(live)
        suggest_paths(live, self._emit)

    def handle_doc(self, tokenizer: Tokenizer) -> None:
        """`go doc [-u] [-c] [-cmd] [<pkg>] [<sym>[.<method>]]`."""
        options = DocOptions()
        args: List[str] = []
        for token in tokenizer:
            if not token.committed:
                self._suggest_doc(token.text, options, args)
                return
            field_name = _DOC_OPTION_FIELDS.get(token.text)
            if field_name is not None:
                options = dataclasses.replace(options, **{field_name: True})
            else:
                args.append(token.text)

    def _suggest_doc(self, token: str, options: DocOptions, args: List[str]) -> None:
        _logger.debug("doc completion for %r with %s and args %s", token, options, args)
        if token.startswith("-"):
            for flag in DOC_FLAGS:
                if flag.startswith(token):
                    self._emit(Candidate(flag))
            return

        if len(args) == 0:
            # go doc <sym>[.<method>]
            rel_pkg = False
            cwd = self._cwd if self._cwd is not None else _getcwd()
            if cwd is not None:
                rel_pkg = self.suggest_package_contents(cwd, "", token, options)

            # go doc <pkg>
            if token or not rel_pkg:
                self.suggest_packages(token)

            # go doc <pkg>.<sym>[.<method>]
            root, base = split_token(token)
            dot = base.find(".")
            if token and dot > 0:
                split_at = len(root) + dot
                self._suggest_first_package(
                    token[:split_at], token[: split_at + 1], token[split_at + 1 :], options
                )
        elif len(args) == 1:
            # go doc <pkg> <sym>[.<method>]
            self._suggest_first_package(args[0], "", token, options)

    def _suggest_first_package(
        self, pkg: str, tok_root: str, token: str, options: DocOptions
    ) -> bool:
        for pkg_path in self._roots.expand(pkg):
            if self.suggest_package_contents(pkg_path, tok_root, token, options):
                return True
        return False

    def suggest_packages(self, token: str) -> None:
        suggest_packages(token, self._roots, self._emit, self._config.source_suffix)

    def suggest_package_contents(
        self, pkg_path: str, tok_root: str, token: str, options: DocOptions
    ) -> bool:
        """Emit matching symbols of the package at `pkg_path`; False if it is not one."""
        symbols = self._introspector.load(pkg_path)
        if symbols is None:
            return False
        _logger.debug("package %s loaded from %s", symbols.name, symbols.directory)
        if symbols.name == _ENTRY_POINT_PACKAGE and not options.show_cmd:
            return False
        for name in symbols.names():
            suggest_symbol(self._emit, options, tok_root, token, name)
        return True


def _live_token(tokenizer: Tokenizer) -> str:
    for token in tokenizer:
        if not token.committed:
            return token.text
    return ""


def _getcwd() -> Optional[str]:
    try:
        return os.getcwd()
    except OSError:
        return None


__all__ = ["CompletionEngine", "DOC_FLAGS"]
