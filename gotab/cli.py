"""CLI entrypoint: bash calls this through `complete -C gotab -o nospace go`."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Mapping, Optional, TextIO

from .config import ConfigError, GotabConfig, config_from_environ, load_config
from .engine import CompletionEngine
from .introspect import (
    DEFAULT_INTROSPECTOR,
    PackageIntrospector,
    available_introspectors,
    create_introspector,
)
from .logging import configure_logging, get_logger
from .models import CandidateWriter
from .tokenizer import InvocationError, Tokenizer

_logger = get_logger("cli")

# bash appends: command name, word being completed, previous word.
_BASH_WORDS = 3


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gotab",
        description="Print tab completions for the go command from COMP_LINE and COMP_POINT.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log debug details to stderr.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML config file (defaults to ~/.config/gotab/config.yml).",
    )
    return parser


def _usage(prog: str) -> str:
    name = os.path.basename(prog) or "gotab"
    return (
        "Error: COMP_LINE and COMP_POINT environment variables not set.\n"
        "\n"
        f"Do not call {prog} directly. Instead, do the following:\n"
        "1. Place this program in your PATH.\n"
        "2. Place this line in your bashrc file:\n"
        f"\tcomplete -C {name} -o nospace go\n"
    )


def main(
    argv: list[str] | None = None,
    environ: Mapping[str, str] | None = None,
    stdout: TextIO | None = None,
) -> None:
    """CLI entrypoint for gotab."""
    if argv is None:
        argv = sys.argv[1:]
    if environ is None:
        environ = os.environ

    if "COMP_LINE" in environ and len(argv) >= _BASH_WORDS:
        argv = argv[:-_BASH_WORDS]
    parser = _build_parser()
    args, _ = parser.parse_known_args(argv)

    config = _load_config(environ, args.config)
    configure_logging(
        verbose=bool(args.verbose) or config.verbose,
        log_file=config.log_file,
        comp_line=environ.get("COMP_LINE"),
    )

    try:
        tokenizer = Tokenizer.from_environ(environ, config.command)
    except InvocationError as exc:
        _logger.debug("No shell context: %s", exc)
        parser.exit(1, _usage(sys.argv[0] if sys.argv and sys.argv[0] else "gotab"))

    writer = CandidateWriter(stdout)
    engine = CompletionEngine(config, _create_introspector(config), writer)
    engine.run(tokenizer)
    _logger.debug("emitted %d candidates for %r", writer.count, environ.get("COMP_LINE"))


def _load_config(environ: Mapping[str, str], config_path: Optional[Path]) -> GotabConfig:
    try:
        return load_config(environ, config_path)
    except ConfigError as exc:
        configure_logging()
        _logger.warning("%s; using environment defaults", exc)
        return config_from_environ(environ)


def _create_introspector(config: GotabConfig) -> PackageIntrospector:
    try:
        return create_introspector(config.introspector, config.build_context())
    except ValueError as exc:
        _logger.warning(
            "%s (available: %s); using %s",
            exc,
            ", ".join(available_introspectors()),
            DEFAULT_INTROSPECTOR,
        )
        return create_introspector(DEFAULT_INTROSPECTOR, config.build_context())


if __name__ == "__main__":
    main(sys.argv[1:])
