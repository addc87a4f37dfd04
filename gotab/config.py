"""Configuration loading for gotab (environment plus an optional YAML file)."""

from __future__ import annotations

import os
import platform
import shlex
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .introspect import DEFAULT_INTROSPECTOR
from .introspect.constraints import BuildContext
from .paths import SearchRoots

DEFAULT_TOOLS = (
    "build",
    "clean",
    "doc",
    "env",
    "fix",
    "fmt",
    "generate",
    "get",
    "install",
    "list",
    "run",
    "test",
    "tool",
    "version",
    "vet",
    "help",
)

_DEFAULT_CONFIG_PATH = Path("~/.config/gotab/config.yml")

_GOOS_BY_PLATFORM = {
    "linux": "linux",
    "darwin": "darwin",
    "win32": "windows",
    "cygwin": "windows",
    "aix": "aix",
}

_GOARCH_BY_MACHINE = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
    "loongarch64": "loong64",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be read or parsed."""


@dataclass
class GotabConfig:
    """Everything a completion run needs to know about the Go environment."""

    command: str = "go"
    tools: List[str] = field(default_factory=lambda: list(DEFAULT_TOOLS))
    workspace_roots: List[str] = field(default_factory=list)
    system_root: Optional[str] = None
    sources_dir: str = "src"
    source_suffix: str = ".go"
    introspector: str = DEFAULT_INTROSPECTOR
    goos: str = "linux"
    goarch: str = "amd64"
    cgo_enabled: bool = True
    build_tags: List[str] = field(default_factory=list)
    log_file: Optional[Path] = None
    verbose: bool = False

    def search_roots(self) -> SearchRoots:
        return SearchRoots(
            workspace_roots=tuple(self.workspace_roots),
            system_root=self.system_root,
            sources_dir=self.sources_dir,
        )

    def build_context(self) -> BuildContext:
        return BuildContext(
            goos=self.goos,
            goarch=self.goarch,
            cgo_enabled=self.cgo_enabled,
            tags=frozenset(self.build_tags),
        )


def load_config(
    environ: Mapping[str, str], config_path: Optional[Path] = None
) -> GotabConfig:
    """Build the configuration from the environment, then apply the YAML file on top.

    The file is `config_path` when given, else `$GOTAB_CONFIG`, else
    `~/.config/gotab/config.yml`. A missing file is not an error.
    """
    config = config_from_environ(environ)

    if config_path is None:
        env_path = environ.get("GOTAB_CONFIG")
        config_path = Path(env_path) if env_path else _DEFAULT_CONFIG_PATH
    config_file = config_path.expanduser()
    if not config_file.is_file():
        return config

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")
    _apply_file_settings(config, data, config_file.parent)
    return config


def config_from_environ(environ: Mapping[str, str]) -> GotabConfig:
    """Defaults derived from GOPATH, GOROOT, GOOS, GOARCH and friends."""
    config = GotabConfig()

    gopath = environ.get("GOPATH")
    if not gopath:
        home = environ.get("HOME") or str(Path.home())
        gopath = os.path.join(home, "go")
    config.workspace_roots = [entry for entry in gopath.split(os.pathsep) if entry]

    config.system_root = environ.get("GOROOT") or _guess_goroot(environ)
    config.goos = environ.get("GOOS") or _host_goos()
    config.goarch = environ.get("GOARCH") or _host_goarch()
    config.cgo_enabled = environ.get("CGO_ENABLED", "1") != "0"
    config.build_tags = _tags_from_goflags(environ.get("GOFLAGS", ""))
    config.verbose = _as_bool(environ.get("GOTAB_DEBUG")) or False
    return config


def _apply_file_settings(config: GotabConfig, data: Dict[str, Any], base_dir: Path) -> None:
    command = _as_str(data.get("command"))
    if command:
        config.command = command
    if "tools" in data:
        config.tools = _as_str_list(data.get("tools"))
    if "workspace_roots" in data:
        config.workspace_roots = [
            _expand(entry) for entry in _as_str_list(data.get("workspace_roots"))
        ]
    system_root = _as_str(data.get("system_root"))
    if system_root:
        config.system_root = _expand(system_root)
    sources_dir = _as_str(data.get("sources_dir"))
    if sources_dir is not None:
        config.sources_dir = sources_dir
    source_suffix = _as_str(data.get("source_suffix"))
    if source_suffix:
        config.source_suffix = source_suffix
    introspector = _as_str(data.get("introspector"))
    if introspector:
        config.introspector = introspector
    goos = _as_str(data.get("goos"))
    if goos:
        config.goos = goos
    goarch = _as_str(data.get("goarch"))
    if goarch:
        config.goarch = goarch
    if "build_tags" in data:
        config.build_tags = _as_str_list(data.get("build_tags"))
    log_file = _as_str(data.get("log_file"))
    if log_file:
        config.log_file = base_dir / Path(log_file).expanduser()
    verbose = _as_bool(data.get("verbose"))
    if verbose is not None:
        config.verbose = verbose


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _guess_goroot(environ: Mapping[str, str]) -> Optional[str]:
    go_binary = shutil.which("go", path=environ.get("PATH"))
    if not go_binary:
        return None
    # <GOROOT>/bin/go
    return str(Path(go_binary).resolve().parent.parent)


def _host_goos() -> str:
    for prefix, goos in _GOOS_BY_PLATFORM.items():
        if sys.platform.startswith(prefix):
            return goos
    if sys.platform.startswith("freebsd"):
        return "freebsd"
    if sys.platform.startswith("openbsd"):
        return "openbsd"
    return sys.platform


def _host_goarch() -> str:
    machine = platform.machine().lower()
    return _GOARCH_BY_MACHINE.get(machine, machine or "amd64")


def _tags_from_goflags(goflags: str) -> List[str]:
    tags: List[str] = []
    try:
        words = shlex.split(goflags)
    except ValueError:
        return tags
    for word in words:
        for prefix in ("-tags=", "--tags="):
            if word.startswith(prefix):
                tags.extend(tag for tag in word[len(prefix) :].split(",") if tag)
    return tags


def _expand(value: str) -> str:
    return os.path.expandvars(os.path.expanduser(value))


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0", ""}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["ConfigError", "DEFAULT_TOOLS", "GotabConfig", "config_from_environ", "load_config"]
