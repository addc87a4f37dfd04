"""Package introspection backends and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List

from .base import PackageIntrospector
from .constraints import BuildContext

_ENTRY_POINT_GROUP = "gotab.introspectors"

IntrospectorFactory = Callable[[BuildContext], PackageIntrospector]


def _tree_sitter_factory(context: BuildContext) -> PackageIntrospector:
    from .tree_sitter import TreeSitterIntrospector

    return TreeSitterIntrospector(context)


_BUILTIN_FACTORIES: Dict[str, IntrospectorFactory] = {
    "tree_sitter": _tree_sitter_factory,
}

DEFAULT_INTROSPECTOR = "tree_sitter"


def available_introspectors() -> List[str]:
    """Names of the built-in backends followed by installed plugin backends."""
    names = list(_BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        if entry.name.lower() not in names:
            names.append(entry.name.lower())
    return names


def create_introspector(name: str, context: BuildContext) -> PackageIntrospector:
    """Instantiate the backend registered under `name`."""
    key = name.lower()
    factory = _BUILTIN_FACTORIES.get(key)
    if factory is not None:
        return _coerce_introspector(factory(context))

    for entry in _iter_entry_points():
        if entry.name.lower() != key:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(
                f"Failed to load introspector entry point '{entry.name}': {exc}"
            ) from exc
        return _coerce_introspector(loaded, context)

    raise ValueError(f"Unknown introspector requested: {name}")


def _coerce_introspector(obj: object, context: BuildContext | None = None) -> PackageIntrospector:
    if isinstance(obj, PackageIntrospector):
        return obj
    if callable(obj):
        instance = obj(context)
        if isinstance(instance, PackageIntrospector):
            return instance
    raise TypeError(
        "Introspector entry point must be a PackageIntrospector subclass or factory"
    )


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover
        return []

    if hasattr(entry_points, "select"):
        return entry_points.select(group=_ENTRY_POINT_GROUP)  # type: ignore[return-value]

    return entry_points.get(_ENTRY_POINT_GROUP, [])  # type: ignore[return-value]


__all__ = [
    "BuildContext",
    "DEFAULT_INTROSPECTOR",
    "PackageIntrospector",
    "available_introspectors",
    "create_introspector",
]
