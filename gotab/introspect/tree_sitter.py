"""Tree-sitter powered Go package introspector."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from tree_sitter import Parser
from tree_sitter_language_pack import get_parser

from .base import PackageIntrospector
from .constraints import BuildContext, is_source_file
from ..logging import get_logger
from ..models import PackageSymbols

_logger = get_logger("introspect.tree_sitter")

_LANGUAGE = "go"
_CGO_IMPORT = '"C"'

# Share of a declaration's specs that must name a type for the group to belong to it.
_TYPE_ASSOCIATION_THRESHOLD = 0.75


@dataclass
class _ValueGroup:
    """One `const` or `var` declaration, possibly parenthesized."""

    names: List[str]
    sort_name: str
    order: int
    type_name: Optional[str] = None


@dataclass
class _Function:
    name: str
    result_types: List[str] = field(default_factory=list)


@dataclass
class _Declarations:
    consts: List[_ValueGroup] = field(default_factory=list)
    vars: List[_ValueGroup] = field(default_factory=list)
    funcs: List[_Function] = field(default_factory=list)
    types: List[str] = field(default_factory=list)
    methods: List[Tuple[str, str]] = field(default_factory=list)

    def next_order(self) -> int:
        return len(self.consts) + len(self.vars)


class TreeSitterIntrospector(PackageIntrospector):
    """Reads top-level Go declarations from the files `go build` would compile."""

    def __init__(self, context: BuildContext) -> None:
        self._context = context
        self._parser: Optional[Parser] = None
        self._parser_failed = False

    def load(self, directory: str) -> Optional[PackageSymbols]:
        if not directory:
            return None
        sources = self._read_sources(directory)
        if not sources:
            return None

        parser = self._get_parser()
        if parser is None:
            return None
        package_name: Optional[str] = None
        found = _Declarations()
        for file_name, source_bytes in sources:
            tree = parser.parse(source_bytes)
            root = tree.root_node
            if root.has_error:
                _logger.debug("Syntax error in %s/%s", directory, file_name)
                return None
            name = self._package_name(root, source_bytes)
            if name is None:
                return None
            if package_name is None:
                package_name = name
            elif name != package_name:
                _logger.debug(
                    "Found packages %s and %s in %s", package_name, name, directory
                )
                return None
            if not self._context.cgo_enabled and self._imports_cgo(root, source_bytes):
                _logger.debug("Skipping cgo file %s/%s", directory, file_name)
                continue
            self._collect(root, source_bytes, found)

        if package_name is None:
            return None
        return self._build_symbols(package_name, directory, found)

    def _get_parser(self) -> Optional[Parser]:
        if self._parser is None and not self._parser_failed:
            try:
                self._parser = get_parser(_LANGUAGE)
            except Exception as exc:
                # Newer grammar packs fetch grammars on first use.
                _logger.debug("Go grammar unavailable: %s", exc)
                self._parser_failed = True
        return self._parser

    def _read_sources(self, directory: str) -> List[Tuple[str, bytes]]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as exc:
            _logger.debug("Cannot list %s: %s", directory, exc)
            return []

        sources: List[Tuple[str, bytes]] = []
        for entry in entries:
            if not is_source_file(entry.name):
                continue
            try:
                if not entry.is_file():
                    continue
                with open(entry.path, "rb") as handle:
                    source_bytes = handle.read()
            except OSError as exc:
                _logger.debug("Cannot read %s: %s", entry.path, exc)
                return []
            source = source_bytes.decode("utf-8", errors="ignore")
            if self._context.include_file(entry.name, source):
                sources.append((entry.name, source_bytes))
        return sources

    @staticmethod
    def _node_text(node, source_bytes) -> str:  # type: ignore[no-untyped-def]
        return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def _package_name(self, root, source_bytes) -> Optional[str]:  # type: ignore[no-untyped-def]
        for child in root.named_children:
            if child.type == "package_clause":
                for name_node in child.named_children:
                    return self._node_text(name_node, source_bytes)
        return None

    def _imports_cgo(self, root, source_bytes) -> bool:  # type: ignore[no-untyped-def]
        for child in root.named_children:
            if child.type != "import_declaration":
                continue
            for spec in _find(child, "import_spec"):
                path = spec.child_by_field_name("path")
                if path is not None and self._node_text(path, source_bytes) == _CGO_IMPORT:
                    return True
        return False

    def _collect(self, root, source_bytes, found: _Declarations) -> None:  # type: ignore[no-untyped-def]
        for child in root.named_children:
            if child.type == "const_declaration":
                found.consts.append(
                    self._value_group(child, "const_spec", source_bytes, found.next_order())
                )
            elif child.type == "var_declaration":
                found.vars.append(
                    self._value_group(child, "var_spec", source_bytes, found.next_order())
                )
            elif child.type == "function_declaration":
                for name in self._field_texts(child, "name", source_bytes):
                    found.funcs.append(
                        _Function(name, self._result_types(child, source_bytes))
                    )
            elif child.type == "type_declaration":
                for spec in _find(child, "type_spec", "type_alias"):
                    found.types.extend(self._field_texts(spec, "name", source_bytes))
            elif child.type == "method_declaration":
                receiver = self._receiver_type(child, source_bytes)
                for method in self._field_texts(child, "name", source_bytes):
                    if receiver:
                        found.methods.append((receiver, method))

    def _value_group(self, decl, spec_kind: str, source_bytes, order: int) -> _ValueGroup:  # type: ignore[no-untyped-def]
        specs = list(_find(decl, spec_kind))
        names: List[str] = []
        dominant: Optional[str] = None
        frequency = 0
        previous: Optional[str] = None
        for spec in specs:
            names.extend(self._field_texts(spec, "name", source_bytes))
            type_node = spec.child_by_field_name("type")
            if type_node is not None:
                type_name = self._base_type_name(type_node, source_bytes)
            elif spec_kind == "const_spec" and spec.child_by_field_name("value") is None:
                # An `iota` continuation repeats the previous spec's type.
                type_name = previous
            else:
                type_name = None
            if type_name is not None and dominant is not None and type_name != dominant:
                dominant = None
                break
            if type_name is not None:
                dominant = type_name
                frequency += 1
            previous = type_name

        if dominant is not None and frequency < int(len(specs) * _TYPE_ASSOCIATION_THRESHOLD):
            dominant = None
        sort_name = names[0] if len(specs) == 1 and names else ""
        return _ValueGroup(names=names, sort_name=sort_name, order=order, type_name=dominant)

    def _result_types(self, func_node, source_bytes) -> List[str]:  # type: ignore[no-untyped-def]
        """Local type names a function returns, minus its own type parameters."""
        result = func_node.child_by_field_name("result")
        if result is None:
            return []
        if result.type == "parameter_list":
            type_nodes = [
                param.child_by_field_name("type")
                for param in result.named_children
                if param.type in ("parameter_declaration", "variadic_parameter_declaration")
            ]
        else:
            type_nodes = [result]

        type_params: Set[str] = set()
        params = func_node.child_by_field_name("type_parameters")
        if params is not None:
            for declaration in _find(params, "type_parameter_declaration"):
                type_params.update(self._field_texts(declaration, "name", source_bytes))

        names: List[str] = []
        for type_node in type_nodes:
            if type_node is None:
                continue
            if type_node.type in ("slice_type", "array_type"):
                type_node = type_node.child_by_field_name("element")
            name = self._base_type_name(type_node, source_bytes)
            if name is not None and name not in type_params:
                names.append(name)
        return names

    def _base_type_name(self, type_node, source_bytes) -> Optional[str]:  # type: ignore[no-untyped-def]
        """Name of `T` for `T`, `*T` and `T[K]`; None for imported and literal types."""
        node = type_node
        while node is not None:
            if node.type == "type_identifier":
                return self._node_text(node, source_bytes)
            if node.type == "pointer_type":
                node = node.named_children[0] if node.named_children else None
            elif node.type == "generic_type":
                node = node.child_by_field_name("type")
            else:
                return None
        return None

    def _field_texts(self, node, field_name: str, source_bytes) -> List[str]:  # type: ignore[no-untyped-def]
        return [
            self._node_text(name_node, source_bytes)
            for name_node in node.children_by_field_name(field_name)
        ]

    def _receiver_type(self, method_node, source_bytes) -> Optional[str]:  # type: ignore[no-untyped-def]
        receiver = method_node.child_by_field_name("receiver")
        if receiver is None:
            return None
        for param in receiver.named_children:
            type_node = param.child_by_field_name("type")
            if type_node is None:
                continue
            # `*T`, `T[K]` and `*T[K]` all name T first.
            for ident in _find(type_node, "type_identifier"):
                return self._node_text(ident, source_bytes)
        return None

    @staticmethod
    def _build_symbols(name: str, directory: str, found: _Declarations) -> PackageSymbols:
        """Arrange declarations in the order `go doc` lists them."""
        declared = sorted({type_name for type_name in found.types if _visible(type_name)})
        owners = set(declared)

        types: Dict[str, List[str]] = {type_name: [] for type_name in declared}
        for receiver, method in found.methods:
            if receiver in types and _visible(method):
                types[receiver].append(method)
        for methods in types.values():
            methods.sort()

        plain: List[str] = []
        constructors: Dict[str, List[str]] = {}
        for func in found.funcs:
            if not _visible(func.name):
                continue
            results = {result for result in func.result_types if result in owners}
            if len(results) == 1:
                constructors.setdefault(results.pop(), []).append(func.name)
            else:
                plain.append(func.name)
        funcs = sorted(plain)
        for type_name in declared:
            funcs.extend(sorted(constructors.get(type_name, [])))

        return PackageSymbols(
            name=name,
            directory=directory,
            consts=_order_values(found.consts, declared),
            vars=_order_values(found.vars, declared),
            funcs=funcs,
            types=types,
        )


def _visible(name: str) -> bool:
    return bool(name) and name != "_"


def _order_values(groups: List[_ValueGroup], declared: List[str]) -> List[str]:
    """Package-level groups first, then each declared type's groups."""
    by_owner: Dict[Optional[str], List[_ValueGroup]] = {}
    for group in groups:
        owner = group.type_name if group.type_name in declared else None
        by_owner.setdefault(owner, []).append(group)

    names: List[str] = []
    owners: List[Optional[str]] = [None]
    owners.extend(declared)
    for owner in owners:
        for group in sorted(by_owner.get(owner, []), key=lambda g: (g.sort_name, g.order)):
            names.extend(item for item in group.names if _visible(item))
    return names


def _find(node, *kinds: str) -> Iterable:  # type: ignore[no-untyped-def]
    """Yield `node` or its descendants whose type is one of `kinds`, in source order."""
    if node.type in kinds:
        yield node
        return
    for child in node.named_children:
        yield from _find(child, *kinds)


__all__ = ["TreeSitterIntrospector"]
