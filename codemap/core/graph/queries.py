"""Read-only views over a GraphStore.

All of these are linear scans over the current graph state and never mutate it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from codemap.core.graph.resolution import resolve_specifier
from codemap.core.models import GraphSummary, Symbol, SymbolKind, SymbolReference

if TYPE_CHECKING:
    from codemap.core.graph.store import GraphStore


def symbols_by_type(store: GraphStore, kind: SymbolKind) -> list[Symbol]:
    """All symbols of one kind."""
    return [s for s in store.graph.symbols.values() if s.kind == kind]


def symbols_by_name(store: GraphStore, name: str) -> list[Symbol]:
    """All symbols whose name matches exactly."""
    return [s for s in store.graph.symbols.values() if s.name == name]


def symbols_in_file(store: GraphStore, file_path: str) -> list[Symbol]:
    """All symbols declared in one file."""
    return [s for s in store.graph.symbols.values() if s.file_path == file_path]


def search_symbols(
    store: GraphStore,
    name: str | None = None,
    kind: SymbolKind | None = None,
    file: str | None = None,
) -> list[Symbol]:
    """Filter symbols by case-insensitive name substring, kind and file path substring."""
    symbols = list(store.graph.symbols.values())
    if name:
        needle = name.lower()
        symbols = [s for s in symbols if needle in s.name.lower()]
    if kind is not None:
        symbols = [s for s in symbols if s.kind == kind]
    if file:
        symbols = [s for s in symbols if file in s.file_path]
    return symbols


def dependency_graph(store: GraphStore) -> dict[str, list[str]]:
    """Map each importing file to its module specifiers, in edge order."""
    result: dict[str, list[str]] = {}
    for dep in store.graph.dependencies:
        result.setdefault(dep.source, []).append(dep.target)
    return result


def resolved_dependency_graph(store: GraphStore) -> dict[str, list[str]]:
    """Map each importing file to the graph files its relative imports resolve to."""
    files = store.graph.files
    result: dict[str, list[str]] = {}
    for dep in store.graph.dependencies:
        target = resolve_specifier(dep.source, dep.target, files)
        if target is not None:
            result.setdefault(dep.source, []).append(target)
    return result


def _group_by_file(symbols: list[Symbol]) -> dict[str, list[Symbol]]:
    grouped: dict[str, list[Symbol]] = {}
    for symbol in symbols:
        grouped.setdefault(symbol.file_path, []).append(symbol)
    return grouped


def symbols_by_file(store: GraphStore) -> dict[str, list[Symbol]]:
    return _group_by_file(list(store.graph.symbols.values()))


def exported_symbols_by_file(store: GraphStore) -> dict[str, list[Symbol]]:
    return _group_by_file([s for s in store.graph.symbols.values() if s.export_info is not None])


def imported_symbols_by_file(store: GraphStore) -> dict[str, list[Symbol]]:
    return _group_by_file([s for s in store.graph.symbols.values() if s.import_info is not None])


def references_of(store: GraphStore, name: str) -> list[SymbolReference]:
    """Every reference held by any symbol with this name."""
    references: list[SymbolReference] = []
    for symbol in store.graph.symbols.values():
        if symbol.name == name:
            references.extend(symbol.references)
    return references


def summary(store: GraphStore) -> GraphSummary:
    """Node, symbol, file and dependency counts."""
    graph = store.graph
    by_type: dict[str, int] = {}
    for symbol in graph.symbols.values():
        by_type[symbol.kind.value] = by_type.get(symbol.kind.value, 0) + 1

    return GraphSummary(
        total_nodes=len(graph.nodes),
        total_symbols=len(graph.symbols),
        total_files=len(graph.files),
        symbols_by_type=by_type,
        dependency_count=len(graph.dependencies),
    )
