"""In-memory project graph with incremental file add/remove."""

from __future__ import annotations

import logging

from codemap.core.graph.references import rebuild_references
from codemap.core.models import CodeGraph, FileRecord, SyntaxNode

logger = logging.getLogger(__name__)


class GraphStore:
    """Owns the CodeGraph and keeps it consistent under per-file updates.

    Every mutation leaves the graph with each symbol's reference list rebuilt
    against the current file set. Readers only see the graph between
    mutations: nothing here suspends.
    """

    __slots__ = ("_graph",)

    def __init__(self) -> None:
        self._graph = CodeGraph()

    @property
    def graph(self) -> CodeGraph:
        return self._graph

    def __contains__(self, file_path: object) -> bool:
        return file_path in self._graph.files

    def get_file(self, file_path: str) -> FileRecord | None:
        """Get the record for a path, or None if it is not in the graph."""
        return self._graph.files.get(file_path)

    def add_file(self, record: FileRecord) -> None:
        """Merge a file's parse output into the graph.

        The caller must have removed any earlier record for the same path.
        """
        self._insert(record)
        self._rebuild()
        logger.debug(
            "Added %s (%d symbols, %d dependencies)",
            record.file_path,
            len(record.symbols),
            len(record.dependencies),
        )

    def add_files(self, records: list[FileRecord]) -> None:
        """Merge several files and rebuild references once.

        Ends in the same state as calling add_file for each record in order.
        """
        for record in records:
            self._insert(record)
        self._rebuild()

    def remove_file(self, file_path: str) -> bool:
        """Drop everything a file contributed. Returns False if it was not present."""
        if not self._delete(file_path):
            return False
        self._rebuild()
        logger.debug("Removed %s", file_path)
        return True

    def replace_file(self, record: FileRecord) -> None:
        """Remove any earlier record for the path and add this one, rebuilding once."""
        self._delete(record.file_path)
        self._insert(record)
        self._rebuild()
        logger.debug("Replaced %s", record.file_path)

    def rebuild_references(self) -> int:
        """Recompute cross-file references for the whole graph."""
        return self._rebuild()

    def _insert(self, record: FileRecord) -> None:
        graph = self._graph
        graph.files[record.file_path] = record
        for node in record.syntax_tree:
            graph.nodes[node.id] = node
        for symbol in record.symbols:
            graph.symbols[symbol.id] = symbol
        graph.dependencies.extend(record.dependencies)

    def _delete(self, file_path: str) -> bool:
        graph = self._graph
        record = graph.files.pop(file_path, None)
        if record is None:
            return False

        for symbol in record.symbols:
            graph.symbols.pop(symbol.id, None)
        _remove_nodes(graph.nodes, record.syntax_tree)
        graph.dependencies = [dep for dep in graph.dependencies if dep.source != file_path]
        return True

    def _rebuild(self) -> int:
        found = rebuild_references(self._graph.files)
        logger.debug(
            "Rebuilt references for %d symbols (%d import references)",
            len(self._graph.symbols),
            found,
        )
        return found

    def __repr__(self) -> str:
        graph = self._graph
        return (
            f"GraphStore(files={len(graph.files)}, symbols={len(graph.symbols)}, "
            f"nodes={len(graph.nodes)}, dependencies={len(graph.dependencies)})"
        )


def _remove_nodes(nodes: dict[str, SyntaxNode], root: SyntaxNode) -> None:
    for node in root:
        nodes.pop(node.id, None)
