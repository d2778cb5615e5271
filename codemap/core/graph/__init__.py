"""
Code graph data structures and algorithms.

Data Structures:
    - GraphStore: owns the CodeGraph and applies per-file add/remove/replace
    - CodeGraph (models): syntax nodes, symbols, dependency edges, file records

Algorithms:
    - references: full cross-file reference rebuild with textual specifier matching
    - resolution: relative specifier -> file path probing
    - queries: read-only projections (by type, name, file, references, summary)
"""

from codemap.core.graph.references import is_symbol_from_file, rebuild_references
from codemap.core.graph.resolution import resolve_specifier
from codemap.core.graph.store import GraphStore

__all__ = [
    "GraphStore",
    "is_symbol_from_file",
    "rebuild_references",
    "resolve_specifier",
]
