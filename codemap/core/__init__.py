"""
Core module: data models, exceptions, the graph store and ingestion.

Models (models.py):
    - SyntaxNode, Symbol, SymbolReference, Dependency, FileRecord, CodeGraph
    - SymbolKind/ReferenceKind/DependencyKind/ChangeKind: Enums for categorization

Exceptions (exceptions.py):
    - CodemapError: Base exception for all codemap errors
    - ParseError: Source file could not be read or parsed
    - NoCodebaseError: Query issued before ingestion
    - ResourceNotFoundError: Unknown MCP resource URI

Graph (graph/):
    - GraphStore: in-memory graph with per-file add/remove/replace
    - queries: read-only projections

Ingestion (indexer.py, config.py, watcher.py; import directly):
    - Indexer: directory ingest plus serialized change-event processing
    - IndexConfig: root, excludes, size and depth limits
    - ProjectWatcher: watchdog change source
"""

from codemap.core.config import IndexConfig, categorize_file
from codemap.core.exceptions import (
    CodemapError,
    NoCodebaseError,
    ParseError,
    ResourceNotFoundError,
)
from codemap.core.graph import GraphStore
from codemap.core.models import (
    ChangeEvent,
    ChangeKind,
    CodeGraph,
    Dependency,
    DependencyKind,
    ExportInfo,
    FileInfo,
    FileRecord,
    GraphSummary,
    ImportInfo,
    IndexStats,
    Position,
    ReferenceKind,
    SourceSpan,
    Symbol,
    SymbolKind,
    SymbolReference,
    SyntaxNode,
)

__all__ = [
    # Models
    "SyntaxNode",
    "Symbol",
    "SymbolReference",
    "Dependency",
    "FileRecord",
    "FileInfo",
    "CodeGraph",
    "ExportInfo",
    "ImportInfo",
    "Position",
    "SourceSpan",
    "GraphSummary",
    "IndexStats",
    "ChangeEvent",
    "SymbolKind",
    "ReferenceKind",
    "DependencyKind",
    "ChangeKind",
    # Exceptions
    "CodemapError",
    "ParseError",
    "NoCodebaseError",
    "ResourceNotFoundError",
    # Graph and ingestion
    "GraphStore",
    "IndexConfig",
    "categorize_file",
]
