"""
codemap: Incremental code graph for JavaScript, TypeScript and Python projects.

codemap parses a project tree into per-file symbol tables and a file-level
dependency graph, then keeps cross-file references consistent as files are
added, changed or removed. You can:
- Find symbols by name, kind or file
- List the references to a symbol across files
- Inspect which modules each file depends on

Usage:
    from codemap.core import IndexConfig
    from codemap.core.indexer import Indexer
    from codemap.core.graph import queries

    indexer = Indexer(IndexConfig(root=Path(".")))
    indexer.ingest()
    queries.references_of(indexer.store, "add")
"""

__version__ = "0.1.0"
