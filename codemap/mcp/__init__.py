"""
MCP server for codemap.

Exposes the code graph to LLMs via the Model Context Protocol.

Tools:
    - ingest_codebase: Index a project root and start watching it
    - get_ast_graph: Graph summary (nodes, symbols, files, kinds, dependencies)
    - search_symbols: Search symbols by name, type and file
    - get_symbol_references: All references to a symbol name
    - get_dependency_graph: File -> imported module specifiers
    - get_project_structure: File counts by category and extension, size, directories
    - search_files: Find files by path wildcard, content, extension or category

Resources:
    - project://structure, project://summary, file://<relative path>

Usage:
    Install: pip install codemap
    Run: mcp-server-codemap
"""

import asyncio
import logging
import sys

from codemap.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    # stdout carries the protocol; logs go to stderr.
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(_serve())


__all__ = ["serve"]
