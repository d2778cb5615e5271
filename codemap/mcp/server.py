"""MCP server implementation for codemap."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl

from codemap.core import project
from codemap.core.config import DEFAULT_MAX_DEPTH, IndexConfig
from codemap.core.exceptions import CodemapError, NoCodebaseError, ResourceNotFoundError
from codemap.core.graph import queries
from codemap.core.indexer import Indexer
from codemap.core.models import FileInfo, SymbolKind
from codemap.core.serialize import reference_to_dict, summary_to_dict, symbol_to_dict
from codemap.core.watcher import ProjectWatcher

logger = logging.getLogger(__name__)

server = Server("codemap")


class Session:
    """The ingested project: its indexer, change worker and watcher."""

    def __init__(self) -> None:
        self.indexer: Indexer | None = None
        self._worker: asyncio.Task[None] | None = None
        self._watcher: ProjectWatcher | None = None

    def require_indexer(self) -> Indexer:
        if self.indexer is None:
            raise NoCodebaseError("No codebase has been ingested yet. Call ingest_codebase first.")
        return self.indexer

    async def ingest(self, config: IndexConfig, watch: bool = True) -> dict[str, Any]:
        """Replace the current project with a fresh ingest of ``config.root``."""
        await self.close()

        indexer = Indexer(config)
        stats = indexer.ingest()
        self.indexer = indexer

        if watch:
            self._worker = asyncio.create_task(indexer.run())
            self._watcher = ProjectWatcher(indexer, asyncio.get_running_loop())
            self._watcher.start()

        return {
            "root": str(config.root),
            "files": stats.files,
            "symbols": stats.symbols,
            "dependencies": stats.dependencies,
            "skipped": stats.skipped,
            "errors": stats.errors,
        }

    async def close(self) -> None:
        """Stop watching and abandon any pending change events."""
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None


session = Session()

_SYMBOL_TYPES = [kind.value for kind in SymbolKind]


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="ingest_codebase",
            description=(
                "Ingest and analyze a codebase from a given path. "
                "Replaces any previously ingested codebase and watches for changes."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "Root path of the project to analyze",
                    },
                    "includeTests": {
                        "type": "boolean",
                        "description": "Whether to include test files (default: true)",
                        "default": True,
                    },
                    "maxDepth": {
                        "type": "integer",
                        "description": "Maximum directory depth to scan (default: 10)",
                        "default": DEFAULT_MAX_DEPTH,
                    },
                },
                "required": ["path"],
            },
        ),
        Tool(
            name="get_project_structure",
            description=(
                "Get the overall structure of the ingested codebase: file counts by "
                "category and extension, total size, framework and directories."
            ),
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="search_files",
            description="Search for files matching a pattern or containing specific content.",
            inputSchema={
                "type": "object",
                "properties": {
                    "pattern": {
                        "type": "string",
                        "description": "File path pattern to search for (supports * wildcards)",
                    },
                    "content": {
                        "type": "string",
                        "description": "Text content to search for within files",
                    },
                    "fileType": {
                        "type": "string",
                        "description": "Filter by file extension (e.g., 'ts', 'py', 'jsx')",
                    },
                    "category": {
                        "type": "string",
                        "enum": project.FILE_CATEGORIES,
                        "description": "Filter by file category",
                    },
                },
            },
        ),
        Tool(
            name="get_ast_graph",
            description="Get the AST graph analysis summary of the codebase.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="search_symbols",
            description=(
                "Search for symbols (functions, classes, variables, imports, exports, "
                "interfaces, types) in the codebase. Name matching is partial."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Symbol name to search for"},
                    "type": {
                        "type": "string",
                        "enum": _SYMBOL_TYPES,
                        "description": "Filter by symbol type",
                    },
                    "file": {"type": "string", "description": "Filter by file path"},
                },
            },
        ),
        Tool(
            name="get_symbol_references",
            description="Get all references to a specific symbol across the codebase.",
            inputSchema={
                "type": "object",
                "properties": {
                    "symbolName": {
                        "type": "string",
                        "description": "Name of the symbol to find references for",
                    },
                },
                "required": ["symbolName"],
            },
        ),
        Tool(
            name="get_dependency_graph",
            description=(
                "Get the dependency graph showing how files depend on each other. "
                "With resolved=true, relative imports are mapped to indexed files."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "resolved": {
                        "type": "boolean",
                        "description": "Resolve relative specifiers to file paths",
                        "default": False,
                    },
                },
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "ingest_codebase":
            result = await _handle_ingest(
                arguments["path"],
                arguments.get("includeTests", True),
                arguments.get("maxDepth", DEFAULT_MAX_DEPTH),
            )
        elif name == "get_project_structure":
            result = _handle_structure()
        elif name == "search_files":
            result = _handle_search_files(
                arguments.get("pattern"),
                arguments.get("content"),
                arguments.get("fileType"),
                arguments.get("category"),
            )
        elif name == "get_ast_graph":
            result = _handle_summary()
        elif name == "search_symbols":
            result = _handle_search(
                arguments.get("name"),
                arguments.get("type"),
                arguments.get("file"),
            )
        elif name == "get_symbol_references":
            result = _handle_references(arguments["symbolName"])
        elif name == "get_dependency_graph":
            result = _handle_dependencies(arguments.get("resolved", False))
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except CodemapError as e:
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


async def _handle_ingest(path: str, include_tests: bool, max_depth: int) -> dict[str, Any]:
    """Handle ingest_codebase tool."""
    root = Path(path)
    if not root.is_dir():
        return {"error": f"Path does not exist or is not a directory: {path}"}

    config = IndexConfig(root=root, include_tests=include_tests, max_depth=max_depth)
    return await session.ingest(config)


def _handle_summary() -> dict[str, Any]:
    """Handle get_ast_graph tool."""
    indexer = session.require_indexer()
    return {
        **summary_to_dict(queries.summary(indexer.store)),
        "failures": dict(indexer.failures),
    }


def _handle_search(name: str | None, symbol_type: str | None, file: str | None) -> dict[str, Any]:
    """Handle search_symbols tool."""
    indexer = session.require_indexer()
    kind = SymbolKind(symbol_type) if symbol_type else None
    symbols = queries.search_symbols(indexer.store, name=name, kind=kind, file=file)
    return {"results": [symbol_to_dict(s) for s in symbols]}


def _handle_references(symbol_name: str) -> dict[str, Any]:
    """Handle get_symbol_references tool."""
    indexer = session.require_indexer()
    references = queries.references_of(indexer.store, symbol_name)
    return {
        "symbol": symbol_name,
        "results": [reference_to_dict(r) for r in references],
    }


def _handle_dependencies(resolved: bool) -> dict[str, Any]:
    """Handle get_dependency_graph tool."""
    indexer = session.require_indexer()
    if resolved:
        return {"dependencies": queries.resolved_dependency_graph(indexer.store)}
    return {"dependencies": queries.dependency_graph(indexer.store)}


def _handle_structure() -> dict[str, Any]:
    """Handle get_project_structure tool."""
    return project.project_structure(session.require_indexer())


def _handle_search_files(
    pattern: str | None,
    content: str | None,
    file_type: str | None,
    category: str | None,
) -> dict[str, Any]:
    """Handle search_files tool."""
    indexer = session.require_indexer()
    files = project.search_files(
        indexer, pattern=pattern, content=content, file_type=file_type, category=category
    )
    return {
        "results": [
            {
                "file": f.relative_path,
                "category": f.category,
                "type": f.type,
                "size": f.size,
            }
            for f in files
        ]
    }


@server.list_resources()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_resources() -> list[Resource]:
    """List the project resources and one resource per indexed file."""
    indexer = session.indexer
    if indexer is None:
        return []

    resources = [
        Resource(
            uri=AnyUrl("project://structure"),
            name="Project Structure",
            description="Complete project structure and analysis",
            mimeType="application/json",
        ),
        Resource(
            uri=AnyUrl("project://summary"),
            name="Project Summary",
            description="High-level project summary and tech stack",
            mimeType="text/markdown",
        ),
    ]
    for info in indexer.file_index.values():
        resources.append(
            Resource(
                uri=AnyUrl(f"file://{info.relative_path}"),
                name=info.relative_path,
                description=f"{info.category} file ({info.type})",
                mimeType=project.mime_type(info.type),
            )
        )
    return resources


@server.read_resource()  # type: ignore[no-untyped-call, untyped-decorator]
async def read_resource(uri: AnyUrl | str) -> list[ReadResourceContents]:
    """Read project://structure, project://summary or file://<relative path>."""
    indexer = session.require_indexer()
    uri = str(uri)

    if uri == "project://structure":
        text = json.dumps(project.project_structure(indexer), indent=2)
        return [ReadResourceContents(content=text, mime_type="application/json")]

    if uri == "project://summary":
        text = project.project_summary(indexer)
        return [ReadResourceContents(content=text, mime_type="text/markdown")]

    if uri.startswith("file://"):
        info = _find_indexed_file(indexer, unquote(uri.removeprefix("file://")).rstrip("/"))
        content = await asyncio.to_thread(Path(info.path).read_text, encoding="utf-8")
        return [ReadResourceContents(content=content, mime_type=project.mime_type(info.type))]

    raise ResourceNotFoundError(f"Unknown resource: {uri}")


def _find_indexed_file(indexer: Indexer, relative_path: str) -> FileInfo:
    # URL normalization may lower-case the first path segment.
    info = indexer.file_index.get(relative_path)
    if info is None:
        lowered = relative_path.lower()
        info = next(
            (f for f in indexer.file_index.values() if f.relative_path.lower() == lowered),
            None,
        )
    if info is None:
        raise ResourceNotFoundError(f"File not found: {relative_path}")
    return info


async def serve() -> None:
    """Run the MCP server."""
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await session.close()
