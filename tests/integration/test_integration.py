"""Integration tests for parsers, ingestion and incremental updates."""

import asyncio
import json
import tempfile
from pathlib import Path

import pytest

from codemap.core.config import IndexConfig
from codemap.core.graph import queries
from codemap.core.indexer import Indexer
from codemap.core.models import (
    ChangeEvent,
    ChangeKind,
    DependencyKind,
    ReferenceKind,
    SymbolKind,
)
from codemap.languages.python import PythonParser, relative_specifier
from codemap.languages.registry import default_registry
from codemap.languages.typescript import JavaScriptTypeScriptParser

A_TS = """export function add(x: number, y: number): number {
  return x + y;
}
"""

B_TS = """import { add } from './a';

export const total = add(1, 2);
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td).resolve()


@pytest.fixture
def ts_project(temp_dir: Path) -> Path:
    """Two TypeScript files where b imports add from a."""
    src = temp_dir / "src"
    src.mkdir()
    (src / "a.ts").write_text(A_TS)
    (src / "b.ts").write_text(B_TS)
    return temp_dir


@pytest.fixture
def sample_python_source() -> str:
    return '''
import os
import importlib
from typing import Protocol, TypeAlias
from .models import Order as OrderModel
from .. import shared

__all__ = ["OrderService", "create_order"]

OrderId: TypeAlias = int
DEFAULT_STATUS = "pending"


class Repository(Protocol):
    def save(self, order) -> None: ...


class OrderService:
    retries = 3

    def __init__(self, repository: Repository):
        self.repository = repository

    async def ship(self, order_id: OrderId) -> None:
        local = 1
        plugin = importlib.import_module("plugins.shipping")


def create_order() -> OrderModel:
    return OrderModel()
'''


def find_symbol(indexer: Indexer, file: Path, name: str, kind: SymbolKind):
    matches = [
        s for s in queries.symbols_in_file(indexer.store, file.as_posix())
        if s.name == name and s.kind == kind
    ]
    assert len(matches) == 1
    return matches[0]


class TestTypeScriptParser:
    """Tests for the JavaScript/TypeScript parser."""

    def test_function_and_export(self) -> None:
        outcome = JavaScriptTypeScriptParser().parse(A_TS, "/proj/src/a.ts")

        assert outcome.success is True
        kinds = {(s.name, s.kind) for s in outcome.symbols}
        assert ("add", SymbolKind.FUNCTION) in kinds
        assert ("add", SymbolKind.EXPORT) in kinds

        function = next(s for s in outcome.symbols if s.kind == SymbolKind.FUNCTION)
        assert function.id == "/proj/src/a.ts:add:function:1"
        assert function.span.start.line == 1
        assert function.span.start.column == 7
        assert function.metadata["params"] == 2

    def test_syntax_tree_ids(self) -> None:
        outcome = JavaScriptTypeScriptParser().parse(A_TS, "/proj/src/a.ts")

        tree = outcome.syntax_tree
        assert tree is not None
        assert tree.kind == "Program"
        assert tree.id == "/proj/src/a.ts:0"
        ids = [node.id for node in tree]
        assert len(ids) == len(set(ids))
        assert all(node.file_path == "/proj/src/a.ts" for node in tree)

    def test_imports(self) -> None:
        source = """import React from 'react';
import * as path from 'path';
import { add, sub as minus } from './math';
"""
        outcome = JavaScriptTypeScriptParser().parse(source, "/proj/app.tsx")

        imports = {s.name: s.import_info for s in outcome.symbols if s.kind == SymbolKind.IMPORT}
        assert imports["React"].is_default is True
        assert imports["React"].source == "react"
        assert imports["path"].import_name == "*"
        assert imports["minus"].import_name == "sub"
        assert imports["minus"].imported_as == "minus"
        assert [d.target for d in outcome.dependencies] == ["react", "path", "./math"]
        assert outcome.dependencies[2].specifiers == ["add", "minus"]

    def test_declarations(self) -> None:
        source = """interface Shape extends Base { area(): number }
type Id = string;
class Circle extends Shape {
  radius = 1;
  area() { return 3.14; }
}
const double = (n) => n * 2;
let counter = 0;
"""
        outcome = JavaScriptTypeScriptParser().parse(source, "/proj/shapes.ts")

        by_name = {s.name: s for s in outcome.symbols}
        assert by_name["Shape"].kind == SymbolKind.INTERFACE
        assert by_name["Id"].kind == SymbolKind.TYPE_ALIAS
        assert by_name["Id"].kind.value == "type"
        assert by_name["Circle"].kind == SymbolKind.CLASS
        assert by_name["Circle"].metadata["superClass"] == "Shape"
        assert by_name["Circle"].metadata["methods"] == ["area"]
        assert by_name["double"].kind == SymbolKind.FUNCTION
        assert by_name["double"].metadata["type"] == "arrow"
        assert by_name["counter"].kind == SymbolKind.VARIABLE

    def test_dynamic_import_and_require(self) -> None:
        source = """const fs = require('fs');
async function load() {
  return import('./lazy');
}
"""
        outcome = JavaScriptTypeScriptParser().parse(source, "/proj/loader.js")

        kinds = {d.target: d.kind for d in outcome.dependencies}
        assert kinds == {"fs": DependencyKind.REQUIRE, "./lazy": DependencyKind.DYNAMIC_IMPORT}

    def test_repeated_binding_on_one_line_kept_once(self) -> None:
        outcome = JavaScriptTypeScriptParser().parse(
            "const a = 1;\nexport { a, a as b };\n", "/proj/src/names.ts"
        )

        ids = [s.id for s in outcome.symbols]
        assert len(ids) == len(set(ids))
        exports = [s for s in outcome.symbols if s.kind == SymbolKind.EXPORT]
        assert [s.name for s in exports] == ["a"]

    def test_reexport_adds_dependency(self) -> None:
        outcome = JavaScriptTypeScriptParser().parse(
            "export { add } from './a';\n", "/proj/src/index.ts"
        )

        assert [d.target for d in outcome.dependencies] == ["./a"]
        exports = [s for s in outcome.symbols if s.kind == SymbolKind.EXPORT]
        assert [s.name for s in exports] == ["add"]

    def test_syntax_error(self) -> None:
        outcome = JavaScriptTypeScriptParser().parse(
            "export function broken( {\n", "/proj/src/broken.ts"
        )

        assert outcome.success is False
        assert outcome.error is not None
        assert outcome.error.startswith("Failed to parse /proj/src/broken.ts")


class TestPythonParser:
    """Tests for the Python parser."""

    def test_parse_symbols(self, sample_python_source: str) -> None:
        outcome = PythonParser().parse(sample_python_source, "/proj/pkg/service.py")

        assert outcome.success is True
        by_name = {s.name: s for s in outcome.symbols}

        assert by_name["Repository"].kind == SymbolKind.INTERFACE
        assert by_name["OrderService"].kind == SymbolKind.CLASS
        assert by_name["OrderService"].metadata["methods"] == ["__init__", "ship"]
        assert by_name["ship"].metadata["async"] is True
        assert by_name["ship"].metadata["class"] == "OrderService"
        assert by_name["create_order"].kind == SymbolKind.FUNCTION
        assert by_name["OrderId"].kind == SymbolKind.TYPE_ALIAS
        assert by_name["DEFAULT_STATUS"].kind == SymbolKind.VARIABLE
        assert by_name["retries"].kind == SymbolKind.VARIABLE
        assert "local" not in by_name

    def test_parse_imports(self, sample_python_source: str) -> None:
        outcome = PythonParser().parse(sample_python_source, "/proj/pkg/service.py")

        imports = {s.name: s.import_info for s in outcome.symbols if s.kind == SymbolKind.IMPORT}
        assert imports["os"].source == "os"
        assert imports["OrderModel"].source == "./models"
        assert imports["OrderModel"].import_name == "Order"
        assert imports["shared"].source == ".."

        targets = [(d.target, d.kind) for d in outcome.dependencies]
        assert ("./models", DependencyKind.IMPORT) in targets
        assert ("plugins.shipping", DependencyKind.DYNAMIC_IMPORT) in targets

    def test_all_exports(self, sample_python_source: str) -> None:
        outcome = PythonParser().parse(sample_python_source, "/proj/pkg/service.py")

        exports = [s for s in outcome.symbols if s.kind == SymbolKind.EXPORT]
        assert [s.name for s in exports] == ["OrderService", "create_order"]
        assert all(s.export_info is not None for s in exports)

    def test_repeated_binding_on_one_line_kept_once(self) -> None:
        outcome = PythonParser().parse("import os, os.path\n", "/proj/m.py")

        assert [s.id for s in outcome.symbols] == ["/proj/m.py:os:import:1"]
        assert [d.target for d in outcome.dependencies] == ["os", "os.path"]

    def test_syntax_tree_nests_statements(self) -> None:
        outcome = PythonParser().parse("class A:\n    def f(self):\n        pass\n", "/proj/a.py")

        tree = outcome.syntax_tree
        assert tree is not None
        assert tree.kind == "Module"
        class_node = tree.children[0]
        assert class_node.kind == "ClassDef"
        assert class_node.name == "A"
        assert class_node.children[0].kind == "FunctionDef"
        assert len(tree) == 4

    @pytest.mark.parametrize(
        "level, module, expected",
        [(1, "a", "./a"), (2, "pkg.mod", "../pkg/mod"), (1, None, "."), (2, None, "..")],
    )
    def test_relative_specifier(self, level: int, module: str | None, expected: str) -> None:
        assert relative_specifier(level, module) == expected


class TestIngestion:
    """End-to-end ingestion through the Indexer."""

    def test_cross_file_references(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        stats = indexer.ingest()

        assert stats.files == 2
        assert stats.errors == []

        a_path = ts_project / "src" / "a.ts"
        b_path = ts_project / "src" / "b.ts"
        add = find_symbol(indexer, a_path, "add", SymbolKind.FUNCTION)

        assert [r.kind for r in add.references] == [ReferenceKind.DEFINITION, ReferenceKind.IMPORT]
        assert add.references[1].file_path == b_path.as_posix()
        assert add.references[1].span.start.line == 1

        assert queries.dependency_graph(indexer.store) == {b_path.as_posix(): ["./a"]}
        assert queries.resolved_dependency_graph(indexer.store) == {
            b_path.as_posix(): [a_path.as_posix()]
        }

    def test_exported_and_imported_views(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()

        a_key = (ts_project / "src" / "a.ts").as_posix()
        b_key = (ts_project / "src" / "b.ts").as_posix()
        exported = queries.exported_symbols_by_file(indexer.store)
        imported = queries.imported_symbols_by_file(indexer.store)

        assert [s.name for s in exported[a_key]] == ["add"]
        assert [s.name for s in exported[b_key]] == ["total"]
        assert list(imported) == [b_key]
        assert [s.name for s in imported[b_key]] == ["add"]

    def test_summary(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()

        summary = queries.summary(indexer.store)
        assert summary.total_files == 2
        assert summary.dependency_count == 1
        assert summary.symbols_by_type["function"] == 1
        assert summary.total_symbols == sum(summary.symbols_by_type.values())
        assert summary.total_nodes == len(indexer.store.graph.nodes)

    def test_partial_failure(self, temp_dir: Path) -> None:
        for i in range(9):
            (temp_dir / f"mod{i}.ts").write_text(f"export const value{i} = {i};\n")
        (temp_dir / "broken.ts").write_text("export function broken( {\n")

        indexer = Indexer(IndexConfig(root=temp_dir))
        stats = indexer.ingest()

        assert stats.files == 9
        assert len(stats.errors) == 1
        assert len(indexer.store.graph.files) == 9
        assert list(indexer.failures) == [(temp_dir / "broken.ts").as_posix()]

    def test_excluded_and_unsupported_files_skipped(self, temp_dir: Path) -> None:
        (temp_dir / "node_modules" / "lib").mkdir(parents=True)
        (temp_dir / "node_modules" / "lib" / "index.js").write_text("export const x = 1;\n")
        (temp_dir / "main.ts").write_text("export const y = 2;\n")
        (temp_dir / "README.md").write_text("# readme\n")
        (temp_dir / "package.json").write_text("{}\n")

        indexer = Indexer(IndexConfig(root=temp_dir))
        stats = indexer.ingest()

        assert list(indexer.store.graph.files) == [(temp_dir / "main.ts").as_posix()]
        assert stats.skipped == 2

    def test_python_cross_references(self, temp_dir: Path) -> None:
        pkg = temp_dir / "pkg"
        pkg.mkdir()
        (pkg / "__init__.py").write_text("")
        (pkg / "a.py").write_text("def add(x, y):\n    return x + y\n")
        (pkg / "b.py").write_text("from .a import add\n\ntotal = add(1, 2)\n")

        indexer = Indexer(IndexConfig(root=temp_dir))
        indexer.ingest()

        add = find_symbol(indexer, pkg / "a.py", "add", SymbolKind.FUNCTION)
        assert [r.file_path for r in add.references] == [
            (pkg / "a.py").as_posix(),
            (pkg / "b.py").as_posix(),
        ]

    def test_python_package_references(self, temp_dir: Path) -> None:
        pkg = temp_dir / "pkg"
        pkg.mkdir()
        (pkg / "__init__.py").write_text("def helper():\n    return 1\n")
        (temp_dir / "main.py").write_text("from .pkg import helper\n")

        indexer = Indexer(IndexConfig(root=temp_dir))
        indexer.ingest()

        init_key = (pkg / "__init__.py").as_posix()
        main_key = (temp_dir / "main.py").as_posix()
        assert queries.resolved_dependency_graph(indexer.store) == {main_key: [init_key]}
        helper = find_symbol(indexer, pkg / "__init__.py", "helper", SymbolKind.FUNCTION)
        assert [(r.kind, r.file_path) for r in helper.references] == [
            (ReferenceKind.DEFINITION, init_key),
            (ReferenceKind.IMPORT, main_key),
        ]

    def test_symbol_counts_agree(self, temp_dir: Path) -> None:
        (temp_dir / "m.py").write_text("import os, os.path\n")
        (temp_dir / "names.ts").write_text("const a = 1;\nexport { a, a as b };\n")

        indexer = Indexer(IndexConfig(root=temp_dir))
        stats = indexer.ingest()

        assert stats.symbols == queries.summary(indexer.store).total_symbols
        for record in indexer.store.graph.files.values():
            for symbol in record.symbols:
                assert indexer.store.graph.symbols[symbol.id] is symbol

    def test_file_index_covers_unparsed_files(self, ts_project: Path) -> None:
        (ts_project / "README.md").write_text("# demo\n")

        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()

        assert sorted(indexer.file_index) == ["README.md", "src/a.ts", "src/b.ts"]
        readme = indexer.file_index["README.md"]
        assert readme.category == "doc"
        assert readme.type == "md"
        assert readme.size == len("# demo\n")

    def test_reingest_replaces_graph(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()
        first_store = indexer.store
        generation = indexer.generation

        (ts_project / "src" / "b.ts").unlink()
        indexer.ingest()

        assert indexer.store is not first_store
        assert indexer.generation == generation + 1
        assert len(indexer.store.graph.files) == 1


class TestChangeEvents:
    """Incremental updates driven by change events."""

    def test_delete_then_recreate(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()
        a_path = ts_project / "src" / "a.ts"
        b_key = (ts_project / "src" / "b.ts").as_posix()

        a_path.unlink()
        asyncio.run(indexer.apply_event(ChangeEvent(ChangeKind.DELETED, str(a_path))))

        assert a_path.as_posix() not in indexer.store
        assert queries.symbols_by_type(indexer.store, SymbolKind.FUNCTION) == []
        assert queries.dependency_graph(indexer.store) == {b_key: ["./a"]}
        for symbol in indexer.store.graph.symbols.values():
            assert all(r.file_path == b_key for r in symbol.references)

        a_path.write_text(A_TS)
        asyncio.run(indexer.apply_event(ChangeEvent(ChangeKind.CREATED, str(a_path))))

        add = find_symbol(indexer, a_path, "add", SymbolKind.FUNCTION)
        assert [r.kind for r in add.references] == [ReferenceKind.DEFINITION, ReferenceKind.IMPORT]

    def test_modify_removes_stale_references(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()
        a_path = ts_project / "src" / "a.ts"
        b_path = ts_project / "src" / "b.ts"

        b_path.write_text("export const total = 3;\n")
        asyncio.run(indexer.apply_event(ChangeEvent(ChangeKind.MODIFIED, str(b_path))))

        add = find_symbol(indexer, a_path, "add", SymbolKind.FUNCTION)
        assert [r.kind for r in add.references] == [ReferenceKind.DEFINITION]
        assert queries.dependency_graph(indexer.store) == {}

    def test_missing_file_on_modify_is_removed(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()
        b_path = ts_project / "src" / "b.ts"

        b_path.unlink()
        asyncio.run(indexer.apply_event(ChangeEvent(ChangeKind.MODIFIED, str(b_path))))

        assert b_path.as_posix() not in indexer.store

    def test_oversized_file_removed_on_modify(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project, max_file_size=200))
        indexer.ingest()
        b_path = ts_project / "src" / "b.ts"
        assert b_path.as_posix() in indexer.store

        b_path.write_text(B_TS + "// padding\n" * 50)
        asyncio.run(indexer.apply_event(ChangeEvent(ChangeKind.MODIFIED, str(b_path))))

        assert b_path.as_posix() not in indexer.store
        assert "src/b.ts" not in indexer.file_index
        assert indexer.index_file(b_path) is None

    def test_events_update_file_index(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()
        notes = ts_project / "notes.txt"
        notes.write_text("hello\n")

        asyncio.run(indexer.apply_event(ChangeEvent(ChangeKind.CREATED, str(notes))))
        assert indexer.file_index["notes.txt"].category == "doc"
        assert notes.as_posix() not in indexer.store

        notes.unlink()
        asyncio.run(indexer.apply_event(ChangeEvent(ChangeKind.DELETED, str(notes))))
        assert "notes.txt" not in indexer.file_index

    def test_stale_generation_dropped(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()
        stale = indexer.generation
        indexer.ingest()
        a_path = ts_project / "src" / "a.ts"

        asyncio.run(indexer.apply_event(ChangeEvent(ChangeKind.DELETED, str(a_path)), stale))

        assert a_path.as_posix() in indexer.store

    def test_worker_applies_queued_events(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()
        c_path = ts_project / "src" / "c.ts"
        c_path.write_text("import { add } from './a';\n")

        async def scenario() -> None:
            worker = asyncio.create_task(indexer.run())
            indexer.submit(ChangeEvent(ChangeKind.CREATED, str(c_path)))
            await indexer.drain()
            worker.cancel()
            with pytest.raises(asyncio.CancelledError):
                await worker

        asyncio.run(scenario())

        add = find_symbol(indexer, ts_project / "src" / "a.ts", "add", SymbolKind.FUNCTION)
        assert len(add.references) == 3

    def test_ignored_paths_never_enter_graph(self, ts_project: Path) -> None:
        indexer = Indexer(IndexConfig(root=ts_project))
        indexer.ingest()
        vendored = ts_project / "node_modules" / "x.ts"
        vendored.parent.mkdir()
        vendored.write_text("export const x = 1;\n")

        asyncio.run(indexer.apply_event(ChangeEvent(ChangeKind.CREATED, str(vendored))))

        assert vendored.as_posix() not in indexer.store


class TestWatcher:
    """Tests for translating watchdog events into change events."""

    def test_handler_filters_and_forwards(self, ts_project: Path, monkeypatch) -> None:
        from watchdog.events import (
            DirCreatedEvent,
            FileCreatedEvent,
            FileDeletedEvent,
            FileMovedEvent,
        )

        from codemap.core.watcher import _ChangeHandler

        indexer = Indexer(IndexConfig(root=ts_project), registry=default_registry())
        received: list[ChangeEvent] = []
        monkeypatch.setattr(indexer, "submit", received.append)

        src = ts_project / "src"
        loop = asyncio.new_event_loop()
        try:
            handler = _ChangeHandler(indexer, loop)
            handler.on_created(FileCreatedEvent(str(src / "c.ts")))
            handler.on_created(FileCreatedEvent(str(src / "notes.css")))
            handler.on_created(FileCreatedEvent(str(ts_project / "node_modules" / "d.ts")))
            handler.on_created(DirCreatedEvent(str(src / "nested")))
            handler.on_deleted(FileDeletedEvent(str(src / "a.ts")))
            handler.on_moved(FileMovedEvent(str(src / "b.ts"), str(src / "e.ts")))
            loop.run_until_complete(asyncio.sleep(0.01))
        finally:
            loop.close()

        assert received == [
            ChangeEvent(ChangeKind.CREATED, str(src / "c.ts")),
            ChangeEvent(ChangeKind.DELETED, str(src / "a.ts")),
            ChangeEvent(ChangeKind.DELETED, str(src / "b.ts")),
            ChangeEvent(ChangeKind.CREATED, str(src / "e.ts")),
        ]


class TestInterfaces:
    """Tests for the CLI and MCP entry points."""

    def test_cli_stats_json(self, ts_project: Path) -> None:
        from typer.testing import CliRunner

        from codemap.cli import app

        result = CliRunner().invoke(app, ["stats", "--root", str(ts_project), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["total_files"] == 2
        assert data["dependency_count"] == 1

    def test_cli_refs_json(self, ts_project: Path) -> None:
        from typer.testing import CliRunner

        from codemap.cli import app

        result = CliRunner().invoke(app, ["refs", "add", "--root", str(ts_project), "--json"])

        assert result.exit_code == 0
        types = [r["type"] for r in json.loads(result.stdout)]
        assert types.count("import") >= 1
        assert types.count("definition") >= 1

    def test_mcp_tools(self, ts_project: Path, monkeypatch) -> None:
        from codemap.mcp import server as mcp_server

        monkeypatch.setattr(mcp_server, "session", mcp_server.Session())

        async def call(name: str, arguments: dict) -> dict:
            contents = await mcp_server.call_tool(name, arguments)
            return json.loads(contents[0].text)

        async def scenario() -> dict:
            before = await call("get_ast_graph", {})
            await mcp_server.session.ingest(IndexConfig(root=ts_project), watch=False)
            return {
                "before": before,
                "summary": await call("get_ast_graph", {}),
                "search": await call("search_symbols", {"name": "ad", "type": "function"}),
                "refs": await call("get_symbol_references", {"symbolName": "add"}),
                "deps": await call("get_dependency_graph", {}),
                "unknown": await call("does_not_exist", {}),
            }

        results = asyncio.run(scenario())

        assert "ingest_codebase" in results["before"]["error"]
        assert results["summary"]["total_files"] == 2
        assert [r["name"] for r in results["search"]["results"]] == ["add"]
        assert results["refs"]["symbol"] == "add"
        assert len(results["deps"]["dependencies"]) == 1
        assert results["unknown"]["error"] == "Unknown tool: does_not_exist"

    def test_cli_find_type_filter(self, ts_project: Path) -> None:
        from typer.testing import CliRunner

        from codemap.cli import app

        runner = CliRunner()
        result = runner.invoke(
            app, ["find", "add", "--type", "function", "--root", str(ts_project), "--json"]
        )
        assert result.exit_code == 0
        assert [s["type"] for s in json.loads(result.stdout)] == ["function"]

        result = runner.invoke(app, ["find", "add", "--type", "bogus", "--root", str(ts_project)])
        assert result.exit_code == 2

    def test_mcp_project_tools_and_resources(self, ts_project: Path, monkeypatch) -> None:
        from codemap.core.exceptions import ResourceNotFoundError
        from codemap.mcp import server as mcp_server

        monkeypatch.setattr(mcp_server, "session", mcp_server.Session())
        (ts_project / "package.json").write_text(
            json.dumps({"name": "demo", "version": "1.0.0", "dependencies": {"react": "^18.0.0"}})
        )

        async def call(name: str, arguments: dict) -> dict:
            contents = await mcp_server.call_tool(name, arguments)
            return json.loads(contents[0].text)

        async def scenario() -> dict:
            empty = await mcp_server.list_resources()
            await mcp_server.session.ingest(IndexConfig(root=ts_project), watch=False)
            with pytest.raises(ResourceNotFoundError):
                await mcp_server.read_resource("project://nothing")
            with pytest.raises(ResourceNotFoundError):
                await mcp_server.read_resource("file://src/missing.ts")
            return {
                "empty": empty,
                "structure": await call("get_project_structure", {}),
                "by_pattern": await call("search_files", {"pattern": "src/*.ts"}),
                "by_content": await call("search_files", {"content": "IMPORT {"}),
                "by_category": await call("search_files", {"category": "config"}),
                "resources": await mcp_server.list_resources(),
                "summary": await mcp_server.read_resource("project://summary"),
                "file": await mcp_server.read_resource("file://src/a.ts"),
            }

        results = asyncio.run(scenario())

        assert results["empty"] == []
        structure = results["structure"]
        assert structure["total_files"] == 3
        assert structure["categories"] == {"config": 1, "source": 2}
        assert structure["extensions"] == {"json": 1, "ts": 2}
        assert structure["framework"] == "React"
        assert structure["directories"] == {"root": ["package.json"], "src": ["a.ts", "b.ts"]}

        assert [r["file"] for r in results["by_pattern"]["results"]] == ["src/a.ts", "src/b.ts"]
        assert [r["file"] for r in results["by_content"]["results"]] == ["src/b.ts"]
        assert [r["file"] for r in results["by_category"]["results"]] == ["package.json"]

        uris = [str(r.uri) for r in results["resources"]]
        assert uris[:2] == ["project://structure", "project://summary"]
        assert len(uris) == 5

        summary = results["summary"][0]
        assert "**Framework:** React" in summary.content
        assert "- Name: demo" in summary.content
        assert "- react: ^18.0.0" in summary.content

        file_contents = results["file"][0]
        assert file_contents.content == A_TS
        assert file_contents.mime_type == "application/typescript"
