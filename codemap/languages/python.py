"""Python AST parser for extracting symbols and module dependencies."""

from __future__ import annotations

import ast
from dataclasses import dataclass

from codemap.core.models import (
    Dependency,
    DependencyKind,
    ExportInfo,
    ImportInfo,
    Metadata,
    SourceSpan,
    Symbol,
    SymbolKind,
    SyntaxNode,
)
from codemap.languages.models import ParseOutcome

_EXTENSIONS = frozenset({"py", "pyi"})

_DYNAMIC_IMPORT_CALLS = frozenset({"importlib.import_module", "import_module", "__import__"})

_PROTOCOL_BASES = frozenset({"Protocol", "typing.Protocol", "typing_extensions.Protocol"})


class PythonParser:
    """Parser for Python source files using the ast module."""

    def can_parse(self, file_path: str, extension: str) -> bool:
        """Check if this parser accepts the given file."""
        return extension in _EXTENSIONS

    def parse(self, content: str, file_path: str) -> ParseOutcome:
        """Parse Python source and extract the syntax tree, symbols and dependencies."""
        try:
            tree = ast.parse(content, filename=file_path)
        except (SyntaxError, ValueError) as e:
            return ParseOutcome.failure(f"Syntax error in {file_path}: {e}")

        visitor = _PythonVisitor(file_path, tree)
        visitor.visit(tree)

        return ParseOutcome.ok(
            syntax_tree=visitor.root,
            symbols=visitor.symbols,
            dependencies=visitor.dependencies,
        )


def relative_specifier(level: int, module: str | None) -> str:
    """Spell a relative ``from`` import the way path-style specifiers are written.

    ``from .a import x`` becomes ``./a`` and ``from ..pkg.mod import x`` becomes
    ``../pkg/mod``. A bare ``from . import x`` becomes ``.`` (or ``..``).
    """
    prefix = "./" if level == 1 else "../" * (level - 1)
    if not module:
        return prefix.rstrip("/")
    return prefix + module.replace(".", "/")


@dataclass
class _Scope:
    """Tracks the current scope during AST traversal."""

    name: str
    kind: SymbolKind


class _PythonVisitor(ast.NodeVisitor):
    """AST visitor that builds the syntax tree and collects symbols and dependencies."""

    def __init__(self, file_path: str, module: ast.Module) -> None:
        self.file_path = file_path
        self.symbols: list[Symbol] = []
        self.dependencies: list[Dependency] = []
        self._symbol_ids: set[str] = set()

        self._node_counter = 0
        self.root = self._make_node(module, "Module", name="Module")
        self._node_stack: list[SyntaxNode] = [self.root]

        self._scope_stack: list[_Scope] = []

    def _span(self, node: ast.AST) -> SourceSpan:
        line = getattr(node, "lineno", 1)
        column = getattr(node, "col_offset", 0)
        end_line = getattr(node, "end_lineno", None) or line
        end_column = getattr(node, "end_col_offset", None) or column
        return SourceSpan.from_points((line, column), (end_line, end_column))

    def _make_node(self, node: ast.AST, kind: str, name: str | None = None) -> SyntaxNode:
        syntax_node = SyntaxNode(
            id=f"{self.file_path}:{self._node_counter}",
            kind=kind,
            file_path=self.file_path,
            span=self._span(node),
            name=name,
        )
        self._node_counter += 1
        return syntax_node

    def visit(self, node: ast.AST) -> None:
        """Mirror every statement into the syntax tree, nested by block."""
        if not isinstance(node, ast.stmt):
            super().visit(node)
            return

        syntax_node = self._make_node(node, type(node).__name__, getattr(node, "name", None))
        self._node_stack[-1].children.append(syntax_node)
        self._node_stack.append(syntax_node)
        try:
            super().visit(node)
        finally:
            self._node_stack.pop()

    def _current_scope(self) -> _Scope | None:
        """Get the current scope, or None if at module level."""
        return self._scope_stack[-1] if self._scope_stack else None

    def _at_declaration_level(self) -> bool:
        scope = self._current_scope()
        return scope is None or scope.kind in (SymbolKind.CLASS, SymbolKind.INTERFACE)

    def _add_symbol(
        self,
        name: str,
        node: ast.AST,
        kind: SymbolKind,
        metadata: Metadata | None = None,
    ) -> Symbol:
        """Record a symbol unless one with the same id was already emitted.

        ``import os, os.path`` binds ``os`` twice on one line; the first binding wins.
        """
        symbol = Symbol.create(name, kind, self.file_path, self._span(node), metadata)
        if symbol.id not in self._symbol_ids:
            self._symbol_ids.add(symbol.id)
            self.symbols.append(symbol)
        return symbol

    def visit_Import(self, node: ast.Import) -> None:
        """Handle: import foo, import foo.bar, import foo as f"""
        for alias in node.names:
            local_name = alias.asname or alias.name.split(".")[0]
            symbol = self._add_symbol(local_name, node, SymbolKind.IMPORT)
            symbol.import_info = ImportInfo(
                source=alias.name,
                is_default=False,
                import_name="*",
                imported_as=local_name,
            )
            self.dependencies.append(
                Dependency(
                    source=self.file_path,
                    target=alias.name,
                    kind=DependencyKind.IMPORT,
                    specifiers=[local_name],
                )
            )
        self.generic_visit(node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        """Handle: from foo import bar, from .foo import bar as b, from foo import *"""
        if node.level > 0:
            source = relative_specifier(node.level, node.module)
        else:
            source = node.module or ""

        specifiers: list[str] = []
        for alias in node.names:
            if alias.name == "*":
                specifiers.append("*")
                continue

            local_name = alias.asname or alias.name
            specifiers.append(local_name)
            symbol = self._add_symbol(
                local_name,
                node,
                SymbolKind.IMPORT,
                metadata={"module": node.module, "level": node.level},
            )
            symbol.import_info = ImportInfo(
                source=source,
                is_default=False,
                import_name=alias.name,
                imported_as=local_name,
            )

        self.dependencies.append(
            Dependency(
                source=self.file_path,
                target=source,
                kind=DependencyKind.IMPORT,
                specifiers=specifiers,
            )
        )
        self.generic_visit(node)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        """Handle class definitions. Protocol subclasses are recorded as interfaces."""
        bases = [name for name in (_get_name_from_node(b) for b in node.bases) if name]
        methods = [
            stmt.name
            for stmt in node.body
            if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef))
        ]
        kind = (
            SymbolKind.INTERFACE
            if any(base in _PROTOCOL_BASES for base in bases)
            else SymbolKind.CLASS
        )
        self._add_symbol(
            node.name,
            node,
            kind,
            metadata={"bases": list(bases), "methods": list(methods)},
        )

        self._scope_stack.append(_Scope(name=node.name, kind=kind))
        self.generic_visit(node)
        self._scope_stack.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        """Handle function and method definitions."""
        self._visit_function(node, is_async=False)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        """Handle async function definitions."""
        self._visit_function(node, is_async=True)

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef, is_async: bool) -> None:
        """Common handler for sync and async functions."""
        parent = self._current_scope()
        metadata: Metadata = {
            "async": is_async,
            "params": len(node.args.posonlyargs) + len(node.args.args) + len(node.args.kwonlyargs),
        }
        if parent is not None and parent.kind in (SymbolKind.CLASS, SymbolKind.INTERFACE):
            metadata["class"] = parent.name

        self._add_symbol(node.name, node, SymbolKind.FUNCTION, metadata)

        self._scope_stack.append(_Scope(name=node.name, kind=SymbolKind.FUNCTION))
        self.generic_visit(node)
        self._scope_stack.pop()

    def visit_Assign(self, node: ast.Assign) -> None:
        """Handle variable assignments and ``__all__`` export lists."""
        if self._at_declaration_level():
            for target in node.targets:
                for name in _target_names(target):
                    self._add_symbol(name, node, SymbolKind.VARIABLE)

            if self._current_scope() is None and any(
                isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets
            ):
                self._add_exports(node)

        self.generic_visit(node)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        """Handle annotated assignments (e.g., x: int = 5, Alias: TypeAlias = ...)."""
        if self._at_declaration_level() and isinstance(node.target, ast.Name):
            annotation = _get_name_from_node(node.annotation)
            if annotation in ("TypeAlias", "typing.TypeAlias"):
                kind = SymbolKind.TYPE_ALIAS
            else:
                kind = SymbolKind.VARIABLE
            self._add_symbol(node.target.id, node, kind)
        self.generic_visit(node)

    def visit_TypeAlias(self, node: ast.AST) -> None:
        """Handle ``type X = ...`` statements."""
        name = getattr(node, "name", None)
        if isinstance(name, ast.Name):
            self._add_symbol(name.id, node, SymbolKind.TYPE_ALIAS)
        self.generic_visit(node)

    def visit_Call(self, node: ast.Call) -> None:
        """Record importlib/__import__ calls with a literal module name."""
        callee = _get_name_from_node(node.func)
        if (
            callee in _DYNAMIC_IMPORT_CALLS
            and node.args
            and isinstance(node.args[0], ast.Constant)
            and isinstance(node.args[0].value, str)
        ):
            self.dependencies.append(
                Dependency(
                    source=self.file_path,
                    target=node.args[0].value,
                    kind=DependencyKind.DYNAMIC_IMPORT,
                    specifiers=[],
                )
            )
        self.generic_visit(node)

    def _add_exports(self, node: ast.Assign) -> None:
        if not isinstance(node.value, (ast.List, ast.Tuple)):
            return
        for element in node.value.elts:
            if isinstance(element, ast.Constant) and isinstance(element.value, str):
                symbol = self._add_symbol(element.value, element, SymbolKind.EXPORT)
                symbol.export_info = ExportInfo(is_default=False, export_name=element.value)


def _target_names(target: ast.expr) -> list[str]:
    if isinstance(target, ast.Name):
        return [target.id]
    if isinstance(target, (ast.Tuple, ast.List)):
        return [elt.id for elt in target.elts if isinstance(elt, ast.Name)]
    return []


def _get_name_from_node(node: ast.AST | None) -> str | None:
    """Extract a dotted name string from Name/Attribute/Call/Subscript nodes."""
    if node is None:
        return None

    if isinstance(node, ast.Name):
        return node.id
    elif isinstance(node, ast.Attribute):
        value_name = _get_name_from_node(node.value)
        if value_name:
            return f"{value_name}.{node.attr}"
        return node.attr
    elif isinstance(node, ast.Call):
        return _get_name_from_node(node.func)
    elif isinstance(node, ast.Subscript):
        return _get_name_from_node(node.value)
    return None
