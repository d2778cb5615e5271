"""JavaScript/TypeScript parser built on tree-sitter grammars."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from tree_sitter_language_pack import get_parser

from codemap.core.exceptions import ParseError
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

if TYPE_CHECKING:
    from tree_sitter import Node, Parser

logger = logging.getLogger(__name__)

_GRAMMARS = {
    "ts": "typescript",
    "mts": "typescript",
    "cts": "typescript",
    "tsx": "tsx",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
}

_FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
_CLASS_DECLARATIONS = frozenset({"class_declaration", "abstract_class_declaration"})
_FUNCTION_VALUES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_TYPE_DECLARATIONS = frozenset({"interface_declaration", "type_alias_declaration", "enum_declaration"})
_VARIABLE_DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})

# Node types mirrored into the per-file syntax tree.
_TRACKED_NODES = (
    _FUNCTION_DECLARATIONS
    | _CLASS_DECLARATIONS
    | _FUNCTION_VALUES
    | _TYPE_DECLARATIONS
    | _VARIABLE_DECLARATIONS
    | {"import_statement", "export_statement", "method_definition", "variable_declarator"}
)


class JavaScriptTypeScriptParser:
    """Parser for .js/.jsx/.ts/.tsx (and module variants) files."""

    def __init__(self) -> None:
        self._parsers: dict[str, Parser] = {}

    def can_parse(self, file_path: str, extension: str) -> bool:
        """Check if this parser accepts the given file."""
        return extension in _GRAMMARS

    def parse(self, content: str, file_path: str) -> ParseOutcome:
        """Parse source text and extract the syntax tree, symbols and dependencies."""
        extension = file_path.rsplit(".", 1)[-1].lower()
        grammar = _GRAMMARS.get(extension)
        if grammar is None:
            raise ParseError(f"Unsupported extension for {file_path}: {extension}")

        tree = self._get_parser(grammar).parse(content.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            line = _first_error_line(root)
            return ParseOutcome.failure(f"Failed to parse {file_path}: syntax error near line {line}")

        extractor = _Extractor(file_path)
        extractor.run(root)

        return ParseOutcome.ok(
            syntax_tree=extractor.root,
            symbols=extractor.symbols,
            dependencies=extractor.dependencies,
        )

    def _get_parser(self, grammar: str) -> Parser:
        """Get or create the tree-sitter parser for a grammar."""
        if grammar not in self._parsers:
            logger.debug("Loading %s grammar", grammar)
            self._parsers[grammar] = get_parser(grammar)
        return self._parsers[grammar]


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _string_value(node: Node | None) -> str | None:
    """Unquote a string literal node."""
    if node is None or node.type not in ("string", "template_string"):
        return None
    raw = _text(node)
    if node.type == "template_string" and "${" in raw:
        return None
    return raw[1:-1]


def _span(node: Node) -> SourceSpan:
    start = node.start_point
    end = node.end_point
    return SourceSpan.from_points((start[0] + 1, start[1]), (end[0] + 1, end[1]))


def _first_error_line(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(reversed(node.children))
    return root.start_point[0] + 1


def _has_token(node: Node, token: str) -> bool:
    return any(child.type == token for child in node.children)


def _child_of_type(node: Node, *types: str) -> Node | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


class _Extractor:
    """Walks a tree-sitter tree once, collecting symbols, dependencies and syntax nodes."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.symbols: list[Symbol] = []
        self.dependencies: list[Dependency] = []
        self._symbol_ids: set[str] = set()
        self.root: SyntaxNode | None = None
        self._node_counter = 0

        self._handlers: dict[str, Callable[[Node], None]] = {
            "function_declaration": self._on_function,
            "generator_function_declaration": self._on_function,
            "variable_declarator": self._on_variable_declarator,
            "class_declaration": self._on_class,
            "abstract_class_declaration": self._on_class,
            "interface_declaration": self._on_interface,
            "type_alias_declaration": self._on_type_alias,
            "import_statement": self._on_import,
            "export_statement": self._on_export,
            "call_expression": self._on_call,
        }

    def run(self, root: Node) -> None:
        self.root = self._make_node(root, "Program", "Program")
        stack: list[tuple[Node, SyntaxNode]] = [
            (child, self.root) for child in reversed(root.named_children)
        ]

        while stack:
            node, parent = stack.pop()

            owner = parent
            if node.type in _TRACKED_NODES:
                owner = self._make_node(node, node.type, _text(node.child_by_field_name("name")) or None)
                parent.children.append(owner)

            handler = self._handlers.get(node.type)
            if handler is not None:
                handler(node)

            stack.extend((child, owner) for child in reversed(node.named_children))

    def _make_node(self, node: Node, kind: str, name: str | None) -> SyntaxNode:
        syntax_node = SyntaxNode(
            id=f"{self.file_path}:{self._node_counter}",
            kind=kind,
            file_path=self.file_path,
            span=_span(node),
            name=name,
        )
        self._node_counter += 1
        return syntax_node

    def _add_symbol(
        self,
        name: str,
        kind: SymbolKind,
        node: Node,
        metadata: Metadata | None = None,
    ) -> Symbol:
        symbol = Symbol.create(name, kind, self.file_path, _span(node), metadata)
        # Same name, kind and line means same id; keep the first.
        if symbol.id not in self._symbol_ids:
            self._symbol_ids.add(symbol.id)
            self.symbols.append(symbol)
        return symbol

    def _add_dependency(self, target: str, kind: DependencyKind, specifiers: list[str]) -> None:
        self.dependencies.append(
            Dependency(source=self.file_path, target=target, kind=kind, specifiers=specifiers)
        )

    def _on_function(self, node: Node) -> None:
        name = _text(node.child_by_field_name("name"))
        if not name:
            return
        params = node.child_by_field_name("parameters")
        self._add_symbol(
            name,
            SymbolKind.FUNCTION,
            node,
            {
                "async": _has_token(node, "async"),
                "generator": node.type.startswith("generator"),
                "params": len(params.named_children) if params is not None else 0,
            },
        )

    def _on_variable_declarator(self, node: Node) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            return
        value = node.child_by_field_name("value")
        if value is not None and value.type in _FUNCTION_VALUES:
            self._add_symbol(
                _text(name_node),
                SymbolKind.FUNCTION,
                node,
                {
                    "type": "arrow" if value.type == "arrow_function" else "expression",
                    "async": _has_token(value, "async"),
                    "generator": value.type == "generator_function",
                },
            )
        else:
            self._add_symbol(_text(name_node), SymbolKind.VARIABLE, node)

    def _on_class(self, node: Node) -> None:
        name = _text(node.child_by_field_name("name"))
        if not name:
            return

        methods: list[str] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                if member.type == "method_definition":
                    methods.append(_text(member.child_by_field_name("name")) or "unknown")

        self._add_symbol(
            name,
            SymbolKind.CLASS,
            node,
            {"superClass": self._super_class(node), "methods": list(methods)},
        )

    def _super_class(self, node: Node) -> str | None:
        heritage = _child_of_type(node, "class_heritage")
        if heritage is None:
            return None
        clause = _child_of_type(heritage, "extends_clause")
        target = clause if clause is not None else heritage
        if not target.named_children:
            return None
        base = target.named_children[0]
        return _text(base) if base.type == "identifier" else "unknown"

    def _on_interface(self, node: Node) -> None:
        extends: list[str] = []
        clause = _child_of_type(node, "extends_type_clause")
        if clause is not None:
            extends = [_text(child) for child in clause.named_children]
        self._add_symbol(
            _text(node.child_by_field_name("name")),
            SymbolKind.INTERFACE,
            node,
            {"extends": list(extends)},
        )

    def _on_type_alias(self, node: Node) -> None:
        self._add_symbol(_text(node.child_by_field_name("name")), SymbolKind.TYPE_ALIAS, node)

    def _on_import(self, node: Node) -> None:
        require_clause = _child_of_type(node, "import_require_clause")
        if require_clause is not None:
            source = _string_value(require_clause.child_by_field_name("source"))
            local = _child_of_type(require_clause, "identifier")
            if source is None or local is None:
                return
            self._add_import_symbol(node, _text(local), source, "*", is_default=False)
            self._add_dependency(source, DependencyKind.REQUIRE, [_text(local)])
            return

        source = _string_value(node.child_by_field_name("source"))
        if source is None:
            return

        specifiers: list[str] = []
        clause = _child_of_type(node, "import_clause")
        if clause is not None:
            for child in clause.named_children:
                if child.type == "identifier":
                    local = _text(child)
                    self._add_import_symbol(node, local, source, "default", is_default=True)
                    specifiers.append(local)
                elif child.type == "namespace_import":
                    identifier = _child_of_type(child, "identifier")
                    if identifier is not None:
                        local = _text(identifier)
                        self._add_import_symbol(node, local, source, "*", is_default=False)
                        specifiers.append(local)
                elif child.type == "named_imports":
                    for spec in child.named_children:
                        if spec.type != "import_specifier":
                            continue
                        imported = _text(spec.child_by_field_name("name")).strip("'\"")
                        alias = spec.child_by_field_name("alias")
                        local = _text(alias) if alias is not None else imported
                        self._add_import_symbol(node, local, source, imported, is_default=False)
                        specifiers.append(local)

        self._add_dependency(source, DependencyKind.IMPORT, specifiers)

    def _add_import_symbol(
        self, node: Node, local: str, source: str, import_name: str, is_default: bool
    ) -> None:
        symbol = self._add_symbol(local, SymbolKind.IMPORT, node)
        symbol.import_info = ImportInfo(
            source=source,
            is_default=is_default,
            import_name=import_name,
            imported_as=local,
        )

    def _on_export(self, node: Node) -> None:
        is_default = _has_token(node, "default")
        declaration = node.child_by_field_name("declaration")

        if declaration is not None:
            if declaration.type in _VARIABLE_DECLARATIONS:
                for declarator in declaration.named_children:
                    name_node = declarator.child_by_field_name("name")
                    if declarator.type == "variable_declarator" and name_node is not None:
                        if name_node.type == "identifier":
                            self._add_export_symbol(node, _text(name_node), is_default)
                return
            name = _text(declaration.child_by_field_name("name"))
            if name:
                self._add_export_symbol(node, name, is_default)
            elif is_default:
                self._add_export_symbol(node, "default", True)
            return

        if is_default:
            value = node.child_by_field_name("value")
            name = "default"
            if value is not None:
                if value.type == "identifier":
                    name = _text(value)
                else:
                    name = _text(value.child_by_field_name("name")) or "default"
            self._add_export_symbol(node, name, True)
            return

        clause = _child_of_type(node, "export_clause")
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                local = _text(spec.child_by_field_name("name"))
                alias = spec.child_by_field_name("alias")
                exported = _text(alias) if alias is not None else local
                symbol = self._add_symbol(local, SymbolKind.EXPORT, node)
                symbol.export_info = ExportInfo(
                    is_default=False,
                    export_name=exported,
                    exported_as=exported if exported != local else None,
                )

        source = _string_value(node.child_by_field_name("source"))
        if source is not None:
            specifiers = []
            if clause is not None:
                specifiers = [
                    _text(spec.child_by_field_name("name"))
                    for spec in clause.named_children
                    if spec.type == "export_specifier"
                ]
            self._add_dependency(source, DependencyKind.IMPORT, specifiers or ["*"])

    def _add_export_symbol(self, node: Node, name: str, is_default: bool) -> None:
        symbol = self._add_symbol(name, SymbolKind.EXPORT, node)
        symbol.export_info = ExportInfo(is_default=is_default, export_name=name)

    def _on_call(self, node: Node) -> None:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if function is None or arguments is None or not arguments.named_children:
            return

        target = _string_value(arguments.named_children[0])
        if target is None:
            return

        if function.type == "import":
            self._add_dependency(target, DependencyKind.DYNAMIC_IMPORT, [])
        elif function.type == "identifier" and _text(function) == "require":
            self._add_dependency(target, DependencyKind.REQUIRE, [])
