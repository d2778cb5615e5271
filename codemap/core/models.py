"""Data models for codemap."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

MetadataValue = Union[
    str, int, float, bool, None, list["MetadataValue"], dict[str, "MetadataValue"]
]
Metadata = dict[str, MetadataValue]


class SymbolKind(Enum):
    """Kinds of symbols that can be indexed."""

    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"
    IMPORT = "import"
    EXPORT = "export"
    INTERFACE = "interface"
    TYPE_ALIAS = "type"


class ReferenceKind(Enum):
    """How a symbol is mentioned at a location."""

    DEFINITION = "definition"
    USAGE = "usage"
    CALL = "call"
    IMPORT = "import"
    EXPORT = "export"


class DependencyKind(Enum):
    """How one file pulls in a module."""

    IMPORT = "import"
    DYNAMIC_IMPORT = "dynamic_import"
    REQUIRE = "require"


class ChangeKind(Enum):
    """File-system change event kinds."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class Position:
    """A point in a source file (1-based line, 0-based column)."""

    line: int
    column: int


@dataclass(frozen=True)
class SourceSpan:
    """Start and end positions of a construct."""

    start: Position
    end: Position

    @classmethod
    def from_points(cls, start: tuple[int, int], end: tuple[int, int]) -> SourceSpan:
        """Build a span from (line, column) pairs."""
        return cls(Position(*start), Position(*end))


@dataclass
class SyntaxNode:
    """One node of a per-file syntax tree."""

    id: str
    kind: str
    file_path: str
    span: SourceSpan
    name: str | None = None
    children: list[SyntaxNode] = field(default_factory=list)
    metadata: Metadata = field(default_factory=dict)

    def __iter__(self) -> Iterator[SyntaxNode]:
        """Pre-order traversal."""
        yield self
        for child in self.children:
            yield from child

    def __len__(self) -> int:
        """Total nodes in subtree."""
        return 1 + sum(len(c) for c in self.children)


@dataclass(frozen=True)
class SymbolReference:
    """A located mention of a symbol."""

    file_path: str
    span: SourceSpan
    kind: ReferenceKind


@dataclass
class ExportInfo:
    """How a symbol leaves its module."""

    is_default: bool = False
    export_name: str | None = None
    exported_as: str | None = None


@dataclass
class ImportInfo:
    """Where an import binding comes from."""

    source: str
    is_default: bool = False
    import_name: str | None = None
    imported_as: str | None = None


def make_symbol_id(file_path: str, name: str, kind: SymbolKind, line: int) -> str:
    """Build the deterministic identifier of a symbol."""
    return f"{file_path}:{name}:{kind.value}:{line}"


@dataclass
class Symbol:
    """A named, typed program entity declared in one file."""

    id: str
    name: str
    kind: SymbolKind
    file_path: str
    span: SourceSpan
    references: list[SymbolReference] = field(default_factory=list)
    export_info: ExportInfo | None = None
    import_info: ImportInfo | None = None
    metadata: Metadata = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        name: str,
        kind: SymbolKind,
        file_path: str,
        span: SourceSpan,
        metadata: Metadata | None = None,
    ) -> Symbol:
        """Create a symbol with its identifier derived from path, name, kind and line."""
        return cls(
            id=make_symbol_id(file_path, name, kind, span.start.line),
            name=name,
            kind=kind,
            file_path=file_path,
            span=span,
            metadata=metadata or {},
        )

    def definition(self) -> SymbolReference:
        """The reference that points at this symbol's own declaration."""
        return SymbolReference(self.file_path, self.span, ReferenceKind.DEFINITION)


@dataclass
class Dependency:
    """A directed, unresolved edge from a file to a module specifier."""

    source: str
    target: str
    kind: DependencyKind = DependencyKind.IMPORT
    specifiers: list[str] = field(default_factory=list)


@dataclass
class FileRecord:
    """Everything one file contributed to the graph."""

    file_path: str
    syntax_tree: SyntaxNode
    symbols: list[Symbol] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)

    @property
    def exports(self) -> list[Symbol]:
        return [s for s in self.symbols if s.export_info is not None]

    @property
    def imports(self) -> list[Symbol]:
        return [s for s in self.symbols if s.import_info is not None]


@dataclass
class CodeGraph:
    """The project-wide graph, merged across files."""

    nodes: dict[str, SyntaxNode] = field(default_factory=dict)
    symbols: dict[str, Symbol] = field(default_factory=dict)
    dependencies: list[Dependency] = field(default_factory=list)
    files: dict[str, FileRecord] = field(default_factory=dict)


@dataclass
class FileInfo:
    """A discovered project file, whether or not it was parsed."""

    path: str
    relative_path: str
    type: str
    size: int
    category: str


@dataclass(frozen=True)
class ChangeEvent:
    """A discrete file-system change."""

    kind: ChangeKind
    path: str


@dataclass
class GraphSummary:
    """Counts describing the current graph."""

    total_nodes: int
    total_symbols: int
    total_files: int
    symbols_by_type: dict[str, int]
    dependency_count: int


class IndexStats:
    """Statistics from an indexing operation."""

    def __init__(self) -> None:
        self.files: int = 0
        self.symbols: int = 0
        self.dependencies: int = 0
        self.skipped: int = 0
        self.errors: list[str] = []

    def __repr__(self) -> str:
        return (
            f"IndexStats(files={self.files}, symbols={self.symbols}, "
            f"dependencies={self.dependencies}, skipped={self.skipped}, "
            f"errors={len(self.errors)})"
        )
