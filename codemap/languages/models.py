"""Data models for language parser results."""

from __future__ import annotations

from dataclasses import dataclass, field

from codemap.core.models import Dependency, FileRecord, Symbol, SyntaxNode


@dataclass
class ParseOutcome:
    """Result of parsing a file: either the extracted structure or a failure reason."""

    success: bool
    syntax_tree: SyntaxNode | None = None
    symbols: list[Symbol] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def ok(
        cls,
        syntax_tree: SyntaxNode,
        symbols: list[Symbol],
        dependencies: list[Dependency],
    ) -> ParseOutcome:
        return cls(
            success=True,
            syntax_tree=syntax_tree,
            symbols=symbols,
            dependencies=dependencies,
        )

    @classmethod
    def failure(cls, error: str) -> ParseOutcome:
        return cls(success=False, error=error)

    def to_file_record(self, file_path: str) -> FileRecord:
        """Bundle a successful outcome into a FileRecord for the graph store."""
        if not self.success or self.syntax_tree is None:
            raise ValueError(f"Cannot build a file record from a failed parse of {file_path}")
        return FileRecord(
            file_path=file_path,
            syntax_tree=self.syntax_tree,
            symbols=self.symbols,
            dependencies=self.dependencies,
        )
