"""Protocol for language parsers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from codemap.languages.models import ParseOutcome


class LanguageParser(Protocol):
    """Protocol for language parsers."""

    def can_parse(self, file_path: str, extension: str) -> bool:
        """Check if this parser accepts the given file."""
        ...

    def parse(self, content: str, file_path: str) -> ParseOutcome:
        """Parse source text and extract the syntax tree, symbols and dependencies."""
        ...
