"""Parser registry: adapter selection plus fault containment."""

from __future__ import annotations

import logging

from codemap.languages.base import LanguageParser
from codemap.languages.models import ParseOutcome

logger = logging.getLogger(__name__)


def file_extension(file_path: str) -> str:
    """Lower-cased text after the last dot of the file name, or ''."""
    name = file_path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


class ParserRegistry:
    """Ordered set of language parsers. First registered, first tried."""

    def __init__(self) -> None:
        self._parsers: list[LanguageParser] = []

    def register_parser(self, parser: LanguageParser) -> None:
        """Append a parser to the lookup order."""
        self._parsers.append(parser)

    def get_parser(self, file_path: str, extension: str) -> LanguageParser | None:
        """Return the first parser that accepts the file, or None."""
        for parser in self._parsers:
            if parser.can_parse(file_path, extension):
                return parser
        return None

    def supports(self, file_path: str) -> bool:
        """Check if any registered parser accepts the file."""
        return self.get_parser(file_path, file_extension(file_path)) is not None

    def parse_file(self, content: str, file_path: str) -> ParseOutcome:
        """Parse a file with the matching parser.

        Never raises: a missing parser and any exception escaping the parser
        are both reported as failed outcomes.
        """
        extension = file_extension(file_path)
        parser = self.get_parser(file_path, extension)

        if parser is None:
            return ParseOutcome.failure(
                f"No parser available for file: {file_path} (extension: {extension})"
            )

        try:
            return parser.parse(content, file_path)
        except Exception as e:
            logger.debug("Parser %s raised on %s", type(parser).__name__, file_path, exc_info=True)
            return ParseOutcome.failure(f"Parse error for {file_path}: {e}")

    def __len__(self) -> int:
        return len(self._parsers)


def default_registry() -> ParserRegistry:
    """Registry with the bundled JavaScript/TypeScript and Python parsers."""
    from codemap.languages.python import PythonParser
    from codemap.languages.typescript import JavaScriptTypeScriptParser

    registry = ParserRegistry()
    registry.register_parser(JavaScriptTypeScriptParser())
    registry.register_parser(PythonParser())
    return registry
