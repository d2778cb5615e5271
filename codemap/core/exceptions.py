"""codemap custom exceptions."""


class CodemapError(Exception):
    """Base exception for codemap errors."""


class ParseError(CodemapError):
    """Error parsing a source file."""


class NoCodebaseError(CodemapError):
    """A query was issued before any codebase was ingested."""


class ResourceNotFoundError(CodemapError):
    """An MCP resource URI names nothing in the ingested project."""
