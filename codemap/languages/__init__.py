"""
Language parsers: turn source text into syntax trees, symbols and dependencies.

Components:
    - LanguageParser: Protocol defining the parser interface
    - ParserRegistry: ordered parser lookup with fault containment
    - JavaScriptTypeScriptParser: tree-sitter parser for JS/TS dialects
    - PythonParser: AST-based parser for Python files
    - ParseOutcome: success (tree, symbols, dependencies) or failure reason

Adding a new language:
    1. Create a new parser class implementing LanguageParser protocol
    2. Implement parse() to return a ParseOutcome
    3. Implement can_parse() to check file extensions
    4. Register it with ParserRegistry.register_parser()
"""

from codemap.languages.base import LanguageParser
from codemap.languages.models import ParseOutcome
from codemap.languages.python import PythonParser
from codemap.languages.registry import ParserRegistry, default_registry, file_extension
from codemap.languages.typescript import JavaScriptTypeScriptParser

__all__ = [
    "LanguageParser",
    "ParseOutcome",
    "ParserRegistry",
    "PythonParser",
    "JavaScriptTypeScriptParser",
    "default_registry",
    "file_extension",
]
