"""Tests for error handling paths."""

import tempfile
from pathlib import Path

import pytest

from codemap.core.config import IndexConfig
from codemap.core.exceptions import CodemapError, NoCodebaseError, ParseError
from codemap.core.indexer import Indexer, read_source
from codemap.languages.models import ParseOutcome
from codemap.languages.python import PythonParser
from codemap.languages.registry import ParserRegistry


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td).resolve()


@pytest.fixture
def python_indexer(temp_dir: Path) -> Indexer:
    """Indexer over temp_dir that only knows Python."""
    registry = ParserRegistry()
    registry.register_parser(PythonParser())
    return Indexer(IndexConfig(root=temp_dir), registry=registry)


class ExplodingParser:
    """Parser that accepts .boom files and always raises."""

    def can_parse(self, file_path: str, extension: str) -> bool:
        return extension == "boom"

    def parse(self, content: str, file_path: str) -> ParseOutcome:
        raise RuntimeError("kaboom")


class TestExceptionHierarchy:
    """Tests for the exception types."""

    def test_all_derive_from_base(self) -> None:
        assert issubclass(ParseError, CodemapError)
        assert issubclass(NoCodebaseError, CodemapError)

    def test_session_requires_ingest(self) -> None:
        from codemap.mcp.server import Session

        with pytest.raises(NoCodebaseError) as exc_info:
            Session().require_indexer()
        assert "ingest_codebase" in str(exc_info.value)


class TestRegistryErrors:
    """Tests for parser selection failures."""

    def test_no_parser_available(self) -> None:
        registry = ParserRegistry()
        registry.register_parser(PythonParser())

        outcome = registry.parse_file("body {}", "/proj/style.css")

        assert outcome.success is False
        assert outcome.error == "No parser available for file: /proj/style.css (extension: css)"

    def test_no_extension(self) -> None:
        outcome = ParserRegistry().parse_file("", "/proj/Makefile")
        assert outcome.error == "No parser available for file: /proj/Makefile (extension: )"

    def test_parser_exception_is_contained(self) -> None:
        registry = ParserRegistry()
        registry.register_parser(ExplodingParser())

        outcome = registry.parse_file("anything", "/proj/x.boom")

        assert outcome.success is False
        assert outcome.error == "Parse error for /proj/x.boom: kaboom"


class TestParserErrors:
    """Tests for parser error handling."""

    def test_parse_syntax_error(self) -> None:
        """Syntax errors come back as failed outcomes."""
        bad_code = """
def broken(
    # Missing closing paren and colon
"""
        outcome = PythonParser().parse(bad_code, "/proj/bad_syntax.py")

        assert outcome.success is False
        assert outcome.syntax_tree is None
        assert "Syntax error" in (outcome.error or "")

    def test_parse_encoding_error(self, temp_dir: Path) -> None:
        """Invalid UTF-8 raises ParseError when reading."""
        file_path = temp_dir / "bad_encoding.py"
        file_path.write_bytes(b"\xff\xfe invalid utf-8 \x80\x81")

        with pytest.raises(ParseError) as exc_info:
            read_source(file_path)

        assert "Cannot read" in str(exc_info.value)

    def test_parse_empty_file(self) -> None:
        """Empty files parse to a bare module."""
        outcome = PythonParser().parse("", "/proj/empty.py")

        assert outcome.success is True
        assert outcome.symbols == []
        assert outcome.syntax_tree is not None
        assert len(outcome.syntax_tree) == 1

    def test_failed_outcome_has_no_record(self) -> None:
        with pytest.raises(ValueError):
            ParseOutcome.failure("nope").to_file_record("/proj/x.py")


class TestIndexerErrors:
    """Tests for ingestion with broken files."""

    def test_partial_failure(self, temp_dir: Path, python_indexer: Indexer) -> None:
        """One broken file never stops the others."""
        for i in range(9):
            (temp_dir / f"mod{i}.py").write_text(f"def func{i}():\n    return {i}\n")
        (temp_dir / "broken.py").write_text("def broken(\n")

        stats = python_indexer.ingest()

        assert stats.files == 9
        assert len(stats.errors) == 1
        assert "broken.py" in stats.errors[0]
        assert python_indexer.store.get_file((temp_dir / "broken.py").as_posix()) is None
        assert (temp_dir / "broken.py").as_posix() in python_indexer.failures
        assert len(python_indexer.store.graph.files) == 9

    def test_unreadable_file_recorded(self, temp_dir: Path, python_indexer: Indexer) -> None:
        (temp_dir / "good.py").write_text("x = 1\n")
        (temp_dir / "latin.py").write_bytes(b"name = '\xe9'\n")

        stats = python_indexer.ingest()

        assert stats.files == 1
        assert len(stats.errors) == 1
        assert "Cannot read" in stats.errors[0]

    def test_failed_reparse_drops_old_record(self, temp_dir: Path, python_indexer: Indexer) -> None:
        file_path = temp_dir / "service.py"
        file_path.write_text("def run():\n    pass\n")
        python_indexer.ingest()
        assert file_path.as_posix() in python_indexer.store

        file_path.write_text("def run(:\n")
        outcome = python_indexer.index_file(file_path)

        assert outcome is not None and outcome.success is False
        assert file_path.as_posix() not in python_indexer.store
        assert python_indexer.store.graph.symbols == {}
        assert file_path.as_posix() in python_indexer.failures

    def test_oversized_files_not_discovered(self, temp_dir: Path) -> None:
        registry = ParserRegistry()
        registry.register_parser(PythonParser())
        indexer = Indexer(IndexConfig(root=temp_dir, max_file_size=64), registry=registry)
        (temp_dir / "small.py").write_text("x = 1\n")
        (temp_dir / "large.py").write_text("y = 2\n" * 100)

        assert [f.name for f in indexer.discover()] == ["small.py"]
