"""Tests for ingestion configuration and file categorization."""

from pathlib import Path

import pytest

from codemap.core.config import DEFAULT_MAX_DEPTH, IndexConfig, categorize_file


class TestCategorizeFile:
    """Tests for categorize_file."""

    @pytest.mark.parametrize(
        "path, category",
        [
            ("src/app.ts", "source"),
            ("pkg/models.py", "source"),
            ("src/app.test.ts", "test"),
            ("src/__tests__/app.tsx", "test"),
            ("tests/unit/test_models.py", "test"),
            ("package.json", "config"),
            ("vite.config.ts", "config"),
            (".eslintrc", "config"),
            ("README.md", "doc"),
            ("docs/guide.ts", "doc"),
            ("dist/bundle.js", "build"),
            ("assets/logo.png", "other"),
        ],
    )
    def test_categories(self, path: str, category: str) -> None:
        assert categorize_file(path) == category

    def test_case_insensitive(self) -> None:
        assert categorize_file("SRC/App.Test.TS") == "test"


class TestIndexConfig:
    """Tests for IndexConfig."""

    def test_defaults(self, tmp_path: Path) -> None:
        config = IndexConfig(root=tmp_path)
        assert config.root == tmp_path.resolve()
        assert config.max_depth == DEFAULT_MAX_DEPTH
        assert config.max_file_size == 1024 * 1024
        assert "node_modules" in config.exclude_patterns

    def test_should_exclude(self, tmp_path: Path) -> None:
        config = IndexConfig(root=tmp_path)

        assert config.should_exclude("node_modules/react/index.js")
        assert config.should_exclude(".git/HEAD")
        assert config.should_exclude("src/.hidden.ts")
        assert config.should_exclude("pkg/__pycache__/mod.py")
        assert not config.should_exclude("src/app.ts")

    def test_custom_patterns(self, tmp_path: Path) -> None:
        config = IndexConfig(root=tmp_path)
        config.exclude_patterns.append("generated/*.ts")

        assert config.should_exclude("generated/api.ts")
        assert not config.should_exclude("src/api.ts")

    def test_tests_can_be_skipped(self, tmp_path: Path) -> None:
        with_tests = IndexConfig(root=tmp_path)
        without_tests = IndexConfig(root=tmp_path, include_tests=False)

        assert with_tests.is_indexable("src/app.test.ts")
        assert not without_tests.is_indexable("src/app.test.ts")
        assert without_tests.is_indexable("src/app.ts")
        assert not with_tests.is_indexable("package.json")

    def test_relative(self, tmp_path: Path) -> None:
        config = IndexConfig(root=tmp_path)
        assert config.relative(config.root / "src" / "a.ts") == "src/a.ts"
