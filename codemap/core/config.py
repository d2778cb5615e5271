"""Ingestion configuration and file categorization."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

DEFAULT_EXCLUDES = [
    "node_modules",
    "dist",
    "build",
    "coverage",
    "__pycache__",
    "*.egg-info",
    "venv",
    ".venv",
]

DEFAULT_MAX_FILE_SIZE = 1024 * 1024
DEFAULT_MAX_DEPTH = 10

_SOURCE_EXTENSIONS = frozenset(
    {"js", "ts", "jsx", "tsx", "mjs", "cjs", "mts", "cts", "vue", "svelte", "py", "pyi"}
)
_CONFIG_EXTENSIONS = frozenset({"json", "yaml", "yml", "toml", "env", "ini", "cfg"})
_DOC_EXTENSIONS = frozenset({"md", "txt", "rst"})
_TEST_MARKERS = ("test", "spec", "__tests__")
_BUILD_MARKERS = ("dist/", "build/", ".output/")


@dataclass
class IndexConfig:
    """What to walk and what to skip when ingesting a project."""

    root: Path
    exclude_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_depth: int = DEFAULT_MAX_DEPTH
    include_tests: bool = True

    def __post_init__(self) -> None:
        self.root = Path(self.root).resolve()

    def relative(self, path: Path) -> str:
        """Path relative to the root in POSIX form, or the path itself if outside."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def should_exclude(self, relative_path: str) -> bool:
        """Check if a path matches any exclusion pattern.

        Excludes:
        - Any path component starting with '.' (hidden files/directories)
        - Any path component, or the whole relative path, matching a pattern
        """
        parts = PurePosixPath(relative_path).parts
        for part in parts:
            if part.startswith(".") and part not in (".", ".."):
                return True
            for pattern in self.exclude_patterns:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return any(fnmatch.fnmatch(relative_path, pattern) for pattern in self.exclude_patterns)

    def is_indexable(self, relative_path: str) -> bool:
        """Check if a file's category means it should be parsed."""
        category = categorize_file(relative_path)
        return category == "source" or (category == "test" and self.include_tests)


def categorize_file(relative_path: str) -> str:
    """Classify a project file as source, test, config, doc, build or other.

    Checks run in that priority order, on the lower-cased relative path.
    """
    path = relative_path.replace("\\", "/").lower()
    name = path.rsplit("/", 1)[-1]
    extension = name.rsplit(".", 1)[-1] if "." in name else ""

    if extension in _SOURCE_EXTENSIONS and any(marker in path for marker in _TEST_MARKERS):
        return "test"
    if "config" in name or extension in _CONFIG_EXTENSIONS or name.startswith("."):
        return "config"
    if extension in _DOC_EXTENSIONS or path.startswith("doc"):
        return "doc"
    if any(marker in path for marker in _BUILD_MARKERS):
        return "build"
    if extension in _SOURCE_EXTENSIONS:
        return "source"
    return "other"
