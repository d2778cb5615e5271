"""Project-level views over the file index: structure, file search and summary."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from codemap.core.models import FileInfo

if TYPE_CHECKING:
    from codemap.core.indexer import Indexer

logger = logging.getLogger(__name__)

FILE_CATEGORIES = ["source", "config", "test", "doc", "build", "other"]

_MIME_TYPES = {
    "js": "application/javascript",
    "jsx": "application/javascript",
    "mjs": "application/javascript",
    "cjs": "application/javascript",
    "ts": "application/typescript",
    "tsx": "application/typescript",
    "py": "text/x-python",
    "pyi": "text/x-python",
    "vue": "text/x-vue",
    "svelte": "text/x-svelte",
    "css": "text/css",
    "scss": "text/x-scss",
    "html": "text/html",
    "json": "application/json",
    "md": "text/markdown",
    "txt": "text/plain",
    "yaml": "text/yaml",
    "yml": "text/yaml",
    "toml": "application/toml",
}

_KEY_DEPENDENCIES = ["react", "vue", "svelte", "typescript", "vite", "@angular/core"]


def mime_type(extension: str) -> str:
    return _MIME_TYPES.get(extension, "text/plain")


def read_package_json(indexer: Indexer) -> dict[str, Any]:
    """The root package.json, or {} if missing or invalid."""
    info = indexer.file_index.get("package.json")
    if info is None:
        return {}
    try:
        data = json.loads(Path(info.path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed to read package.json: %s", e)
        return {}
    return data if isinstance(data, dict) else {}


def detect_framework(package_json: dict[str, Any], extensions: dict[str, int]) -> str:
    """Guess the front-end framework from dependencies and file extensions."""
    deps = {
        **(package_json.get("dependencies") or {}),
        **(package_json.get("devDependencies") or {}),
    }
    if "vue" in deps or extensions.get("vue"):
        return "Vue"
    if "react" in deps or extensions.get("jsx") or extensions.get("tsx"):
        return "React"
    if "svelte" in deps or extensions.get("svelte"):
        return "Svelte"
    if "@angular/core" in deps:
        return "Angular"
    if extensions.get("py"):
        return "Python"
    return "Vanilla"


def directory_structure(files: list[FileInfo]) -> dict[str, list[str]]:
    """Group file names by parent directory; top-level files go under "root"."""
    structure: dict[str, list[str]] = {}
    for info in files:
        directory, _, name = info.relative_path.rpartition("/")
        structure.setdefault(directory or "root", []).append(name)
    return structure


def _count(values: list[str]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


def project_structure(indexer: Indexer) -> dict[str, Any]:
    """Category, extension and size totals plus the directory layout."""
    files = list(indexer.file_index.values())
    extensions = _count([f.type for f in files])
    package_json = read_package_json(indexer)
    return {
        "root": str(indexer.config.root),
        "package_json": package_json,
        "framework": detect_framework(package_json, extensions),
        "total_files": len(files),
        "total_size": sum(f.size for f in files),
        "categories": _count([f.category for f in files]),
        "extensions": extensions,
        "directories": directory_structure(files),
    }


def _pattern_regex(pattern: str) -> re.Pattern[str]:
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")), re.IGNORECASE)


def _contains(info: FileInfo, needle: str) -> bool:
    try:
        return needle in Path(info.path).read_text(encoding="utf-8").lower()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Skipping %s in content search: %s", info.relative_path, e)
        return False


def search_files(
    indexer: Indexer,
    pattern: str | None = None,
    content: str | None = None,
    file_type: str | None = None,
    category: str | None = None,
) -> list[FileInfo]:
    """Filter indexed files by category, extension, path wildcard and contained text.

    ``pattern`` matches anywhere in the relative path, case-insensitively, with
    ``*`` standing for any run of characters. ``content`` is a
    case-insensitive substring of the file text.
    """
    results = list(indexer.file_index.values())
    if category:
        results = [f for f in results if f.category == category]
    if file_type:
        results = [f for f in results if f.type == file_type]
    if pattern:
        regex = _pattern_regex(pattern)
        results = [f for f in results if regex.search(f.relative_path)]
    if content:
        needle = content.lower()
        results = [f for f in results if _contains(f, needle)]
    return results


def project_summary(indexer: Indexer) -> str:
    """Markdown overview of the project for the summary resource."""
    structure = project_structure(indexer)
    package_json = structure["package_json"]
    categories: dict[str, int] = structure["categories"]
    deps = {
        **(package_json.get("dependencies") or {}),
        **(package_json.get("devDependencies") or {}),
    }

    lines = [
        "# Project Summary",
        "",
        f"**Framework:** {structure['framework']}",
        f"**Total Files:** {structure['total_files']}",
        "",
        "## Package Information",
        f"- Name: {package_json.get('name') or 'Unknown'}",
        f"- Version: {package_json.get('version') or 'Unknown'}",
        f"- Description: {package_json.get('description') or 'No description'}",
        "",
        "## File Distribution",
    ]
    lines.extend(f"- {category}: {count} files" for category, count in categories.items())
    lines.extend(["", "## Key Dependencies"])
    lines.extend(f"- {dep}: {deps[dep]}" for dep in _KEY_DEPENDENCIES if dep in deps)
    return "\n".join(lines) + "\n"
