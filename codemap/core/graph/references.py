"""Cross-file reference resolution.

References are derived state: every rebuild recomputes each symbol's list
from scratch as its definition plus one import reference per import binding
in another file that names it and whose relative specifier points at the
symbol's file. Matching is textual; package imports never match.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from codemap.core.models import FileRecord, ReferenceKind, Symbol, SymbolKind, SymbolReference

SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py", ".pyi")

_SOURCE_EXTENSION_RE = re.compile(r"\.(js|ts|jsx|tsx|mjs|cjs|py|pyi)$")

# Files that stand for their directory when it is imported.
_PACKAGE_FILES = ("/index", "/__init__")


def is_relative_specifier(specifier: str) -> bool:
    """Check if a module specifier is written relative to the importing file."""
    return specifier.startswith("./") or specifier.startswith("../")


def strip_source_extension(path: str) -> str:
    return _SOURCE_EXTENSION_RE.sub("", path)


def is_symbol_from_file(import_source: str, target_file_path: str) -> bool:
    """Guess whether an import specifier refers to the given file.

    ``./a`` matches ``src/a.ts``; ``../lib`` matches ``lib/index.js`` and
    ``./pkg`` matches ``pkg/__init__.py``. The importer's own location is not
    taken into account.
    """
    if not is_relative_specifier(import_source):
        return False

    tail = strip_source_extension(import_source)
    while tail.startswith("./") or tail.startswith("../"):
        tail = tail[2:] if tail.startswith("./") else tail[3:]
    tail = tail.strip("/")
    if not tail:
        return False

    target = strip_source_extension(target_file_path.replace("\\", "/"))
    candidates = [target]
    for package_file in _PACKAGE_FILES:
        if target.endswith(package_file):
            candidates.append(target[: -len(package_file)])
    for candidate in candidates:
        if candidate == tail or candidate.endswith("/" + tail):
            return True
    return False


def _index_imports_by_name(files: Iterable[FileRecord]) -> dict[str, list[Symbol]]:
    """Bucket relative import bindings under the names they could refer to."""
    by_name: dict[str, list[Symbol]] = {}
    for record in files:
        for symbol in record.symbols:
            info = symbol.import_info
            if symbol.kind != SymbolKind.IMPORT or info is None:
                continue
            if not is_relative_specifier(info.source):
                continue
            names = {n for n in (info.import_name, info.imported_as) if n}
            for name in sorted(names):
                by_name.setdefault(name, []).append(symbol)
    return by_name


def rebuild_references(files: dict[str, FileRecord]) -> int:
    """Recompute the reference list of every symbol in every file.

    Returns the number of import references found.
    """
    imports_by_name = _index_imports_by_name(files.values())
    found = 0

    for record in files.values():
        for symbol in record.symbols:
            references = [symbol.definition()]

            # Buckets are filled in file order, so references come out that way too.
            for other in imports_by_name.get(symbol.name, []):
                if other.file_path == symbol.file_path or other.import_info is None:
                    continue
                if is_symbol_from_file(other.import_info.source, symbol.file_path):
                    references.append(
                        SymbolReference(other.file_path, other.span, ReferenceKind.IMPORT)
                    )

            found += len(references) - 1
            symbol.references = references

    return found
