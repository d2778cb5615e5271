"""Resolve relative module specifiers to files present in the graph."""

from __future__ import annotations

import posixpath
from collections.abc import Collection

from codemap.core.graph.references import SOURCE_EXTENSIONS, is_relative_specifier


def resolve_specifier(
    from_path: str,
    specifier: str,
    known_files: Collection[str],
) -> str | None:
    """Resolve a specifier imported by ``from_path`` to a known file path.

    Probes, in order: the path as written, the path with each source
    extension appended, then an ``index`` file with each extension inside
    the directory. Non-relative specifiers are not resolved.
    """
    if not is_relative_specifier(specifier):
        return None

    base_dir = posixpath.dirname(from_path.replace("\\", "/"))
    base = posixpath.normpath(posixpath.join(base_dir, specifier))

    candidates = [base]
    candidates.extend(base + ext for ext in SOURCE_EXTENSIONS)
    candidates.extend(posixpath.join(base, "index" + ext) for ext in SOURCE_EXTENSIONS)
    # Python packages resolve to their __init__ module.
    candidates.append(posixpath.join(base, "__init__.py"))

    for candidate in candidates:
        if candidate in known_files:
            return candidate
    return None
