"""JSON-ready views of graph models for the CLI and MCP server."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from codemap.core.models import GraphSummary, SourceSpan, Symbol, SymbolReference


def location(span: SourceSpan) -> str:
    return f"{span.start.line}:{span.start.column}"


def symbol_to_dict(symbol: Symbol) -> dict[str, Any]:
    """Convert a Symbol to a JSON-serializable dict."""
    return {
        "name": symbol.name,
        "type": symbol.kind.value,
        "file": symbol.file_path,
        "location": location(symbol.span),
        "references": len(symbol.references),
        "exports": symbol.export_info is not None,
        "imports": symbol.import_info is not None,
        "source": symbol.import_info.source if symbol.import_info else None,
    }


def reference_to_dict(reference: SymbolReference) -> dict[str, Any]:
    return {
        "file": reference.file_path,
        "location": location(reference.span),
        "type": reference.kind.value,
    }


def summary_to_dict(summary: GraphSummary) -> dict[str, Any]:
    return asdict(summary)
