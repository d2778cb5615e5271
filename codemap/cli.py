"""CLI entry point for codemap."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from codemap.core.config import DEFAULT_MAX_DEPTH, IndexConfig
from codemap.core.graph import queries
from codemap.core.indexer import Indexer
from codemap.core.models import IndexStats, SymbolKind
from codemap.core.serialize import reference_to_dict, summary_to_dict, symbol_to_dict

app = typer.Typer(
    name="codemap",
    help="Incremental code graph for JavaScript, TypeScript and Python projects.",
    no_args_is_help=True,
)
console = Console()

RootOption = Annotated[Path, typer.Option("--root", "-r", help="Project root to ingest")]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def build_indexer(
    path: Path,
    exclude: list[str] | None = None,
    include_tests: bool = True,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Indexer:
    """Create an indexer for the given root."""
    config = IndexConfig(root=path, include_tests=include_tests, max_depth=max_depth)
    if exclude:
        config.exclude_patterns.extend(exclude)
    return Indexer(config)


def ingest_quietly(path: Path) -> Indexer:
    """Ingest a root without progress output, for query commands."""
    indexer = build_indexer(path)
    indexer.ingest()
    return indexer


def print_stats(stats: IndexStats) -> None:
    console.print("[green]Done![/green]")
    console.print(f"  Files indexed: {stats.files}")
    console.print(f"  Symbols found: {stats.symbols}")
    console.print(f"  Dependencies: {stats.dependencies}")

    if stats.skipped:
        console.print(f"  [dim]Skipped: {stats.skipped}[/]")
    if stats.errors:
        console.print(f"  [red]Errors: {len(stats.errors)}[/red]")
        for error in stats.errors:
            console.print(f"    {error}")


def ingest_with_progress(indexer: Indexer) -> IndexStats:
    path = indexer.config.root
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"Indexing [cyan]{path.name}[/]", total=None)

        def on_progress(file: Path, current: int, total: int) -> None:
            progress.update(task, total=total, completed=current)
            progress.update(task, description=f"[cyan]{indexer.config.relative(file)}[/]")

        return indexer.ingest(on_progress=on_progress)


@app.command()
def index(
    path: Annotated[Path, typer.Argument(help="Directory to index")] = Path("."),
    exclude: Annotated[
        list[str] | None, typer.Option("--exclude", "-e", help="Patterns to exclude")
    ] = None,
    no_tests: Annotated[bool, typer.Option("--no-tests", help="Skip test files")] = False,
    max_depth: Annotated[
        int, typer.Option("--max-depth", "-d", help="Maximum directory depth")
    ] = DEFAULT_MAX_DEPTH,
) -> None:
    """Index a directory and report what was found."""
    indexer = build_indexer(path, exclude, include_tests=not no_tests, max_depth=max_depth)
    stats = ingest_with_progress(indexer)
    print_stats(stats)


@app.command()
def stats(root: RootOption = Path("."), output_json: JsonOption = False) -> None:
    """Show graph statistics."""
    indexer = ingest_quietly(root)
    result = summary_to_dict(queries.summary(indexer.store))

    if output_json:
        print(json.dumps(result))
        return

    console.print(f"Files: {result['total_files']}")
    console.print(f"Symbols: {result['total_symbols']}")
    console.print(f"Syntax nodes: {result['total_nodes']}")
    console.print(f"Dependencies: {result['dependency_count']}")
    for kind, count in sorted(result["symbols_by_type"].items()):
        console.print(f"  {kind}: {count}")


@app.command()
def find(
    name: Annotated[str, typer.Argument(help="Name to search for (partial match)")],
    symbol_type: Annotated[
        SymbolKind | None, typer.Option("--type", "-t", help="Filter by symbol type")
    ] = None,
    file: Annotated[str | None, typer.Option("--file", "-f", help="Filter by file path")] = None,
    root: RootOption = Path("."),
    output_json: JsonOption = False,
) -> None:
    """Search for symbols by name."""
    indexer = ingest_quietly(root)
    symbols = queries.search_symbols(indexer.store, name=name, kind=symbol_type, file=file)

    if output_json:
        print(json.dumps([symbol_to_dict(s) for s in symbols]))
        return

    if not symbols:
        console.print(f"No matches for '[cyan]{name}[/cyan]'")
        return
    for symbol in symbols:
        console.print(f"[cyan]{symbol.name}[/cyan] ({symbol.kind.value})")
        console.print(f"  {indexer.config.relative(Path(symbol.file_path))}:{symbol.span.start.line}")


@app.command()
def refs(
    name: Annotated[str, typer.Argument(help="Exact symbol name")],
    root: RootOption = Path("."),
    output_json: JsonOption = False,
) -> None:
    """Show where a symbol is defined and imported."""
    indexer = ingest_quietly(root)
    references = queries.references_of(indexer.store, name)

    if output_json:
        print(json.dumps([reference_to_dict(r) for r in references]))
        return

    if not references:
        console.print(f"No matches for '[cyan]{name}[/cyan]'")
        return
    for reference in references:
        rel = indexer.config.relative(Path(reference.file_path))
        console.print(
            f"  [green]{reference.kind.value:<10}[/] {rel}"
            f"[dim]:{reference.span.start.line}:{reference.span.start.column}[/]"
        )


@app.command()
def deps(
    root: RootOption = Path("."),
    resolved: Annotated[
        bool, typer.Option("--resolved", help="Resolve relative imports to files")
    ] = False,
    output_json: JsonOption = False,
) -> None:
    """Show which modules each file imports."""
    indexer = ingest_quietly(root)
    if resolved:
        graph = queries.resolved_dependency_graph(indexer.store)
    else:
        graph = queries.dependency_graph(indexer.store)

    if output_json:
        print(json.dumps(graph))
        return

    for source, targets in graph.items():
        console.print(f"[bold cyan]{indexer.config.relative(Path(source))}[/]")
        for target in targets:
            if resolved:
                target = indexer.config.relative(Path(target))
            console.print(f"  └─ {target}")


@app.command()
def watch(
    path: Annotated[Path, typer.Argument(help="Directory to watch")] = Path("."),
) -> None:
    """Index a directory, then keep the graph updated as files change."""
    from codemap.core.watcher import ProjectWatcher

    indexer = build_indexer(path)
    print_stats(ingest_with_progress(indexer))

    async def run() -> None:
        watcher = ProjectWatcher(indexer, asyncio.get_running_loop())
        watcher.start()
        try:
            await indexer.run()
        finally:
            watcher.stop()

    console.print(f"[dim]Watching {indexer.config.root} (Ctrl+C to stop)[/]")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        summary = queries.summary(indexer.store)
        console.print(
            f"\n[dim]Files: {summary.total_files} | Symbols: {summary.total_symbols}[/]"
        )


if __name__ == "__main__":
    app()
