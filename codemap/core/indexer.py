"""Indexer that coordinates discovery, parsing and the graph store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from codemap.core.config import IndexConfig, categorize_file
from codemap.core.exceptions import ParseError
from codemap.core.graph import GraphStore
from codemap.core.models import ChangeEvent, ChangeKind, FileInfo, FileRecord, IndexStats
from codemap.languages.models import ParseOutcome
from codemap.languages.registry import ParserRegistry, default_registry

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Path, int, int], None]


def read_source(file: Path) -> str:
    """Read a source file as UTF-8."""
    try:
        return file.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"Cannot read {file}: {e}") from e


class Indexer:
    """Builds and incrementally maintains the code graph for one project root.

    Alongside the graph it keeps ``file_index``: every discovered file within
    the size and depth limits, keyed by relative path, parsed or not.

    Change events are queued and applied one at a time by ``run()``. A new
    ``ingest()`` swaps in a fresh GraphStore and invalidates every event
    queued or in flight against the previous one.
    """

    def __init__(self, config: IndexConfig, registry: ParserRegistry | None = None) -> None:
        """Initialize with a project configuration and parser registry."""
        self.config = config
        self.registry = registry or default_registry()
        self.failures: dict[str, str] = {}
        self.file_index: dict[str, FileInfo] = {}

        self._store = GraphStore()
        self._generation = 0
        self._queue: asyncio.Queue[tuple[int, ChangeEvent]] = asyncio.Queue()

    @property
    def store(self) -> GraphStore:
        return self._store

    @property
    def generation(self) -> int:
        return self._generation

    def path_key(self, file: Path | str) -> str:
        """The file identifier used in the graph: absolute POSIX path."""
        return Path(file).absolute().as_posix()

    def discover(self) -> list[Path]:
        """Walk the root and list files within depth and size limits, excluding ignored paths."""
        found: list[Path] = []
        self._scan(self.config.root, 0, found)
        return found

    def _scan(self, directory: Path, depth: int, found: list[Path]) -> None:
        if depth > self.config.max_depth:
            return
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            logger.warning("Cannot list %s: %s", directory, e)
            return

        for entry in entries:
            if self.config.should_exclude(self.config.relative(entry)):
                continue
            if entry.is_dir():
                self._scan(entry, depth + 1, found)
            elif entry.is_file() and entry.stat().st_size <= self.config.max_file_size:
                found.append(entry)

    def describe(self, file: Path) -> FileInfo | None:
        """Stat a file for the file index.

        Returns None for anything that is not a regular file within the size
        limit. Raises FileNotFoundError if the file is gone.
        """
        stat = file.stat()
        if not file.is_file() or stat.st_size > self.config.max_file_size:
            return None
        relative_path = self.config.relative(file)
        name = file.name
        return FileInfo(
            path=self.path_key(file),
            relative_path=relative_path,
            type=name.rsplit(".", 1)[-1] if "." in name else "unknown",
            size=stat.st_size,
            category=categorize_file(relative_path),
        )

    def is_indexable(self, file: Path) -> bool:
        """Check if a file is in scope, categorized as parseable, and has a parser."""
        relative_path = self.config.relative(file)
        if self.config.should_exclude(relative_path):
            return False
        if not self.config.is_indexable(relative_path):
            return False
        return self.registry.supports(self.path_key(file))

    def ingest(self, on_progress: ProgressCallback | None = None) -> IndexStats:
        """Rebuild the graph from scratch for every indexable file under the root.

        One unreadable or unparsable file never stops the rest; its reason is
        kept in ``stats.errors`` and ``failures``.

        Args:
            on_progress: Optional callback for progress updates (file, current, total)

        Returns:
            IndexStats with counts of files/symbols/dependencies processed
        """
        self._generation += 1
        self.failures = {}
        stats = IndexStats()
        records: list[FileRecord] = []
        file_index: dict[str, FileInfo] = {}

        files = self.discover()
        total_files = len(files)

        for i, file in enumerate(files):
            try:
                info = self.describe(file)
            except OSError:
                info = None
            if info is not None:
                file_index[info.relative_path] = info

            if info is None or not self.is_indexable(file):
                stats.skipped += 1
            else:
                key = info.path
                try:
                    outcome = self.registry.parse_file(read_source(file), key)
                except (ParseError, OSError) as e:
                    outcome = ParseOutcome.failure(str(e))

                if outcome.success:
                    record = outcome.to_file_record(key)
                    records.append(record)
                    stats.files += 1
                    stats.symbols += len(record.symbols)
                    stats.dependencies += len(record.dependencies)
                else:
                    error = outcome.error or f"Failed to parse {key}"
                    self.failures[key] = error
                    stats.errors.append(error)
                    logger.warning("%s", error)

            if on_progress:
                on_progress(file, i + 1, total_files)

        store = GraphStore()
        store.add_files(records)
        self._store = store
        self.file_index = file_index

        logger.info(
            "Ingested %s: %d files, %d symbols, %d errors",
            self.config.root,
            stats.files,
            stats.symbols,
            len(stats.errors),
        )
        return stats

    def index_file(self, file: Path) -> ParseOutcome | None:
        """Parse one file and replace its record in the graph.

        Returns None when the file is not indexable (any earlier record is
        dropped). A failed parse also drops the earlier record.
        """
        info = self.describe(file)
        if info is None:
            self.forget_file(file)
            return None
        self.file_index[info.relative_path] = info

        if not self.is_indexable(file):
            self.remove_file(file)
            return None
        return self._apply_content(file, read_source(file))

    def remove_file(self, file: Path | str) -> bool:
        """Remove a file's contribution to the graph. Absent files are a no-op."""
        key = self.path_key(file)
        self.failures.pop(key, None)
        return self._store.remove_file(key)

    def forget_file(self, file: Path | str) -> bool:
        """Drop a file from both the file index and the graph."""
        self.file_index.pop(self.config.relative(Path(file)), None)
        return self.remove_file(file)

    def _apply_content(self, file: Path, content: str) -> ParseOutcome:
        key = self.path_key(file)
        outcome = self.registry.parse_file(content, key)
        if outcome.success:
            self.failures.pop(key, None)
            self._store.replace_file(outcome.to_file_record(key))
        else:
            self.failures[key] = outcome.error or f"Failed to parse {key}"
            self._store.remove_file(key)
            logger.warning("%s", self.failures[key])
        return outcome

    def submit(self, event: ChangeEvent) -> None:
        """Queue a change event against the current graph generation."""
        self._queue.put_nowait((self._generation, event))

    async def run(self) -> None:
        """Apply queued change events one at a time, forever."""
        while True:
            generation, event = await self._queue.get()
            try:
                await self.apply_event(event, generation)
            except Exception:
                logger.exception("Failed to apply %s for %s", event.kind.value, event.path)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued event has been applied."""
        await self._queue.join()

    async def apply_event(self, event: ChangeEvent, generation: int | None = None) -> None:
        """Bring the file index and graph in line with one change event.

        Statting and reading the file are the only suspension points; the
        graph is mutated afterwards in one step, and only if no re-ingestion
        happened meanwhile.
        """
        if generation is None:
            generation = self._generation
        if generation != self._generation:
            logger.debug("Dropping stale %s event for %s", event.kind.value, event.path)
            return

        file = Path(event.path)

        if event.kind is ChangeKind.DELETED or self.config.should_exclude(
            self.config.relative(file)
        ):
            self.forget_file(file)
            return

        try:
            info = await asyncio.to_thread(self.describe, file)
            content = None
            if info is not None and self.is_indexable(file):
                content = await asyncio.to_thread(read_source, file)
        except FileNotFoundError:
            if generation == self._generation:
                self.forget_file(file)
            return
        except (ParseError, OSError) as e:
            logger.warning("Skipping %s: %s", event.path, e)
            return

        if generation != self._generation:
            logger.debug("Dropping stale %s event for %s", event.kind.value, event.path)
            return

        if info is None:
            # Directories and files over the size limit never enter the graph.
            self.forget_file(file)
            return

        self.file_index[info.relative_path] = info
        if content is None:
            self.remove_file(file)
            return
        self._apply_content(file, content)
