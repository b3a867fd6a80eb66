"""Output aggregator: keyed, append-only output streams shared by all workers.

Every shared artifact written during a run (cross-reference files, function
search index, per-project logs, the file indexes) goes through one
OutputAggregator. Handles are opened on first use and stay open until the
aggregator is closed. Appends to one key are serialized by that stream's own
lock; the registry lock is only taken to look up or create a stream, so
writers of different keys never wait for each other's appends.
"""

import threading
from enum import Enum
from pathlib import Path, PurePosixPath

from codebrowser.utils.constants import (
    FILE_INDEX_NAME,
    FN_SEARCH_DIR_NAME,
    MACRO_REFS_DIR_NAME,
    OTHER_INDEX_NAME,
    REFS_DIR_NAME,
)
from codebrowser.utils.logging import logger


class StreamKind(Enum):
    """Families of keyed streams, by directory under the output root."""

    REFS = REFS_DIR_NAME
    FN_SEARCH = FN_SEARCH_DIR_NAME
    PROJECT = "projects"


class OutputStream:
    """One append-only file and the lock that serializes writes to it."""

    def __init__(self, path: Path):
        self.path = path
        self.lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = open(self.path, "a", encoding="utf-8", errors="surrogateescape")
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def append(self, line: str) -> None:
        """Append ``line`` (newline-terminated) as one uninterrupted write."""
        if not line.endswith("\n"):
            line += "\n"
        with self.lock:
            if self._closed:
                raise ValueError(f"append to closed output stream {self.path}")
            self._handle.write(line)

    def close(self) -> None:
        with self.lock:
            if self._closed:
                return
            self._handle.flush()
            self._handle.close()
            self._closed = True


def _validate_key(key: str) -> str:
    """Keys may name subdirectories but must stay below their stream directory."""
    parts = PurePosixPath(key).parts
    if not key or key.startswith("/") or ".." in parts:
        raise ValueError(f"invalid output stream key: {key!r}")
    return key


class OutputAggregator:
    """Registry owning every shared output stream of a run.

    Use as a context manager; leaving the block flushes and closes every
    handle, also on error paths.
    """

    def __init__(self, output_root: str | Path):
        self.output_root = Path(output_root)
        self._create_layout()

        self._streams: dict[tuple[StreamKind, str], OutputStream] = {}
        self._lock = threading.Lock()

        self.file_index = OutputStream(self.output_root / FILE_INDEX_NAME)
        self.other_index = OutputStream(self.output_root / OTHER_INDEX_NAME)

    def _create_layout(self) -> None:
        logger.debug(f"Create output layout under {self.output_root}")
        self.output_root.mkdir(parents=True, exist_ok=True)
        (self.output_root / REFS_DIR_NAME / MACRO_REFS_DIR_NAME).mkdir(parents=True, exist_ok=True)
        (self.output_root / FN_SEARCH_DIR_NAME).mkdir(parents=True, exist_ok=True)

    def stream(self, kind: StreamKind, key: str) -> OutputStream:
        """Return the stream for ``(kind, key)``, creating it on first use."""
        ident = (kind, key)
        existing = self._streams.get(ident)
        if existing is not None:
            return existing

        _validate_key(key)
        with self._lock:
            existing = self._streams.get(ident)
            if existing is None:
                existing = OutputStream(self.output_root / kind.value / key)
                self._streams[ident] = existing
            return existing

    def append(self, kind: StreamKind, key: str, line: str) -> None:
        self.stream(kind, key).append(line)

    def append_to_project_log(self, project_name: str, line: str) -> None:
        """Append to the per-project log (one line per page of the project)."""
        self.append(StreamKind.PROJECT, project_name, line)

    def append_to_symbol_index(self, symbol_key: str, line: str) -> None:
        """Append one cross-reference record for ``symbol_key``."""
        self.append(StreamKind.REFS, symbol_key, line)

    def append_to_function_index(self, prefix: str, line: str) -> None:
        """Append one function-search entry under ``prefix``."""
        self.append(StreamKind.FN_SEARCH, prefix, line)

    def add_file_index(self, line: str) -> None:
        """Record an annotated page generated by the unit processor."""
        self.file_index.append(line)

    def add_other_index(self, line: str) -> None:
        """Record a plain, unannotated page."""
        self.other_index.append(line)

    def open_stream_count(self) -> int:
        with self._lock:
            return len(self._streams)

    def close(self) -> None:
        """Flush and close every stream. Safe to call more than once."""
        with self._lock:
            streams = list(self._streams.values())
        for stream in streams + [self.file_index, self.other_index]:
            try:
                stream.close()
            except OSError as e:
                logger.error(f"Failed to close output stream {stream.path}: {e}")

    def __enter__(self) -> "OutputAggregator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
