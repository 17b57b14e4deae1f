from __future__ import annotations

import csv
import os
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterator, List, Optional, Sequence

from models.records import Sample
from settings import get_settings

# Identifiers are written through Latin-1 so every raw byte maps to exactly
# one character and back.
_TEXT_ENCODING = "latin-1"
_BASE_COLUMNS = ("account", "device", "time", "period")


class IOFailure(Exception):
    """Raised when a batch cannot be persisted to its destination file."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"Unable to write samples to {str(path)!r}: {cause}")
        self.path = path
        self.cause = cause


@dataclass(frozen=True)
class AppendResult:
    path: Path
    rows_written: int
    header_written: bool


def identifier_text(raw: bytes) -> str:
    return raw.decode(_TEXT_ENCODING)


def format_timestamp(sample: Sample) -> str:
    moment = sample.timestamp.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def header_row(sample: Sample) -> List[str]:
    return [*_BASE_COLUMNS, *(f"A{index}" for index in range(sample.channel_count))]


def sample_row(sample: Sample) -> List[str]:
    return [
        identifier_text(sample.account_id),
        identifier_text(sample.device_id),
        format_timestamp(sample),
        str(sample.period_ms),
        *(str(value) for value in sample.values),
    ]


class _PathLocks:
    """Per-path locks, dropped once no writer holds or waits on them."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: Dict[Path, Lock] = {}
        self._users: Dict[Path, int] = {}

    @contextmanager
    def hold(self, path: Path) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(path, Lock())
            self._users[path] = self._users.get(path, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[path] -= 1
                if not self._users[path]:
                    del self._users[path]
                    del self._locks[path]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class PartitionedFileStore:
    """Append-only delimited files partitioned by account, UTC date and hour.

    Layout: ``<root>/<account>/<YYYY>/<MM>/<DD>/<HH>-<device>.dat``.
    """

    def __init__(self, root_path: Path) -> None:
        self.root_path = root_path
        self._locks = _PathLocks()

    def path_for(self, sample: Sample) -> Path:
        # Joined as text so an identifier starting with "/" stays under the root.
        moment = sample.timestamp.astimezone(timezone.utc)
        relative = "/".join(
            (
                os.fsdecode(sample.account_id),
                f"{moment.year:04d}",
                f"{moment.month:02d}",
                f"{moment.day:02d}",
                f"{moment.hour:02d}-{os.fsdecode(sample.device_id)}.dat",
            )
        )
        return Path(f"{os.fspath(self.root_path)}/{relative}")

    def _check_within_root(self, path: Path) -> None:
        if not path.resolve().is_relative_to(self.root_path.resolve()):
            raise ValueError(f"Destination {str(path)!r} escapes the data directory.")

    def append(self, samples: Sequence[Sample]) -> Optional[AppendResult]:
        """Append a batch to the file named after its first sample.

        The whole batch lands in the first sample's hour file even when later
        samples fall into another hour. A header row is written only when the
        file is empty. Rows flushed before a failure stay on disk.
        """
        if not samples:
            return None

        first = samples[0]
        path = self.path_for(first)
        with self._locks.hold(path):
            try:
                self._check_within_root(path)
                path.parent.mkdir(parents=True, exist_ok=True)
                with path.open("a", encoding=_TEXT_ENCODING, newline="") as handle:
                    header_written = os.fstat(handle.fileno()).st_size == 0
                    writer = csv.writer(handle, lineterminator="\n")
                    if header_written:
                        writer.writerow(header_row(first))
                    for sample in samples:
                        writer.writerow(sample_row(sample))
                    handle.flush()
            except (OSError, ValueError, csv.Error) as exc:
                raise IOFailure(path, exc) from exc

        return AppendResult(path=path, rows_written=len(samples), header_written=header_written)


@lru_cache
def build_default_store(root_path: Optional[str] = None) -> PartitionedFileStore:
    settings = get_settings()
    root = settings.data_dir if root_path is None else root_path
    return PartitionedFileStore(root_path=Path(root))
