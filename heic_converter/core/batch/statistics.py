"""Thread-safe success/failure accounting for a batch."""

import threading
from pathlib import Path
from typing import List, Union

from heic_converter.core.batch.models import BatchStatistics


class StatisticsCollector:
    """Accumulates processed/failed counts and the ordered failed-file list.

    Every read and write happens under a single lock, so outcomes may be
    recorded from worker threads while the main thread takes snapshots.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._processed = 0
        self._failed = 0
        self._failed_files: List[Path] = []

    def reset(self) -> None:
        with self._lock:
            self._processed = 0
            self._failed = 0
            self._failed_files = []

    def record_success(self) -> None:
        with self._lock:
            self._processed += 1

    def record_failure(self, path: Union[str, Path]) -> None:
        with self._lock:
            self._failed += 1
            self._failed_files.append(Path(path))

    def snapshot(self) -> BatchStatistics:
        """Return an independent copy of the current counts."""
        with self._lock:
            return BatchStatistics(
                processed=self._processed,
                failed=self._failed,
                failed_files=list(self._failed_files),
            )

    @property
    def processed(self) -> int:
        with self._lock:
            return self._processed

    @property
    def failed(self) -> int:
        with self._lock:
            return self._failed
