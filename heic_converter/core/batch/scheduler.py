"""Chunked scheduling of conversion tasks on a bounded worker pool."""

import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import structlog

from heic_converter.core.batch.models import (
    BatchRequest,
    BatchSizeConfig,
    ConversionOutcome,
)
from heic_converter.core.batch.naming import OutputPathResolver
from heic_converter.core.batch.statistics import StatisticsCollector
from heic_converter.core.batch.task import (
    ConversionTask,
    SingleFileConverter,
    describe_error,
)
from heic_converter.core.batch.workers import WorkerPool
from heic_converter.core.constants import WORKER_THREAD_PREFIX
from heic_converter.core.exceptions import ConfigurationError, ProcessingTimeoutError
from heic_converter.utils.logging import get_logger

ProgressCallback = Callable[[ConversionOutcome, int, int], None]


class BatchScheduler:
    """Runs a file list in fixed-size chunks with a barrier after each chunk.

    In parallel mode every file of a chunk is submitted to a thread pool of
    ``batch_size`` workers and the scheduler waits for the whole chunk
    before starting the next one, so at most ``batch_size`` conversions are
    in flight. Outcomes are merged into the statistics in file order, which
    keeps the failed-file list deterministic for a given input ordering.

    With ``task_timeout`` set, every unit (sequential ones included) runs on
    a daemon worker and is recorded as failed once it misses its deadline.
    """

    def __init__(
        self,
        converter: SingleFileConverter,
        config: Optional[BatchSizeConfig] = None,
        resolver: Optional[OutputPathResolver] = None,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
    ):
        self.config = config or BatchSizeConfig()
        self.resolver = resolver or OutputPathResolver()
        self.logger = logger or get_logger(__name__)
        self.task = ConversionTask(converter, logger=self.logger)

        self.last_outcomes: List[ConversionOutcome] = []
        self.last_chunk_count = 0

    @property
    def batch_size(self) -> int:
        return self.config.batch_size

    @batch_size.setter
    def batch_size(self, value: int) -> None:
        if value <= 0:
            raise ConfigurationError(
                f"Batch size must be positive, got {value}",
                details={"field_name": "batch_size", "field_value": value},
            )
        self.config = self.config.model_copy(update={"batch_size": value})

    @property
    def parallel(self) -> bool:
        return self.config.parallel

    @parallel.setter
    def parallel(self, value: bool) -> None:
        self.config = self.config.model_copy(update={"parallel": bool(value)})

    def partition(self, files: Sequence[Path]) -> List[List[Path]]:
        """Split ``files`` into consecutive chunks of ``batch_size``."""
        size = self.batch_size
        return [list(files[i : i + size]) for i in range(0, len(files), size)]

    def run_batch(
        self,
        files: Sequence[Union[str, Path]],
        request: BatchRequest,
        stats_sink: StatisticsCollector,
        progress_callback: Optional[ProgressCallback] = None,
        on_last_chunk: Optional[Callable[[], None]] = None,
    ) -> bool:
        """Convert ``files`` and record every outcome in ``stats_sink``.

        Args:
            files: Input paths in processing order (duplicates allowed)
            request: Output format, directory, quality and metadata settings
            stats_sink: Collector receiving one record per file
            progress_callback: Called as (outcome, completed, total) after
                each outcome is recorded
            on_last_chunk: Called once when the final chunk starts

        Returns:
            True if no file failed
        """
        paths = [Path(f) for f in files]
        self.last_outcomes = []
        self.last_chunk_count = 0

        if not paths:
            self.logger.warning("No files to process")
            return True

        chunks = self.partition(paths)
        total = len(paths)
        self.last_chunk_count = len(chunks)
        log_progress = self.logger.info if request.verbose else self.logger.debug

        log_progress(
            f"Starting batch processing of {total} files",
            chunks=len(chunks),
            batch_size=self.batch_size,
            parallel=self.parallel,
        )

        pool = self._new_pool()
        completed = 0
        try:
            start = 0
            for number, chunk in enumerate(chunks, start=1):
                log_progress(
                    f"Processing batch {number}/{len(chunks)} "
                    f"(files {start + 1}-{start + len(chunk)})"
                )
                start += len(chunk)
                if number == len(chunks) and on_last_chunk:
                    on_last_chunk()

                if pool is None:
                    outcomes = [self._run_inline(path, request) for path in chunk]
                elif self.parallel:
                    outcomes, pool = self._run_units(pool, chunk, request)
                else:
                    outcomes = []
                    for path in chunk:
                        unit_outcomes, pool = self._run_units(pool, [path], request)
                        outcomes.extend(unit_outcomes)

                for outcome in outcomes:
                    if outcome.success:
                        stats_sink.record_success()
                    else:
                        stats_sink.record_failure(outcome.input_path)
                    self.last_outcomes.append(outcome)
                    completed += 1
                    if progress_callback:
                        progress_callback(outcome, completed, total)
        finally:
            if pool is not None:
                pool.shutdown()

        stats = stats_sink.snapshot()
        self.logger.info(
            f"Batch processing complete: {stats.processed} successful, "
            f"{stats.failed} failed"
        )
        return stats.failed == 0

    def _new_pool(self) -> Optional[WorkerPool]:
        """Pool for this batch, or None when units run on the calling thread.

        Sequential batches with a deadline still need a worker so the caller
        can stop waiting on a stuck unit.
        """
        if self.parallel:
            return WorkerPool(self.batch_size, WORKER_THREAD_PREFIX)
        if self.config.task_timeout:
            return WorkerPool(1, WORKER_THREAD_PREFIX)
        return None

    def _run_units(
        self,
        pool: WorkerPool,
        chunk: List[Path],
        request: BatchRequest,
    ) -> Tuple[List[ConversionOutcome], WorkerPool]:
        """Submit one unit per file and wait for all of them.

        Output names are reserved here, in chunk order, before anything is
        submitted. A unit that misses the deadline is recorded as failed, its
        output is discarded and the pool is replaced, since the stuck worker
        keeps its thread.

        Returns:
            Outcomes in chunk order, and the pool to use for the next units
        """
        pending: List[Tuple[Path, Union[ConversionOutcome, _Unit]]] = []
        for path in chunk:
            reserved = self._reserve(path, request)
            if isinstance(reserved, ConversionOutcome):
                pending.append((path, reserved))
                continue
            unit = _Unit(reserved)
            unit.future = pool.submit(self._convert, path, unit, request)
            pending.append((path, unit))

        timeout = self.config.task_timeout
        deadline = time.monotonic() + timeout if timeout else None
        outcomes: List[ConversionOutcome] = []
        timed_out = False

        for path, unit in pending:
            if isinstance(unit, ConversionOutcome):
                outcomes.append(unit)
                continue

            remaining = None
            if deadline is not None:
                remaining = max(0.0, deadline - time.monotonic())
            try:
                outcomes.append(unit.future.result(timeout=remaining))
                continue
            except FutureTimeoutError:
                if not unit.abandon():
                    # Finished right at the deadline; its result is on the way
                    outcomes.append(unit.future.result())
                    continue

            unit.future.cancel()
            timed_out = True
            self.resolver.discard(unit.output_path)
            error = ProcessingTimeoutError(
                f"Timed out after {timeout}s",
                details={"timeout_seconds": timeout, "operation": "convert"},
            )
            self.logger.error(
                str(error),
                input_path=str(path),
                output_path=str(unit.output_path),
            )
            outcomes.append(
                ConversionOutcome.failed(
                    path, unit.output_path, describe_error(error), timeout
                )
            )

        if timed_out:
            size = pool.size
            pool.shutdown()
            pool = WorkerPool(size, WORKER_THREAD_PREFIX)
        return outcomes, pool

    def _reserve(
        self, path: Path, request: BatchRequest
    ) -> Union[Path, ConversionOutcome]:
        """Reserve the output name, or return the failure if that is impossible."""
        try:
            return self.resolver.resolve(
                path, request.output_format, request.output_directory
            )
        except OSError as e:
            self.logger.error(
                f"Could not reserve output name: {e}", input_path=str(path)
            )
            return ConversionOutcome.failed(path, None, describe_error(e))

    def _run_inline(self, path: Path, request: BatchRequest) -> ConversionOutcome:
        reserved = self._reserve(path, request)
        if isinstance(reserved, ConversionOutcome):
            return reserved
        return self._convert(path, _Unit(reserved), request)

    def _convert(
        self, path: Path, unit: "_Unit", request: BatchRequest
    ) -> ConversionOutcome:
        outcome = self.task.run(
            path,
            unit.output_path,
            request.quality,
            request.preserve_metadata,
            target_format=request.output_format,
        )
        if not unit.settle():
            # The scheduler already recorded this file as timed out
            self.resolver.discard(unit.output_path)
            self.logger.warning(
                "Discarded output of a conversion that finished after its deadline",
                input_path=str(path),
                output_path=str(unit.output_path),
            )
        elif not outcome.success:
            self.resolver.release(unit.output_path)
        return outcome


class _Unit:
    """One submitted conversion and the output name reserved for it.

    Exactly one of ``settle`` (worker finished) and ``abandon`` (deadline
    passed) wins; the loser learns so from the return value.
    """

    def __init__(self, output_path: Path):
        self.output_path = output_path
        self.future: Optional[Future] = None
        self._lock = threading.Lock()
        self._state = "pending"

    def settle(self) -> bool:
        with self._lock:
            if self._state == "abandoned":
                return False
            self._state = "settled"
            return True

    def abandon(self) -> bool:
        with self._lock:
            if self._state == "settled":
                return False
            self._state = "abandoned"
            return True
