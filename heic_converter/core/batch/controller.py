"""Batch controller: the public entry point for converting many files."""

import tempfile
import time
import uuid
from pathlib import Path
from typing import Iterable, List, Optional, Union

import structlog

from heic_converter.config import settings
from heic_converter.core.batch.filters import FormatFilter
from heic_converter.core.batch.models import (
    BatchRequest,
    BatchResult,
    BatchSizeConfig,
    BatchState,
    BatchStatistics,
)
from heic_converter.core.batch.naming import OutputPathResolver
from heic_converter.core.batch.scanner import DirectoryScanner
from heic_converter.core.batch.scheduler import BatchScheduler, ProgressCallback
from heic_converter.core.batch.statistics import StatisticsCollector
from heic_converter.core.batch.task import SingleFileConverter
from heic_converter.core.constants import (
    SUPPORTED_INPUT_FORMATS,
    WRITE_PROBE_PREFIX,
)
from heic_converter.core.exceptions import ConfigurationError, DirectoryCreationError
from heic_converter.utils.logging import LoggingContext, get_logger


class BatchController:
    """Converts file lists or whole directories with one single-file converter.

    Both entry points return True only when every scheduled file converted.
    A missing input directory or an unusable output directory is fatal and
    raised before any file is touched; per-file failures are counted and
    queryable afterwards through ``statistics`` and ``last_result``.
    """

    def __init__(
        self,
        converter: SingleFileConverter,
        config: Optional[BatchSizeConfig] = None,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        scanner: Optional[DirectoryScanner] = None,
        format_filter: Optional[FormatFilter] = None,
        resolver: Optional[OutputPathResolver] = None,
    ):
        self.logger = logger or get_logger(__name__)
        self.scanner = scanner or DirectoryScanner(
            max_depth=settings.max_scan_depth, logger=self.logger
        )
        self.format_filter = format_filter or FormatFilter()
        self.scheduler = BatchScheduler(
            converter,
            config=config or BatchSizeConfig.from_settings(settings),
            resolver=resolver,
            logger=self.logger,
        )

        self._stats = StatisticsCollector()
        self._state = BatchState.IDLE
        self._last_result: Optional[BatchResult] = None

    # Configuration

    @property
    def batch_size(self) -> int:
        return self.scheduler.batch_size

    def set_batch_size(self, batch_size: int) -> None:
        """Apply ``batch_size`` if positive; otherwise warn and keep the old one."""
        try:
            self.scheduler.batch_size = batch_size
        except ConfigurationError as e:
            self.logger.warning(
                f"{e.message}; keeping batch size {self.scheduler.batch_size}"
            )

    @property
    def parallel(self) -> bool:
        return self.scheduler.parallel

    def set_parallel(self, parallel: bool) -> None:
        self.scheduler.parallel = parallel

    # Results

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def statistics(self) -> BatchStatistics:
        return self._stats.snapshot()

    @property
    def processed_count(self) -> int:
        return self._stats.processed

    @property
    def failed_count(self) -> int:
        return self._stats.failed

    @property
    def failed_files(self) -> List[Path]:
        return self._stats.snapshot().failed_files

    @property
    def last_result(self) -> Optional[BatchResult]:
        return self._last_result

    # Entry points

    def process_file_list(
        self,
        files: Iterable[Union[str, Path]],
        request: BatchRequest,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> bool:
        """Convert an explicit list of files.

        Args:
            files: Input files in processing order
            request: Output format, directory, quality and metadata settings
            progress_callback: Called as (outcome, completed, total)

        Returns:
            True if no file failed

        Raises:
            DirectoryCreationError: If the output directory is unusable
        """
        paths = [Path(f) for f in files]
        batch_id = str(uuid.uuid4())

        with LoggingContext(batch_id=batch_id):
            try:
                self._begin()
                self._ensure_output_directory(request.output_directory)
                self.logger.info(
                    f"Processing {len(paths)} files",
                    output_directory=str(request.output_directory),
                    output_format=request.output_format,
                )
                return self._schedule(paths, request, progress_callback)
            finally:
                self._state = BatchState.IDLE

    def process_directory(
        self,
        root: Union[str, Path],
        request: BatchRequest,
        recursive: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> bool:
        """Convert every HEIC/HEIF file found in ``root``.

        Args:
            root: Directory to scan
            request: Output format, directory, quality and metadata settings
            recursive: Include subdirectories
            progress_callback: Called as (outcome, completed, total)

        Returns:
            True if no file failed (also when nothing was found)

        Raises:
            DirectoryNotFoundError: If ``root`` is missing or not a directory
            DirectoryCreationError: If the output directory is unusable
        """
        root_path = Path(root)
        batch_id = str(uuid.uuid4())

        with LoggingContext(batch_id=batch_id):
            try:
                self._begin()
                if not root_path.is_dir():
                    # Let the scanner raise the precise error before any
                    # output directory is created.
                    self.scanner.scan(root_path, recursive=False)

                self._ensure_output_directory(request.output_directory)

                self._state = BatchState.SCANNING
                found = self.scanner.scan(root_path, recursive=recursive)
                files = self.format_filter.filter(found, SUPPORTED_INPUT_FORMATS)

                if not files:
                    self.logger.warning(
                        "No HEIC/HEIF files found", directory=str(root_path)
                    )
                    self._last_result = BatchResult(success=True)
                    return True

                self.logger.info(
                    f"Found {len(files)} HEIC/HEIF files",
                    directory=str(root_path),
                    recursive=recursive,
                )
                return self._schedule(files, request, progress_callback)
            finally:
                self._state = BatchState.IDLE

    def _begin(self) -> None:
        self._stats.reset()
        self._last_result = None
        self._state = BatchState.VALIDATING

    def _mark_draining(self) -> None:
        self._state = BatchState.DRAINING

    def _schedule(
        self,
        files: List[Path],
        request: BatchRequest,
        progress_callback: Optional[ProgressCallback],
    ) -> bool:
        start_time = time.time()

        self._state = BatchState.SCHEDULING
        success = self.scheduler.run_batch(
            files,
            request,
            self._stats,
            progress_callback=progress_callback,
            on_last_chunk=self._mark_draining,
        )

        self._state = BatchState.REPORTING
        self._last_result = BatchResult(
            success=success,
            statistics=self._stats.snapshot(),
            outcomes=list(self.scheduler.last_outcomes),
            chunks=self.scheduler.last_chunk_count,
            elapsed=time.time() - start_time,
        )

        if not success:
            self.logger.warning(
                f"{self._last_result.statistics.failed} files failed to convert",
                failed_files=[str(p) for p in self._last_result.statistics.failed_files],
            )
        return success

    def _ensure_output_directory(self, directory: Union[str, Path]) -> None:
        """Make sure ``directory`` exists, is a directory and is writable.

        Raises:
            DirectoryCreationError: If any of these cannot be established
        """
        path = Path(directory)

        if path.exists():
            if not path.is_dir():
                raise DirectoryCreationError(
                    f"Output path exists but is not a directory: {path}",
                    details={"path": str(path), "reason": "not_a_directory"},
                )
        else:
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryCreationError(
                    f"Failed to create output directory: {path} ({e})",
                    details={"path": str(path), "reason": "create_failed"},
                ) from e
            self.logger.info("Created output directory", directory=str(path))

        if not self._is_writable(path):
            raise DirectoryCreationError(
                f"Output directory is not writable: {path}",
                details={"path": str(path), "reason": "not_writable"},
            )

    @staticmethod
    def _is_writable(directory: Path) -> bool:
        # Uniquely named and removed on close; never touches existing files
        try:
            with tempfile.TemporaryFile(dir=directory, prefix=WRITE_PROBE_PREFIX):
                pass
        except OSError:
            return False
        return True
