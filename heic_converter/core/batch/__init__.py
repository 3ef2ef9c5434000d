"""Batch conversion engine."""

from heic_converter.core.batch.controller import BatchController
from heic_converter.core.batch.filters import FormatFilter
from heic_converter.core.batch.models import (
    BatchRequest,
    BatchResult,
    BatchSizeConfig,
    BatchState,
    BatchStatistics,
    ConversionOutcome,
)
from heic_converter.core.batch.naming import OutputPathResolver
from heic_converter.core.batch.scanner import DirectoryScanner
from heic_converter.core.batch.scheduler import BatchScheduler
from heic_converter.core.batch.statistics import StatisticsCollector
from heic_converter.core.batch.task import ConversionTask, SingleFileConverter
from heic_converter.core.batch.workers import WorkerPool

__all__ = [
    "BatchController",
    "BatchRequest",
    "BatchResult",
    "BatchScheduler",
    "BatchSizeConfig",
    "BatchState",
    "BatchStatistics",
    "ConversionOutcome",
    "ConversionTask",
    "DirectoryScanner",
    "FormatFilter",
    "OutputPathResolver",
    "SingleFileConverter",
    "StatisticsCollector",
    "WorkerPool",
]
