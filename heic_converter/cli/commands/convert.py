"""
Convert Command
Batch conversion of HEIC/HEIF files or directories
"""

from pathlib import Path
from typing import Annotated, List, Optional

import pydantic
import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table

from heic_converter.config import get_settings
from heic_converter.core.batch import (
    BatchController,
    BatchRequest,
    BatchSizeConfig,
    ConversionOutcome,
)
from heic_converter.core.conversion import ImageConverter
from heic_converter.core.exceptions import ErrorCode, HeicConverterError
from heic_converter.utils.logging import get_logger, setup_logging

console = Console()


def convert(
    inputs: Annotated[
        List[Path],
        typer.Argument(help="HEIC/HEIF files, or a single directory to scan"),
    ],
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "-o",
            "--output-dir",
            help="Output directory (default: the input directory, or the current one)",
        ),
    ] = None,
    output_format: Annotated[
        Optional[str],
        typer.Option("-f", "--output-format", help="Output format (jpg, png, webp...)"),
    ] = None,
    quality: Annotated[
        Optional[int],
        typer.Option("-q", "--quality", help="Quality for lossy formats (1-100)"),
    ] = None,
    keep_metadata: Annotated[
        bool, typer.Option("--keep-metadata", help="Preserve EXIF data and file times")
    ] = False,
    batch_size: Annotated[
        Optional[int],
        typer.Option("-b", "--batch-size", help="Files converted per round"),
    ] = None,
    parallel: Annotated[
        Optional[bool],
        typer.Option(
            "--parallel/--no-parallel", help="Convert the files of a round concurrently"
        ),
    ] = None,
    recursive: Annotated[
        bool, typer.Option("-r", "--recursive", help="Scan directories recursively")
    ] = False,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", help="Per-file time limit in seconds"),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("-v", "--verbose", help="Log per-round progress")
    ] = False,
):
    """
    Convert HEIC/HEIF images

    Examples:
      heic-converter convert IMG_0001.heic IMG_0002.heic -o converted/
      heic-converter convert ~/Pictures/iphone -r -f png
      heic-converter convert photos/ -f webp -q 80 --batch-size 4 --no-parallel
    """
    settings = get_settings()
    setup_logging(
        log_level="DEBUG" if verbose else settings.log_level,
        json_logs=settings.json_logs,
        enable_file_logging=settings.logging_enabled,
        log_dir=settings.log_dir,
        max_log_size_mb=settings.max_log_size_mb,
        backup_count=settings.log_backup_count,
        redact=settings.redact_paths,
    )
    logger = get_logger("heic_converter.cli")

    directory_mode = len(inputs) == 1 and (
        inputs[0].is_dir() or (not inputs[0].exists() and not inputs[0].suffix)
    )
    if output_dir is None:
        output_dir = inputs[0] if directory_mode else Path.cwd()

    try:
        request = BatchRequest(
            output_format=output_format or settings.default_output_format,
            output_directory=output_dir,
            quality=quality if quality is not None else settings.default_quality,
            preserve_metadata=keep_metadata or settings.preserve_metadata,
            verbose=verbose,
        )
        config = BatchSizeConfig(
            batch_size=batch_size if batch_size is not None else settings.batch_size,
            parallel=settings.parallel if parallel is None else parallel,
            task_timeout=timeout if timeout is not None else settings.task_timeout,
        )
    except pydantic.ValidationError as e:
        for error in e.errors():
            console.print(f"[red]Invalid argument: {error['msg']}[/red]")
        raise typer.Exit(int(ErrorCode.INVALID_ARGUMENTS))

    controller = BatchController(ImageConverter(logger=logger), config=config, logger=logger)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Converting...", total=None)

        def on_progress(outcome: ConversionOutcome, completed: int, total: int) -> None:
            progress.update(
                task,
                total=total,
                completed=completed,
                description=f"Converting {outcome.input_path.name}",
            )

        try:
            if directory_mode:
                success = controller.process_directory(
                    inputs[0],
                    request,
                    recursive=recursive or settings.recursive,
                    progress_callback=on_progress,
                )
            else:
                success = controller.process_file_list(
                    inputs, request, progress_callback=on_progress
                )
        except HeicConverterError as e:
            progress.stop()
            console.print(f"[red]Error: {e.message}[/red]")
            raise typer.Exit(e.exit_code)

    _show_summary(controller)

    if not success:
        raise typer.Exit(int(ErrorCode.BATCH_PROCESSING))


def _show_summary(controller: BatchController) -> None:
    """Print the batch tallies and any failed files"""
    stats = controller.statistics

    table = Table(title="Conversion Summary", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Converted", str(stats.processed))
    table.add_row("Failed", str(stats.failed))
    table.add_row("Total", str(stats.total))
    if controller.last_result is not None:
        table.add_row("Time", f"{controller.last_result.elapsed:.2f}s")
    console.print(table)

    if stats.failed_files:
        result = controller.last_result
        errors = {}
        if result is not None:
            errors = {o.input_path: o.error for o in result.outcomes if not o.success}

        failed_table = Table(title="Failed Files", show_header=True)
        failed_table.add_column("File", style="red")
        failed_table.add_column("Error", style="dim")
        for path in stats.failed_files:
            failed_table.add_row(str(path), errors.get(path) or "")
        console.print(failed_table)
