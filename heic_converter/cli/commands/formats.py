"""
Formats Command
List supported image formats
"""

from rich.console import Console
from rich.table import Table

from heic_converter.core.constants import (
    SUPPORTED_INPUT_FORMATS,
    SUPPORTED_OUTPUT_FORMATS,
)
from heic_converter.core.formats import get_mime_type

console = Console()


def formats() -> None:
    """
    List supported input and output formats

    Examples:
      heic-converter formats
    """
    table = Table(title="Supported Image Formats", show_header=True)
    table.add_column("Extension", style="cyan")
    table.add_column("Input", style="green")
    table.add_column("Output", style="yellow")
    table.add_column("MIME Type", style="dim")

    for ext in sorted(SUPPORTED_INPUT_FORMATS | SUPPORTED_OUTPUT_FORMATS):
        table.add_row(
            ext,
            "✓" if ext in SUPPORTED_INPUT_FORMATS else "",
            "✓" if ext in SUPPORTED_OUTPUT_FORMATS else "",
            get_mime_type(ext),
        )

    console.print(table)
