"""
Main CLI Application
Typer application for batch HEIC/HEIF conversion
"""

from typing import Annotated, Optional

import typer
from rich.console import Console

from heic_converter import __version__
from heic_converter.cli.commands import convert, formats
from heic_converter.core.constants import PROGRAM_NAME

console = Console()

app = typer.Typer(
    name=PROGRAM_NAME,
    help="Convert HEIC/HEIF photos to JPEG, PNG, WebP, TIFF or BMP in batches",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{PROGRAM_NAME} {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
):
    """
    HEIC Converter - batch conversion of HEIC/HEIF images

    Use 'heic-converter COMMAND --help' for more information on a command.
    """


app.command(name="convert", help="Convert HEIC/HEIF files or a directory")(
    convert.convert
)
app.command(name="formats", help="List supported formats")(formats.formats)


if __name__ == "__main__":
    app()
