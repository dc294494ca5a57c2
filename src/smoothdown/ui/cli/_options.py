"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from smoothdown.core.formats import OutputFormat


INPUTS_PANEL = "Input Handling"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

InputPathArgument = Annotated[
    str,
    typer.Argument(
        metavar="INPUT",
        help=(
            "Markdown document to convert. Relative paths, a leading '~' and "
            "$VARIABLES are resolved before the file is looked up."
        ),
        show_default=False,
        rich_help_panel=INPUTS_PANEL,
    ),
]

OutputPathOption = Annotated[
    str | None,
    typer.Option(
        "--output",
        "-o",
        help="Output file. Defaults to the input path with the format extension.",
        show_default=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

OutputFormatOption = Annotated[
    OutputFormat,
    typer.Option(
        "--format",
        "-f",
        help="Output format produced by pandoc.",
        case_sensitive=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

OfficePdfOption = Annotated[
    bool,
    typer.Option(
        "--office-pdf",
        help="Produce PDF output by converting an intermediate ODT file with LibreOffice.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

RawOption = Annotated[
    bool,
    typer.Option(
        "--raw",
        "-r",
        help="Print the prepared pandoc input to stdout instead of converting it.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

KeepTempOption = Annotated[
    bool,
    typer.Option(
        "--keep-temp",
        "-k",
        help="Keep the intermediate markdown file handed over to pandoc.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

VerbosityOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

ExampleOutputOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Save the example document to this file instead of printing it.",
        show_default=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]
