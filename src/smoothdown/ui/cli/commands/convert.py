"""Implementation of the ``smoothdown convert`` command."""

from __future__ import annotations

import click
import typer

from smoothdown.core.config import Settings
from smoothdown.core.conversion import ConversionRequest, ConversionService
from smoothdown.core.exceptions import SmoothError
from smoothdown.core.formats import OutputFormat

from .._options import (
    DebugOption,
    InputPathArgument,
    KeepTempOption,
    OfficePdfOption,
    OutputFormatOption,
    OutputPathOption,
    RawOption,
    VerbosityOption,
)
from ..diagnostics import CliEmitter
from ..state import debug_enabled, emit_error, set_cli_state


def _fail(exc: SmoothError) -> typer.Exit:
    message = f"{exc.stage.label}: {exc}" if exc.stage is not None else str(exc)
    emit_error(message, exception=exc)
    return typer.Exit(code=1)


def convert(
    input_path: InputPathArgument,
    output: OutputPathOption = None,
    output_format: OutputFormatOption = OutputFormat.PDF,
    keep_temp: KeepTempOption = False,
    raw: RawOption = False,
    office_pdf: OfficePdfOption = False,
    verbose: VerbosityOption = 0,
    debug: DebugOption = False,
) -> None:
    """Convert a markdown document with pandoc."""

    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug)

    try:
        settings = Settings.from_env()
    except SmoothError as exc:
        raise _fail(exc) from exc

    service = ConversionService(settings, emitter=CliEmitter(state=state))
    request = ConversionRequest(
        input=input_path,
        output=output,
        output_format=output_format,
        keep_temp=keep_temp,
        office_pdf=office_pdf,
    )

    try:
        if raw:
            prepared = service.prepare(request)
            typer.echo(prepared.content, nl=False)
            return
        service.convert(request)
    except SmoothError as exc:
        if debug_enabled():
            raise
        raise _fail(exc) from exc

    # with -v the emitter already rendered these events.
    if state.verbosity < 1:
        for event in state.consume_events("scratch_kept"):
            state.err_console.print(f"pandoc input kept at {event['path']}")


__all__ = ["convert"]
