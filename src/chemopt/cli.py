"""Command-line entrypoint for chemopt."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from chemopt.compiler import Mode, compile_target
from chemopt.diagnostics import render_diagnostic
from chemopt.errors import ChemoptError, CommandLineError, Label, Span
from chemopt.models import UnknownTargetError
from chemopt.parser import parse_file
from chemopt.serializer import render_minizinc, write_model
from chemopt.solver import DEFAULT_MODEL_PATH, SolverSettings, run_minizinc

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)


def _locate_argument(error: ChemoptError, value: str, message: str) -> ChemoptError:
    """Point ``error`` at ``value`` inside the command line.

    Values that came from the environment are not in ``sys.argv``; they are
    appended to the reconstructed command line so the label still has a home.
    """
    cmdline = " ".join(sys.argv)
    offset = cmdline.rfind(value)
    if not value or offset < 0:
        cmdline = f"{cmdline} {value}"
        offset = len(cmdline) - len(value)
    error.labels = (Label(Span(offset, offset + len(value)), message),)
    error.source = cmdline
    error.source_name = None
    return error


@app.command()
def run(
    file: Annotated[
        Path, typer.Argument(metavar="FILE", envvar="FILE", help="The chem file to work on.")
    ],
    target: Annotated[
        str, typer.Argument(metavar="TARGET", envvar="TARGET", help="The target to optimize.")
    ],
    solver_arguments: Annotated[
        str | None,
        typer.Option(
            "--solver-arguments", "-s",
            metavar="SOLVER_ARGS",
            envvar="SOLVER_ARGS",
            help="Arguments to give to the solver (through minizinc).",
        ),
    ] = None,
    mode: Annotated[
        Mode,
        typer.Option(envvar="CHEMOPT_MODE", case_sensitive=False, help="Continuous rates or integer cycle counts."),
    ] = Mode.CONTINUOUS,
    solver: Annotated[
        str, typer.Option(envvar="CHEMOPT_SOLVER", help="MiniZinc solver backend.")
    ] = "cbc",
    model: Annotated[
        Path, typer.Option(envvar="CHEMOPT_MODEL", help="Where to write the generated MiniZinc model.")
    ] = DEFAULT_MODEL_PATH,
    emit_only: Annotated[
        bool, typer.Option("--emit-only", help="Write the model and stop before running the solver.")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug messages.")] = False,
) -> None:
    """Compile TARGET of a chem FILE to MiniZinc and solve it."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    source: str | None = None
    try:
        try:
            settings = SolverSettings.from_options(solver_arguments, solver=solver, model_path=model)
        except CommandLineError as e:
            raise _locate_argument(e, e.argument, "in these solver arguments") from None

        program, source = parse_file(file)
        try:
            selected = program.target(target)
        except UnknownTargetError as e:
            raise _locate_argument(e, e.name, f"'{e.name}' not found") from None

        compiled = compile_target(program, selected, mode)
        write_model(settings.model_path, render_minizinc(compiled, source))
        logger.info("model for target %s written to %s", selected.name, settings.model_path)

        if emit_only:
            return
        output = run_minizinc(settings)
    except ChemoptError as e:
        if source is not None:
            e.with_source(source, str(file))
        typer.echo(render_diagnostic(e, color=True), err=True)
        raise typer.Exit(code=1)

    typer.echo(output)
