"""MiniZinc invocation."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from chemopt.errors import CommandLineError, ExternalProcessError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_PATH = Path("program.mzn")


@dataclass(frozen=True)
class SolverSettings:
    """How to run MiniZinc on a generated model.

    Attributes:
        executable: MiniZinc binary, looked up on PATH.
        solver: Backend passed to ``--solver``; a MIP solver such as cbc.
        model_path: Where the generated model is written and read from.
        extra_arguments: Appended before the model path.
        parallelism: Worker hint for ``-p``; ``None`` means the host CPU count.
    """

    executable: str = "minizinc"
    solver: str = "cbc"
    model_path: Path = DEFAULT_MODEL_PATH
    extra_arguments: tuple[str, ...] = field(default_factory=tuple)
    parallelism: int | None = None

    @classmethod
    def from_options(
        cls,
        solver_arguments: str | None = None,
        solver: str = "cbc",
        model_path: str | Path = DEFAULT_MODEL_PATH,
        executable: str = "minizinc",
    ) -> "SolverSettings":
        """Build settings from command-line values, splitting ``solver_arguments`` like a shell.

        Raises:
            CommandLineError: ``solver_arguments`` has unbalanced quotes or a dangling escape.
        """
        try:
            extra_arguments = tuple(shlex.split(solver_arguments)) if solver_arguments else ()
        except ValueError as e:
            raise CommandLineError(
                f"invalid solver arguments: {e}",
                argument=solver_arguments,
                help="quote solver arguments the way a POSIX shell would",
            ) from e
        return cls(
            executable=executable,
            solver=solver,
            model_path=Path(model_path),
            extra_arguments=extra_arguments,
        )

    @property
    def workers(self) -> int:
        return self.parallelism or os.cpu_count() or 1


def build_command(settings: SolverSettings) -> list[str]:
    return [
        settings.executable,
        "--soln-sep", "",
        "--search-complete-msg", "",
        "--unsatorunbnd-msg", "unsatisfiable or unbounded",
        "--unsatisfiable-msg", "unsatisfiable",
        "--solver", settings.solver,
        "-p", str(settings.workers),
        *settings.extra_arguments,
        str(settings.model_path),
    ]


def run_minizinc(settings: SolverSettings) -> str:
    """Run MiniZinc to completion and return its standard output.

    There is no timeout; the call blocks until the solver exits.
    """
    command = build_command(settings)
    logger.debug("running %s", shlex.join(command))
    try:
        completed = subprocess.run(command, capture_output=True, text=True)
    except OSError as e:
        raise ExternalProcessError(f"while spawning '{settings.executable}' process: {e}") from e

    if completed.returncode != 0:
        raise ExternalProcessError(
            f"while running '{settings.executable}' process",
            stderr=completed.stderr,
            returncode=completed.returncode,
        )
    logger.debug("solver exited with status 0, %d bytes of output", len(completed.stdout))
    return completed.stdout
