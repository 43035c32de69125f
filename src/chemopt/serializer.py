"""Render a compiled model as a MiniZinc program."""

from __future__ import annotations

import logging
from fractions import Fraction
from pathlib import Path

from chemopt.compiler import (
    ActivityObjective,
    CompiledModel,
    LinearExpr,
    LinearTerm,
    Mode,
    ResourceObjective,
    Variable,
)
from chemopt.errors import FileIOError, Label, Span

logger = logging.getLogger(__name__)


def render_minizinc(model: CompiledModel, source: str = "") -> str:
    """Return the MiniZinc text for ``model``, echoing ``source`` as comments first."""
    lines = [f"% {line}" for line in source.splitlines()]

    lines += ["", "% variables"]
    for variable in model.variables:
        lines.append(_declaration(variable))

    if model.mode is Mode.CONTINUOUS:
        lines += ["", "% non-negative constraints"]
        for name in model.non_negative:
            lines.append(f"constraint {name} >= 0;")

    lines += ["", "% target constraints"]
    for constraint in model.target_constraints:
        lines.append(
            f"constraint ({_sum(constraint.production)}) - ({_sum(constraint.consumption)})"
            f" >= {_number(constraint.minimum)};"
        )

    lines += ["", "% balance constraints"]
    for constraint in model.balance_constraints:
        lines.append(f"constraint ({_sum(constraint.production)}) >= {_sum(constraint.consumption)};")

    lines.append("")
    match model.objective:
        case ResourceObjective(production=production, consumption=consumption):
            lines.append(f"solve minimize ({_sum(consumption)}) - ({_sum(production)});")
        case ActivityObjective(variables=variables):
            lines.append(f"solve minimize {'+'.join(variables) or '0'};")

    lines.append("")
    width = model.label_width
    outputs = ",\n".join(_output_expr(v, width, model.mode) for v in model.variables)
    lines.append(f"output [{outputs}];")

    return "\n".join(lines) + "\n"


def write_model(path: str | Path, text: str) -> Path:
    """Write ``text`` to ``path``, raising ``FileIOError`` on failure."""
    path = Path(path)
    name = str(path)
    try:
        with open(path, "w") as f:
            f.write(text)
    except OSError as e:
        raise FileIOError(
            str(e),
            [Label(Span(0, len(name)), "while writing to this file")],
            source=name,
            source_name=name,
        ) from e
    logger.debug("wrote %d bytes of MiniZinc to %s", len(text), path)
    return path


def _declaration(variable: Variable) -> str:
    if variable.integer:
        return f"var 0..infinity: {variable.name};"
    return f"var float: {variable.name};"


def _term(term: LinearTerm) -> str:
    c = term.coefficient
    if c.denominator == 1:
        return f"{c.numerator} * {term.variable}"
    return f"{c.numerator} * {term.variable} / {c.denominator}"


def _sum(expr: LinearExpr) -> str:
    return "+".join(["0", *(_term(t) for t in expr)])


def _number(value: Fraction) -> str:
    if value.denominator == 1:
        return str(value.numerator)
    return f"{value.numerator} / {value.denominator}"


def _string_literal(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _output_expr(variable: Variable, width: int, mode: Mode) -> str:
    label = _string_literal(variable.label.ljust(width))
    name = variable.name
    if mode is Mode.DISCRETE:
        shown = f'"{label} = " ++ show({name})'
    else:
        shown = f'"{label} =" ++ show_float(8, 5, {name})'
    return f'if fix({name}) > 0 then {shown} ++ "\\n" else "" endif'
