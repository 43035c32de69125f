"""Render ``ChemoptError``s as source-annotated diagnostics."""

from __future__ import annotations

import typer

from chemopt.errors import ChemoptError, ExternalProcessError, Label


def _locate(source: str, offset: int) -> tuple[int, int, int, int]:
    """Return (line number, column, line start, line end) for ``offset``."""
    offset = min(offset, len(source))
    line_start = source.rfind("\n", 0, offset) + 1
    line_end = source.find("\n", offset)
    if line_end == -1:
        line_end = len(source)
    line_no = source.count("\n", 0, line_start) + 1
    return line_no, offset - line_start + 1, line_start, line_end


def _render_label(label: Label, source: str, source_name: str | None, color: bool) -> list[str]:
    line_no, column, line_start, line_end = _locate(source, label.span.start)
    gutter = " " * len(str(line_no))
    underline_len = max(1, min(label.span.end, line_end) - label.span.start)
    marker = " " * (column - 1) + "^" * underline_len
    if label.message:
        marker += f" {label.message}"
    if color:
        marker = typer.style(marker, fg=typer.colors.RED, bold=True)

    location = f"{source_name}:{line_no}:{column}" if source_name else f"{line_no}:{column}"
    return [
        f"{gutter}--> {location}",
        f"{gutter} |",
        f"{line_no} | {source[line_start:line_end]}",
        f"{gutter} | {marker}",
    ]


def render_diagnostic(error: ChemoptError, color: bool = False) -> str:
    header = "error:"
    if color:
        header = typer.style(header, fg=typer.colors.RED, bold=True)
    lines = [f"{header} {error.message}"]

    for label in error.labels:
        if error.source is None:
            lines.append(f"  = {label.message}")
        else:
            lines.extend(_render_label(label, error.source, error.source_name, color))

    if isinstance(error, ExternalProcessError) and error.stderr:
        lines.append("")
        lines.extend(error.stderr.rstrip("\n").splitlines())

    if error.help:
        help_prefix = typer.style("help:", bold=True) if color else "help:"
        lines.append(f"  {help_prefix} {error.help}")

    return "\n".join(lines)
