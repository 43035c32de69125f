"""Error taxonomy for chemopt.

Every error is terminal: library code raises, the CLI renders the error as a
diagnostic and exits with status 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence


@dataclass(frozen=True, order=True)
class Span:
    """Half-open character range ``[start, end)`` into some source text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"span end {self.end} before start {self.start}")


@dataclass(frozen=True)
class Label:
    span: Span
    message: str


class ChemoptError(Exception):
    """Base error carrying everything needed to render a diagnostic.

    Attributes:
        message: Headline of the diagnostic.
        labels: Spans into ``source`` with a short message each.
        help: Optional help text shown below the labels.
        source: Text the label spans point into (source file, command line...).
        source_name: Name shown next to line/column positions.
    """

    def __init__(
        self,
        message: str,
        labels: Sequence[Label] = (),
        help: str | None = None,
        source: str | None = None,
        source_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.labels = tuple(labels)
        self.help = help
        self.source = source
        self.source_name = source_name

    def with_source(self, source: str, source_name: str | None = None) -> "ChemoptError":
        """Attach the text the labels point into, unless already set."""
        if self.source is None:
            self.source = source
            self.source_name = source_name
        return self


class FileIOError(ChemoptError):
    """Reading the source or writing the model file failed."""


class ParseErrorKind(Enum):
    INVALID_TOKEN = "invalid token"
    UNEXPECTED_EOF = "unexpected end of file"
    UNRECOGNIZED_TOKEN = "unrecognized token"
    EXTRA_TOKEN = "extra token"
    USER = "parse error"


class ParseError(ChemoptError):
    def __init__(self, kind: ParseErrorKind, message: str, labels: Sequence[Label] = (), **kwargs) -> None:
        super().__init__(message, labels, **kwargs)
        self.kind = kind


class SemanticConfigError(ChemoptError):
    """Well-formed input that cannot be compiled (unknown target, no goal, zero cost)."""


class CommandLineError(ChemoptError):
    """A command-line value that cannot be used; ``argument`` is the offending text."""

    def __init__(self, message: str, argument: str, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.argument = argument


class ExternalProcessError(ChemoptError):
    """The solver could not be spawned or exited with a non-zero status."""

    def __init__(self, message: str, stderr: str = "", returncode: int | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.stderr = stderr
        self.returncode = returncode


def expected_str(prefix: str, expected: Sequence[str]) -> str:
    """Format ``expected`` as ``"<prefix>a,b or c"``.

    >>> expected_str("expected ", ["';'", "'+'"])
    "expected ';' or '+'"
    """
    expected = list(expected)
    if not expected:
        return ""
    if len(expected) == 1:
        return f"{prefix}{expected[0]}"
    *rest, last = expected
    return f"{prefix}{','.join(rest)} or {last}"
