"""Parser for chem files.

A chem file is a sequence of reactions and targets::

    # comments run to the end of the line ('//' works too)
    "electrolysis": 2 water -> 2 hydrogen + oxygen cost 3;
    hydrogen + chlorine -> 2 hcl cost 2;

    target hcl-plant {
        input water, chlorine;
        constraint 10 hcl;
        in_time 60;
        goal resources 1 water;
    }

Reaction cost defaults to 1; either side of a reaction may be empty. Repeated
``input`` and ``constraint`` items accumulate. ``goal`` is either
``reactions`` or ``resources <terms>`` and may be given once per target.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from chemopt.errors import (
    ChemoptError,
    FileIOError,
    Label,
    ParseError,
    ParseErrorKind,
    Span,
    expected_str,
)
from chemopt.models import Cost, Goal, Program, Reaction, ReactionsGoal, ResourcesGoal, Symbol, Target, Terms

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<comment>\#[^\n]*|//[^\n]*)
  | (?P<string>"(?:[^"\\\n]|\\.)*")
  | (?P<unterminated>"[^\n]*)
  | (?P<arrow>->)
  | (?P<int>\d+)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*(?:-[A-Za-z0-9_]+)*)
  | (?P<punct>[{};:,+])
    """,
    re.VERBOSE,
)

# Words that cannot be used as species names.
KEYWORDS = frozenset({"target", "cost"})

NAME, INT, STRING, EOF = "NAME", "INT", "STRING", "EOF"


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    span: Span


def tokenize(source: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    while pos < len(source):
        m = _TOKEN_RE.match(source, pos)
        if m is None:
            raise ParseError(
                ParseErrorKind.INVALID_TOKEN,
                "invalid token",
                [Label(Span(pos, pos + 1), "here")],
            )
        kind = m.lastgroup
        span = Span(m.start(), m.end())
        text = m.group()
        pos = m.end()
        if kind in ("ws", "comment"):
            continue
        if kind == "unterminated":
            raise ParseError(ParseErrorKind.USER, "parse error", [Label(span, "unterminated string literal")])
        if kind == "string":
            tokens.append(Token(STRING, text, span))
        elif kind == "int":
            tokens.append(Token(INT, text, span))
        elif kind == "name":
            tokens.append(Token(text if text in KEYWORDS else NAME, text, span))
        else:
            tokens.append(Token(text, text, span))
    tokens.append(Token(EOF, "", Span(len(source), len(source))))
    return tokens


def _unescape(literal: str) -> str:
    return re.sub(r"\\(.)", r"\1", literal[1:-1])


class _Parser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens = tokenize(source)
        self.pos = 0

    # -- token helpers -----------------------------------------------------

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != EOF:
            self.pos += 1
        return token

    def at(self, kind: str, text: Optional[str] = None) -> bool:
        token = self.peek()
        return token.kind == kind and (text is None or token.text == text)

    def unexpected(self, expected: Sequence[str]) -> ParseError:
        token = self.peek()
        if token.kind == EOF:
            return ParseError(
                ParseErrorKind.UNEXPECTED_EOF,
                "unexpected end of file",
                [Label(token.span, expected_str("expected ", expected))],
            )
        return ParseError(
            ParseErrorKind.UNRECOGNIZED_TOKEN,
            f"invalid token '{token.text}'",
            [Label(token.span, expected_str("expected ", expected))],
        )

    def expect(self, kind: str, text: Optional[str] = None, expected: Sequence[str] = ()) -> Token:
        if not self.at(kind, text):
            raise self.unexpected(expected or [kind if kind in (NAME, INT) else f"'{text or kind}'"])
        return self.advance()

    def positive_int(self, what: str) -> tuple[int, Span]:
        token = self.expect(INT)
        value = int(token.text)
        if value == 0:
            raise ParseError(ParseErrorKind.USER, "parse error", [Label(token.span, f"{what} must be at least 1")])
        return value, token.span

    # -- grammar -----------------------------------------------------------

    def program(self) -> Program:
        targets: dict[str, Target] = {}
        reactions: List[Reaction] = []
        while not self.at(EOF):
            if self.at("target"):
                target, name_span = self.target()
                if target.name in targets:
                    raise ParseError(
                        ParseErrorKind.USER,
                        f"target '{target.name}' is declared twice",
                        [
                            Label(name_span, "declared again here"),
                            Label(targets[target.name].span, "first declared here"),
                        ],
                    )
                targets[target.name] = target
            else:
                reactions.append(self.reaction())
        return Program(targets=targets, reactions=tuple(reactions))

    def reaction(self) -> Reaction:
        label = None
        if self.at(STRING):
            label = _unescape(self.advance().text)
            self.expect(":")
        inputs = self.terms()
        self.expect("->", expected=["'+'", "'->'"] if inputs else ["INT", "NAME", "'->'"])
        outputs = self.terms()
        cost = Cost(1)
        if self.at("cost"):
            self.advance()
            token = self.expect(INT)
            cost = Cost(int(token.text), span=token.span)
        self.expect(";", expected=["'cost'", "';'"] if not outputs else ["'+'", "'cost'", "';'"])
        return Reaction(inputs=inputs, outputs=outputs, cost=cost, label=label)

    def terms(self) -> Terms:
        items: List[tuple[Symbol, int]] = []
        if not (self.at(INT) or self.at(NAME)):
            return Terms()
        items.append(self.term())
        while self.at("+"):
            self.advance()
            items.append(self.term())
        return Terms(items)

    def term(self) -> tuple[Symbol, int]:
        multiplicity = 1
        if self.at(INT):
            multiplicity, _ = self.positive_int("multiplicity")
        name = self.expect(NAME, expected=["NAME"])
        return Symbol(name.text), multiplicity

    def target(self) -> tuple[Target, Span]:
        start = self.expect("target").span.start
        name = self.expect(NAME, expected=["NAME"])
        self.expect("{")

        inputs: List[Symbol] = []
        constraints = Terms()
        in_time: Optional[int] = None
        goal: Optional[Goal] = None
        items = ["'input'", "'constraint'", "'in_time'", "'goal'", "'}'"]

        while not self.at("}"):
            keyword = self.peek()
            if keyword.kind != NAME:
                raise self.unexpected(items)
            if keyword.text == "input":
                self.advance()
                inputs.append(Symbol(self.expect(NAME).text))
                while self.at(","):
                    self.advance()
                    inputs.append(Symbol(self.expect(NAME).text))
            elif keyword.text == "constraint":
                self.advance()
                constraints = constraints.merge(self.terms())
                while self.at(","):
                    self.advance()
                    constraints = constraints.merge(self.terms())
            elif keyword.text == "in_time":
                self.advance()
                if in_time is not None:
                    raise self._duplicate(keyword)
                in_time, _ = self.positive_int("in_time")
            elif keyword.text == "goal":
                self.advance()
                if goal is not None:
                    raise self._duplicate(keyword)
                goal = self.goal()
            else:
                raise self.unexpected(items)
            self.expect(";", expected=["','", "';'"] if keyword.text in ("input", "constraint") else ["';'"])

        end = self.advance().span.end
        target = Target(
            name=name.text,
            inputs=tuple(inputs),
            constraints=constraints,
            in_time=in_time if in_time is not None else 1,
            goal=goal,
            span=Span(start, end),
        )
        return target, name.span

    def goal(self) -> Goal:
        if self.at(NAME, "reactions"):
            self.advance()
            return ReactionsGoal()
        if self.at(NAME, "resources"):
            self.advance()
            return ResourcesGoal(self.terms())
        raise self.unexpected(["'reactions'", "'resources'"])

    @staticmethod
    def _duplicate(keyword: Token) -> ParseError:
        return ParseError(
            ParseErrorKind.EXTRA_TOKEN,
            f"unexpected token '{keyword.text}'",
            [Label(keyword.span, f"'{keyword.text}' is already specified in this target")],
        )


def parse(source: str, filename: Optional[str] = None) -> Program:
    """Parse chem ``source`` into a ``Program``.

    Errors carry ``source`` and ``filename`` so they can be rendered directly.
    """
    try:
        return _Parser(source).program()
    except ChemoptError as e:
        raise e.with_source(source, filename)


def read_source(path: str | Path) -> str:
    name = str(path)
    try:
        with open(path, "r") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileIOError(
            str(e),
            [Label(Span(0, len(name)), "while reading this file")],
            source=name,
            source_name=name,
        ) from e


def parse_file(path: str | Path) -> tuple[Program, str]:
    """Read and parse ``path``; returns the program and its source text."""
    source = read_source(path)
    return parse(source, str(path)), source
