"""Data structures for reaction networks and optimisation targets."""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Tuple

from chemopt.errors import Label, SemanticConfigError, Span, expected_str


@dataclass(frozen=True, order=True)
class Symbol:
    """A chemical species or abstract resource, identified by name."""

    name: str

    def __str__(self) -> str:
        return self.name

    @property
    def identifier(self) -> str:
        """Name usable inside a MiniZinc identifier."""
        return self.name.replace("-", "_")


class Terms(Mapping[Symbol, int]):
    """Immutable multiset of symbols with strictly positive multiplicities.

    Iteration follows insertion order; equality and hashing do not.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[Symbol, int] | Iterable[Tuple[Symbol, int]] = ()) -> None:
        pairs = items.items() if isinstance(items, Mapping) else items
        merged: dict[Symbol, int] = {}
        for symbol, multiplicity in pairs:
            if not isinstance(symbol, Symbol):
                symbol = Symbol(symbol)
            if isinstance(multiplicity, bool) or not isinstance(multiplicity, numbers.Integral):
                raise ValueError(f"multiplicity of '{symbol}' must be an integer, got {multiplicity!r}")
            multiplicity = int(multiplicity)
            if multiplicity <= 0:
                raise ValueError(f"multiplicity of '{symbol}' must be positive, got {multiplicity}")
            merged[symbol] = merged.get(symbol, 0) + multiplicity
        self._items = merged

    def __getitem__(self, symbol: Symbol) -> int:
        return self._items[symbol]

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        inner = ", ".join(f"{s.name!r}: {m}" for s, m in self._items.items())
        return f"Terms({{{inner}}})"

    def merge(self, other: Mapping[Symbol, int]) -> "Terms":
        return merge_terms(self, other)

    def sorted_items(self) -> list[tuple[Symbol, int]]:
        return sorted(self._items.items())

    @classmethod
    def of(cls, **multiplicities: int) -> "Terms":
        """Shorthand for tests and examples: ``Terms.of(A=2, B=1)``."""
        return cls((Symbol(name), m) for name, m in multiplicities.items())


def merge_terms(a: Mapping[Symbol, int], b: Mapping[Symbol, int]) -> Terms:
    """Combine two term multisets by summing multiplicities per symbol."""
    return Terms([*a.items(), *b.items()])


@dataclass(frozen=True)
class Cost:
    """Number of elementary cycles one run of a reaction takes. Always positive."""

    value: int
    span: Span | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        labels = [Label(self.span, "cost must be at least 1")] if self.span else []
        if isinstance(self.value, bool) or not isinstance(self.value, numbers.Integral):
            raise SemanticConfigError(f"reaction cost must be an integer, got {self.value!r}", labels)
        if self.value <= 0:
            raise SemanticConfigError(f"reaction cost must be positive, got {self.value}", labels)

    def __int__(self) -> int:
        return int(self.value)


@dataclass(frozen=True)
class Reaction:
    inputs: Terms
    outputs: Terms
    cost: Cost = Cost(1)
    label: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.inputs, Terms):
            object.__setattr__(self, "inputs", Terms(self.inputs))
        if not isinstance(self.outputs, Terms):
            object.__setattr__(self, "outputs", Terms(self.outputs))
        if not isinstance(self.cost, Cost):
            object.__setattr__(self, "cost", Cost(self.cost))

    @property
    def var_name(self) -> str:
        """Canonical identifier, a function of the sorted input and output terms only."""
        return f"machine_{_side_name(self.inputs)}_into_{_side_name(self.outputs)}"

    @property
    def display_name(self) -> str:
        return self.label if self.label is not None else self.var_name

    def symbols(self) -> Iterator[Symbol]:
        yield from self.inputs
        yield from self.outputs


def _side_name(terms: Terms) -> str:
    return "_".join(f"{m}{symbol.identifier}" for symbol, m in terms.sorted_items())


@dataclass(frozen=True)
class ResourcesGoal:
    """Minimise the weighted net external draw of ``weights``' symbols."""

    weights: Terms


@dataclass(frozen=True)
class ReactionsGoal:
    """Minimise total reaction activity."""


Goal = ResourcesGoal | ReactionsGoal


@dataclass(frozen=True)
class Target:
    name: str
    inputs: Tuple[Symbol, ...] = ()
    constraints: Terms = field(default_factory=Terms)
    in_time: int = 1
    goal: Goal | None = None
    span: Span = field(default=Span(0, 0), compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(Symbol(s) if isinstance(s, str) else s for s in self.inputs))
        if not isinstance(self.constraints, Terms):
            object.__setattr__(self, "constraints", Terms(self.constraints))
        if self.in_time <= 0:
            raise SemanticConfigError(
                f"'in_time' of target {self.name} must be positive, got {self.in_time}",
                [Label(self.span, "in this target")],
            )


class UnknownTargetError(SemanticConfigError):
    def __init__(self, name: str, known: Iterable[str]) -> None:
        self.name = name
        self.known = tuple(known)
        super().__init__(
            "target name not found",
            help=expected_str("did you mean ", self.known) or "no targets are declared",
        )


@dataclass(frozen=True)
class Program:
    targets: Mapping[str, Target] = field(default_factory=dict)
    reactions: Tuple[Reaction, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "reactions", tuple(self.reactions))

    def target(self, name: str) -> Target:
        try:
            return self.targets[name]
        except KeyError:
            raise UnknownTargetError(name, self.targets.keys()) from None

    def symbols(self) -> list[Symbol]:
        """Every symbol used by a reaction, in order of first appearance."""
        seen: dict[Symbol, None] = {}
        for reaction in self.reactions:
            for symbol in reaction.symbols():
                seen.setdefault(symbol, None)
        return list(seen)
