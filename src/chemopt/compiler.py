"""Compile a reaction network and one of its targets into a linear model.

Two numeric regimes are supported:

Continuous (``Mode.CONTINUOUS``)
    One non-negative real rate per reaction variable. A reaction of cost C
    contributes ``multiplicity / C`` per unit of its variable, and each target
    minimum is spread over the horizon: ``net(s) >= minimum / in_time``.

Discrete (``Mode.DISCRETE``)
    One non-negative integer cycle count per reaction variable. With
    ``L = lcm(costs)`` every contribution is scaled by ``L / C`` so that all
    coefficients stay integral: ``net(s) >= minimum * L``.

Balance constraints ``production(s) >= consumption(s)`` keep every
intermediate species from being drawn from nowhere. Free inputs, symbols
that already carry a target constraint and, in continuous mode, the symbols
weighted by a resources goal are exempt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Iterator, Sequence

import numpy as np

from chemopt.errors import Label, SemanticConfigError
from chemopt.models import Program, ReactionsGoal, ResourcesGoal, Symbol, Target
from chemopt.stoichiometry import Stoichiometry

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    CONTINUOUS = "continuous"
    DISCRETE = "discrete"


@dataclass(frozen=True)
class Variable:
    name: str
    label: str
    integer: bool = False


@dataclass(frozen=True)
class LinearTerm:
    coefficient: Fraction
    variable: str


@dataclass(frozen=True)
class LinearExpr:
    terms: tuple[LinearTerm, ...] = ()

    def __iter__(self) -> Iterator[LinearTerm]:
        return iter(self.terms)

    def __len__(self) -> int:
        return len(self.terms)

    def coefficient(self, variable: str) -> Fraction:
        return sum((t.coefficient for t in self.terms if t.variable == variable), Fraction(0))

    @classmethod
    def collect(cls, pairs: Sequence[tuple[str, Fraction]]) -> "LinearExpr":
        """Sum coefficients per variable, keeping first-appearance order."""
        acc: dict[str, Fraction] = {}
        for variable, coefficient in pairs:
            acc[variable] = acc.get(variable, Fraction(0)) + coefficient
        return cls(tuple(LinearTerm(c, v) for v, c in acc.items()))


@dataclass(frozen=True)
class TargetConstraint:
    """``production - consumption >= minimum``"""

    symbol: Symbol
    production: LinearExpr
    consumption: LinearExpr
    minimum: Fraction


@dataclass(frozen=True)
class BalanceConstraint:
    """``production >= consumption``"""

    symbol: Symbol
    production: LinearExpr
    consumption: LinearExpr


@dataclass(frozen=True)
class ResourceObjective:
    """Minimise ``consumption - production``."""

    production: LinearExpr
    consumption: LinearExpr


@dataclass(frozen=True)
class ActivityObjective:
    """Minimise the sum of ``variables``."""

    variables: tuple[str, ...]


Objective = ResourceObjective | ActivityObjective


@dataclass(frozen=True)
class CompiledModel:
    mode: Mode
    target: Target
    variables: tuple[Variable, ...]
    non_negative: tuple[str, ...]
    target_constraints: tuple[TargetConstraint, ...]
    balance_constraints: tuple[BalanceConstraint, ...]
    objective: Objective
    scale: int = 1

    @property
    def label_width(self) -> int:
        return max((len(v.label) for v in self.variables), default=0)


def compile_target(program: Program, target: Target | str, mode: Mode = Mode.CONTINUOUS) -> CompiledModel:
    """Build variables, constraints and objective for ``target``.

    Raises:
        UnknownTargetError: ``target`` is a name not declared in ``program``.
        SemanticConfigError: the target has no goal.
    """
    if isinstance(target, str):
        target = program.target(target)
    mode = Mode(mode)

    goal = target.goal
    if goal is None:
        raise SemanticConfigError(
            f"expected 'goal' specification in target {target.name}",
            [Label(target.span, "in this target")],
        )

    stoich = Stoichiometry.from_program(program)
    scale = stoich.cost_lcm() if mode is Mode.DISCRETE else 1
    rates = _rate_weights(stoich, mode, scale)

    variables = _variables(program, stoich, integer=mode is Mode.DISCRETE)
    non_negative = tuple(v.name for v in variables) if mode is Mode.CONTINUOUS else ()

    target_constraints = []
    for symbol, minimum in target.constraints.items():
        if mode is Mode.CONTINUOUS:
            bound = Fraction(minimum, target.in_time)
        else:
            bound = Fraction(minimum * scale)
        target_constraints.append(
            TargetConstraint(
                symbol=symbol,
                production=_flow(stoich, stoich.outputs, symbol, rates),
                consumption=_flow(stoich, stoich.inputs, symbol, rates),
                minimum=bound,
            )
        )

    exempt = set(target.inputs) | set(target.constraints)
    match goal:
        case ResourcesGoal(weights=weights):
            if mode is Mode.CONTINUOUS:
                exempt |= set(weights)
        case ReactionsGoal():
            pass

    balance_constraints = [
        BalanceConstraint(
            symbol=symbol,
            production=_flow(stoich, stoich.outputs, symbol, rates),
            consumption=_flow(stoich, stoich.inputs, symbol, rates),
        )
        for symbol in stoich.species
        if symbol not in exempt
    ]

    match goal:
        case ResourcesGoal(weights=weights):
            ones = [Fraction(1)] * stoich.n_reactions
            production, consumption = [], []
            for symbol, weight in weights.items():
                production.extend((t.variable, t.coefficient * weight) for t in _flow(stoich, stoich.outputs, symbol, ones))
                consumption.extend((t.variable, t.coefficient * weight) for t in _flow(stoich, stoich.inputs, symbol, ones))
            objective = ResourceObjective(LinearExpr.collect(production), LinearExpr.collect(consumption))
        case ReactionsGoal():
            objective = ActivityObjective(tuple(v.name for v in variables))

    model = CompiledModel(
        mode=mode,
        target=target,
        variables=variables,
        non_negative=non_negative,
        target_constraints=tuple(target_constraints),
        balance_constraints=tuple(balance_constraints),
        objective=objective,
        scale=scale,
    )
    logger.debug(
        "compiled target %s (%s): %d variables, %d target constraints, %d balance constraints, scale %d",
        target.name,
        mode.value,
        len(variables),
        len(target_constraints),
        len(balance_constraints),
        scale,
    )
    return model


def _rate_weights(stoich: Stoichiometry, mode: Mode, scale: int) -> list[Fraction]:
    """Per-reaction factor applied to every multiplicity."""
    if mode is Mode.CONTINUOUS:
        return [Fraction(1, int(c)) for c in stoich.costs]
    # scale is a multiple of every cost, so the division is exact
    return [Fraction(scale // int(c)) for c in stoich.costs]


def _variables(program: Program, stoich: Stoichiometry, integer: bool) -> tuple[Variable, ...]:
    labels: dict[str, str] = {}
    for reaction in program.reactions:
        # the first labelled reaction names a shared variable
        if reaction.label is not None and labels.get(reaction.var_name) == reaction.var_name:
            labels[reaction.var_name] = reaction.display_name
        labels.setdefault(reaction.var_name, reaction.display_name)
    return tuple(Variable(name, labels[name], integer) for name in stoich.variables)


def _flow(stoich: Stoichiometry, matrix: np.ndarray, symbol: Symbol, rates: Sequence[Fraction]) -> LinearExpr:
    row = stoich.row(symbol)
    if row is None:
        return LinearExpr()
    pairs = [
        (stoich.variables[stoich.columns[j]], int(multiplicity) * rates[j])
        for j, multiplicity in enumerate(matrix[row])
        if multiplicity
    ]
    return LinearExpr.collect(pairs)
