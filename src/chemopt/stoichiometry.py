"""Integer stoichiometry of a reaction network.

Reactions are grouped into decision variables by canonical name; reactions with
identical term multisets share a column. Shapes:

  inputs, outputs: (n_species, n_reactions)  multiplicities per reaction
  costs:           (n_reactions,)
  columns:         (n_reactions,)            variable index of each reaction

Multiplicities and costs are held as Python ints (``dtype=object``) so that
arbitrarily large values and their products stay exact.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from math import gcd
from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from chemopt.models import Program, Reaction, Symbol


@dataclass(frozen=True)
class Stoichiometry:
    species: tuple[Symbol, ...]
    variables: tuple[str, ...]
    inputs: NDArray[np.object_]
    outputs: NDArray[np.object_]
    costs: NDArray[np.object_]
    columns: NDArray[np.int64]

    def __post_init__(self):
        n_species, n_reactions = len(self.species), len(self.costs)
        for name in ("inputs", "outputs"):
            matrix = np.asarray(getattr(self, name), dtype=object).reshape(n_species, n_reactions)
            object.__setattr__(self, name, matrix)
        object.__setattr__(self, "costs", np.asarray(self.costs, dtype=object).reshape(n_reactions))
        object.__setattr__(self, "columns", np.asarray(self.columns, dtype=np.int64))

    @classmethod
    def from_reactions(cls, reactions: Sequence[Reaction], species: Sequence[Symbol]) -> "Stoichiometry":
        index = {symbol: i for i, symbol in enumerate(species)}
        inputs = np.zeros((len(species), len(reactions)), dtype=object)
        outputs = np.zeros_like(inputs)

        variables: dict[str, int] = {}
        columns = []
        for j, reaction in enumerate(reactions):
            columns.append(variables.setdefault(reaction.var_name, len(variables)))
            for symbol, m in reaction.inputs.items():
                inputs[index[symbol], j] = m
            for symbol, m in reaction.outputs.items():
                outputs[index[symbol], j] = m

        return cls(
            species=tuple(species),
            variables=tuple(variables),
            inputs=inputs,
            outputs=outputs,
            costs=[int(r.cost) for r in reactions],
            columns=np.array(columns, dtype=np.int64),
        )

    @classmethod
    def from_program(cls, program: Program) -> "Stoichiometry":
        return cls.from_reactions(program.reactions, program.symbols())

    @property
    def n_reactions(self) -> int:
        return int(self.costs.shape[0])

    def row(self, symbol: Symbol) -> int | None:
        try:
            return self.species.index(symbol)
        except ValueError:
            return None

    def cost_lcm(self) -> int:
        """Least common multiple of all reaction costs (1 for an empty network)."""
        return lcm(int(c) for c in self.costs)


def _lcm(a: int, b: int) -> int:
    return abs(a * b) // gcd(a, b) if a and b else abs(a or b)


def lcm(values: Iterable[int]) -> int:
    return reduce(_lcm, (int(v) for v in values), 1)
