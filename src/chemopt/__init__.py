"""chemopt: compile reaction networks into MiniZinc optimisation models."""

from chemopt.compiler import CompiledModel, Mode, compile_target
from chemopt.models import (
    Cost,
    Program,
    Reaction,
    ReactionsGoal,
    ResourcesGoal,
    Symbol,
    Target,
    Terms,
    merge_terms,
)
from chemopt.parser import parse
from chemopt.serializer import render_minizinc

__all__ = [
    "CompiledModel",
    "Cost",
    "Mode",
    "Program",
    "Reaction",
    "ReactionsGoal",
    "ResourcesGoal",
    "Symbol",
    "Target",
    "Terms",
    "compile_target",
    "merge_terms",
    "parse",
    "render_minizinc",
]
