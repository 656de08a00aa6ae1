# graph_autodiff/core/ordering.py
from __future__ import annotations
from typing import Any, Dict, List, Mapping

import numpy as np

from ..config import DTYPE


def variable_names(inputs: Mapping[str, float]) -> List[str]:
    """Input names in gradient order (ascending lexicographic)."""
    return sorted(inputs)


def resolve_order(inputs: Mapping[str, float]) -> Dict[str, int]:
    """
    Map every input name to its slot in the gradient vector.

    Names are ranked by lexicographic order, so the result is a bijection
    onto range(len(inputs)) that does not depend on the mapping's insertion
    order. An empty mapping gives an empty dict.
    """
    return {name: i for i, name in enumerate(variable_names(inputs))}


class GradContext:
    """
    Per-call state threaded through a forward-mode sweep.

    Built once at the top of `eval_grad` and passed down to every node:
        index_of : name -> gradient slot, from `resolve_order`
        size     : gradient length, always len(inputs)
        memo     : id(node) -> (value, gradient), filled children-first by
                   one sweep, so a subgraph shared by several parents is
                   computed once
    A context belongs to a single call and is never reused.
    """
    __slots__ = ("index_of", "size", "memo")

    def __init__(self, inputs: Mapping[str, float]):
        self.index_of = resolve_order(inputs)
        self.size = len(self.index_of)
        self.memo: Dict[int, Any] = {}

    def zeros(self) -> np.ndarray:
        return np.zeros(self.size, dtype=DTYPE)

    def one_hot(self, name: str) -> np.ndarray:
        g = self.zeros()
        g[self.index_of[name]] = 1.0
        return g
