# graph_autodiff/core/engine.py
"""
Forward-mode evaluation of expression graphs.

Each node maps (inputs) to a (value, gradient) pair, composing its children's
pairs with the local rule of its variant:

    Sum   : (v1 + v2,  g1 + g2)
    Mul   : (v1 * v2,  v2*g1 + v1*g2)
    Const : (c,        0)
    Var   : (x[name],  e_{index_of[name]})

The name -> slot mapping is resolved once per call (`GradContext`) and
threaded down the sweep; nodes shared by several parents are computed once.
"""
from __future__ import annotations
from typing import Dict, Mapping, Tuple, Union

import numpy as np

from .graph import Graph
from .node import Op, sweep_grad
from .ordering import GradContext, variable_names

Target = Union[Graph, Op]


def _root_of(target: Target) -> Op:
    if isinstance(target, Graph):
        return target.root
    if isinstance(target, Op):
        return target
    raise TypeError(f"expected a Graph or graph node, got {type(target).__name__}")


def evaluate(target: Target, inputs: Mapping[str, float]) -> float:
    """Value of a graph at `inputs`. Raises MissingVariable."""
    return _root_of(target).eval(inputs)


def evaluate_grad(target: Target, inputs: Mapping[str, float]) -> Tuple[float, np.ndarray]:
    """
    Value and gradient of a graph at `inputs`.

    Returns
    -------
    (value, gradient) where gradient is a float64 ndarray of length
    len(inputs), entry i being the partial w.r.t. the i-th name in sorted
    order. Raises MissingVariable if the graph references an unbound name.
    """
    root = _root_of(target)
    ctx = GradContext(inputs)
    value, grad = sweep_grad(root, inputs, ctx)
    # memo entries may be shared between nodes; hand out a private copy
    return float(value), np.array(grad, copy=True)


def named_gradient(target: Target, inputs: Mapping[str, float]) -> Dict[str, float]:
    """Gradient of a graph at `inputs` as {name: partial}, one entry per input."""
    _, grad = evaluate_grad(target, inputs)
    return {name: float(g) for name, g in zip(variable_names(inputs), grad)}
