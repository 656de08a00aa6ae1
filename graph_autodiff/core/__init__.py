# graph_autodiff/core/__init__.py

"""
Core types of the expression-graph package.

Exports:
    Op, Sum, Mul, Const, Var : the closed set of graph node variants.
    Graph, as_graph          : the public handle on a root node, and lifting.
    evaluate, evaluate_grad  : value-only and value+gradient evaluation.
    named_gradient           : gradient keyed by variable name.
    resolve_order            : variable name -> gradient slot.
    GradContext              : per-call state of a forward-mode sweep.
"""

from .node import Op, Sum, Mul, Const, Var
from .graph import Graph, as_graph
from .ordering import GradContext, resolve_order, variable_names
from .engine import evaluate, evaluate_grad, named_gradient

__all__ = [
    "Op", "Sum", "Mul", "Const", "Var",
    "Graph", "as_graph",
    "GradContext", "resolve_order", "variable_names",
    "evaluate", "evaluate_grad", "named_gradient",
]
