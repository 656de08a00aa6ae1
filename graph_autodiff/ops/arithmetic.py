# graph_autodiff/ops/arithmetic.py
import numbers

from ..core.graph import Graph, as_graph
from ..core.node import Mul, Op, Sum


def _binary(x, y, cls):
    """
    Generic binary combinator:
      - lifts both operands to Graphs (numbers become Const, nodes are wrapped)
      - builds one new `cls` node over the two existing roots
    Neither operand is copied or modified.
    """
    return Graph(cls(as_graph(x).root, as_graph(y).root))


def add(x, y):
    """Sum-of: a Graph computing x + y."""
    return _binary(x, y, Sum)


def mul(x, y):
    """Mul-of: a Graph computing x * y."""
    return _binary(x, y, Mul)


def _liftable(x):
    if isinstance(x, (Graph, Op)):
        return True
    return isinstance(x, numbers.Real) and not isinstance(x, bool)


def _operators(op):
    """(forward, reflected) dunder pair for `op`; unknown operand types get NotImplemented."""
    def forward(self, other):
        if not _liftable(other):
            return NotImplemented
        return op(self, other)

    def reflected(self, other):
        if not _liftable(other):
            return NotImplemented
        return op(other, self)

    return forward, reflected


# Bind Python operators to graph nodes and Graph
for _cls in (Op, Graph):
    _cls.__add__, _cls.__radd__ = _operators(add)
    _cls.__mul__, _cls.__rmul__ = _operators(mul)
