# graph_autodiff/core/node.py
from __future__ import annotations
import numbers
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple

import numpy as np

from ..errors import MissingVariable
from .ordering import GradContext

Inputs = Mapping[str, float]
ValueGrad = Tuple[float, np.ndarray]


class Op(ABC):
    """
    One node of an expression graph.

    The variants are closed: Sum, Mul, Const and Var. Nodes are immutable and
    may be shared by any number of parents, so a graph is a DAG. Equality is
    identity; two separately built Const(2.0) are different nodes.

    Every variant implements two local rules:
        _value(inputs, memo)     -> float
        _value_grad(inputs, ctx) -> (float, gradient)
    Sum and Mul read their operands' results from the memo (`ctx.memo` for
    gradients). `sweep_value` / `sweep_grad` visit the graph children-first,
    so every operand is already there; no Python recursion is involved and
    graph depth is bounded only by memory.
    """
    __slots__ = ()

    # numpy scalars on the left of + / * must defer to our reflected operators
    __array_ufunc__ = None

    def eval(self, inputs: Inputs) -> float:
        """Value of the expression rooted here. Raises MissingVariable."""
        return sweep_value(self, inputs)

    def eval_grad(self, inputs: Inputs) -> ValueGrad:
        """
        Value and gradient of the expression rooted here.

        The gradient has one entry per key of `inputs`, ordered by name.
        """
        return sweep_grad(self, inputs, GradContext(inputs))

    def __repr__(self):
        return f"{type(self).__name__}({to_infix(self)})"

    @abstractmethod
    def _value(self, inputs: Inputs, memo: Dict[int, float]) -> float:
        ...

    @abstractmethod
    def _value_grad(self, inputs: Inputs, ctx: GradContext) -> ValueGrad:
        ...


def post_order(root: Op) -> List[Op]:
    """Distinct nodes reachable from `root`, children before parents."""
    order, seen = [], set()
    stack = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            order.append(node)
            continue
        if id(node) in seen:
            continue
        seen.add(id(node))
        stack.append((node, True))
        if isinstance(node, (Sum, Mul)):
            stack.append((node.op2, False))
            stack.append((node.op1, False))
    return order


def sweep_value(root: Op, inputs: Inputs) -> float:
    memo: Dict[int, float] = {}
    for node in post_order(root):
        memo[id(node)] = node._value(inputs, memo)
    return memo[id(root)]


def sweep_grad(root: Op, inputs: Inputs, ctx: GradContext) -> ValueGrad:
    """
    Forward-mode sweep. `ctx` must be freshly built from `inputs`; its memo
    is filled here and only lives for this call.
    """
    for node in post_order(root):
        ctx.memo[id(node)] = node._value_grad(inputs, ctx)
    return ctx.memo[id(root)]


def to_infix(root: Op) -> str:
    """Render an expression as infix text, parenthesizing sums under products."""
    text = {}
    for node in post_order(root):
        if isinstance(node, Const):
            s = repr(node.value)
        elif isinstance(node, Var):
            s = node.name
        elif isinstance(node, Sum):
            s = f"{text[id(node.op1)]} + {text[id(node.op2)]}"
        else:
            parts = []
            for op in (node.op1, node.op2):
                t = text[id(op)]
                parts.append(f"({t})" if isinstance(op, Sum) else t)
            s = " * ".join(parts)
        text[id(node)] = s
    return text[id(root)]


def _check_operand(x, role: str) -> Op:
    if not isinstance(x, Op):
        raise TypeError(f"{role} must be a graph node (Op), got {type(x).__name__}")
    return x


@dataclass(frozen=True, eq=False, repr=False)
class Sum(Op):
    """op1 + op2"""
    op1: Op
    op2: Op

    def __post_init__(self):
        _check_operand(self.op1, "Sum.op1")
        _check_operand(self.op2, "Sum.op2")

    def _value(self, inputs, memo):
        return memo[id(self.op1)] + memo[id(self.op2)]

    def _value_grad(self, inputs, ctx):
        v1, g1 = ctx.memo[id(self.op1)]
        v2, g2 = ctx.memo[id(self.op2)]
        # sum rule
        return v1 + v2, g1 + g2


@dataclass(frozen=True, eq=False, repr=False)
class Mul(Op):
    """op1 * op2"""
    op1: Op
    op2: Op

    def __post_init__(self):
        _check_operand(self.op1, "Mul.op1")
        _check_operand(self.op2, "Mul.op2")

    def _value(self, inputs, memo):
        return memo[id(self.op1)] * memo[id(self.op2)]

    def _value_grad(self, inputs, ctx):
        v1, g1 = ctx.memo[id(self.op1)]
        v2, g2 = ctx.memo[id(self.op2)]
        # product rule: d(uv) = v du + u dv
        return v1 * v2, v2 * g1 + v1 * g2


def _is_real(v) -> bool:
    return isinstance(v, numbers.Real) and not isinstance(v, bool)


@dataclass(frozen=True, eq=False)
class Const(Op):
    """A scalar constant, stored as a double."""
    value: float

    def __post_init__(self):
        v = self.value
        if not _is_real(v):
            raise TypeError(f"Const only accepts real numbers, but got {type(v)}")
        object.__setattr__(self, "value", float(v))

    def _value(self, inputs, memo):
        return self.value

    def _value_grad(self, inputs, ctx):
        return self.value, ctx.zeros()


@dataclass(frozen=True, eq=False)
class Var(Op):
    """A named placeholder whose value is looked up in the inputs."""
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise TypeError(f"Var name must be a str, got {type(self.name)}")
        if not self.name:
            raise ValueError("Var name must be non-empty")

    def _value(self, inputs, memo):
        try:
            v = inputs[self.name]
        except KeyError:
            raise MissingVariable(self.name) from None
        if not _is_real(v):
            raise TypeError(f"input {self.name!r} must be a real number, but got {type(v)}")
        return float(v)

    def _value_grad(self, inputs, ctx):
        return self._value(inputs, None), ctx.one_hot(self.name)
