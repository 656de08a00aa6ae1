# graph_autodiff/__init__.py
# Expression graphs with forward-mode automatic differentiation

from .core.node import Op, Sum, Mul, Const, Var
from .core.graph import Graph, as_graph
from .core.engine import evaluate, evaluate_grad, named_gradient
from .core.ordering import resolve_order
from .core.graph_utils import get_graph_stats, print_graph_summary

# Registers + and * on nodes and graphs
from . import ops
from .ops import add, mul

from .serialization import serialize, deserialize, write_to_path, read_from_path
from .config import CodecConfig, DTYPE, FORMAT_VERSION
from .errors import (
    GraphAutodiffError,
    MissingVariable,
    InvalidEncoding,
    UnsupportedFormatVersion,
    GraphIOError,
)

__all__ = [
    # Nodes
    'Op', 'Sum', 'Mul', 'Const', 'Var',
    # Graph
    'Graph', 'as_graph', 'add', 'mul',
    # Evaluation
    'evaluate', 'evaluate_grad', 'named_gradient', 'resolve_order',
    # Introspection
    'get_graph_stats', 'print_graph_summary',
    # Persistence
    'serialize', 'deserialize', 'write_to_path', 'read_from_path',
    'CodecConfig', 'DTYPE', 'FORMAT_VERSION',
    # Errors
    'GraphAutodiffError', 'MissingVariable', 'InvalidEncoding',
    'UnsupportedFormatVersion', 'GraphIOError',
]
