# graph_autodiff/ops/__init__.py

# Ensure operator overloading is registered
from . import arithmetic

# Convenience re-exports so users can do: from graph_autodiff.ops import add, mul
from .arithmetic import add, mul

__all__ = ["add", "mul"]
