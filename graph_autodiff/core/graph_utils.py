"""
Graph introspection helpers.

Used to print and analyse the structure of an expression graph: how many
distinct nodes it holds, how large it becomes once shared subgraphs are
expanded (which is what the binary format stores), and its depth.
"""

from collections import Counter
from typing import Dict

from .graph import as_graph, iter_nodes
from .node import Mul, Sum, Var, post_order


def tree_size(graph) -> int:
    """Number of records the graph occupies once every shared subgraph is copied."""
    size = {}
    for node in post_order(as_graph(graph).root):
        if isinstance(node, (Sum, Mul)):
            size[id(node)] = 1 + size[id(node.op1)] + size[id(node.op2)]
        else:
            size[id(node)] = 1
    return size[id(as_graph(graph).root)]


def graph_depth(graph) -> int:
    """Length of the longest root-to-leaf path, counting nodes (a leaf has depth 1)."""
    depth = {}
    for node in post_order(as_graph(graph).root):
        if isinstance(node, (Sum, Mul)):
            depth[id(node)] = 1 + max(depth[id(node.op1)], depth[id(node.op2)])
        else:
            depth[id(node)] = 1
    return depth[id(as_graph(graph).root)]


def get_graph_stats(graph) -> Dict:
    """
    Structural statistics of a graph (no printing).

    Returns:
        dict with keys nodes, tree_nodes, shared_nodes, depth, operations,
        variables
    """
    g = as_graph(graph)
    nodes = list(iter_nodes(g.root))
    n_tree = tree_size(g)
    op_counter = Counter(type(node).__name__ for node in nodes)

    return {
        'nodes': len(nodes),
        'tree_nodes': n_tree,
        'shared_nodes': n_tree - len(nodes),
        'depth': graph_depth(g),
        'operations': dict(op_counter),
        'variables': sorted({n.name for n in nodes if isinstance(n, Var)}),
    }


def print_graph_summary(graph) -> Dict:
    """
    Print a summary of the graph structure.

    Returns:
        the same dict as get_graph_stats
    """
    stats = get_graph_stats(graph)
    n_nodes = stats['nodes']

    print("\n" + "=" * 70)
    print("EXPRESSION GRAPH SUMMARY")
    print("=" * 70)
    print(f"Distinct nodes:     {n_nodes:,}")
    print(f"Expanded nodes:     {stats['tree_nodes']:,}")
    print(f"Depth:              {stats['depth']}")
    print(f"Variables:          {', '.join(stats['variables']) or '-'}")
    print()
    print("Operation breakdown:")
    for op_type, count in Counter(stats['operations']).most_common():
        pct = 100.0 * count / n_nodes
        print(f"  {op_type:12s}: {count:6,} ({pct:5.1f}%)")
    print("=" * 70 + "\n")

    return stats
