"""
Calculation graph helpers
Summaries of the graph reachable from a root node
"""

from collections import Counter
from typing import Dict

import numpy as np

from .engine import topological_order
from .node import Node


def get_graph_stats(root: Node) -> Dict:
    """
    Statistics of the graph leading up to `root` (no printing).

    Returns:
        dict with node/edge counts, fan-in/fan-out and an op breakdown
    """
    order = topological_order(root)
    n_nodes = len(order)
    n_edges = sum(len(node.parents) for node in order)

    fan_ins = [len(node.parents) for node in order]
    # fan-out counted per edge, so a node used twice by one child counts twice
    fan_outs = Counter()
    for node in order:
        for parent in node.parents:
            fan_outs[id(parent)] += 1
    fan_out_list = [fan_outs[id(node)] for node in order]

    op_counter = Counter(node.op_tag for node in order)

    return {
        'nodes': n_nodes,
        'edges': n_edges,
        'leaves': sum(1 for node in order if node.is_leaf),
        'scalars': int(sum(len(node) for node in order)),
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_out_list),
        'avg_fan_out': float(np.mean(fan_out_list)),
        'operations': dict(op_counter),
    }


def print_graph_summary(root: Node) -> Dict:
    """Print the summary of `get_graph_stats` and return the stats."""
    stats = get_graph_stats(root)

    print("\n" + "=" * 70)
    print("CALCULATION GRAPH SUMMARY")
    print("=" * 70)
    print(f"Total nodes:        {stats['nodes']:,}")
    print(f"Leaf nodes:         {stats['leaves']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Stored values:      {stats['scalars']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print()
    print("Operation breakdown:")
    for op_type, count in Counter(stats['operations']).most_common(10):
        pct = 100.0 * count / stats['nodes']
        print(f"  {op_type:16s}: {count:6,} ({pct:5.1f}%)")
    print("=" * 70 + "\n")

    return stats
