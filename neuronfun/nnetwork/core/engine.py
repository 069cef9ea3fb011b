# nnetwork/core/engine.py
from __future__ import annotations

import math
from typing import Iterable, List

import numpy as np

from .errors import InvalidConfiguration
from .node import Node


def topological_order(root: Node) -> List[Node]:
    """
    Depth-first post-order over parent edges, starting at `root`.

    Every node reachable from the root appears exactly once (identity, not
    value equality), each parent before all of its children, leaves first and
    the root last. Iterative so that deep graphs (long batch sums) do not hit
    the recursion limit.
    """
    order: List[Node] = []
    visited = set()
    # (node, index of the next parent to descend into)
    stack = [(root, 0)]
    visited.add(id(root))
    while stack:
        node, i = stack[-1]
        parents = node.parents
        if i < len(parents):
            stack[-1] = (node, i + 1)
            parent = parents[i]
            if id(parent) not in visited:
                visited.add(id(parent))
                stack.append((parent, 0))
        else:
            stack.pop()
            order.append(node)
    return order


def zero_grads(nodes: Iterable[Node]) -> None:
    """Set every gradient element of the given nodes to zero."""
    for node in nodes:
        node.grads.fill(0.0)


def back_propagate(root: Node) -> List[Node]:
    """
    Run one reverse pass from `root`.

    1) topologically sort the graph,
    2) zero all gradients in it,
    3) seed every element of the root gradient with 1,
    4) call each node's back-prop closure in reverse order; closures add
       (never assign) into their parents' gradients.

    Returns the topological order so callers can inspect the graph.
    """
    order = topological_order(root)
    zero_grads(order)
    root.grads.fill(1.0)
    for node in reversed(order):
        if node.back_prop is not None:
            node.back_prop(node)
    return order


def sgd_step(node: Node, learning_rate: float) -> None:
    """Descend the gradient: value[i] -= rate * grad[i]. Gradients are left as is."""
    node.values[...] -= learning_rate * node.grads


def log_spaced_rates(start: float, end: float, cycles: int) -> np.ndarray:
    """
    Learning rate schedule interpolating log-uniformly from `start` to `end`.

    A single cycle uses `start`. Both ends must be positive.
    """
    if cycles < 1:
        raise InvalidConfiguration(f"Need at least one cycle, got {cycles}")
    if start <= 0 or end <= 0:
        raise InvalidConfiguration(
            f"Learning rates must be positive, got {start} .. {end}"
        )
    if cycles == 1:
        return np.array([float(start)])
    return np.exp(np.linspace(math.log(start), math.log(end), cycles))
