# nnetwork/core/gradcheck.py
"""
Finite-difference checks of the reverse pass.

`f` is a zero-argument callable that rebuilds the graph from the current leaf
values and returns a scalar node, e.g. ``lambda: model.loss(batch)``.
"""
from __future__ import annotations

from typing import Callable, Dict, Sequence

import numpy as np

from .engine import back_propagate, zero_grads
from .errors import ShapeMismatch
from .node import Node

DEFAULT_STEP = 1e-4


def _scalar(f: Callable[[], Node]) -> float:
    out = f()
    if len(out) != 1:
        raise ShapeMismatch(f"Gradient check needs a scalar output, got shape {out.shape}")
    return out.value_at(0)


def numerical_gradient(f: Callable[[], Node], leaf: Node, h: float = DEFAULT_STEP) -> np.ndarray:
    """Central differences of f with respect to every value of `leaf` (flat array)."""
    flat = leaf.values.reshape(-1)
    grad = np.zeros(flat.size)
    for i in range(flat.size):
        orig = flat[i]
        flat[i] = orig + h
        up = _scalar(f)
        flat[i] = orig - h
        down = _scalar(f)
        flat[i] = orig
        grad[i] = (up - down) / (2.0 * h)
    return grad


def gradient_check(f: Callable[[], Node], leaves: Sequence[Node],
                   h: float = DEFAULT_STEP) -> Dict[int, float]:
    """
    Compare back-propagated gradients with central differences.

    Returns:
        {leaf index: max absolute difference over its elements}
    """
    zero_grads(leaves)
    root = f()
    back_propagate(root)
    analytic = [leaf.copy_grads() for leaf in leaves]
    return {
        i: float(np.max(np.abs(analytic[i] - numerical_gradient(f, leaf, h)), initial=0.0))
        for i, leaf in enumerate(leaves)
    }
