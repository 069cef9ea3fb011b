# nnetwork/ops/reduction.py
import numpy as np

from ..core.errors import NumericDomain
from ..core.node import Node
from .arithmetic import _as_node, div


def _sum_back_prop(child):
    child.parents[0].grads[...] += child.grads[0, 0]


def sum(x):
    """Sum of all values, as a scalar node."""
    x = _as_node(x)
    return Node.from_array(np.array([[x.values.sum()]]), parents=(x,),
                           back_prop=_sum_back_prop, op_tag="sum")


def normalize(x):
    """Scale the values so that they add up to one."""
    x = _as_node(x)
    return div(x, sum(x))


def collapse(x, rng=None):
    """
    Sample one index with probability proportional to its value and return a
    one-hot leaf of the same shape.

    The values are treated as unnormalized, non-negative weights. The result
    is not connected to the graph.
    """
    x = _as_node(x)
    if len(x) == 0:
        raise NumericDomain("Cannot collapse an empty node")
    total = float(x.values.sum())
    if not np.isfinite(total) or total <= 0.0:
        raise NumericDomain(f"Cannot sample from weights summing to {total!r}")
    if rng is None:
        from ..core.rng import get_rng
        rng = get_rng()

    u = rng.uniform(0.0, total)
    flat = x.values.ravel()
    chosen = len(flat) - 1  # round-off may leave u slightly above zero
    for i, v in enumerate(flat):
        u -= v
        if u <= 0.0:
            chosen = i
            break

    out = np.zeros(x.shape, dtype=np.float64)
    out.flat[chosen] = 1.0
    return Node.from_array(out, op_tag="collapse")
