# nnetwork/ops/transcendental.py
import numpy as np

from ..core.errors import NumericDomain
from ..core.node import Node
from .arithmetic import _as_node


def _exp_back_prop(child):
    # d/dx e^x = e^x, already stored in the child
    child.parents[0].grads[...] += child.grads * child.values


def exp(x):
    x = _as_node(x)
    with np.errstate(over="ignore"):
        vals = np.exp(x.values)
    return Node.from_array(vals, parents=(x,), back_prop=_exp_back_prop, op_tag="exp")


def _log_back_prop(child):
    x = child.parents[0]
    x.grads[...] += child.grads / x.values


def log(x):
    """Natural logarithm; every value must be positive."""
    x = _as_node(x)
    if (x.values <= 0).any():
        bad = x.values[x.values <= 0][0]
        raise NumericDomain(f"log is only defined for positive values, got {bad!r}")
    return Node.from_array(np.log(x.values), parents=(x,), back_prop=_log_back_prop, op_tag="log")
