# nnetwork/ops/activation.py
"""
Activation functions used by `FunctionLayer`.

sigmoid, tanh and leaky_relu are built as single nodes whose derivative is
read back from the output; softmax is a composition of primitive ops.
"""
import numpy as np
from scipy.special import expit

from ..core.node import Node
from .arithmetic import _as_node
from .reduction import normalize
from .transcendental import exp

LEAKY_SLOPE = 0.01


def _element_wise(x, f, df_from_output, op_tag):
    """Build y = f(x) with back-prop g * f'(x) expressed through y."""
    x = _as_node(x)

    def back_prop(child):
        child.parents[0].grads[...] += child.grads * df_from_output(child.values)

    return Node.from_array(f(x.values), parents=(x,), back_prop=back_prop, op_tag=op_tag)


def sigmoid(x):
    return _element_wise(x, expit, lambda y: y * (1.0 - y), "sigmoid")


def tanh(x):
    return _element_wise(x, np.tanh, lambda y: 1.0 - y * y, "tanh")


def _leaky(v):
    return np.where(v > 0, v, LEAKY_SLOPE * v)


def leaky_relu(x):
    # y > 0 exactly where x > 0
    return _element_wise(x, _leaky, lambda y: np.where(y > 0, 1.0, LEAKY_SLOPE), "leaky_relu")


def softmax(x):
    """normalize(exp(x)): values in (0, 1) summing to one."""
    return normalize(exp(x))
