# nnetwork/ops/arithmetic.py
import numpy as np

from ..core.errors import NumericDomain, ShapeMismatch
from ..core.node import Node


def _as_node(x):
    """Ensure x is a Node; otherwise wrap it as a constant scalar leaf."""
    if isinstance(x, Node):
        return x
    if isinstance(x, (int, float, np.number)):
        return Node.scalar(float(x))
    raise TypeError(f"Cannot use {type(x)} as an operand of a Node op")


def _require_scalar(node, what):
    if len(node) != 1:
        raise ShapeMismatch(f"{what} must be a scalar, got shape {node.shape}")


# --------------------------------- add / neg --------------------------------- #
def _add_back_prop(child):
    for parent in child.parents:
        if parent.shape == child.shape:
            parent.grads[...] += child.grads
        else:
            # broadcast scalar
            parent.grads[...] += child.grads.sum()


def add(a, b):
    """
    Element-wise sum of two nodes of equal shape, or of a node and a scalar
    (the scalar is broadcast). The result takes the shape of the non-scalar.
    """
    a = _as_node(a)
    b = _as_node(b)
    if a.shape == b.shape:
        vals = a.values + b.values
    elif len(b) == 1:
        vals = a.values + b.values[0, 0]
    elif len(a) == 1:
        vals = b.values + a.values[0, 0]
    else:
        raise ShapeMismatch(f"Invalid operands for addition: {a.shape} and {b.shape}")
    return Node.from_array(vals, parents=(a, b), back_prop=_add_back_prop, op_tag="add")


def _neg_back_prop(child):
    child.parents[0].grads[...] -= child.grads


def neg(a):
    a = _as_node(a)
    return Node.from_array(-a.values, parents=(a,), back_prop=_neg_back_prop, op_tag="neg")


def sub(a, b):
    return add(a, neg(b))


# ------------------------------- multiplication ------------------------------ #
def _mul_scalar_back_prop(child):
    a, s = child.parents
    g = child.grads
    s_val = s.values[0, 0]
    # both deltas first: a and s may be the same node
    a_delta = g * s_val
    s_delta = np.sum(g * a.values)
    a.grads[...] += a_delta
    s.grads[...] += s_delta


def mul_scalar(a, s):
    """Multiply every value of `a` by the scalar node `s`."""
    a = _as_node(a)
    s = _as_node(s)
    _require_scalar(s, "Scalar factor")
    return Node.from_array(a.values * s.values[0, 0], parents=(a, s),
                           back_prop=_mul_scalar_back_prop, op_tag="mul_scalar")


def _matmul_back_prop(child):
    a, b = child.parents
    g = child.grads
    a_delta = g @ b.values.T
    b_delta = a.values.T @ g
    a.grads[...] += a_delta
    b.grads[...] += b_delta


def matmul(a, b):
    """
    Matrix product `(m, n) · (n, p) -> (m, p)`.

    When either operand holds a single value the product degenerates to a
    multiplication by a scalar and is routed to `mul_scalar`.
    """
    a = _as_node(a)
    b = _as_node(b)
    if len(b) == 1:
        return mul_scalar(a, b)
    if len(a) == 1:
        return mul_scalar(b, a)
    (m, n), (n2, p) = a.shape, b.shape
    if n != n2:
        raise ShapeMismatch(f"Invalid operands for multiplication: {a.shape} and {b.shape}")
    return Node.from_array(a.values @ b.values, parents=(a, b),
                           back_prop=_matmul_back_prop, op_tag="matmul")


# `*` on nodes is the scalar or matrix product, like the maths notation.
mul = matmul


def _element_wise_mul_back_prop(child):
    a, b = child.parents
    g = child.grads
    a_delta = g * b.values
    b_delta = g * a.values
    a.grads[...] += a_delta
    b.grads[...] += b_delta


def element_wise_mul(a, b):
    """Hadamard product of two nodes of equal shape."""
    a = _as_node(a)
    b = _as_node(b)
    if a.shape != b.shape:
        raise ShapeMismatch(
            f"Element-wise multiplication needs equal shapes, got {a.shape} and {b.shape}"
        )
    return Node.from_array(a.values * b.values, parents=(a, b),
                           back_prop=_element_wise_mul_back_prop, op_tag="element_wise_mul")


# ---------------------------------- powers ----------------------------------- #
def _pow_back_prop(child):
    base, power = child.parents
    g = child.grads
    p = power.values[0, 0]
    xv = base.values
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        dydx = np.zeros_like(xv) if p == 0.0 else p * xv ** (p - 1.0)
        # ln(x) only exists for x > 0; other entries contribute nothing
        logx = np.log(np.where(xv > 0, xv, 1.0))
    bad = (g != 0.0) & ~np.isfinite(dydx) & np.isfinite(xv)
    if np.isfinite(p) and bad.any():
        raise NumericDomain(
            f"Derivative of x ** {p!r} is not finite at x = {xv[bad][0]!r}"
        )
    with np.errstate(invalid="ignore"):
        base_delta = np.where(g != 0.0, g * dydx, 0.0)
    power_delta = np.sum(g * logx * child.values)
    base.grads[...] += base_delta
    power.grads[...] += power_delta


def pow(a, p):
    """
    Raise every value of `a` to the scalar power `p`.

    Raises NumericDomain when finite inputs produce a non-finite value, e.g.
    a zero base with a negative power or a negative base with a fractional one.
    """
    a = _as_node(a)
    p = _as_node(p)
    _require_scalar(p, "Power")
    pv = p.values[0, 0]
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        vals = a.values ** pv
    bad = ~np.isfinite(vals) & np.isfinite(a.values)
    if np.isfinite(pv) and bad.any():
        raise NumericDomain(
            f"{a.values[bad][0]!r} ** {pv!r} is not a finite number"
        )
    return Node.from_array(vals, parents=(a, p), back_prop=_pow_back_prop, op_tag="pow")


def inv(a):
    """Invert every value."""
    return pow(a, -1.0)


def div(a, b):
    """
    Divide by a scalar node (every value divided by it) or, for a non-scalar
    divisor, element-wise.
    """
    a = _as_node(a)
    b = _as_node(b)
    if len(b) == 1:
        return mul(a, inv(b))
    return element_wise_mul(a, inv(b))
