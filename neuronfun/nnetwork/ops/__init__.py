# nnetwork/ops/__init__.py

# Convenience re-exports so users can do: from neuronfun.nnetwork.ops import matmul, exp, ...
from .arithmetic import (
    add, sub, neg, mul, mul_scalar, matmul, element_wise_mul, pow, inv, div,
)
from .transcendental import exp, log
from .reduction import sum, normalize, collapse
from .activation import sigmoid, tanh, leaky_relu, softmax

__all__ = [
    "add", "sub", "neg", "mul", "mul_scalar", "matmul", "element_wise_mul",
    "pow", "inv", "div",
    "exp", "log",
    "sum", "normalize", "collapse",
    "sigmoid", "tanh", "leaky_relu", "softmax",
]
