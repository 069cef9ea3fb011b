# nnetwork/core/__init__.py

"""
Core public API of the calculation graph.

Exports:
    Node              : 2-D array of values with a gradient buffer and parents.
    back_propagate    : Run one reverse pass from a root node.
    topological_order : Leaves-first ordering of the graph behind a root.
    zero_grads        : Reset gradients of a set of nodes.
    sgd_step          : In-place gradient descent on one node.
    log_spaced_rates  : Log-uniform learning rate schedule.
    get_rng, seed     : Thread-local random generator.
"""

from .node import Node
from .engine import back_propagate, topological_order, zero_grads, sgd_step, log_spaced_rates
from .rng import get_rng, seed
from .errors import (
    NeuronError, ShapeMismatch, InvalidConfiguration, NumericDomain,
    BundleIOError, BundleNotFoundError, BundleTruncatedError, BundleParseError,
    EncodingError, DecodeError, LayerNameWarning, is_recoverable,
)

__all__ = [
    "Node",
    "back_propagate", "topological_order", "zero_grads", "sgd_step", "log_spaced_rates",
    "get_rng", "seed",
    "NeuronError", "ShapeMismatch", "InvalidConfiguration", "NumericDomain",
    "BundleIOError", "BundleNotFoundError", "BundleTruncatedError", "BundleParseError",
    "EncodingError", "DecodeError", "LayerNameWarning", "is_recoverable",
]
