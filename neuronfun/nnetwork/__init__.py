# nnetwork/__init__.py

"""
Reverse-mode automatic differentiation on 2-D nodes, and small multilayer
networks built on top of it.

    from neuronfun.nnetwork import Node, MultiLayer, Linear, FunctionLayer, ops
"""

from . import ops
from .core import (
    Node, back_propagate, topological_order, zero_grads, sgd_step, log_spaced_rates,
    get_rng, seed,
    NeuronError, ShapeMismatch, InvalidConfiguration, NumericDomain,
    BundleIOError, BundleNotFoundError, BundleTruncatedError, BundleParseError,
    EncodingError, DecodeError, LayerNameWarning, is_recoverable,
)
from .mlp import (
    Layer, Linear, FunctionLayer, Reshape,
    least_squares, neg_log_likelihood,
    MultiLayer, ParameterBundle,
)

__all__ = [
    "ops",
    "Node", "back_propagate", "topological_order", "zero_grads", "sgd_step",
    "log_spaced_rates", "get_rng", "seed",
    "NeuronError", "ShapeMismatch", "InvalidConfiguration", "NumericDomain",
    "BundleIOError", "BundleNotFoundError", "BundleTruncatedError", "BundleParseError",
    "EncodingError", "DecodeError", "LayerNameWarning", "is_recoverable",
    "Layer", "Linear", "FunctionLayer", "Reshape",
    "least_squares", "neg_log_likelihood",
    "MultiLayer", "ParameterBundle",
]
