# nnetwork/mlp/__init__.py

from .layers import Layer, Linear, FunctionLayer, Reshape
from .loss_functions import least_squares, neg_log_likelihood
from .multilayer import MultiLayer
from .parameter_bundle import ParameterBundle

__all__ = [
    "Layer", "Linear", "FunctionLayer", "Reshape",
    "least_squares", "neg_log_likelihood",
    "MultiLayer",
    "ParameterBundle",
]
