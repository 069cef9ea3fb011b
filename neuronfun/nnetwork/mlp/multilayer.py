# nnetwork/mlp/multilayer.py
from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..core.engine import back_propagate
from ..core.errors import InvalidConfiguration
from ..core.node import Node
from ..ops.reduction import sum as node_sum
from .layers import Layer
from .loss_functions import neg_log_likelihood
from .parameter_bundle import ParameterBundle

logger = logging.getLogger(__name__)

LossFunction = Callable[[Node, Node], Node]
Sample = Tuple[Node, Node]


class MultiLayer:
    """
    A stack of layers with a loss function and optional L2 regularization.

    Parameters
    ----------
    layers : sequence of Layer
        Applied in order by `forward`; must not be empty.
    regularization : float, optional
        Coefficient λ of the penalty `λ · mean(param²)`, taken over every
        element of every parameter. `None` disables it.
    loss_function : callable, optional
        `(prediction, target) -> scalar node`; defaults to `neg_log_likelihood`.
    """

    def __init__(self, layers: Sequence[Layer], regularization: Optional[float] = None,
                 loss_function: Optional[LossFunction] = None):
        layers = list(layers)
        if not layers:
            raise InvalidConfiguration("MultiLayer needs at least one layer")
        self._layers: List[Layer] = layers
        self._regularization: Optional[float] = None
        self._loss_function: LossFunction = loss_function or neg_log_likelihood
        self.set_regularization(regularization)

    # ------------------------------ configuration ------------------------------ #
    def set_regularization(self, regularization: Optional[float]) -> None:
        """`None` disables regularization; otherwise the coefficient must be positive."""
        if regularization is not None and not regularization > 0:
            raise InvalidConfiguration(
                f"Regularization coefficient must be positive, got {regularization!r}"
            )
        self._regularization = None if regularization is None else float(regularization)

    @property
    def regularization(self) -> Optional[float]:
        return self._regularization

    def set_loss_function(self, loss_function: LossFunction) -> None:
        self._loss_function = loss_function

    # --------------------------------- layers --------------------------------- #
    @property
    def layers(self) -> List[Layer]:
        return self._layers

    def layer(self, i: int) -> Layer:
        return self._layers[i]

    def __len__(self) -> int:
        return len(self._layers)

    def param_iter(self) -> Iterator[Node]:
        for layer in self._layers:
            yield from layer.param_iter()

    def param_iter_mut(self) -> Iterator[Node]:
        for layer in self._layers:
            yield from layer.param_iter_mut()

    def parameters(self) -> List[Node]:
        return list(self.param_iter())

    def parameter_count(self) -> int:
        """Number of scalar parameters."""
        return sum(len(p) for p in self.param_iter())

    def __repr__(self):
        inner = ",\n  ".join(repr(layer) for layer in self._layers)
        return f"MultiLayer([\n  {inner}\n])"

    # -------------------------------- evaluation ------------------------------- #
    def forward(self, inp: Node) -> Node:
        out = inp
        for layer in self._layers:
            out = layer.forward(out)
        return out

    def predict(self, inp: Node, rng: Optional[np.random.Generator] = None) -> Node:
        """Forward, then sample a one-hot node from the output."""
        return self.forward(inp).collapse(rng)

    def _regularization_term(self) -> Optional[Node]:
        if self._regularization is None:
            return None
        params = self.parameters()
        n_elements = sum(len(p) for p in params)
        if n_elements == 0:
            return None
        total = node_sum(params[0] ** 2)
        for p in params[1:]:
            total = total + node_sum(p ** 2)
        return total * (self._regularization / n_elements)

    def loss(self, batch: Sequence[Sample]) -> Node:
        """Mean loss over `(input, target)` pairs, plus the regularization penalty."""
        batch = list(batch)
        if not batch:
            raise InvalidConfiguration("Cannot compute the loss of an empty batch")
        total = None
        for inp, target in batch:
            term = self._loss_function(self.forward(inp), target)
            total = term if total is None else total + term
        loss = total * (1.0 / len(batch))
        reg = self._regularization_term()
        if reg is not None:
            loss = loss + reg
        return loss

    def train(self, batch: Sequence[Sample], learning_rate: float) -> Node:
        """One gradient descent step on `batch`; returns the loss before the step."""
        loss = self.loss(batch)
        back_propagate(loss)
        for param in self.param_iter_mut():
            param.descend_grad(learning_rate)
        return loss

    # -------------------------------- parameters ------------------------------- #
    def get_parameter_bundle(self) -> ParameterBundle:
        return ParameterBundle.capture(self._layers)

    def load_parameter_bundle(self, bundle: ParameterBundle) -> None:
        bundle.apply(self._layers)

    def export_parameters(self, path: str) -> str:
        """Write all parameters to a new file; returns the path actually used."""
        return self.get_parameter_bundle().export_parameters(path)

    def import_parameters(self, path: str) -> None:
        self.load_parameter_bundle(ParameterBundle.import_parameters(path))
        logger.info("Loaded %d parameters from %s", self.parameter_count(), path)
