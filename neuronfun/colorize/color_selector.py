# colorize/color_selector.py
"""
Multi-label model: one sigmoid intensity per channel of a `ColorKey`
(e.g. RGB), trained with least squares and a log-spaced learning rate.
"""
from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

import numpy as np

from ..nnetwork.core.engine import log_spaced_rates
from ..nnetwork.core.node import Node
from ..nnetwork.mlp.layers import FunctionLayer
from ..nnetwork.mlp.loss_functions import least_squares
from ..nnetwork.mlp.multilayer import MultiLayer
from ..nnetwork.ops.activation import sigmoid
from ._sampling import Range, dense_stack, make_batch, sample_points
from .color_key import ColorKey, Coords

logger = logging.getLogger(__name__)


class ColorSelector:

    def __init__(self, key: ColorKey, n_hidden_layers: int, layer_size: int,
                 regularization: Optional[float] = None,
                 rng: Optional[np.random.Generator] = None):
        self._key = key
        self._rng = rng
        # ReLU tends to zero out the whole network with this training scheme
        non_linearity = FunctionLayer(sigmoid, "Sigmoid", "Non-linearity layer")
        layers = dense_stack(2, key.n_channels, n_hidden_layers, layer_size, non_linearity, rng)
        layers.append(non_linearity)
        self._mlp = MultiLayer(layers, regularization=regularization, loss_function=least_squares)

    @property
    def network(self) -> MultiLayer:
        return self._mlp

    @property
    def key(self) -> ColorKey:
        return self._key

    def predict(self, coords: Coords) -> np.ndarray:
        """Intensity in (0, 1) for every channel."""
        return self._mlp.forward(Node.col_vector(coords)).copy_values()

    def train(self, cycles: int, batch_size: int, learning_rate: Range,
              x_range: Range = (-1.0, 1.0), y_range: Range = (-1.0, 1.0),
              verbose: bool = False) -> List[Tuple[float, float]]:
        """
        Train with a learning rate going log-uniformly from
        `learning_rate[0]` to `learning_rate[1]`.

        Returns:
            [(learning rate, loss)] per cycle
        """
        rates = log_spaced_rates(learning_rate[0], learning_rate[1], cycles)
        t0 = time.perf_counter()
        width = len(str(cycles))
        history: List[Tuple[float, float]] = []
        for n, rate in enumerate(rates):
            points = sample_points(batch_size, x_range, y_range, self._rng)
            batch = make_batch(points, self._key.intensities)
            t_cycle = time.perf_counter()
            loss = self._mlp.train(batch, float(rate)).value_at(0)
            history.append((float(rate), loss))
            if verbose:
                micros = (time.perf_counter() - t_cycle) * 1e6
                print(f"Cycle #{n:>{width}}, learning_rate: {rate:.2e} "
                      f"[ loss: {loss:.3e}, duration: {micros:.0f} µs ]")
        logger.info("Trained %d parameters for %d cycles in %.0f ms",
                    self._mlp.parameter_count(), cycles, (time.perf_counter() - t0) * 1e3)
        return history

    def export_parameters(self, path: str) -> str:
        return self._mlp.export_parameters(path)

    def import_parameters(self, path: str) -> None:
        self._mlp.import_parameters(path)
