# colorize/color_predictor.py
"""
Palette classifier: a tanh network with a softmax output over the colors of a
`ColorKey`, trained with least squares against one-hot targets.
"""
from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..nnetwork.core.node import Node
from ..nnetwork.mlp.layers import FunctionLayer
from ..nnetwork.mlp.loss_functions import least_squares
from ..nnetwork.mlp.multilayer import MultiLayer
from ..nnetwork.ops.activation import softmax, tanh
from ._sampling import Range, dense_stack, make_batch, sample_points
from .color_key import Color, ColorKey, Coords

logger = logging.getLogger(__name__)


class ColorPredictor:

    def __init__(self, key: ColorKey, n_hidden_layers: int, layer_size: int,
                 regularization: Optional[float] = None,
                 rng: Optional[np.random.Generator] = None):
        self._key = key
        self._rng = rng
        non_linearity = FunctionLayer(tanh, "Tanh", "Non-linearity layer")
        layers = dense_stack(2, key.palette_size, n_hidden_layers, layer_size, non_linearity, rng)
        layers.append(FunctionLayer(softmax, "SoftMax", "Probability producing layer"))
        self._mlp = MultiLayer(layers, regularization=regularization, loss_function=least_squares)

    @property
    def network(self) -> MultiLayer:
        return self._mlp

    @property
    def key(self) -> ColorKey:
        return self._key

    def probabilities(self, coords: Coords) -> np.ndarray:
        return self._mlp.forward(Node.col_vector(coords)).copy_values()

    def predict_index(self, coords: Coords) -> int:
        """Palette index with the highest probability (first one on ties)."""
        return int(np.argmax(self.probabilities(coords)))

    def predict(self, coords: Coords) -> Color:
        return Color(self.predict_index(coords))

    def batch(self, batch_size: int, x_range: Range, y_range: Range) -> List[Tuple[Node, Node]]:
        points = sample_points(batch_size, x_range, y_range, self._rng)
        return make_batch(points, self._key.one_hot)

    def train(self, cycles: int, batch_size: int, learning_rate: float,
              x_range: Range = (-1.0, 1.0), y_range: Range = (-1.0, 1.0),
              verbose: bool = False) -> List[float]:
        """Train on freshly sampled points every cycle; returns the per-cycle losses."""
        t0 = time.perf_counter()
        width = len(str(max(cycles, 1)))
        losses: List[float] = []
        for n in range(cycles):
            batch = self.batch(batch_size, x_range, y_range)
            t_cycle = time.perf_counter()
            loss = self._mlp.train(batch, learning_rate).value_at(0)
            losses.append(loss)
            if verbose:
                micros = (time.perf_counter() - t_cycle) * 1e6
                print(f"Cycle #{n:>{width}}: [ loss: {loss:.3e}, duration: {micros:.0f} µs ]")
        logger.info("Trained %d parameters for %d cycles in %.0f ms",
                    self._mlp.parameter_count(), cycles, (time.perf_counter() - t0) * 1e3)
        return losses

    def accuracy(self, samples: Sequence[Coords]) -> float:
        """Share of points whose predicted color equals the key's."""
        if not samples:
            return 0.0
        hits = sum(self.predict_index(p) == self._key.index(p) for p in samples)
        return hits / len(samples)

    def export_parameters(self, path: str) -> str:
        return self._mlp.export_parameters(path)

    def import_parameters(self, path: str) -> None:
        self._mlp.import_parameters(path)
