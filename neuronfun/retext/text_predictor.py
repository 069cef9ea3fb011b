# retext/text_predictor.py
"""
Character level text generator: predicts the next character from the
previous `block_size` ones.
"""
from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..nnetwork.core.errors import InvalidConfiguration
from ..nnetwork.core.node import Node
from ..nnetwork.core.rng import get_rng
from ..nnetwork.mlp.layers import FunctionLayer, Layer, Linear, Reshape
from ..nnetwork.mlp.loss_functions import neg_log_likelihood
from ..nnetwork.mlp.multilayer import MultiLayer
from ..nnetwork.mlp.parameter_bundle import ParameterBundle
from ..nnetwork.ops.activation import softmax, tanh
from .char_set import CharSet

logger = logging.getLogger(__name__)

SENTINEL = "^"


def create_layers(n_chars: int, block_size: int, embed_dim: Optional[int],
                  n_hidden_layers: int, layer_dim: int,
                  rng: Optional[np.random.Generator] = None) -> List[Layer]:
    """
    Embedding (optional) -> tanh hidden layers -> softmax over the alphabet.

    The input is the one-hot matrix of a block, shape (n_chars, block_size).
    Without an embedding it is flattened to a column before the first
    linear layer.
    """
    non_linearity = FunctionLayer(tanh, "Tanh", "Non-linearity layer")
    layers: List[Layer] = []

    if embed_dim is not None:
        layers.append(Linear(embed_dim, n_chars, biased=False, name="Embedding layer", rng=rng))
        layers.append(Reshape((block_size * embed_dim, 1), "Reshaping layer"))
        layers.append(non_linearity)
        in_rows = block_size * embed_dim
    else:
        layers.append(Reshape((block_size * n_chars, 1), "Reshaping layer"))
        in_rows = block_size * n_chars
    layers.append(Linear(layer_dim, in_rows, name="Resizing layer (in)", rng=rng))
    layers.append(non_linearity)

    for n in range(n_hidden_layers):
        layers.append(Linear(layer_dim, layer_dim, name=f"Hidden layer {n}", rng=rng))
        layers.append(non_linearity)

    layers.append(Linear(n_chars, layer_dim, name="Resizing layer (out)", rng=rng))
    layers.append(FunctionLayer(softmax, "SoftMax", "Probability producing layer"))
    return layers


class ReText:
    """
    Parameters
    ----------
    data : CharSet
        Training and validation lines; the sentinel `^` is added to it.
    block_size : int
        Number of preceding characters the prediction depends on.
    embed_dim : int, optional
        Size of the per-character embedding; `None` feeds one-hot columns.
    n_hidden_layers, layer_dim : int
        Depth and width of the tanh stack.
    regularization : float, optional
        L2 coefficient passed to the MultiLayer.
    """

    def __init__(self, data: CharSet, block_size: int, embed_dim: Optional[int],
                 n_hidden_layers: int, layer_dim: int,
                 regularization: Optional[float] = None,
                 rng: Optional[np.random.Generator] = None):
        if block_size < 1:
            raise InvalidConfiguration(f"Block size must be positive, got {block_size}")
        if embed_dim is not None and embed_dim < 1:
            raise InvalidConfiguration(f"Embedding dimension must be positive, got {embed_dim}")
        data.add_character(SENTINEL)
        self._data = data
        self._block_size = block_size
        self._embedding = embed_dim is not None
        self._rng = rng
        self._mlp = MultiLayer(
            create_layers(len(data), block_size, embed_dim, n_hidden_layers, layer_dim, rng),
            regularization=regularization,
            loss_function=neg_log_likelihood,
        )

    @property
    def network(self) -> MultiLayer:
        return self._mlp

    @property
    def block_size(self) -> int:
        return self._block_size

    @property
    def characters(self) -> List[str]:
        return self._data.characters

    # ------------------------------ training data ------------------------------ #
    def correlations_from_line(self, line: str) -> List[Tuple[Node, Node]]:
        """(block, next character) pairs of one line padded with the sentinel."""
        s = SENTINEL * self._block_size + line + SENTINEL
        return [
            (self._data.encode(s[i:i + self._block_size]),
             self._data.encode(s[i + self._block_size]))
            for i in range(len(s) - self._block_size)
        ]

    def extract_correlations(self, lines: Sequence[str], n: int) -> List[Tuple[Node, Node]]:
        """Up to `n` pairs taken from consecutive lines, starting at a random one."""
        if not lines:
            raise InvalidConfiguration("No lines to extract training pairs from")
        rng = self._rng or get_rng()
        start = int(rng.integers(len(lines)))
        pairs: List[Tuple[Node, Node]] = []
        idx = start
        while len(pairs) < n:
            pairs.extend(self.correlations_from_line(lines[idx]))
            idx = (idx + 1) % len(lines)
            if idx == start:
                break
        return pairs[:n]

    # --------------------------------- training -------------------------------- #
    def train(self, cycles: int, learning_rate: float, batch_size: int,
              verbose: bool = False) -> List[float]:
        """Run `cycles` descent steps on random training batches; returns the losses."""
        t0 = time.perf_counter()
        width = len(str(max(cycles, 1)))
        losses: List[float] = []
        for n in range(cycles):
            t_cycle = time.perf_counter()
            batch = self.extract_correlations(self._data.training_data, batch_size)
            loss = self._mlp.train(batch, learning_rate).value_at(0)
            losses.append(loss)
            if verbose:
                micros = (time.perf_counter() - t_cycle) * 1e6
                print(f"Cycle #{n:>{width}}: [ loss: {loss:.3e}, duration: {micros:.0f} µs ]")

        if verbose:
            print(f"Trained network with {self._mlp.parameter_count()} parameters for {cycles} "
                  f"cycles in {(time.perf_counter() - t0) * 1e3:.0f} ms"
                  + (f" achieving a loss of: {losses[-1]:.3e}" if losses else ""))
        if self._data.validation_data:
            validation = self.validate(batch_size)
            logger.info("Validation loss: %s", validation)
            if verbose:
                print(f"Validation loss: {validation}")
        return losses

    def validate(self, batch_size: int) -> float:
        """Loss on a validation batch; parameters are not touched."""
        batch = self.extract_correlations(self._data.validation_data, batch_size)
        return self._mlp.loss(batch).value_at(0)

    # -------------------------------- prediction ------------------------------- #
    def predict(self, seed: str, n_characters: int) -> str:
        """
        Extend `seed` by sampling up to `n_characters` characters, stopping
        early when the sentinel is drawn.
        """
        text = SENTINEL * self._block_size + seed
        for _ in range(n_characters):
            block = self._data.encode(text[-self._block_size:])
            c = self._data.decode(self._mlp.predict(block, self._rng))
            if c == SENTINEL:
                break
            text += c
        return text[self._block_size:]

    def embed(self, text: str) -> Node:
        """Embedding of every character of `text` (one-hot columns without embedding)."""
        encoded = self._data.encode(text)
        if not self._embedding:
            return encoded
        return self._mlp.layer(0).forward(encoded)

    # -------------------------------- parameters ------------------------------- #
    def get_parameter_bundle(self) -> ParameterBundle:
        return self._mlp.get_parameter_bundle()

    def load_parameter_bundle(self, bundle: ParameterBundle) -> None:
        self._mlp.load_parameter_bundle(bundle)

    def export_parameters(self, path: str) -> str:
        return self._mlp.export_parameters(path)

    def import_parameters(self, path: str) -> None:
        self._mlp.import_parameters(path)
