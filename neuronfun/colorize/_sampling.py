# colorize/_sampling.py
from typing import Callable, List, Optional, Tuple

import numpy as np

from ..nnetwork.core.errors import InvalidConfiguration
from ..nnetwork.core.node import Node
from ..nnetwork.core.rng import get_rng
from ..nnetwork.mlp.layers import FunctionLayer, Layer, Linear

Range = Tuple[float, float]


def check_range(r: Range, what: str) -> Range:
    lo, hi = float(r[0]), float(r[1])
    if not lo < hi:
        raise InvalidConfiguration(f"{what} must be an increasing (start, end) pair, got {r!r}")
    return lo, hi


def sample_points(batch_size: int, x_range: Range, y_range: Range,
                  rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """`batch_size` points drawn uniformly from the rectangle, shape (batch_size, 2)."""
    if batch_size < 1:
        raise InvalidConfiguration(f"Batch size must be positive, got {batch_size}")
    rng = rng or get_rng()
    x_lo, x_hi = check_range(x_range, "x range")
    y_lo, y_hi = check_range(y_range, "y range")
    return np.column_stack([rng.uniform(x_lo, x_hi, batch_size), rng.uniform(y_lo, y_hi, batch_size)])


def make_batch(points: np.ndarray, target: Callable[[Tuple[float, float]], Node]) -> List[Tuple[Node, Node]]:
    return [(Node.col_vector([x, y]), target((x, y))) for x, y in points]


def dense_stack(in_dim: int, out_dim: int, n_hidden_layers: int, layer_size: int,
                non_linearity: FunctionLayer, rng: Optional[np.random.Generator] = None) -> List[Layer]:
    """in -> [hidden]* -> out, with the non-linearity after every linear layer but the last."""
    layers: List[Layer] = [Linear(layer_size, in_dim, name="Resizing layer (in)", rng=rng), non_linearity]
    for n in range(n_hidden_layers):
        layers.append(Linear(layer_size, layer_size, name=f"Hidden layer {n}", rng=rng))
        layers.append(non_linearity)
    layers.append(Linear(out_dim, layer_size, name="Resizing layer (out)", rng=rng))
    return layers
