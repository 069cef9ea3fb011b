# config.py
"""Run configurations for the command line drivers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .nnetwork.core.errors import InvalidConfiguration


def _check_positive(name: str, value, allow_none: bool = False) -> None:
    if value is None and allow_none:
        return
    if value is None or not value > 0:
        raise InvalidConfiguration(f"{name} must be positive, got {value!r}")


def _check_range(name: str, r: Tuple[float, float]) -> None:
    if len(r) != 2 or not r[0] < r[1]:
        raise InvalidConfiguration(f"{name} must be an increasing (start, end) pair, got {r!r}")


@dataclass
class ColorizerConfig:
    """Configuration for the colorize models."""
    # Model
    mode: str = 'palette'  # 'palette' (ColorPredictor) or 'rgb' (ColorSelector)
    n_hidden_layers: int = 2
    layer_size: int = 30
    regularization: Optional[float] = None

    # Training
    cycles: int = 1000
    batch_size: int = 100
    learning_rate: float = 0.1
    learning_rate_end: float = 0.01  # 'rgb' only; log-spaced from learning_rate
    x_range: Tuple[float, float] = (-1.0, 1.0)
    y_range: Tuple[float, float] = (-1.0, 1.0)
    seed: Optional[int] = None

    # Files
    parameter_file: Optional[str] = None  # imported before training when present
    export_file: Optional[str] = None
    plot_path: Optional[str] = 'plot.png'
    history_plot_path: Optional[str] = None
    resolution: int = 200

    # Logging
    verbose: bool = True

    def validate(self) -> "ColorizerConfig":
        if self.mode not in ('palette', 'rgb'):
            raise InvalidConfiguration(f"mode must be 'palette' or 'rgb', got {self.mode!r}")
        if self.n_hidden_layers < 0:
            raise InvalidConfiguration(f"n_hidden_layers must not be negative, got {self.n_hidden_layers}")
        for name in ('layer_size', 'cycles', 'batch_size', 'learning_rate', 'learning_rate_end', 'resolution'):
            _check_positive(name, getattr(self, name))
        _check_positive('regularization', self.regularization, allow_none=True)
        _check_range('x_range', self.x_range)
        _check_range('y_range', self.y_range)
        return self


@dataclass
class RetexterConfig:
    """Configuration for the character level text generator."""
    # Data
    data_path: str = './datasets/names.txt'
    training_ratio: float = 0.9
    lowercase: bool = True

    # Model
    block_size: int = 3
    embed_dim: Optional[int] = 2
    n_hidden_layers: int = 2
    layer_size: int = 30
    regularization: Optional[float] = None

    # Training
    cycles: int = 100
    learning_rate: float = 0.1
    batch_size: int = 1000
    seed: Optional[int] = None

    # Prediction
    prediction_seed: str = 'steph'
    prediction_length: int = 100
    n_predictions: int = 10

    # Files
    parameter_file: Optional[str] = 'names.param'
    export_file: Optional[str] = 'out.param'
    loss_plot_path: Optional[str] = None

    # Logging
    verbose: bool = True

    def validate(self) -> "RetexterConfig":
        if not 0.0 < self.training_ratio <= 1.0:
            raise InvalidConfiguration(f"training_ratio must lie in (0, 1], got {self.training_ratio!r}")
        if self.n_hidden_layers < 0:
            raise InvalidConfiguration(f"n_hidden_layers must not be negative, got {self.n_hidden_layers}")
        for name in ('block_size', 'layer_size', 'cycles', 'learning_rate', 'batch_size'):
            _check_positive(name, getattr(self, name))
        _check_positive('embed_dim', self.embed_dim, allow_none=True)
        _check_positive('regularization', self.regularization, allow_none=True)
        if self.prediction_length < 0 or self.n_predictions < 0:
            raise InvalidConfiguration("prediction_length and n_predictions must not be negative")
        return self
