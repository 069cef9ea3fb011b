# plotting.py
"""Figures for the command line drivers (written to files, no display)."""
from __future__ import annotations

from typing import Sequence, Tuple

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
import numpy as np

# NONE, RED, BLUE, BOTH
PALETTE_COLORS = ['black', 'red', 'blue', 'white']


def _grid(x_range, y_range, resolution):
    xs = np.linspace(x_range[0], x_range[1], resolution)
    ys = np.linspace(y_range[0], y_range[1], resolution)
    return xs, ys


def plot_palette_predictions(predictor, x_range=(-1.0, 1.0), y_range=(-1.0, 1.0),
                             resolution: int = 200, save_path=None):
    """Predicted palette color over a grid of points."""
    xs, ys = _grid(x_range, y_range, resolution)
    Z = np.zeros((len(ys), len(xs)), dtype=int)
    for i, y in enumerate(ys):
        for j, x in enumerate(xs):
            Z[i, j] = predictor.predict_index((x, y))

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.imshow(Z, origin='lower', extent=(x_range[0], x_range[1], y_range[0], y_range[1]),
              cmap=ListedColormap(PALETTE_COLORS), vmin=0, vmax=len(PALETTE_COLORS) - 1,
              interpolation='nearest', aspect='auto')
    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_title('Predicted colors')

    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"\nFigure saved to: {save_path}")
    plt.close(fig)
    return Z


def plot_rgb_predictions(selector, x_range=(-1.0, 1.0), y_range=(-1.0, 1.0),
                         resolution: int = 200, save_path=None):
    """Predicted channel intensities over a grid of points, shown as an RGB image."""
    xs, ys = _grid(x_range, y_range, resolution)
    n_channels = selector.key.n_channels
    img = np.zeros((len(ys), len(xs), 3))
    for i, y in enumerate(ys):
        for j, x in enumerate(xs):
            img[i, j, :min(n_channels, 3)] = selector.predict((x, y))[:3]

    fig, ax = plt.subplots(figsize=(8, 8))
    ax.imshow(np.clip(img, 0.0, 1.0), origin='lower',
              extent=(x_range[0], x_range[1], y_range[0], y_range[1]))
    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_title('Predicted intensities')

    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"\nFigure saved to: {save_path}")
    plt.close(fig)
    return img


def plot_training_history(history: Sequence[Tuple[float, float]], save_path=None):
    """Loss per cycle, and loss against learning rate, on log scales."""
    rates = np.array([r for r, _ in history])
    losses = np.array([l for _, l in history])

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))
    axes[0].semilogy(np.arange(len(losses)), losses, 'b-', linewidth=1)
    axes[0].set_xlabel('Cycle')
    axes[0].set_ylabel('Loss')
    axes[0].set_title('Training loss')
    axes[0].grid(True, alpha=0.3)

    axes[1].loglog(rates, losses, 'r.', markersize=2)
    axes[1].set_xlabel('Learning rate')
    axes[1].set_ylabel('Loss')
    axes[1].set_title('Loss vs learning rate')
    axes[1].grid(True, alpha=0.3)

    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"\nFigure saved to: {save_path}")
    plt.close(fig)


def plot_losses(losses: Sequence[float], save_path=None, title: str = 'Training loss'):
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(np.arange(len(losses)), losses, 'b-', linewidth=1.5)
    ax.set_xlabel('Cycle')
    ax.set_ylabel('Loss')
    ax.set_title(title)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"\nFigure saved to: {save_path}")
    plt.close(fig)
