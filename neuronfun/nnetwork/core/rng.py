# nnetwork/core/rng.py
"""
The only process-wide state of the package: the random generator used for
parameter initialization and for sampling predictions. One generator per
thread, created lazily.
"""
from __future__ import annotations

import threading
from typing import Optional

import numpy as np

_local = threading.local()


def get_rng() -> np.random.Generator:
    """Return the generator of the calling thread."""
    rng = getattr(_local, "rng", None)
    if rng is None:
        rng = np.random.default_rng()
        _local.rng = rng
    return rng


def seed(value: Optional[int] = None) -> np.random.Generator:
    """Reseed the calling thread's generator (`None` draws fresh entropy)."""
    _local.rng = np.random.default_rng(value)
    return _local.rng
