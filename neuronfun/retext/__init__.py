# retext/__init__.py

from .char_set import CharSet
from .text_predictor import ReText, SENTINEL, create_layers

__all__ = ["CharSet", "ReText", "SENTINEL", "create_layers"]
