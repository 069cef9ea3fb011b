# colorize/__init__.py

from .color_key import Color, ColorKey, QUADRANTS, RGB_VENN_DIAGRAM, quadrants, rgb_venn_diagram
from .color_predictor import ColorPredictor
from .color_selector import ColorSelector

__all__ = [
    "Color", "ColorKey", "QUADRANTS", "RGB_VENN_DIAGRAM", "quadrants", "rgb_venn_diagram",
    "ColorPredictor", "ColorSelector",
]
