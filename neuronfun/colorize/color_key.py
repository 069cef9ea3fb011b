# colorize/color_key.py
from __future__ import annotations

from enum import IntEnum
from typing import Callable, Tuple

from ..nnetwork.core.errors import InvalidConfiguration
from ..nnetwork.core.node import Node

Coords = Tuple[float, float]
ColorFunction = Callable[[Coords], Tuple[bool, ...]]


class Color(IntEnum):
    """Four-color palette; the value is the bitmask of the (red, blue) flags."""
    NONE = 0
    RED = 1
    BLUE = 2
    BOTH = 3

    @classmethod
    def from_flags(cls, is_red: bool, is_blue: bool) -> "Color":
        return cls(int(bool(is_red)) | (int(bool(is_blue)) << 1))

    @property
    def flags(self) -> Tuple[bool, bool]:
        return bool(self & 1), bool(self & 2)


class ColorKey:
    """
    Ground truth for the colorize models: maps a point `(x, y)` to one flag
    per channel, e.g. `(red, blue)` for the palette or `(r, g, b)`.
    """

    def __init__(self, function: ColorFunction, n_channels: int = 2):
        if n_channels < 1:
            raise InvalidConfiguration(f"A color key needs at least one channel, got {n_channels}")
        self._function = function
        self.n_channels = n_channels

    def flags(self, coords: Coords) -> Tuple[bool, ...]:
        flags = tuple(bool(f) for f in self._function(coords))
        if len(flags) != self.n_channels:
            raise InvalidConfiguration(
                f"Color function returned {len(flags)} flags, expected {self.n_channels}"
            )
        return flags

    def index(self, coords: Coords) -> int:
        """Palette index: bit i is set when channel i is on."""
        return sum(1 << i for i, on in enumerate(self.flags(coords)) if on)

    @property
    def palette_size(self) -> int:
        return 1 << self.n_channels

    def color(self, coords: Coords) -> Color:
        if self.n_channels != 2:
            raise InvalidConfiguration("Color is only defined for two-channel keys")
        return Color(self.index(coords))

    def one_hot(self, coords: Coords) -> Node:
        """Column node over the palette with a single 1 at `index(coords)`."""
        vals = [0.0] * self.palette_size
        vals[self.index(coords)] = 1.0
        return Node.col_vector(vals)

    def intensities(self, coords: Coords) -> Node:
        """Column node with 1.0 for every channel that is on."""
        return Node.col_vector([1.0 if on else 0.0 for on in self.flags(coords)])


def quadrants(coords: Coords) -> Tuple[bool, bool]:
    """Red left of the y axis, blue below the x axis."""
    x, y = coords
    return x < 0.0, y < 0.0


def rgb_venn_diagram(coords: Coords) -> Tuple[bool, bool, bool]:
    """Three overlapping discs of radius 0.5."""
    x, y = coords
    return (
        (x - 0.2165) ** 2 + (y + 0.125) ** 2 < 0.25,
        (x + 0.2165) ** 2 + (y + 0.125) ** 2 < 0.25,
        x ** 2 + (y - 0.25) ** 2 < 0.25,
    )


QUADRANTS = ColorKey(quadrants, 2)
RGB_VENN_DIAGRAM = ColorKey(rgb_venn_diagram, 3)
