# nnetwork/mlp/layers.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List, Optional, Tuple

import numpy as np

from ..core.errors import InvalidConfiguration
from ..core.node import Node, NodeShape, _check_shape


class Layer(ABC):
    """
    One stage of a MultiLayer: a function from node to node, possibly owning
    parameter leaves. Layers hold no gradients; those live on the nodes.
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def forward(self, inp: Node) -> Node:
        ...

    def param_iter(self) -> Iterator[Node]:
        return iter(())

    def param_iter_mut(self) -> Iterator[Node]:
        # Nodes are mutated through set_values / descend_grad
        return self.param_iter()

    def parameters(self) -> List[Node]:
        return list(self.param_iter())

    @property
    def shape(self) -> Optional[NodeShape]:
        return None

    def __call__(self, inp: Node) -> Node:
        return self.forward(inp)


class Linear(Layer):
    """
    Affine layer `W·x + b`.

    Parameters
    ----------
    out_rows, in_rows : int
        Shape of the weight matrix W, `(out_rows, in_rows)`.
    biased : bool
        Whether to add a bias column of `out_rows` values.
    name : str
        Layer name, stored in parameter files.
    rng : numpy.random.Generator, optional
        Generator for the standard normal initialization.
    """

    def __init__(self, out_rows: int, in_rows: int, biased: bool = True,
                 name: str = "Linear", rng: Optional[np.random.Generator] = None):
        super().__init__(name)
        if out_rows < 1 or in_rows < 1:
            raise InvalidConfiguration(
                f"Linear layer needs a non-empty weight, got ({out_rows}, {in_rows})"
            )
        self._w = Node.rand((out_rows, in_rows), rng)
        self._b = Node.rand((out_rows, 1), rng) if biased else None

    @classmethod
    def from_nodes(cls, w: Node, b: Optional[Node] = None, name: str = "Linear") -> "Linear":
        """Wrap existing parameter nodes."""
        if len(w) == 0:
            raise InvalidConfiguration("Linear layer needs a non-empty weight")
        if b is not None and b.shape[0] != w.shape[0]:
            raise InvalidConfiguration(
                f"Bias rows {b.shape[0]} do not match weight rows {w.shape[0]}"
            )
        layer = cls.__new__(cls)
        Layer.__init__(layer, name)
        layer._w = w
        layer._b = b
        return layer

    @property
    def weight(self) -> Node:
        return self._w

    @property
    def bias(self) -> Optional[Node]:
        return self._b

    @property
    def shape(self) -> NodeShape:
        return self._w.shape

    def param_iter(self) -> Iterator[Node]:
        yield self._w
        if self._b is not None:
            yield self._b

    def forward(self, inp: Node) -> Node:
        out = self._w @ inp
        if self._b is None:
            return out
        cols = out.shape[1]
        if cols == 1:
            return out + self._b
        # broadcast the bias over the columns: b·1ᵀ
        ones = Node.filled((1, cols), np.ones(cols))
        return out + self._b @ ones

    def __repr__(self):
        return f"Linear({self.name!r}, shape={self.shape}, biased={self._b is not None})"


class FunctionLayer(Layer):
    """Parameterless layer applying `f` (e.g. an activation) to its input."""

    def __init__(self, f: Callable[[Node], Node], name: str, formula: str = ""):
        super().__init__(name)
        self._f = f
        self.formula = formula or getattr(f, "__name__", "f")

    def forward(self, inp: Node) -> Node:
        return self._f(inp)

    def __repr__(self):
        return f"FunctionLayer({self.formula!r}, name={self.name!r})"


def _reshape_back_prop(child):
    parent = child.parents[0]
    parent.grads[...] += child.grads.reshape(parent.shape)


class Reshape(Layer):
    """Reinterpret the input with a new shape; values keep their row-major order."""

    def __init__(self, shape: NodeShape, name: str = "Reshape"):
        super().__init__(name)
        self._shape: Tuple[int, int] = _check_shape(shape)

    @property
    def shape(self) -> NodeShape:
        return self._shape

    def forward(self, inp: Node) -> Node:
        rows, cols = self._shape
        if rows * cols != len(inp):
            raise InvalidConfiguration(
                f"Cannot reshape {inp.shape} into {self._shape}: size must not change"
            )
        # view on the input storage
        return Node.from_array(inp.values.reshape(self._shape), parents=(inp,),
                               back_prop=_reshape_back_prop, op_tag="reshape")

    def __repr__(self):
        return f"Reshape({self.name!r}, shape={self._shape})"
