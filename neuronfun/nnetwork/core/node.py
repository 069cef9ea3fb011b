# nnetwork/core/node.py
from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidConfiguration, ShapeMismatch

NodeShape = Tuple[int, int]
BackProp = Callable[["Node"], None]


def _check_shape(shape) -> NodeShape:
    try:
        rows, cols = shape
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Node shape must be a (rows, cols) pair, got {shape!r}")
    if int(rows) != rows or int(cols) != cols or rows < 0 or cols < 0:
        raise InvalidConfiguration(f"Node shape must hold non-negative integers, got {shape!r}")
    return int(rows), int(cols)


class Node:
    """
    One node of the calculation graph: a 2-D array of float64 values together
    with a gradient buffer of the same shape.

    Attributes
    ----------
    values : np.ndarray
        Forward values, shape `(rows, cols)`, row-major.
    grads : np.ndarray
        Gradient accumulator; same shape as `values`. Rewritten by every
        call to `back_propagation()` on a node downstream of this one.
    parents : tuple of Node
        Nodes this one was built from; empty for leaves.
    back_prop : callable or None
        `back_prop(child)` adds the child's contribution to the grads of
        `child.parents`. It receives the child as argument and never captures
        it, so the graph holds no reference cycles.
    op_tag : str
        Name of the op that built the node ("leaf" for leaves).
    """

    __slots__ = ("_values", "_grads", "_parents", "_back_prop", "op_tag", "__weakref__")

    __array_priority__ = 1000  # makes numpy scalars defer to Node's reflected operators

    def __init__(self, shape: NodeShape, values: Any = None, *,
                 parents: Sequence["Node"] = (), back_prop: Optional[BackProp] = None,
                 op_tag: str = "leaf"):
        shape = _check_shape(shape)
        if values is None:
            vals = np.zeros(shape, dtype=np.float64)
        else:
            if not isinstance(values, (int, float, list, tuple, np.ndarray, np.number)):
                raise TypeError(
                    f"Node only accepts numeric values (int, float, list, tuple, ndarray), "
                    f"but got {type(values)}"
                )
            vals = np.array(values, dtype=np.float64)
            if vals.size != shape[0] * shape[1]:
                raise ShapeMismatch(
                    f"{vals.size} values cannot fill a node of shape {shape}"
                )
            vals = vals.reshape(shape)
        self._init(vals, parents, back_prop, op_tag)

    def _init(self, vals: np.ndarray, parents, back_prop, op_tag):
        self._values = vals
        self._grads = np.zeros(vals.shape, dtype=np.float64)
        self._parents = tuple(parents)
        self._back_prop = back_prop
        self.op_tag = op_tag

    @classmethod
    def from_array(cls, vals: np.ndarray, *, parents: Sequence["Node"] = (),
                   back_prop: Optional[BackProp] = None, op_tag: str = "leaf") -> "Node":
        """Wrap an already computed 2-D float64 array without copying it (used by op builders)."""
        node = cls.__new__(cls)
        node._init(vals, parents, back_prop, op_tag)
        return node

    # ----------------------------- constructors ----------------------------- #
    @classmethod
    def scalar(cls, value: float) -> "Node":
        return cls((1, 1), [value])

    @classmethod
    def col_vector(cls, values: Iterable[float]) -> "Node":
        values = list(values)
        return cls((len(values), 1), values)

    @classmethod
    def row_vector(cls, values: Iterable[float]) -> "Node":
        values = list(values)
        return cls((1, len(values)), values)

    @classmethod
    def zeros(cls, shape: NodeShape) -> "Node":
        return cls(shape)

    @classmethod
    def filled(cls, shape: NodeShape, values: Any) -> "Node":
        return cls(shape, values)

    @classmethod
    def rand(cls, shape: NodeShape, rng: Optional[np.random.Generator] = None) -> "Node":
        """Leaf with standard normal values."""
        from .rng import get_rng
        shape = _check_shape(shape)
        rng = rng or get_rng()
        return cls.from_array(rng.standard_normal(shape))

    # ------------------------------- access --------------------------------- #
    @property
    def shape(self) -> NodeShape:
        return self._values.shape

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def grads(self) -> np.ndarray:
        return self._grads

    @property
    def parents(self) -> Tuple["Node", ...]:
        return self._parents

    @property
    def back_prop(self) -> Optional[BackProp]:
        return self._back_prop

    @property
    def is_leaf(self) -> bool:
        return self._back_prop is None

    @property
    def node_type(self) -> str:
        rows, cols = self.shape
        if rows == 0 or cols == 0:
            return "none"
        if rows == 1 and cols == 1:
            return "scalar"
        if cols == 1:
            return "column"
        if rows == 1:
            return "row"
        return "matrix"

    def __len__(self) -> int:
        return self._values.size

    def value_at(self, i: int) -> float:
        return float(self._values.flat[i])

    def grad_at(self, i: int) -> float:
        return float(self._grads.flat[i])

    def copy_values(self) -> np.ndarray:
        return self._values.flatten()

    def copy_grads(self) -> np.ndarray:
        return self._grads.flatten()

    def _flat_input(self, values) -> np.ndarray:
        arr = np.asarray(values, dtype=np.float64).ravel()
        if arr.size != len(self):
            raise ShapeMismatch(
                f"Expected {len(self)} values for a node of shape {self.shape}, got {arr.size}"
            )
        return arr.reshape(self.shape)

    def set_values(self, values) -> None:
        """Overwrite the values in place; views on this node see the change."""
        self._values[...] = self._flat_input(values)

    def set_grads(self, values) -> None:
        self._grads[...] = self._flat_input(values)

    def add_grads(self, values) -> None:
        self._grads += self._flat_input(values)

    def reshape(self, shape: NodeShape) -> None:
        """Coerce the node into a new shape. The number of values must not change."""
        shape = _check_shape(shape)
        if shape[0] * shape[1] != len(self):
            raise InvalidConfiguration(
                f"Size must not change when reshaping: {self.shape} -> {shape}"
            )
        self._values = self._values.reshape(shape)
        self._grads = self._grads.reshape(shape)

    def __repr__(self):
        kind = self.node_type
        if kind == "scalar":
            return f"Node(scalar, value={self.value_at(0)!r}, grad={self.grad_at(0)!r}, op={self.op_tag!r})"
        return f"Node({kind}, shape={self.shape}, op={self.op_tag!r})"

    # ---------------------------- autograd hooks ---------------------------- #
    def back_propagation(self):
        """Recalculate the gradients of every node leading up to this one."""
        from .engine import back_propagate
        return back_propagate(self)

    def descend_grad(self, learning_rate: float) -> None:
        from .engine import sgd_step
        sgd_step(self, learning_rate)

    # Operator overloading; the builders live in nnetwork.ops
    def __add__(self, other):
        from ..ops.arithmetic import add
        return add(self, other)

    def __radd__(self, other):
        from ..ops.arithmetic import add
        return add(other, self)

    def __sub__(self, other):
        from ..ops.arithmetic import sub
        return sub(self, other)

    def __rsub__(self, other):
        from ..ops.arithmetic import sub
        return sub(other, self)

    def __mul__(self, other):
        from ..ops.arithmetic import mul
        return mul(self, other)

    def __rmul__(self, other):
        from ..ops.arithmetic import mul
        return mul(other, self)

    def __matmul__(self, other):
        from ..ops.arithmetic import matmul
        return matmul(self, other)

    def __rmatmul__(self, other):
        from ..ops.arithmetic import matmul
        return matmul(other, self)

    def __truediv__(self, other):
        from ..ops.arithmetic import div
        return div(self, other)

    def __rtruediv__(self, other):
        from ..ops.arithmetic import div
        return div(other, self)

    def __neg__(self):
        from ..ops.arithmetic import neg
        return neg(self)

    def __pow__(self, other):
        from ..ops.arithmetic import pow
        return pow(self, other)

    def element_wise_mul(self, other):
        from ..ops.arithmetic import element_wise_mul
        return element_wise_mul(self, other)

    def inv(self):
        from ..ops.arithmetic import inv
        return inv(self)

    def exp(self):
        from ..ops.transcendental import exp
        return exp(self)

    def log(self):
        from ..ops.transcendental import log
        return log(self)

    def sum(self):
        from ..ops.reduction import sum
        return sum(self)

    def normalized(self):
        from ..ops.reduction import normalize
        return normalize(self)

    def collapse(self, rng: Optional[np.random.Generator] = None):
        from ..ops.reduction import collapse
        return collapse(self, rng)
