# nnetwork/mlp/parameter_bundle.py
"""
Snapshot of the parameter values of a list of layers, and its text format::

    Layer 0: <layer name>
    Parameter: 0
    <value>
    ...
    Parameter: 1
    ...
    Layer 1: <layer name>

UTF-8, one item per LF-terminated line. Values are written with `repr`, so a
round trip through a file reproduces every float bit for bit.
"""
from __future__ import annotations

import logging
import re
import warnings
from typing import Iterable, List, Optional, Tuple

from ..core.errors import (
    BundleIOError, BundleNotFoundError, BundleParseError, BundleTruncatedError,
    InvalidConfiguration, LayerNameWarning, ShapeMismatch,
)

logger = logging.getLogger(__name__)

_LAYER_RE = re.compile(r"^Layer (\d+): (.*)$")
_PARAM_RE = re.compile(r"^Parameter: (\d+)$")

LayerData = Tuple[str, List[List[float]]]


def _check_name(name) -> str:
    name = str(name)
    if "\n" in name:
        raise InvalidConfiguration(f"Layer name {name!r} cannot be stored: it contains a line break")
    return name


class ParameterBundle:
    """Ordered `(layer name, [flat parameter values])` pairs."""

    def __init__(self, data: Optional[Iterable[LayerData]] = None, source: Optional[str] = None):
        self._data: List[LayerData] = [
            (_check_name(name), [[float(v) for v in param] for param in params])
            for name, params in (data or ())
        ]
        # file the bundle was read from, if any
        self.source = source

    @classmethod
    def capture(cls, layers) -> "ParameterBundle":
        """Copy the current values of every parameter of every layer."""
        return cls(
            (layer.name, [param.copy_values().tolist() for param in layer.param_iter()])
            for layer in layers
        )

    @property
    def data(self) -> List[LayerData]:
        return self._data

    def __len__(self):
        return len(self._data)

    def __eq__(self, other):
        if not isinstance(other, ParameterBundle):
            return NotImplemented
        return self._data == other._data

    def __repr__(self):
        names = [name for name, _ in self._data]
        return f"ParameterBundle(layers={names!r})"

    # ---------------------------------- apply ---------------------------------- #
    def apply(self, layers) -> None:
        """
        Write the stored values into the parameters of `layers`.

        A differing layer name only warns. Stored data that stops short of the
        network (a file cut off at a line boundary) raises BundleTruncatedError.
        Otherwise a different number of layers or of parameters in a layer
        raises InvalidConfiguration, and a parameter of a different size
        raises ShapeMismatch.
        """
        layers = list(layers)
        if self._stops_short_of(layers):
            raise BundleTruncatedError(
                f"Bundle ends early: {len(self._data)} of {len(layers)} layers stored",
                path=self.source,
            )
        if len(layers) != len(self._data):
            raise InvalidConfiguration(
                f"Bundle holds {len(self._data)} layers, network has {len(layers)}"
            )
        # validate everything before writing anything
        plan = []
        for (stored_name, stored_params), layer in zip(self._data, layers):
            if stored_name != layer.name:
                msg = f"Layer name {layer.name!r} does not match stored layer name {stored_name!r}"
                logger.warning(msg)
                warnings.warn(msg, LayerNameWarning, stacklevel=2)
            params = list(layer.param_iter_mut())
            if len(params) != len(stored_params):
                raise InvalidConfiguration(
                    f"Layer {layer.name!r} has {len(params)} parameters, "
                    f"stored layer has {len(stored_params)}"
                )
            for stored, param in zip(stored_params, params):
                if len(stored) != len(param):
                    raise ShapeMismatch(
                        f"Parameter of size {len(param)} in layer {layer.name!r} "
                        f"does not match stored size {len(stored)}"
                    )
                plan.append((param, stored))
        for param, stored in plan:
            param.set_values(stored)

    def _stops_short_of(self, layers) -> bool:
        """True when the stored parameter sizes are a strict prefix of those of `layers`."""
        if len(self._data) > len(layers):
            return False
        last = len(self._data) - 1
        for i, ((_, stored_params), layer) in enumerate(zip(self._data, layers)):
            sizes = [len(param) for param in layer.param_iter()]
            stored = [len(param) for param in stored_params]
            if i < last:
                if stored != sizes:
                    return False
                continue
            n = len(stored)
            if n > len(sizes):
                return False
            if n and (stored[:-1] != sizes[:n - 1] or stored[-1] > sizes[n - 1]):
                return False
            return len(self._data) < len(layers) or stored != sizes
        return len(self._data) < len(layers)

    # ---------------------------------- export --------------------------------- #
    def to_text(self) -> str:
        lines = []
        for i, (name, params) in enumerate(self._data):
            lines.append(f"Layer {i}: {name}")
            for n, param in enumerate(params):
                lines.append(f"Parameter: {n}")
                lines.extend(repr(float(v)) for v in param)
        return "".join(line + "\n" for line in lines)

    def export_parameters(self, path: str) -> str:
        """
        Write the bundle to a new file and return its path.

        An existing file is never overwritten: `path.0`, `path.1`, ... are
        tried in turn until a free name is found.
        """
        text = self.to_text()
        candidate = str(path)
        counter = 0
        while True:
            try:
                with open(candidate, "x", encoding="utf-8", newline="\n") as fh:
                    fh.write(text)
                break
            except FileExistsError:
                candidate = f"{path}.{counter}"
                counter += 1
            except OSError as err:
                raise BundleIOError(f"Export parameters failed: {err}", path=candidate) from err
        if counter > 0:
            logger.warning("Changing export filename to %s", candidate)
        logger.info("Exported %d layers to %s", len(self._data), candidate)
        return candidate

    # ---------------------------------- import --------------------------------- #
    @classmethod
    def from_text(cls, text: str, path: Optional[str] = None) -> "ParameterBundle":
        if not text:
            raise BundleTruncatedError("Parameter file is empty", path=path)
        if not text.endswith("\n"):
            raise BundleTruncatedError("Parameter file does not end with a newline", path=path)

        data: List[LayerData] = []
        current: Optional[List[float]] = None

        def close_param(line_no):
            if current is not None and not current:
                raise BundleTruncatedError(
                    f"Parameter without values before line {line_no}", path=path
                )

        lines = text[:-1].split("\n")
        for line_no, line in enumerate(lines, start=1):
            m = _LAYER_RE.match(line)
            if m:
                close_param(line_no)
                if int(m.group(1)) != len(data):
                    raise BundleParseError(
                        f"Expected layer {len(data)}, found {line!r}", path, line_no
                    )
                data.append((m.group(2), []))
                current = None
                continue
            m = _PARAM_RE.match(line)
            if m:
                if not data:
                    raise BundleParseError(f"Parameter outside a layer: {line!r}", path, line_no)
                close_param(line_no)
                params = data[-1][1]
                if int(m.group(1)) != len(params):
                    raise BundleParseError(
                        f"Expected parameter {len(params)}, found {line!r}", path, line_no
                    )
                current = []
                params.append(current)
                continue
            if line.startswith(("Layer", "Parameter")):
                raise BundleParseError(f"Malformed header {line!r}", path, line_no)
            if current is None:
                raise BundleParseError(f"Value outside a parameter: {line!r}", path, line_no)
            try:
                current.append(float(line))
            except ValueError:
                raise BundleParseError(f"Not a number: {line!r}", path, line_no) from None
        close_param(len(lines) + 1)
        return cls(data, source=path)

    @classmethod
    def import_parameters(cls, path: str) -> "ParameterBundle":
        """Read a bundle written by `export_parameters`."""
        try:
            with open(path, "r", encoding="utf-8", newline="") as fh:
                text = fh.read()
        except FileNotFoundError as err:
            raise BundleNotFoundError(f"No parameter file {path}", path=str(path)) from err
        except UnicodeDecodeError as err:
            raise BundleParseError(f"Parameter file {path} is not UTF-8", path=str(path)) from err
        except OSError as err:
            raise BundleIOError(f"Cannot read parameter file {path}: {err}", path=str(path)) from err
        bundle = cls.from_text(text, str(path))
        logger.info("Imported %d layers from %s", len(bundle), path)
        return bundle
