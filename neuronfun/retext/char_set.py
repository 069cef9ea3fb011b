# retext/char_set.py
from __future__ import annotations

from typing import Iterable, List, Sequence

import numpy as np

from ..nnetwork.core.errors import DecodeError, EncodingError, InvalidConfiguration, ShapeMismatch
from ..nnetwork.core.node import Node


class CharSet:
    """
    Lines of text split into training and validation data, together with the
    ordered alphabet used to translate characters to and from one-hot nodes.

    The alphabet is the sorted set of ASCII letters found in the text.
    Characters added later with `add_character` (e.g. a sentinel) go last.
    """

    def __init__(self, lines: Iterable[str], training_ratio: float = 0.9):
        if not 0.0 <= training_ratio <= 1.0:
            raise InvalidConfiguration(
                f"Training ratio must lie in [0, 1], got {training_ratio!r}"
            )
        lines = [str(line) for line in lines]
        n_training = int(len(lines) * training_ratio)
        self._training: List[str] = lines[:n_training]
        self._validation: List[str] = lines[n_training:]
        self._chars: List[str] = sorted({c for line in lines for c in line
                                         if c.isascii() and c.isalpha()})
        self._index = {c: i for i, c in enumerate(self._chars)}

    @classmethod
    def from_file(cls, path: str, training_ratio: float = 0.9, lowercase: bool = True) -> "CharSet":
        """Read the lines of a UTF-8 text file, optionally lowercased."""
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
        if lowercase:
            text = text.lower()
        return cls(text.splitlines(), training_ratio)

    def add_character(self, c: str) -> None:
        """Append `c` to the alphabet unless it is already known."""
        if len(c) != 1:
            raise InvalidConfiguration(f"Expected a single character, got {c!r}")
        if c not in self._index:
            self._index[c] = len(self._chars)
            self._chars.append(c)

    @property
    def characters(self) -> List[str]:
        return list(self._chars)

    @property
    def training_data(self) -> List[str]:
        return self._training

    @property
    def validation_data(self) -> List[str]:
        return self._validation

    def __len__(self) -> int:
        return len(self._chars)

    def __contains__(self, c) -> bool:
        return c in self._index

    def __repr__(self):
        return f"CharSet({''.join(self._chars)!r}, training={len(self._training)}, validation={len(self._validation)})"

    # ---------------------------- encode / decode ---------------------------- #
    def encode(self, s: str) -> Node:
        """One-hot matrix of shape (alphabet size, len(s)); column j encodes s[j]."""
        out = np.zeros((len(self._chars), len(s)))
        for col, ch in enumerate(s):
            row = self._index.get(ch)
            if row is None:
                raise EncodingError(f"Character {ch!r} is not in the character set")
            out[row, col] = 1.0
        return Node.from_array(out)

    def decode(self, node: Node) -> str:
        """Read a one-hot column node back as a character."""
        if node.shape[1] != 1:
            raise ShapeMismatch(f"Can only decode column vectors, got shape {node.shape}")
        hot = np.flatnonzero(node.values[:, 0] > 0)
        if len(hot) != 1:
            raise DecodeError(
                f"Expected exactly one positive entry, found {len(hot)} in {node.copy_values()!r}"
            )
        index = int(hot[0])
        if index >= len(self._chars):
            raise DecodeError(f"Index {index} is outside the character set of size {len(self._chars)}")
        return self._chars[index]

    def decode_string(self, nodes: Sequence[Node]) -> str:
        return "".join(self.decode(node) for node in nodes)
