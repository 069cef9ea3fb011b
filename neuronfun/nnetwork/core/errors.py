# nnetwork/core/errors.py
"""
Error kinds raised by the calculation graph, the layers and the parameter
bundle. Everything derives from `NeuronError` so callers can catch the whole
family, while the builtin second base keeps `except ValueError` style code
working.
"""


class NeuronError(Exception):
    """Base class for all errors raised by neuronfun."""


class ShapeMismatch(NeuronError, ValueError):
    """An op or a layer received operands whose shapes violate its rules."""


class InvalidConfiguration(NeuronError, ValueError):
    """Bad construction arguments: regularization, empty layer list, reshape size..."""


class NumericDomain(NeuronError, ArithmeticError):
    """A value left the domain of an op, e.g. log of a non-positive number."""


class BundleIOError(NeuronError, OSError):
    """Parameter bundle could not be read or written."""

    # Callers may fall back to random initialization on these.
    recoverable = False

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class BundleNotFoundError(BundleIOError):
    recoverable = True


class BundleTruncatedError(BundleIOError):
    recoverable = True


class BundleParseError(BundleIOError):
    """Malformed line in a parameter file."""

    def __init__(self, message, path=None, line_no=None):
        super().__init__(message, path)
        self.line_no = line_no


class EncodingError(NeuronError, ValueError):
    """A character is not part of the character set."""


class DecodeError(NeuronError, ValueError):
    """A node cannot be read back as a single one-hot character."""


class LayerNameWarning(UserWarning):
    """Stored layer name differs from the layer receiving the parameters."""


def is_recoverable(err: BaseException) -> bool:
    """True for bundle errors after which random initialization is acceptable."""
    return isinstance(err, BundleIOError) and err.recoverable
