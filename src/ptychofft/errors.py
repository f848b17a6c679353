"""Exceptions raised by the ptychography operator.

All exceptions share the :py:class:`PtychoError` base. Each one also inherits
from the builtin exception that callers would otherwise expect, so
``except ValueError`` and ``except MemoryError`` keep working.
"""

__author__ = "Daniel Ching, Viktor Nikitin"
__copyright__ = "Copyright (c) 2020, UChicago Argonne, LLC."

__all__ = [
    'PtychoError',
    'InvalidShapeError',
    'ShapeMismatchError',
    'ResourceExhaustedError',
    'PreconditionViolation',
]


class PtychoError(Exception):
    """Base class for errors raised by ptychofft."""


class InvalidShapeError(PtychoError, ValueError):
    """The problem sizes given to an operator constructor are inconsistent."""


class ShapeMismatchError(PtychoError, ValueError):
    """An array passed to an operator call does not have the expected shape.

    Attributes
    ----------
    name : str
        The name of the offending parameter.
    expected : tuple
        The shape fixed when the operator was constructed.
    actual : tuple
        The shape that was provided.

    """

    def __init__(self, name, expected, actual):
        self.name = name
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(
            f"{name} must have shape {self.expected} not {self.actual}.")


class ResourceExhaustedError(PtychoError, MemoryError):
    """Memory for a buffer or a transform plan could not be acquired.

    Attributes
    ----------
    requested : int
        The number of bytes that were requested.

    """

    def __init__(self, message, requested=0):
        self.requested = int(requested)
        super().__init__(f"{message} ({self.requested:,d} bytes requested)")


class PreconditionViolation(PtychoError, ValueError):
    """A documented precondition of the operator does not hold.

    The operator itself never raises this error; its kernels do not check
    their inputs. Use :py:func:`ptychofft.check_allowed_positions` to test
    the precondition before calling the operator.
    """
