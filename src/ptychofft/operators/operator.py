__author__ = "Daniel Ching, Viktor Nikitin"
__copyright__ = "Copyright (c) 2020, UChicago Argonne, LLC."

from abc import ABC

import numpy

__all__ = [
    'Operator',
]


class Operator(ABC):
    """A base class for Operators.

    An Operator is a context manager which provides the basic functions
    (forward and adjoint) required solve an inverse problem. Operators which
    hold memory release it in :py:meth:`free`, which is called when a
    with-block exits for any reason.

    """
    xp = numpy
    """The module of the array type used by this operator."""

    @classmethod
    def asarray(cls, *args, **kwargs):
        """Convert NumPy arrays into the array-type of this operator."""
        return numpy.asarray(*args, **kwargs)

    @classmethod
    def asnumpy(cls, *args, **kwargs):
        """Convert the arrays of this operator into NumPy arrays."""
        return numpy.asarray(*args, **kwargs)

    def __enter__(self):
        """Return self at start of a with-block."""
        return self

    def __exit__(self, type, value, traceback):
        """Free memory at interruptions or with-block exit."""
        self.free()

    def free(self):
        """Release any memory held by this operator."""
        pass

    def fwd(self, **kwargs):
        """Perform the forward operator."""
        raise NotImplementedError("The forward operator was not implemented!")

    def adj(self, **kwargs):
        """Perform the adjoint operator."""
        raise NotImplementedError("The adjoint operator was not implemented!")
