"""Linear algebra routines with broadcasting and complex value support.

These are the reductions used to verify that the forward and adjoint
operators are a matched pair.
"""

import numpy as np


def norm(x, axis=None, keepdims=False):
    """Return the vector 2-norm of x along given axis."""
    return np.sqrt(np.sum((x * x.conj()).real, axis=axis, keepdims=keepdims))


def inner(x, y, axis=None, keepdims=False):
    """Return the complex inner product; the order of the operands matters."""
    return (x * y.conj()).sum(axis=axis, keepdims=keepdims)
