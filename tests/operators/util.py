import time

import numpy as np

__author__ = "Daniel Ching, Viktor Nikitin"
__copyright__ = "Copyright (c) 2020, UChicago Argonne, LLC."
__docformat__ = 'restructuredtext en'

import ptychofft.linalg
import ptychofft.precision
import ptychofft.random

rng = np.random.default_rng(0)


def random_complex(*shape):
    return ptychofft.random.numpy_complex(*shape, rng=rng)


def random_floating(*shape):
    return rng.random(
        size=shape,
        dtype=ptychofft.precision.floating,
    ) - 0.5


class OperatorTests():
    """Provide operator tests for correct adjoint.

    Subclasses set the operator, a model `m` named `m_name`, data `d` named
    `d_name`, the name of the adjoint method, and any other `kwargs` shared by
    the forward and adjoint methods.
    """

    adjoint = 'adj'

    def setUp(self):
        self.operator = None
        self.operator.__enter__()
        self.xp = self.operator.xp
        self.m = None
        self.m_name = ''
        self.d = None
        self.d_name = ''
        self.kwargs = {}
        raise NotImplementedError()

    def tearDown(self):
        self.operator.__exit__(None, None, None)

    def test_adjoint(self):
        """Check that the adjoint operator is correct."""
        d = self.operator.fwd(**{self.m_name: self.m}, **self.kwargs)
        assert d.shape == self.d.shape, (d.shape, self.d.shape)
        m = getattr(self.operator, self.adjoint)(
            **{self.d_name: self.d},
            **self.kwargs,
        )
        assert m.shape == self.m.shape, (m.shape, self.m.shape)
        a = ptychofft.linalg.inner(d.astype('complex128'), self.d)
        b = ptychofft.linalg.inner(self.m, m.astype('complex128'))
        print()
        print('<Fm,   d> = {:.5g}{:+.5g}j'.format(a.real.item(), a.imag.item()))
        print('< m, F*d> = {:.5g}{:+.5g}j'.format(b.real.item(), b.imag.item()))
        self.xp.testing.assert_allclose(a, b, rtol=1e-3, atol=0)

    def test_fwd_time(self):
        """Time the forward operation."""
        start = time.perf_counter()
        self.operator.fwd(**{self.m_name: self.m}, **self.kwargs)
        elapsed = time.perf_counter() - start
        print(f"\n{elapsed:1.3e} seconds")

    def test_adj_time(self):
        """Time the adjoint operation."""
        start = time.perf_counter()
        getattr(self.operator, self.adjoint)(
            **{self.d_name: self.d},
            **self.kwargs,
        )
        elapsed = time.perf_counter() - start
        print(f"\n{elapsed:1.3e} seconds")
