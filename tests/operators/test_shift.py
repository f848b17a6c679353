#!/usr/bin/env python
# -*- coding: utf-8 -*-

import unittest

import numpy as np

from ptychofft.operators import kernels, plan_grid
import ptychofft.precision

from .util import random_complex, rng

__author__ = "Daniel Ching, Viktor Nikitin"
__copyright__ = "Copyright (c) 2020, UChicago Argonne, LLC."
__docformat__ = 'restructuredtext en'


class TestShiftKernels(unittest.TestCase):
    """Test the sub-pixel shift kernel pair."""

    def setUp(self, ntheta=2, nscan=5, nprb=6, detector_shape=(8, 8)):
        self.ntheta = ntheta
        self.nscan = nscan
        self.nprb = nprb
        self.scan = (rng.random((ntheta, nscan, 2)) * 10).astype(
            ptychofft.precision.floating)
        self.shift_v = np.zeros((ntheta, nscan), dtype='complex64')
        self.shift_h = np.zeros((ntheta, nscan), dtype='complex64')
        self.grid_scan = plan_grid(nscan, ntheta, 1, block=(2, 1, 1))
        self.grid_probe = plan_grid(nprb * nprb, nscan, ntheta, block=(7, 2, 1))
        self.farplane = random_complex(ntheta, nscan, *detector_shape)

    def _take_shifts(self, direction):
        kernels.take_shifts(*self.grid_scan, self.shift_v, self.shift_h,
                            self.scan, direction, self.nprb)

    def test_take_shifts(self):
        self._take_shifts(+1)
        rem = self.scan - np.trunc(self.scan)
        np.testing.assert_allclose(
            self.shift_v,
            np.exp(2j * np.pi * rem[..., 0] / self.nprb),
            atol=1e-6,
        )
        np.testing.assert_allclose(
            self.shift_h,
            np.exp(2j * np.pi * rem[..., 1] / self.nprb),
            atol=1e-6,
        )
        np.testing.assert_allclose(np.abs(self.shift_v), 1, rtol=1e-6)

    def test_negative_fractions(self):
        """The fraction keeps the sign of the coordinate."""
        self.scan[0, 0] = -0.25, 3.5
        self.scan[1, 2] = 2, -0.75
        self._take_shifts(+1)
        np.testing.assert_allclose(
            self.shift_v[0, 0],
            np.exp(2j * np.pi * -0.25 / self.nprb),
            atol=1e-6,
        )
        np.testing.assert_allclose(
            self.shift_h[0, 0],
            np.exp(2j * np.pi * 0.5 / self.nprb),
            atol=1e-6,
        )
        np.testing.assert_allclose(self.shift_v[1, 2], 1, atol=1e-7)
        np.testing.assert_allclose(
            self.shift_h[1, 2],
            np.exp(2j * np.pi * -0.75 / self.nprb),
            atol=1e-6,
        )

    def test_direction_conjugates(self):
        self._take_shifts(+1)
        forward = self.shift_v.copy(), self.shift_h.copy()
        self._take_shifts(-1)
        np.testing.assert_allclose(self.shift_v, forward[0].conj(), atol=1e-7)
        np.testing.assert_allclose(self.shift_h, forward[1].conj(), atol=1e-7)

    def test_integer_positions_are_identity(self):
        self.scan = np.trunc(self.scan)
        self._take_shifts(+1)
        np.testing.assert_array_equal(self.shift_v, 1)
        np.testing.assert_array_equal(self.shift_h, 1)
        x = self.farplane.copy()
        kernels.apply_shifts(*self.grid_probe, x, self.shift_v, self.shift_h,
                             self.nprb)
        np.testing.assert_array_equal(x, self.farplane)

    def test_apply_shifts(self):
        self._take_shifts(+1)
        x = self.farplane.copy()
        kernels.apply_shifts(*self.grid_probe, x, self.shift_v, self.shift_h,
                             self.nprb)
        nprb = self.nprb
        freq = np.fft.fftfreq(nprb) * nprb
        rem = self.scan - np.trunc(self.scan)
        ramp = np.exp(2j * np.pi * (
            freq[:, None] * rem[..., 0, None, None] +
            freq[None, :] * rem[..., 1, None, None]) / nprb)
        np.testing.assert_allclose(
            x[..., :nprb, :nprb],
            self.farplane[..., :nprb, :nprb] * ramp,
            rtol=1e-5,
            atol=1e-6,
        )
        np.testing.assert_array_equal(x[..., nprb:, :],
                                      self.farplane[..., nprb:, :])

    def test_half_pixel_shift_of_linear_ramp(self):
        """A shift moves a band-limited signal by a sub-pixel amount."""
        nprb = self.nprb
        self.scan[...] = 0.5
        self._take_shifts(+1)
        cols = np.arange(nprb)
        signal = np.exp(2j * np.pi * cols / nprb)
        x = np.zeros_like(self.farplane)
        x[..., :nprb, :nprb] = signal[None, :]
        x[..., :nprb, :nprb] = np.fft.fft2(x[..., :nprb, :nprb])
        kernels.apply_shifts(*self.grid_probe, x, self.shift_v, self.shift_h,
                             self.nprb)
        shifted = np.fft.ifft2(x[..., :nprb, :nprb])
        expected = np.exp(2j * np.pi * (cols + 0.5) / nprb)
        np.testing.assert_allclose(
            shifted,
            np.broadcast_to(expected, shifted.shape),
            atol=1e-5,
        )


if __name__ == '__main__':
    unittest.main()
