"""Provides random number generators for complex data types."""

import numpy as np

import ptychofft.precision

randomizer_np = np.random.default_rng()


def numpy_complex(*shape, rng=None):
    """Return a complex random array in the range [-0.5, 0.5)."""
    rng = randomizer_np if rng is None else rng
    return (rng.random(size=(*shape, 2), dtype=ptychofft.precision.floating) -
            0.5).view(ptychofft.precision.cfloating)[..., 0]
