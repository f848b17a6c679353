"""Batched, in-place, unnormalized 2D Fourier transforms.

A :py:class:`Plan` fixes the shape of the transformed arrays, the shape of
the frames that they are embedded in, and the number of frames in a batch.
This mirrors the advanced data layout of cuFFT plans; the transforms
themselves are computed by :py:mod:`scipy.fft`.

Neither direction is scaled: the inverse of a forward transform multiplies
the input by the number of transformed elements. Operators which use these
plans account for the scaling themselves.
"""

__author__ = "Daniel Ching"
__copyright__ = "Copyright (c) 2020, UChicago Argonne, LLC."

import enum
import logging
import typing

import numpy as np
import numpy.typing as npt
import scipy.fft

from ptychofft.errors import ResourceExhaustedError, ShapeMismatchError
import ptychofft.precision

logger = logging.getLogger(__name__)

__all__ = [
    'Direction',
    'Plan',
]


class Direction(enum.IntEnum):
    """The sign of the exponent of a Fourier transform."""
    FORWARD = -1
    INVERSE = +1


class Plan():
    """A batch of 2D complex-to-complex transforms.

    Parameters
    ----------
    shape : (2, ) int
        The shape of each transformed array.
    embed : (2, ) int
        The shape of the frames which contain the transformed arrays. Each
        array occupies the minimum corner of its frame.
    batch : int
        The number of frames transformed by one execution.
    workers : int
        The number of threads used by the transforms. Negative values wrap
        around the number of CPUs; -1 uses all of them.

    """

    def __init__(
        self,
        shape: typing.Tuple[int, int],
        embed: typing.Tuple[int, int],
        batch: int,
        workers: int = -1,
    ):
        self.shape = tuple(int(x) for x in shape)
        self.embed = tuple(int(x) for x in embed)
        self.batch = int(batch)
        self.workers = workers
        if (len(self.shape) != 2 or len(self.embed) != 2
                or any(s < 1 for s in self.shape)
                or any(s > e for s, e in zip(self.shape, self.embed))
                or self.batch < 1):
            raise ValueError(
                f"Cannot embed {self.batch} arrays of shape {self.shape} "
                f"in frames of shape {self.embed}.")
        # The pocketfft backend allocates a work array as large as the batch.
        self.nbytes = (self.batch * self.shape[0] * self.shape[1] *
                       np.dtype(ptychofft.precision.cfloating).itemsize)
        try:
            self._work = np.empty(
                (self.batch, *self.shape),
                dtype=ptychofft.precision.cfloating,
            )
        except (MemoryError, ValueError) as e:
            raise ResourceExhaustedError(
                f"Unable to create a plan for {self.batch} transforms of "
                f"shape {self.shape}",
                requested=self.nbytes,
            ) from e
        logger.debug("Created plan for %d x %s transforms in %s frames",
                     self.batch, self.shape, self.embed)

    def __repr__(self):
        return (f"{type(self).__name__}(shape={self.shape}, "
                f"embed={self.embed}, batch={self.batch})")

    def destroy(self):
        """Release the work memory of this plan."""
        self._work = None

    def execute(
        self,
        buffer: npt.NDArray[np.csingle],
        direction: Direction,
    ) -> npt.NDArray[np.csingle]:
        """Transform `buffer` in place and return it.

        The last two dimensions of `buffer` must be `embed`, and the product
        of the leading dimensions must be `batch`.
        """
        if self._work is None:
            raise RuntimeError("This plan has been destroyed.")
        if (buffer.shape[-2:] != self.embed
                or int(np.prod(buffer.shape[:-2])) != self.batch):
            raise ShapeMismatchError(
                'buffer',
                (self.batch, *self.embed),
                buffer.shape,
            )
        if not buffer.flags.c_contiguous:
            raise ValueError("Plans only transform C-contiguous buffers.")
        frames = buffer.reshape(self.batch, *self.embed)
        view = frames[:, :self.shape[0], :self.shape[1]]
        self._work[...] = view
        if Direction(direction) is Direction.FORWARD:
            transform = scipy.fft.fft2
            norm = 'backward'
        else:
            # 'forward' puts the whole normalization on the forward transform
            # so that the inverse is not scaled.
            transform = scipy.fft.ifft2
            norm = 'forward'
        view[...] = transform(
            self._work,
            axes=(-2, -1),
            norm=norm,
            overwrite_x=True,
            workers=self.workers,
        )
        return buffer
