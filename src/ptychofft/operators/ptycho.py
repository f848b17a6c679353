"""Defines a ptychography operator based on parallel kernels and batched FFTs.

The operator is a context manager which owns all of its memory. Instances
should be created in a with-block so that the memory is released when the
block exits for any reason, including interruptions (CTRL + C).

"""

__author__ = "Daniel Ching, Viktor Nikitin"
__copyright__ = "Copyright (c) 2020, UChicago Argonne, LLC."

import enum
import logging
import math
import typing

import numpy as np
import numpy.typing as npt

from ptychofft.errors import (
    InvalidShapeError,
    ResourceExhaustedError,
    ShapeMismatchError,
)
import ptychofft.precision

from . import kernels
from .fft import Direction, Plan
from .grid import plan_grid
from .operator import Operator

logger = logging.getLogger(__name__)

__all__ = [
    'PtychoFFT',
    'Target',
]


class Target(enum.Enum):
    """The unknown that an adjoint operator maps back to."""
    OBJECT = 'object'
    PROBE = 'probe'


class PtychoFFT(Operator):
    """A ptychography operator and its adjoints.

    The forward operator extracts a probe-shaped window of the object at the
    integer part of each scan position, shifts the window by the fractional
    part of the position using a Fourier phase ramp, multiplies it by the
    probe, and propagates it to the detector plane with a unitary FFT. The
    adjoint operators map farplane waves back to the object (probe fixed) or
    to the probe (object fixed).

    One instance may be used for many calls, but calls must not overlap
    because every call reuses the same buffers.

    Attributes
    ----------
    nscan : int
        The number of scan positions at each angular view.
    probe_shape : int
        The pixel width and height of the (square) probe illumination.
    detector_shape : (int, int)
        The pixel height and width of the detector; ndetx, ndety.
    nz, n : int
        The pixel height and width of the reconstructed grid.
    ntheta : int
        The number of angular views.
    workers : int
        The number of threads used by the FFTs.

    Parameters
    ----------
    psi : (ntheta, nz, n) complex64
        The complex wavefront modulation of the object.
    probe : (ntheta, probe_shape, probe_shape) complex64
        The complex illumination function.
    farplane : (ntheta, nscan, ndetx, ndety) complex64
        The wavefronts hitting the detector.
    scan : (ntheta, nscan, 2) float32
        Coordinates of the minimum corner of the probe grid for each
        measurement in the coordinate system of psi. Vertical coordinates
        first, horizontal coordinates second. The integer part of a
        coordinate is rounded toward zero and places the window; the
        fractional part, in (-1, 1), shifts it. Windows must lie inside psi;
        this is not checked.

    Raises
    ------
    InvalidShapeError
        The probe does not fit inside the detector or inside psi, or a size
        is not positive.
    ResourceExhaustedError
        Memory for the buffers or transform plans could not be acquired.

    """

    def __init__(
        self,
        nscan: int,
        probe_shape: int,
        detector_shape: typing.Union[int, typing.Tuple[int, int]],
        nz: int,
        n: int,
        ntheta: int = 1,
        workers: int = -1,
    ):
        """Please see help(PtychoFFT) for more info."""
        if np.ndim(detector_shape) == 0:
            detector_shape = (detector_shape, detector_shape)
        if len(detector_shape) != 2:
            raise InvalidShapeError(
                f"detector_shape must have 2 dimensions not {detector_shape}.")
        self.nscan = int(nscan)
        self.probe_shape = int(probe_shape)
        self.detector_shape = tuple(int(x) for x in detector_shape)
        self.nz = int(nz)
        self.n = int(n)
        self.ntheta = int(ntheta)
        self.workers = workers
        self._check_sizes()
        ndetx, ndety = self.detector_shape
        nprb = self.probe_shape

        self._buffers = {}
        self._plans = []
        try:
            self.psi = self._allocate('psi', (self.ntheta, self.nz, self.n))
            self.probe = self._allocate('probe', (self.ntheta, nprb, nprb))
            self.scan = self._allocate(
                'scan',
                (self.ntheta, self.nscan, 2),
                dtype=ptychofft.precision.floating,
            )
            self.farplane = self._allocate(
                'farplane',
                (self.ntheta, self.nscan, ndetx, ndety),
            )
            self.patches = self._allocate(
                'patches',
                (self.ntheta, self.nscan, ndetx, ndety),
            )
            self.shift_v = self._allocate('shift_v', (self.ntheta, self.nscan))
            self.shift_h = self._allocate('shift_h', (self.ntheta, self.nscan))
            self.plan_detector = self._plan((ndetx, ndety))
            self.plan_probe = self._plan((nprb, nprb))
        except ResourceExhaustedError:
            self.free()
            raise

        self.grid_probe = plan_grid(nprb * nprb, self.nscan, self.ntheta)
        self.grid_detector = plan_grid(ndetx * ndety, self.nscan, self.ntheta)
        self.grid_scan = plan_grid(self.nscan, self.ntheta, 1)
        self.grid_object = plan_grid(self.nz, self.ntheta)
        logger.debug("%s allocated %s bytes", self, f"{self.nbytes:,d}")

    def __repr__(self):
        return (f"{type(self).__name__}(nscan={self.nscan}, "
                f"probe_shape={self.probe_shape}, "
                f"detector_shape={self.detector_shape}, nz={self.nz}, "
                f"n={self.n}, ntheta={self.ntheta})")

    @property
    def nbytes(self) -> int:
        """The number of bytes held by the buffers and plans."""
        return (sum(x.nbytes for x in self._buffers.values()) +
                sum(p.nbytes for p in self._plans))

    def _check_sizes(self):
        sizes = {
            'nscan': self.nscan,
            'probe_shape': self.probe_shape,
            'ndetx': self.detector_shape[0],
            'ndety': self.detector_shape[1],
            'nz': self.nz,
            'n': self.n,
            'ntheta': self.ntheta,
        }
        for name, size in sizes.items():
            if size < 1:
                raise InvalidShapeError(f"{name} must be positive not {size}.")
        if min(self.detector_shape) < self.probe_shape:
            raise InvalidShapeError(
                f"The probe of width {self.probe_shape} does not fit in the "
                f"detector of shape {self.detector_shape}.")
        if min(self.nz, self.n) < self.probe_shape:
            raise InvalidShapeError(
                f"The probe of width {self.probe_shape} does not fit in psi "
                f"of shape {(self.nz, self.n)}.")

    def _allocate(self, name, shape, dtype=ptychofft.precision.cfloating):
        requested = math.prod(shape) * np.dtype(dtype).itemsize
        try:
            x = np.zeros(shape, dtype=dtype)
        except (MemoryError, ValueError) as e:
            # numpy raises ValueError for sizes it cannot represent.
            raise ResourceExhaustedError(
                f"Unable to allocate {name} with shape {shape}",
                requested=requested,
            ) from e
        self._buffers[name] = x
        return x

    def _plan(self, shape):
        plan = Plan(
            shape=shape,
            embed=self.detector_shape,
            batch=self.ntheta * self.nscan,
            workers=self.workers,
        )
        self._plans.append(plan)
        return plan

    def free(self):
        """Release all buffers and plans. Calling it again does nothing."""
        plans = getattr(self, '_plans', None)
        buffers = getattr(self, '_buffers', None)
        if not plans and not buffers:
            return
        for plan in plans:
            plan.destroy()
        plans.clear()
        buffers.clear()
        for name in ('psi', 'probe', 'scan', 'farplane', 'patches',
                     'shift_v', 'shift_h', 'plan_detector', 'plan_probe'):
            setattr(self, name, None)
        logger.debug("%s released its memory", self)

    # CHECKS ------------------------------------------------------------------

    def _check_open(self):
        if not self._buffers:
            raise RuntimeError(f"{self} has been freed.")

    def _check_shape(self, name, x, shape):
        if x is None:
            raise ValueError(f"{name} is required.")
        if np.shape(x) != shape:
            raise ShapeMismatchError(name, shape, np.shape(x))

    def _check_out(self, out, shape):
        if out is not None:
            self._check_shape('out', out, shape)
            if not np.can_cast(ptychofft.precision.cfloating, out.dtype,
                               casting='same_kind'):
                raise TypeError(f"out must be complex not {out.dtype}.")

    # STAGES ------------------------------------------------------------------

    def _launch(self, kernel, grid, *args):
        kernel(grid.blocks, grid.threads, grid.extent, *args)

    def _extract(self, buffer):
        """Copy the windows of psi into the corner of zeroed frames."""
        buffer.fill(0)
        self._launch(
            kernels.fwd_patch,
            self.grid_probe,
            buffer,
            self.psi,
            self.scan,
            self.probe_shape,
            1.0 / self.probe_shape**2,
        )

    def _shift(self, buffer, direction):
        """Shift the windows of buffer by the sub-pixel scan offsets."""
        self.plan_probe.execute(buffer, Direction.FORWARD)
        self._launch(
            kernels.take_shifts,
            self.grid_scan,
            self.shift_v,
            self.shift_h,
            self.scan,
            direction,
            self.probe_shape,
        )
        self._launch(
            kernels.apply_shifts,
            self.grid_probe,
            buffer,
            self.shift_v,
            self.shift_h,
            self.probe_shape,
        )
        self.plan_probe.execute(buffer, Direction.INVERSE)

    def _mul_probe(self, conj):
        self._launch(
            kernels.mul_probe,
            self.grid_detector,
            self.farplane,
            self.probe,
            self.probe_shape,
            self.detector_shape[1],
            1.0 / np.sqrt(np.prod(self.detector_shape)),
            conj,
        )

    # OPERATORS ---------------------------------------------------------------

    def fwd(
        self,
        psi: npt.NDArray[np.csingle],
        scan: npt.NDArray[np.single],
        probe: npt.NDArray[np.csingle],
        out: typing.Optional[npt.NDArray[np.csingle]] = None,
    ) -> npt.NDArray[np.csingle]:
        """Ptychography transform (FQ).

        Returns
        -------
        farplane : (ntheta, nscan, ndetx, ndety) complex64
            `out` if provided; otherwise a new array.
        """
        self._check_open()
        self._check_shape('psi', psi, self.psi.shape)
        self._check_shape('scan', scan, self.scan.shape)
        self._check_shape('probe', probe, self.probe.shape)
        self._check_out(out, self.farplane.shape)

        self.psi[...] = psi
        self.scan[...] = scan
        self.probe[...] = probe
        self._extract(self.farplane)
        self._shift(self.farplane, +1)
        self._mul_probe(conj=False)
        self.plan_detector.execute(self.farplane, Direction.FORWARD)

        if out is None:
            return self.farplane.copy()
        out[...] = self.farplane
        return out

    def adj(
        self,
        farplane: npt.NDArray[np.csingle],
        scan: npt.NDArray[np.single],
        probe: typing.Optional[npt.NDArray[np.csingle]] = None,
        psi: typing.Optional[npt.NDArray[np.csingle]] = None,
        target: typing.Union[Target, str] = Target.OBJECT,
        out: typing.Optional[npt.NDArray[np.csingle]] = None,
    ) -> npt.NDArray[np.csingle]:
        """Adjoint ptychography transform.

        When `target` is ``Target.OBJECT``, apply Q*F* with the probe fixed
        and return a psi-shaped gradient. When `target` is ``Target.PROBE``,
        apply the adjoint with the object `psi` fixed and return a
        probe-shaped gradient. Contributions of overlapping windows are
        summed.
        """
        self._check_open()
        target = Target(target)
        self._check_shape('farplane', farplane, self.farplane.shape)
        self._check_shape('scan', scan, self.scan.shape)
        if target is Target.OBJECT:
            self._check_shape('probe', probe, self.probe.shape)
            result = self.psi
        else:
            self._check_shape('psi', psi, self.psi.shape)
            result = self.probe
        self._check_out(out, result.shape)

        self.farplane[...] = farplane
        self.scan[...] = scan
        self.plan_detector.execute(self.farplane, Direction.INVERSE)
        if target is Target.OBJECT:
            self.probe[...] = probe
            self._mul_probe(conj=True)
            self._shift(self.farplane, -1)
            self.psi.fill(0)
            self._launch(
                kernels.adj_patch,
                self.grid_object,
                self.psi,
                self.farplane,
                self.scan,
                self.probe_shape,
                1.0 / self.probe_shape**2,
            )
        else:
            self.psi[...] = psi
            self._extract(self.patches)
            self._shift(self.patches, +1)
            self.probe.fill(0)
            self._launch(
                kernels.adj_probe,
                self.grid_probe,
                self.probe,
                self.patches,
                self.farplane,
                1.0 / np.sqrt(np.prod(self.detector_shape)),
            )

        if out is None:
            return result.copy()
        out[...] = result
        return out

    def adj_probe(
        self,
        farplane: npt.NDArray[np.csingle],
        scan: npt.NDArray[np.single],
        psi: npt.NDArray[np.csingle],
        out: typing.Optional[npt.NDArray[np.csingle]] = None,
    ) -> npt.NDArray[np.csingle]:
        """Adjoint ptychography probe transform (O*F*); object is fixed."""
        return self.adj(
            farplane=farplane,
            scan=scan,
            psi=psi,
            target=Target.PROBE,
            out=out,
        )
