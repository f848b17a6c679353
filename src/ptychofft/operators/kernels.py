"""Parallel kernels of the ptychography operator.

Each kernel computes one index of a 3D workload per thread. The launch
geometry comes from :py:func:`ptychofft.operators.grid.plan_grid`; kernels
take its `blocks`, `threads`, and `extent` tuples and skip the threads which
fall past `extent`. Blocks are distributed over CPU threads with
:py:func:`numba.prange`.

Arrays are indexed as follows:

    psi      (ntheta, nz, n)
    probe    (ntheta, nprb, nprb)
    scan     (ntheta, nscan, 2); vertical coordinate first
    farplane (ntheta, nscan, ndetx, ndety)
    shift    (ntheta, nscan)

Probe shaped windows occupy the minimum corner of each farplane frame.
Kernels do not check that scan positions keep the windows inside psi.
"""

__author__ = "Daniel Ching, Viktor Nikitin"
__copyright__ = "Copyright (c) 2020, UChicago Argonne, LLC."

import math

import numba

__all__ = [
    'fwd_patch',
    'adj_patch',
    'mul_probe',
    'adj_probe',
    'take_shifts',
    'apply_shifts',
]


@numba.njit(cache=True)
def _index(bx, by, bz, t, threads):
    """Return the global index of the t-th thread of block (bx, by, bz)."""
    tx = t % threads[0]
    ty = t // threads[0] % threads[1]
    tz = t // (threads[0] * threads[1])
    return (
        bx * threads[0] + tx,
        by * threads[1] + ty,
        bz * threads[2] + tz,
    )


@numba.njit(cache=True)
def _unravel(b, blocks):
    """Return the coordinates of the b-th block."""
    return (
        b % blocks[0],
        b // blocks[0] % blocks[1],
        b // (blocks[0] * blocks[1]),
    )


@numba.njit(cache=True)
def _corner(x):
    """Return the integer part of a scan coordinate, rounded toward zero."""
    return int(x)


@numba.njit(cache=True)
def _frequency(k, n):
    """Return the signed frequency of the k-th bin of an n-point transform."""
    return k if k < (n + 1) // 2 else k - n


@numba.njit(parallel=True, cache=True)
def fwd_patch(blocks, threads, extent, patches, psi, scan, nprb, scale):
    """Copy the probe-shaped window of psi at each scan position.

    Workload is (nprb * nprb, nscan, ntheta). Frame pixels outside of the
    window are not written.
    """
    nthread = threads[0] * threads[1] * threads[2]
    for b in numba.prange(blocks[0] * blocks[1] * blocks[2]):
        bx, by, bz = _unravel(b, blocks)
        for t in range(nthread):
            tx, ty, tz = _index(bx, by, bz, t, threads)
            if tx >= extent[0] or ty >= extent[1] or tz >= extent[2]:
                continue
            row = tx // nprb
            col = tx % nprb
            iv = _corner(scan[tz, ty, 0])
            ih = _corner(scan[tz, ty, 1])
            patches[tz, ty, row, col] = psi[tz, iv + row, ih + col] * scale


@numba.njit(parallel=True, cache=True)
def adj_patch(blocks, threads, extent, psi, patches, scan, nprb, scale):
    """Add the probe-shaped window of each frame to psi at its scan position.

    Workload is (nz, ntheta, 1); each thread owns one row of psi. Windows
    may overlap, so a thread visits every scan position of its angle in
    order and adds the window row which lands on its psi row. The result is
    the exact sum of all windows.
    """
    nthread = threads[0] * threads[1] * threads[2]
    for b in numba.prange(blocks[0] * blocks[1] * blocks[2]):
        bx, by, bz = _unravel(b, blocks)
        for t in range(nthread):
            tx, ty, tz = _index(bx, by, bz, t, threads)
            if tx >= extent[0] or ty >= extent[1] or tz >= extent[2]:
                continue
            for s in range(scan.shape[1]):
                row = tx - _corner(scan[ty, s, 0])
                if row < 0 or row >= nprb:
                    continue
                ih = _corner(scan[ty, s, 1])
                for col in range(nprb):
                    psi[ty, tx, ih + col] += patches[ty, s, row, col] * scale


@numba.njit(parallel=True, cache=True)
def mul_probe(blocks, threads, extent, farplane, probe, nprb, ndety, scale,
              conj):
    """Multiply each frame by the probe and zero pixels outside the window.

    Workload is (ndetx * ndety, nscan, ntheta). When conj is True, multiply
    by the complex conjugate of the probe instead.
    """
    nthread = threads[0] * threads[1] * threads[2]
    for b in numba.prange(blocks[0] * blocks[1] * blocks[2]):
        bx, by, bz = _unravel(b, blocks)
        for t in range(nthread):
            tx, ty, tz = _index(bx, by, bz, t, threads)
            if tx >= extent[0] or ty >= extent[1] or tz >= extent[2]:
                continue
            row = tx // ndety
            col = tx % ndety
            if row < nprb and col < nprb:
                p = probe[tz, row, col]
                if conj:
                    p = p.conjugate()
                farplane[tz, ty, row, col] *= p * scale
            else:
                farplane[tz, ty, row, col] = 0


@numba.njit(parallel=True, cache=True)
def adj_probe(blocks, threads, extent, probe, patches, farplane, scale):
    """Sum conj(patches) * farplane over scan positions into the probe.

    Workload is (nprb * nprb, nscan, ntheta). Each probe pixel is owned by
    one block column, which visits the scan positions in order.
    """
    nprb = probe.shape[-1]
    nthread = threads[0] * threads[1] * threads[2]
    for b in numba.prange(blocks[0] * blocks[2]):
        bx = b % blocks[0]
        bz = b // blocks[0]
        for by in range(blocks[1]):
            for t in range(nthread):
                tx, ty, tz = _index(bx, by, bz, t, threads)
                if tx >= extent[0] or ty >= extent[1] or tz >= extent[2]:
                    continue
                row = tx // nprb
                col = tx % nprb
                probe[tz, row, col] += (
                    patches[tz, ty, row, col].conjugate() *
                    farplane[tz, ty, row, col] * scale)


@numba.njit(parallel=True, cache=True)
def take_shifts(blocks, threads, extent, shift_v, shift_h, scan, direction,
                nprb):
    """Compute the phase step per frequency bin of each sub-pixel offset.

    Workload is (nscan, ntheta, 1). The step is exp(2 pi i d c / nprb) for
    the fractional part c in (-1, 1) of a scan coordinate and the direction
    d; +1 moves the window content by -c pixels and -1 undoes that.
    """
    nthread = threads[0] * threads[1] * threads[2]
    for b in numba.prange(blocks[0] * blocks[1] * blocks[2]):
        bx, by, bz = _unravel(b, blocks)
        for t in range(nthread):
            tx, ty, tz = _index(bx, by, bz, t, threads)
            if tx >= extent[0] or ty >= extent[1] or tz >= extent[2]:
                continue
            v = scan[ty, tx, 0]
            h = scan[ty, tx, 1]
            phase = 2 * math.pi * direction * (v - _corner(v)) / nprb
            shift_v[ty, tx] = complex(math.cos(phase), math.sin(phase))
            phase = 2 * math.pi * direction * (h - _corner(h)) / nprb
            shift_h[ty, tx] = complex(math.cos(phase), math.sin(phase))


@numba.njit(parallel=True, cache=True)
def apply_shifts(blocks, threads, extent, farplane, shift_v, shift_h, nprb):
    """Multiply each window spectrum by the phase ramp of its scan position.

    Workload is (nprb * nprb, nscan, ntheta). The bin with signed
    frequencies (fv, fh) is multiplied by shift_v**fv * shift_h**fh.
    """
    nthread = threads[0] * threads[1] * threads[2]
    for b in numba.prange(blocks[0] * blocks[1] * blocks[2]):
        bx, by, bz = _unravel(b, blocks)
        for t in range(nthread):
            tx, ty, tz = _index(bx, by, bz, t, threads)
            if tx >= extent[0] or ty >= extent[1] or tz >= extent[2]:
                continue
            row = tx // nprb
            col = tx % nprb
            sv = shift_v[tz, ty]
            sh = shift_h[tz, ty]
            phase = (_frequency(row, nprb) * math.atan2(sv.imag, sv.real) +
                     _frequency(col, nprb) * math.atan2(sh.imag, sh.real))
            cr = math.cos(phase)
            ci = math.sin(phase)
            x = farplane[tz, ty, row, col]
            farplane[tz, ty, row, col] = complex(
                x.real * cr - x.imag * ci,
                x.real * ci + x.imag * cr,
            )
