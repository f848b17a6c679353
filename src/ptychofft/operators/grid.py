"""Launch geometry for the parallel kernels.

Every kernel in :py:mod:`ptychofft.operators.kernels` is written for one
thread per index of a 3D workload. The workload is covered by a grid of
fixed-size blocks; threads that fall past the end of the workload do
nothing.
"""

__author__ = "Daniel Ching"
__copyright__ = "Copyright (c) 2020, UChicago Argonne, LLC."

import typing

__all__ = [
    'BLOCK',
    'Grid',
    'plan_grid',
]

BLOCK = (32, 32, 1)
"""The default number of threads along each axis of a block."""


class Grid(typing.NamedTuple):
    """The launch geometry of one kernel."""

    blocks: typing.Tuple[int, int, int]
    """The number of blocks along each axis."""

    threads: typing.Tuple[int, int, int]
    """The number of threads along each axis of a block."""

    extent: typing.Tuple[int, int, int]
    """The logical size of the workload."""


def plan_grid(
    *extent: int,
    block: typing.Tuple[int, int, int] = BLOCK,
) -> Grid:
    """Return the smallest grid of `block` shaped blocks covering `extent`.

    Parameters
    ----------
    extent : int
        Up to three sizes of the workload. Missing trailing sizes are 1.
    block : (3, ) int
        The number of threads along each axis of a block.

    Examples
    --------
    >>> plan_grid(16, 27, 3)
    Grid(blocks=(1, 1, 3), threads=(32, 32, 1), extent=(16, 27, 3))

    """
    if not 0 < len(extent) <= 3:
        raise ValueError(f"A grid has 1 to 3 dimensions not {len(extent)}.")
    extent = tuple(int(x) for x in extent) + (1,) * (3 - len(extent))
    block = tuple(int(x) for x in block)
    if any(x < 1 for x in extent) or any(x < 1 for x in block):
        raise ValueError(
            f"Grid extent {extent} and block {block} must be positive.")
    blocks = tuple(-(-x // b) for x, b in zip(extent, block))
    return Grid(blocks=blocks, threads=block, extent=extent)
