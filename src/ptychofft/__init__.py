"""Forward and adjoint ptychography operators with sub-pixel scan positions.

The operators map an object and a probe to the wavefronts hitting a detector
at each scan position, and map detector residuals back to object or probe
gradients. They are the core of iterative phase-retrieval solvers, which
call them on every iteration.
"""

__version__ = '0.1.0'

from ptychofft.errors import *
from ptychofft.operators import PtychoFFT, Target
from ptychofft.ptycho import *
