"""Defines the ptychography operator and the parts that it is built from.

Forward and adjoint operators are paired as the fwd and adj methods of an
Operator. The operator keeps all of its memory from construction until it
is freed, so one instance can serve every iteration of a solver.

All operator methods accept the array type that matches the output of their
asarray() method.
"""

from .fft import *
from .grid import *
from .operator import *
from .ptycho import *
