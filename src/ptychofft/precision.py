"""Default data types for every buffer owned by the ptychography operator.

The operator computes in single precision. Inputs of any other precision are
cast to these types when they are copied into the operator's buffers.
"""
import numpy as np

integer = np.intc
"""The integer type of scan position corners"""

floating = np.single
"""The type of scan positions and detector intensities"""

cfloating = np.csingle
"""The type of psi, probe, farplane, and the shift ramps"""
