#!/usr/bin/env python
# -*- coding: utf-8 -*-

# #########################################################################
# Copyright (c) 2018, UChicago Argonne, LLC. All rights reserved.         #
#                                                                         #
# Copyright 2015. UChicago Argonne, LLC. This software was produced       #
# under U.S. Government contract DE-AC02-06CH11357 for Argonne National   #
# Laboratory (ANL), which is operated by UChicago Argonne, LLC for the    #
# U.S. Department of Energy. The U.S. Government has rights to use,       #
# reproduce, and distribute this software.  NEITHER THE GOVERNMENT NOR    #
# UChicago Argonne, LLC MAKES ANY WARRANTY, EXPRESS OR IMPLIED, OR        #
# ASSUMES ANY LIABILITY FOR THE USE OF THIS SOFTWARE.  If software is     #
# modified to produce derivative works, such modified software should     #
# be clearly marked, so as not to confuse it with the version available   #
# from ANL.                                                               #
#                                                                         #
# Additionally, redistribution and use in source and binary forms, with   #
# or without modification, are permitted provided that the following      #
# conditions are met:                                                     #
#                                                                         #
#     * Redistributions of source code must retain the above copyright    #
#       notice, this list of conditions and the following disclaimer.     #
#                                                                         #
#     * Redistributions in binary form must reproduce the above copyright #
#       notice, this list of conditions and the following disclaimer in   #
#       the documentation and/or other materials provided with the        #
#       distribution.                                                     #
#                                                                         #
#     * Neither the name of UChicago Argonne, LLC, Argonne National       #
#       Laboratory, ANL, the U.S. Government, nor the names of its        #
#       contributors may be used to endorse or promote products derived   #
#       from this software without specific prior written permission.     #
#                                                                         #
# THIS SOFTWARE IS PROVIDED BY UChicago Argonne, LLC AND CONTRIBUTORS     #
# "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT       #
# LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS       #
# FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL UChicago     #
# Argonne, LLC OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,        #
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING,    #
# BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES;        #
# LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER        #
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT      #
# LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN       #
# ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE         #
# POSSIBILITY OF SUCH DAMAGE.                                             #
# #########################################################################

"""Simulate ptychography data and check scan positions.

The operator in :py:mod:`ptychofft.operators` does not check that the probe
windows stay inside the object; that is left to the caller. Use
:py:func:`check_allowed_positions` once per dataset instead of paying for
the check on every call.
"""

__author__ = "Doga Gursoy, Daniel Ching"
__copyright__ = "Copyright (c) 2018, UChicago Argonne, LLC."
__docformat__ = 'restructuredtext en'
__all__ = [
    "check_allowed_positions",
    "simulate",
]

import logging

import numpy as np

from ptychofft.errors import PreconditionViolation
import ptychofft.operators
import ptychofft.precision

logger = logging.getLogger(__name__)


def check_allowed_positions(scan, psi_shape, probe_shape):
    """Check that every probe window lies inside the object.

    Parameters
    ----------
    scan : (..., nscan, 2) float32
        Coordinates of the minimum corner of the probe grid for each
        measurement in the coordinate system of psi. The integer part of a
        coordinate is rounded toward zero, so -0.5 is allowed.
    psi_shape : tuple
        The shape of psi; only the last two dimensions are used.
    probe_shape : int or tuple
        The width of the probe or the shape of the probe.

    Raises
    ------
    PreconditionViolation
        The integer part of a position is negative, or a position plus the
        probe width extends past the edge of psi.

    """
    if np.ndim(probe_shape) == 0:
        probe_shape = (probe_shape, probe_shape)
    int_scan = np.trunc(scan).astype(ptychofft.precision.integer).reshape(
        -1, 2)
    min_corner = np.min(int_scan, axis=0)
    max_corner = np.max(int_scan, axis=0)
    valid_max_corner = (psi_shape[-2] - probe_shape[-2],
                        psi_shape[-1] - probe_shape[-1])
    if np.any(min_corner < 0) or np.any(max_corner > valid_max_corner):
        raise PreconditionViolation(
            "Scan positions must be >= 0 and "
            "scan positions + probe.shape must be <= psi.shape. "
            "psi may be too small or the scan positions may be scaled wrong. "
            f"The span of scan is {min_corner} to {max_corner}, and "
            f"the shape of psi is {tuple(psi_shape)}.")


def simulate(detector_shape, probe, scan, psi, **kwargs):
    """Return real-valued detector counts of simulated ptychography data.

    Parameters
    ----------
    detector_shape : int or (int, int)
        The pixel height and width of the detector.
    probe : (ntheta, probe_shape, probe_shape) complex64
        The complex illumination function.
    scan : (ntheta, nscan, 2) float32
        Coordinates of the minimum corner of the probe grid for each
        measurement in the coordinate system of psi.
    psi : (ntheta, nz, n) complex64
        The complex wavefront modulation of the object.
    kwargs
        Passed to :py:class:`ptychofft.operators.PtychoFFT`.

    Returns
    -------
    data : (ntheta, nscan, ndetx, ndety) float32
        The simulated intensity on the detector.

    """
    check_allowed_positions(scan, psi.shape, probe.shape)
    ntheta, nscan = scan.shape[:2]
    logger.info("simulate %d x %d positions on %s grids", ntheta, nscan,
                psi.shape[-2:])
    with ptychofft.operators.PtychoFFT(
            nscan=nscan,
            probe_shape=probe.shape[-1],
            detector_shape=detector_shape,
            nz=psi.shape[-2],
            n=psi.shape[-1],
            ntheta=ntheta,
            **kwargs,
    ) as operator:
        farplane = operator.fwd(
            psi=operator.asarray(psi, dtype=ptychofft.precision.cfloating),
            scan=operator.asarray(scan, dtype=ptychofft.precision.floating),
            probe=operator.asarray(probe, dtype=ptychofft.precision.cfloating),
        )
        return operator.asnumpy(
            np.square(np.abs(farplane)).astype(ptychofft.precision.floating))
