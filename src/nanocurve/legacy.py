## legacy nucleotide placement

## Copyright (c) 2025 nanocurve contributors
## All rights reserved

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
# 
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
# 
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""Nucleotide placement of designs saved before the current algorithm.

Older designs placed both strands on the forward samples of the curve, with
the backward strand pushed along the tangent by the helix inclination, and
applied neither the rescaled-rise nor the closed-curve phase corrections.
Those designs must keep their exact coordinates, so this path is kept apart
from :meth:`DiscretizedCurve.nucleotide_position` and only selected by the
``legacy()`` flag of the curve.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

import numpy as np

from nanocurve.parameters import HelixParameters

if TYPE_CHECKING:  # pragma: no cover
    from nanocurve.discretization import DiscretizedCurve

__all__ = ["legacy_nucleotide_position"]


def legacy_nucleotide_position(
    curve: "DiscretizedCurve",
    n: int,
    forward: bool,
    theta: float,
    helix_parameters: HelixParameters,
) -> Optional[np.ndarray]:
    idx = curve.idx_conversion(n)
    if idx is None or idx >= min(len(curve.positions_forward), len(curve.axis_forward)):
        return None
    frame = curve.axis_forward[idx]
    position = curve.positions_forward[idx]
    if not forward:
        position = position + helix_parameters.inclination * frame[:, 2]
    r = helix_parameters.helix_radius
    local = np.array([-math.cos(theta) * r, math.sin(theta) * r, 0.0])
    return frame @ local + position
