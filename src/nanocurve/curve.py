## the parametric curve capability interface

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

"""Abstract parametric curve.

A curve is a map ``t -> position(t)`` from a scalar parameter to 3D space,
together with a set of optional capabilities that refine how the curve is
discretized into nucleotides. Only :meth:`Curved.position` and
:meth:`Curved.bounds` must be provided; every other method has a default
that either derives the value numerically or reports that the capability is
absent by returning ``None`` (or ``False`` for flags).
"""

from __future__ import annotations

import abc
import enum
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from nanocurve.parameters import HelixParameters
from nanocurve.vecutil import perpendicular_basis

if TYPE_CHECKING:  # pragma: no cover
    from nanocurve.abscissa import AbscissaConverter

__all__ = [
    "EPSILON_DERIVATIVE",
    "CurveBounds",
    "Curved",
    "Isometry2",
    "SurfaceInfo",
    "SurfacePoint",
    "perpendicular_basis",
]

EPSILON_DERIVATIVE = 1e-6


class CurveBounds(enum.Enum):
    """Extent of the natural domain of a curve."""

    FINITE = "finite"
    POSITIVE_INFINITE = "positive_infinite"
    BI_INFINITE = "bi_infinite"


@dataclass(frozen=True)
class Isometry2:
    """Planar isometry used to lay out additional helix segments in 2D."""

    translation: tuple = (0.0, 0.0)
    angle: float = 0.0

    def apply(self, point) -> tuple:
        c, s = math.cos(self.angle), math.sin(self.angle)
        x, y = float(point[0]), float(point[1])
        return (c * x - s * y + self.translation[0], s * x + c * y + self.translation[1])


@dataclass(frozen=True)
class SurfacePoint:
    """Location on a revolution surface.

    Attributes:
        revolution_angle: Angle around the revolution axis.
        abscissa_along_section: Normalized abscissa (in ``[0, 1)``) along
            the section curve.
        helix_id: Index of the helix in the shape.
        section_rotation_angle: Rotation of the section in its own plane.
        reversed_direction: Whether the helix runs against the revolution.
    """

    revolution_angle: float
    abscissa_along_section: float
    helix_id: int = 0
    section_rotation_angle: float = 0.0
    reversed_direction: bool = False


@dataclass(frozen=True)
class SurfaceInfo:
    """Local description of a revolution surface at a point.

    ``local_frame`` has the revolution circle tangent as first column and
    the revolution axis as second column; ``normal`` is the outward surface
    normal.
    """

    point: SurfacePoint
    section_tangent: np.ndarray
    local_frame: np.ndarray
    position: np.ndarray
    normal: np.ndarray


class Curved(abc.ABC):
    """Base class of every curve family."""

    @abc.abstractmethod
    def position(self, t: float) -> np.ndarray:
        """Point of the curve at time ``t``."""

    @abc.abstractmethod
    def bounds(self) -> CurveBounds:
        """Kind of domain of the curve."""

    def t_min(self) -> float:
        return 0.0

    def t_max(self) -> float:
        return 1.0

    def speed(self, t: float) -> np.ndarray:
        e = EPSILON_DERIVATIVE
        return (self.position(t + e / 2.0) - self.position(t - e / 2.0)) / e

    def acceleration(self, t: float) -> np.ndarray:
        e = EPSILON_DERIVATIVE
        return (self.position(t + e) + self.position(t - e) - 2.0 * self.position(t)) / (e * e)

    def curvature(self, t: float) -> float:
        speed = self.speed(t)
        numerator = float(np.linalg.norm(np.cross(speed, self.acceleration(t))))
        denominator = float(np.linalg.norm(speed)) ** 3
        if denominator == 0.0:
            return 0.0
        return numerator / denominator

    def tangent(self, t: float) -> np.ndarray:
        """Unit tangent at ``t`` (a zero vector where the speed vanishes)."""
        speed = self.speed(t)
        length = float(np.linalg.norm(speed))
        if length == 0.0:
            return np.zeros(3)
        return speed / length

    def curvilinear_abscissa(self, t: float) -> Optional[float]:
        """Closed-form arc length from the start of the curve, if known."""
        return None

    def inverse_curvilinear_abscissa(self, x: float) -> Optional[float]:
        """Closed-form inverse of :meth:`curvilinear_abscissa`, if known."""
        return None

    # nucleotide spacing and orientation

    def rise_ratio(self) -> Optional[float]:
        """Ratio between the nucleotide step on the curve and the helix rise."""
        return None

    def theta_shift(self, helix_parameters: HelixParameters) -> Optional[float]:
        """Angle between two consecutive nucleotides once the rise is rescaled.

        ``None`` when the curve keeps the default rise or when the rescaled
        rise is geometrically impossible.
        """
        ratio = self.rise_ratio()
        if ratio is None:
            return None
        r = helix_parameters.helix_radius
        real_z = helix_parameters.rise * ratio
        d1 = helix_parameters.dist_ac()
        cos_ret = 1.0 - (d1 * d1 - real_z * real_z) / (2.0 * r * r)
        if abs(cos_ret) > 1.0:
            return None
        return math.acos(cos_ret)

    def translation(self) -> Optional[np.ndarray]:
        """Offset of the helix axis, expressed in the frame of each point."""
        return None

    def initial_frame(self) -> Optional[np.ndarray]:
        """Frame of the first point, when the curve imposes one."""
        return None

    def first_theta(self) -> Optional[float]:
        return None

    def last_theta(self) -> Optional[float]:
        return None

    # periodicity

    def full_turn_at_t(self) -> Optional[float]:
        """Period of a closed curve, in units of ``t``."""
        return None

    def nucl_pos_full_turn(self) -> Optional[int]:
        """Number of nucleotides that one period must contain exactly."""
        return None

    def objective_nb_nt(self) -> Optional[int]:
        """Number of steps the whole domain must be divided into."""
        return None

    # 2D layout

    def subdivision_for_t(self, t: float) -> Optional[int]:
        """Index of the 2D segment the point at ``t`` belongs to."""
        return None

    def additional_isometry(self, segment_idx: int) -> Optional[Isometry2]:
        return None

    # surfaces

    def surface_info_time(self, t: float, helix_id: int = 0) -> Optional[SurfaceInfo]:
        return None

    def surface_info(self, point: SurfacePoint) -> Optional[SurfaceInfo]:
        return None

    # discretization hints

    def is_time_maps_singleton(self) -> bool:
        """Whether the curve is alone in its abscissa synchronization group."""
        return False

    def abscissa_converter(self) -> Optional["AbscissaConverter"]:
        return None

    def discretize_quickly(self) -> bool:
        return False

    def pre_compute_polynomials(self) -> bool:
        """Whether the arc length should be tabulated with polynomials."""
        return False

    def legacy(self) -> bool:
        """Whether nucleotides are placed with the legacy algorithm."""
        return False
