"""Helices laid on a surface of revolution.

A revolution shape is a closed section curve swept once around the ``y``
axis. The section may rotate in its own plane during the sweep, by
``half_turns_count`` half turns plus an optional interpolated angle, so the
helices of the shape wind around it. Every helix of the shape sits at its
own slot along the section and shares the shape's synchronization group.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional

import numpy as np

from nanocurve.abscissa import AbscissaConverter
from nanocurve.curve import CurveBounds, Curved, SurfaceInfo, SurfacePoint
from nanocurve.curves.chebyshev import InterpolationDescriptor, eval_normalized, interpolation_from_dict
from nanocurve.curves.section import CurveDescriptor2D, Section, section_from_dict
from nanocurve.descriptor import (
    CurveDescriptor,
    field_value,
    float_field,
    int_field,
    put_optional,
    register_descriptor,
)
from nanocurve.parameters import HelixParameters

__all__ = ["RevolutionCurve", "InterpolatedCurveDescriptor"]

TAU = 2.0 * math.pi
_CLOSURE_EPSILON = 1e-9
_UP = np.array([0.0, 1.0, 0.0])


class RevolutionCurve(Curved):
    """Helix ``helix_id`` of a revolution shape, over one revolution ``t in [0, 1]``."""

    def __init__(self, descriptor: "InterpolatedCurveDescriptor"):
        self.descriptor = descriptor
        self.section = Section(descriptor.section, descriptor.curve_scale_factor)
        if descriptor.revolution_radius <= self.section.max_radius:
            raise ValueError("revolution radius must exceed the size of the section")
        self.revolution_radius = descriptor.revolution_radius
        self._rotation = None
        if descriptor.section_rotation is not None:
            self._rotation = descriptor.section_rotation.instantiated()
            self._rotation_deriv = self._rotation.deriv()
        total = self.section_rotation(1.0) - self.section_rotation(0.0)
        self.closed = abs(total / TAU - round(total / TAU)) < _CLOSURE_EPSILON
        self.sigma = descriptor.helix_id * self.section.perimeter / descriptor.nb_helices

    def revolution_angle(self, t: float) -> float:
        return self.descriptor.revolution_angle_init + TAU * t

    def section_rotation(self, t: float) -> float:
        angle = math.pi * self.descriptor.half_turns_count * t
        if self._rotation is not None:
            angle += eval_normalized(self._rotation, t)
        return angle

    def _section_rotation_rate(self, t: float) -> float:
        rate = math.pi * self.descriptor.half_turns_count
        if self._rotation is not None:
            lo, hi = self._rotation.domain
            rate += eval_normalized(self._rotation_deriv, t) * (hi - lo)
        return rate

    @staticmethod
    def _rotated(vec: np.ndarray, beta: float) -> np.ndarray:
        c, s = math.cos(beta), math.sin(beta)
        return np.array([c * vec[0] - s * vec[1], s * vec[0] + c * vec[1]])

    def _surface_position(self, theta: float, beta: float, sigma: float) -> np.ndarray:
        u = self.section.parameter_at_abscissa(sigma)
        a, b = self._rotated(self.section.point(u), beta)
        radial = self.revolution_radius + a
        return np.array([radial * math.sin(theta), b, radial * math.cos(theta)])

    def bounds(self) -> CurveBounds:
        return CurveBounds.FINITE

    def position(self, t: float) -> np.ndarray:
        return self._surface_position(self.revolution_angle(t), self.section_rotation(t), self.sigma)

    def speed(self, t: float) -> np.ndarray:
        theta = self.revolution_angle(t)
        beta = self.section_rotation(t)
        rate = self._section_rotation_rate(t)
        u = self.section.parameter_at_abscissa(self.sigma)
        a, b = self._rotated(self.section.point(u), beta)
        da, db = -rate * b, rate * a
        radial = self.revolution_radius + a
        return np.array(
            [
                da * math.sin(theta) + radial * TAU * math.cos(theta),
                db,
                da * math.cos(theta) - radial * TAU * math.sin(theta),
            ]
        )

    def full_turn_at_t(self) -> Optional[float]:
        return 1.0 if self.closed else None

    def objective_nb_nt(self) -> Optional[int]:
        return self.descriptor.objective_number_of_nts

    def pre_compute_polynomials(self) -> bool:
        return True

    def abscissa_converter(self) -> Optional[AbscissaConverter]:
        return AbscissaConverter.linear(TAU * self.revolution_radius)

    def _info(self, t: float, sigma: float, helix_id: int) -> SurfaceInfo:
        theta = self.revolution_angle(t)
        beta = self.section_rotation(t)
        u = self.section.parameter_at_abscissa(sigma)
        radial_dir = np.array([math.sin(theta), 0.0, math.cos(theta)])
        n2 = self._rotated(self.section.normal(u), beta)
        point = SurfacePoint(
            revolution_angle=theta,
            abscissa_along_section=(sigma % self.section.perimeter) / self.section.perimeter,
            helix_id=helix_id,
            section_rotation_angle=beta,
        )
        return SurfaceInfo(
            point=point,
            section_tangent=self._rotated(self.section.tangent(u), beta),
            local_frame=np.column_stack((np.cross(_UP, radial_dir), _UP, radial_dir)),
            position=self._surface_position(theta, beta, sigma),
            normal=n2[0] * radial_dir + n2[1] * _UP,
        )

    def surface_info_time(self, t: float, helix_id: int = 0) -> Optional[SurfaceInfo]:
        return self._info(t, self.sigma, helix_id)

    def surface_info(self, point: SurfacePoint) -> Optional[SurfaceInfo]:
        t = (point.revolution_angle - self.descriptor.revolution_angle_init) / TAU
        sigma = point.abscissa_along_section * self.section.perimeter
        return self._info(t, sigma, point.helix_id)


@register_descriptor("InterpolatedCurve")
@dataclass(frozen=True)
class InterpolatedCurveDescriptor(CurveDescriptor):
    """One helix of a revolution shape.

    Attributes:
        section: Section curve of the shape.
        revolution_radius: Distance between the revolution axis and the
            center of the section.
        curve_scale_factor: Scale applied to the section curve.
        half_turns_count: Rotation of the section over one revolution, in
            half turns.
        revolution_angle_init: Revolution angle at ``t = 0``.
        section_rotation: Additional section rotation (radians) as a
            function of the normalized revolution ``t``.
        helix_id: Slot of the helix along the section.
        nb_helices: Number of evenly spaced helices of the shape.
        objective_number_of_nts: Exact number of steps of one revolution.
    """

    section: CurveDescriptor2D
    revolution_radius: float
    curve_scale_factor: float = 1.0
    half_turns_count: int = 0
    revolution_angle_init: float = 0.0
    section_rotation: Optional[InterpolationDescriptor] = None
    helix_id: int = 0
    nb_helices: int = 1
    objective_number_of_nts: Optional[int] = None

    def __post_init__(self) -> None:
        if self.nb_helices < 1:
            raise ValueError("a revolution shape needs at least one helix")
        if not 0 <= self.helix_id < self.nb_helices:
            raise ValueError("helix id must be lower than the number of helices")

    def shape_key(self) -> Hashable:
        """Identifies the shape, shared by all of its helices."""
        return (
            self.section,
            self.revolution_radius,
            self.curve_scale_factor,
            self.half_turns_count,
            self.revolution_angle_init,
            self.section_rotation,
            self.nb_helices,
        )

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        return RevolutionCurve(self)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "section": self.section.to_dict(),
            "revolution_radius": self.revolution_radius,
            "curve_scale_factor": self.curve_scale_factor,
            "half_turns_count": self.half_turns_count,
            "revolution_angle_init": self.revolution_angle_init,
        }
        if self.section_rotation is not None:
            out["section_rotation"] = self.section_rotation.to_dict()
        out["helix_id"] = self.helix_id
        out["nb_helices"] = self.nb_helices
        put_optional(out, "objective_number_of_nts", self.objective_number_of_nts)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterpolatedCurveDescriptor":
        kind = "InterpolatedCurve"
        rotation = data.get("section_rotation")
        return cls(
            section=section_from_dict(field_value(data, "section", kind)),
            revolution_radius=float_field(data, "revolution_radius", kind),
            curve_scale_factor=float_field(data, "curve_scale_factor", kind, 1.0),
            half_turns_count=int_field(data, "half_turns_count", kind, 0),
            revolution_angle_init=float_field(data, "revolution_angle_init", kind, 0.0),
            section_rotation=None if rotation is None else interpolation_from_dict(rotation),
            helix_id=int_field(data, "helix_id", kind, 0),
            nb_helices=int_field(data, "nb_helices", kind, 1),
            objective_number_of_nts=int_field(data, "objective_number_of_nts", kind, None),
        )
