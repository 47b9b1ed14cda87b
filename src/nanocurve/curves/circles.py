"""Horizontal circles: latitudes of spheres and tori."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from nanocurve.abscissa import AbscissaConverter
from nanocurve.curve import CurveBounds, Curved
from nanocurve.descriptor import (
    CurveDescriptor,
    float_field,
    int_field,
    put_optional,
    register_descriptor,
)
from nanocurve.parameters import HelixParameters

__all__ = [
    "CircleCurve",
    "SphereConcentricCircle",
    "SphereConcentricCircleDescriptor",
    "TorusConcentricCircleDescriptor",
]

TAU = 2.0 * math.pi


class CircleCurve(Curved):
    """Circle of radius ``radius`` in the plane ``z = z``, run once over ``[0, 1]``.

    The abscissa shared with the other circles of a shape is the arc length
    divided by ``abscissa_converter_factor``, so circles built with the
    ratio of their radius to a common reference radius all share the
    abscissa of the reference circle.
    """

    def __init__(
        self,
        radius: float,
        z: float = 0.0,
        theta_0: float = 0.0,
        *,
        abscissa_converter_factor: Optional[float] = None,
        is_closed: Optional[bool] = None,
        target_nb_nt: Optional[int] = None,
    ):
        if radius <= 0:
            raise ValueError("circle radius must be positive")
        self.radius = radius
        self.z = z
        self.theta_0 = theta_0
        self.perimeter = TAU * radius
        self.abscissa_converter_factor = abscissa_converter_factor
        self.is_closed = is_closed
        self.target_nb_nt = target_nb_nt

    def _theta(self, t: float) -> float:
        return t * TAU + self.theta_0

    def bounds(self) -> CurveBounds:
        return CurveBounds.FINITE

    def position(self, t: float) -> np.ndarray:
        theta = self._theta(t)
        return np.array([self.radius * math.cos(theta), self.radius * math.sin(theta), self.z])

    def speed(self, t: float) -> np.ndarray:
        theta = self._theta(t)
        rt = self.radius * TAU
        return np.array([-rt * math.sin(theta), rt * math.cos(theta), 0.0])

    def acceleration(self, t: float) -> np.ndarray:
        theta = self._theta(t)
        rt2 = self.radius * TAU * TAU
        return np.array([-rt2 * math.cos(theta), -rt2 * math.sin(theta), 0.0])

    def curvilinear_abscissa(self, t: float) -> Optional[float]:
        return self.perimeter * t

    def inverse_curvilinear_abscissa(self, x: float) -> Optional[float]:
        return x / self.perimeter

    def first_theta(self) -> Optional[float]:
        return self.theta_0

    def last_theta(self) -> Optional[float]:
        return self._theta(1.0)

    def full_turn_at_t(self) -> Optional[float]:
        if self.is_closed is False:
            return None
        return 1.0

    def nucl_pos_full_turn(self) -> Optional[int]:
        return self.target_nb_nt

    def abscissa_converter(self) -> Optional[AbscissaConverter]:
        factor = self.abscissa_converter_factor or 1.0
        return AbscissaConverter.linear(self.perimeter / factor)


class SphereConcentricCircle(CircleCurve):
    """Latitude circle of a sphere.

    Helix ``0`` runs along the equator; helix ``i`` is ``i`` inter helix
    gaps away from it along a meridian, above the equator for positive
    indices.
    """

    def __init__(
        self,
        radius: float,
        helix_index: float,
        inter_helix_center_gap: float,
        theta_0: float = 0.0,
        *,
        abscissa_converter_factor: Optional[float] = None,
        is_closed: Optional[bool] = None,
        target_nb_nt: Optional[int] = None,
    ):
        self.sphere_radius = radius
        self.helix_index = helix_index
        self.phi = math.pi / 2.0 - helix_index * inter_helix_center_gap / radius
        if not 0.0 < self.phi < math.pi:
            raise ValueError("helix index is beyond the poles of the sphere")
        super().__init__(
            radius * math.sin(self.phi),
            radius * math.cos(self.phi),
            theta_0,
            abscissa_converter_factor=abscissa_converter_factor,
            is_closed=is_closed,
            target_nb_nt=target_nb_nt,
        )

    def nucl_pos_full_turn(self) -> Optional[int]:
        return None

    def objective_nb_nt(self) -> Optional[int]:
        return self.target_nb_nt


@register_descriptor("SphereConcentricCircle")
@dataclass(frozen=True)
class SphereConcentricCircleDescriptor(CurveDescriptor):
    """Latitude circle of a sphere.

    ``helix_index_shift`` of ``-0.5`` centers the equator between two
    helices. Without a factor the shared abscissa is the arc length of the
    equator.
    """

    radius: float
    theta_0: float = 0.0
    helix_index: int = 0
    helix_index_shift: Optional[float] = None
    inter_helix_center_gap: Optional[float] = None
    is_closed: Optional[bool] = None
    target_nb_nt: Optional[int] = None
    abscissa_converter_factor: Optional[float] = None

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        gap = self.inter_helix_center_gap
        if gap is None:
            gap = helix_parameters.inter_helix_axis_gap()
        index = self.helix_index + (self.helix_index_shift or 0.0)
        factor = self.abscissa_converter_factor
        if factor is None:
            phi = math.pi / 2.0 - index * gap / self.radius
            factor = math.sin(phi)
        return SphereConcentricCircle(
            self.radius,
            index,
            gap,
            self.theta_0,
            abscissa_converter_factor=factor,
            is_closed=self.is_closed,
            target_nb_nt=self.target_nb_nt,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"radius": self.radius, "theta_0": self.theta_0, "helix_index": self.helix_index}
        put_optional(out, "helix_index_shift", self.helix_index_shift)
        put_optional(out, "inter_helix_center_gap", self.inter_helix_center_gap)
        put_optional(out, "is_closed", self.is_closed)
        put_optional(out, "target_nb_nt", self.target_nb_nt)
        put_optional(out, "abscissa_converter_factor", self.abscissa_converter_factor)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SphereConcentricCircleDescriptor":
        kind = "SphereConcentricCircle"
        is_closed = data.get("is_closed")
        return cls(
            radius=float_field(data, "radius", kind),
            theta_0=float_field(data, "theta_0", kind, 0.0),
            helix_index=int_field(data, "helix_index", kind, 0),
            helix_index_shift=float_field(data, "helix_index_shift", kind, None),
            inter_helix_center_gap=float_field(data, "inter_helix_center_gap", kind, None),
            is_closed=None if is_closed is None else bool(is_closed),
            target_nb_nt=int_field(data, "target_nb_nt", kind, None),
            abscissa_converter_factor=float_field(data, "abscissa_converter_factor", kind, None),
        )


@register_descriptor("TorusConcentricCircle")
@dataclass(frozen=True)
class TorusConcentricCircleDescriptor(CurveDescriptor):
    """Circle of a torus whose section is a ring of ``number_of_helices`` helices.

    Helix ``0`` is on the inner equator of the torus and the index turns
    around the section. All the circles of one torus share the abscissa of
    the outer equator.
    """

    radius: float
    number_of_helices: int = 6
    helix_index: int = 0
    helix_index_shift: Optional[float] = None
    inter_helix_center_gap: Optional[float] = None

    def __post_init__(self) -> None:
        if self.number_of_helices < 2:
            raise ValueError("a torus section needs at least two helices")

    def section_radius(self, helix_parameters: HelixParameters) -> float:
        gap = self.inter_helix_center_gap
        if gap is None:
            gap = helix_parameters.inter_helix_axis_gap()
        angle = TAU / self.number_of_helices
        return gap / 2.0 / math.sin(angle / 2.0)

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        section_radius = self.section_radius(helix_parameters)
        phi = TAU / self.number_of_helices * (self.helix_index + (self.helix_index_shift or 0.0))
        circle_radius = self.radius - section_radius * math.cos(phi)
        return CircleCurve(
            circle_radius,
            section_radius * math.sin(phi),
            abscissa_converter_factor=circle_radius / (self.radius + section_radius),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "radius": self.radius,
            "number_of_helices": self.number_of_helices,
            "helix_index": self.helix_index,
        }
        put_optional(out, "helix_index_shift", self.helix_index_shift)
        put_optional(out, "inter_helix_center_gap", self.inter_helix_center_gap)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TorusConcentricCircleDescriptor":
        kind = "TorusConcentricCircle"
        return cls(
            radius=float_field(data, "radius", kind),
            number_of_helices=int_field(data, "number_of_helices", kind, 6),
            helix_index=int_field(data, "helix_index", kind, 0),
            helix_index_shift=float_field(data, "helix_index_shift", kind, None),
            inter_helix_center_gap=float_field(data, "inter_helix_center_gap", kind, None),
        )
