"""Curves drawn on tori."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from nanocurve.curve import CurveBounds, Curved, Isometry2, SurfaceInfo, SurfacePoint
from nanocurve.curves.section import CurveDescriptor2D, Section, section_from_dict
from nanocurve.descriptor import (
    CurveDescriptor,
    field_value,
    float_field,
    int_field,
    register_descriptor,
)
from nanocurve.parameters import HelixParameters
from nanocurve.quadrature import arc_length

__all__ = ["Torus", "TorusDescriptor", "TwistedTorus", "TwistedTorusDescriptor"]

TAU = 2.0 * math.pi


class Torus(Curved):
    """Torus knot followed by ``2 * half_nb_helix`` helices packed on a torus.

    The curve turns ``half_nb_helix`` times around the revolution axis while
    it turns once around the section, and closes at ``t = 1``.
    """

    def __init__(self, big_radius: float, half_nb_helix: int, theta0: float, helix_parameters: HelixParameters):
        if half_nb_helix < 1:
            raise ValueError("a torus needs at least one pair of helices")
        self.big_radius = big_radius
        self.half_nb_helix = half_nb_helix
        self.theta0 = theta0
        h = helix_parameters.helix_radius + helix_parameters.inter_helix_gap / 2.0
        self.small_radius = 4.0 * h * half_nb_helix / TAU
        if self.small_radius >= big_radius:
            raise ValueError("torus big radius is too small for its helices")

    def _angles(self, t: float):
        theta = TAU * self.half_nb_helix * t + self.theta0
        phi = TAU * t
        return theta, phi

    def bounds(self) -> CurveBounds:
        return CurveBounds.FINITE

    def position(self, t: float) -> np.ndarray:
        theta, phi = self._angles(t)
        rho = self.big_radius + self.small_radius * math.cos(phi)
        return np.array([math.sin(theta) * rho, self.small_radius * math.sin(phi), math.cos(theta) * rho])

    def speed(self, t: float) -> np.ndarray:
        theta, phi = self._angles(t)
        a = TAU * self.half_nb_helix
        r = self.small_radius
        rho = self.big_radius + r * math.cos(phi)
        d_rho = -r * TAU * math.sin(phi)
        return np.array(
            [
                a * math.cos(theta) * rho + math.sin(theta) * d_rho,
                r * TAU * math.cos(phi),
                -a * math.sin(theta) * rho + math.cos(theta) * d_rho,
            ]
        )

    def acceleration(self, t: float) -> np.ndarray:
        theta, phi = self._angles(t)
        a = TAU * self.half_nb_helix
        r = self.small_radius
        rho = self.big_radius + r * math.cos(phi)
        d_rho = -r * TAU * math.sin(phi)
        dd_rho = -r * TAU * TAU * math.cos(phi)
        return np.array(
            [
                -a * a * math.sin(theta) * rho + 2.0 * a * math.cos(theta) * d_rho + math.sin(theta) * dd_rho,
                -r * TAU * TAU * math.sin(phi),
                -a * a * math.cos(theta) * rho - 2.0 * a * math.sin(theta) * d_rho + math.cos(theta) * dd_rho,
            ]
        )

    def full_turn_at_t(self) -> Optional[float]:
        return 1.0


class TwistedTorus(Curved):
    """A point of a section curve swept around a circle while the section turns.

    The section lies in the plane spanned by the radial direction and the
    ``y`` axis. While the curve goes once around the ``y`` axis the section
    rotates in its own plane by ``helix_index_shift_per_turn`` times
    ``2pi / symmetry_order``, which maps it onto itself. The helices are
    evenly spaced along the section; after one turn a helix has moved to the
    slot of another one, and the curve closes after
    ``symmetry_order / gcd(symmetry_order, shift)`` turns. That closing
    period receives an integral number of nucleotides.
    """

    def __init__(self, descriptor: "TwistedTorusDescriptor", helix_parameters: HelixParameters):
        self.descriptor = descriptor
        self.helix_parameters = helix_parameters
        self.section = Section(descriptor.curve, descriptor.curve_scale_factor)
        if descriptor.big_radius <= self.section.max_radius:
            raise ValueError("twisted torus big radius must exceed the size of its section")
        self.big_radius = descriptor.big_radius
        n = descriptor.number_of_helix_per_section
        order = descriptor.symmetry_order
        shift = descriptor.helix_index_shift_per_turn
        self.nb_turns = order // math.gcd(order, abs(shift)) if shift else 1
        self.rotation_rate = TAU * shift / order
        slot = descriptor.helix_index + descriptor.initial_index_shift
        self.sigma = descriptor.initial_curvilinear_abscissa + slot * self.section.perimeter / n
        self.u = self.section.parameter_at_abscissa(self.sigma)
        self._point = self.section.point(self.u)
        self._normal = self.section.normal(self.u)
        self._tangent2 = self.section.tangent(self.u)
        length = arc_length(self, 0.0, float(self.nb_turns))
        self._nb_nucl = max(1, int(round(length / helix_parameters.rise)))

    def _rotated(self, vec: np.ndarray, beta: float) -> np.ndarray:
        c, s = math.cos(beta), math.sin(beta)
        return np.array([c * vec[0] - s * vec[1], s * vec[0] + c * vec[1]])

    def bounds(self) -> CurveBounds:
        return CurveBounds.FINITE

    def t_max(self) -> float:
        return float(self.nb_turns)

    def position(self, t: float) -> np.ndarray:
        theta = TAU * t
        a, b = self._rotated(self._point, self.rotation_rate * t)
        radial = self.big_radius + a
        return np.array([radial * math.sin(theta), b, radial * math.cos(theta)])

    def speed(self, t: float) -> np.ndarray:
        theta = TAU * t
        beta = self.rotation_rate * t
        a, b = self._rotated(self._point, beta)
        da, db = self.rotation_rate * -b, self.rotation_rate * a
        radial = self.big_radius + a
        return np.array(
            [
                da * math.sin(theta) + radial * TAU * math.cos(theta),
                db,
                da * math.cos(theta) - radial * TAU * math.sin(theta),
            ]
        )

    def full_turn_at_t(self) -> Optional[float]:
        return float(self.nb_turns)

    def nucl_pos_full_turn(self) -> Optional[int]:
        return self._nb_nucl

    def pre_compute_polynomials(self) -> bool:
        return True

    def subdivision_for_t(self, t: float) -> Optional[int]:
        return min(max(int(math.floor(t)), 0), self.nb_turns - 1)

    def additional_isometry(self, segment_idx: int) -> Optional[Isometry2]:
        height = self.descriptor.number_of_helix_per_section * self.helix_parameters.inter_helix_axis_gap()
        return Isometry2(translation=(0.0, segment_idx * height))

    def surface_info_time(self, t: float, helix_id: int = 0) -> Optional[SurfaceInfo]:
        theta = TAU * t
        beta = self.rotation_rate * t
        radial_dir = np.array([math.sin(theta), 0.0, math.cos(theta)])
        up = np.array([0.0, 1.0, 0.0])
        n2 = self._rotated(self._normal, beta)
        point = SurfacePoint(
            revolution_angle=theta,
            abscissa_along_section=(self.sigma % self.section.perimeter) / self.section.perimeter,
            helix_id=helix_id,
            section_rotation_angle=beta,
        )
        return SurfaceInfo(
            point=point,
            section_tangent=self._rotated(self._tangent2, beta),
            local_frame=np.column_stack((np.cross(up, radial_dir), up, radial_dir)),
            position=self.position(t),
            normal=n2[0] * radial_dir + n2[1] * up,
        )


@register_descriptor("Torus")
@dataclass(frozen=True)
class TorusDescriptor(CurveDescriptor):
    big_radius: float
    half_nb_helix: int
    theta0: float = 0.0

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        return Torus(self.big_radius, self.half_nb_helix, self.theta0, helix_parameters)

    def to_dict(self) -> Dict[str, Any]:
        return {"big_radius": self.big_radius, "half_nb_helix": self.half_nb_helix, "theta0": self.theta0}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TorusDescriptor":
        kind = "Torus"
        return cls(
            big_radius=float_field(data, "big_radius", kind),
            half_nb_helix=int_field(data, "half_nb_helix", kind),
            theta0=float_field(data, "theta0", kind, 0.0),
        )


@register_descriptor("TwistedTorus")
@dataclass(frozen=True)
class TwistedTorusDescriptor(CurveDescriptor):
    """One helix of a twisted torus.

    Attributes:
        big_radius: Radius of the circle swept by the section center.
        curve: Section curve.
        curve_scale_factor: Scale applied to the section curve.
        symmetry_order: Order of the rotational symmetry of the section.
        number_of_helix_per_section: Number of helices evenly spaced along
            the section.
        helix_index_shift_per_turn: Rotation of the section per turn, in
            multiples of ``2pi / symmetry_order``.
        initial_index_shift: Slot shift applied to every helix.
        initial_curvilinear_abscissa: Abscissa of slot ``0`` on the section.
        helix_index: Slot of this helix.
    """

    big_radius: float
    curve: CurveDescriptor2D
    number_of_helix_per_section: int
    helix_index_shift_per_turn: int = 1
    symmetry_order: int = 2
    curve_scale_factor: float = 1.0
    initial_index_shift: int = 0
    initial_curvilinear_abscissa: float = 0.0
    helix_index: int = 0

    cacheable = True

    def __post_init__(self) -> None:
        if self.number_of_helix_per_section < 1:
            raise ValueError("a twisted torus needs at least one helix per section")
        if self.symmetry_order < 1:
            raise ValueError("symmetry order must be positive")

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        return TwistedTorus(self, helix_parameters)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "big_radius": self.big_radius,
            "curve": self.curve.to_dict(),
            "number_of_helix_per_section": self.number_of_helix_per_section,
            "helix_index_shift_per_turn": self.helix_index_shift_per_turn,
            "symmetry_order": self.symmetry_order,
            "curve_scale_factor": self.curve_scale_factor,
            "initial_index_shift": self.initial_index_shift,
            "initial_curvilinear_abscissa": self.initial_curvilinear_abscissa,
            "helix_index": self.helix_index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TwistedTorusDescriptor":
        kind = "TwistedTorus"
        return cls(
            big_radius=float_field(data, "big_radius", kind),
            curve=section_from_dict(field_value(data, "curve", kind)),
            number_of_helix_per_section=int_field(data, "number_of_helix_per_section", kind),
            helix_index_shift_per_turn=int_field(data, "helix_index_shift_per_turn", kind, 1),
            symmetry_order=int_field(data, "symmetry_order", kind, 2),
            curve_scale_factor=float_field(data, "curve_scale_factor", kind, 1.0),
            initial_index_shift=int_field(data, "initial_index_shift", kind, 0),
            initial_curvilinear_abscissa=float_field(data, "initial_curvilinear_abscissa", kind, 0.0),
            helix_index=int_field(data, "helix_index", kind, 0),
        )
