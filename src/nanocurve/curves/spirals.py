"""Spirals on spheres and cylinders."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from nanocurve.abscissa import AbscissaConverter
from nanocurve.curve import CurveBounds, Curved
from nanocurve.descriptor import (
    CurveDescriptor,
    field_value,
    float_field,
    float_list,
    int_field,
    put_optional,
    register_descriptor,
    vec_field,
)
from nanocurve.errors import DescriptorError
from nanocurve.parameters import HelixParameters
from nanocurve.vecutil import IDENTITY_QUATERNION, rotation_matrix, vec3

__all__ = [
    "SphereOrientation",
    "SphereLikeSpiral",
    "SphereLikeSpiralDescriptor",
    "TubeSpiral",
    "TubeSpiralDescriptor",
    "SpiralCylinder",
    "SpiralCylinderDescriptor",
]

TAU = 2.0 * math.pi


class SphereOrientation(enum.Enum):
    """World axis along which the poles of a sphere spiral are aligned."""

    X = "X"
    Y = "Y"
    Z = "Z"

    def orient(self, p: np.ndarray) -> np.ndarray:
        # cyclic permutations of the coordinates are rotations
        if self is SphereOrientation.X:
            return np.array([p[2], p[0], p[1]])
        if self is SphereOrientation.Y:
            return np.array([p[1], p[2], p[0]])
        return p


class SphereLikeSpiral(Curved):
    """Spiral from pole to pole of a sphere.

    ``t`` is the polar angle. Consecutive turns of the spiral are
    ``number_of_helices`` axis gaps apart along a meridian, leaving room for
    the other helices of the shape, which use a different ``theta_0``.
    """

    def __init__(
        self,
        radius: float,
        theta_0: float,
        inter_helix_axis_gap: float,
        *,
        number_of_helices: int = 2,
        minimum_diameter: Optional[float] = None,
        orientation: SphereOrientation = SphereOrientation.Z,
    ):
        if radius <= 0:
            raise ValueError("sphere radius must be positive")
        self.radius = radius
        self.theta_0 = theta_0
        self.orientation = orientation
        self.k = TAU * radius / (number_of_helices * inter_helix_axis_gap)
        if minimum_diameter is None:
            phi_min = min(inter_helix_axis_gap / radius, math.pi / 4.0)
        else:
            phi_min = math.asin(min(1.0, minimum_diameter / (2.0 * radius)))
        if phi_min >= math.pi / 2.0:
            raise ValueError("minimum diameter leaves no room for the spiral")
        self._t_min = phi_min
        self._t_max = math.pi - phi_min

    def bounds(self) -> CurveBounds:
        return CurveBounds.FINITE

    def t_min(self) -> float:
        return self._t_min

    def t_max(self) -> float:
        return self._t_max

    def position(self, t: float) -> np.ndarray:
        theta = self.theta_0 + self.k * t
        r = self.radius
        local = np.array([r * math.sin(t) * math.cos(theta), r * math.sin(t) * math.sin(theta), r * math.cos(t)])
        return self.orientation.orient(local)

    def pre_compute_polynomials(self) -> bool:
        return True


class TubeSpiral(Curved):
    """Helix of ``number_of_turns`` turns on a cylindrical tube.

    The tube axis is the local ``z`` axis, placed in space by ``position``
    and ``orientation``. An explicit ``rise_ratio`` changes the nucleotide
    spacing along the curve.
    """

    def __init__(
        self,
        radius: float,
        pitch: float,
        number_of_turns: float,
        *,
        theta_0: float = 0.0,
        position=(0.0, 0.0, 0.0),
        orientation=IDENTITY_QUATERNION,
        rise_ratio: Optional[float] = None,
    ):
        if radius <= 0 or number_of_turns <= 0:
            raise ValueError("tube spiral radius and number of turns must be positive")
        self.radius = radius
        self.pitch = pitch
        self.number_of_turns = number_of_turns
        self.theta_0 = theta_0
        self.origin = vec3(position)
        self.matrix = rotation_matrix(orientation)
        self._rise_ratio = rise_ratio
        self._d = math.sqrt((TAU * radius) ** 2 + pitch * pitch)

    def bounds(self) -> CurveBounds:
        return CurveBounds.FINITE

    def t_max(self) -> float:
        return self.number_of_turns

    def position(self, t: float) -> np.ndarray:
        a = self.theta_0 + TAU * t
        local = np.array([self.radius * math.cos(a), self.radius * math.sin(a), self.pitch * t])
        return self.origin + self.matrix @ local

    def speed(self, t: float) -> np.ndarray:
        a = self.theta_0 + TAU * t
        rt = self.radius * TAU
        return self.matrix @ np.array([-rt * math.sin(a), rt * math.cos(a), self.pitch])

    def acceleration(self, t: float) -> np.ndarray:
        a = self.theta_0 + TAU * t
        rt2 = self.radius * TAU * TAU
        return self.matrix @ np.array([-rt2 * math.cos(a), -rt2 * math.sin(a), 0.0])

    def curvilinear_abscissa(self, t: float) -> Optional[float]:
        return self._d * t

    def inverse_curvilinear_abscissa(self, x: float) -> Optional[float]:
        return x / self._d

    def rise_ratio(self) -> Optional[float]:
        return self._rise_ratio


class SpiralCylinder(Curved):
    """One of ``number_of_helices`` interleaved spirals wound on a cylinder.

    The pitch is chosen so that the spirals are exactly one axis gap apart,
    measured orthogonally to the helices. The curve extends one turn beyond
    each end of the ``number_of_turns`` requested turns.
    """

    def __init__(
        self,
        theta_0: float,
        radius: float,
        number_of_turns: float,
        number_of_helices: int,
        helix_index: int,
        inter_helix_axis_gap: float,
    ):
        if number_of_helices < 1:
            raise ValueError("a spiral cylinder needs at least one helix")
        slope = number_of_helices * inter_helix_axis_gap / TAU / radius
        if not slope < 1.0:
            raise ValueError("spiral cylinder radius is too small for its inter helix axis gap")
        self.theta_0 = theta_0
        self.radius = radius
        self.number_of_turns = number_of_turns
        self.number_of_helices = number_of_helices
        self.helix_index = helix_index % number_of_helices
        self.inter_helix_axis_gap = inter_helix_axis_gap
        self.rise_per_turn = number_of_helices * inter_helix_axis_gap / math.sqrt(1.0 - slope * slope)
        rt = radius * TAU
        self.d_curvilinear_abscissa = math.sqrt(rt * rt + self.rise_per_turn * self.rise_per_turn)

    def _theta(self, t: float) -> float:
        return t * TAU + self.theta_0 + TAU * self.helix_index / self.number_of_helices

    def bounds(self) -> CurveBounds:
        return CurveBounds.BI_INFINITE

    def t_min(self) -> float:
        return -1.0

    def t_max(self) -> float:
        return self.number_of_turns + 1.0

    def position(self, t: float) -> np.ndarray:
        theta = self._theta(t)
        return np.array([self.radius * math.cos(theta), self.radius * math.sin(theta), self.rise_per_turn * t])

    def speed(self, t: float) -> np.ndarray:
        theta = self._theta(t)
        rt = self.radius * TAU
        return np.array([-rt * math.sin(theta), rt * math.cos(theta), self.rise_per_turn])

    def acceleration(self, t: float) -> np.ndarray:
        theta = self._theta(t)
        rt2 = self.radius * TAU * TAU
        return np.array([-rt2 * math.cos(theta), -rt2 * math.sin(theta), 0.0])

    def is_time_maps_singleton(self) -> bool:
        return True

    def abscissa_converter(self) -> Optional[AbscissaConverter]:
        return AbscissaConverter.linear(self.d_curvilinear_abscissa)

    def full_turn_at_t(self) -> Optional[float]:
        return 1.0

    def curvilinear_abscissa(self, t: float) -> Optional[float]:
        return self.d_curvilinear_abscissa * (t - self.t_min())

    def inverse_curvilinear_abscissa(self, x: float) -> Optional[float]:
        return x / self.d_curvilinear_abscissa + self.t_min()


@register_descriptor("SphereLikeSpiral")
@dataclass(frozen=True)
class SphereLikeSpiralDescriptor(CurveDescriptor):
    theta_0: float
    radius: float
    minimum_diameter: Optional[float] = None
    number_of_helices: int = 2
    orientation: SphereOrientation = SphereOrientation.Z

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        return SphereLikeSpiral(
            self.radius,
            self.theta_0,
            helix_parameters.inter_helix_axis_gap(),
            number_of_helices=self.number_of_helices,
            minimum_diameter=self.minimum_diameter,
            orientation=self.orientation,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"theta_0": self.theta_0, "radius": self.radius}
        put_optional(out, "minimum_diameter", self.minimum_diameter)
        out["number_of_helices"] = self.number_of_helices
        out["orientation"] = self.orientation.value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SphereLikeSpiralDescriptor":
        kind = "SphereLikeSpiral"
        orientation = field_value(data, "orientation", kind, "Z")
        try:
            orientation = SphereOrientation(orientation)
        except ValueError as exc:
            raise DescriptorError(f"unknown sphere orientation: {orientation!r}") from exc
        return cls(
            theta_0=float_field(data, "theta_0", kind),
            radius=float_field(data, "radius", kind),
            minimum_diameter=float_field(data, "minimum_diameter", kind, None),
            number_of_helices=int_field(data, "number_of_helices", kind, 2),
            orientation=orientation,
        )


@register_descriptor("TubeSpiral")
@dataclass(frozen=True)
class TubeSpiralDescriptor(CurveDescriptor):
    radius: float
    pitch: float
    number_of_turns: float
    theta_0: float = 0.0
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: Tuple[float, float, float, float] = IDENTITY_QUATERNION
    rise_ratio: Optional[float] = None

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        return TubeSpiral(
            self.radius,
            self.pitch,
            self.number_of_turns,
            theta_0=self.theta_0,
            position=self.position,
            orientation=self.orientation,
            rise_ratio=self.rise_ratio,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "radius": self.radius,
            "pitch": self.pitch,
            "number_of_turns": self.number_of_turns,
            "theta_0": self.theta_0,
            "position": float_list(self.position),
            "orientation": float_list(self.orientation),
        }
        put_optional(out, "rise_ratio", self.rise_ratio)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TubeSpiralDescriptor":
        kind = "TubeSpiral"
        return cls(
            radius=float_field(data, "radius", kind),
            pitch=float_field(data, "pitch", kind),
            number_of_turns=float_field(data, "number_of_turns", kind),
            theta_0=float_field(data, "theta_0", kind, 0.0),
            position=vec_field(data, "position", kind, default=(0.0, 0.0, 0.0)),
            orientation=vec_field(data, "orientation", kind, size=4, default=IDENTITY_QUATERNION),
            rise_ratio=float_field(data, "rise_ratio", kind, None),
        )


@register_descriptor("SpiralCylinder")
@dataclass(frozen=True)
class SpiralCylinderDescriptor(CurveDescriptor):
    theta_0: float
    radius: float
    number_of_turns: float
    helix_index: int
    number_of_helices: int = 2
    inter_helix_axis_gap: Optional[float] = None

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        gap = self.inter_helix_axis_gap
        if gap is None:
            gap = helix_parameters.inter_helix_axis_gap()
        return SpiralCylinder(
            self.theta_0,
            self.radius,
            self.number_of_turns,
            self.number_of_helices,
            self.helix_index,
            gap,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "theta_0": self.theta_0,
            "radius": self.radius,
            "number_of_turns": self.number_of_turns,
            "number_of_helices": self.number_of_helices,
            "helix_index": self.helix_index,
        }
        put_optional(out, "inter_helix_axis_gap", self.inter_helix_axis_gap)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpiralCylinderDescriptor":
        kind = "SpiralCylinder"
        return cls(
            theta_0=float_field(data, "theta_0", kind),
            radius=float_field(data, "radius", kind),
            number_of_turns=float_field(data, "number_of_turns", kind),
            helix_index=int_field(data, "helix_index", kind),
            number_of_helices=int_field(data, "number_of_helices", kind, 2),
            inter_helix_axis_gap=float_field(data, "inter_helix_axis_gap", kind, None),
        )
