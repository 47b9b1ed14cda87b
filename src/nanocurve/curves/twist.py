"""Straight helix axes with an extra twist, and supercoiled axes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from nanocurve.curve import CurveBounds, Curved
from nanocurve.descriptor import (
    CurveDescriptor,
    float_field,
    float_list,
    put_optional,
    register_descriptor,
    vec_field,
)
from nanocurve.parameters import HelixParameters
from nanocurve.vecutil import IDENTITY_QUATERNION, rotation_matrix, vec3

__all__ = [
    "Twist",
    "SuperTwist",
    "TwistDescriptor",
    "SuperTwistDescriptor",
    "nb_turn_per_100_nt_to_omega",
    "omega_to_nb_turn_per_100_nt",
    "twist_to_omega",
]

TAU = 2.0 * math.pi
DEFAULT_HALF_LENGTH = 10.0


def nb_turn_per_100_nt_to_omega(nb_turn: float, helix_parameters: HelixParameters) -> float:
    """Angular speed (rad/nm) of an axis making ``nb_turn`` turns every 100 nucleotides."""
    return nb_turn * TAU / (100.0 * helix_parameters.rise)


def omega_to_nb_turn_per_100_nt(omega: float, helix_parameters: HelixParameters) -> float:
    return omega * 100.0 * helix_parameters.rise / TAU


def twist_to_omega(twist: float, helix_parameters: HelixParameters) -> float:
    """Angular speed (rad/nm) of an extra ``twist`` radians per nucleotide."""
    return twist / helix_parameters.rise


class Twist(Curved):
    """Helix of radius ``radius`` about the local ``z`` axis.

    ``t`` is the height along the axis in nanometers, so the curve makes
    ``omega / 2pi`` turns per nanometer. ``position`` and ``orientation``
    place the local frame in space.
    """

    def __init__(
        self,
        theta0: float,
        omega: float,
        radius: float,
        *,
        t_min: Optional[float] = None,
        t_max: Optional[float] = None,
        position=(0.0, 0.0, 0.0),
        orientation=IDENTITY_QUATERNION,
    ):
        self.theta0 = theta0
        self.omega = omega
        self.radius = radius
        self._t_min = -DEFAULT_HALF_LENGTH if t_min is None else t_min
        self._t_max = DEFAULT_HALF_LENGTH if t_max is None else t_max
        self.origin = vec3(position)
        self.matrix = rotation_matrix(orientation)
        self._k = math.sqrt(1.0 + (radius * omega) ** 2)

    def bounds(self) -> CurveBounds:
        return CurveBounds.BI_INFINITE

    def t_min(self) -> float:
        return self._t_min

    def t_max(self) -> float:
        return self._t_max

    def position(self, t: float) -> np.ndarray:
        a = self.omega * t + self.theta0
        local = np.array([self.radius * math.cos(a), self.radius * math.sin(a), t])
        return self.origin + self.matrix @ local

    def speed(self, t: float) -> np.ndarray:
        a = self.omega * t + self.theta0
        rw = self.radius * self.omega
        return self.matrix @ np.array([-rw * math.sin(a), rw * math.cos(a), 1.0])

    def acceleration(self, t: float) -> np.ndarray:
        a = self.omega * t + self.theta0
        rw2 = self.radius * self.omega * self.omega
        return self.matrix @ np.array([-rw2 * math.cos(a), -rw2 * math.sin(a), 0.0])

    def curvilinear_abscissa(self, t: float) -> Optional[float]:
        return t * self._k

    def inverse_curvilinear_abscissa(self, x: float) -> Optional[float]:
        return x / self._k


class SuperTwist(Curved):
    """Helix wound around a helical axis.

    The axis is a helix of radius ``major_radius`` making ``major_omega``
    radians per nanometer of height; the curve turns around it at distance
    ``radius`` with angular speed ``omega``, in the Frenet frame of the axis.
    """

    def __init__(
        self,
        theta0: float,
        omega: float,
        radius: float,
        major_radius: float,
        major_omega: float,
        *,
        t_min: float = -DEFAULT_HALF_LENGTH,
        t_max: float = DEFAULT_HALF_LENGTH,
        position=(0.0, 0.0, 0.0),
        orientation=IDENTITY_QUATERNION,
    ):
        self.theta0 = theta0
        self.omega = omega
        self.radius = radius
        self.major_radius = major_radius
        self.major_omega = major_omega
        self._t_min = t_min
        self._t_max = t_max
        self.origin = vec3(position)
        self.matrix = rotation_matrix(orientation)

    def bounds(self) -> CurveBounds:
        return CurveBounds.BI_INFINITE

    def t_min(self) -> float:
        return self._t_min

    def t_max(self) -> float:
        return self._t_max

    def position(self, t: float) -> np.ndarray:
        R, W = self.major_radius, self.major_omega
        c, s = math.cos(W * t), math.sin(W * t)
        axis = np.array([R * c, R * s, t])
        tangent = np.array([-R * W * s, R * W * c, 1.0])
        tangent /= np.linalg.norm(tangent)
        normal = np.array([-c, -s, 0.0])
        binormal = np.cross(tangent, normal)
        phi = self.omega * t + self.theta0
        local = axis + self.radius * (math.cos(phi) * normal + math.sin(phi) * binormal)
        return self.origin + self.matrix @ local


@register_descriptor("Twist")
@dataclass
class TwistDescriptor(CurveDescriptor):
    theta0: float
    omega: float
    radius: float
    t_min: Optional[float] = None
    t_max: Optional[float] = None
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: Tuple[float, float, float, float] = IDENTITY_QUATERNION

    def set_t_min(self, new_t_min: float) -> bool:
        if self.t_min is None or self.t_min > new_t_min:
            self.t_min = new_t_min
            self.revision += 1
            return True
        return False

    def set_t_max(self, new_t_max: float) -> bool:
        if self.t_max is None or self.t_max < new_t_max:
            self.t_max = new_t_max
            self.revision += 1
            return True
        return False

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        return Twist(
            self.theta0,
            self.omega,
            self.radius,
            t_min=self.t_min,
            t_max=self.t_max,
            position=self.position,
            orientation=self.orientation,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"theta0": self.theta0, "omega": self.omega, "radius": self.radius}
        put_optional(out, "t_min", self.t_min)
        put_optional(out, "t_max", self.t_max)
        out["position"] = float_list(self.position)
        out["orientation"] = float_list(self.orientation)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TwistDescriptor":
        kind = "Twist"
        return cls(
            theta0=float_field(data, "theta0", kind),
            omega=float_field(data, "omega", kind),
            radius=float_field(data, "radius", kind),
            t_min=float_field(data, "t_min", kind, None),
            t_max=float_field(data, "t_max", kind, None),
            position=vec_field(data, "position", kind, default=(0.0, 0.0, 0.0)),
            orientation=vec_field(data, "orientation", kind, size=4, default=IDENTITY_QUATERNION),
        )


@register_descriptor("SuperTwist")
@dataclass(frozen=True)
class SuperTwistDescriptor(CurveDescriptor):
    theta0: float
    omega: float
    radius: float
    major_radius: float
    major_omega: float
    length: float = 2.0 * DEFAULT_HALF_LENGTH
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: Tuple[float, float, float, float] = IDENTITY_QUATERNION

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        return SuperTwist(
            self.theta0,
            self.omega,
            self.radius,
            self.major_radius,
            self.major_omega,
            t_min=-self.length / 2.0,
            t_max=self.length / 2.0,
            position=self.position,
            orientation=self.orientation,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "theta0": self.theta0,
            "omega": self.omega,
            "radius": self.radius,
            "major_radius": self.major_radius,
            "major_omega": self.major_omega,
            "length": self.length,
            "position": float_list(self.position),
            "orientation": float_list(self.orientation),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SuperTwistDescriptor":
        kind = "SuperTwist"
        return cls(
            theta0=float_field(data, "theta0", kind),
            omega=float_field(data, "omega", kind),
            radius=float_field(data, "radius", kind),
            major_radius=float_field(data, "major_radius", kind),
            major_omega=float_field(data, "major_omega", kind),
            length=float_field(data, "length", kind, 2.0 * DEFAULT_HALF_LENGTH),
            position=vec_field(data, "position", kind, default=(0.0, 0.0, 0.0)),
            orientation=vec_field(data, "orientation", kind, size=4, default=IDENTITY_QUATERNION),
        )
