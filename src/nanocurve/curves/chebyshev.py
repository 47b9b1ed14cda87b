"""Curves whose coordinates are Chebyshev polynomials of time.

Coordinates are given in angstroms, either directly as Chebyshev
coefficients or as sampled values that are interpolated to within
``1e-4``; positions are returned in nanometers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Tuple

import numpy as np
from numpy.polynomial import Chebyshev

from nanocurve.curve import CurveBounds, Curved
from nanocurve.descriptor import CurveDescriptor, field_value, register_descriptor, vec_field
from nanocurve.errors import DescriptorError
from nanocurve.parameters import HelixParameters

__all__ = [
    "InterpolationDescriptor",
    "PointsValues",
    "ChebyshevCoefficients",
    "interpolation_from_dict",
    "eval_normalized",
    "PolynomialCurve",
    "ChebyshevDescriptor",
]

INTERPOLATION_TOLERANCE = 1e-4
ANGSTROM_PER_NM = 10.0


class InterpolationDescriptor:
    """A real function of one variable, instantiated as a Chebyshev series."""

    def instantiated(self) -> Chebyshev:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class PointsValues(InterpolationDescriptor):
    points: Tuple[float, ...]
    values: Tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.points) != len(self.values) or len(self.points) < 2:
            raise ValueError("interpolation needs at least two points with one value each")
        if any(b <= a for a, b in zip(self.points[:-1], self.points[1:])):
            raise ValueError("interpolation points must be strictly increasing")

    def instantiated(self) -> Chebyshev:
        xs = np.asarray(self.points, dtype=float)
        ys = np.asarray(self.values, dtype=float)
        domain = [xs[0], xs[-1]]
        poly = None
        for deg in range(1, len(xs)):
            poly = Chebyshev.fit(xs, ys, deg, domain=domain)
            if np.max(np.abs(poly(xs) - ys)) <= INTERPOLATION_TOLERANCE:
                break
        return poly

    def to_dict(self) -> Dict[str, Any]:
        return {"PointsValues": {"points": list(self.points), "values": list(self.values)}}


@dataclass(frozen=True)
class ChebyshevCoefficients(InterpolationDescriptor):
    coeffs: Tuple[float, ...]
    interval: Tuple[float, float] = (-1.0, 1.0)

    def __post_init__(self) -> None:
        if not self.coeffs:
            raise ValueError("a Chebyshev series needs at least one coefficient")
        if not self.interval[1] > self.interval[0]:
            raise ValueError("Chebyshev interval must be increasing")

    def instantiated(self) -> Chebyshev:
        return Chebyshev(np.asarray(self.coeffs, dtype=float), domain=list(self.interval))

    def to_dict(self) -> Dict[str, Any]:
        return {"Chebyshev": {"coeffs": list(self.coeffs), "interval": list(self.interval)}}


def interpolation_from_dict(data: Dict[str, Any]) -> InterpolationDescriptor:
    if not isinstance(data, dict) or len(data) != 1:
        raise DescriptorError(f"interpolation must be a single-key mapping, got {data!r}")
    (kind, fields), = data.items()
    try:
        if kind == "PointsValues":
            return PointsValues(
                points=tuple(float(v) for v in field_value(fields, "points", kind)),
                values=tuple(float(v) for v in field_value(fields, "values", kind)),
            )
        if kind == "Chebyshev":
            return ChebyshevCoefficients(
                coeffs=tuple(float(v) for v in field_value(fields, "coeffs", kind)),
                interval=vec_field(fields, "interval", kind, size=2, default=(-1.0, 1.0)),
            )
    except DescriptorError:
        raise
    except (TypeError, ValueError) as exc:
        raise DescriptorError(f"invalid {kind} interpolation: {exc}") from exc
    raise DescriptorError(f"unknown interpolation kind: {kind!r}")


def eval_normalized(poly: Chebyshev, t: float) -> float:
    """Value of ``poly`` at the point of its domain with normalized coordinate ``t``."""
    t_min, t_max = poly.domain
    return float(poly(t_min * (1.0 - t) + t_max * t))


class PolynomialCurve(Curved):
    """Curve ``t -> (x(t), y(t), z(t))`` for ``t`` in ``[0, 1]``."""

    def __init__(self, x: Chebyshev, y: Chebyshev, z: Chebyshev):
        self._coords = (x, y, z)
        self._derivs = tuple(p.deriv() for p in self._coords)
        self._second = tuple(p.deriv(2) for p in self._coords)

    def bounds(self) -> CurveBounds:
        return CurveBounds.FINITE

    def position(self, t: float) -> np.ndarray:
        return np.array([eval_normalized(p, t) for p in self._coords]) / ANGSTROM_PER_NM

    def speed(self, t: float) -> np.ndarray:
        return np.array(
            [eval_normalized(d, t) * (p.domain[1] - p.domain[0]) for p, d in zip(self._coords, self._derivs)]
        ) / ANGSTROM_PER_NM

    def acceleration(self, t: float) -> np.ndarray:
        return np.array(
            [eval_normalized(d, t) * (p.domain[1] - p.domain[0]) ** 2 for p, d in zip(self._coords, self._second)]
        ) / ANGSTROM_PER_NM


@register_descriptor("Chebyshev")
@dataclass(frozen=True)
class ChebyshevDescriptor(CurveDescriptor):
    """Polynomial coordinates ``x``, ``y`` and ``z``."""

    x: InterpolationDescriptor
    y: InterpolationDescriptor
    z: InterpolationDescriptor

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        return PolynomialCurve(self.x.instantiated(), self.y.instantiated(), self.z.instantiated())

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x.to_dict(), "y": self.y.to_dict(), "z": self.z.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChebyshevDescriptor":
        kind = "Chebyshev"
        return cls(
            x=interpolation_from_dict(field_value(data, "x", kind)),
            y=interpolation_from_dict(field_value(data, "y", kind)),
            z=interpolation_from_dict(field_value(data, "z", kind)),
        )
