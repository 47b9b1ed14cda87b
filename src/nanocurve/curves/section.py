"""Closed planar curves used as the section of tori and revolution shapes.

A section descriptor is a frozen, hashable dataclass serialized in the same
externally tagged form as the curve descriptors. :class:`Section` wraps a
descriptor with an arc length table so that points can be addressed by their
abscissa along the section.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, ClassVar, Dict

import numpy as np

from nanocurve.descriptor import float_field
from nanocurve.errors import DescriptorError

__all__ = ["CurveDescriptor2D", "Ellipse", "SuperEllipse", "Section", "section_from_dict"]

_TABLE_SIZE = 4096


class CurveDescriptor2D:
    """Base class of the section curves, parametrized by an angle ``u``."""

    kind: ClassVar[str] = ""
    symmetry_order: ClassVar[int] = 2

    def point(self, u: float) -> np.ndarray:
        raise NotImplementedError

    def derivative(self, u: float) -> np.ndarray:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class Ellipse(CurveDescriptor2D):
    semi_minor_axis: float
    semi_major_axis: float

    kind: ClassVar[str] = "Ellipse"

    def __post_init__(self) -> None:
        if self.semi_minor_axis <= 0 or self.semi_major_axis <= 0:
            raise ValueError("ellipse axes must be positive")

    def point(self, u: float) -> np.ndarray:
        return np.array([self.semi_major_axis * math.cos(u), self.semi_minor_axis * math.sin(u)])

    def derivative(self, u: float) -> np.ndarray:
        return np.array([-self.semi_major_axis * math.sin(u), self.semi_minor_axis * math.cos(u)])

    def to_dict(self) -> Dict[str, Any]:
        return {"Ellipse": {"semi_minor_axis": self.semi_minor_axis, "semi_major_axis": self.semi_major_axis}}


@dataclass(frozen=True)
class SuperEllipse(CurveDescriptor2D):
    """Lame curve ``|x/a|**e + |y/b|**e = 1``."""

    a: float
    b: float
    exponent: float = 4.0

    kind: ClassVar[str] = "SuperEllipse"

    def __post_init__(self) -> None:
        if self.a <= 0 or self.b <= 0:
            raise ValueError("super ellipse axes must be positive")
        if self.exponent < 2:
            raise ValueError("super ellipse exponent must be at least 2")

    def point(self, u: float) -> np.ndarray:
        c, s = math.cos(u), math.sin(u)
        p = 2.0 / self.exponent
        return np.array([self.a * math.copysign(abs(c) ** p, c), self.b * math.copysign(abs(s) ** p, s)])

    def derivative(self, u: float) -> np.ndarray:
        # the closed form is singular on the axes
        h = 1e-6
        return (self.point(u + h) - self.point(u - h)) / (2.0 * h)

    def to_dict(self) -> Dict[str, Any]:
        return {"SuperEllipse": {"a": self.a, "b": self.b, "exponent": self.exponent}}


def section_from_dict(data: Dict[str, Any]) -> CurveDescriptor2D:
    if not isinstance(data, dict) or len(data) != 1:
        raise DescriptorError(f"section curve must be a single-key mapping, got {data!r}")
    (kind, fields), = data.items()
    if kind == "Ellipse":
        return Ellipse(
            semi_minor_axis=float_field(fields, "semi_minor_axis", kind),
            semi_major_axis=float_field(fields, "semi_major_axis", kind),
        )
    if kind == "SuperEllipse":
        return SuperEllipse(
            a=float_field(fields, "a", kind),
            b=float_field(fields, "b", kind),
            exponent=float_field(fields, "exponent", kind, 4.0),
        )
    raise DescriptorError(f"unknown section curve kind: {kind!r}")


class Section:
    """A section curve scaled by ``scale``, addressable by arc length."""

    def __init__(self, curve: CurveDescriptor2D, scale: float = 1.0):
        if scale <= 0:
            raise ValueError("section scale must be positive")
        self.curve = curve
        self.scale = float(scale)
        us = np.linspace(0.0, 2.0 * math.pi, _TABLE_SIZE + 1)
        pts = np.array([curve.point(u) for u in us]) * self.scale
        chords = np.linalg.norm(np.diff(pts, axis=0), axis=1)
        self._us = us
        self._abscissa = np.concatenate(([0.0], np.cumsum(chords)))
        self.perimeter = float(self._abscissa[-1])
        self.max_radius = float(np.max(np.linalg.norm(pts, axis=1)))

    def point(self, u: float) -> np.ndarray:
        return self.curve.point(u) * self.scale

    def tangent(self, u: float) -> np.ndarray:
        d = self.curve.derivative(u)
        norm = float(np.linalg.norm(d))
        return d / norm if norm > 0 else np.array([1.0, 0.0])

    def normal(self, u: float) -> np.ndarray:
        """Outward unit normal (the curves run counterclockwise)."""
        tx, ty = self.tangent(u)
        return np.array([ty, -tx])

    def parameter_at_abscissa(self, sigma: float) -> float:
        sigma = sigma % self.perimeter
        return float(np.interp(sigma, self._abscissa, self._us))

    def abscissa_at_parameter(self, u: float) -> float:
        return float(np.interp(u % (2.0 * math.pi), self._us, self._abscissa))
