"""Bezier curves: single cubic segments, piecewise paths and translated paths."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from nanocurve.curve import CurveBounds, Curved
from nanocurve.descriptor import (
    CurveDescriptor,
    as_tuple3,
    field_value,
    float_field,
    float_list,
    int_field,
    put_optional,
    register_descriptor,
    vec_field,
)
from nanocurve.errors import DescriptorError
from nanocurve.grid import CurveInstantiator, Edge, GridPosition
from nanocurve.parameters import HelixParameters
from nanocurve.vecutil import vec3

__all__ = [
    "CubicBezier",
    "BezierEndCoordinates",
    "PiecewiseBezier",
    "TranslatedPiecewiseBezier",
    "BezierDescriptor",
    "BezierEnd",
    "PiecewiseBezierDescriptor",
    "TranslatedPathDescriptor",
    "instantiate_piecewise_bezier",
]


def _cubic(p0, p1, p2, p3, u: float) -> np.ndarray:
    v = 1.0 - u
    return v * v * v * p0 + 3.0 * v * v * u * p1 + 3.0 * v * u * u * p2 + u * u * u * p3


def _cubic_speed(p0, p1, p2, p3, u: float) -> np.ndarray:
    v = 1.0 - u
    return 3.0 * (v * v * (p1 - p0) + 2.0 * v * u * (p2 - p1) + u * u * (p3 - p2))


def _cubic_acceleration(p0, p1, p2, p3, u: float) -> np.ndarray:
    return 6.0 * ((1.0 - u) * (p2 - 2.0 * p1 + p0) + u * (p3 - 2.0 * p2 + p1))


class CubicBezier(Curved):
    """Cubic Bezier segment over ``t`` in ``[0, 1]``."""

    def __init__(self, start, control1, control2, end):
        self.controls = tuple(vec3(p) for p in (start, control1, control2, end))

    @classmethod
    def straight(cls, start, end) -> "CubicBezier":
        """Segment with evenly spaced control points, hence constant speed."""
        a, b = vec3(start), vec3(end)
        return cls(a, a + (b - a) / 3.0, a + 2.0 * (b - a) / 3.0, b)

    def bounds(self) -> CurveBounds:
        return CurveBounds.FINITE

    def position(self, t: float) -> np.ndarray:
        return _cubic(*self.controls, t)

    def speed(self, t: float) -> np.ndarray:
        return _cubic_speed(*self.controls, t)

    def acceleration(self, t: float) -> np.ndarray:
        return _cubic_acceleration(*self.controls, t)


@dataclass(eq=False)
class BezierEndCoordinates:
    """Vertex of a piecewise Bezier curve with its two control vectors."""

    position: np.ndarray
    vector_in: np.ndarray
    vector_out: np.ndarray


class PiecewiseBezier(Curved):
    """Chain of cubic segments, segment ``i`` covering ``t`` in ``[i, i + 1]``.

    Segment ``i`` goes from vertex ``i`` to vertex ``i + 1`` with control
    points ``position_i + vector_out_i`` and ``position_{i+1} - vector_in_{i+1}``.
    A cyclic curve has an extra segment from the last vertex back to the
    first one and repeats with period ``len(ends)``. Outside of
    ``[0, nb_segments]`` a non cyclic curve continues along the tangent of its
    extremities, which is how a helix grows past the ends of its path.
    """

    def __init__(
        self,
        ends: Sequence[BezierEndCoordinates],
        *,
        t_min: Optional[float] = None,
        t_max: Optional[float] = None,
        cyclic: bool = False,
        quick: bool = False,
    ):
        self.ends = list(ends)
        self.cyclic = cyclic and len(self.ends) > 1
        self._t_min = t_min
        self._t_max = t_max
        self._quick = quick
        if len(self.ends) < 2:
            self.nb_segments = 0
        else:
            self.nb_segments = len(self.ends) if self.cyclic else len(self.ends) - 1

    @classmethod
    def empty(cls) -> "PiecewiseBezier":
        return cls([])

    def is_empty(self) -> bool:
        return self.nb_segments == 0

    def segment(self, i: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        a = self.ends[i]
        b = self.ends[(i + 1) % len(self.ends)]
        return a.position, a.position + a.vector_out, b.position - b.vector_in, b.position

    def bezier_controls(self) -> List[np.ndarray]:
        ret: List[np.ndarray] = []
        for i in range(self.nb_segments):
            p0, p1, p2, p3 = self.segment(i)
            if not ret:
                ret.append(p0)
            ret.extend([p1, p2, p3])
        return ret

    def _locate(self, t: float) -> Tuple[int, float]:
        n = self.nb_segments
        if self.cyclic:
            t = t % n
        i = min(max(int(math.floor(t)), 0), n - 1)
        return i, t - i

    def bounds(self) -> CurveBounds:
        if self.cyclic:
            return CurveBounds.BI_INFINITE
        if self.t_min() < 0.0 or self.t_max() > self.nb_segments:
            return CurveBounds.BI_INFINITE
        return CurveBounds.FINITE

    def t_min(self) -> float:
        return 0.0 if self._t_min is None else self._t_min

    def t_max(self) -> float:
        return float(self.nb_segments) if self._t_max is None else self._t_max

    def position(self, t: float) -> np.ndarray:
        n = self.nb_segments
        if n == 0:
            return self.ends[0].position.copy() if self.ends else np.zeros(3)
        if not self.cyclic and t < 0.0:
            return self.segment(0)[0] + t * _cubic_speed(*self.segment(0), 0.0)
        if not self.cyclic and t > n:
            return self.segment(n - 1)[3] + (t - n) * _cubic_speed(*self.segment(n - 1), 1.0)
        i, u = self._locate(t)
        return _cubic(*self.segment(i), u)

    def speed(self, t: float) -> np.ndarray:
        n = self.nb_segments
        if n == 0:
            return np.zeros(3)
        if not self.cyclic and t < 0.0:
            return _cubic_speed(*self.segment(0), 0.0)
        if not self.cyclic and t > n:
            return _cubic_speed(*self.segment(n - 1), 1.0)
        i, u = self._locate(t)
        return _cubic_speed(*self.segment(i), u)

    def acceleration(self, t: float) -> np.ndarray:
        n = self.nb_segments
        if n == 0 or (not self.cyclic and (t < 0.0 or t > n)):
            return np.zeros(3)
        i, u = self._locate(t)
        return _cubic_acceleration(*self.segment(i), u)

    def full_turn_at_t(self) -> Optional[float]:
        return float(self.nb_segments) if self.cyclic else None

    def pre_compute_polynomials(self) -> bool:
        return self.nb_segments > 1

    def discretize_quickly(self) -> bool:
        return self._quick


class TranslatedPiecewiseBezier(Curved):
    """A Bezier path whose helices are offset in the frame of each point."""

    def __init__(
        self,
        original_curve: PiecewiseBezier,
        translation,
        initial_frame: np.ndarray,
        legacy: bool = False,
    ):
        self.original_curve = original_curve
        self._translation = vec3(translation)
        self._initial_frame = np.array(initial_frame, dtype=float)
        self._legacy = legacy

    def bounds(self) -> CurveBounds:
        return self.original_curve.bounds()

    def t_min(self) -> float:
        return self.original_curve.t_min()

    def t_max(self) -> float:
        return self.original_curve.t_max()

    def position(self, t: float) -> np.ndarray:
        return self.original_curve.position(t)

    def speed(self, t: float) -> np.ndarray:
        return self.original_curve.speed(t)

    def acceleration(self, t: float) -> np.ndarray:
        return self.original_curve.acceleration(t)

    def full_turn_at_t(self) -> Optional[float]:
        return self.original_curve.full_turn_at_t()

    def pre_compute_polynomials(self) -> bool:
        return self.original_curve.pre_compute_polynomials()

    def discretize_quickly(self) -> bool:
        return self.original_curve.discretize_quickly()

    def translation(self) -> Optional[np.ndarray]:
        return self._translation

    def initial_frame(self) -> Optional[np.ndarray]:
        return self._initial_frame

    def legacy(self) -> bool:
        return self._legacy


# descriptors


@register_descriptor("Bezier")
@dataclass(frozen=True)
class BezierDescriptor(CurveDescriptor):
    """A single cubic segment given by its four control points."""

    start: Tuple[float, float, float]
    control1: Tuple[float, float, float]
    control2: Tuple[float, float, float]
    end: Tuple[float, float, float]

    def build_curve(self, helix_parameters: HelixParameters) -> Curved:
        return CubicBezier(self.start, self.control1, self.control2, self.end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": float_list(self.start),
            "control1": float_list(self.control1),
            "control2": float_list(self.control2),
            "end": float_list(self.end),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BezierDescriptor":
        kind = "Bezier"
        return cls(*(vec_field(data, key, kind) for key in ("start", "control1", "control2", "end")))


@dataclass(frozen=True)
class BezierEnd:
    """Vertex of a piecewise Bezier descriptor, located on a grid."""

    position: GridPosition
    inclination: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"position": self.position.to_dict(), "inclination": self.inclination}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BezierEnd":
        if not isinstance(data, dict):
            raise DescriptorError(f"invalid Bezier end: {data!r}")
        return cls(
            position=GridPosition.from_dict(field_value(data, "position", "BezierEnd")),
            inclination=float_field(data, "inclination", "BezierEnd", 0.0),
        )


def _widen(current: Optional[float], new: float, lower: bool) -> Tuple[Optional[float], bool]:
    if current is None or (new < current if lower else new > current):
        return new, True
    return current, False


@register_descriptor("PiecewiseBezier")
@dataclass
class PiecewiseBezierDescriptor(CurveDescriptor):
    """Piecewise Bezier curve through grid cells."""

    points: List[BezierEnd] = field(default_factory=list)
    t_min: Optional[float] = None
    t_max: Optional[float] = None

    symbolic = True

    def set_t_min(self, new_t_min: float) -> bool:
        self.t_min, changed = _widen(self.t_min, new_t_min, lower=True)
        if changed:
            self.revision += 1
        return changed

    def set_t_max(self, new_t_max: float) -> bool:
        self.t_max, changed = _widen(self.t_max, new_t_max, lower=False)
        if changed:
            self.revision += 1
        return changed

    def grid_positions_involved(self) -> List[GridPosition]:
        return [p.position for p in self.points]

    def translated(self, edge: Edge, instantiator: CurveInstantiator) -> Optional["PiecewiseBezierDescriptor"]:
        points = []
        for p in self.points:
            moved = instantiator.translate_by_edge(p.position, edge)
            if moved is None:
                return None
            points.append(BezierEnd(moved, p.inclination))
        return PiecewiseBezierDescriptor(points, self.t_min, self.t_max)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        put_optional(out, "t_min", self.t_min)
        put_optional(out, "t_max", self.t_max)
        out["points"] = [p.to_dict() for p in self.points]
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PiecewiseBezierDescriptor":
        kind = "PiecewiseBezier"
        points = field_value(data, "points", kind)
        if not isinstance(points, list):
            raise DescriptorError("PiecewiseBezier field 'points' must be a list")
        return cls(
            points=[BezierEnd.from_dict(p) for p in points],
            t_min=float_field(data, "t_min", kind, None),
            t_max=float_field(data, "t_max", kind, None),
        )


@register_descriptor("TranslatedPath")
@dataclass(frozen=True)
class TranslatedPathDescriptor(CurveDescriptor):
    """A helix following a Bezier path of the design at a fixed offset."""

    path_id: int
    translation: Tuple[float, float, float]
    legacy: bool = False

    symbolic = True

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"path_id": self.path_id, "translation": float_list(self.translation)}
        if self.legacy:
            out["legacy"] = True
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranslatedPathDescriptor":
        kind = "TranslatedPath"
        return cls(
            path_id=int_field(data, "path_id", kind),
            translation=as_tuple3(vec_field(data, "translation", kind)),
            legacy=bool(field_value(data, "legacy", kind, False)),
        )


def _catmull_rom_ends(positions: Sequence[np.ndarray]) -> List[BezierEndCoordinates]:
    ends = []
    last = len(positions) - 1
    for i, p in enumerate(positions):
        prev = positions[max(i - 1, 0)]
        nxt = positions[min(i + 1, last)]
        scale = 0.5 if 0 < i < last else 1.0
        vector = (nxt - prev) * scale / 3.0
        ends.append(BezierEndCoordinates(p, vector, vector))
    return ends


def instantiate_piecewise_bezier(
    descriptor: PiecewiseBezierDescriptor,
    instantiator: CurveInstantiator,
) -> Optional[PiecewiseBezier]:
    """Resolve the grid cells of ``descriptor`` to a concrete curve.

    Two-vertex curves take their control vectors from the instantiator;
    longer ones use Catmull-Rom tangents. ``None`` when a cell cannot be
    resolved.
    """
    points = descriptor.points
    if len(points) < 2:
        return None
    positions = []
    for p in points:
        pos = instantiator.concrete_grid_position(p.position)
        if pos is None:
            return None
        positions.append(vec3(pos))
    if len(points) == 2:
        tangents = instantiator.tangents_between(points[0].position, points[1].position)
        if tangents is None:
            return None
        out_vector, in_vector = (vec3(v) for v in tangents)
        ends = [
            BezierEndCoordinates(positions[0], out_vector, out_vector),
            BezierEndCoordinates(positions[1], in_vector, in_vector),
        ]
    else:
        ends = _catmull_rom_ends(positions)
    return PiecewiseBezier(ends, t_min=descriptor.t_min, t_max=descriptor.t_max)
