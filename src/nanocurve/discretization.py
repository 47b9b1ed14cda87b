## conversion of parametric curves into nucleotide positions and frames

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

"""Discretization of a curve into evenly spaced nucleotides.

:class:`DiscretizedCurve` walks a :class:`~nanocurve.curve.Curved` geometry
in steps of one helix rise (scaled by the curve's rise ratio) of arc length,
carries an orthonormal frame along the walk and answers the queries of the
helix that follows the curve: axis position, frame and nucleotide position
for a signed nucleotide offset.

Offsets are signed. Offset ``0`` is the point at ``t = 0`` (or at ``t_min``
when ``0`` is outside the domain); the ``nucl_t0`` points that precede it
belong to negative offsets.
"""

from __future__ import annotations

import bisect
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from numpy.polynomial import Chebyshev
from scipy import optimize

from nanocurve.abscissa import AbscissaConverter
from nanocurve.config import DEFAULT_SETTINGS, DiscretizationSettings
from nanocurve.curve import Curved, Isometry2
from nanocurve.legacy import legacy_nucleotide_position
from nanocurve.parameters import HelixParameters
from nanocurve.quadrature import arc_length, cumulative_arc_length, integrate_speed, speed_norm
from nanocurve.vecutil import (
    frame_from_normal,
    mismatch_angle,
    perpendicular_basis,
    rotate_about_tangent,
    transport_frame,
    vec3,
)

logger = logging.getLogger(__name__)

__all__ = [
    "AdditionalSegment",
    "DiscretizedCurve",
    "curve_length",
    "curve_path",
]

TAU = 2.0 * math.pi


@dataclass(frozen=True)
class AdditionalSegment:
    """Start of a new 2D segment of a helix.

    Attributes:
        left: Signed offset of the first nucleotide of the segment.
        isometry: Placement of the segment in the 2D view, if any.
    """

    left: int
    isometry: Optional[Isometry2] = None


def curve_length(curve: Curved, settings: DiscretizationSettings = DEFAULT_SETTINGS) -> float:
    """Arc length of ``curve`` over ``[t_min, t_max]``."""

    t_min, t_max = curve.t_min(), curve.t_max()
    s_min = curve.curvilinear_abscissa(t_min)
    s_max = curve.curvilinear_abscissa(t_max)
    if s_min is not None and s_max is not None:
        return s_max - s_min
    return arc_length(curve, t_min, t_max, tol=settings.quadrature_tolerance, delta_max=settings.delta_max)


def curve_path(curve: Curved, nb_points: int = 10_000) -> List[np.ndarray]:
    """``nb_points + 1`` positions evenly spaced in time over the domain."""

    t_min, t_max = curve.t_min(), curve.t_max()
    return [curve.position(t_min + n * (t_max - t_min) / nb_points) for n in range(nb_points + 1)]


# abscissa models


def _solve_along(h, guess: float, tol: float) -> float:
    """Smallest ``u >= 0`` with ``h(u) = 0`` for an increasing ``h``, ``h(0) < 0``."""

    hi = max(abs(guess), 1e-9)
    lo = 0.0
    for _ in range(200):
        if h(hi) >= 0:
            break
        lo, hi = hi, 2.0 * hi
    else:
        raise RuntimeError("could not bracket the next nucleotide")
    return optimize.brentq(h, lo, hi, xtol=tol)


class _ClosedFormModel:
    """Arc length given in closed form by the curve."""

    def __init__(self, curve: Curved):
        self._curve = curve

    def s(self, t: float) -> float:
        return self._curve.curvilinear_abscissa(t)

    def distance(self, t0: float, t1: float) -> float:
        return self.s(t1) - self.s(t0)

    def advance(self, t: float, delta: float) -> float:
        target = self.s(t) + delta
        inverse = self._curve.inverse_curvilinear_abscissa(target)
        if inverse is not None:
            return inverse
        direction = 1.0 if delta > 0 else -1.0
        speed = float(np.linalg.norm(self._curve.speed(t))) or 1.0

        def h(u: float) -> float:
            return direction * (self.s(t + direction * u) - target)

        return t + direction * _solve_along(h, abs(delta) / speed, 1e-13)


class _QuadratureModel:
    """Arc length integrated step by step with safeguarded Newton iterations."""

    def __init__(self, curve: Curved, settings: DiscretizationSettings, quick: bool):
        self._curve = curve
        self._f = speed_norm(curve)
        self._tol = settings.quadrature_tol(quick)
        self._budget = settings.newton_budget(quick)
        self._step_tol = settings.step_tolerance
        self._delta_max = settings.delta_max

    def distance(self, t0: float, t1: float) -> float:
        return arc_length(self._curve, t0, t1, tol=self._tol, delta_max=self._delta_max)

    def advance(self, t: float, delta: float) -> float:
        if delta == 0:
            return t
        f = self._f
        direction = 1.0 if delta > 0 else -1.0
        speed = f(t)
        if speed <= 0:
            return self._bracketed(t, delta, 1e-3)
        tn = t + delta / speed
        for _ in range(self._budget):
            g = integrate_speed(f, t, tn, self._tol) - delta
            if abs(g) <= self._step_tol:
                break
            d = f(tn)
            if d <= 0:
                return self._bracketed(t, delta, abs(tn - t))
            candidate = tn - g / d
            if (candidate - t) * direction <= 0:
                candidate = t + (tn - t) / 2.0
            tn = candidate
        return tn

    def _bracketed(self, t: float, delta: float, guess: float) -> float:
        direction = 1.0 if delta > 0 else -1.0

        def h(u: float) -> float:
            return integrate_speed(self._f, t, t + direction * u, self._tol) * direction - abs(delta)

        return t + direction * _solve_along(h, guess, 1e-13)


class _PolynomialModel:
    """Arc length tabulated by piecewise Chebyshev polynomials.

    The domain is cut at the integer values of ``t`` and further split so
    that no piece is longer than the polynomial window.
    """

    def __init__(self, curve: Curved, settings: DiscretizationSettings, quick: bool):
        self._curve = curve
        t_min, t_max = curve.t_min(), curve.t_max()
        tol = settings.quadrature_tol(quick)
        cuts = [t_min] + [float(k) for k in range(math.floor(t_min) + 1, math.ceil(t_max))] + [t_max]
        self._starts: List[float] = []
        self._offsets: List[float] = []
        self._pieces: List[Chebyshev] = []
        offset = 0.0
        nodes_unit = (1.0 - np.cos(np.pi * np.arange(settings.polynomial_nodes) / (settings.polynomial_nodes - 1))) / 2.0
        for a, b in zip(cuts[:-1], cuts[1:]):
            if b <= a:
                continue
            rough = arc_length(curve, a, b, tol=1e-3, delta_max=settings.delta_max)
            nb_sub = max(1, int(math.ceil(rough / settings.polynomial_window)))
            edges = np.linspace(a, b, nb_sub + 1)
            for lo, hi in zip(edges[:-1], edges[1:]):
                nodes = lo + (hi - lo) * nodes_unit
                values = cumulative_arc_length(curve, nodes, tol=tol) + offset
                poly = Chebyshev.fit(nodes, values, settings.polynomial_degree, domain=[lo, hi])
                self._starts.append(float(lo))
                self._offsets.append(offset)
                self._pieces.append(poly)
                offset = float(values[-1])
        self._t_min = t_min
        self._t_max = t_max
        self._total = offset
        self._f = speed_norm(curve)
        logger.debug("abscissa tabulated with %d polynomial pieces", len(self._pieces))

    def s(self, t: float) -> float:
        if t < self._t_min:
            return (t - self._t_min) * self._f(self._t_min)
        if t > self._t_max:
            return self._total + (t - self._t_max) * self._f(self._t_max)
        idx = max(0, bisect.bisect_right(self._starts, t) - 1)
        return float(self._pieces[idx](t))

    def distance(self, t0: float, t1: float) -> float:
        return self.s(t1) - self.s(t0)

    def t_at(self, target: float) -> float:
        if target <= 0.0:
            return self._t_min + target / (self._f(self._t_min) or 1.0)
        if target >= self._total:
            return self._t_max + (target - self._total) / (self._f(self._t_max) or 1.0)
        idx = max(0, bisect.bisect_right(self._offsets, target) - 1)
        poly = self._pieces[idx]
        lo, hi = poly.domain
        f_lo, f_hi = poly(lo) - target, poly(hi) - target
        if f_lo >= 0:
            return float(lo)
        if f_hi <= 0:
            return float(hi)
        return optimize.brentq(lambda u: poly(u) - target, lo, hi, xtol=1e-13)

    def advance(self, t: float, delta: float) -> float:
        return self.t_at(self.s(t) + delta)


# the discretized curve


class DiscretizedCurve:
    """A curve cut into nucleotide-sized steps.

    Parameters
    ----------
    geometry:
        The parametric curve, shared and never mutated.
    helix_parameters:
        Gives the rise (step length) and the inclination of the backward
        strand.
    settings:
        Numerical tolerances.
    abscissa_converter:
        Converter of the synchronization group of the curve. Defaults to the
        converter declared by the geometry itself.
    """

    def __init__(
        self,
        geometry: Curved,
        helix_parameters: HelixParameters,
        *,
        settings: DiscretizationSettings = DEFAULT_SETTINGS,
        abscissa_converter: Optional[AbscissaConverter] = None,
    ):
        self.geometry = geometry
        self.settings = settings
        self.positions_forward: List[np.ndarray] = []
        self.positions_backward: List[np.ndarray] = []
        self.axis_forward: List[np.ndarray] = []
        self.axis_backward: List[np.ndarray] = []
        self.curvature: List[float] = []
        self.t_nucl: List[float] = []
        self.nucl_t0 = 0
        self.nucl_pos_full_turn: Optional[float] = None
        self.additional_segment_left: List[int] = []
        self.abscissa_converter = (
            abscissa_converter if abscissa_converter is not None else geometry.abscissa_converter()
        )
        rise_ratio = geometry.rise_ratio() or 1.0
        self._discretize(rise_ratio * helix_parameters.rise, helix_parameters.inclination)

    # construction

    def _abscissa_model(self, quick: bool):
        g = self.geometry
        if g.curvilinear_abscissa(g.t_min()) is not None:
            return _ClosedFormModel(g)
        if g.pre_compute_polynomials():
            return _PolynomialModel(g, self.settings, quick)
        return _QuadratureModel(g, self.settings, quick)

    def _walk(
        self,
        model,
        t_start: float,
        step: float,
        t_end: float,
        *,
        count: Optional[int] = None,
        snap_every: Optional[int] = None,
        period: Optional[float] = None,
    ) -> List[float]:
        """Times of the points after ``t_start`` towards ``t_end`` (excluded start)."""

        direction = 1.0 if t_end >= t_start else -1.0
        if count is None and (t_end - t_start) * direction <= 0:
            return []
        delta = direction * step
        overshoot = self.settings.end_tolerance * step
        ts: List[float] = []
        t = t_start
        while len(ts) < self.settings.max_points:
            i = len(ts) + 1
            if count is not None:
                if i > count:
                    break
                nxt = t_end if i == count else model.advance(t, delta)
            else:
                nxt = model.advance(t, delta)
                if (nxt - t_end) * direction > 0:
                    if abs(model.distance(t_end, nxt)) > overshoot:
                        break
                if snap_every and i % snap_every == 0:
                    nxt = t_start + direction * (i // snap_every) * period
            ts.append(nxt)
            t = nxt
        else:
            logger.warning("walk truncated after %d points", self.settings.max_points)
        return ts

    def _frame(self, t: float, previous: Optional[np.ndarray]) -> np.ndarray:
        g = self.geometry
        tangent = g.tangent(t)
        if not np.any(tangent) and previous is not None:
            tangent = previous[:, 2]
        info = g.surface_info_time(t)
        if info is not None:
            return frame_from_normal(info.normal, tangent)
        if previous is None:
            return perpendicular_basis(tangent)
        return transport_frame(previous, tangent)

    def _transport(self, ts: Sequence[float], start: np.ndarray) -> List[np.ndarray]:
        frames = []
        current = start
        for t in ts:
            current = self._frame(t, current)
            frames.append(current)
        return frames

    def _start_frame(self, t: float) -> np.ndarray:
        frame = self.geometry.initial_frame()
        if frame is not None:
            return np.array(frame, dtype=float)
        return self._frame(t, None)

    def _discretize(self, len_segment: float, inclination: float) -> None:
        g = self.geometry
        t_min, t_max = g.t_min(), g.t_max()
        if not t_max > t_min:
            logger.debug("empty domain [%g, %g], no point produced", t_min, t_max)
            return
        quick = g.discretize_quickly()
        model = self._abscissa_model(quick)
        step = len_segment
        period = g.full_turn_at_t()
        target = g.nucl_pos_full_turn()
        objective = g.objective_nb_nt()
        steps_in_period: Optional[int] = None

        if objective:
            t_start = t_min
            step = model.distance(t_min, t_max) / objective
            ts_fwd = [t_start] + self._walk(model, t_start, step, t_max, count=objective)
            ts_bwd: List[float] = []
            if period is not None:
                turns = model.distance(t_start, t_start + period) / step
                self.nucl_pos_full_turn = turns
                if abs(turns - round(turns)) < 1e-6:
                    steps_in_period = int(round(turns))
        else:
            t_start = 0.0 if t_min <= 0.0 <= t_max else t_min
            if period is not None:
                period_length = model.distance(t_start, t_start + period)
                if target:
                    step = period_length / target
                    steps_in_period = int(target)
                    self.nucl_pos_full_turn = float(target)
                else:
                    self.nucl_pos_full_turn = period_length / step
            walk = dict(snap_every=steps_in_period, period=period)
            ts_fwd = [t_start] + self._walk(model, t_start, step, t_max, **walk)
            ts_bwd = self._walk(model, t_start, step, t_min, **walk)

        start = self._start_frame(t_start)
        frames_fwd = [start] + self._transport(ts_fwd[1:], start)
        frames_bwd = self._transport(ts_bwd, start)

        self.nucl_t0 = len(ts_bwd)
        self.t_nucl = list(reversed(ts_bwd)) + ts_fwd
        frames = list(reversed(frames_bwd)) + frames_fwd

        if steps_in_period and self.nucl_t0 + steps_in_period < len(frames):
            frames = self._close_frames(frames, steps_in_period)

        translation = g.translation()
        if translation is not None:
            translation = vec3(translation)

        def place(t: float, frame: np.ndarray) -> np.ndarray:
            pos = np.asarray(g.position(t), dtype=float)
            if translation is not None:
                pos = pos + frame @ translation
            return pos

        self.axis_forward = frames
        self.positions_forward = [place(t, f) for t, f in zip(self.t_nucl, frames)]
        if inclination == 0.0:
            self.axis_backward = list(frames)
            self.positions_backward = list(self.positions_forward)
        else:
            for t, frame in zip(self.t_nucl, frames):
                t_b = model.advance(t, inclination)
                frame_b = self._frame(t_b, frame)
                self.axis_backward.append(frame_b)
                self.positions_backward.append(place(t_b, frame_b))
        self.curvature = [g.curvature(t) for t in self.t_nucl]

        previous = None
        for idx, t in enumerate(self.t_nucl):
            segment = g.subdivision_for_t(t)
            if segment is not None and previous is not None and segment != previous:
                self.additional_segment_left.append(idx)
            previous = segment

        logger.debug(
            "discretized %s: %d points, t0=%d, step=%.6g, full turn=%s",
            type(g).__name__,
            len(self.t_nucl),
            self.nucl_t0,
            step,
            self.nucl_pos_full_turn,
        )

    def _close_frames(self, frames: List[np.ndarray], k: int) -> List[np.ndarray]:
        """Spread the frame mismatch of one period linearly over the walk."""

        t0 = self.nucl_t0
        angle = mismatch_angle(frames[t0], frames[t0 + k])
        closed = [rotate_about_tangent(f, -angle * (idx - t0) / k) for idx, f in enumerate(frames)]
        residual = mismatch_angle(closed[t0], closed[t0 + k])
        if abs(residual) > self.settings.closure_tolerance:
            logger.warning("periodic frame closure off by %.3g rad after correction", residual)
        else:
            logger.debug("closed periodic frames, correction %.6g rad over %d steps", angle, k)
        return closed

    # queries

    def nb_points(self) -> int:
        return min(len(self.positions_forward), len(self.positions_backward))

    def nb_points_forward(self) -> int:
        return len(self.positions_forward)

    def nb_points_backward(self) -> int:
        return len(self.positions_backward)

    def points(self) -> List[np.ndarray]:
        return self.positions_forward

    def idx_conversion(self, n: int) -> Optional[int]:
        """Array index of signed offset ``n``, or ``None`` before the first point."""
        if n >= 0:
            return n + self.nucl_t0
        if -n <= self.nucl_t0:
            return self.nucl_t0 - (-n)
        return None

    def _index(self, n: int, size: int) -> Optional[int]:
        idx = self.idx_conversion(n)
        if idx is None or idx >= size:
            return None
        return idx

    def valid_offset_range(self) -> range:
        """Offsets that may be displayed, clamped to the display range."""
        bound = self.settings.display_range
        lo = max(-self.nucl_t0, -bound)
        hi = min(lo + self.nb_points() - 1, bound)
        return range(lo, hi + 1)

    def axis_position(self, n: int) -> Optional[np.ndarray]:
        idx = self._index(n, len(self.positions_forward))
        return None if idx is None else self.positions_forward[idx]

    def frame_at(self, n: int, forward: bool = True) -> Optional[np.ndarray]:
        frames = self.axis_forward if forward else self.axis_backward
        idx = self._index(n, len(frames))
        return None if idx is None else frames[idx]

    def nucleotide_time(self, n: int) -> Optional[float]:
        idx = self._index(n, len(self.t_nucl))
        return None if idx is None else self.t_nucl[idx]

    def curvature_at(self, n: int) -> Optional[float]:
        idx = self._index(n, len(self.curvature))
        return None if idx is None else self.curvature[idx]

    def nucleotide_position(
        self,
        n: int,
        forward: bool,
        theta: float,
        helix_parameters: HelixParameters,
    ) -> Optional[np.ndarray]:
        """Position of the nucleotide at offset ``n`` on one strand.

        ``theta`` is the phase of the nucleotide around the axis, as computed
        by the helix; it is corrected here for curves with a rescaled rise
        and for closed curves.
        """
        if self.geometry.legacy():
            return legacy_nucleotide_position(self, n, forward, theta, helix_parameters)

        positions = self.positions_forward if forward else self.positions_backward
        frames = self.axis_forward if forward else self.axis_backward
        idx = self._index(n, min(len(positions), len(frames)))
        if idx is None:
            return None

        real_theta = self.geometry.theta_shift(helix_parameters)
        if real_theta is not None:
            base_theta = TAU / helix_parameters.bases_per_turn
            theta = (base_theta - real_theta) * n + theta
        elif self.nucl_pos_full_turn is not None:
            theta = theta + self._full_turn_delta(helix_parameters) / self.nucl_pos_full_turn * n

        r = helix_parameters.helix_radius
        local = np.array([-math.cos(theta) * r, math.sin(theta) * r, 0.0])
        return frames[idx] @ local + positions[idx]

    def _full_turn_delta(self, helix_parameters: HelixParameters) -> float:
        pos_full_turn = self.nucl_pos_full_turn
        reference = self.axis_forward[self.nucl_t0]
        idx = self.nucl_t0 + int(round(pos_full_turn))
        after_turn = self.axis_forward[idx] if idx < len(self.axis_forward) else self.axis_forward[-1]
        additional_angle = -mismatch_angle(reference, after_turn)
        final_angle = pos_full_turn * TAU / -helix_parameters.bases_per_turn + additional_angle
        full_delta = (-(final_angle % TAU)) % TAU
        if full_delta > math.pi:
            full_delta -= TAU
        return full_delta

    def has_its_own_encoded_frame(self) -> bool:
        return self.geometry.translation() is not None

    def first_theta(self) -> Optional[float]:
        return self.geometry.first_theta()

    def last_theta(self) -> Optional[float]:
        return self.geometry.last_theta()

    def additional_segment_breakpoints(self) -> List[AdditionalSegment]:
        """Offsets at which the helix starts a new 2D segment."""
        ret = []
        for idx in self.additional_segment_left:
            segment = self.geometry.subdivision_for_t(self.t_nucl[idx])
            ret.append(AdditionalSegment(idx - self.nucl_t0, self.geometry.additional_isometry(segment)))
        return ret

    def length(self) -> float:
        return curve_length(self.geometry, self.settings)

    # abscissa synchronization

    def nucleotide_abscissa(self, n: int) -> Optional[float]:
        """Shared abscissa of offset ``n`` in the synchronization group."""
        t = self.nucleotide_time(n)
        if t is None or self.abscissa_converter is None:
            return None
        return self.abscissa_converter.x_from_t(t)

    def offset_at_abscissa(self, x: float) -> Optional[int]:
        """Offset whose shared abscissa is the closest to ``x``."""
        if self.abscissa_converter is None or not self.t_nucl:
            return None
        t = self.abscissa_converter.t_from_x(x)
        idx = int(np.argmin(np.abs(np.asarray(self.t_nucl) - t)))
        return idx - self.nucl_t0
