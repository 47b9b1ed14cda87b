## shared abscissa maps keeping helices of one group in register

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

"""Abscissa converters and synchronization groups.

Several helices may follow the same logical path: the helices translated off
a Bezier path, or the helices of a revolution shape. Their own arc lengths
differ (the inner side of a bend is shorter than the outer side), so their
nucleotide offsets cannot be compared directly. An
:class:`AbscissaConverter` maps the curve parameter ``t``, which all members
of a group share, to a common monotonic abscissa ``x``. Converters are never
mutated once built; :class:`TimeMaps` stores one per group and only ever
appends.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Callable, Dict, Hashable, Optional, Sequence

import numpy as np

from nanocurve.config import DEFAULT_SETTINGS, DiscretizationSettings
from nanocurve.curve import Curved
from nanocurve.quadrature import cumulative_arc_length

logger = logging.getLogger(__name__)

__all__ = ["AbscissaConverter", "TimeMaps", "path_group", "revolution_group"]

_SAMPLES_PER_UNIT = 64


class AbscissaConverter:
    """Monotonic map between a curve parameter and a shared abscissa.

    Either linear (``x = factor * t``) or tabulated; a tabulated converter
    interpolates linearly between samples and extrapolates with the slope of
    the first and last intervals.
    """

    def __init__(self, t_values: Sequence[float], x_values: Sequence[float]):
        ts = np.asarray(t_values, dtype=float)
        xs = np.asarray(x_values, dtype=float)
        if ts.ndim != 1 or ts.shape != xs.shape or len(ts) < 2:
            raise ValueError("converter needs two matching sequences of at least two samples")
        if np.any(np.diff(ts) <= 0) or np.any(np.diff(xs) <= 0):
            raise ValueError("converter samples must be strictly increasing")
        self._ts = ts
        self._xs = xs
        self._factor: Optional[float] = None

    @classmethod
    def linear(cls, factor: float) -> "AbscissaConverter":
        if not factor > 0:
            raise ValueError("linear converter factor must be positive")
        conv = cls([0.0, 1.0], [0.0, factor])
        conv._factor = float(factor)
        return conv

    @classmethod
    def from_curve(
        cls,
        curve: Curved,
        settings: DiscretizationSettings = DEFAULT_SETTINGS,
    ) -> "AbscissaConverter":
        """Tabulate the arc length of ``curve`` over its domain."""

        t_min, t_max = curve.t_min(), curve.t_max()
        nb_samples = max(2, int(math.ceil((t_max - t_min) * _SAMPLES_PER_UNIT)) + 1)
        ts = np.linspace(t_min, t_max, nb_samples)
        xs = cumulative_arc_length(curve, ts, tol=settings.quadrature_tolerance)
        logger.debug("tabulated abscissa converter over [%g, %g] with %d samples", t_min, t_max, nb_samples)
        return cls(ts, xs)

    @property
    def is_linear(self) -> bool:
        return self._factor is not None

    @property
    def factor(self) -> Optional[float]:
        return self._factor

    def x_from_t(self, t: float) -> float:
        if self._factor is not None:
            return self._factor * t
        return _interp(t, self._ts, self._xs)

    def t_from_x(self, x: float) -> float:
        if self._factor is not None:
            return x / self._factor
        return _interp(x, self._xs, self._ts)

    def __repr__(self) -> str:
        if self._factor is not None:
            return f"AbscissaConverter.linear({self._factor!r})"
        return f"AbscissaConverter(<{len(self._ts)} samples over [{self._ts[0]:g}, {self._ts[-1]:g}]>)"


def _interp(value: float, xs: np.ndarray, ys: np.ndarray) -> float:
    if value < xs[0]:
        slope = (ys[1] - ys[0]) / (xs[1] - xs[0])
        return float(ys[0] + slope * (value - xs[0]))
    if value > xs[-1]:
        slope = (ys[-1] - ys[-2]) / (xs[-1] - xs[-2])
        return float(ys[-1] + slope * (value - xs[-1]))
    return float(np.interp(value, xs, ys))


def path_group(path_id: int, generation: int) -> tuple:
    """Group key of the helices translated off one Bezier path."""
    return ("path", int(path_id), int(generation))


def revolution_group(shape_key: Hashable) -> tuple:
    """Group key of the helices of one revolution shape."""
    return ("revolution", shape_key)


class TimeMaps:
    """Append-only table of the converters of each synchronization group."""

    def __init__(self) -> None:
        self._converters: Dict[Hashable, AbscissaConverter] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._converters)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._converters

    def get(self, key: Hashable) -> Optional[AbscissaConverter]:
        return self._converters.get(key)

    def get_or_insert(self, key: Hashable, builder: Callable[[], AbscissaConverter]) -> AbscissaConverter:
        with self._lock:
            conv = self._converters.get(key)
            if conv is None:
                conv = builder()
                self._converters[key] = conv
                logger.debug("new synchronization group %r", key)
            return conv

    def path_converter(
        self,
        path_id: int,
        generation: int,
        path_curve: Curved,
        settings: DiscretizationSettings = DEFAULT_SETTINGS,
    ) -> AbscissaConverter:
        """Converter shared by every helix translated off ``path_curve``."""
        return self.get_or_insert(
            path_group(path_id, generation),
            lambda: AbscissaConverter.from_curve(path_curve, settings),
        )

    def revolution_converter(self, shape_key: Hashable, revolution_radius: float) -> AbscissaConverter:
        """Converter shared by the helices of a revolution shape.

        The shared abscissa is the arc length along the revolution circle.
        """
        return self.get_or_insert(
            revolution_group(shape_key),
            lambda: AbscissaConverter.linear(2.0 * math.pi * revolution_radius),
        )
