"""Arc length quadrature of parametric curves."""

from __future__ import annotations

import math
from typing import Callable, Sequence

import numpy as np
from scipy import integrate

from nanocurve.curve import Curved

__all__ = ["speed_norm", "integrate_speed", "arc_length", "cumulative_arc_length"]

_PROBES = 16


def speed_norm(curve: Curved) -> Callable[[float], float]:
    def f(t: float) -> float:
        return float(np.linalg.norm(curve.speed(t)))

    return f


def integrate_speed(f: Callable[[float], float], a: float, b: float, tol: float) -> float:
    """Integral of the speed norm ``f`` between ``a`` and ``b``."""
    value, _err = integrate.quad(f, a, b, epsabs=1e-10, epsrel=tol, limit=200)
    return float(value)


def arc_length(curve: Curved, t0: float, t1: float, *, tol: float = 1e-5, delta_max: float = 256.0) -> float:
    """Signed arc length of ``curve`` between ``t0`` and ``t1``.

    The interval is split into windows whose estimated arc length does not
    exceed ``delta_max`` so that the adaptive quadrature never has to resolve
    too many oscillations of the speed at once.
    """

    if t1 == t0:
        return 0.0
    f = speed_norm(curve)
    probes = np.linspace(t0, t1, _PROBES + 1)
    estimate = abs(float(integrate.trapezoid([f(t) for t in probes], probes)))
    windows = max(1, int(math.ceil(estimate / delta_max)))
    edges = np.linspace(t0, t1, windows + 1)
    return sum(integrate_speed(f, float(a), float(b), tol) for a, b in zip(edges[:-1], edges[1:]))


def cumulative_arc_length(curve: Curved, ts: Sequence[float], *, tol: float = 1e-5) -> np.ndarray:
    """Arc length from ``ts[0]`` to each of the increasing times ``ts``."""

    f = speed_norm(curve)
    pieces = [integrate_speed(f, float(a), float(b), tol) for a, b in zip(ts[:-1], ts[1:])]
    return np.concatenate(([0.0], np.cumsum(pieces)))
