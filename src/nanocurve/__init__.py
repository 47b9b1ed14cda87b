# -*- coding: utf-8 -*-
"""Parametric curves and nucleotide discretization for DNA nanostructures."""

from importlib.metadata import PackageNotFoundError, version


try:
    __version__ = version("nanocurve")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from nanocurve.parameters import GEARY_2014_DNA, HelixParameters
from nanocurve.config import DEFAULT_SETTINGS, DiscretizationSettings
from nanocurve.curve import CurveBounds, Curved, perpendicular_basis
from nanocurve.discretization import DiscretizedCurve, curve_length, curve_path
from nanocurve.descriptor import CurveDescriptor
from nanocurve.cache import CurveCache
from nanocurve.abscissa import AbscissaConverter, TimeMaps
from nanocurve.instantiation import (
    HelixCurve,
    InstantiatedCurve,
    InstantiatedCurveDescriptor,
)
from nanocurve import curves  # noqa: F401  registers descriptor variants

__all__ = [
    "__version__",
    "AbscissaConverter",
    "CurveBounds",
    "CurveCache",
    "CurveDescriptor",
    "Curved",
    "DEFAULT_SETTINGS",
    "DiscretizationSettings",
    "DiscretizedCurve",
    "GEARY_2014_DNA",
    "HelixCurve",
    "HelixParameters",
    "InstantiatedCurve",
    "InstantiatedCurveDescriptor",
    "TimeMaps",
    "curve_length",
    "curve_path",
    "perpendicular_basis",
]
