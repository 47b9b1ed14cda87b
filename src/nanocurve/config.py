"""Numerical settings of the discretization engine and their YAML loaders.

A settings file is a flat YAML mapping whose keys are the field names of
:class:`DiscretizationSettings`; a helix parameter file is a flat mapping of
:class:`~nanocurve.parameters.HelixParameters` fields. Both loaders also
accept a combined document with ``settings:`` and ``helix:`` sections.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple

from nanocurve.errors import ConfigError
from nanocurve.parameters import GEARY_2014_DNA, HelixParameters

__all__ = [
    "DiscretizationSettings",
    "DEFAULT_SETTINGS",
    "load_settings",
    "load_helix_parameters",
    "load_config",
]


@dataclass(frozen=True)
class DiscretizationSettings:
    """Tolerances and iteration budgets used while discretizing a curve.

    Attributes:
        quadrature_tolerance: Relative tolerance of the arc length quadrature.
        quick_quadrature_tolerance: Same, for curves that ask to be
            discretized quickly.
        newton_iterations: Maximum Newton refinements per nucleotide step.
        quick_newton_iterations: Same, in quick mode.
        step_tolerance: Absolute abscissa error (nm) accepted by a step.
        delta_max: Maximal arc length (nm) integrated in a single quadrature
            window.
        polynomial_window: Maximal arc length (nm) covered by one
            precomputed abscissa polynomial.
        polynomial_nodes: Number of abscissa samples per polynomial piece.
        polynomial_degree: Degree of each abscissa polynomial.
        end_tolerance: Fraction of a step by which the last point may
            overshoot the end of the domain.
        closure_tolerance: Largest frame mismatch angle (radians) accepted
            after the periodic closure correction.
        max_points: Safety bound on the number of points of one walk.
        display_range: Bound on the offsets reported by
            ``DiscretizedCurve.valid_offset_range``.
    """

    quadrature_tolerance: float = 1e-5
    quick_quadrature_tolerance: float = 1e-3
    newton_iterations: int = 12
    quick_newton_iterations: int = 3
    step_tolerance: float = 1e-9
    delta_max: float = 256.0
    polynomial_window: float = 32.0
    polynomial_nodes: int = 25
    polynomial_degree: int = 12
    end_tolerance: float = 1e-3
    closure_tolerance: float = 1e-6
    max_points: int = 1_000_000
    display_range: int = 100

    def __post_init__(self) -> None:
        if self.quadrature_tolerance <= 0 or self.quick_quadrature_tolerance <= 0:
            raise ValueError("quadrature tolerances must be positive")
        if self.newton_iterations < 1 or self.quick_newton_iterations < 1:
            raise ValueError("Newton iteration counts must be at least 1")
        if self.delta_max <= 0 or self.polynomial_window <= 0:
            raise ValueError("integration windows must be positive")
        if self.polynomial_degree >= self.polynomial_nodes:
            raise ValueError("polynomial degree must be lower than the number of nodes")
        if self.max_points < 1:
            raise ValueError("max_points must be positive")

    def quadrature_tol(self, quick: bool) -> float:
        return self.quick_quadrature_tolerance if quick else self.quadrature_tolerance

    def newton_budget(self, quick: bool) -> int:
        return self.quick_newton_iterations if quick else self.newton_iterations

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_SETTINGS = DiscretizationSettings()


def _read_mapping(path: Path | str, what: str) -> Dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"{what} not found: {config_path}")
    import yaml

    with config_path.open("r", encoding="utf-8") as fp:
        try:
            data = yaml.safe_load(fp) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{what} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{what} must be a mapping, got {type(data)!r}")
    return data


def _coerce(raw: Dict[str, Any], template: Any, what: str) -> Any:
    if not isinstance(raw, dict):
        raise ConfigError(f"{what} must be a mapping, got {type(raw)!r}")
    known = {f.name: f for f in fields(template)}
    unknown = [key for key in raw if key not in known]
    if unknown:
        raise ConfigError(f"unknown {what} key(s): {', '.join(sorted(unknown))}")
    values = {}
    for key, value in raw.items():
        caster = int if isinstance(getattr(template, key), int) else float
        try:
            values[key] = caster(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{what} key {key!r} has invalid value {value!r}") from exc
    try:
        return replace(template, **values)
    except ValueError as exc:
        raise ConfigError(f"invalid {what}: {exc}") from exc


def load_settings(path: Path | str) -> DiscretizationSettings:
    """Load :class:`DiscretizationSettings` from a YAML file."""

    data = _read_mapping(path, "settings file")
    if "helix" in data or "settings" in data:
        data = data.get("settings") or {}
    return _coerce(data, DEFAULT_SETTINGS, "settings")


def load_helix_parameters(path: Path | str) -> HelixParameters:
    """Load :class:`HelixParameters` from a YAML file."""

    data = _read_mapping(path, "helix parameter file")
    if "helix" in data or "settings" in data:
        data = data.get("helix") or {}
    return _coerce(data, GEARY_2014_DNA, "helix parameter")


def load_config(path: Path | str) -> Tuple[HelixParameters, DiscretizationSettings]:
    """Load both sections of a combined configuration file."""

    data = _read_mapping(path, "configuration file")
    unknown = [key for key in data if key not in ("helix", "settings")]
    if unknown:
        raise ConfigError(f"unknown configuration section(s): {', '.join(sorted(unknown))}")
    params = _coerce(data.get("helix") or {}, GEARY_2014_DNA, "helix parameter")
    settings = _coerce(data.get("settings") or {}, DEFAULT_SETTINGS, "settings")
    return params, settings
