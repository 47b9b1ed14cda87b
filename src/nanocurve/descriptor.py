"""Curve descriptors: the serializable description of a helix curve.

A descriptor is a small dataclass. Most variants are fully defined by their
own fields and build their curve directly; the *symbolic* variants
(``PiecewiseBezier`` and ``TranslatedPath``) reference grids and Bezier paths
owned by the design and must be resolved by
:class:`~nanocurve.instantiation.InstantiatedCurveDescriptor` first.

Variants register themselves under the tag used in the serialized form with
:func:`register_descriptor`.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np

from nanocurve.errors import DescriptorError
from nanocurve.parameters import GEARY_2014_DNA, HelixParameters

if TYPE_CHECKING:  # pragma: no cover
    from nanocurve.curve import Curved
    from nanocurve.grid import CurveInstantiator, Edge, GridPosition

__all__ = [
    "CurveDescriptor",
    "register_descriptor",
    "descriptor_class",
    "registered_kinds",
]

_DESCRIPTORS: Dict[str, Type["CurveDescriptor"]] = {}


def register_descriptor(kind: str):
    """Class decorator registering a descriptor variant under ``kind``."""

    def decorator(cls):
        if kind in _DESCRIPTORS:
            raise ValueError(f"descriptor kind {kind!r} already registered")
        cls.kind = kind
        _DESCRIPTORS[kind] = cls
        return cls

    return decorator


def descriptor_class(kind: str) -> Type["CurveDescriptor"]:
    import nanocurve.curves  # noqa: F401  populates the registry

    try:
        return _DESCRIPTORS[kind]
    except KeyError as exc:
        raise DescriptorError(f"unknown curve descriptor kind: {kind!r}") from exc


def registered_kinds() -> List[str]:
    import nanocurve.curves  # noqa: F401

    return sorted(_DESCRIPTORS)


class CurveDescriptor(abc.ABC):
    """Base class of the curve descriptor variants."""

    kind: ClassVar[str] = ""
    #: references grids or Bezier paths and needs an instantiator
    symbolic: ClassVar[bool] = False
    #: expensive to discretize, shared through a :class:`~nanocurve.cache.CurveCache`
    cacheable: ClassVar[bool] = False
    #: explicit domain bounds; only the widenable variants override them
    t_min = None
    t_max = None
    #: bumped each time the domain is widened in place
    revision = 0

    @abc.abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Fields of the variant, without the kind tag."""

    @classmethod
    @abc.abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CurveDescriptor":
        """Inverse of :meth:`to_dict`."""

    def build_curve(self, helix_parameters: HelixParameters) -> "Curved":
        """Concrete curve of a non-symbolic descriptor."""
        raise TypeError(f"{self.kind} descriptors must be instantiated before building a curve")

    def set_t_min(self, new_t_min: float) -> bool:
        """Lower the start of the domain; returns whether it changed."""
        return False

    def set_t_max(self, new_t_max: float) -> bool:
        """Raise the end of the domain; returns whether it changed."""
        return False

    def grid_positions_involved(self) -> List["GridPosition"]:
        return []

    def translated(self, edge: "Edge", instantiator: "CurveInstantiator") -> Optional["CurveDescriptor"]:
        """Copy of the descriptor moved along a grid edge, if it can be."""
        return None

    def compute_length(self) -> Optional[float]:
        """Length of the curve with the default helix parameters.

        ``None`` for symbolic descriptors.
        """
        from nanocurve.instantiation import InstantiatedCurveDescriptor

        inst = InstantiatedCurveDescriptor.try_instantiate(self)
        if inst is None:
            return None
        return inst.try_length(GEARY_2014_DNA)

    def path(self) -> Optional[List[np.ndarray]]:
        """Polyline approximating the curve, ``None`` for symbolic descriptors."""
        from nanocurve.instantiation import InstantiatedCurveDescriptor

        inst = InstantiatedCurveDescriptor.try_instantiate(self)
        if inst is None:
            return None
        return inst.try_path(GEARY_2014_DNA)


# field helpers shared by the variants

_MISSING = object()


def field_value(data: Dict[str, Any], key: str, kind: str, default: Any = _MISSING) -> Any:
    if key in data:
        return data[key]
    if default is _MISSING:
        raise DescriptorError(f"{kind} descriptor is missing field {key!r}")
    return default


def float_field(data: Dict[str, Any], key: str, kind: str, default: Any = _MISSING) -> Any:
    value = field_value(data, key, kind, default)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise DescriptorError(f"{kind} field {key!r} must be a number, got {value!r}") from exc


def int_field(data: Dict[str, Any], key: str, kind: str, default: Any = _MISSING) -> Any:
    value = field_value(data, key, kind, default)
    if value is None:
        return None
    if isinstance(value, bool) or not float(value).is_integer():
        raise DescriptorError(f"{kind} field {key!r} must be an integer, got {value!r}")
    return int(value)


def vec_field(data: Dict[str, Any], key: str, kind: str, size: int = 3, default: Any = _MISSING) -> Any:
    value = field_value(data, key, kind, default)
    if value is None:
        return None
    try:
        vec = tuple(float(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise DescriptorError(f"{kind} field {key!r} must be a list of numbers") from exc
    if len(vec) != size:
        raise DescriptorError(f"{kind} field {key!r} must have {size} components")
    return vec


def float_list(values: Sequence[float]) -> List[float]:
    return [float(c) for c in values]


def put_optional(out: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        out[key] = value


def as_tuple3(value: Sequence[float]) -> Tuple[float, float, float]:
    return (float(value[0]), float(value[1]), float(value[2]))
