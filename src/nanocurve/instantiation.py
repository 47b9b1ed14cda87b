"""From curve descriptors to discretized curves.

A helix owns a :class:`HelixCurve` slot. The slot resolves the helix's
descriptor against the design (:class:`InstantiatedCurveDescriptor`), then
discretizes the resolved curve (:class:`InstantiatedCurve`). Both stages are
redone only when they are stale: the descriptor object was replaced or its
domain widened, or the grid or Bezier path snapshot it was resolved against
has a new generation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from nanocurve.abscissa import AbscissaConverter, TimeMaps
from nanocurve.cache import CurveCache
from nanocurve.config import DEFAULT_SETTINGS, DiscretizationSettings
from nanocurve.curve import Curved
from nanocurve.curves.bezier import (
    BezierDescriptor,
    PiecewiseBezier,
    PiecewiseBezierDescriptor,
    TranslatedPathDescriptor,
    TranslatedPiecewiseBezier,
    instantiate_piecewise_bezier,
)
from nanocurve.curves.revolution import InterpolatedCurveDescriptor
from nanocurve.descriptor import CurveDescriptor
from nanocurve.discretization import DiscretizedCurve, curve_length, curve_path
from nanocurve.errors import DescriptorError
from nanocurve.grid import BezierPathData, CurveInstantiator, FreeGrids, InstantiatedPath
from nanocurve.parameters import HelixParameters
from nanocurve.vecutil import vec3

logger = logging.getLogger(__name__)

__all__ = ["InstantiatedCurveDescriptor", "InstantiatedCurve", "HelixCurve"]


class InstantiatedCurveDescriptor:
    """A descriptor together with the design data it was resolved against.

    Attributes:
        source: The descriptor this instance was built from.
        source_revision: Revision of ``source`` at instantiation time.
        geometry: The resolved curve of a symbolic descriptor, ``None`` for
            descriptors that build their own curve.
        grids_generation: Generation of the grid snapshot the geometry was
            resolved against, if it depends on grids.
        paths_generation: Same, for the Bezier path snapshot.
    """

    def __init__(
        self,
        source: CurveDescriptor,
        *,
        geometry: Optional[Curved] = None,
        grids_generation: Optional[int] = None,
        paths_generation: Optional[int] = None,
        path: Optional[InstantiatedPath] = None,
    ):
        self.source = source
        self.source_revision = source.revision
        self.geometry = geometry
        self.grids_generation = grids_generation
        self.paths_generation = paths_generation
        self._path = path

    @classmethod
    def instantiate(cls, descriptor: CurveDescriptor, instantiator: CurveInstantiator) -> "InstantiatedCurveDescriptor":
        """Resolve ``descriptor`` against the current state of the design.

        References that cannot be resolved produce an empty curve rather
        than an error, so that a helix whose grid was deleted simply
        vanishes.
        """
        if not descriptor.symbolic:
            return cls(descriptor)
        if isinstance(descriptor, PiecewiseBezierDescriptor):
            grids = instantiator.source()
            curve = instantiate_piecewise_bezier(descriptor, instantiator)
            if curve is None:
                logger.debug("could not resolve the grid positions of a piecewise Bezier curve, using an empty curve")
                curve = PiecewiseBezier.empty()
            return cls(descriptor, geometry=curve, grids_generation=grids.generation)
        if isinstance(descriptor, TranslatedPathDescriptor):
            paths = instantiator.source_paths()
            path = paths.get(descriptor.path_id) if paths is not None else None
            generation = paths.generation if paths is not None else None
            if path is None or path.curve is None or path.initial_frame() is None:
                logger.debug("Bezier path %d is not available, using an empty curve", descriptor.path_id)
                return cls(descriptor, geometry=PiecewiseBezier.empty(), paths_generation=generation)
            geometry = TranslatedPiecewiseBezier(
                path.curve,
                descriptor.translation,
                path.initial_frame(),
                legacy=descriptor.legacy,
            )
            return cls(descriptor, geometry=geometry, paths_generation=generation, path=path)
        raise DescriptorError(f"no instantiation rule for symbolic descriptor {descriptor.kind!r}")

    @classmethod
    def try_instantiate(cls, descriptor: CurveDescriptor) -> Optional["InstantiatedCurveDescriptor"]:
        """Instantiate without design data; ``None`` for symbolic descriptors."""
        if descriptor.symbolic:
            return None
        return cls(descriptor)

    def describes(self, descriptor: CurveDescriptor) -> bool:
        """Whether this instance was built from ``descriptor`` in its current state."""
        return self.source is descriptor and self.source_revision == descriptor.revision

    def is_up_to_date(
        self,
        descriptor: CurveDescriptor,
        grids: Optional[FreeGrids],
        paths: Optional[BezierPathData],
    ) -> bool:
        """Whether this instance still reflects ``descriptor`` and the snapshots."""
        if not self.describes(descriptor):
            return False
        if self.grids_generation is not None:
            if grids is None or grids.generation != self.grids_generation:
                return False
        if self.paths_generation is not None:
            if paths is None or paths.generation != self.paths_generation:
                return False
        elif isinstance(self.source, TranslatedPathDescriptor) and paths is not None:
            # resolved while the design had no path at all
            return False
        return True

    def curve(self, helix_parameters: HelixParameters) -> Curved:
        if self.geometry is not None:
            return self.geometry
        return self.source.build_curve(helix_parameters)

    def abscissa_converter(
        self,
        geometry: Curved,
        time_maps: Optional[TimeMaps],
        settings: DiscretizationSettings = DEFAULT_SETTINGS,
    ) -> Optional[AbscissaConverter]:
        """Converter of the synchronization group of the curve."""
        if geometry.is_time_maps_singleton() or time_maps is None:
            return geometry.abscissa_converter()
        if self._path is not None and self.paths_generation is not None:
            return time_maps.path_converter(
                self.source.path_id, self.paths_generation, self._path.curve, settings
            )
        if isinstance(self.source, InterpolatedCurveDescriptor):
            return time_maps.revolution_converter(self.source.shape_key(), self.source.revolution_radius)
        return geometry.abscissa_converter()

    def make_curve(
        self,
        helix_parameters: HelixParameters,
        cache: Optional[CurveCache] = None,
        time_maps: Optional[TimeMaps] = None,
        settings: DiscretizationSettings = DEFAULT_SETTINGS,
    ) -> DiscretizedCurve:
        """Discretize the curve, through ``cache`` when the descriptor allows it."""

        def build() -> DiscretizedCurve:
            geometry = self.curve(helix_parameters)
            return DiscretizedCurve(
                geometry,
                helix_parameters,
                settings=settings,
                abscissa_converter=self.abscissa_converter(geometry, time_maps, settings),
            )

        if cache is not None and self.source.cacheable:
            return cache.get_or_insert(self.source, helix_parameters, build, settings=settings)
        return build()

    def try_length(self, helix_parameters: HelixParameters) -> Optional[float]:
        return curve_length(self.curve(helix_parameters))

    def try_path(self, helix_parameters: HelixParameters) -> Optional[List[np.ndarray]]:
        return curve_path(self.curve(helix_parameters))

    def _piecewise(self) -> Optional[PiecewiseBezier]:
        geometry = self.geometry
        if isinstance(geometry, TranslatedPiecewiseBezier):
            geometry = geometry.original_curve
        if isinstance(geometry, PiecewiseBezier):
            return geometry
        return None

    def bezier_points(self) -> List[np.ndarray]:
        """Vertices of the Bezier curve, empty for other curves."""
        piecewise = self._piecewise()
        if piecewise is not None:
            return [end.position for end in piecewise.ends]
        if isinstance(self.source, BezierDescriptor):
            return [vec3(self.source.start), vec3(self.source.end)]
        return []

    def get_bezier_controls(self) -> List[np.ndarray]:
        """Control polygon of the Bezier curve, empty for other curves."""
        piecewise = self._piecewise()
        if piecewise is not None:
            return piecewise.bezier_controls()
        if isinstance(self.source, BezierDescriptor):
            s = self.source
            return [vec3(p) for p in (s.start, s.control1, s.control2, s.end)]
        return []


@dataclass(eq=False)
class InstantiatedCurve:
    """A discretized curve and the instance it was built from."""

    source: InstantiatedCurveDescriptor
    curve: DiscretizedCurve
    helix_parameters: HelixParameters


class HelixCurve:
    """The curve slot of a helix.

    ``descriptor`` is ``None`` for straight helices.
    """

    def __init__(self, descriptor: Optional[CurveDescriptor] = None):
        self.descriptor = descriptor
        self.instantiated_descriptor: Optional[InstantiatedCurveDescriptor] = None
        self.instantiated_curve: Optional[InstantiatedCurve] = None

    @property
    def curve(self) -> Optional[DiscretizedCurve]:
        if self.instantiated_curve is None:
            return None
        return self.instantiated_curve.curve

    def set_descriptor(self, descriptor: Optional[CurveDescriptor]) -> None:
        self.descriptor = descriptor

    def need_curve_descriptor_update(
        self,
        grids: Optional[FreeGrids],
        paths: Optional[BezierPathData],
    ) -> bool:
        if self.descriptor is None:
            return self.instantiated_descriptor is not None
        inst = self.instantiated_descriptor
        return inst is None or not inst.is_up_to_date(self.descriptor, grids, paths)

    def need_curve_update(self, helix_parameters: Optional[HelixParameters] = None) -> bool:
        inst = self.instantiated_descriptor
        current = self.instantiated_curve
        if inst is None:
            return current is not None
        if current is None or current.source is not inst:
            return True
        return helix_parameters is not None and current.helix_parameters != helix_parameters

    def _refresh_curve(
        self,
        helix_parameters: HelixParameters,
        cache: Optional[CurveCache],
        time_maps: Optional[TimeMaps],
        settings: DiscretizationSettings,
    ) -> bool:
        if not self.need_curve_update(helix_parameters):
            return False
        inst = self.instantiated_descriptor
        if inst is None:
            self.instantiated_curve = None
        else:
            curve = inst.make_curve(helix_parameters, cache=cache, time_maps=time_maps, settings=settings)
            self.instantiated_curve = InstantiatedCurve(inst, curve, helix_parameters)
        return True

    def update_curve(
        self,
        instantiator: CurveInstantiator,
        helix_parameters: HelixParameters,
        *,
        cache: Optional[CurveCache] = None,
        time_maps: Optional[TimeMaps] = None,
        settings: DiscretizationSettings = DEFAULT_SETTINGS,
    ) -> bool:
        """Bring the slot up to date; returns whether anything was rebuilt."""
        changed = False
        if self.need_curve_descriptor_update(instantiator.source(), instantiator.source_paths()):
            if self.descriptor is None:
                self.instantiated_descriptor = None
            else:
                self.instantiated_descriptor = InstantiatedCurveDescriptor.instantiate(self.descriptor, instantiator)
            changed = True
        return self._refresh_curve(helix_parameters, cache, time_maps, settings) or changed

    def try_update_curve(
        self,
        helix_parameters: HelixParameters,
        *,
        cache: Optional[CurveCache] = None,
        time_maps: Optional[TimeMaps] = None,
        settings: DiscretizationSettings = DEFAULT_SETTINGS,
    ) -> bool:
        """Update without design data.

        Only possible when the descriptor does not reference the design;
        returns whether the curve was rebuilt.
        """
        changed = False
        inst = self.instantiated_descriptor
        if self.descriptor is None:
            changed = inst is not None
            self.instantiated_descriptor = None
        elif inst is None or not inst.describes(self.descriptor):
            inst = InstantiatedCurveDescriptor.try_instantiate(self.descriptor)
            if inst is None:
                logger.debug("%s curve needs design data to be updated", self.descriptor.kind)
                return False
            self.instantiated_descriptor = inst
            changed = True
        return self._refresh_curve(helix_parameters, cache, time_maps, settings) or changed
