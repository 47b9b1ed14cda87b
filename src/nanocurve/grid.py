"""Interface to the grids and Bezier paths that symbolic curves refer to.

The design owns the grids and the Bezier paths; curves only see immutable
snapshots of them. Every snapshot receives a fresh *generation* number when
it is created, and an instantiated curve remembers the generations it was
built from: a curve is stale as soon as the design hands out a new snapshot,
even if the new snapshot is structurally identical.
"""

from __future__ import annotations

import abc
import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from nanocurve.curve import Curved
from nanocurve.errors import DescriptorError

__all__ = [
    "GridPosition",
    "Edge",
    "FreeGrids",
    "InstantiatedPath",
    "BezierPathData",
    "CurveInstantiator",
    "next_generation",
]

_generations = itertools.count(1)


def next_generation() -> int:
    return next(_generations)


@dataclass(frozen=True)
class GridPosition:
    """Cell of a grid.

    Attributes:
        grid: Identifier of the grid.
        x: First cell coordinate.
        y: Second cell coordinate.
        axis_pos: Nucleotide offset along the helix axis.
        roll: Rotation of the helix about its axis.
    """

    grid: int
    x: int
    y: int
    axis_pos: int = 0
    roll: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"grid": self.grid, "x": self.x, "y": self.y, "axis_pos": self.axis_pos, "roll": self.roll}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GridPosition":
        try:
            return cls(
                grid=int(data["grid"]),
                x=int(data["x"]),
                y=int(data["y"]),
                axis_pos=int(data.get("axis_pos", 0)),
                roll=float(data.get("roll", 0.0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DescriptorError(f"invalid grid position: {data!r}") from exc

    def translated_by(self, edge: "Edge") -> "GridPosition":
        return GridPosition(self.grid, self.x + edge.x, self.y + edge.y, self.axis_pos, self.roll)


@dataclass(frozen=True)
class Edge:
    """Displacement between two cells of the same grid."""

    x: int
    y: int


@dataclass(eq=False)
class FreeGrids:
    """Snapshot of the grids of a design."""

    grids: Dict[int, Any] = field(default_factory=dict)
    generation: int = field(default_factory=next_generation)


@dataclass(eq=False)
class InstantiatedPath:
    """A Bezier path of the design, resolved to 3D geometry."""

    curve: Optional[Curved] = None
    frame: Optional[np.ndarray] = None

    def initial_frame(self) -> Optional[np.ndarray]:
        return self.frame


@dataclass(eq=False)
class BezierPathData:
    """Snapshot of the Bezier paths of a design."""

    paths: Dict[int, InstantiatedPath] = field(default_factory=dict)
    generation: int = field(default_factory=next_generation)

    def get(self, path_id: int) -> Optional[InstantiatedPath]:
        return self.paths.get(path_id)


class CurveInstantiator(abc.ABC):
    """Source of the geometry that symbolic descriptors refer to."""

    @abc.abstractmethod
    def concrete_grid_position(self, position: GridPosition) -> Optional[np.ndarray]:
        """Space position of a grid cell, ``None`` if the grid is unknown."""

    @abc.abstractmethod
    def orientation(self, grid: int) -> Optional[Rotation]:
        """Orientation of a grid."""

    @abc.abstractmethod
    def source(self) -> FreeGrids:
        """Current grid snapshot."""

    def source_paths(self) -> Optional[BezierPathData]:
        """Current Bezier path snapshot, if the design has paths."""
        return None

    def tangents_between(
        self, start: GridPosition, end: GridPosition
    ) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """Bezier control vectors leaving ``start`` and entering ``end``."""
        return None

    def translate_by_edge(self, position: GridPosition, edge: Edge) -> Optional[GridPosition]:
        """Grid position reached by following ``edge`` from ``position``."""
        return position.translated_by(edge)
