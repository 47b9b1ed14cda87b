"""Shared fixtures: an in-memory design that symbolic curves can refer to."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from nanocurve.curves.bezier import BezierEndCoordinates, PiecewiseBezier
from nanocurve.grid import BezierPathData, CurveInstantiator, FreeGrids, GridPosition, InstantiatedPath


class FakeInstantiator(CurveInstantiator):
    """Grid cells of grid ``0`` are laid out every 2.65 nm in the xy plane.

    Cells listed in ``missing`` cannot be resolved.
    """

    SPACING = 2.65

    def __init__(self, tangents=None, paths=None, missing=()):
        self.tangents = tangents
        self.grids = FreeGrids()
        self.paths = paths
        self.missing = set(missing)

    def concrete_grid_position(self, position: GridPosition):
        if position.grid != 0 or (position.x, position.y) in self.missing:
            return None
        return np.array([position.x * self.SPACING, position.y * self.SPACING, 0.0])

    def orientation(self, grid):
        return Rotation.identity()

    def source(self):
        return self.grids

    def source_paths(self):
        return self.paths

    def tangents_between(self, start, end):
        return self.tangents

    def edit_grids(self):
        """Hand out a new grid snapshot, as the design does after any grid edit."""
        self.grids = FreeGrids(dict(self.grids.grids))

    def edit_paths(self):
        self.paths = BezierPathData(dict(self.paths.paths))


def straight_path(length=20.0):
    """Piecewise Bezier path along ``z`` made of two straight segments."""
    step = np.array([0.0, 0.0, length / 2.0])
    ends = [BezierEndCoordinates(i * step, step / 3.0, step / 3.0) for i in range(3)]
    return PiecewiseBezier(ends)


@pytest.fixture
def instantiator():
    return FakeInstantiator()


@pytest.fixture
def path_instantiator():
    path = InstantiatedPath(curve=straight_path(), frame=np.identity(3))
    return FakeInstantiator(paths=BezierPathData({7: path}))
