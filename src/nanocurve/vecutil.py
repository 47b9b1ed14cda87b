## numpy vector and orthonormal frame helpers for nanocurve

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

"""Vector and frame helpers shared by the curve families and the engine.

Points and vectors are ``numpy`` arrays of shape ``(3,)``. A *frame* is a
``(3, 3)`` array whose columns are the ``x``, ``y`` and tangent axes of a
right-handed orthonormal basis.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from scipy.spatial.transform import Rotation

__all__ = [
    "IDENTITY_QUATERNION",
    "rotation_matrix",
    "EPSILON",
    "UNIT_X",
    "UNIT_Y",
    "UNIT_Z",
    "vec3",
    "normalized",
    "perpendicular_basis",
    "frame_from_axes",
    "frame_from_normal",
    "rotation_between",
    "transport_frame",
    "rotate_about_tangent",
    "mismatch_angle",
]

EPSILON = 1e-6

UNIT_X = np.array([1.0, 0.0, 0.0])
UNIT_Y = np.array([0.0, 1.0, 0.0])
UNIT_Z = np.array([0.0, 0.0, 1.0])

IDENTITY_QUATERNION = (0.0, 0.0, 0.0, 1.0)


def vec3(value: Sequence[float]) -> np.ndarray:
    """Return ``value`` as a float array of shape ``(3,)``."""

    arr = np.asarray(value, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"expected three components, got shape {arr.shape}")
    return arr


def normalized(v: np.ndarray, eps: float = EPSILON) -> Optional[np.ndarray]:
    """Return ``v`` scaled to unit length or ``None`` if it is too short."""

    length = float(np.linalg.norm(v))
    if length < eps:
        return None
    return v / length


def frame_from_axes(x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
    return np.column_stack((x, y, z))


def perpendicular_basis(tangent: np.ndarray) -> np.ndarray:
    """Return a frame whose third axis is ``tangent``.

    The seed of the ``x`` axis is world X, or world Y when the tangent is
    nearly aligned with world X. A degenerate tangent yields the identity.
    """

    z = normalized(np.asarray(tangent, dtype=float))
    if z is None:
        return np.identity(3)
    seed = UNIT_Y if abs(z[0]) >= 0.9 else UNIT_X
    y = np.cross(z, seed)
    y /= np.linalg.norm(y)
    x = np.cross(y, z)
    x /= np.linalg.norm(x)
    return frame_from_axes(x, y, z)


def frame_from_normal(normal: np.ndarray, tangent: np.ndarray) -> np.ndarray:
    """Frame with third axis ``tangent`` and ``x`` axis along ``normal``.

    The normal is made orthogonal to the tangent first; if nothing is left of
    it the perpendicular basis of the tangent is returned.
    """

    z = normalized(tangent)
    if z is None:
        return np.identity(3)
    x = normalized(normal - np.dot(normal, z) * z)
    if x is None:
        return perpendicular_basis(z)
    return frame_from_axes(x, np.cross(z, x), z)


def rotation_between(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Minimal rotation matrix taking unit vector ``a`` onto unit vector ``b``."""

    axis = np.cross(a, b)
    s = float(np.linalg.norm(axis))
    c = float(np.clip(np.dot(a, b), -1.0, 1.0))
    if s < 1e-12:
        if c > 0:
            return np.identity(3)
        # half turn about any axis orthogonal to a
        k = perpendicular_basis(a)[:, 0]
        return 2.0 * np.outer(k, k) - np.identity(3)
    k = axis / s
    kx = np.array([[0.0, -k[2], k[1]], [k[2], 0.0, -k[0]], [-k[1], k[0], 0.0]])
    return np.identity(3) + s * kx + (1.0 - c) * (kx @ kx)


def transport_frame(frame: np.ndarray, tangent: np.ndarray) -> np.ndarray:
    """Parallel transport ``frame`` so that its third axis becomes ``tangent``.

    The result is re-orthonormalized so that numerical drift does not
    accumulate along long walks.
    """

    z = normalized(tangent)
    if z is None:
        return frame.copy()
    rotated = rotation_between(frame[:, 2], z) @ frame
    x = normalized(rotated[:, 0] - np.dot(rotated[:, 0], z) * z)
    if x is None:
        return perpendicular_basis(z)
    return frame_from_axes(x, np.cross(z, x), z)


def rotate_about_tangent(frame: np.ndarray, angle: float) -> np.ndarray:
    """Rotate the ``x`` and ``y`` axes of ``frame`` by ``angle`` about its tangent."""

    c, s = math.cos(angle), math.sin(angle)
    x, y, z = frame[:, 0], frame[:, 1], frame[:, 2]
    return frame_from_axes(c * x + s * y, -s * x + c * y, z)


def mismatch_angle(reference: np.ndarray, other: np.ndarray) -> float:
    """Angle by which ``other`` is rotated about the tangent relative to ``reference``."""

    x_other = other[:, 0]
    return math.atan2(float(np.dot(x_other, reference[:, 1])), float(np.dot(x_other, reference[:, 0])))


def rotation_matrix(quaternion: Sequence[float]) -> np.ndarray:
    """Rotation matrix of a scalar-last ``(x, y, z, w)`` quaternion."""

    if len(quaternion) != 4:
        raise ValueError("quaternion must have four components")
    return Rotation.from_quat(np.asarray(quaternion, dtype=float)).as_matrix()
