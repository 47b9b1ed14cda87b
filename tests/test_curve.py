"""Tests for the curve capability interface and the frame helpers."""

import math

import numpy as np
import pytest

from nanocurve.curve import CurveBounds, Curved, Isometry2
from nanocurve.curves.circles import CircleCurve
from nanocurve.parameters import GEARY_2014_DNA, HelixParameters
from nanocurve.vecutil import (
    frame_from_normal,
    mismatch_angle,
    perpendicular_basis,
    rotate_about_tangent,
    rotation_matrix,
    transport_frame,
    vec3,
)


class Parabola(Curved):
    """Only the required methods; everything else is derived."""

    def position(self, t):
        return np.array([t, t * t, 0.0])

    def bounds(self):
        return CurveBounds.FINITE


class Point(Curved):
    def position(self, t):
        return np.array([1.0, 2.0, 3.0])

    def bounds(self):
        return CurveBounds.FINITE


class Scaled(Parabola):
    def __init__(self, ratio):
        self.ratio = ratio

    def rise_ratio(self):
        return self.ratio


def assert_orthonormal(frame):
    assert np.allclose(frame.T @ frame, np.identity(3), atol=1e-9)
    assert np.linalg.det(frame) == pytest.approx(1.0)


class TestCurvedDefaults:
    """Capabilities a curve gets without implementing them."""

    def test_default_domain(self):
        curve = Parabola()
        assert curve.t_min() == 0.0
        assert curve.t_max() == 1.0

    def test_numeric_speed(self):
        curve = Parabola()
        assert np.allclose(curve.speed(0.5), [1.0, 1.0, 0.0], atol=1e-6)

    def test_optional_capabilities_absent(self):
        curve = Parabola()
        assert curve.curvilinear_abscissa(0.3) is None
        assert curve.inverse_curvilinear_abscissa(0.3) is None
        assert curve.full_turn_at_t() is None
        assert curve.nucl_pos_full_turn() is None
        assert curve.objective_nb_nt() is None
        assert curve.translation() is None
        assert curve.initial_frame() is None
        assert curve.subdivision_for_t(0.5) is None
        assert curve.surface_info_time(0.5) is None
        assert curve.abscissa_converter() is None
        assert curve.theta_shift(GEARY_2014_DNA) is None
        assert not curve.legacy()
        assert not curve.discretize_quickly()
        assert not curve.pre_compute_polynomials()
        assert not curve.is_time_maps_singleton()

    def test_circle_curvature(self):
        """Curvature of a circle is the inverse of its radius."""
        circle = CircleCurve(2.0)
        for t in (0.0, 0.3, 0.71):
            assert circle.curvature(t) == pytest.approx(0.5)

    def test_zero_speed(self):
        curve = Point()
        assert curve.curvature(0.5) == 0.0
        assert not np.any(curve.tangent(0.5))

    def test_unit_tangent(self):
        tangent = CircleCurve(3.0).tangent(0.0)
        assert np.allclose(tangent, [0.0, 1.0, 0.0])


class TestThetaShift:
    def test_unit_ratio_matches_helix_twist(self):
        """With the default rise the angle between nucleotides is unchanged."""
        shift = Scaled(1.0).theta_shift(GEARY_2014_DNA)
        assert shift == pytest.approx(2.0 * math.pi / GEARY_2014_DNA.bases_per_turn)

    def test_stretched_rise_reduces_angle(self):
        shift = Scaled(1.5).theta_shift(GEARY_2014_DNA)
        assert shift is not None
        assert shift < 2.0 * math.pi / GEARY_2014_DNA.bases_per_turn

    def test_impossible_rise(self):
        """A rise longer than the distance between nucleotides has no solution."""
        assert Scaled(10.0).theta_shift(GEARY_2014_DNA) is None

    def test_other_parameters(self):
        params = HelixParameters(rise=0.34, helix_radius=1.2)
        shift = Scaled(1.0).theta_shift(params)
        assert shift == pytest.approx(2.0 * math.pi / params.bases_per_turn)


class TestFrames:
    def test_perpendicular_basis_along_z(self):
        frame = perpendicular_basis(np.array([0.0, 0.0, 2.0]))
        assert np.allclose(frame, np.identity(3))

    def test_perpendicular_basis_along_x(self):
        """Tangents close to world X seed the basis with world Y."""
        frame = perpendicular_basis(np.array([1.0, 0.0, 0.0]))
        assert_orthonormal(frame)
        assert np.allclose(frame[:, 2], [1.0, 0.0, 0.0])
        assert np.allclose(frame[:, 1], [0.0, 0.0, 1.0])

    def test_degenerate_tangent(self):
        assert np.allclose(perpendicular_basis(np.zeros(3)), np.identity(3))

    @pytest.mark.parametrize("tangent", [(0.3, -0.2, 0.9), (-1.0, 0.1, 0.0), (0.0, 1.0, 0.0)])
    def test_perpendicular_basis_orthonormal(self, tangent):
        frame = perpendicular_basis(np.array(tangent))
        assert_orthonormal(frame)
        assert np.allclose(frame[:, 2], vec3(tangent) / np.linalg.norm(tangent))

    def test_transport_keeps_frame_for_same_tangent(self):
        frame = perpendicular_basis(np.array([0.0, 1.0, 1.0]))
        moved = transport_frame(frame, np.array([0.0, 1.0, 1.0]))
        assert np.allclose(moved, frame)

    def test_transport_to_new_tangent(self):
        frame = np.identity(3)
        moved = transport_frame(frame, np.array([0.0, 1.0, 0.0]))
        assert_orthonormal(moved)
        assert np.allclose(moved[:, 2], [0.0, 1.0, 0.0])
        # the x axis is orthogonal to the rotation and does not move
        assert np.allclose(moved[:, 0], [1.0, 0.0, 0.0])

    def test_transport_reverses_tangent(self):
        moved = transport_frame(np.identity(3), np.array([0.0, 0.0, -1.0]))
        assert_orthonormal(moved)
        assert np.allclose(moved[:, 2], [0.0, 0.0, -1.0])

    def test_frame_from_normal(self):
        frame = frame_from_normal(np.array([1.0, 0.0, 1.0]), np.array([0.0, 0.0, 1.0]))
        assert np.allclose(frame, np.identity(3))

    def test_mismatch_angle_roundtrip(self):
        frame = perpendicular_basis(np.array([0.2, 0.4, 1.0]))
        rotated = rotate_about_tangent(frame, 0.7)
        assert mismatch_angle(frame, rotated) == pytest.approx(0.7)
        assert mismatch_angle(rotated, frame) == pytest.approx(-0.7)

    def test_rotation_matrix(self):
        quarter = (0.0, 0.0, math.sin(math.pi / 4.0), math.cos(math.pi / 4.0))
        assert np.allclose(rotation_matrix(quarter) @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0])
        with pytest.raises(ValueError):
            rotation_matrix((0.0, 0.0, 1.0))

    def test_vec3_shape(self):
        with pytest.raises(ValueError):
            vec3([1.0, 2.0])


def test_isometry_apply():
    iso = Isometry2(translation=(1.0, 2.0), angle=math.pi / 2.0)
    x, y = iso.apply((1.0, 0.0))
    assert x == pytest.approx(1.0)
    assert y == pytest.approx(3.0)


def test_helix_parameter_validation():
    with pytest.raises(ValueError):
        HelixParameters(rise=0.0)
    assert GEARY_2014_DNA.inter_helix_axis_gap() == pytest.approx(2.65)
