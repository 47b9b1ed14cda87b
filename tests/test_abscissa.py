"""Tests for abscissa converters and synchronization groups."""

import math

import numpy as np
import pytest

from nanocurve.abscissa import AbscissaConverter, TimeMaps, path_group, revolution_group
from nanocurve.curves import CircleCurve, SphereConcentricCircleDescriptor, Twist
from nanocurve.discretization import DiscretizedCurve
from nanocurve.parameters import GEARY_2014_DNA

from conftest import straight_path


class TestLinear:
    def test_round_trip(self):
        conv = AbscissaConverter.linear(4.0)
        assert conv.is_linear
        assert conv.factor == 4.0
        assert conv.x_from_t(2.5) == 10.0
        assert conv.t_from_x(10.0) == 2.5
        # no clamping outside of [0, 1]
        assert conv.x_from_t(-3.0) == -12.0

    def test_positive_factor(self):
        with pytest.raises(ValueError):
            AbscissaConverter.linear(0.0)

    def test_repr(self):
        assert repr(AbscissaConverter.linear(2.0)) == "AbscissaConverter.linear(2.0)"


class TestTabulated:
    def test_interpolation(self):
        conv = AbscissaConverter([0.0, 1.0, 3.0], [0.0, 2.0, 3.0])
        assert not conv.is_linear
        assert conv.factor is None
        assert conv.x_from_t(0.5) == pytest.approx(1.0)
        assert conv.x_from_t(2.0) == pytest.approx(2.5)
        assert conv.t_from_x(2.5) == pytest.approx(2.0)

    def test_extrapolation_uses_end_slopes(self):
        conv = AbscissaConverter([0.0, 1.0, 3.0], [0.0, 2.0, 3.0])
        assert conv.x_from_t(-1.0) == pytest.approx(-2.0)
        assert conv.x_from_t(5.0) == pytest.approx(4.0)
        assert conv.t_from_x(5.0) == pytest.approx(7.0)

    @pytest.mark.parametrize(
        "ts, xs",
        [
            ([0.0], [0.0]),
            ([0.0, 1.0], [0.0]),
            ([0.0, 0.0, 1.0], [0.0, 1.0, 2.0]),
            ([0.0, 1.0, 2.0], [0.0, 1.0, 1.0]),
        ],
    )
    def test_invalid_samples(self, ts, xs):
        with pytest.raises(ValueError):
            AbscissaConverter(ts, xs)

    def test_from_curve_measures_arc_length(self):
        path = straight_path(20.0)
        conv = AbscissaConverter.from_curve(path)
        assert conv.x_from_t(0.0) == pytest.approx(0.0)
        assert conv.x_from_t(1.3) == pytest.approx(13.0, rel=1e-6)
        assert conv.t_from_x(20.0) == pytest.approx(2.0, rel=1e-6)

    def test_from_curve_follows_twist_length(self):
        twist = Twist(0.0, 1.0, 1.0, t_min=0.0, t_max=4.0)
        conv = AbscissaConverter.from_curve(twist)
        assert conv.x_from_t(3.0) == pytest.approx(3.0 * math.sqrt(2.0), rel=1e-5)


class TestTimeMaps:
    def test_get_or_insert_is_append_only(self):
        maps = TimeMaps()
        built = []

        def builder():
            built.append(1)
            return AbscissaConverter.linear(3.0)

        first = maps.get_or_insert("group", builder)
        assert maps.get_or_insert("group", builder) is first
        assert len(built) == 1
        assert "group" in maps
        assert maps.get("other") is None

    def test_group_keys(self):
        assert path_group(3, 11) == ("path", 3, 11)
        assert path_group(3, 11) != path_group(3, 12)
        assert revolution_group(("shape",)) == ("revolution", ("shape",))

    def test_revolution_converter(self):
        maps = TimeMaps()
        conv = maps.revolution_converter("torus", 12.0)
        assert conv.factor == pytest.approx(2.0 * math.pi * 12.0)
        assert maps.revolution_converter("torus", 99.0) is conv


class TestCurveAbscissa:
    def test_latitudes_in_register(self):
        """Helices on two latitudes of a sphere line up at the same abscissa."""
        equator = DiscretizedCurve(SphereConcentricCircleDescriptor(15.0).build_curve(GEARY_2014_DNA), GEARY_2014_DNA)
        north = DiscretizedCurve(
            SphereConcentricCircleDescriptor(15.0, helix_index=3).build_curve(GEARY_2014_DNA), GEARY_2014_DNA
        )
        x = equator.nucleotide_abscissa(40)
        n = north.offset_at_abscissa(x)
        assert north.nucleotide_time(n) == pytest.approx(equator.nucleotide_time(40), abs=0.01)

    def test_abscissa_of_circle(self):
        curve = DiscretizedCurve(CircleCurve(5.0), GEARY_2014_DNA)
        assert curve.nucleotide_abscissa(0) == 0.0
        x = curve.nucleotide_abscissa(10)
        assert x == pytest.approx(10 * GEARY_2014_DNA.rise, rel=1e-6)
        assert curve.offset_at_abscissa(x) == 10
        assert curve.offset_at_abscissa(x + 0.1) == 10
        assert curve.nucleotide_abscissa(10_000) is None

    def test_explicit_converter_wins(self):
        conv = AbscissaConverter.linear(1.0)
        curve = DiscretizedCurve(CircleCurve(5.0), GEARY_2014_DNA, abscissa_converter=conv)
        assert curve.abscissa_converter is conv
        assert curve.nucleotide_abscissa(5) == pytest.approx(curve.nucleotide_time(5))

    def test_monotonic_along_walk(self):
        path = straight_path(20.0)
        curve = DiscretizedCurve(path, GEARY_2014_DNA, abscissa_converter=AbscissaConverter.from_curve(path))
        xs = [curve.nucleotide_abscissa(n) for n in range(curve.nb_points())]
        assert np.all(np.diff(xs) > 0)
