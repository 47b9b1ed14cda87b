"""Tests for descriptor instantiation, staleness and the curve cache."""

import math

import numpy as np
import pytest

from nanocurve.abscissa import TimeMaps, path_group
from nanocurve.cache import CurveCache
from nanocurve.config import DEFAULT_SETTINGS, DiscretizationSettings
from nanocurve.curves import (
    BezierDescriptor,
    BezierEnd,
    Ellipse,
    InterpolatedCurveDescriptor,
    PiecewiseBezier,
    PiecewiseBezierDescriptor,
    SpiralCylinderDescriptor,
    TranslatedPathDescriptor,
    TranslatedPiecewiseBezier,
    TubeSpiralDescriptor,
    TwistDescriptor,
)
from nanocurve.errors import DescriptorError
from nanocurve.grid import BezierPathData, GridPosition
from nanocurve.instantiation import HelixCurve, InstantiatedCurveDescriptor
from nanocurve.parameters import GEARY_2014_DNA, HelixParameters

from conftest import FakeInstantiator

SPACING = FakeInstantiator.SPACING


def piecewise(*cells):
    return PiecewiseBezierDescriptor([BezierEnd(GridPosition(0, x, y)) for x, y in cells])


class TestPiecewiseInstantiation:
    def test_catmull_rom_through_cells(self, instantiator):
        desc = piecewise((0, 0), (1, 0), (1, 2))
        inst = InstantiatedCurveDescriptor.instantiate(desc, instantiator)
        assert isinstance(inst.geometry, PiecewiseBezier)
        assert inst.grids_generation == instantiator.grids.generation
        for i, cell in enumerate([(0, 0), (1, 0), (1, 2)]):
            expected = [cell[0] * SPACING, cell[1] * SPACING, 0.0]
            assert np.allclose(inst.geometry.position(float(i)), expected)
        assert len(inst.bezier_points()) == 3
        assert len(inst.get_bezier_controls()) == 7

    def test_two_cells_use_instantiator_tangents(self):
        v_out, v_in = np.array([0.0, 0.0, 5.0]), np.array([0.0, 0.0, 5.0])
        inst_src = FakeInstantiator(tangents=(v_out, v_in))
        inst = InstantiatedCurveDescriptor.instantiate(piecewise((0, 0), (0, 1)), inst_src)
        assert np.allclose(inst.geometry.speed(0.0), 3.0 * v_out)
        assert np.allclose(inst.geometry.position(1.0), [0.0, SPACING, 0.0])

    def test_unresolved_cell_gives_empty_curve(self):
        instantiator = FakeInstantiator(missing={(1, 0)})
        inst = InstantiatedCurveDescriptor.instantiate(piecewise((0, 0), (1, 0), (2, 0)), instantiator)
        assert inst.geometry.is_empty()
        curve = inst.make_curve(GEARY_2014_DNA)
        assert curve.nb_points() == 0
        assert curve.axis_position(0) is None

    def test_two_cells_without_tangents_give_empty_curve(self, instantiator):
        inst = InstantiatedCurveDescriptor.instantiate(piecewise((0, 0), (0, 1)), instantiator)
        assert inst.geometry.is_empty()

    def test_discretized_along_cells(self, instantiator):
        inst = InstantiatedCurveDescriptor.instantiate(piecewise((0, 0), (4, 0), (8, 0)), instantiator)
        curve = inst.make_curve(GEARY_2014_DNA)
        last = curve.axis_position(curve.nb_points() - 1)
        assert last[0] == pytest.approx(8 * SPACING, abs=GEARY_2014_DNA.rise)
        assert curve.length() == pytest.approx(8 * SPACING, rel=1e-5)


class TestTranslatedPath:
    def test_helix_offset_in_path_frame(self, path_instantiator):
        desc = TranslatedPathDescriptor(7, (1.0, 0.0, 0.0))
        inst = InstantiatedCurveDescriptor.instantiate(desc, path_instantiator)
        assert isinstance(inst.geometry, TranslatedPiecewiseBezier)
        assert inst.paths_generation == path_instantiator.paths.generation
        curve = inst.make_curve(GEARY_2014_DNA)
        assert curve.nb_points() == 61
        for n in (0, 10, 60):
            assert np.allclose(curve.axis_position(n), [1.0, 0.0, n * GEARY_2014_DNA.rise], atol=1e-6)

    def test_legacy_flag_reaches_geometry(self, path_instantiator):
        inst = InstantiatedCurveDescriptor.instantiate(
            TranslatedPathDescriptor(7, (0.0, 0.0, 0.0), legacy=True), path_instantiator
        )
        assert inst.geometry.legacy()

    def test_missing_path(self, path_instantiator):
        inst = InstantiatedCurveDescriptor.instantiate(TranslatedPathDescriptor(8, (0.0, 0.0, 0.0)), path_instantiator)
        assert inst.geometry.is_empty()
        assert inst.paths_generation == path_instantiator.paths.generation

    def test_design_without_paths(self, instantiator):
        desc = TranslatedPathDescriptor(7, (0.0, 0.0, 0.0))
        inst = InstantiatedCurveDescriptor.instantiate(desc, instantiator)
        assert inst.geometry.is_empty()
        assert inst.paths_generation is None
        assert inst.is_up_to_date(desc, instantiator.source(), None)
        # once the design gets paths the helix must be resolved again
        assert not inst.is_up_to_date(desc, instantiator.source(), BezierPathData({}))

    def test_unknown_symbolic_kind(self, instantiator):
        class Opaque(TwistDescriptor):
            symbolic = True

        with pytest.raises(DescriptorError):
            InstantiatedCurveDescriptor.instantiate(Opaque(0.0, 1.0, 1.0), instantiator)


class TestStaleness:
    def test_up_to_date(self, instantiator):
        desc = piecewise((0, 0), (1, 0), (2, 0))
        inst = InstantiatedCurveDescriptor.instantiate(desc, instantiator)
        assert inst.is_up_to_date(desc, instantiator.source(), None)

    def test_grid_edit_makes_stale(self, instantiator):
        desc = piecewise((0, 0), (1, 0), (2, 0))
        inst = InstantiatedCurveDescriptor.instantiate(desc, instantiator)
        instantiator.edit_grids()
        assert not inst.is_up_to_date(desc, instantiator.source(), None)

    def test_path_edit_makes_stale(self, path_instantiator):
        desc = TranslatedPathDescriptor(7, (1.0, 0.0, 0.0))
        inst = InstantiatedCurveDescriptor.instantiate(desc, path_instantiator)
        assert inst.is_up_to_date(desc, path_instantiator.source(), path_instantiator.source_paths())
        path_instantiator.edit_paths()
        assert not inst.is_up_to_date(desc, path_instantiator.source(), path_instantiator.source_paths())

    def test_replaced_descriptor_makes_stale(self, instantiator):
        desc = piecewise((0, 0), (1, 0), (2, 0))
        inst = InstantiatedCurveDescriptor.instantiate(desc, instantiator)
        twin = piecewise((0, 0), (1, 0), (2, 0))
        assert twin == desc
        assert not inst.is_up_to_date(twin, instantiator.source(), None)

    def test_plain_descriptors_ignore_snapshots(self, instantiator):
        desc = TwistDescriptor(0.0, 1.0, 1.0)
        inst = InstantiatedCurveDescriptor.instantiate(desc, instantiator)
        instantiator.edit_grids()
        assert inst.is_up_to_date(desc, instantiator.source(), None)
        assert inst.geometry is None


class TestHelixCurve:
    def test_update_only_when_needed(self, instantiator):
        slot = HelixCurve(piecewise((0, 0), (3, 0), (3, 3)))
        assert slot.curve is None
        assert slot.update_curve(instantiator, GEARY_2014_DNA)
        first = slot.curve
        assert first.nb_points() > 0
        assert not slot.update_curve(instantiator, GEARY_2014_DNA)
        assert slot.curve is first
        instantiator.edit_grids()
        assert slot.update_curve(instantiator, GEARY_2014_DNA)
        assert slot.curve is not first

    def test_new_helix_parameters_rebuild(self, instantiator):
        slot = HelixCurve(TwistDescriptor(0.0, 0.0, 0.0, t_min=0.0, t_max=5.0))
        slot.update_curve(instantiator, GEARY_2014_DNA)
        assert not slot.need_curve_update(GEARY_2014_DNA)
        params = HelixParameters(rise=0.5)
        assert slot.need_curve_update(params)
        assert slot.update_curve(instantiator, params)
        assert slot.curve.nb_points() == 11

    def test_removing_descriptor(self, instantiator):
        slot = HelixCurve(TwistDescriptor(0.0, 1.0, 1.0))
        slot.update_curve(instantiator, GEARY_2014_DNA)
        slot.set_descriptor(None)
        assert slot.need_curve_descriptor_update(instantiator.source(), None)
        assert slot.update_curve(instantiator, GEARY_2014_DNA)
        assert slot.curve is None
        assert not slot.update_curve(instantiator, GEARY_2014_DNA)

    def test_try_update_plain_descriptor(self):
        desc = TwistDescriptor(0.0, 1.0, 1.0)
        slot = HelixCurve(desc)
        assert slot.try_update_curve(GEARY_2014_DNA)
        assert slot.instantiated_descriptor.source is desc
        assert not slot.try_update_curve(GEARY_2014_DNA)
        slot.set_descriptor(TwistDescriptor(0.0, 1.0, 2.0))
        assert slot.try_update_curve(GEARY_2014_DNA)

    def test_try_update_symbolic_descriptor(self):
        slot = HelixCurve(piecewise((0, 0), (1, 0)))
        assert not slot.try_update_curve(GEARY_2014_DNA)
        assert slot.curve is None

    def test_widened_twist_rebuilds(self):
        desc = TwistDescriptor(0.0, 0.0, 0.0, t_min=0.0, t_max=5.0)
        slot = HelixCurve(desc)
        assert slot.try_update_curve(GEARY_2014_DNA)
        before = slot.curve.nb_points()
        assert desc.set_t_max(10.0)
        assert desc.revision == 1
        assert slot.need_curve_descriptor_update(None, None)
        assert slot.try_update_curve(GEARY_2014_DNA)
        assert slot.curve.nb_points() == 31
        assert slot.curve.nb_points() > before
        # narrowing is refused and keeps the slot up to date
        assert not desc.set_t_min(1.0)
        assert not slot.try_update_curve(GEARY_2014_DNA)

    def test_widened_piecewise_bezier_rebuilds(self, instantiator):
        desc = piecewise((0, 0), (3, 0), (6, 0))
        slot = HelixCurve(desc)
        assert slot.update_curve(instantiator, GEARY_2014_DNA)
        first = slot.curve
        assert desc.set_t_max(3.0)
        assert not slot.instantiated_descriptor.is_up_to_date(desc, instantiator.source(), None)
        assert slot.update_curve(instantiator, GEARY_2014_DNA)
        assert slot.curve is not first
        assert slot.curve.nb_points() > first.nb_points()
        assert desc.set_t_min(-1.0)
        assert slot.update_curve(instantiator, GEARY_2014_DNA)
        assert slot.curve.nucl_t0 > 0
        assert not slot.update_curve(instantiator, GEARY_2014_DNA)


class TestCurveCache:
    def test_get_or_insert_builds_once(self):
        cache = CurveCache()
        calls = []

        def build():
            calls.append(1)
            return object()

        key = BezierDescriptor((0, 0, 0), (1, 0, 0), (2, 0, 0), (3, 0, 0))
        first = cache.get_or_insert(key, GEARY_2014_DNA, build)
        second = cache.get_or_insert(key, GEARY_2014_DNA, build)
        assert first is second
        assert len(calls) == 1
        assert (cache.hits, cache.misses) == (1, 1)
        assert (key, GEARY_2014_DNA, DEFAULT_SETTINGS) in cache
        assert cache.get(key, HelixParameters(rise=0.34)) is None
        cache.clear()
        assert len(cache) == 0
        assert (cache.hits, cache.misses) == (0, 0)

    def test_settings_are_part_of_the_key(self):
        cache = CurveCache()
        key = BezierDescriptor((0, 0, 0), (1, 0, 0), (2, 0, 0), (3, 0, 0))
        coarse = DiscretizationSettings(quadrature_tolerance=1e-3)
        fine = cache.get_or_insert(key, GEARY_2014_DNA, object)
        rough = cache.get_or_insert(key, GEARY_2014_DNA, object, settings=coarse)
        assert rough is not fine
        assert cache.get(key, GEARY_2014_DNA) is fine
        assert cache.get(key, GEARY_2014_DNA, coarse) is rough
        assert cache.get(key, GEARY_2014_DNA, DiscretizationSettings(quadrature_tolerance=1e-3)) is rough
        assert (cache.hits, cache.misses) == (0, 2)

    def test_make_curve_keys_on_settings(self, monkeypatch):
        monkeypatch.setattr(TubeSpiralDescriptor, "cacheable", True)
        cache = CurveCache()
        inst = InstantiatedCurveDescriptor.try_instantiate(TubeSpiralDescriptor(3.0, 2.0, 1.0))
        curve = inst.make_curve(GEARY_2014_DNA, cache=cache)
        coarse = DiscretizationSettings(quadrature_tolerance=1e-3)
        quick = inst.make_curve(GEARY_2014_DNA, cache=cache, settings=coarse)
        assert quick is not curve
        assert inst.make_curve(GEARY_2014_DNA, cache=cache) is curve
        assert len(cache) == 2

    def test_cacheable_descriptors_share_curves(self, monkeypatch):
        monkeypatch.setattr(TubeSpiralDescriptor, "cacheable", True)
        cache = CurveCache()
        a = InstantiatedCurveDescriptor.try_instantiate(TubeSpiralDescriptor(3.0, 2.0, 1.0))
        b = InstantiatedCurveDescriptor.try_instantiate(TubeSpiralDescriptor(3.0, 2.0, 1.0))
        curve = a.make_curve(GEARY_2014_DNA, cache=cache)
        assert b.make_curve(GEARY_2014_DNA, cache=cache) is curve
        assert b.make_curve(HelixParameters(rise=0.34), cache=cache) is not curve
        assert len(cache) == 2
        assert cache.hits == 1

    def test_other_descriptors_bypass_cache(self):
        cache = CurveCache()
        inst = InstantiatedCurveDescriptor.try_instantiate(TubeSpiralDescriptor(3.0, 2.0, 1.0))
        assert inst.make_curve(GEARY_2014_DNA, cache=cache) is not inst.make_curve(GEARY_2014_DNA, cache=cache)
        assert len(cache) == 0


class TestSynchronizationGroups:
    def test_helices_of_one_path_share_converter(self, path_instantiator):
        time_maps = TimeMaps()
        curves = []
        for translation in ((1.0, 0.0, 0.0), (0.0, 2.65, 0.0)):
            inst = InstantiatedCurveDescriptor.instantiate(
                TranslatedPathDescriptor(7, translation), path_instantiator
            )
            curves.append(inst.make_curve(GEARY_2014_DNA, time_maps=time_maps))
        assert len(time_maps) == 1
        assert path_group(7, path_instantiator.paths.generation) in time_maps
        assert curves[0].abscissa_converter is curves[1].abscissa_converter
        x = curves[0].nucleotide_abscissa(20)
        assert x == pytest.approx(20 * GEARY_2014_DNA.rise, rel=1e-4)
        assert curves[1].offset_at_abscissa(x) == 20

    def test_path_edit_opens_new_group(self, path_instantiator):
        time_maps = TimeMaps()
        desc = TranslatedPathDescriptor(7, (1.0, 0.0, 0.0))
        InstantiatedCurveDescriptor.instantiate(desc, path_instantiator).make_curve(GEARY_2014_DNA, time_maps=time_maps)
        path_instantiator.edit_paths()
        InstantiatedCurveDescriptor.instantiate(desc, path_instantiator).make_curve(GEARY_2014_DNA, time_maps=time_maps)
        assert len(time_maps) == 2

    def test_revolution_shape_group(self):
        time_maps = TimeMaps()
        converters = []
        for helix_id in (0, 2):
            desc = InterpolatedCurveDescriptor(
                section=Ellipse(2.0, 3.0), revolution_radius=15.0, helix_id=helix_id, nb_helices=4
            )
            inst = InstantiatedCurveDescriptor.try_instantiate(desc)
            converters.append(inst.make_curve(GEARY_2014_DNA, time_maps=time_maps).abscissa_converter)
        assert converters[0] is converters[1]
        assert converters[0].factor == pytest.approx(2.0 * math.pi * 15.0)
        assert len(time_maps) == 1

    def test_singleton_curves_keep_their_converter(self):
        time_maps = TimeMaps()
        inst = InstantiatedCurveDescriptor.try_instantiate(SpiralCylinderDescriptor(0.0, 10.0, 2.0, 0))
        curve = inst.make_curve(GEARY_2014_DNA, time_maps=time_maps)
        assert len(time_maps) == 0
        assert curve.abscissa_converter.factor == pytest.approx(curve.geometry.d_curvilinear_abscissa)


def test_legacy_placement_pushes_backward_strand_along_tangent(path_instantiator):
    params = HelixParameters(inclination=0.5)
    desc = TranslatedPathDescriptor(7, (0.0, 0.0, 0.0), legacy=True)
    curve = InstantiatedCurveDescriptor.instantiate(desc, path_instantiator).make_curve(params)
    z = 4 * params.rise
    assert np.allclose(curve.nucleotide_position(4, True, 0.0, params), [-1.0, 0.0, z], atol=1e-6)
    assert np.allclose(curve.nucleotide_position(4, False, 0.0, params), [-1.0, 0.0, z + 0.5], atol=1e-6)
