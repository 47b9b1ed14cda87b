"""Tests for curve descriptors and their JSON form."""

import json
import math

import numpy as np
import pytest

from nanocurve.curves import (
    BezierDescriptor,
    BezierEnd,
    ChebyshevCoefficients,
    ChebyshevDescriptor,
    Ellipse,
    InterpolatedCurveDescriptor,
    PiecewiseBezierDescriptor,
    PointsValues,
    SphereConcentricCircleDescriptor,
    SphereLikeSpiralDescriptor,
    SphereOrientation,
    SuperEllipse,
    TranslatedPathDescriptor,
    TwistDescriptor,
    TwistedTorusDescriptor,
)
from nanocurve.descriptor import descriptor_class, registered_kinds
from nanocurve.errors import CurveError, DescriptorError
from nanocurve.grid import Edge, GridPosition
from nanocurve.io import (
    SCHEMA_ID,
    descriptor_from_dict,
    descriptor_to_dict,
    dumps,
    load_descriptor,
    loads,
    save_descriptor,
)
from nanocurve.parameters import HelixParameters


def piecewise(*cells, **kwargs):
    return PiecewiseBezierDescriptor([BezierEnd(GridPosition(0, x, y)) for x, y in cells], **kwargs)


class TestRegistry:
    def test_known_kinds(self):
        kinds = registered_kinds()
        for kind in (
            "Bezier",
            "Chebyshev",
            "InterpolatedCurve",
            "PiecewiseBezier",
            "SphereConcentricCircle",
            "SphereLikeSpiral",
            "SpiralCylinder",
            "SuperTwist",
            "Torus",
            "TorusConcentricCircle",
            "TranslatedPath",
            "TubeSpiral",
            "Twist",
            "TwistedTorus",
        ):
            assert kind in kinds

    def test_lookup(self):
        assert descriptor_class("Twist") is TwistDescriptor
        with pytest.raises(DescriptorError):
            descriptor_class("Hyperboloid")

    def test_error_hierarchy(self):
        assert issubclass(DescriptorError, CurveError)
        assert issubclass(DescriptorError, ValueError)


class TestExternallyTagged:
    def test_twist_layout(self):
        data = descriptor_to_dict(TwistDescriptor(0.5, 1.2, 3.0))
        assert list(data) == ["Twist"]
        fields = data["Twist"]
        assert fields["omega"] == 1.2
        # unset bounds are left out
        assert "t_min" not in fields
        assert "t_max" not in fields

    def test_bounds_written_when_set(self):
        data = descriptor_to_dict(TwistDescriptor(0.0, 1.0, 1.0, t_min=-4.0))
        assert data["Twist"]["t_min"] == -4.0
        assert "t_max" not in data["Twist"]

    def test_legacy_flag_omitted_when_false(self):
        plain = descriptor_to_dict(TranslatedPathDescriptor(3, (1.0, 0.0, 0.0)))
        legacy = descriptor_to_dict(TranslatedPathDescriptor(3, (1.0, 0.0, 0.0), legacy=True))
        assert "legacy" not in plain["TranslatedPath"]
        assert legacy["TranslatedPath"]["legacy"] is True

    def test_enum_written_by_value(self):
        data = descriptor_to_dict(SphereLikeSpiralDescriptor(0.0, 10.0, orientation=SphereOrientation.X))
        assert data["SphereLikeSpiral"]["orientation"] == "X"

    def test_nested_section(self):
        desc = TwistedTorusDescriptor(30.0, SuperEllipse(2.0, 3.0), 4)
        data = json.loads(dumps(desc))
        assert data["TwistedTorus"]["curve"] == {"SuperEllipse": {"a": 2.0, "b": 3.0, "exponent": 4.0}}

    @pytest.mark.parametrize(
        "descriptor",
        [
            TwistDescriptor(0.1, 0.8, 2.0, t_min=-3.0, t_max=7.0, orientation=(0.0, 0.0, 1.0, 0.0)),
            BezierDescriptor((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 1.0, 0.0), (3.0, 1.0, 1.0)),
            SphereConcentricCircleDescriptor(12.0, helix_index=2, target_nb_nt=150, is_closed=True),
            TranslatedPathDescriptor(4, (0.0, 2.65, 0.0), legacy=True),
            InterpolatedCurveDescriptor(
                section=Ellipse(1.0, 2.0),
                revolution_radius=10.0,
                half_turns_count=3,
                section_rotation=PointsValues((0.0, 0.5, 1.0), (0.0, 0.3, 0.0)),
                helix_id=2,
                nb_helices=5,
            ),
            ChebyshevDescriptor(
                ChebyshevCoefficients((1.0, 2.0)),
                ChebyshevCoefficients((0.0,), (0.0, 1.0)),
                PointsValues((0.0, 1.0), (3.0, 4.0)),
            ),
        ],
        ids=lambda d: d.kind,
    )
    def test_json_preserves_descriptor(self, descriptor):
        assert loads(dumps(descriptor)) == descriptor

    def test_piecewise_bezier(self):
        desc = piecewise((0, 0), (1, 0), (1, 1), t_max=4.5)
        again = descriptor_from_dict(json.loads(dumps(desc)))
        assert again.points == desc.points
        assert again.t_min is None
        assert again.t_max == 4.5


class TestMalformed:
    def test_unknown_kind(self):
        with pytest.raises(DescriptorError, match="Hyperboloid"):
            descriptor_from_dict({"Hyperboloid": {}})

    def test_missing_field(self):
        with pytest.raises(DescriptorError, match="omega"):
            descriptor_from_dict({"Twist": {"theta0": 0.0, "radius": 1.0}})

    def test_not_a_single_key_mapping(self):
        with pytest.raises(DescriptorError):
            descriptor_from_dict({"Twist": {}, "Torus": {}})
        with pytest.raises(DescriptorError):
            descriptor_from_dict([1, 2])

    def test_bad_values(self):
        with pytest.raises(DescriptorError):
            descriptor_from_dict({"Torus": {"big_radius": "wide", "half_nb_helix": 2}})
        with pytest.raises(DescriptorError):
            descriptor_from_dict({"Torus": {"big_radius": 20.0, "half_nb_helix": 2.5}})
        with pytest.raises(DescriptorError):
            descriptor_from_dict({"Twist": {"theta0": 0.0, "omega": 1.0, "radius": 1.0, "position": [1.0]}})

    def test_validation_error_becomes_descriptor_error(self):
        fields = {
            "section": {"Ellipse": {"semi_minor_axis": 1.0, "semi_major_axis": 1.0}},
            "revolution_radius": 5.0,
            "helix_id": 3,
            "nb_helices": 2,
        }
        data = {"InterpolatedCurve": fields}
        with pytest.raises(DescriptorError):
            descriptor_from_dict(data)

    def test_unknown_section(self):
        data = {"TwistedTorus": {"big_radius": 5.0, "curve": {"Heart": {}}, "number_of_helix_per_section": 2}}
        with pytest.raises(DescriptorError, match="Heart"):
            descriptor_from_dict(data)

    def test_invalid_json(self):
        with pytest.raises(DescriptorError):
            loads("{Twist")


class TestDomainBounds:
    def test_twist_bounds_only_widen(self):
        desc = TwistDescriptor(0.0, 1.0, 1.0)
        assert desc.set_t_min(-2.0)
        assert not desc.set_t_min(-1.0)
        assert desc.set_t_min(-5.0)
        assert desc.set_t_max(3.0)
        assert not desc.set_t_max(2.0)
        assert (desc.t_min, desc.t_max) == (-5.0, 3.0)

    def test_piecewise_bounds_only_widen(self):
        desc = piecewise((0, 0), (3, 0))
        assert desc.set_t_max(2.0)
        assert not desc.set_t_max(1.5)
        assert desc.t_max == 2.0

    def test_other_variants_ignore_bounds(self):
        desc = SphereConcentricCircleDescriptor(10.0)
        assert not desc.set_t_min(-1.0)
        assert not desc.set_t_max(8.0)
        assert desc.t_min is None


class TestDescriptorQueries:
    def test_symbolic_flags(self):
        assert piecewise((0, 0), (1, 0)).symbolic
        assert TranslatedPathDescriptor(0, (0.0, 0.0, 0.0)).symbolic
        assert not TwistDescriptor(0.0, 1.0, 1.0).symbolic

    def test_length_of_straight_twist(self):
        desc = TwistDescriptor(0.0, 0.0, 0.0, t_min=0.0, t_max=12.0)
        assert desc.compute_length() == pytest.approx(12.0)

    def test_path(self):
        path = TwistDescriptor(0.0, 0.0, 0.0, t_min=0.0, t_max=12.0).path()
        assert len(path) == 10_001
        assert np.allclose(path[-1], [0.0, 0.0, 12.0])

    def test_symbolic_have_no_length(self):
        assert piecewise((0, 0), (1, 0)).compute_length() is None
        assert TranslatedPathDescriptor(0, (0.0, 0.0, 0.0)).path() is None

    def test_symbolic_cannot_build(self):
        with pytest.raises(TypeError):
            piecewise((0, 0), (1, 0)).build_curve(HelixParameters())

    def test_grid_positions_and_translation(self, instantiator):
        desc = piecewise((0, 0), (2, 1), t_min=-1.0)
        assert desc.grid_positions_involved() == [GridPosition(0, 0, 0), GridPosition(0, 2, 1)]
        moved = desc.translated(Edge(1, -1), instantiator)
        assert moved.grid_positions_involved() == [GridPosition(0, 1, -1), GridPosition(0, 3, 0)]
        assert moved.t_min == -1.0
        assert TwistDescriptor(0.0, 1.0, 1.0).translated(Edge(1, 0), instantiator) is None

    def test_cacheable_only_for_twisted_torus(self):
        assert TwistedTorusDescriptor.cacheable
        assert not TwistDescriptor.cacheable
        assert not InterpolatedCurveDescriptor.cacheable


class TestDescriptorFiles:
    def test_save_and_load(self, tmp_path):
        desc = SphereLikeSpiralDescriptor(0.3, 14.0, minimum_diameter=5.0)
        params = HelixParameters(rise=0.34)
        out = save_descriptor(desc, tmp_path / "spiral.json", helix_parameters=params)
        doc = json.loads(out.read_text())
        assert doc["schema"] == SCHEMA_ID
        loaded, loaded_params = load_descriptor(out)
        assert loaded == desc
        assert loaded_params == params

    def test_load_bare_descriptor(self, tmp_path):
        src = tmp_path / "twist.json"
        src.write_text(dumps(TwistDescriptor(0.0, 1.0, 2.0)))
        desc, params = load_descriptor(src)
        assert desc.radius == 2.0
        assert params is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_descriptor(tmp_path / "nope.json")

    def test_wrong_schema(self, tmp_path):
        src = tmp_path / "old.json"
        src.write_text(json.dumps({"schema": "something-else", "descriptor": {}}))
        with pytest.raises(DescriptorError, match="schema"):
            load_descriptor(src)

    def test_bad_helix_parameters(self, tmp_path):
        src = tmp_path / "bad.json"
        doc = {
            "schema": SCHEMA_ID,
            "descriptor": descriptor_to_dict(TwistDescriptor(0.0, 1.0, 1.0)),
            "helix_parameters": {"rise": -1.0},
        }
        src.write_text(json.dumps(doc))
        with pytest.raises(DescriptorError):
            load_descriptor(src)

    def test_orientation_is_preserved(self, tmp_path):
        quarter = (0.0, 0.0, math.sin(math.pi / 4.0), math.cos(math.pi / 4.0))
        desc = TwistDescriptor(0.0, 1.0, 1.0, orientation=quarter)
        loaded, _ = load_descriptor(save_descriptor(desc, tmp_path / "q.json"))
        assert loaded.orientation == pytest.approx(quarter)
