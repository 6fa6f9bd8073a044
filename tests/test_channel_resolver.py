"""Tests for ChannelResolver"""

import math

import numpy as np
import pytest

from animlib.animation.animation import AnimationTarget, InterpolationType
from animlib.animation.channel_resolver import (
    ChannelResolver,
    DirectLookup,
    ParameterLookup,
    SkipReason,
    log_diagnostics,
    resolve_document,
    select_lookup,
)
from animlib.animation.interpolation import sample
from animlib.loaders.accessor_view import ComponentType
from animlib.loaders.gltf_document import (
    AnimationDescription,
    ChannelDescription,
    SamplerDescription,
)

TIMES = [0.0, 0.5, 1.0]
POSITIONS = [[0.0, 0.0, 0.0], [1.0, 2.0, 3.0], [2.0, 0.0, -1.0]]


def resolve_one(document, animation, schema_version=None):
    return ChannelResolver(document).resolve(animation, schema_version)


def test_resolve_translation_channel(builder, make_animation):
    """Test a valid channel becomes a unit with cached key and value arrays"""
    animation = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation")
    document = builder.build([animation])

    result = resolve_one(document, animation)

    assert result.diagnostics == []
    assert len(result.units) == 1
    unit = result.units[0]
    assert np.array_equal(unit.keys, TIMES)
    assert np.array_equal(unit.values, POSITIONS)
    assert unit.interpolation is InterpolationType.LINEAR
    assert unit.target.path is AnimationTarget.TRANSLATION
    assert unit.target.node == 0


@pytest.mark.parametrize("declared, path, expected", [
    (None, "translation", InterpolationType.LINEAR),
    ("LINEAR", "scale", InterpolationType.LINEAR),
    ("linear", "rotation", InterpolationType.SLERP),
    ("STEP", "rotation", InterpolationType.STEP),
    ("STEP", "translation", InterpolationType.STEP),
])
def test_interpolation_kind(builder, make_animation, declared, path, expected):
    values = [[0, 0, 0, 1], [0, 0, 0, 1]] if path == "rotation" else [[1, 1, 1], [2, 2, 2]]
    accessor_type = "VEC4" if path == "rotation" else "VEC3"
    animation = make_animation(builder, [0.0, 1.0], values, accessor_type, path, declared)
    document = builder.build([animation])

    result = resolve_one(document, animation)

    assert result.units[0].interpolation is expected


def test_rotation_end_to_end(builder, make_animation):
    """Test LINEAR rotation keys sample to the normalized SLERP midpoint"""
    s = math.sin(math.radians(45.0))
    c = math.cos(math.radians(45.0))
    animation = make_animation(
        builder, [0.0, 1.0], [[0, 0, 0, 1], [0, s, 0, c]], "VEC4", "rotation", "LINEAR"
    )
    document = builder.build([animation])

    unit = resolve_one(document, animation).units[0]
    result = sample(unit, 0.5)

    half = math.radians(22.5)
    assert np.allclose(result, [0.0, math.sin(half), 0.0, math.cos(half)], atol=1e-6)
    assert not np.allclose(result, [0.0, s / 2.0, 0.0, (1.0 + c) / 2.0], atol=1e-3)


def test_unknown_sampler_skips_only_that_channel(builder, make_animation):
    """Test a bad sampler reference drops one channel with one diagnostic"""
    animation = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation")
    node = animation.channels[0].target_node
    animation.channels = [
        ChannelDescription(sampler=0, target_node=node, target_path="translation"),
        ChannelDescription(sampler=7, target_node=node, target_path="scale"),
        ChannelDescription(sampler=0, target_node=node, target_path="scale"),
    ]
    document = builder.build([animation])

    result = resolve_one(document, animation)

    assert len(result.units) == 2
    assert [u.target.path for u in result.units] == [AnimationTarget.TRANSLATION, AnimationTarget.SCALE]
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.reason is SkipReason.UNKNOWN_SAMPLER
    assert diagnostic.channel_index == 1
    assert diagnostic.reference == 7
    assert "unknown sampler" in str(diagnostic)
    assert "'anim'" in str(diagnostic)


@pytest.mark.parametrize("interpolation", ["CUBICSPLINE", "SMOOTH", ""])
def test_unsupported_interpolation(builder, make_animation, interpolation):
    animation = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation", interpolation)
    document = builder.build([animation])

    result = resolve_one(document, animation)

    assert result.units == []
    assert result.diagnostics[0].reason is SkipReason.UNSUPPORTED_INTERPOLATION


@pytest.mark.parametrize("path", ["weights", "matrix", None])
def test_unsupported_target_path(builder, make_animation, path):
    animation = make_animation(builder, TIMES, POSITIONS, "VEC3", path)
    document = builder.build([animation])

    result = resolve_one(document, animation)

    assert result.units == []
    assert result.diagnostics[0].reason is SkipReason.UNSUPPORTED_TARGET_PATH
    assert result.diagnostics[0].reference == path


def test_unknown_target_node(builder, make_animation):
    animation = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation", node=42)
    document = builder.build([animation])

    result = resolve_one(document, animation)

    assert result.units == []
    assert result.diagnostics[0].reason is SkipReason.UNKNOWN_TARGET_NODE
    assert result.diagnostics[0].reference == 42


def test_non_float_input_accessor(builder):
    node = builder.add_node()
    time_acc = builder.add_accessor([0, 1], "SCALAR", ComponentType.UNSIGNED_SHORT)
    value_acc = builder.add_accessor([[0, 0, 0], [1, 1, 1]], "VEC3")
    animation = AnimationDescription(
        channels=[ChannelDescription(0, node, "translation")],
        samplers=[SamplerDescription(time_acc, value_acc)],
    )
    document = builder.build([animation])

    result = resolve_one(document, animation)

    diagnostic = result.diagnostics[0]
    assert diagnostic.reason is SkipReason.NON_FLOAT_ACCESSOR
    assert diagnostic.reference == time_acc
    assert "input" in diagnostic.detail


def test_non_float_output_accessor_checked_independently(builder):
    """Test the output accessor is validated itself, not via the input ID"""
    node = builder.add_node()
    time_acc = builder.add_accessor([0.0, 1.0], "SCALAR")
    value_acc = builder.add_accessor(
        [[0, 0, 0], [255, 255, 255]], "VEC3", ComponentType.UNSIGNED_BYTE, normalized=True
    )
    animation = AnimationDescription(
        channels=[ChannelDescription(0, node, "scale")],
        samplers=[SamplerDescription(time_acc, value_acc)],
    )
    document = builder.build([animation])

    result = resolve_one(document, animation)

    diagnostic = result.diagnostics[0]
    assert diagnostic.reason is SkipReason.NON_FLOAT_ACCESSOR
    assert diagnostic.reference == value_acc
    assert "output" in diagnostic.detail


def test_unknown_accessor(builder):
    node = builder.add_node()
    time_acc = builder.add_accessor([0.0, 1.0], "SCALAR")
    animation = AnimationDescription(
        channels=[ChannelDescription(0, node, "scale")],
        samplers=[SamplerDescription(time_acc, 99)],
    )
    document = builder.build([animation])

    result = resolve_one(document, animation)

    assert result.diagnostics[0].reason is SkipReason.UNKNOWN_ACCESSOR
    assert "output" in result.diagnostics[0].detail


def test_data_sanity_checks(builder):
    node = builder.add_node()
    times = builder.add_accessor([0.0, 1.0], "SCALAR")
    unordered = builder.add_accessor([1.0, 0.5], "SCALAR")
    times_vec = builder.add_accessor([[0.0, 0.0], [1.0, 1.0]], "VEC2")
    three = builder.add_accessor([[0, 0, 0], [1, 1, 1], [2, 2, 2]], "VEC3")
    two = builder.add_accessor([[0, 0, 0], [1, 1, 1]], "VEC3")
    animation = AnimationDescription(
        channels=[
            ChannelDescription(0, node, "translation"),
            ChannelDescription(1, node, "translation"),
            ChannelDescription(2, node, "translation"),
            ChannelDescription(3, node, "rotation"),
        ],
        samplers=[
            SamplerDescription(times, three),
            SamplerDescription(unordered, two),
            SamplerDescription(times_vec, two),
            SamplerDescription(times, two),
        ],
    )
    document = builder.build([animation])

    result = resolve_one(document, animation)

    assert result.units == []
    assert [d.reason for d in result.diagnostics] == [
        SkipReason.KEY_COUNT_MISMATCH,
        SkipReason.KEYS_NOT_INCREASING,
        SkipReason.ARITY_MISMATCH,
        SkipReason.ARITY_MISMATCH,
    ]


def test_malformed_accessor(builder, make_animation):
    animation = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation")
    document = builder.build([animation])
    # Claim more elements than the buffer view holds
    document.accessors[1].count = 10

    result = resolve_one(document, animation)

    assert result.units == []
    assert result.diagnostics[0].reason is SkipReason.MALFORMED_ACCESSOR


@pytest.mark.parametrize("collection, field_name, value", [
    ("accessors", "byte_offset", "0"),
    ("accessors", "byte_stride", 12.0),
    ("buffer_views", "byte_offset", "0"),
    ("buffer_views", "byte_length", "36"),
    ("buffer_views", "byte_stride", [12]),
])
def test_badly_typed_layout_skips_only_that_channel(builder, make_animation,
                                                    collection, field_name, value):
    """Test a wrongly typed layout field drops its channel and keeps the others"""
    animation = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation")
    node = animation.channels[0].target_node
    scales = builder.add_accessor(POSITIONS, "VEC3")
    animation.samplers.append(SamplerDescription(animation.samplers[0].input, scales))
    animation.channels.append(ChannelDescription(1, node, "scale"))
    document = builder.build([animation])
    setattr(getattr(document, collection)[scales], field_name, value)

    result = resolve_document(document)

    assert [u.target.path for u in result.units] == [AnimationTarget.TRANSLATION]
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].reason is SkipReason.MALFORMED_ACCESSOR
    assert result.diagnostics[0].reference == scales


def test_unhashable_references_skip_only_their_channels(legacy_builder):
    """Test list-valued sampler, parameter and node references in keyed collections"""
    document, animation = build_legacy(legacy_builder)
    node = animation.channels[0].target_node
    animation.samplers["by_list"] = SamplerDescription(["TIME"], "translation")
    animation.channels += [
        ChannelDescription(["sampler_0"], node, "translation"),
        ChannelDescription("by_list", node, "translation"),
        ChannelDescription("sampler_0", [node], "translation"),
    ]

    result = resolve_document(document)

    assert len(result.units) == 1
    assert [d.reason for d in result.diagnostics] == [
        SkipReason.UNKNOWN_SAMPLER,
        SkipReason.UNKNOWN_ACCESSOR,
        SkipReason.UNKNOWN_TARGET_NODE,
    ]


def test_diagnostic_names_the_sampler(builder, make_animation):
    animation = make_animation(builder, TIMES, POSITIONS, "VEC3", "weights")
    document = builder.build([animation])

    diagnostic = resolve_one(document, animation).diagnostics[0]

    assert diagnostic.sampler == 0
    assert diagnostic.reference == "weights"
    assert "sampler 0" in str(diagnostic)


def test_unparseable_version_uses_direct_references(builder, make_animation, caplog):
    """Test a non-numeric asset version still resolves instead of failing the document"""
    animation = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation")
    builder.version = "2.0-rc1"
    document = builder.build([animation])

    with caplog.at_level("WARNING"):
        result = resolve_document(document)

    assert result.diagnostics == []
    assert len(result.units) == 1
    assert isinstance(select_lookup(animation, "2.0-rc1"), DirectLookup)
    assert any("2.0-rc1" in record.getMessage() for record in caplog.records)


def build_legacy(legacy_builder):
    node = legacy_builder.add_node()
    time_acc = legacy_builder.add_accessor(TIMES, "SCALAR")
    value_acc = legacy_builder.add_accessor(POSITIONS, "VEC3")
    animation = AnimationDescription(
        channels=[ChannelDescription("sampler_0", node, "translation")],
        samplers={"sampler_0": SamplerDescription("TIME", "translation", "LINEAR")},
        parameters={"TIME": time_acc, "translation": value_acc},
        name="legacy",
    )
    return legacy_builder.build({"legacy": animation}), animation


def test_legacy_parameters_match_direct_references(legacy_builder, builder, make_animation):
    """Test glTF 1.0 parameter indirection decodes the same data as 1.1 references"""
    legacy_document, legacy_animation = build_legacy(legacy_builder)
    direct_animation = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation")
    direct_document = builder.build([direct_animation])

    legacy = resolve_one(legacy_document, legacy_animation)
    direct = resolve_one(direct_document, direct_animation)

    assert legacy.diagnostics == [] and direct.diagnostics == []
    assert legacy.units[0].keys.tobytes() == direct.units[0].keys.tobytes()
    assert legacy.units[0].values.tobytes() == direct.units[0].values.tobytes()


def test_legacy_reference_treated_as_accessor_in_new_schema(legacy_builder):
    """Test the schema version decides how sampler references are looked up"""
    document, animation = build_legacy(legacy_builder)

    result = resolve_one(document, animation, schema_version="1.1.0")

    # "TIME" is not an accessor ID
    assert result.units == []
    assert result.diagnostics[0].reason is SkipReason.UNKNOWN_ACCESSOR


def test_missing_parameter(legacy_builder):
    document, animation = build_legacy(legacy_builder)
    animation.parameters = {"TIME": animation.parameters["TIME"]}

    result = resolve_one(document, animation)

    assert result.diagnostics[0].reason is SkipReason.UNKNOWN_ACCESSOR
    assert result.diagnostics[0].reference == "translation"


def test_select_lookup():
    animation = AnimationDescription(parameters={"TIME": "acc"})

    legacy = select_lookup(animation, "1.0")
    assert isinstance(legacy, ParameterLookup)
    assert legacy.accessor_id("TIME") == "acc"
    assert legacy.accessor_id("missing") is None

    assert isinstance(select_lookup(animation, "1.1"), DirectLookup)
    assert isinstance(select_lookup(animation, "2.0"), DirectLookup)
    assert isinstance(select_lookup(animation, None), ParameterLookup)


def test_resolve_document_and_logging(builder, make_animation, caplog):
    good = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation")
    bad = make_animation(builder, TIMES, POSITIONS, "VEC3", "translation", "CUBICSPLINE")
    bad.name = "broken"
    document = builder.build([good, bad])

    result = resolve_document(document)

    assert len(result.units) == 1
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].animation_id == "broken"

    with caplog.at_level("WARNING"):
        log_diagnostics(result.diagnostics)
    assert len(caplog.records) == 1
    assert "unsupported interpolation" in caplog.records[0].getMessage()
