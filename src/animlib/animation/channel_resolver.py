"""
Channel Resolver

Turns glTF animation channels into AnimationUnits.

Every channel is validated on its own. A channel that refers to missing
data, uses an unsupported interpolation or target, or whose accessors hold
unusable data is dropped and reported as a ChannelDiagnostic; the remaining
channels are still resolved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, List, Mapping, Optional

import numpy as np

from ..config.settings import (
    DEFAULT_INTERPOLATION,
    SCHEMA_VERSION_THRESHOLD,
    SUPPORTED_INTERPOLATIONS,
)
from ..core.versions import compare_versions, normalize_version
from ..loaders.accessor_view import SchemaError, TypedAccessorView, has_float_components
from ..loaders.gltf_document import AnimationDescription, ChannelDescription, GltfDocument, lookup
from .animation import AnimationTarget, AnimationUnit, InterpolationType, TargetSelector

logger = logging.getLogger(__name__)


class SkipReason(Enum):
    """Why a channel could not be resolved."""
    UNKNOWN_SAMPLER = "unknown sampler"
    UNSUPPORTED_INTERPOLATION = "unsupported interpolation"
    UNKNOWN_ACCESSOR = "unknown accessor"
    NON_FLOAT_ACCESSOR = "non-float accessor"
    MALFORMED_ACCESSOR = "malformed accessor"
    ARITY_MISMATCH = "accessor arity mismatch"
    KEY_COUNT_MISMATCH = "key count mismatch"
    KEYS_NOT_INCREASING = "keys not increasing"
    UNSUPPORTED_TARGET_PATH = "unsupported target path"
    UNKNOWN_TARGET_NODE = "unknown target node"


@dataclass(frozen=True)
class ChannelDiagnostic:
    """
    A dropped channel.

    reference is the offending sampler, accessor, path or node ID; sampler
    is the channel's sampler reference.
    """
    animation_id: Hashable
    channel_index: int
    reason: SkipReason
    reference: Hashable = None
    detail: str = ""
    sampler: Hashable = None

    def __str__(self):
        message = (
            f"Animation {self.animation_id!r} channel {self.channel_index} "
            f"sampler {self.sampler!r}: {self.reason.value} {self.reference!r}"
        )
        if self.detail:
            message += f" ({self.detail})"
        return message


@dataclass
class ResolutionResult:
    """Resolved units and the diagnostics of the dropped channels."""
    units: List[AnimationUnit] = field(default_factory=list)
    diagnostics: List[ChannelDiagnostic] = field(default_factory=list)

    def extend(self, other: "ResolutionResult"):
        self.units.extend(other.units)
        self.diagnostics.extend(other.diagnostics)


class ChannelSkipped(Exception):
    """Raised inside the resolver to drop the current channel."""

    def __init__(self, reason: SkipReason, reference: Hashable = None, detail: str = ""):
        super().__init__(f"{reason.value}: {reference!r} {detail}".rstrip())
        self.reason = reason
        self.reference = reference
        self.detail = detail


# ---------------------------------------------------------------------------
# Accessor lookup strategies
# ---------------------------------------------------------------------------

class AccessorLookup:
    """Maps a sampler input/output reference to an accessor ID."""

    def accessor_id(self, reference: Hashable) -> Optional[Hashable]:
        raise NotImplementedError


class DirectLookup(AccessorLookup):
    """glTF 1.1 and later: sampler references are accessor IDs."""

    def accessor_id(self, reference: Hashable) -> Optional[Hashable]:
        return reference

    def __repr__(self):
        return "DirectLookup()"


class ParameterLookup(AccessorLookup):
    """glTF 1.0: sampler references name entries of animation.parameters."""

    def __init__(self, parameters: Optional[Mapping[str, Hashable]]):
        self.parameters = parameters if isinstance(parameters, Mapping) else {}

    def accessor_id(self, reference: Hashable) -> Optional[Hashable]:
        try:
            return self.parameters.get(reference)
        except TypeError:
            return None

    def __repr__(self):
        return f"ParameterLookup(parameters={sorted(map(str, self.parameters))})"


def select_lookup(animation: AnimationDescription, schema_version: str) -> AccessorLookup:
    """
    Choose how sampler references are resolved for an animation.

    A version that is not a dotted numeric string (e.g. "2.0-rc1") is
    treated as current and resolved through direct references.
    """
    version = normalize_version(schema_version)
    try:
        legacy = compare_versions(version, SCHEMA_VERSION_THRESHOLD) < 0
    except ValueError:
        logger.warning(
            "Unrecognized glTF version %r, resolving sampler references directly", version
        )
        legacy = False
    if legacy:
        return ParameterLookup(animation.parameters)
    return DirectLookup()


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class ChannelResolver:
    """
    Resolves the channels of glTF animations against a document.

    Decoded key times and values are copied into the units, so the document
    buffers are not read again during playback.
    """

    def __init__(self, document: GltfDocument):
        self.document = document

    def resolve(
        self,
        animation: AnimationDescription,
        schema_version: Optional[str] = None,
        animation_id: Hashable = None
    ) -> ResolutionResult:
        """
        Resolve all channels of one animation.

        Args:
            animation: Animation description
            schema_version: glTF version (defaults to the document version)
            animation_id: ID used in diagnostics (defaults to the animation name)

        Returns:
            ResolutionResult with one unit per valid channel, in channel order
        """
        if schema_version is None:
            schema_version = self.document.schema_version
        if animation_id is None:
            animation_id = animation.name

        accessor_lookup = select_lookup(animation, schema_version)
        result = ResolutionResult()

        for index, channel in enumerate(animation.channels):
            try:
                unit = self.resolve_channel(animation, channel, accessor_lookup)
            except ChannelSkipped as skip:
                result.diagnostics.append(ChannelDiagnostic(
                    animation_id=animation_id,
                    channel_index=index,
                    reason=skip.reason,
                    reference=skip.reference,
                    detail=skip.detail,
                    sampler=channel.sampler,
                ))
                continue
            result.units.append(unit)

        return result

    def resolve_channel(
        self,
        animation: AnimationDescription,
        channel: ChannelDescription,
        accessor_lookup: AccessorLookup
    ) -> AnimationUnit:
        """
        Resolve a single channel.

        Raises:
            ChannelSkipped: If the channel cannot be played back
        """
        sampler = lookup(animation.samplers, channel.sampler)
        if sampler is None:
            raise ChannelSkipped(SkipReason.UNKNOWN_SAMPLER, channel.sampler)

        interpolation = sampler.interpolation
        if interpolation is None:
            interpolation = DEFAULT_INTERPOLATION
        interpolation = str(interpolation).upper()
        if interpolation not in SUPPORTED_INTERPOLATIONS:
            raise ChannelSkipped(
                SkipReason.UNSUPPORTED_INTERPOLATION, channel.sampler,
                f"interpolation {sampler.interpolation!r}, only LINEAR and STEP are supported"
            )

        input_id = self._float_accessor_id(accessor_lookup, sampler.input, "input")
        output_id = self._float_accessor_id(accessor_lookup, sampler.output, "output")

        keys_view = self._create_view(input_id, "input")
        if keys_view.components_per_element != 1:
            raise ChannelSkipped(
                SkipReason.ARITY_MISMATCH, input_id,
                f"input has {keys_view.components_per_element} components, expected 1"
            )
        keys = keys_view.to_array()[:, 0]
        if len(keys) == 0:
            raise ChannelSkipped(SkipReason.KEY_COUNT_MISMATCH, input_id, "input has no keys")
        if not np.all(np.isfinite(keys)) or np.any(np.diff(keys) <= 0.0):
            raise ChannelSkipped(SkipReason.KEYS_NOT_INCREASING, input_id)

        target = AnimationTarget.from_path(channel.target_path)
        if target is None:
            raise ChannelSkipped(
                SkipReason.UNSUPPORTED_TARGET_PATH, channel.target_path,
                "path must be translation, rotation or scale"
            )

        values_view = self._create_view(output_id, "output")
        if values_view.components_per_element != target.arity:
            raise ChannelSkipped(
                SkipReason.ARITY_MISMATCH, output_id,
                f"output has {values_view.components_per_element} components, "
                f"{target.value} needs {target.arity}"
            )
        if len(values_view) != len(keys):
            raise ChannelSkipped(
                SkipReason.KEY_COUNT_MISMATCH, output_id,
                f"{len(keys)} keys but {len(values_view)} values"
            )
        values = values_view.to_array()

        if not self.document.has_node(channel.target_node):
            raise ChannelSkipped(SkipReason.UNKNOWN_TARGET_NODE, channel.target_node)

        if interpolation == "STEP":
            kind = InterpolationType.STEP
        elif target is AnimationTarget.ROTATION:
            kind = InterpolationType.SLERP
        else:
            kind = InterpolationType.LINEAR

        return AnimationUnit(keys, values, kind, TargetSelector(channel.target_node, target))

    def _float_accessor_id(self, accessor_lookup: AccessorLookup, reference, side: str):
        accessor_id = accessor_lookup.accessor_id(reference)
        accessor = self.document.get_accessor(accessor_id)
        if accessor is None:
            raise ChannelSkipped(
                SkipReason.UNKNOWN_ACCESSOR, reference, f"{side} via {accessor_lookup!r}"
            )
        if not has_float_components(accessor):
            raise ChannelSkipped(
                SkipReason.NON_FLOAT_ACCESSOR, accessor_id,
                f"{side} accessor has component type {accessor.component_type}, expected FLOAT"
            )
        return accessor_id

    def _create_view(self, accessor_id, side: str) -> TypedAccessorView:
        try:
            return self.document.create_view(accessor_id)
        except SchemaError as e:
            raise ChannelSkipped(SkipReason.MALFORMED_ACCESSOR, accessor_id, f"{side}: {e}") from e


def resolve_document(document: GltfDocument) -> ResolutionResult:
    """Resolve every animation of a document, in document order."""
    resolver = ChannelResolver(document)
    result = ResolutionResult()
    for animation_id, animation in document.animation_entries():
        name = animation.name if animation.name is not None else animation_id
        result.extend(resolver.resolve(animation, animation_id=name))
    return result


def log_diagnostics(diagnostics, log: Optional[logging.Logger] = None):
    """Emit one warning line per dropped channel."""
    log = log or logger
    for diagnostic in diagnostics:
        log.warning("Skipping animation channel: %s", diagnostic)
