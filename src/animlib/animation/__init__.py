"""
Animation System

Keyframe animation resolution, sampling and playback for glTF node transforms.
"""

from .animation import AnimationTarget, AnimationUnit, InterpolationType, Keyframe, TargetSelector
from .interpolation import PlaybackPolicy, lerp, sample, slerp, wrap_time
from .channel_resolver import (
    AccessorLookup,
    ChannelDiagnostic,
    ChannelResolver,
    DirectLookup,
    ParameterLookup,
    ResolutionResult,
    SkipReason,
    log_diagnostics,
    resolve_document,
    select_lookup,
)
from .animation_manager import AnimationManager, ManagedAnimation, create_animation_manager
from .write_back import node_writer, write_property

__all__ = [
    'AnimationTarget',
    'AnimationUnit',
    'InterpolationType',
    'Keyframe',
    'TargetSelector',
    'PlaybackPolicy',
    'lerp',
    'sample',
    'slerp',
    'wrap_time',
    'AccessorLookup',
    'ChannelDiagnostic',
    'ChannelResolver',
    'DirectLookup',
    'ParameterLookup',
    'ResolutionResult',
    'SkipReason',
    'log_diagnostics',
    'resolve_document',
    'select_lookup',
    'AnimationManager',
    'ManagedAnimation',
    'create_animation_manager',
    'node_writer',
    'write_property',
]
