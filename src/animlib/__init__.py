"""
AnimLib - glTF Keyframe Animation

Decodes glTF accessor data, resolves animation channels of both schema
generations and plays them back onto scene node transforms.
"""

# Configuration
from .config.settings import *

# Core
from .core.versions import compare_versions

# Loaders
from .loaders import (
    AccessorDescriptor,
    ComponentType,
    GltfDocument,
    OutOfRangeError,
    SchemaError,
    TypedAccessorView,
    document_from_gltf2,
    document_from_json,
)

# Animation
from .animation import (
    AnimationManager,
    AnimationTarget,
    AnimationUnit,
    ChannelDiagnostic,
    ChannelResolver,
    InterpolationType,
    PlaybackPolicy,
    SkipReason,
    TargetSelector,
    create_animation_manager,
    sample,
)

__version__ = "0.1.0"
__all__ = [
    # Config (exported via *)
    # Core
    "compare_versions",
    # Loaders
    "AccessorDescriptor",
    "ComponentType",
    "GltfDocument",
    "OutOfRangeError",
    "SchemaError",
    "TypedAccessorView",
    "document_from_gltf2",
    "document_from_json",
    # Animation
    "AnimationManager",
    "AnimationTarget",
    "AnimationUnit",
    "ChannelDiagnostic",
    "ChannelResolver",
    "InterpolationType",
    "PlaybackPolicy",
    "SkipReason",
    "TargetSelector",
    "create_animation_manager",
    "sample",
]
