"""
Animation Configuration Settings

All configuration constants for the keyframe animation engine.
Modify these values to change engine behavior.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# ============================================================================
# Project Paths
# ============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
ANIMATION_CONFIG_PATH = ASSETS_DIR / "config" / "animation.json"

# ============================================================================
# Schema Handling
# ============================================================================

# glTF 1.0 samplers refer to animation.parameters; from 1.1.0 on they
# refer to accessors directly
SCHEMA_VERSION_THRESHOLD = "1.1.0"
DEFAULT_SCHEMA_VERSION = "1.0.0"  # Used when asset.version is missing

# ============================================================================
# Interpolation
# ============================================================================

DEFAULT_INTERPOLATION = "LINEAR"  # Sampler interpolation when absent
SUPPORTED_INTERPOLATIONS = ("LINEAR", "STEP")

# Below this angle (radians) SLERP falls back to a normalized linear blend
SLERP_EPSILON = 1e-6

# ============================================================================
# Playback
# ============================================================================

DEFAULT_PLAYBACK_POLICY = "loop"  # "once", "loop" or "clamp_to_last"


def load_animation_settings(path=None) -> dict:
    """
    Load animation settings, overlaying a JSON file on the defaults.

    Args:
        path: JSON file to read (defaults to assets/config/animation.json)

    Returns:
        Dictionary of settings (currently only playback_policy)
    """
    settings = {
        "playback_policy": DEFAULT_PLAYBACK_POLICY,
    }

    config_path = Path(path) if path is not None else ANIMATION_CONFIG_PATH
    if not config_path.exists():
        if path is not None:
            logger.warning("Animation settings not found at %s", config_path)
        return settings

    with open(config_path, 'r') as f:
        config = json.load(f)

    if not isinstance(config, dict):
        raise ValueError(f"Animation settings must be a JSON object: {config_path}")

    for key, value in config.items():
        if key not in settings:
            logger.warning("Ignoring unknown animation setting '%s'", key)
            continue
        settings[key] = value

    return settings
