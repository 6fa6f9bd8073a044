"""
Version Utilities

Dotted-numeric comparison of glTF asset version strings.
"""

from typing import Optional, Tuple

from ..config.settings import DEFAULT_SCHEMA_VERSION


def parse_version(version: str) -> Tuple[int, ...]:
    """
    Split a version string like "1.1.0" into integer segments.

    Raises:
        ValueError: If a segment is not a non-negative integer
    """
    segments = []
    for part in str(version).strip().split('.'):
        if not part.isdigit():
            raise ValueError(f"Invalid version string: {version!r}")
        segments.append(int(part))
    return tuple(segments)


def compare_versions(a: str, b: str) -> int:
    """
    Compare two dotted version strings numerically.

    The shorter version is padded with zeros, so "1.1" equals "1.1.0".

    Returns:
        Negative if a < b, zero if equal, positive if a > b
    """
    va = parse_version(a)
    vb = parse_version(b)
    length = max(len(va), len(vb))
    va = va + (0,) * (length - len(va))
    vb = vb + (0,) * (length - len(vb))
    return (va > vb) - (va < vb)


def normalize_version(version: Optional[str]) -> str:
    """Return the version, or the default glTF 1.0 version when missing."""
    if version is None or str(version).strip() == "":
        return DEFAULT_SCHEMA_VERSION
    return str(version).strip()
