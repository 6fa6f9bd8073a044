"""Core helpers"""
from .versions import compare_versions, normalize_version, parse_version

__all__ = [
    "compare_versions",
    "normalize_version",
    "parse_version",
]
