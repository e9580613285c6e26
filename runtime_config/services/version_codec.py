"""
Version Codec

Turns semantic version strings into sortable integer codes so version-range
filters can run as integer comparisons in SQL.
"""

import re
from typing import Optional, Tuple

VERSION_PATTERN = re.compile(r"^\d+(\.\d+){0,2}$")
MAX_SEGMENT = 999

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _parse_segment(segment: str) -> int:
    match = _LEADING_INT.match(segment)
    return int(match.group(1)) if match else 0


def parse_version(version: Optional[object]) -> Tuple[int, int, int]:
    """
    Parse a version into ``(major, minor, patch)``.

    Only the first three dot-separated segments count. Each segment is read as
    its leading integer ("7beta" -> 7); anything non-numeric or missing becomes
    0. Never raises.

    >>> parse_version("3.2")
    (3, 2, 0)
    >>> parse_version("2.x.1")
    (2, 0, 1)
    """
    if version is None or version == "":
        return (0, 0, 0)

    segments = [_parse_segment(s) for s in str(version).split(".")[:3]]
    segments.extend([0] * (3 - len(segments)))
    return (segments[0], segments[1], segments[2])


def to_version_code(version: Optional[object]) -> int:
    """Encode a version as ``major * 1_000_000 + minor * 1_000 + patch``."""
    major, minor, patch = parse_version(version)
    return major * 1_000_000 + minor * 1_000 + patch


def is_valid_version(version: Optional[str]) -> bool:
    """
    True for ``MAJOR[.MINOR[.PATCH]]`` with every segment in 0..999.

    The segment bound keeps :func:`to_version_code` order-preserving; "1.1000"
    would otherwise encode higher than "2.0".
    """
    if not version or not VERSION_PATTERN.match(version):
        return False
    return all(int(segment) <= MAX_SEGMENT for segment in version.split("."))


__all__ = [
    "VERSION_PATTERN",
    "parse_version",
    "to_version_code",
    "is_valid_version",
]
