"""
Core functionality for ghcselect.

This package contains the foundational modules that other components depend on.
"""

from .exceptions import (
    GhcSelectError,
    InvalidVersionError,
    InvalidVersionRangeError,
    ManifestError,
    ManifestParseError,
    FinalizationError,
    UnsatisfiableConstraintsError,
    ExhaustionError,
    UnknownToolchainWarning,
    MetadataError,
    MetadataNotFoundError,
    MetadataParseError,
    MetadataDownloadError,
    ConfigError,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .version import (
    Version,
    parse_version,
)

from .version_range import (
    VersionRange,
    any_version,
    no_version,
    this_version,
    later_version,
    orlater_version,
    earlier_version,
    orearlier_version,
    major_bound_version,
    wildcard_version,
    intersect_version_ranges,
    union_version_ranges,
    is_no_version,
    within_range,
    parse_version_range,
)

__all__ = [
    # Exceptions
    "GhcSelectError",
    "InvalidVersionError",
    "InvalidVersionRangeError",
    "ManifestError",
    "ManifestParseError",
    "FinalizationError",
    "UnsatisfiableConstraintsError",
    "ExhaustionError",
    "UnknownToolchainWarning",
    "MetadataError",
    "MetadataNotFoundError",
    "MetadataParseError",
    "MetadataDownloadError",
    "ConfigError",
    # Platform
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    # Versions
    "Version",
    "parse_version",
    "VersionRange",
    "any_version",
    "no_version",
    "this_version",
    "later_version",
    "orlater_version",
    "earlier_version",
    "orearlier_version",
    "major_bound_version",
    "wildcard_version",
    "intersect_version_ranges",
    "union_version_ranges",
    "is_no_version",
    "within_range",
    "parse_version_range",
]
