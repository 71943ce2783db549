"""
Centralized exception hierarchy for ghcselect.

This module defines all custom exceptions used across the codebase
so that callers can catch failures at the granularity they need.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class GhcSelectError(Exception):
    """Base exception for all ghcselect errors."""

    pass


# ============================================================================
# Version Exceptions
# ============================================================================


class InvalidVersionError(GhcSelectError, ValueError):
    """Invalid version string."""

    pass


class InvalidVersionRangeError(GhcSelectError, ValueError):
    """Invalid version range expression."""

    pass


# ============================================================================
# Manifest Exceptions
# ============================================================================


class ManifestError(GhcSelectError):
    """Base exception for package manifest errors."""

    pass


class ManifestParseError(ManifestError):
    """Raised when manifest bytes do not form a valid package descriptor."""

    pass


class FinalizationError(ManifestError):
    """Raised when no flag/platform/compiler combination resolves the manifest."""

    def __init__(self, message: str, missing=None):
        self.missing = list(missing or [])
        super().__init__(message)


# ============================================================================
# Resolution Exceptions
# ============================================================================


class UnsatisfiableConstraintsError(GhcSelectError):
    """Raised when the manifest constraints cannot be satisfied by any GHC."""

    def __init__(self, message: str = "Error, could not satisfy constraints."):
        super().__init__(message)


class ExhaustionError(UnsatisfiableConstraintsError):
    """Raised when every candidate was tried and none matched the database."""

    pass


class UnknownToolchainWarning(UserWarning):
    """The requested GHC version is not present in the metadata database."""

    pass


# ============================================================================
# Metadata Exceptions
# ============================================================================


class MetadataError(GhcSelectError):
    """Base exception for GHC metadata errors."""

    pass


class MetadataNotFoundError(MetadataError):
    """Raised when the metadata file has not been downloaded yet."""

    def __init__(self, path):
        self.path = path
        super().__init__(
            f"GHC metadata not found at {path}, "
            f"download it first with download_database()."
        )


class MetadataParseError(MetadataError):
    """Raised when the metadata file is malformed."""

    pass


class MetadataDownloadError(MetadataError):
    """Raised when the metadata file cannot be downloaded."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigError(GhcSelectError):
    """Raised when the settings file is invalid."""

    pass
