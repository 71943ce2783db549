"""
ghcselect: choose a GHC version for a Haskell package.

Reads a conditional package manifest, works out which ``base`` and ``Cabal``
versions every build target accepts, and picks a GHC release that ships
them, preferring versions already installed on the machine.
"""

from ghcselect.config import build_context, load_settings, update_metadata
from ghcselect.core.version import Version, parse_version
from ghcselect.core.version_range import VersionRange, parse_version_range
from ghcselect.manifest import finalize, parse_flag_assignment, parse_manifest
from ghcselect.resolution import (
    GhcResolver,
    ResolutionContext,
    SelectionPolicy,
    VerificationResult,
    select_ghc_version,
)
from ghcselect.toolchain import (
    GhcDatabase,
    ToolchainEntry,
    download_database,
    find_installed_ghcs,
    read_database,
)

__version__ = "0.1.0"

__all__ = [
    "GhcResolver",
    "select_ghc_version",
    "ResolutionContext",
    "SelectionPolicy",
    "VerificationResult",
    "parse_manifest",
    "finalize",
    "GhcDatabase",
    "ToolchainEntry",
    "read_database",
    "download_database",
    "find_installed_ghcs",
    "load_settings",
    "build_context",
    "update_metadata",
    "Version",
    "VersionRange",
    "parse_version",
    "parse_version_range",
    "parse_flag_assignment",
]
