"""
GHC toolchain metadata.

Provides the metadata database, its on-disk storage and download, and
detection of locally installed GHC versions.
"""

from ghcselect.toolchain.database import GhcDatabase, ToolchainEntry, parse_database
from ghcselect.toolchain.installed import find_installed_ghcs, probe_ghc_version
from ghcselect.toolchain.metadata import (
    METADATA_URL,
    download_database,
    get_metadata_path,
    read_database,
)

__all__ = [
    "GhcDatabase",
    "ToolchainEntry",
    "parse_database",
    "find_installed_ghcs",
    "probe_ghc_version",
    "METADATA_URL",
    "download_database",
    "get_metadata_path",
    "read_database",
]
