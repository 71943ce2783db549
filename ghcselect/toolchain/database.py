"""
GHC metadata database.

This module provides an immutable table of known GHC releases, each with the
version of ``base`` it ships and the range of ``Cabal`` library versions its
bundled tooling accepts. Queries return new databases, so narrowing can be
chained:

    >>> db = parse_database(text)
    >>> entry = (
    ...     db.entries_with_base_version_in(base_range)
    ...     .entries_compatible_with_cabal_range(cabal_range)
    ...     .newest()
    ... )

Absence is reported as ``None`` or as an empty database, never as an
exception.
"""

import csv
import io
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from ghcselect.core.exceptions import (
    InvalidVersionError,
    InvalidVersionRangeError,
    MetadataParseError,
)
from ghcselect.core.version import Version, parse_version
from ghcselect.core.version_range import VersionRange, parse_version_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolchainEntry:
    """Metadata for one GHC release."""

    ghc_version: Version
    """Version of the compiler"""

    base_version: Version
    """Exact version of base bundled with this compiler"""

    cabal_range: VersionRange
    """Cabal library versions this compiler's tooling accepts"""

    def __str__(self) -> str:
        return f"ghc-{self.ghc_version} (base {self.base_version}, Cabal {self.cabal_range})"


class GhcDatabase:
    """
    Read-only collection of ToolchainEntry values keyed by GHC version.

    Instances are never mutated after construction, so they can be shared
    and queried freely.
    """

    def __init__(self, entries: Iterable[ToolchainEntry] = ()):
        table: Dict[Version, ToolchainEntry] = {}
        for entry in entries:
            table[entry.ghc_version] = entry
        self._entries = MappingProxyType(table)

    @classmethod
    def from_entries(cls, entries: Iterable[ToolchainEntry]) -> "GhcDatabase":
        return cls(entries)

    def filter(self, predicate: Callable[[ToolchainEntry], bool]) -> "GhcDatabase":
        """Keep only entries matching ``predicate``."""
        return GhcDatabase(e for e in self._entries.values() if predicate(e))

    def entries_with_base_version_in(self, base_range: VersionRange) -> "GhcDatabase":
        """Keep entries whose bundled base version lies within ``base_range``."""
        return self.filter(lambda e: e.base_version in base_range)

    def entries_compatible_with_cabal_range(
        self, cabal_range: VersionRange
    ) -> "GhcDatabase":
        """
        Keep entries whose accepted Cabal range overlaps ``cabal_range``.

        Unlike base, Cabal is not pinned per compiler: an entry qualifies when
        some Cabal version is both accepted by the compiler and allowed by
        ``cabal_range``.
        """
        return self.filter(lambda e: not (e.cabal_range & cabal_range).is_no_version())

    def filter_ghc_versions(self, versions: Iterable[Version]) -> "GhcDatabase":
        """Keep only entries for the given GHC versions."""
        wanted = set(versions)
        return self.filter(lambda e: e.ghc_version in wanted)

    def newest(self) -> Optional[ToolchainEntry]:
        """Get the entry with the greatest GHC version, or None if empty."""
        if not self._entries:
            return None
        return self._entries[max(self._entries)]

    def lookup(self, ghc_version: Version) -> Optional[ToolchainEntry]:
        return self._entries.get(ghc_version)

    def base_version_for(self, ghc_version: Version) -> Optional[Version]:
        """Get the base version bundled with ``ghc_version``, if known."""
        entry = self.lookup(ghc_version)
        return entry.base_version if entry else None

    def cabal_range_for(self, ghc_version: Version) -> Optional[VersionRange]:
        """Get the Cabal range accepted by ``ghc_version``, if known."""
        entry = self.lookup(ghc_version)
        return entry.cabal_range if entry else None

    def ghc_versions(self) -> List[Version]:
        """List known GHC versions, newest first."""
        return sorted(self._entries, reverse=True)

    def entries(self) -> List[ToolchainEntry]:
        """List entries, newest first."""
        return [self._entries[v] for v in self.ghc_versions()]

    def __iter__(self) -> Iterator[ToolchainEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, ghc_version) -> bool:
        return ghc_version in self._entries

    def __eq__(self, other) -> bool:
        if not isinstance(other, GhcDatabase):
            return NotImplemented
        return dict(self._entries) == dict(other._entries)

    def __repr__(self) -> str:
        return f"GhcDatabase({', '.join(str(v) for v in self.ghc_versions())})"


def parse_database(text: str) -> GhcDatabase:
    """
    Parse GHC metadata in CSV form.

    Each line is ``ghc_version,base_version,cabal_range``. A header line
    starting with ``ghc`` before any entry, blank lines and ``#`` comments
    are skipped.

    Args:
        text: CSV contents

    Returns:
        Parsed database

    Raises:
        MetadataParseError: If a line is malformed

    Example:
        >>> db = parse_database("8.10.2,4.14.1.0,>=1.24 && <3.3\\n")
        >>> str(db.newest().base_version)
        '4.14.1.0'
    """
    entries = []
    header_allowed = True
    for line_number, row in enumerate(csv.reader(io.StringIO(text)), start=1):
        if not row or not "".join(row).strip():
            continue
        first = row[0].strip()
        if first.startswith("#"):
            continue
        if header_allowed:
            header_allowed = False
            if first.lower().startswith("ghc"):
                continue
        if len(row) != 3:
            raise MetadataParseError(
                f"Line {line_number}: expected 3 fields "
                f"(ghc,base,cabal), found {len(row)}"
            )

        try:
            entries.append(
                ToolchainEntry(
                    ghc_version=parse_version(row[0]),
                    base_version=parse_version(row[1]),
                    cabal_range=parse_version_range(row[2]),
                )
            )
        except (InvalidVersionError, InvalidVersionRangeError) as e:
            raise MetadataParseError(f"Line {line_number}: {e}") from e

    logger.debug(f"Parsed GHC metadata with {len(entries)} entries")
    return GhcDatabase(entries)
