"""
Candidate compiler generation.

Which base range applies depends on the compiler (through ``impl(ghc ...)``
conditions), and which compiler is acceptable depends on the base range.
The circle is broken by trying every known GHC as a hypothesis: each one
becomes a candidate compiler to finalize the manifest against.
"""

from typing import Iterator, NamedTuple, Optional

from ghcselect.core.version import Version
from ghcselect.core.version_range import (
    VersionRange,
    any_version,
    this_version,
)
from ghcselect.manifest.descriptor import CompilerInfo, make_compiler_info
from ghcselect.toolchain.database import GhcDatabase


class Candidate(NamedTuple):
    """A compiler hypothesis with the base range imposed from outside the manifest."""

    base_range: VersionRange
    compiler: CompilerInfo


def base_override_range(base_version: Optional[Version]) -> VersionRange:
    """Range allowed by a user-supplied exact base version, if any."""
    return this_version(base_version) if base_version is not None else any_version()


def find_ghc_candidates(
    db: GhcDatabase, base_constraints: VersionRange
) -> Iterator[Candidate]:
    """
    Generate candidate compilers, newest GHC first.

    Only GHCs whose bundled base lies within ``base_constraints`` are
    hypothesised; ranking the outcomes is up to the caller.

    Args:
        db: All known GHC releases
        base_constraints: Base versions allowed from outside the manifest
    """
    base_range = base_constraints & any_version()
    for entry in db.entries_with_base_version_in(base_range):
        yield Candidate(base_range, make_compiler_info(entry.ghc_version))
