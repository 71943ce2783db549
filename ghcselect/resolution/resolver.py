"""
GHC version resolution.

This module ties the pieces together: it generates candidate compilers,
finalizes the manifest against each, extracts the base/Cabal constraints,
and narrows the metadata database down to a single GHC version.

Two entry points are offered:

- ``GhcResolver.find_ghc_version``: pick the best GHC from scratch
- ``GhcResolver.check_ghc_version``: verify a GHC chosen by the caller

Example:
    >>> ctx = ResolutionContext.create(db, installed=[parse_version("8.10.2")])
    >>> resolver = GhcResolver(ctx)
    >>> resolver.find_ghc_version(Path("package.yaml").read_bytes())
    Version('8.10.2')
"""

import logging
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Mapping, Optional, TypeVar, Union

from ghcselect.core.exceptions import (
    ExhaustionError,
    FinalizationError,
    UnknownToolchainWarning,
    UnsatisfiableConstraintsError,
)
from ghcselect.core.platform import PlatformInfo, detect_platform
from ghcselect.core.version import Version
from ghcselect.core.version_range import VersionRange, any_version
from ghcselect.manifest.descriptor import (
    ComponentRequest,
    ConditionalDescriptor,
    make_compiler_info,
)
from ghcselect.manifest.finalizer import Finalizer, finalize
from ghcselect.manifest.parser import check_flags, parse_manifest
from ghcselect.resolution.chaser import (
    Candidate,
    base_override_range,
    find_ghc_candidates,
)
from ghcselect.resolution.context import ResolutionContext
from ghcselect.resolution.extractor import (
    DEFAULT_LIBRARIES,
    BundledLibraries,
    ExtractedConstraints,
    constraints_for_base_and_cabal,
)
from ghcselect.toolchain.database import GhcDatabase, ToolchainEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

Manifest = Union[bytes, str, ConditionalDescriptor]


def first_success(attempts: Iterable[Callable[[], Optional[T]]]) -> Optional[T]:
    """
    Run attempts in order and return the first result that is not None.

    Later attempts are not evaluated once one succeeds.
    """
    for attempt in attempts:
        result = attempt()
        if result is not None:
            return result
    return None


class VerificationStatus(Enum):
    COMPATIBLE = "compatible"
    INCOMPATIBLE = "incompatible"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking a caller-chosen GHC version against a manifest."""

    status: VerificationStatus
    ghc_version: Version
    base_range: VersionRange
    cabal_range: VersionRange
    warning: Optional[str] = None

    @property
    def compatible(self) -> bool:
        return self.status is VerificationStatus.COMPATIBLE

    @property
    def known(self) -> bool:
        return self.status is not VerificationStatus.UNKNOWN


def newest_matching(
    db: GhcDatabase, constraints: ExtractedConstraints
) -> Optional[ToolchainEntry]:
    """Newest entry satisfying both the base and the Cabal constraints."""
    return (
        db.entries_with_base_version_in(constraints.base_range)
        .entries_compatible_with_cabal_range(constraints.cabal_range)
        .newest()
    )


class GhcResolver:
    """
    Chooses or verifies a GHC version for a package manifest.

    Args:
        context: Known and installed GHCs plus the selection policy
        platform: Build platform (default: detected)
        parser: Turns manifest bytes into a ConditionalDescriptor
        finalizer: Resolves conditional sections
        libraries: Names of the compiler-bundled libraries
        requested: Optional build targets to take into account
    """

    def __init__(
        self,
        context: ResolutionContext,
        platform: Optional[PlatformInfo] = None,
        parser: Callable[[bytes], ConditionalDescriptor] = parse_manifest,
        finalizer: Finalizer = finalize,
        libraries: BundledLibraries = DEFAULT_LIBRARIES,
        requested: ComponentRequest = ComponentRequest(),
    ):
        self.context = context
        self.platform = platform or detect_platform()
        self.parser = parser
        self.finalizer = finalizer
        self.libraries = libraries
        self.requested = requested

    def _descriptor(self, manifest: Manifest) -> ConditionalDescriptor:
        if isinstance(manifest, ConditionalDescriptor):
            check_flags(manifest)
            return manifest
        return self.parser(manifest)

    def _constraints(
        self,
        flags: Mapping[str, bool],
        descriptor: ConditionalDescriptor,
        base_range: VersionRange,
        compiler,
    ) -> ExtractedConstraints:
        return constraints_for_base_and_cabal(
            flags,
            descriptor,
            base_range,
            compiler,
            self.platform,
            finalizer=self.finalizer,
            libraries=self.libraries,
            requested=self.requested,
        )

    def _candidate_constraints(
        self,
        flags: Mapping[str, bool],
        descriptor: ConditionalDescriptor,
        candidates: Iterable[Candidate],
    ) -> List[ExtractedConstraints]:
        results = []
        for candidate in candidates:
            try:
                constraints = self._constraints(
                    flags, descriptor, candidate.base_range, candidate.compiler
                )
            except FinalizationError as e:
                logger.debug(f"Dropping candidate {candidate.compiler}: {e}")
                continue
            # the user's base override stays a hard filter on the final query
            constraints = constraints._replace(
                base_range=constraints.base_range & candidate.base_range
            )
            logger.debug(
                f"Candidate {candidate.compiler}: base {constraints.base_range}, "
                f"Cabal {constraints.cabal_range}"
            )
            if constraints not in results:
                results.append(constraints)
        return results

    def find_ghc_version(
        self,
        manifest: Manifest,
        flags: Optional[Mapping[str, bool]] = None,
        base_version: Optional[Version] = None,
    ) -> Version:
        """
        Find the best GHC version for a manifest.

        Args:
            manifest: Manifest bytes or an already parsed descriptor
            flags: User flag assignment
            base_version: Exact base version requested by the user

        Returns:
            Selected GHC version

        Raises:
            ManifestParseError: If the manifest cannot be parsed or uses
                undeclared flags
            ExhaustionError: If no known GHC satisfies the constraints
        """
        flags = flags or {}
        descriptor = self._descriptor(manifest)
        candidates = list(
            find_ghc_candidates(
                self.context.all_ghc_info, base_override_range(base_version)
            )
        )
        logger.debug(f"Trying {len(candidates)} candidate compilers")

        constraints = self._candidate_constraints(flags, descriptor, candidates)

        def newest_in(db: GhcDatabase) -> Callable[[], Optional[ToolchainEntry]]:
            def attempt() -> Optional[ToolchainEntry]:
                matches = [newest_matching(db, c) for c in constraints]
                matches = [m for m in matches if m is not None]
                if not matches:
                    return None
                return max(matches, key=lambda entry: entry.ghc_version)

            return attempt

        if self.context.always_newest:
            attempts = [newest_in(self.context.all_ghc_info)]
        else:
            attempts = [
                newest_in(self.context.available_ghcs),
                newest_in(self.context.all_ghc_info),
            ]

        selected = first_success(attempts)
        if selected is None:
            raise ExhaustionError()

        logger.info(f"Selected GHC version: {selected.ghc_version}")
        return selected.ghc_version

    def check_ghc_version(
        self,
        manifest: Manifest,
        flags: Optional[Mapping[str, bool]],
        ghc_version: Version,
    ) -> VerificationResult:
        """
        Check whether a given GHC version can build the manifest.

        Args:
            manifest: Manifest bytes or an already parsed descriptor
            flags: User flag assignment
            ghc_version: GHC version chosen by the caller

        Returns:
            VerificationResult; UNKNOWN (with a warning) when the version is
            not in the metadata database

        Raises:
            ManifestParseError: If the manifest cannot be parsed or uses
                undeclared flags
            UnsatisfiableConstraintsError: If the manifest cannot be finalized
                for this compiler
        """
        descriptor = self._descriptor(manifest)
        try:
            base_range, cabal_range = self._constraints(
                flags or {}, descriptor, any_version(), make_compiler_info(ghc_version)
            )
        except FinalizationError as e:
            raise UnsatisfiableConstraintsError() from e

        entry = self.context.all_ghc_info.lookup(ghc_version)
        if entry is None:
            message = (
                f"GHC {ghc_version} is not in the metadata database, "
                f"cannot verify that it satisfies the constraints"
            )
            logger.warning(message)
            warnings.warn(message, UnknownToolchainWarning)
            return VerificationResult(
                VerificationStatus.UNKNOWN, ghc_version, base_range, cabal_range, message
            )

        base_ok = entry.base_version in base_range
        cabal_ok = not (entry.cabal_range & cabal_range).is_no_version()
        logger.debug(
            f"GHC {ghc_version}: base {entry.base_version} in {base_range}: {base_ok}, "
            f"Cabal {entry.cabal_range} overlaps {cabal_range}: {cabal_ok}"
        )
        status = (
            VerificationStatus.COMPATIBLE
            if base_ok and cabal_ok
            else VerificationStatus.INCOMPATIBLE
        )
        return VerificationResult(status, ghc_version, base_range, cabal_range)


def select_ghc_version(
    manifest: Manifest,
    flags: Optional[Mapping[str, bool]],
    context: ResolutionContext,
    base_version: Optional[Version] = None,
    ghc_version: Optional[Version] = None,
    platform: Optional[PlatformInfo] = None,
) -> Version:
    """
    Decide which GHC to use, honouring an explicit user choice.

    With ``ghc_version`` the choice is verified and returned even when it
    looks wrong (a warning is logged). Otherwise the best version is resolved
    from scratch, optionally pinned to an exact ``base_version``.

    Raises:
        ValueError: If both ghc_version and base_version are given
    """
    if ghc_version is not None and base_version is not None:
        raise ValueError("ghc_version and base_version are mutually exclusive")

    resolver = GhcResolver(context, platform=platform)
    if ghc_version is not None:
        result = resolver.check_ghc_version(manifest, flags, ghc_version)
        if not result.compatible:
            logger.warning("Warning: The specified ghc version probably won't work.")
        return ghc_version

    return resolver.find_ghc_version(manifest, flags, base_version)
