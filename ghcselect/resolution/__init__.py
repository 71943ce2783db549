"""Constraint extraction, candidate generation, and GHC selection."""

from ghcselect.resolution.chaser import Candidate, find_ghc_candidates
from ghcselect.resolution.context import ResolutionContext, SelectionPolicy
from ghcselect.resolution.extractor import (
    BundledLibraries,
    ExtractedConstraints,
    constraints_for_base_and_cabal,
    extract_base_and_cabal,
)
from ghcselect.resolution.resolver import (
    GhcResolver,
    VerificationResult,
    VerificationStatus,
    first_success,
    select_ghc_version,
)

__all__ = [
    "Candidate",
    "find_ghc_candidates",
    "ResolutionContext",
    "SelectionPolicy",
    "BundledLibraries",
    "ExtractedConstraints",
    "constraints_for_base_and_cabal",
    "extract_base_and_cabal",
    "GhcResolver",
    "VerificationResult",
    "VerificationStatus",
    "first_success",
    "select_ghc_version",
]
