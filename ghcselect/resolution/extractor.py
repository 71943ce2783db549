"""
Constraint extraction.

Turns a finalized package description into the two ranges that decide which
GHC can build it: the intersection of every constraint on ``base`` (setup
stage and all targets) and the intersection of the setup stage's
constraints on ``Cabal``.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, NamedTuple

from ghcselect.core.platform import PlatformInfo
from ghcselect.core.version_range import VersionRange, intersect_all
from ghcselect.manifest.descriptor import (
    CompilerInfo,
    ComponentRequest,
    ConditionalDescriptor,
    Dependency,
    FinalizedDescriptor,
)
from ghcselect.manifest.finalizer import Finalizer, finalize


@dataclass(frozen=True)
class BundledLibraries:
    """Names of the libraries whose versions are tied to the compiler."""

    base: str = "base"
    cabal: str = "Cabal"

    def is_base(self, dependency: Dependency) -> bool:
        return dependency.name == self.base

    def is_cabal(self, dependency: Dependency) -> bool:
        return dependency.name == self.cabal


DEFAULT_LIBRARIES = BundledLibraries()


class ExtractedConstraints(NamedTuple):
    base_range: VersionRange
    cabal_range: VersionRange


def extract_constraints(
    predicate: Callable[[Dependency], bool], dependencies: Iterable[Dependency]
) -> VersionRange:
    """Intersect the ranges of all dependencies matching ``predicate``."""
    return intersect_all(d.version_range for d in dependencies if predicate(d))


def extract_base_and_cabal(
    finalized: FinalizedDescriptor, libraries: BundledLibraries = DEFAULT_LIBRARIES
) -> ExtractedConstraints:
    """
    Compute the aggregate base and Cabal ranges of a finalized package.

    Only the setup stage constrains Cabal, since the Setup script is the
    only part built against the Cabal library shipped with the compiler.
    A package without dependencies on either library yields ``-any`` twice.
    """
    setup_dependencies = list(finalized.setup_dependencies or ())
    project_dependencies = [
        dependency
        for component in finalized.components
        for dependency in component.dependencies
    ]

    base_range = extract_constraints(
        libraries.is_base, setup_dependencies + project_dependencies
    )
    cabal_range = extract_constraints(libraries.is_cabal, setup_dependencies)
    return ExtractedConstraints(base_range, cabal_range)


def base_dependency_predicate(
    allowed_base_range: VersionRange, libraries: BundledLibraries = DEFAULT_LIBRARIES
) -> Callable[[Dependency], bool]:
    """
    Build the dependency check used while finalizing.

    A base dependency is acceptable when it overlaps ``allowed_base_range``;
    every other dependency is assumed to be installable.
    """

    def query_dependency(dependency: Dependency) -> bool:
        if libraries.is_base(dependency):
            return not (dependency.version_range & allowed_base_range).is_no_version()
        return True

    return query_dependency


def constraints_for_base_and_cabal(
    flags: Mapping[str, bool],
    descriptor: ConditionalDescriptor,
    other_base_constraints: VersionRange,
    compiler: CompilerInfo,
    platform: PlatformInfo,
    finalizer: Finalizer = finalize,
    libraries: BundledLibraries = DEFAULT_LIBRARIES,
    requested: ComponentRequest = ComponentRequest(),
) -> ExtractedConstraints:
    """
    Finalize ``descriptor`` for ``compiler`` and extract its constraints.

    Args:
        flags: User flag assignment
        descriptor: Conditional package description
        other_base_constraints: Base versions allowed from outside the manifest
        compiler: Compiler the manifest is finalized against
        platform: Build platform
        finalizer: Finalization implementation
        libraries: Names of the compiler-bundled libraries
        requested: Optional targets to include

    Returns:
        Aggregate (base_range, cabal_range)

    Raises:
        FinalizationError: If the manifest cannot be finalized
    """
    finalized = finalizer(
        flags,
        requested,
        base_dependency_predicate(other_base_constraints, libraries),
        platform,
        compiler,
        descriptor,
    )
    return extract_base_and_cabal(finalized, libraries)
