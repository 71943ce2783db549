"""
Package descriptor model.

A ConditionalDescriptor is the parsed manifest: build targets whose
dependency lists contain conditional branches keyed on flags, the build
platform, and the compiler. Finalization collapses those branches for one
(flags, platform, compiler) triple into a FinalizedDescriptor.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from ghcselect.core.exceptions import ManifestParseError
from ghcselect.core.version import Version
from ghcselect.core.version_range import VersionRange, any_version
from ghcselect.manifest.conditions import Condition


@dataclass(frozen=True)
class Dependency:
    """A dependency of a build target on a package within a version range."""

    name: str
    version_range: VersionRange = field(default_factory=any_version)

    def __str__(self) -> str:
        if self.version_range.is_any_version():
            return self.name
        return f"{self.name} {self.version_range}"


@dataclass(frozen=True)
class CompilerInfo:
    """Compiler identity that manifest ``impl(...)`` conditions are tested against."""

    version: Version
    flavor: str = "ghc"

    def __str__(self) -> str:
        return f"{self.flavor}-{self.version}"


def make_compiler_info(version: Version) -> CompilerInfo:
    """Build the synthetic descriptor for a GHC of the given version."""
    return CompilerInfo(version=version, flavor="ghc")


@dataclass(frozen=True)
class ComponentRequest:
    """Which optional build targets take part in finalization."""

    tests: bool = True
    benchmarks: bool = True


# ============================================================================
# Flags
# ============================================================================


@dataclass(frozen=True)
class PackageFlag:
    """A flag declared by the package."""

    name: str
    default: bool = True
    manual: bool = False
    description: str = ""


class FlagAssignment(Mapping[str, bool]):
    """
    Immutable, ordered mapping from flag name to value.

    Flag names are case-insensitive and stored lower-cased.

    Example:
        >>> flags = parse_flag_assignment("+fast -debug")
        >>> flags["fast"], flags["debug"]
        (True, False)
        >>> str(flags)
        '+fast -debug'
    """

    def __init__(self, values=None):
        items = values.items() if isinstance(values, Mapping) else (values or [])
        self._values: Dict[str, bool] = {}
        for name, value in items:
            self._values[name.lower()] = bool(value)

    def __getitem__(self, name: str) -> bool:
        return self._values[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __eq__(self, other) -> bool:
        if isinstance(other, Mapping):
            return dict(self.items()) == {k.lower(): v for k, v in other.items()}
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._values.items()))

    def merged(self, other: Mapping[str, bool]) -> "FlagAssignment":
        """Get a new assignment with ``other`` overriding this one."""
        values = dict(self._values)
        values.update({k.lower(): v for k, v in other.items()})
        return FlagAssignment(values)

    def __str__(self) -> str:
        return " ".join(
            f"+{name}" if value else f"-{name}" for name, value in self._values.items()
        )

    def __repr__(self) -> str:
        return f"FlagAssignment('{self}')"


_FLAG_RE = re.compile(r"^([+-]?)([A-Za-z0-9_][A-Za-z0-9_\-]*)$")


def parse_flag_assignment(text: str) -> FlagAssignment:
    """
    Parse a space separated flag list such as ``"+fast -debug threaded"``.

    A ``+`` prefix or no prefix enables the flag, ``-`` disables it.

    Raises:
        ManifestParseError: If a flag name is malformed
    """
    values: List[Tuple[str, bool]] = []
    for token in text.split():
        match = _FLAG_RE.match(token)
        if not match:
            raise ManifestParseError(f"Invalid flag: '{token}'")
        sign, name = match.groups()
        values.append((name, sign != "-"))
    return FlagAssignment(values)


# ============================================================================
# Conditional trees
# ============================================================================


@dataclass
class CondBranch:
    """``if condition then ... else ...`` within a CondTree."""

    condition: Condition
    then: "CondTree"
    otherwise: Optional["CondTree"] = None


@dataclass
class CondTree:
    """Dependencies of a build target, with conditional sub-sections."""

    dependencies: List[Dependency] = field(default_factory=list)
    branches: List[CondBranch] = field(default_factory=list)

    def resolve(self, is_true: Callable[[Condition], bool]) -> List[Dependency]:
        """
        Collapse the tree into a flat dependency list.

        Args:
            is_true: Evaluates a condition for the chosen flags/platform/compiler
        """
        resolved = list(self.dependencies)
        for branch in self.branches:
            if is_true(branch.condition):
                resolved.extend(branch.then.resolve(is_true))
            elif branch.otherwise is not None:
                resolved.extend(branch.otherwise.resolve(is_true))
        return resolved

    def conditions(self) -> Iterator[Condition]:
        """Iterate over every condition in the tree."""
        for branch in self.branches:
            yield branch.condition
            yield from branch.then.conditions()
            if branch.otherwise is not None:
                yield from branch.otherwise.conditions()


class ComponentKind(Enum):
    """Kinds of build targets."""

    LIBRARY = "library"
    SUB_LIBRARY = "sub-library"
    EXECUTABLE = "executable"
    FOREIGN_LIBRARY = "foreign-library"
    TEST_SUITE = "test-suite"
    BENCHMARK = "benchmark"


@dataclass
class ConditionalDescriptor:
    """A package description whose dependencies are not yet resolved."""

    name: str
    version: Optional[Version] = None
    flags: List[PackageFlag] = field(default_factory=list)
    library: Optional[CondTree] = None
    sub_libraries: Dict[str, CondTree] = field(default_factory=dict)
    executables: Dict[str, CondTree] = field(default_factory=dict)
    foreign_libraries: Dict[str, CondTree] = field(default_factory=dict)
    test_suites: Dict[str, CondTree] = field(default_factory=dict)
    benchmarks: Dict[str, CondTree] = field(default_factory=dict)
    setup_dependencies: Optional[List[Dependency]] = None
    """Dependencies of a custom Setup script, None when the package has none"""

    def components(self) -> Iterator[Tuple[ComponentKind, str, CondTree]]:
        """Iterate over all build targets as (kind, name, tree)."""
        if self.library is not None:
            yield ComponentKind.LIBRARY, self.name, self.library
        groups = [
            (ComponentKind.SUB_LIBRARY, self.sub_libraries),
            (ComponentKind.EXECUTABLE, self.executables),
            (ComponentKind.FOREIGN_LIBRARY, self.foreign_libraries),
            (ComponentKind.TEST_SUITE, self.test_suites),
            (ComponentKind.BENCHMARK, self.benchmarks),
        ]
        for kind, trees in groups:
            for name, tree in trees.items():
                yield kind, name, tree

    def undeclared_flags(self) -> Iterator[Tuple[ComponentKind, str, List[str]]]:
        """Yield (kind, name, flags) for targets whose conditions use undeclared flags."""
        declared = {f.name.lower() for f in self.flags}
        for kind, name, tree in self.components():
            used = {
                flag.lower()
                for condition in tree.conditions()
                for flag in condition.flag_names()
            }
            undeclared = sorted(used - declared)
            if undeclared:
                yield kind, name, undeclared

    def flag(self, name: str) -> Optional[PackageFlag]:
        for package_flag in self.flags:
            if package_flag.name == name.lower():
                return package_flag
        return None


# ============================================================================
# Finalized descriptor
# ============================================================================


@dataclass(frozen=True)
class BuildInfo:
    """A build target with its resolved dependency list."""

    kind: ComponentKind
    name: str
    dependencies: Tuple[Dependency, ...] = ()


@dataclass(frozen=True)
class FinalizedDescriptor:
    """A package description resolved for one flags/platform/compiler triple."""

    name: str
    version: Optional[Version]
    flags: FlagAssignment
    components: Tuple[BuildInfo, ...] = ()
    setup_dependencies: Optional[Tuple[Dependency, ...]] = None

    def _of_kind(self, kind: ComponentKind) -> List[BuildInfo]:
        return [c for c in self.components if c.kind is kind]

    @property
    def library(self) -> Optional[BuildInfo]:
        libraries = self._of_kind(ComponentKind.LIBRARY)
        return libraries[0] if libraries else None

    @property
    def sub_libraries(self) -> List[BuildInfo]:
        return self._of_kind(ComponentKind.SUB_LIBRARY)

    @property
    def executables(self) -> List[BuildInfo]:
        return self._of_kind(ComponentKind.EXECUTABLE)

    @property
    def foreign_libraries(self) -> List[BuildInfo]:
        return self._of_kind(ComponentKind.FOREIGN_LIBRARY)

    @property
    def test_suites(self) -> List[BuildInfo]:
        return self._of_kind(ComponentKind.TEST_SUITE)

    @property
    def benchmarks(self) -> List[BuildInfo]:
        return self._of_kind(ComponentKind.BENCHMARK)
