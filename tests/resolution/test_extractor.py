"""
Unit tests for base/Cabal constraint extraction.
"""

import textwrap

import pytest

from ghcselect.core.exceptions import FinalizationError
from ghcselect.core.platform import PlatformInfo
from ghcselect.core.version import parse_version
from ghcselect.core.version_range import (
    any_version,
    parse_version_range,
    this_version,
)
from ghcselect.manifest.descriptor import (
    BuildInfo,
    ComponentKind,
    ComponentRequest,
    Dependency,
    FinalizedDescriptor,
    FlagAssignment,
    make_compiler_info,
)
from ghcselect.manifest.parser import parse_dependency, parse_manifest
from ghcselect.resolution.extractor import (
    BundledLibraries,
    base_dependency_predicate,
    constraints_for_base_and_cabal,
    extract_base_and_cabal,
    extract_constraints,
)

r = parse_version_range
LINUX = PlatformInfo("linux", "x86_64")
GHC = make_compiler_info(parse_version("8.10.2"))


def finalized(components, setup=None):
    return FinalizedDescriptor(
        name="pkg",
        version=None,
        flags=FlagAssignment(),
        components=tuple(
            BuildInfo(kind, name, tuple(parse_dependency(d) for d in deps))
            for kind, name, deps in components
        ),
        setup_dependencies=(
            tuple(parse_dependency(d) for d in setup) if setup is not None else None
        ),
    )


class TestExtractConstraints:
    """Test intersecting matching dependency ranges."""

    def test_no_matching_dependencies_is_any(self):
        deps = [parse_dependency("text >= 1.2")]
        assert extract_constraints(lambda d: d.name == "base", deps).is_any_version()

    def test_intersects_all_matches(self):
        deps = [
            parse_dependency("base >= 4.12"),
            parse_dependency("text"),
            parse_dependency("base < 4.15"),
        ]
        assert extract_constraints(lambda d: d.name == "base", deps) == r(">= 4.12 && < 4.15")


class TestExtractBaseAndCabal:
    """Test aggregation over a finalized package."""

    def test_combines_every_target(self):
        result = extract_base_and_cabal(
            finalized(
                [
                    (ComponentKind.LIBRARY, "pkg", ["base >= 4.12 && < 5"]),
                    (ComponentKind.EXECUTABLE, "tool", ["base >= 4.14"]),
                    (ComponentKind.TEST_SUITE, "spec", ["base < 4.16"]),
                ]
            )
        )
        assert result.base_range == r(">= 4.14 && < 4.16")
        assert result.cabal_range.is_any_version()

    def test_setup_constrains_base_and_cabal(self):
        result = extract_base_and_cabal(
            finalized(
                [(ComponentKind.LIBRARY, "pkg", ["base >= 4.12"])],
                setup=["base < 4.15", "Cabal >= 2.4 && < 3.3"],
            )
        )
        assert result.base_range == r(">= 4.12 && < 4.15")
        assert result.cabal_range == r(">= 2.4 && < 3.3")

    def test_cabal_in_targets_is_ignored(self):
        """Only the setup stage builds against the compiler's Cabal."""
        result = extract_base_and_cabal(
            finalized([(ComponentKind.LIBRARY, "pkg", ["Cabal >= 3.0"])])
        )
        assert result.cabal_range.is_any_version()

    def test_unconstrained_package(self):
        result = extract_base_and_cabal(finalized([(ComponentKind.LIBRARY, "pkg", [])]))
        assert result.base_range.is_any_version()
        assert result.cabal_range.is_any_version()

    def test_conflicting_targets_are_unsatisfiable(self):
        result = extract_base_and_cabal(
            finalized(
                [
                    (ComponentKind.LIBRARY, "pkg", ["base == 4.13.0.0"]),
                    (ComponentKind.EXECUTABLE, "tool", ["base == 4.14.1.0"]),
                ]
            )
        )
        assert result.base_range.is_no_version()

    def test_adding_a_target_only_narrows(self):
        """The aggregate base range never grows when targets are added."""
        one = extract_base_and_cabal(
            finalized([(ComponentKind.LIBRARY, "pkg", ["base >= 4.12"])])
        )
        two = extract_base_and_cabal(
            finalized(
                [
                    (ComponentKind.LIBRARY, "pkg", ["base >= 4.12"]),
                    (ComponentKind.BENCHMARK, "bench", ["base < 4.14"]),
                ]
            )
        )
        assert two.base_range & one.base_range == two.base_range

    def test_custom_library_names(self):
        libraries = BundledLibraries(base="base-compat", cabal="cabal-lib")
        result = extract_base_and_cabal(
            finalized(
                [(ComponentKind.LIBRARY, "pkg", ["base-compat >= 1", "base >= 4.14"])],
                setup=["cabal-lib >= 2"],
            ),
            libraries,
        )
        assert result.base_range == r(">= 1")
        assert result.cabal_range == r(">= 2")


class TestBaseDependencyPredicate:
    """Test the dependency check used during finalization."""

    def test_other_packages_always_accepted(self):
        predicate = base_dependency_predicate(this_version(parse_version("4.14.1.0")))
        assert predicate(Dependency("text", r("< 0.1")))

    def test_base_accepted_when_overlapping(self):
        predicate = base_dependency_predicate(this_version(parse_version("4.14.1.0")))
        assert predicate(Dependency("base", r(">= 4.14 && < 4.15")))
        assert not predicate(Dependency("base", r(">= 4.15")))

    def test_any_allows_every_satisfiable_base(self):
        predicate = base_dependency_predicate(any_version())
        assert predicate(Dependency("base", r("== 4.13.0.0")))


class TestConstraintsForBaseAndCabal:
    """Test finalize-then-extract."""

    MANIFEST = textwrap.dedent(
        """
        name: compat
        library:
          dependencies: [base >= 4.12]
          when:
            condition: impl(ghc >= 9.0)
            then:
              dependencies: [base >= 4.15]
            else:
              dependencies: [base < 4.15]
        custom-setup:
          dependencies: [Cabal >= 2.4]
        """
    ).encode("utf-8")

    def test_depends_on_compiler(self):
        descriptor = parse_manifest(self.MANIFEST)
        old = constraints_for_base_and_cabal({}, descriptor, any_version(), GHC, LINUX)
        new = constraints_for_base_and_cabal(
            {}, descriptor, any_version(), make_compiler_info(parse_version("9.2.1")), LINUX
        )
        assert old.base_range == r(">= 4.12 && < 4.15")
        assert new.base_range == r(">= 4.15")
        assert old.cabal_range == new.cabal_range == r(">= 2.4")

    def test_unacceptable_base_raises(self):
        descriptor = parse_manifest(self.MANIFEST)
        with pytest.raises(FinalizationError):
            constraints_for_base_and_cabal(
                {}, descriptor, this_version(parse_version("4.16.0.0")), GHC, LINUX
            )

    def test_injected_finalizer(self):
        calls = []

        def fake_finalize(flags, requested, dependency_ok, platform, compiler, descriptor):
            calls.append((flags, requested, platform, compiler))
            return finalized(
                [(ComponentKind.LIBRARY, "pkg", ["base ^>= 4.14"])], setup=["Cabal < 3"]
            )

        result = constraints_for_base_and_cabal(
            {"fast": True},
            parse_manifest(self.MANIFEST),
            any_version(),
            GHC,
            LINUX,
            finalizer=fake_finalize,
            requested=ComponentRequest(tests=False),
        )

        assert result == (r("^>= 4.14"), r("< 3"))
        assert calls == [({"fast": True}, ComponentRequest(tests=False), LINUX, GHC)]
