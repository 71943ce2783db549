"""
Manifest finalization.

Collapses the conditional sections of a ConditionalDescriptor for one flag
assignment, platform, and compiler. Flags the user did not set are chosen
the way Cabal does it: manual flags keep their default, automatic flags are
searched (default value first) until every dependency is acceptable.
"""

import itertools
import logging
from typing import Callable, Iterator, List, Mapping, Optional, Tuple

from ghcselect.core.exceptions import FinalizationError
from ghcselect.core.platform import PlatformInfo
from ghcselect.manifest.conditions import ConditionEnv
from ghcselect.manifest.descriptor import (
    BuildInfo,
    CompilerInfo,
    ComponentKind,
    ComponentRequest,
    ConditionalDescriptor,
    Dependency,
    FinalizedDescriptor,
    FlagAssignment,
)

logger = logging.getLogger(__name__)

DependencyPredicate = Callable[[Dependency], bool]

Finalizer = Callable[
    [
        Mapping[str, bool],
        ComponentRequest,
        DependencyPredicate,
        PlatformInfo,
        CompilerInfo,
        ConditionalDescriptor,
    ],
    FinalizedDescriptor,
]
"""Signature shared by every finalizer implementation."""


def _flag_choices(
    descriptor: ConditionalDescriptor, user_flags: FlagAssignment
) -> List[Tuple[str, List[bool]]]:
    choices = []
    for package_flag in descriptor.flags:
        if package_flag.name in user_flags:
            values = [user_flags[package_flag.name]]
        elif package_flag.manual:
            values = [package_flag.default]
        else:
            values = [package_flag.default, not package_flag.default]
        choices.append((package_flag.name, values))
    return choices


def _assignments(choices: List[Tuple[str, List[bool]]]) -> Iterator[FlagAssignment]:
    names = [name for name, _ in choices]
    for values in itertools.product(*(values for _, values in choices)):
        yield FlagAssignment(zip(names, values))


def _is_requested(kind: ComponentKind, requested: ComponentRequest) -> bool:
    if kind is ComponentKind.TEST_SUITE:
        return requested.tests
    if kind is ComponentKind.BENCHMARK:
        return requested.benchmarks
    return True


def _internal_names(descriptor: ConditionalDescriptor) -> set:
    return {descriptor.name} | set(descriptor.sub_libraries)


def _resolve(
    descriptor: ConditionalDescriptor,
    requested: ComponentRequest,
    env: ConditionEnv,
) -> List[BuildInfo]:
    def is_true(condition) -> bool:
        return condition.evaluate(env)

    return [
        BuildInfo(kind, name, tuple(tree.resolve(is_true)))
        for kind, name, tree in descriptor.components()
        if _is_requested(kind, requested)
    ]


def _unacceptable(
    descriptor: ConditionalDescriptor,
    components: List[BuildInfo],
    dependency_ok: DependencyPredicate,
) -> List[Dependency]:
    internal = _internal_names(descriptor)
    dependencies = [dep for c in components for dep in c.dependencies]
    dependencies.extend(descriptor.setup_dependencies or [])

    missing = []
    for dependency in dependencies:
        if dependency.name in internal:
            continue
        if not dependency_ok(dependency) and dependency not in missing:
            missing.append(dependency)
    return missing


def finalize(
    flags: Mapping[str, bool],
    requested: ComponentRequest,
    dependency_ok: DependencyPredicate,
    platform: PlatformInfo,
    compiler: CompilerInfo,
    descriptor: ConditionalDescriptor,
) -> FinalizedDescriptor:
    """
    Resolve every conditional section of a package descriptor.

    Args:
        flags: Flag values chosen by the user
        requested: Which optional targets (tests, benchmarks) to include
        dependency_ok: Decides whether a dependency is acceptable
        platform: Build platform for os()/arch() conditions
        compiler: Compiler for impl() conditions
        descriptor: Package descriptor to finalize

    Returns:
        The descriptor resolved under the first acceptable flag assignment

    Raises:
        FinalizationError: If a condition uses an undeclared flag, or no flag
            assignment makes every dependency acceptable
    """
    for kind, name, undeclared in descriptor.undeclared_flags():
        raise FinalizationError(
            f"Cannot finalize {descriptor.name}: {kind.value} '{name}' "
            f"uses undeclared flag(s) {', '.join(undeclared)}"
        )

    user_flags = FlagAssignment(flags)
    declared = {f.name for f in descriptor.flags}
    for name in user_flags:
        if name not in declared:
            logger.debug(f"Ignoring flag '{name}' not declared by {descriptor.name}")

    first_missing: Optional[List[Dependency]] = None
    for assignment in _assignments(_flag_choices(descriptor, user_flags)):
        env = ConditionEnv(flags=assignment, platform=platform, compiler=compiler)
        components = _resolve(descriptor, requested, env)
        missing = _unacceptable(descriptor, components, dependency_ok)
        if not missing:
            setup = descriptor.setup_dependencies
            return FinalizedDescriptor(
                name=descriptor.name,
                version=descriptor.version,
                flags=assignment,
                components=tuple(components),
                setup_dependencies=tuple(setup) if setup is not None else None,
            )
        if first_missing is None:
            first_missing = missing

    raise FinalizationError(
        f"Cannot finalize {descriptor.name} for {compiler} on {platform}, "
        f"unacceptable dependencies: {', '.join(str(d) for d in first_missing or [])}",
        missing=first_missing,
    )
