"""Package manifest model, YAML reader, and finalizer."""

from ghcselect.manifest.conditions import Condition, ConditionEnv, parse_condition
from ghcselect.manifest.descriptor import (
    BuildInfo,
    CompilerInfo,
    ComponentKind,
    ComponentRequest,
    CondBranch,
    CondTree,
    ConditionalDescriptor,
    Dependency,
    FinalizedDescriptor,
    FlagAssignment,
    PackageFlag,
    make_compiler_info,
    parse_flag_assignment,
)
from ghcselect.manifest.finalizer import finalize
from ghcselect.manifest.parser import check_flags, parse_dependency, parse_manifest

__all__ = [
    "Condition",
    "ConditionEnv",
    "parse_condition",
    "BuildInfo",
    "CompilerInfo",
    "ComponentKind",
    "ComponentRequest",
    "CondBranch",
    "CondTree",
    "ConditionalDescriptor",
    "Dependency",
    "FinalizedDescriptor",
    "FlagAssignment",
    "PackageFlag",
    "make_compiler_info",
    "parse_flag_assignment",
    "finalize",
    "check_flags",
    "parse_dependency",
    "parse_manifest",
]
