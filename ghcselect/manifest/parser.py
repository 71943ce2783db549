"""
YAML package manifest reader.

Reads an hpack-style ``package.yaml`` subset into a ConditionalDescriptor.
Fields that do not affect dependency resolution are ignored.

Example manifest:

    name: mypkg
    version: "0.1.0"
    flags:
      fast:
        default: false
        manual: true
    dependencies:
      - base >= 4.12 && < 5
    library:
      when:
        - condition: flag(fast)
          dependencies: [vector]
    executables:
      mypkg:
        dependencies: [mypkg]
    custom-setup:
      dependencies: [Cabal >= 2.4, base]
"""

import logging
import re
from typing import Any, Dict, List

import yaml

from ghcselect.core.exceptions import (
    InvalidVersionError,
    InvalidVersionRangeError,
    ManifestParseError,
)
from ghcselect.core.version import parse_version
from ghcselect.core.version_range import any_version, parse_version_range
from ghcselect.manifest.conditions import parse_condition
from ghcselect.manifest.descriptor import (
    CondBranch,
    CondTree,
    ConditionalDescriptor,
    Dependency,
    PackageFlag,
)

logger = logging.getLogger(__name__)

_DEPENDENCY_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9_\-]*)\s*(.*)$", re.DOTALL)

# manifest key -> ConditionalDescriptor attribute
_NAMED_SECTIONS = {
    "internal-libraries": "sub_libraries",
    "executables": "executables",
    "foreign-libraries": "foreign_libraries",
    "tests": "test_suites",
    "benchmarks": "benchmarks",
}


def parse_dependency(text: str, where: str = "dependencies") -> Dependency:
    """
    Parse a dependency such as ``"base >= 4.14 && < 4.15"``.

    Raises:
        ManifestParseError: If the name or the version range is malformed
    """
    match = _DEPENDENCY_RE.match(text)
    if not match:
        raise ManifestParseError(f"Invalid dependency in {where}: '{text}'")
    name, range_text = match.groups()
    try:
        version_range = parse_version_range(range_text)
    except (InvalidVersionRangeError, InvalidVersionError) as e:
        raise ManifestParseError(f"Invalid dependency in {where}: {e}") from e
    return Dependency(name, version_range)


def _parse_dependencies(value: Any, where: str) -> List[Dependency]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]

    if isinstance(value, dict):
        dependencies = []
        for name, range_value in value.items():
            if range_value is None:
                dependencies.append(Dependency(str(name), any_version()))
            else:
                dependencies.append(
                    parse_dependency(f"{name} {range_value}", where)
                )
        return dependencies

    if not isinstance(value, list):
        raise ManifestParseError(
            f"Invalid dependencies in {where}: expected a list or mapping"
        )

    dependencies = []
    for item in value:
        if isinstance(item, str):
            dependencies.append(parse_dependency(item, where))
        elif isinstance(item, dict) and "name" in item:
            version_text = item.get("version") or ""
            dependencies.append(parse_dependency(f"{item['name']} {version_text}", where))
        else:
            raise ManifestParseError(f"Invalid dependency in {where}: {item!r}")
    return dependencies


def _parse_when(value: Any, where: str) -> List[CondBranch]:
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]

    branches = []
    for item in items:
        if not isinstance(item, dict) or "condition" not in item:
            raise ManifestParseError(
                f"Invalid 'when' in {where}: each entry needs a 'condition'"
            )
        condition = parse_condition(item["condition"])

        if "then" in item:
            then = _parse_tree(item["then"], f"{where} (then)")
            otherwise = _parse_tree(item.get("else"), f"{where} (else)")
        else:
            body = {k: v for k, v in item.items() if k not in ("condition", "else")}
            then = _parse_tree(body, where)
            otherwise = (
                _parse_tree(item["else"], f"{where} (else)") if "else" in item else None
            )
        branches.append(CondBranch(condition, then, otherwise))
    return branches


def _parse_tree(section: Any, where: str) -> CondTree:
    if section is None:
        return CondTree()
    if not isinstance(section, dict):
        raise ManifestParseError(f"Invalid section {where}: expected a mapping")
    return CondTree(
        dependencies=_parse_dependencies(section.get("dependencies"), where),
        branches=_parse_when(section.get("when"), where),
    )


def _flag_field(spec: dict, name: Any, key: str, default: bool) -> bool:
    value = spec.get(key, default)
    if not isinstance(value, bool):
        raise ManifestParseError(
            f"Invalid flag '{name}': '{key}' must be true or false, not {value!r}"
        )
    return value


def _parse_flags(value: Any) -> List[PackageFlag]:
    if value is None:
        return []
    if not isinstance(value, dict):
        raise ManifestParseError("Invalid 'flags': expected a mapping")

    flags = []
    for name, spec in value.items():
        spec = spec or {}
        if not isinstance(spec, dict):
            raise ManifestParseError(f"Invalid flag '{name}': expected a mapping")
        flags.append(
            PackageFlag(
                name=str(name).lower(),
                default=_flag_field(spec, name, "default", True),
                manual=_flag_field(spec, name, "manual", False),
                description=str(spec.get("description", "")),
            )
        )
    return flags


def _with_common(tree: CondTree, common: CondTree) -> CondTree:
    return CondTree(
        dependencies=common.dependencies + tree.dependencies,
        branches=common.branches + tree.branches,
    )


def check_flags(descriptor: ConditionalDescriptor):
    """
    Make sure every flag used in a condition is declared.

    Raises:
        ManifestParseError: On the first target using an undeclared flag
    """
    for kind, name, undeclared in descriptor.undeclared_flags():
        raise ManifestParseError(
            f"Undeclared flag(s) {', '.join(undeclared)} "
            f"used in {kind.value} '{name}'"
        )


def parse_manifest(data) -> ConditionalDescriptor:
    """
    Parse manifest bytes into a ConditionalDescriptor.

    Args:
        data: Manifest contents (bytes or str)

    Returns:
        Parsed descriptor

    Raises:
        ManifestParseError: If the bytes do not form a valid descriptor
    """
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise ManifestParseError(f"Invalid YAML in manifest: {e}") from e

    if not isinstance(document, dict):
        raise ManifestParseError("Invalid manifest: expected a mapping at top level")

    name = document.get("name")
    if not isinstance(name, str) or not name:
        raise ManifestParseError("Invalid manifest: missing package 'name'")

    version = None
    if document.get("version") is not None:
        if isinstance(document["version"], float):
            # 1.10 would silently become 1.1
            raise ManifestParseError(
                f"Quote the package version {document['version']!r}"
            )
        try:
            version = parse_version(str(document["version"]))
        except InvalidVersionError as e:
            raise ManifestParseError(f"Invalid package version: {e}") from e

    common = _parse_tree(
        {k: document.get(k) for k in ("dependencies", "when")}, "top level"
    )

    descriptor = ConditionalDescriptor(
        name=name,
        version=version,
        flags=_parse_flags(document.get("flags")),
    )

    if "library" in document:
        descriptor.library = _with_common(
            _parse_tree(document["library"], "library"), common
        )

    for key, attribute in _NAMED_SECTIONS.items():
        section = document.get(key)
        if section is None:
            continue
        if not isinstance(section, dict):
            raise ManifestParseError(f"Invalid '{key}': expected a mapping of names")
        components: Dict[str, CondTree] = {}
        for component_name, body in section.items():
            components[str(component_name)] = _with_common(
                _parse_tree(body, f"{key}.{component_name}"), common
            )
        setattr(descriptor, attribute, components)

    if "custom-setup" in document:
        setup = document["custom-setup"] or {}
        if not isinstance(setup, dict):
            raise ManifestParseError("Invalid 'custom-setup': expected a mapping")
        descriptor.setup_dependencies = _parse_dependencies(
            setup.get("dependencies"), "custom-setup"
        )

    check_flags(descriptor)

    logger.debug(
        f"Parsed manifest for {descriptor.name} "
        f"with {sum(1 for _ in descriptor.components())} build targets"
    )
    return descriptor
