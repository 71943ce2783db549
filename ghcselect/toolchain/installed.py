"""
Installed GHC detection.

Discovers which GHC versions are already present on the machine by looking
for versioned executables (``ghc-9.2.8``, as installed by ghcup and most
distributions) in the search path, and optionally asking the unversioned
``ghc`` for its version.
"""

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Set

from ghcselect.core.exceptions import InvalidVersionError
from ghcselect.core.version import Version, parse_version

logger = logging.getLogger(__name__)

_VERSIONED_GHC_RE = re.compile(r"^ghc-([0-9]+(?:\.[0-9]+)+)(?:\.exe)?$", re.IGNORECASE)


def default_search_paths() -> List[Path]:
    """
    Get directories searched for GHC executables.

    Returns:
        Entries of PATH followed by ``~/.ghcup/bin``
    """
    paths = [Path(p) for p in os.environ.get("PATH", "").split(os.pathsep) if p]
    ghcup_bin = Path.home() / ".ghcup" / "bin"
    if ghcup_bin not in paths:
        paths.append(ghcup_bin)
    return paths


def _scan_directory(directory: Path) -> Set[Version]:
    found = set()
    try:
        children = list(directory.iterdir())
    except OSError as e:
        logger.debug(f"Cannot list {directory}: {e}")
        return found

    for child in children:
        match = _VERSIONED_GHC_RE.match(child.name)
        if not match or not child.is_file():
            continue
        found.add(parse_version(match.group(1)))
    return found


def probe_ghc_version(executable: str = "ghc", timeout: int = 10) -> Optional[Version]:
    """
    Ask a GHC executable for its version.

    Args:
        executable: Name or path of the executable
        timeout: Seconds to wait for the process

    Returns:
        Reported version, or None if the executable is missing or fails
    """
    path = shutil.which(executable)
    if not path:
        return None

    try:
        result = subprocess.run(
            [path, "--numeric-version"],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Failed to run {path} --numeric-version: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"{path} --numeric-version returned {result.returncode}")
        return None

    try:
        return parse_version(result.stdout.strip())
    except InvalidVersionError:
        logger.debug(f"Unexpected version output from {path}: {result.stdout!r}")
        return None


def find_installed_ghcs(
    search_paths: Optional[Iterable[Path]] = None, probe_default: bool = True
) -> Set[Version]:
    """
    Find installed GHC versions.

    Args:
        search_paths: Directories to scan (default: default_search_paths())
        probe_default: Also run the unversioned ``ghc`` to learn its version

    Returns:
        Set of installed GHC versions
    """
    directories = (
        list(search_paths) if search_paths is not None else default_search_paths()
    )

    installed: Set[Version] = set()
    for directory in directories:
        directory = Path(directory).expanduser()
        if directory.is_dir():
            installed |= _scan_directory(directory)

    if probe_default:
        version = probe_ghc_version()
        if version is not None:
            installed.add(version)

    if installed:
        logger.debug(
            f"Found installed GHC versions: "
            f"{', '.join(str(v) for v in sorted(installed))}"
        )
    return installed
