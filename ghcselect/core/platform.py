"""
Platform detection for ghcselect.

This module detects the build platform (operating system and CPU architecture)
and names it the way package manifests do in ``os(...)`` and ``arch(...)``
conditions, so conditional sections can be resolved for the current machine.

Usage:
    from ghcselect.core.platform import detect_platform

    platform_info = detect_platform()
    print(platform_info)   # linux-x86_64
"""

import functools
import platform
from dataclasses import dataclass

# Alternative spellings accepted in manifest conditions, mapped to the
# canonical names.
OS_ALIASES = {
    "mingw32": "windows",
    "win32": "windows",
    "cygwin32": "windows",
    "darwin": "osx",
    "macos": "osx",
    "kfreebsdgnu": "freebsd",
    "solaris2": "solaris",
    "linux-android": "android",
}

ARCH_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "x86": "i386",
    "i486": "i386",
    "i586": "i386",
    "i686": "i386",
    "arm64": "aarch64",
    "ppc64le": "ppc64",
    "powerpc": "ppc",
    "powerpc64": "ppc64",
}


def normalize_os(name: str) -> str:
    """Get the canonical operating system name."""
    name = name.lower()
    return OS_ALIASES.get(name, name)


def normalize_arch(name: str) -> str:
    """Get the canonical architecture name."""
    name = name.lower()
    if name.startswith("armv") or name == "arm":
        return "arm"
    return ARCH_ALIASES.get(name, name)


@dataclass(frozen=True)
class PlatformInfo:
    """
    Build platform as seen by manifest conditions.

    Attributes:
        os: Canonical OS name ('linux', 'windows', 'osx', 'freebsd', ...)
        arch: Canonical architecture ('x86_64', 'aarch64', 'i386', 'arm', ...)
    """

    os: str
    arch: str

    def __post_init__(self):
        object.__setattr__(self, "os", normalize_os(self.os))
        object.__setattr__(self, "arch", normalize_arch(self.arch))

    def platform_string(self) -> str:
        """
        Get canonical platform string.

        Example:
            >>> PlatformInfo('linux', 'amd64').platform_string()
            'linux-x86_64'
        """
        return f"{self.os}-{self.arch}"

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    system = platform.system().lower()
    if system == "linux" and "android" in platform.platform().lower():
        return "android"
    # 'Linux', 'Windows', 'Darwin', 'FreeBSD' and friends all normalize
    return system


def _detect_architecture() -> str:
    return platform.machine().lower() or "unknown"


def clear_platform_cache():
    """Clear cached platform detection (useful for testing)."""
    detect_platform.cache_clear()
