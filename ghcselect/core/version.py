"""
Package and compiler version numbers.

Versions follow the Haskell package versioning scheme: a non-empty sequence
of non-negative integers compared lexicographically, where a shorter prefix
sorts first (``4.14 < 4.14.0 < 4.14.0.0``).

Example:
    >>> v1 = parse_version("8.10.2")
    >>> v2 = parse_version("8.8.4")
    >>> v1 > v2
    True
"""

import re
from dataclasses import dataclass
from typing import Tuple

from ghcselect.core.exceptions import InvalidVersionError


@dataclass(frozen=True, order=True)
class Version:
    """
    A version number such as ``8.10.2`` or ``4.14.1.0``.

    Attributes:
        components: Numeric components, most significant first
    """

    components: Tuple[int, ...]

    def __post_init__(self):
        """Validate components after initialization."""
        if not self.components:
            raise InvalidVersionError("Version must have at least one component")
        if any(c < 0 for c in self.components):
            raise InvalidVersionError(
                f"Version components must be non-negative: {self.components}"
            )

    @classmethod
    def of(cls, *components: int) -> "Version":
        """Build a version from its components, e.g. ``Version.of(8, 10, 2)``."""
        return cls(tuple(components))

    def successor(self) -> "Version":
        """
        Get the smallest version strictly greater than this one.

        Appending a zero component yields the immediate successor under
        lexicographic ordering: nothing lies between ``4.14`` and ``4.14.0``.
        """
        return Version(self.components + (0,))

    def major(self) -> Tuple[int, ...]:
        """Get the major version (first two components, zero padded)."""
        padded = self.components + (0,) * (2 - len(self.components))
        return padded[:2]

    def __str__(self) -> str:
        return ".".join(str(c) for c in self.components)

    def __repr__(self) -> str:
        return f"Version('{self}')"


VERSION_ZERO = Version((0,))
"""The smallest version."""

_VERSION_RE = re.compile(r"^[0-9]+(\.[0-9]+)*$")


def parse_version(text: str) -> Version:
    """
    Parse a dotted version string.

    Args:
        text: Version string (e.g. "8.10.2")

    Returns:
        Parsed Version

    Raises:
        InvalidVersionError: If the string is not a dotted sequence of integers
    """
    text = text.strip()
    if not _VERSION_RE.match(text):
        raise InvalidVersionError(
            f"Invalid version: '{text}'. Expected dotted integers such as 8.10.2"
        )
    return Version(tuple(int(p) for p in text.split(".")))
