"""
Version range algebra.

A VersionRange is kept in canonical form: a sorted tuple of disjoint,
non-adjacent half-open intervals ``[lower, upper)`` where ``upper`` may be
unbounded. Since versions are discrete (``v.0`` is the immediate successor of
``v``), every bound can be expressed this way:

- ``> v``  is ``>= v.0``
- ``<= v`` is ``< v.0``

An interval is empty iff ``lower >= upper``, which makes satisfiability
decidable and lets structurally equal ranges compare equal with ``==``.

Usage:
    from ghcselect.core.version_range import parse_version_range

    r = parse_version_range(">= 4.14 && < 4.15")
    parse_version("4.14.3") in r   # True
    (r & parse_version_range("^>= 4.15")).is_no_version()   # True
"""

import re
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, List, Optional, Tuple

from ghcselect.core.exceptions import InvalidVersionRangeError
from ghcselect.core.version import VERSION_ZERO, Version, parse_version

Interval = Tuple[Version, Optional[Version]]


def _min_upper(a: Optional[Version], b: Optional[Version]) -> Optional[Version]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _max_upper(a: Optional[Version], b: Optional[Version]) -> Optional[Version]:
    if a is None or b is None:
        return None
    return max(a, b)


def _normalize(intervals: Iterable[Interval]) -> Tuple[Interval, ...]:
    """Drop empty intervals, sort, and merge overlapping or adjacent ones."""
    live = sorted(
        (iv for iv in intervals if iv[1] is None or iv[0] < iv[1]),
        key=lambda iv: iv[0],
    )
    merged: List[Interval] = []
    for lower, upper in live:
        if merged:
            prev_lower, prev_upper = merged[-1]
            if prev_upper is None or lower <= prev_upper:
                merged[-1] = (prev_lower, _max_upper(prev_upper, upper))
                continue
        merged.append((lower, upper))
    return tuple(merged)


@dataclass(frozen=True)
class VersionRange:
    """
    A set of versions described as a union of intervals.

    Build ranges with the module-level constructors (``any_version``,
    ``this_version``, ``orlater_version``...) or ``parse_version_range``.
    """

    intervals: Tuple[Interval, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "intervals", _normalize(self.intervals))

    def intersect(self, other: "VersionRange") -> "VersionRange":
        """Get the range of versions accepted by both ranges."""
        return VersionRange(
            tuple(
                (max(a_lower, b_lower), _min_upper(a_upper, b_upper))
                for a_lower, a_upper in self.intervals
                for b_lower, b_upper in other.intervals
            )
        )

    def union(self, other: "VersionRange") -> "VersionRange":
        """Get the range of versions accepted by either range."""
        return VersionRange(self.intervals + other.intervals)

    def is_no_version(self) -> bool:
        """Check whether no version satisfies this range."""
        return not self.intervals

    def is_any_version(self) -> bool:
        """Check whether every version satisfies this range."""
        return self.intervals == ((VERSION_ZERO, None),)

    def contains(self, version: Version) -> bool:
        """Check whether a version lies within this range."""
        return any(
            lower <= version and (upper is None or version < upper)
            for lower, upper in self.intervals
        )

    def __and__(self, other: "VersionRange") -> "VersionRange":
        return self.intersect(other)

    def __or__(self, other: "VersionRange") -> "VersionRange":
        return self.union(other)

    def __contains__(self, version: Version) -> bool:
        return self.contains(version)

    def __str__(self) -> str:
        if self.is_no_version():
            return "-none"
        if self.is_any_version():
            return "-any"
        return " || ".join(_render_interval(lo, hi) for lo, hi in self.intervals)

    def __repr__(self) -> str:
        return f"VersionRange('{self}')"


def _render_interval(lower: Version, upper: Optional[Version]) -> str:
    if upper is not None and upper == lower.successor():
        return f"=={lower}"
    parts = []
    if lower != VERSION_ZERO:
        parts.append(f">={lower}")
    if upper is not None:
        parts.append(f"<{upper}")
    return " && ".join(parts)


# ============================================================================
# Constructors
# ============================================================================


def any_version() -> VersionRange:
    """The range accepting every version (identity of intersection)."""
    return VersionRange(((VERSION_ZERO, None),))


def no_version() -> VersionRange:
    """The range accepting no version (absorbing element of intersection)."""
    return VersionRange(())


def this_version(version: Version) -> VersionRange:
    """``== v``: accepts exactly ``version``."""
    return VersionRange(((version, version.successor()),))


def later_version(version: Version) -> VersionRange:
    """``> v``"""
    return VersionRange(((version.successor(), None),))


def orlater_version(version: Version) -> VersionRange:
    """``>= v``"""
    return VersionRange(((version, None),))


def earlier_version(version: Version) -> VersionRange:
    """``< v``"""
    return VersionRange(((VERSION_ZERO, version),))


def orearlier_version(version: Version) -> VersionRange:
    """``<= v``"""
    return VersionRange(((VERSION_ZERO, version.successor()),))


def major_bound_version(version: Version) -> VersionRange:
    """
    ``^>= v``: at least ``version``, below the next major version.

    Example:
        >>> str(major_bound_version(parse_version("4.14.1")))
        '>=4.14.1 && <4.15'
    """
    first, second = version.major()
    return VersionRange(((version, Version((first, second + 1))),))


def wildcard_version(version: Version) -> VersionRange:
    """
    ``== v.*``: every version having ``version`` as a prefix.

    Example:
        >>> str(wildcard_version(parse_version("4.14")))
        '>=4.14 && <4.15'
    """
    upper = version.components[:-1] + (version.components[-1] + 1,)
    return VersionRange(((version, Version(upper)),))


# ============================================================================
# Algebra helpers
# ============================================================================


def intersect_version_ranges(a: VersionRange, b: VersionRange) -> VersionRange:
    return a.intersect(b)


def union_version_ranges(a: VersionRange, b: VersionRange) -> VersionRange:
    return a.union(b)


def intersect_all(ranges: Iterable[VersionRange]) -> VersionRange:
    """Fold ranges with intersection, starting from ``any_version()``."""
    return reduce(intersect_version_ranges, ranges, any_version())


def is_no_version(vr: VersionRange) -> bool:
    return vr.is_no_version()


def within_range(version: Version, vr: VersionRange) -> bool:
    return vr.contains(version)


# ============================================================================
# Parsing
# ============================================================================

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<keyword>-any|-none)"
    r"|(?P<op>\^>=|>=|<=|==|>|<)"
    r"|(?P<logic>&&|\|\|)"
    r"|(?P<punct>[(){},])"
    r"|(?P<version>[0-9]+(?:\.[0-9]+)*(?:\.\*)?)"
    r")"
)

_OPERATORS = {
    "==": this_version,
    ">": later_version,
    ">=": orlater_version,
    "<": earlier_version,
    "<=": orearlier_version,
    "^>=": major_bound_version,
}


def _tokenize(text: str) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    text = text.strip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if not match or match.end() == pos:
            raise InvalidVersionRangeError(
                f"Invalid version range '{text}': unexpected input at "
                f"'{text[pos:].strip()}'"
            )
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class _RangeParser:
    """Recursive-descent parser; ``&&`` binds tighter than ``||``."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    def _error(self, message: str) -> InvalidVersionRangeError:
        return InvalidVersionRangeError(
            f"Invalid version range '{self.text.strip()}': {message}"
        )

    def _peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> Tuple[str, str]:
        token = self._peek()
        if token is None:
            raise self._error("unexpected end of input")
        self.pos += 1
        return token

    def _expect(self, value: str):
        kind, text = self._next()
        if text != value:
            raise self._error(f"expected '{value}', found '{text}'")

    def parse(self) -> VersionRange:
        if not self.tokens:
            return any_version()
        result = self._disjunction()
        if self._peek() is not None:
            raise self._error(f"unexpected '{self._peek()[1]}'")
        return result

    def _disjunction(self) -> VersionRange:
        result = self._conjunction()
        while self._peek() == ("logic", "||"):
            self.pos += 1
            result = result | self._conjunction()
        return result

    def _conjunction(self) -> VersionRange:
        result = self._atom()
        while self._peek() == ("logic", "&&"):
            self.pos += 1
            result = result & self._atom()
        return result

    def _atom(self) -> VersionRange:
        kind, text = self._next()
        if kind == "keyword":
            return any_version() if text == "-any" else no_version()
        if text == "(":
            result = self._disjunction()
            self._expect(")")
            return result
        if kind != "op":
            raise self._error(f"expected an operator, found '{text}'")

        if self._peek() == ("punct", "{"):
            return self._version_set(text)

        return self._bound(text, self._version_token())

    def _version_token(self) -> str:
        kind, text = self._next()
        if kind != "version":
            raise self._error(f"expected a version, found '{text}'")
        return text

    def _bound(self, op: str, version_text: str) -> VersionRange:
        if version_text.endswith(".*"):
            if op != "==":
                raise self._error(f"wildcard versions only allowed with '==', not '{op}'")
            return wildcard_version(parse_version(version_text[:-2]))
        return _OPERATORS[op](parse_version(version_text))

    def _version_set(self, op: str) -> VersionRange:
        if op not in ("==", "^>="):
            raise self._error(f"version sets only allowed with '==' or '^>=', not '{op}'")
        self._expect("{")
        result = self._bound(op, self._version_token())
        while self._peek() == ("punct", ","):
            self.pos += 1
            result = result | self._bound(op, self._version_token())
        self._expect("}")
        return result


def parse_version_range(text: str) -> VersionRange:
    """
    Parse a Cabal-style version range expression.

    Supports ``-any``, ``-none``, ``==``, ``>``, ``>=``, ``<``, ``<=``,
    ``^>=``, wildcards (``== 4.*``), version sets (``== {1.0, 1.2}``),
    ``&&``, ``||`` and parentheses. An empty string means any version.

    Args:
        text: Range expression

    Returns:
        Parsed VersionRange

    Raises:
        InvalidVersionRangeError: If the expression is malformed

    Example:
        >>> str(parse_version_range(">= 4.14 && < 4.15"))
        '>=4.14 && <4.15'
    """
    return _RangeParser(text).parse()
