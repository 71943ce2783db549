"""
Condition expressions guarding conditional manifest sections.

Conditions combine ``flag(name)``, ``os(name)``, ``arch(name)`` and
``impl(compiler [range])`` tests with ``!``, ``&&``, ``||`` and parentheses,
and are evaluated against a ConditionEnv (flag values, platform, compiler).

Example:
    >>> cond = parse_condition("flag(fast) && !os(windows)")
    >>> cond.evaluate(env)
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, Mapping, Optional

from ghcselect.core.exceptions import InvalidVersionRangeError, ManifestParseError
from ghcselect.core.platform import PlatformInfo, normalize_arch, normalize_os
from ghcselect.core.version_range import VersionRange, parse_version_range

if TYPE_CHECKING:
    from ghcselect.manifest.descriptor import CompilerInfo


@dataclass(frozen=True)
class ConditionEnv:
    """Everything a condition may test."""

    flags: Mapping[str, bool]
    platform: PlatformInfo
    compiler: "CompilerInfo"


class Condition(ABC):
    """Base class for condition expression nodes."""

    @abstractmethod
    def evaluate(self, env: ConditionEnv) -> bool:
        pass

    def flag_names(self) -> FrozenSet[str]:
        """Names of all flags this condition refers to."""
        return frozenset()


@dataclass(frozen=True)
class Literal(Condition):
    value: bool

    def evaluate(self, env: ConditionEnv) -> bool:
        return self.value

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class FlagTest(Condition):
    name: str

    def evaluate(self, env: ConditionEnv) -> bool:
        return env.flags[self.name]

    def flag_names(self) -> FrozenSet[str]:
        return frozenset([self.name])

    def __str__(self) -> str:
        return f"flag({self.name})"


@dataclass(frozen=True)
class OSTest(Condition):
    name: str

    def evaluate(self, env: ConditionEnv) -> bool:
        return normalize_os(self.name) == env.platform.os

    def __str__(self) -> str:
        return f"os({self.name})"


@dataclass(frozen=True)
class ArchTest(Condition):
    name: str

    def evaluate(self, env: ConditionEnv) -> bool:
        return normalize_arch(self.name) == env.platform.arch

    def __str__(self) -> str:
        return f"arch({self.name})"


@dataclass(frozen=True)
class ImplTest(Condition):
    flavor: str
    version_range: Optional[VersionRange] = None

    def evaluate(self, env: ConditionEnv) -> bool:
        if self.flavor != env.compiler.flavor:
            return False
        if self.version_range is None:
            return True
        return env.compiler.version in self.version_range

    def __str__(self) -> str:
        if self.version_range is None:
            return f"impl({self.flavor})"
        return f"impl({self.flavor} {self.version_range})"


@dataclass(frozen=True)
class Not(Condition):
    operand: Condition

    def evaluate(self, env: ConditionEnv) -> bool:
        return not self.operand.evaluate(env)

    def flag_names(self) -> FrozenSet[str]:
        return self.operand.flag_names()

    def __str__(self) -> str:
        return f"!{self.operand}"


@dataclass(frozen=True)
class And(Condition):
    left: Condition
    right: Condition

    def evaluate(self, env: ConditionEnv) -> bool:
        return self.left.evaluate(env) and self.right.evaluate(env)

    def flag_names(self) -> FrozenSet[str]:
        return self.left.flag_names() | self.right.flag_names()

    def __str__(self) -> str:
        return f"({self.left} && {self.right})"


@dataclass(frozen=True)
class Or(Condition):
    left: Condition
    right: Condition

    def evaluate(self, env: ConditionEnv) -> bool:
        return self.left.evaluate(env) or self.right.evaluate(env)

    def flag_names(self) -> FrozenSet[str]:
        return self.left.flag_names() | self.right.flag_names()

    def __str__(self) -> str:
        return f"({self.left} || {self.right})"


# ============================================================================
# Parsing
# ============================================================================

_IDENT_RE = re.compile(r"[A-Za-z][A-Za-z0-9_\-]*")
_TESTS = ("flag", "os", "arch", "impl")


class _ConditionParser:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def _error(self, message: str) -> ManifestParseError:
        return ManifestParseError(f"Invalid condition '{self.text}': {message}")

    def _skip_ws(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _consume(self, literal: str) -> bool:
        self._skip_ws()
        if self.text.startswith(literal, self.pos):
            self.pos += len(literal)
            return True
        return False

    def parse(self) -> Condition:
        result = self._disjunction()
        self._skip_ws()
        if self.pos != len(self.text):
            raise self._error(f"unexpected '{self.text[self.pos:]}'")
        return result

    def _disjunction(self) -> Condition:
        result = self._conjunction()
        while self._consume("||"):
            result = Or(result, self._conjunction())
        return result

    def _conjunction(self) -> Condition:
        result = self._unary()
        while self._consume("&&"):
            result = And(result, self._unary())
        return result

    def _unary(self) -> Condition:
        if self._consume("!"):
            return Not(self._unary())
        if self._consume("("):
            result = self._disjunction()
            if not self._consume(")"):
                raise self._error("missing ')'")
            return result
        return self._test()

    def _test(self) -> Condition:
        self._skip_ws()
        match = _IDENT_RE.match(self.text, self.pos)
        if not match:
            raise self._error(f"expected a test at '{self.text[self.pos:]}'")
        word = match.group(0)
        self.pos = match.end()

        if word.lower() in ("true", "false"):
            return Literal(word.lower() == "true")
        if word not in _TESTS:
            raise self._error(f"unknown test '{word}'")
        if not self._consume("("):
            raise self._error(f"expected '(' after '{word}'")

        argument = self._argument().strip()
        if not argument:
            raise self._error(f"empty argument to '{word}'")

        if word == "flag":
            return FlagTest(argument.lower())
        if word == "os":
            return OSTest(argument)
        if word == "arch":
            return ArchTest(argument)
        return self._impl(argument)

    def _argument(self) -> str:
        """Read up to the matching ')', allowing nested parentheses."""
        depth = 0
        start = self.pos
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == "(":
                depth += 1
            elif char == ")":
                if depth == 0:
                    argument = self.text[start : self.pos]
                    self.pos += 1
                    return argument
                depth -= 1
            self.pos += 1
        raise self._error("missing ')'")

    def _impl(self, argument: str) -> Condition:
        match = _IDENT_RE.match(argument)
        if not match:
            raise self._error(f"invalid compiler in 'impl({argument})'")
        flavor = match.group(0).lower()
        rest = argument[match.end() :].strip()
        if not rest:
            return ImplTest(flavor)
        try:
            return ImplTest(flavor, parse_version_range(rest))
        except InvalidVersionRangeError as e:
            raise self._error(str(e)) from e


def parse_condition(text) -> Condition:
    """
    Parse a condition expression.

    Args:
        text: Condition string, or a bool for a constant condition

    Returns:
        Parsed Condition

    Raises:
        ManifestParseError: If the expression is malformed
    """
    if isinstance(text, bool):
        return Literal(text)
    if not isinstance(text, str) or not text.strip():
        raise ManifestParseError(f"Invalid condition: {text!r}")
    return _ConditionParser(text).parse()
