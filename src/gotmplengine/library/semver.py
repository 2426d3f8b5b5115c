"""Semantic version parsing and constraint checking.

Constraint grammar (Masterminds/semver flavour, as used by Helm charts):

    constraints := group ("||" group)*
    group       := term (("," | " ") term)*
    term        := [op] version | version " - " version
    op          := "=" | "!=" | ">" | "<" | ">=" | "=>" | "<=" | "=<" | "~" | "~>" | "^"

Partial versions ("1.2") and wildcards ("1.2.x", "*") denote ranges.
A version with a prerelease tag only satisfies terms whose own version
carries a prerelease.

Python 3.13+. Zero external dependencies.
"""

import functools
import re
from dataclasses import dataclass
from typing import Any

from gotmplengine.runtime.function_bridge import FunctionRegistry

from .coerce import to_str

__all__ = ["SemanticVersion", "check_constraint", "register"]

_VERSION = re.compile(
    r"^v?(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?"
    r"(?:-([0-9A-Za-z.-]+))?(?:\+([0-9A-Za-z.-]+))?$"
)
_TERM = re.compile(r"^(!=|>=|=>|<=|=<|~>|[=<>~^])?\s*(\S+)$")
_HYPHEN = re.compile(r"^(\S+)\s+-\s+(\S+)$")
_WILDCARDS = frozenset({"x", "X", "*"})


@dataclass(frozen=True, slots=True)
class SemanticVersion:
    """Parsed version; attributes are reachable from templates (.Major etc.)."""

    major: int
    minor: int
    patch: int
    prerelease: str = ""
    metadata: str = ""
    original: str = ""

    @classmethod
    def parse(cls, text: str) -> "SemanticVersion":
        """Parse a version, filling missing minor/patch with 0.

        Raises:
            ValueError: If the text is not a version
        """
        match = _VERSION.match(text.strip())
        if match is None or any(part in _WILDCARDS for part in match.groups()[:3] if part):
            msg = f"Invalid Semantic Version: {text!r}"
            raise ValueError(msg)
        major, minor, patch, pre, meta = match.groups()
        return cls(int(major), int(minor or 0), int(patch or 0), pre or "", meta or "", text)

    def compare(self, other: "SemanticVersion") -> int:
        """-1, 0 or 1; build metadata is ignored."""
        mine = (self.major, self.minor, self.patch)
        theirs = (other.major, other.minor, other.patch)
        if mine != theirs:
            return -1 if mine < theirs else 1
        return _compare_prerelease(self.prerelease, other.prerelease)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + self.prerelease
        if self.metadata:
            text += "+" + self.metadata
        return text


def _compare_prerelease(left: str, right: str) -> int:
    if left == right:
        return 0
    if not left:
        return 1
    if not right:
        return -1
    for a, b in zip(left.split("."), right.split("."), strict=False):
        if a == b:
            continue
        match a.isdigit(), b.isdigit():
            case True, True:
                return -1 if int(a) < int(b) else 1
            case True, False:
                return -1
            case False, True:
                return 1
            case _:
                return -1 if a < b else 1
    return -1 if len(left.split(".")) < len(right.split(".")) else 1


@dataclass(frozen=True, slots=True)
class _Bound:
    """A constraint operand: version plus how many leading parts were given."""

    version: SemanticVersion
    precision: int

    @classmethod
    def parse(cls, text: str) -> "_Bound":
        match = _VERSION.match(text)
        if match is None:
            msg = f"improper constraint: {text}"
            raise ValueError(msg)
        parts = match.groups()[:3]
        precision = 0
        for part in parts:
            if part is None or part in _WILDCARDS:
                break
            precision += 1
        numbers = [int(p) if p is not None and p.isdigit() and i < precision else 0 for i, p in enumerate(parts)]
        pre, meta = match.group(4) or "", match.group(5) or ""
        return cls(SemanticVersion(*numbers, pre, meta, text), precision)

    def upper(self) -> SemanticVersion:
        """Smallest version above the wildcard range."""
        v = self.version
        match self.precision:
            case 0:
                return SemanticVersion(1 << 62, 0, 0)
            case 1:
                return SemanticVersion(v.major + 1, 0, 0)
            case 2:
                return SemanticVersion(v.major, v.minor + 1, 0)
            case _:
                return SemanticVersion(v.major, v.minor, v.patch + 1)

    def truncated(self, version: SemanticVersion) -> tuple[int, ...]:
        return (version.major, version.minor, version.patch)[: self.precision]

    def own(self) -> tuple[int, ...]:
        return self.truncated(self.version)


def _in_range(version: SemanticVersion, low: SemanticVersion, high: SemanticVersion) -> bool:
    return version.compare(low) >= 0 and version.compare(high) < 0


def _tilde_upper(bound: _Bound) -> SemanticVersion:
    v = bound.version
    if bound.precision <= 1:
        return SemanticVersion(v.major + 1, 0, 0)
    return SemanticVersion(v.major, v.minor + 1, 0)


def _caret_upper(bound: _Bound) -> SemanticVersion:
    v = bound.version
    if v.major > 0 or bound.precision <= 1:
        return SemanticVersion(v.major + 1, 0, 0)
    if v.minor > 0 or bound.precision == 2:
        return SemanticVersion(0, v.minor + 1, 0)
    return SemanticVersion(0, 0, v.patch + 1)


def _satisfies(op: str, bound: _Bound, version: SemanticVersion) -> bool:
    if version.prerelease and not bound.version.prerelease:
        return False
    exact = bound.precision == 3
    match op:
        case "" | "=":
            if exact:
                return version.compare(bound.version) == 0
            return _in_range(version, bound.version, bound.upper())
        case "!=":
            return not _satisfies("=", bound, version)
        case ">":
            if exact:
                return version.compare(bound.version) > 0
            return bound.truncated(version) > bound.own()
        case ">=" | "=>":
            return version.compare(bound.version) >= 0
        case "<":
            return version.compare(bound.version) < 0
        case "<=" | "=<":
            if exact:
                return version.compare(bound.version) <= 0
            return bound.truncated(version) <= bound.own()
        case "~" | "~>":
            return _in_range(version, bound.version, _tilde_upper(bound))
        case "^":
            return _in_range(version, bound.version, _caret_upper(bound))
        case _:
            msg = f"improper constraint operator: {op}"
            raise ValueError(msg)


@functools.lru_cache(maxsize=256)
def _compile(constraint: str) -> tuple[tuple[tuple[str, _Bound, _Bound | None], ...], ...]:
    """Parse a constraint string into OR-groups of AND-terms."""
    groups = []
    for group_text in constraint.split("||"):
        group_text = group_text.strip()
        if not group_text:
            msg = f"improper constraint: {constraint}"
            raise ValueError(msg)
        terms: list[tuple[str, _Bound, _Bound | None]] = []
        for chunk in group_text.split(","):
            chunk = re.sub(r"([=<>~^!]+)\s+", r"\1", chunk.strip())
            hyphen = _HYPHEN.match(chunk)
            if hyphen is not None:
                terms.append(("-", _Bound.parse(hyphen.group(1)), _Bound.parse(hyphen.group(2))))
                continue
            for piece in chunk.split():
                term = _TERM.match(piece)
                if term is None:
                    msg = f"improper constraint: {piece}"
                    raise ValueError(msg)
                terms.append((term.group(1) or "", _Bound.parse(term.group(2)), None))
        groups.append(tuple(terms))
    return tuple(groups)


def check_constraint(constraint: str, version: str) -> bool:
    """True when ``version`` satisfies ``constraint``.

    Example:
        >>> check_constraint(">=1.20.0-0", "v1.28.3"), check_constraint("^1.2", "2.0.0")
        (True, False)

    Raises:
        ValueError: On a malformed constraint or version
    """
    parsed = SemanticVersion.parse(version)
    for group in _compile(constraint):
        if all(
            _satisfies(">=", low, parsed) and _satisfies("<=", high, parsed)
            if op == "-" and high is not None
            else _satisfies(op, low, parsed)
            for op, low, high in group
        ):
            return True
    return False


def semver_compare(constraint: Any, version: Any) -> bool:
    return check_constraint(to_str(constraint), to_str(version))


def semver(version: Any) -> SemanticVersion:
    return SemanticVersion.parse(to_str(version))


def register(registry: FunctionRegistry) -> None:
    """Register semverCompare and semver."""
    registry.register(semver_compare)
    registry.register(semver)
