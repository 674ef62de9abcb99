"""Semver comparison utilities.

Tags and chart versions seen in the wild are rarely clean semver.  Parsing
never raises: strings that are neither strict nor lenient semver become
opaque versions, which are kept out of any ordering.
"""

from __future__ import annotations

import enum
import functools
import re
from dataclasses import dataclass

from packaging.version import InvalidVersion, Version

_IDENT = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"

_STRICT_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*))*))?"
    rf"(?:\+({_IDENT}))?$"
)

_LOOSE_RE = re.compile(
    r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?"
    rf"(?:-({_IDENT}))?"
    rf"(?:\+({_IDENT}))?$"
)

DEFAULT_PRERELEASE_IGNORE: tuple[str, ...] = (
    "alpha", "beta", "rc", "snapshot", "dev", "prerelease", "pre",
)

# Markers that never appear in a chart release we want to suggest.
NON_RELEASE_MARKERS: tuple[str, ...] = (
    "snapshot", "dev", "alpha", "beta", "rc", "pre",
    "weekly", "daily", "nightly", "#",
)


class Ordering(enum.Enum):
    LESS = -1
    EQUAL = 0
    GREATER = 1
    INCOMPARABLE = None


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class ParsedVersion:
    """A version string parsed as semver, or kept as an opaque token."""

    raw: str
    major: int = 0
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    build: str = ""
    comparable: bool = True

    @classmethod
    def opaque(cls, raw: str) -> ParsedVersion:
        return cls(raw=raw, comparable=False)

    def __str__(self) -> str:
        if not self.comparable:
            return self.raw
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    def precedence_key(self) -> tuple:
        """Sort key implementing semver precedence (build metadata ignored)."""
        if not self.comparable:
            raise TypeError(f"opaque version {self.raw!r} has no ordering")
        if not self.prerelease:
            return (self.major, self.minor, self.patch, 1, ())
        idents = []
        for part in self.prerelease.split("."):
            if part.isdigit():
                idents.append((0, int(part), ""))
            else:
                idents.append((1, 0, part))
        return (self.major, self.minor, self.patch, 0, tuple(idents))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParsedVersion):
            return NotImplemented
        if not (self.comparable and other.comparable):
            return self.raw == other.raw and self.comparable == other.comparable
        return self.precedence_key() == other.precedence_key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ParsedVersion):
            return NotImplemented
        if not (self.comparable and other.comparable):
            return NotImplemented
        return self.precedence_key() < other.precedence_key()

    def __hash__(self) -> int:
        if not self.comparable:
            return hash(("opaque", self.raw))
        return hash(self.precedence_key())


def parse_version(v: str) -> tuple[ParsedVersion, bool]:
    """Parse *v*, returning ``(parsed, is_strict_semver)``.

    Strict semver is tried first, then a lenient form that accepts a
    leading ``v`` and missing minor/patch components.  Anything else is
    returned as an opaque version.
    """
    text = (v or "").strip()
    m = _STRICT_RE.match(text)
    if m:
        return _from_match(text, m), True
    m = _LOOSE_RE.match(text)
    if m:
        return _from_match(text, m), False
    return ParsedVersion.opaque(text), False


def _from_match(raw: str, m: re.Match) -> ParsedVersion:
    major, minor, patch, pre, build = m.groups()
    return ParsedVersion(
        raw=raw,
        major=int(major),
        minor=int(minor or 0),
        patch=int(patch or 0),
        prerelease=pre or "",
        build=build or "",
    )


def compare(a: ParsedVersion, b: ParsedVersion) -> Ordering:
    if not (a.comparable and b.comparable):
        return Ordering.INCOMPARABLE
    ka, kb = a.precedence_key(), b.precedence_key()
    if ka < kb:
        return Ordering.LESS
    if ka > kb:
        return Ordering.GREATER
    return Ordering.EQUAL


def is_prerelease(v: ParsedVersion) -> bool:
    return v.comparable and bool(v.prerelease)


def has_prerelease_marker(prerelease: str, tokens: tuple[str, ...] | list[str]) -> bool:
    """True if the prerelease label starts with one of *tokens*."""
    if not prerelease:
        return False
    return any(prerelease.startswith(token) for token in tokens if token)


def is_disallowed_prerelease(
    candidate: ParsedVersion,
    current: ParsedVersion,
    tokens: tuple[str, ...] | list[str] = DEFAULT_PRERELEASE_IGNORE,
) -> bool:
    """Return True if *candidate* must not be suggested as an upgrade.

    Labels such as ``alpine`` or ``debian-1`` are flavours and pass through.
    Common prerelease channels (alpha, rc, ...) are only allowed when the
    current version sits on the very same label.
    """
    if candidate.prerelease == current.prerelease:
        return False
    return has_prerelease_marker(candidate.prerelease, tokens)


def is_valid_release(version: str, markers: tuple[str, ...] = NON_RELEASE_MARKERS) -> bool:
    """Reject chart-index versions carrying a non-release marker."""
    lowered = version.lower()
    return not any(marker in lowered for marker in markers)


def _parse_pep440(v: str) -> Version | None:
    try:
        return Version(v)
    except InvalidVersion:
        # Try stripping leading 'v'
        if v.startswith("v"):
            try:
                return Version(v[1:])
            except InvalidVersion:
                pass
    return None


def compare_versions(a: str, b: str) -> Ordering:
    """Compare two raw version strings.

    Semver precedence is used whenever both sides parse; otherwise PEP 440
    ordering is attempted (covers four-part numeric versions).
    """
    pa, _ = parse_version(a)
    pb, _ = parse_version(b)
    result = compare(pa, pb)
    if result is not Ordering.INCOMPARABLE:
        return result
    va, vb = _parse_pep440(a), _parse_pep440(b)
    if va is None or vb is None:
        return Ordering.INCOMPARABLE
    if va < vb:
        return Ordering.LESS
    if va > vb:
        return Ordering.GREATER
    return Ordering.EQUAL


def is_newer(current: str, candidate: str) -> bool:
    """Return True if candidate is newer than current."""
    return compare_versions(current, candidate) is Ordering.LESS


def classify_update(current: str, latest: str) -> str:
    """Classify the update type between two version strings.

    Returns: "major", "minor", "patch", "up-to-date", or "unknown".
    """
    if not latest:
        return "unknown"
    ordering = compare_versions(current, latest)
    if ordering is Ordering.INCOMPARABLE:
        return "unknown"
    if ordering is not Ordering.LESS:
        return "up-to-date"
    cur, _ = parse_version(current)
    lat, _ = parse_version(latest)
    if not (cur.comparable and lat.comparable):
        return "unknown"
    if lat.major > cur.major:
        return "major"
    if lat.minor > cur.minor:
        return "minor"
    return "patch"
