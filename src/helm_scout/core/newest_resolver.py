"""Pick newest / newest-minor / newest-patch upgrades from a tag list."""

from __future__ import annotations

import logging
from typing import Iterable

from helm_scout.models.report import Tag, VersionSummary
from helm_scout.utils.version_compare import (
    DEFAULT_PRERELEASE_IGNORE,
    ParsedVersion,
    is_disallowed_prerelease,
    parse_version,
)

logger = logging.getLogger(__name__)

# Candidates further than this many majors ahead belong to another lineage.
MAX_MAJOR_JUMP = 10


def parse_tags(values: Iterable[str], prefix: str = "") -> tuple[list[Tag], list[str]]:
    """Split *values* into parseable tags and the non-semver remainder.

    *prefix* is stripped from each value that carries it before parsing.
    """
    tags: list[Tag] = []
    non_semver: list[str] = []
    for value in values:
        stripped = value[len(prefix):] if prefix and value.startswith(prefix) else value
        version, _ = parse_version(stripped)
        if not version.comparable:
            non_semver.append(value)
            continue
        tags.append(Tag(version=version, value=stripped))
    return tags, non_semver


def resolve(
    current: ParsedVersion,
    all_versions: Iterable[str],
    ignore_tokens: tuple[str, ...] | list[str] = DEFAULT_PRERELEASE_IGNORE,
    prefix: str = "",
) -> VersionSummary:
    """Summarise the upgrades available from *current* among *all_versions*.

    An opaque *current* yields an empty summary; the non-semver bucket is
    still filled for diagnostics.
    """
    tags, non_semver = parse_tags(all_versions, prefix)
    summary = VersionSummary(non_semver=non_semver)
    if not current.comparable:
        logger.debug("current version %r is not semver, skipping resolution", current.raw)
        return summary
    summary.current = Tag(version=current, value=current.raw)

    candidates: list[Tag] = []
    for tag in tags:
        v = tag.version
        if not v > current:
            continue
        if is_disallowed_prerelease(v, current, ignore_tokens):
            continue
        if v.major > current.major + MAX_MAJOR_JUMP:
            logger.debug("skipping %s, too far ahead of %s", tag.value, current)
            continue
        candidates.append(tag)

    # Stable sort keeps the first-listed tag among equal precedences.
    candidates.sort(key=lambda t: t.version.precedence_key(), reverse=True)

    for tag in candidates:
        v = tag.version
        if summary.newest is None:
            summary.newest = tag
        if summary.newest_minor is None and current.major > 0 and v.major == current.major:
            summary.newest_minor = tag
        if summary.newest_patch is None and v.major == current.major and v.minor == current.minor:
            summary.newest_patch = tag
    return summary
