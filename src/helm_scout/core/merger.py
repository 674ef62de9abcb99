"""Fold per-source report entries into one entry per release."""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable

from helm_scout.models import SourceKind
from helm_scout.models.report import DesiredVersion, ReportEntry, VersionInfo
from helm_scout.utils.version_compare import is_newer

logger = logging.getLogger(__name__)


def dedupe(entries: Iterable[ReportEntry]) -> list[ReportEntry]:
    """Keep one entry per (release, chart, namespace).

    A later entry replaces an earlier one with the same key but takes over
    its position in the list.
    """
    merged: list[ReportEntry] = []
    positions: dict[tuple[str, str, str], int] = {}
    for entry in entries:
        idx = positions.get(entry.key)
        if idx is None:
            positions[entry.key] = len(merged)
            merged.append(entry)
        else:
            merged[idx] = entry
    return merged


def apply_overrides(
    entries: list[ReportEntry], overrides: Iterable[DesiredVersion],
) -> list[ReportEntry]:
    """Force the latest version of every entry whose chart has an override."""
    by_name = {o.name: o.version for o in overrides}
    if not by_name:
        return list(entries)
    result = []
    for entry in entries:
        version = by_name.get(entry.chart_name)
        if version is None:
            result.append(entry)
            continue
        logger.debug("overriding latest version of %s with %s", entry.chart_name, version)
        result.append(dataclasses.replace(
            entry,
            latest=VersionInfo(version=version, app_version=""),
            overridden=True,
            source_kind=SourceKind.OVERRIDE,
            is_outdated=is_newer(entry.installed.version, version),
        ))
    return result


def merge(
    entries: Iterable[ReportEntry], overrides: Iterable[DesiredVersion] = (),
) -> list[ReportEntry]:
    return apply_overrides(dedupe(entries), overrides)
