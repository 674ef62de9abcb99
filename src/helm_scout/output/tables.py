"""Rich table builders for audit reports."""

from __future__ import annotations

from rich.table import Table

from helm_scout.models.report import (
    ContainerReport,
    ErroredImage,
    HelmReport,
    ImageReport,
    ReportEntry,
)
from helm_scout.output.themes import styled_bool, styled_confidence, styled_update
from helm_scout.utils.version_compare import classify_update


def visible_entries(report: HelmReport, show_old: bool = False) -> list[ReportEntry]:
    """Entries to render.

    Charts without a known latest version are hidden unless the report was
    built with ``include_all``; ``show_old`` keeps only outdated charts.
    """
    entries = report.entries
    if not report.include_all:
        entries = [e for e in entries if e.latest.version]
    if show_old:
        entries = [e for e in entries if e.is_outdated]
    return entries


def visible_images(
    report: ContainerReport, show_old: bool = False, show_non_semver: bool = False,
) -> list[ImageReport]:
    images = report.images
    if not show_non_semver:
        images = [i for i in images if i.strict_semver]
    if show_old:
        images = [i for i in images if i.is_outdated]
    return images


def helm_report_table(report: HelmReport, wide: bool = False, show_old: bool = False) -> Table:
    table = Table(title="Helm Releases", expand=True)
    table.add_column("Release", style="bold white", no_wrap=True)
    table.add_column("Chart", style="magenta", no_wrap=True)
    table.add_column("Namespace", style="blue", no_wrap=True)
    if wide:
        table.add_column("Installed App", style="cyan")
    table.add_column("Installed", style="dim")
    table.add_column("Latest", style="bold")
    if wide:
        table.add_column("Latest App", style="cyan")
    table.add_column("Update", no_wrap=True)
    table.add_column("Old", no_wrap=True)
    table.add_column("Deprecated", no_wrap=True)
    if wide:
        table.add_column("Source", style="dim", no_wrap=True)
        table.add_column("Repository", style="dim", max_width=40)
        table.add_column("Confidence", no_wrap=True)

    for e in visible_entries(report, show_old):
        row = [e.release_name, e.chart_name, e.namespace]
        if wide:
            row.append(e.installed.app_version)
        row += [e.installed.version, e.latest.version or "-"]
        if wide:
            row.append(e.latest.app_version)
        row += [
            styled_update(classify_update(e.installed.version, e.latest.version)),
            styled_bool(e.is_outdated),
            styled_bool(e.deprecated),
        ]
        if wide:
            source = e.source_kind.value + (" (overridden)" if e.overridden else "")
            row += [source, e.repository or "-", styled_confidence(e.confidence)]
        table.add_row(*row)
    return table


def errors_table(errors: dict[str, str]) -> Table:
    table = Table(title="Errors", expand=True)
    table.add_column("Source", style="red", no_wrap=True)
    table.add_column("Error")
    for source, message in errors.items():
        table.add_row(source, message)
    return table


def container_report_table(
    report: ContainerReport,
    wide: bool = False,
    show_old: bool = False,
    show_non_semver: bool = False,
) -> Table:
    table = Table(title="Container Images", expand=True)
    table.add_column("Container Name", style="magenta", no_wrap=True)
    table.add_column("Current Version", style="dim")
    table.add_column("Old", no_wrap=True)
    table.add_column("Latest", style="bold")
    table.add_column("Latest Minor")
    table.add_column("Latest Patch")
    if wide:
        table.add_column("Strict SemVer", no_wrap=True)
        table.add_column("Workloads", style="dim")

    for img in visible_images(report, show_old, show_non_semver):
        row = [
            img.name,
            img.current_version,
            styled_bool(img.is_outdated),
            img.latest_version,
            img.latest_minor_version,
            img.latest_patch_version,
        ]
        if wide:
            row.append(str(img.strict_semver).lower())
            row.append("\n".join(
                f"{w.namespace}/{w.kind}/{w.name} ({w.container})" for w in img.workloads
            ))
        table.add_row(*row)
    return table


def errored_images_table(errored: list[ErroredImage]) -> Table:
    table = Table(title="Errored Images", expand=True)
    table.add_column("Image", style="red", no_wrap=True)
    table.add_column("Error")
    for item in errored:
        table.add_row(item.image, item.error)
    return table
