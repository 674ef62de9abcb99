"""Table / JSON / YAML output dispatch."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console

from helm_scout.core.errors import ConfigurationError
from helm_scout.models.report import ContainerReport, HelmReport, ImageReport, ReportEntry
from helm_scout.output.tables import visible_entries, visible_images

logger = logging.getLogger(__name__)

console = Console()

CSV_FIELDS = [
    "release", "chart", "namespace", "installed", "installed_app_version",
    "latest", "latest_app_version", "outdated", "deprecated", "overridden",
    "source", "repository",
]


def _entry_to_dict(e: ReportEntry) -> dict[str, Any]:
    return {
        "release": e.release_name,
        "chart": e.chart_name,
        "namespace": e.namespace,
        "description": e.description,
        "home": e.home,
        "icon": e.icon,
        "installed": {"version": e.installed.version, "app_version": e.installed.app_version},
        "latest": {"version": e.latest.version, "app_version": e.latest.app_version},
        "outdated": e.is_outdated,
        "deprecated": e.deprecated,
        "overridden": e.overridden,
        "source": e.source_kind.value,
        "repository": e.repository,
        "confidence": e.confidence.value if e.confidence else None,
    }


def helm_report_to_dict(report: HelmReport, show_old: bool = False) -> dict[str, Any]:
    return {
        "helm": [_entry_to_dict(e) for e in visible_entries(report, show_old)],
        "include_all": report.include_all,
        "errors": dict(report.errors),
    }


def _image_to_dict(img: ImageReport) -> dict[str, Any]:
    return {
        "name": img.name,
        "current_version": img.current_version,
        "latest_version": img.latest_version,
        "latest_minor_version": img.latest_minor_version,
        "latest_patch_version": img.latest_patch_version,
        "outdated": img.is_outdated,
        "strict_semver": img.strict_semver,
        "non_semver_tags": list(img.summary.non_semver),
        "workloads": [
            {"name": w.name, "namespace": w.namespace, "kind": w.kind, "container": w.container}
            for w in img.workloads
        ],
    }


def container_report_to_dict(
    report: ContainerReport,
    show_old: bool = False,
    show_non_semver: bool = False,
    show_errored: bool = False,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "container": [
            _image_to_dict(i) for i in visible_images(report, show_old, show_non_semver)
        ],
        "latest_string_found": report.latest_string_found,
    }
    if show_errored:
        data["errored"] = [{"image": e.image, "error": e.error} for e in report.errored]
    return data


def output_helm_report(
    report: HelmReport, fmt: str, wide: bool = False, show_old: bool = False,
) -> None:
    if fmt == "json":
        console.print_json(json.dumps(helm_report_to_dict(report, show_old), indent=2))
    elif fmt == "yaml":
        console.print(yaml.dump(helm_report_to_dict(report, show_old), default_flow_style=False))
    elif fmt == "table":
        from helm_scout.output.tables import errors_table, helm_report_table
        console.print(helm_report_table(report, wide=wide, show_old=show_old))
        if report.errors:
            console.print(errors_table(report.errors))
    else:
        raise ConfigurationError(f"unsupported output format {fmt!r}")


def output_container_report(
    report: ContainerReport,
    fmt: str,
    wide: bool = False,
    show_old: bool = False,
    show_non_semver: bool = False,
    show_errored: bool = False,
) -> None:
    data_args = (report, show_old, show_non_semver, show_errored)
    if fmt == "json":
        console.print_json(json.dumps(container_report_to_dict(*data_args), indent=2))
    elif fmt == "yaml":
        console.print(yaml.dump(container_report_to_dict(*data_args), default_flow_style=False))
    elif fmt == "table":
        from helm_scout.output.tables import container_report_table, errored_images_table
        console.print(container_report_table(
            report, wide=wide, show_old=show_old, show_non_semver=show_non_semver,
        ))
        if show_errored and report.errored:
            console.print(errored_images_table(report.errored))
        if report.latest_string_found:
            console.print(
                "\n[yellow]An image is using the 'latest' tag; "
                "its version cannot be compared.[/yellow]"
            )
    else:
        raise ConfigurationError(f"unsupported output format {fmt!r}")


def write_report_file(
    path: Path,
    helm: HelmReport | None = None,
    containers: ContainerReport | None = None,
    show_old: bool = False,
) -> None:
    """Write the report to *path*; the format follows the file extension."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        data: dict[str, Any] = {}
        if helm is not None:
            data.update(helm_report_to_dict(helm, show_old))
        if containers is not None:
            data.update(container_report_to_dict(containers, show_old, show_errored=True))
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    elif suffix == ".csv":
        if helm is None:
            raise ConfigurationError("CSV output is only available for helm reports")
        with path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.DictWriter(fh, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for e in visible_entries(helm, show_old):
                writer.writerow({
                    "release": e.release_name,
                    "chart": e.chart_name,
                    "namespace": e.namespace,
                    "installed": e.installed.version,
                    "installed_app_version": e.installed.app_version,
                    "latest": e.latest.version,
                    "latest_app_version": e.latest.app_version,
                    "outdated": str(e.is_outdated).lower(),
                    "deprecated": str(e.deprecated).lower(),
                    "overridden": str(e.overridden).lower(),
                    "source": e.source_kind.value,
                    "repository": e.repository,
                })
    else:
        raise ConfigurationError(f"unsupported output file type {path.suffix!r}, use .json or .csv")
    logger.info("wrote report to %s", path)
