"""hscout find - Report outdated Helm charts and container images."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from kubernetes.client import ApiException
from kubernetes.config import ConfigException
from rich.console import Console

from helm_scout.cli.log import setup_logging
from helm_scout.cli.options import (
    ConfigOption,
    ContextOption,
    NamespaceOption,
    OutputFormat,
    OutputOption,
    VerboseOption,
)
from helm_scout.config.settings import Settings, parse_desired_versions
from helm_scout.core.auditor import ContainerAuditor, HelmAuditor
from helm_scout.core.errors import HelmScoutError
from helm_scout.core.http_client import CatalogHttpClient
from helm_scout.core.image_collector import ImageCollector
from helm_scout.core.k8s_client import K8sClient
from helm_scout.core.release_store import ReleaseStore
from helm_scout.models.report import ContainerReport, HelmReport
from helm_scout.output.formatters import (
    output_container_report,
    output_helm_report,
    write_report_file,
)

app = typer.Typer()
console = Console(stderr=True)


def load_settings(
    config: Path | None,
    urls: list[str] | None,
    desired: list[str] | None,
    poll_artifacthub: bool | None,
) -> Settings:
    base = Settings.from_file(config) if config else Settings()
    return base.with_overrides(
        repo_urls=list(urls) if urls else None,
        desired_versions=parse_desired_versions(desired) if desired else None,
        poll_artifacthub=poll_artifacthub,
    )


@app.callback(invoke_without_command=True)
def find(
    helm: bool = typer.Option(False, "--helm", help="Audit Helm releases (default)"),
    containers: bool = typer.Option(False, "--containers", help="Audit container images"),
    url: Optional[list[str]] = typer.Option(
        None, "--url", "-u", help="Custom chart repository URL (repeatable)",
    ),
    desired_version: Optional[list[str]] = typer.Option(
        None, "--desired-version", help="Override the latest version: name=version (repeatable)",
    ),
    poll_artifacthub: Optional[bool] = typer.Option(
        None, "--poll-artifacthub/--no-poll-artifacthub", help="Search ArtifactHub for charts",
    ),
    config: Optional[Path] = ConfigOption,
    namespace: Optional[str] = NamespaceOption,
    context: Optional[str] = ContextOption,
    output: OutputFormat = OutputOption,
    output_file: Optional[Path] = typer.Option(
        None, "--output-file", help="Also write the report to a .json or .csv file",
    ),
    wide: bool = typer.Option(False, "--wide", help="Show more columns"),
    show_old: bool = typer.Option(False, "--show-old", help="Only show outdated items"),
    include_all: bool = typer.Option(
        False, "--include-all", help="Show charts even when no latest version was found",
    ),
    show_non_semver: bool = typer.Option(
        False, "--show-non-semver", help="Show images whose tag is not strict semver",
    ),
    show_errored: bool = typer.Option(
        False, "--show-errored-containers", help="Show images whose tags could not be listed",
    ),
    verbose: int = VerboseOption,
) -> None:
    """Find outdated or deprecated Helm charts and container images."""
    setup_logging(verbose)
    if not helm and not containers:
        helm = True

    helm_report: HelmReport | None = None
    container_report: ContainerReport | None = None
    try:
        settings = load_settings(config, url, desired_version, poll_artifacthub)
        settings.validate()
        k8s = K8sClient(context=context, settings=settings)
        with CatalogHttpClient.from_settings(settings) as client:
            if helm:
                with console.status("[bold cyan]Checking Helm releases…"):
                    artifacts = ReleaseStore(k8s).observed_artifacts(namespace=namespace)
                    helm_report = HelmAuditor(settings, client).audit(
                        artifacts, include_all=include_all,
                    )
            if containers:
                with console.status("[bold cyan]Checking container images…"):
                    images = ImageCollector(k8s).collect(namespace=namespace)
                    container_report = ContainerAuditor(settings, client).audit(images)
        if output_file:
            write_report_file(output_file, helm_report, container_report, show_old=show_old)
    except (HelmScoutError, ConfigException) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    except ApiException as e:
        console.print(f"[red]Kubernetes API error:[/red] {e.status} {e.reason}")
        raise typer.Exit(code=1)

    if helm_report is not None:
        output_helm_report(helm_report, output.value, wide=wide, show_old=show_old)
    if container_report is not None:
        output_container_report(
            container_report,
            output.value,
            wide=wide,
            show_old=show_old,
            show_non_semver=show_non_semver,
            show_errored=show_errored,
        )
