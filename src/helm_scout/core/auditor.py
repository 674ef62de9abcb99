"""Audit deployed releases and images against their catalogs."""

from __future__ import annotations

import dataclasses
import logging

from helm_scout.config.settings import Settings
from helm_scout.core.artifacthub import ArtifactHubCachedSource, ArtifactHubSource
from helm_scout.core.chart_repo import (
    ChartRepoSource,
    ChartRepository,
    find_newest_release,
    load_hub_repo_urls,
)
from helm_scout.core.errors import ConfigurationError, MalformedResponseError, TransportError
from helm_scout.core.fetcher import CatalogFetcher, CatalogSource
from helm_scout.core.http_client import CatalogHttpClient
from helm_scout.core.matcher import IdentityMatcher
from helm_scout.core.merger import merge
from helm_scout.core.newest_resolver import resolve
from helm_scout.core.registry import ImageReference, ImageTagSource
from helm_scout.models import SourceKind
from helm_scout.models.artifact import ObservedArtifact
from helm_scout.models.catalog import CatalogEntry
from helm_scout.models.report import (
    ContainerReport,
    ErroredImage,
    HelmReport,
    ImageReport,
    ReportEntry,
    Tag,
    VersionInfo,
    Workload,
)
from helm_scout.utils.version_compare import is_newer, parse_version

logger = logging.getLogger(__name__)

HUB_CONFIG_SOURCE = "helm-hub-config"


class HelmAuditor:
    """Find the newest available chart version for every release.

    Entries are produced in source order: the installed-only base entry,
    then the ArtifactHub match, then custom chart repositories.  Merging
    keeps the last one per release, so custom repositories take precedence.
    """

    def __init__(
        self,
        settings: Settings,
        client: CatalogHttpClient,
        matcher: IdentityMatcher | None = None,
    ) -> None:
        self.settings = settings
        self.client = client
        self.matcher = matcher or IdentityMatcher(settings.scoring)

    def audit(self, artifacts: list[ObservedArtifact], include_all: bool = False) -> HelmReport:
        self.settings.validate()
        errors: dict[str, str] = {}

        hub_source = self._artifacthub_source(artifacts)
        repo_sources = [ChartRepoSource(url) for url in self._repo_urls(errors)]
        sources: list[CatalogSource] = ([hub_source] if hub_source else []) + repo_sources

        entries = [ReportEntry.from_observed(a) for a in artifacts]
        if sources:
            fetcher = CatalogFetcher(
                self.client,
                max_workers=self.settings.max_workers,
                timeout=self.settings.fetch_timeout,
            )
            results = fetcher.fetch_all(sources)
            results.raise_if_all_failed()
            errors.update(results.error_messages())

            if hub_source and hub_source.source_id in results.data:
                entries.extend(self._match_catalog(artifacts, results.data[hub_source.source_id]))
            repos = [results.data[s.source_id] for s in repo_sources if s.source_id in results.data]
            if repos:
                entries.extend(self._match_repos(artifacts, repos))

        merged = merge(entries, self.settings.desired_versions)
        return HelmReport(entries=merged, errors=errors, include_all=include_all)

    def _artifacthub_source(self, artifacts: list[ObservedArtifact]) -> CatalogSource | None:
        if not self.settings.poll_artifacthub:
            return None
        if self.settings.use_artifacthub_cache or self.settings.artifacthub_cache_file:
            return ArtifactHubCachedSource(
                self.settings.artifacthub_api_root, self.settings.artifacthub_cache_file,
            )
        if not artifacts:
            return None
        return ArtifactHubSource(
            (a.name for a in artifacts),
            self.settings.artifacthub_api_root,
            max_workers=self.settings.max_workers,
        )

    def _repo_urls(self, errors: dict[str, str]) -> list[str]:
        urls = [u.rstrip("/") for u in self.settings.repo_urls]
        if self.settings.poll_helm_hub:
            try:
                urls.extend(load_hub_repo_urls(self.client, self.settings.helm_hub_config_url))
            except (TransportError, MalformedResponseError) as e:
                logger.warning("could not load helm hub repositories: %s", e)
                errors[HUB_CONFIG_SOURCE] = str(e)
        return list(dict.fromkeys(urls))

    def _match_catalog(
        self, artifacts: list[ObservedArtifact], candidates: list[CatalogEntry],
    ) -> list[ReportEntry]:
        by_name: dict[str, list[CatalogEntry]] = {}
        for c in candidates:
            by_name.setdefault(c.name, []).append(c)

        matched = []
        for artifact in artifacts:
            result = self.matcher.match(artifact, by_name.get(artifact.name, []))
            if not result.matched:
                continue
            matched.append(ReportEntry.from_catalog(
                artifact, result.entry, SourceKind.REGISTRY, result.confidence,
            ))
        return matched

    @staticmethod
    def _match_repos(
        artifacts: list[ObservedArtifact], repos: list[ChartRepository],
    ) -> list[ReportEntry]:
        matched = []
        for artifact in artifacts:
            found = find_newest_release(artifact, repos)
            if found is None:
                continue
            repo, record = found
            logger.debug("found %s %s in %s", record.name, record.version, repo.url)
            base = ReportEntry.from_observed(artifact)
            matched.append(dataclasses.replace(
                base,
                latest=VersionInfo(record.version, record.app_version),
                is_outdated=is_newer(artifact.current_version, record.version),
                deprecated=record.deprecated,
                source_kind=SourceKind.REPO_INDEX,
                repository=repo.url,
            ))
        return matched


class ContainerAuditor:
    """Find newer tags for every deployed container image."""

    def __init__(self, settings: Settings, client: CatalogHttpClient) -> None:
        self.settings = settings
        self.client = client

    def audit(self, images: dict[str, list[Workload]]) -> ContainerReport:
        report = ContainerReport()
        refs: dict[str, ImageReference] = {}
        for image in images:
            try:
                refs[image] = ImageReference.parse(image)
            except ConfigurationError as e:
                logger.debug("cannot parse image %s: %s", image, e)
                report.errored.append(ErroredImage(image=image, error=str(e)))

        if not refs:
            return report

        fetcher = CatalogFetcher(
            self.client,
            max_workers=self.settings.max_workers,
            timeout=self.settings.registry_timeout,
        )
        results = fetcher.fetch_all([ImageTagSource(image, ref) for image, ref in refs.items()])

        for image, ref in refs.items():
            if image in results.errors:
                report.errored.append(ErroredImage(image=image, error=str(results.errors[image])))
                continue
            prefix = ref.tag_prefix
            value = ref.tag[len(prefix):]
            current, strict = parse_version(value)
            summary = resolve(
                current,
                results.data[image],
                ignore_tokens=self.settings.prerelease_ignore,
                prefix=prefix,
            )
            report.images.append(ImageReport(
                name=f"{ref.registry}/{ref.repository}",
                prefix=prefix,
                current=Tag(version=current, value=value),
                summary=summary,
                strict_semver=strict,
                workloads=list(images[image]),
            ))
        logger.info(
            "checked %d images, %d errored", len(report.images), len(report.errored),
        )
        return report
