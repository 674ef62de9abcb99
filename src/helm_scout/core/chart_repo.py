"""Chart repository index handling and custom-repository matching."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from helm_scout.core.errors import MalformedResponseError
from helm_scout.core.fetcher import CatalogSource
from helm_scout.core.http_client import CatalogHttpClient
from helm_scout.models import SourceKind
from helm_scout.models.artifact import ObservedArtifact
from helm_scout.models.chart import ChartMetadata
from helm_scout.utils.version_compare import is_newer, is_valid_release

logger = logging.getLogger(__name__)


@dataclass
class ChartRepository:
    """A chart repository and its parsed ``index.yaml`` entries."""

    url: str
    entries: dict[str, list[ChartMetadata]] = field(default_factory=dict)

    @classmethod
    def from_index(cls, url: str, document: Any) -> ChartRepository:
        if not isinstance(document, dict):
            raise MalformedResponseError(f"index at {url} is not a mapping", url=url)
        raw_entries = document.get("entries") or {}
        if not isinstance(raw_entries, dict):
            raise MalformedResponseError(f"index at {url} has malformed entries", url=url)
        entries = {
            name: [ChartMetadata.from_dict(r) for r in records or [] if isinstance(r, dict)]
            for name, records in raw_entries.items()
        }
        return cls(url=url, entries=entries)

    def newest_version(self, name: str) -> ChartMetadata | None:
        """Newest valid release of chart *name*, if the repo carries it."""
        records = self.entries.get(name)
        if records is None:
            return None
        newest: ChartMetadata | None = None
        for record in records:
            if not is_valid_release(record.version):
                continue
            if newest is None or is_newer(newest.version, record.version):
                newest = record
        return newest

    def newest_chart_version(self, artifact: ObservedArtifact) -> ChartMetadata | None:
        """Newest valid release, but only if this repo published *artifact*.

        The repository must hold the installed version, and that record must
        agree with the installed chart on home, description, sources and
        maintainers.
        """
        records = self.entries.get(artifact.name)
        if not records:
            return None
        published_here = False
        newest: ChartMetadata | None = None
        for record in records:
            if not is_valid_release(record.version):
                continue
            if record.version == artifact.current_version:
                published_here = charts_similar(artifact, record)
            if newest is None or is_newer(newest.version, record.version):
                newest = record
        return newest if published_here else None


def charts_similar(artifact: ObservedArtifact, record: ChartMetadata) -> bool:
    if artifact.home_url != record.home:
        return False
    if artifact.description != record.description:
        return False
    if any(source not in record.sources for source in artifact.source_urls):
        return False
    published = {(m.email, m.name, m.url) for m in record.maintainers}
    return all((m.email, m.name, m.url) in published for m in artifact.maintainers)


def find_newest_release(
    artifact: ObservedArtifact, repos: list[ChartRepository],
) -> tuple[ChartRepository, ChartMetadata] | None:
    """Newest matching release of *artifact* across *repos*."""
    best: tuple[ChartRepository, ChartMetadata] | None = None
    for repo in repos:
        newest = repo.newest_chart_version(artifact)
        if newest is None:
            continue
        if best is None or is_newer(best[1].version, newest.version):
            best = (repo, newest)
    return best


class ChartRepoSource(CatalogSource):
    """A classic Helm repository serving ``index.yaml``."""

    kind = SourceKind.REPO_INDEX

    def __init__(self, url: str) -> None:
        self.url = url.rstrip("/")

    @property
    def source_id(self) -> str:
        return self.url

    def fetch(self, client: CatalogHttpClient) -> ChartRepository:
        document = client.get_yaml(f"{self.url}/index.yaml")
        repo = ChartRepository.from_index(self.url, document)
        logger.debug("Loaded %d charts from %s", len(repo.entries), self.url)
        return repo


def load_hub_repo_urls(client: CatalogHttpClient, config_url: str) -> list[str]:
    """Return the repository URLs listed in a Helm Hub sync config."""
    document = client.get_yaml(config_url)
    if not isinstance(document, dict):
        raise MalformedResponseError("hub sync config is not a mapping", url=config_url)
    repos = (document.get("sync") or {}).get("repos") or []
    return [r["url"].rstrip("/") for r in repos if isinstance(r, dict) and r.get("url")]
