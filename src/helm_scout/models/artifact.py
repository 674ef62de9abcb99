"""Artifacts observed in the live environment."""

from __future__ import annotations

from dataclasses import dataclass

from helm_scout.models.chart import Maintainer
from helm_scout.models.release import HelmRelease


@dataclass(frozen=True)
class ObservedArtifact:
    """A deployed chart as seen by the collector.

    ``name`` is the catalog lookup key (the chart name); ``release_name`` and
    ``namespace`` scope the deployment.
    """

    name: str
    current_version: str
    app_version: str = ""
    home_url: str = ""
    description: str = ""
    icon: str = ""
    source_urls: tuple[str, ...] = ()
    maintainers: tuple[Maintainer, ...] = ()
    namespace: str = ""
    release_name: str = ""

    @classmethod
    def from_release(cls, release: HelmRelease) -> ObservedArtifact:
        meta = release.chart
        return cls(
            name=meta.name,
            current_version=meta.version,
            app_version=meta.app_version,
            home_url=meta.home,
            description=meta.description,
            icon=meta.icon,
            source_urls=tuple(meta.sources),
            maintainers=tuple(meta.maintainers),
            namespace=release.namespace,
            release_name=release.name,
        )

    @property
    def maintainer_names(self) -> set[str]:
        return {m.name for m in self.maintainers if m.name}
