"""Catalog entry models built from ArtifactHub and chart repository data."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from helm_scout.core.errors import MalformedResponseError
from helm_scout.models.chart import Maintainer


def _mappings(value: Any, what: str) -> list[dict]:
    """Return *value* as a list of dicts, rejecting any other shape."""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise MalformedResponseError(f"{what} must be a list of objects, got {value!r}")
    return value


def _mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedResponseError(f"{what} must be an object, got {value!r}")
    return value


def _stars(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Link:
    name: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> Link:
        return cls(name=d.get("name") or "", url=d.get("url") or "")


@dataclass(frozen=True)
class CatalogRepository:
    name: str = ""
    url: str = ""
    official: bool = False
    verified_publisher: bool = False


@dataclass(frozen=True)
class AvailableVersion:
    version: str
    prerelease: bool = False
    deprecated: bool = False


@dataclass
class CatalogEntry:
    """A candidate catalog match for an observed chart."""

    name: str
    repository: CatalogRepository = field(default_factory=CatalogRepository)
    home_url: str = ""
    description: str = ""
    links: list[Link] = field(default_factory=list)
    maintainers: list[Maintainer] = field(default_factory=list)
    available_versions: list[AvailableVersion] = field(default_factory=list)
    latest_version: str = ""
    app_version: str = ""
    popularity: int | None = None
    official: bool = False
    deprecated: bool = False

    @property
    def key(self) -> str:
        return f"{self.repository.name}/{self.name}"

    @property
    def is_official(self) -> bool:
        return self.official or self.repository.official

    def has_version(self, version: str) -> bool:
        return any(v.version == version for v in self.available_versions)

    @classmethod
    def from_artifacthub(cls, d: dict) -> CatalogEntry:
        """Build from an ArtifactHub ``packages/helm/{repo}/{name}`` document."""
        repo = _mapping(d.get("repository"), "repository")
        return cls(
            name=d.get("name", ""),
            repository=CatalogRepository(
                name=repo.get("name", ""),
                url=repo.get("url", ""),
                official=bool(repo.get("official", False)),
                verified_publisher=bool(repo.get("verified_publisher", False)),
            ),
            home_url=d.get("home_url") or "",
            description=d.get("description") or "",
            links=[Link.from_dict(link) for link in _mappings(d.get("links"), "links")],
            maintainers=[Maintainer.from_dict(m) for m in _mappings(d.get("maintainers"), "maintainers")],
            available_versions=[
                AvailableVersion(
                    version=v.get("version", ""),
                    prerelease=bool(v.get("prerelease", False)),
                )
                for v in _mappings(d.get("available_versions"), "available_versions")
            ],
            latest_version=d.get("version", ""),
            app_version=d.get("app_version") or "",
            popularity=_stars(d.get("stars")),
            official=bool(d.get("official", False)),
            deprecated=bool(d.get("deprecated", False)),
        )

    @classmethod
    def from_cached_listing(cls, d: dict) -> CatalogEntry:
        """Build from one record of the bulk cached listing.

        The listing carries the app version and deprecation flag per chart
        version; the latest version's values describe the entry.
        """
        repo = _mapping(d.get("repository"), "repository")
        latest = d.get("latest_version", "")
        versions = _mappings(d.get("versions"), "versions")
        app_version = ""
        deprecated = bool(d.get("deprecated", False))
        for v in versions:
            if v.get("pkg") == latest:
                app_version = v.get("app") or ""
                deprecated = bool(v.get("deprecated", False))
        return cls(
            name=d.get("name", ""),
            repository=CatalogRepository(
                name=repo.get("name", ""),
                url=repo.get("url", ""),
                official=bool(repo.get("official", False)),
                verified_publisher=bool(repo.get("verified", False)),
            ),
            home_url=d.get("home") or "",
            description=d.get("description") or "",
            links=[Link.from_dict(link) for link in _mappings(d.get("links"), "links")],
            maintainers=[Maintainer.from_dict(m) for m in _mappings(d.get("maintainers"), "maintainers")],
            available_versions=[
                AvailableVersion(
                    version=v.get("pkg", ""),
                    deprecated=bool(v.get("deprecated", False)),
                )
                for v in versions
            ],
            latest_version=latest,
            app_version=app_version,
            official=bool(d.get("official", False)),
            deprecated=deprecated,
        )
