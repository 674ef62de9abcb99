"""Match, version summary and report models."""

from __future__ import annotations

from dataclasses import dataclass, field

from helm_scout.models import Confidence, SourceKind
from helm_scout.models.artifact import ObservedArtifact
from helm_scout.models.catalog import CatalogEntry
from helm_scout.utils.version_compare import ParsedVersion, is_newer


@dataclass(frozen=True)
class DesiredVersion:
    """A user-supplied version that overrides whatever the catalogs say."""

    name: str
    version: str


@dataclass(frozen=True)
class CandidateScore:
    key: str
    score: float


@dataclass(frozen=True)
class MatchResult:
    entry: CatalogEntry | None = None
    score: float = 0.0
    confidence: Confidence = Confidence.LOW
    others: tuple[CandidateScore, ...] = ()

    @classmethod
    def no_match(cls) -> MatchResult:
        return cls()

    @property
    def matched(self) -> bool:
        return self.entry is not None


@dataclass(frozen=True)
class Tag:
    version: ParsedVersion
    value: str


@dataclass
class VersionSummary:
    current: Tag | None = None
    newest: Tag | None = None
    newest_minor: Tag | None = None
    newest_patch: Tag | None = None
    non_semver: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class VersionInfo:
    version: str = ""
    app_version: str = ""


@dataclass
class ReportEntry:
    release_name: str
    chart_name: str
    namespace: str = ""
    description: str = ""
    home: str = ""
    icon: str = ""
    installed: VersionInfo = field(default_factory=VersionInfo)
    latest: VersionInfo = field(default_factory=VersionInfo)
    is_outdated: bool = False
    deprecated: bool = False
    overridden: bool = False
    source_kind: SourceKind = SourceKind.UNRESOLVED
    repository: str = ""
    confidence: Confidence | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.release_name, self.chart_name, self.namespace)

    @classmethod
    def from_observed(cls, artifact: ObservedArtifact) -> ReportEntry:
        """Installed-only entry, before any catalog has been consulted."""
        return cls(
            release_name=artifact.release_name,
            chart_name=artifact.name,
            namespace=artifact.namespace,
            description=artifact.description,
            home=artifact.home_url,
            icon=artifact.icon,
            installed=VersionInfo(artifact.current_version, artifact.app_version),
        )

    @classmethod
    def from_catalog(
        cls,
        artifact: ObservedArtifact,
        entry: CatalogEntry,
        source_kind: SourceKind,
        confidence: Confidence | None = None,
    ) -> ReportEntry:
        base = cls.from_observed(artifact)
        base.latest = VersionInfo(entry.latest_version, entry.app_version)
        base.is_outdated = is_newer(artifact.current_version, entry.latest_version)
        base.deprecated = entry.deprecated
        base.source_kind = source_kind
        base.repository = entry.repository.name
        base.confidence = confidence
        return base


@dataclass
class HelmReport:
    entries: list[ReportEntry] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    include_all: bool = False


@dataclass(frozen=True)
class Workload:
    name: str
    namespace: str
    kind: str
    container: str


@dataclass
class ImageReport:
    name: str
    prefix: str
    current: Tag
    summary: VersionSummary
    strict_semver: bool
    workloads: list[Workload] = field(default_factory=list)

    def _display(self, tag: Tag | None) -> str:
        return self.prefix + (tag.value if tag else self.current.value)

    @property
    def current_version(self) -> str:
        return self.prefix + self.current.value

    @property
    def latest_version(self) -> str:
        return self._display(self.summary.newest)

    @property
    def latest_minor_version(self) -> str:
        return self._display(self.summary.newest_minor)

    @property
    def latest_patch_version(self) -> str:
        return self._display(self.summary.newest_patch)

    @property
    def is_outdated(self) -> bool:
        return self.summary.newest is not None


@dataclass(frozen=True)
class ErroredImage:
    image: str
    error: str


@dataclass
class ContainerReport:
    images: list[ImageReport] = field(default_factory=list)
    errored: list[ErroredImage] = field(default_factory=list)

    @property
    def latest_string_found(self) -> bool:
        return any(img.current_version == "latest" for img in self.images)
