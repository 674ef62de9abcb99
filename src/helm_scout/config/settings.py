"""Application configuration and defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from helm_scout import __version__
from helm_scout.core.errors import ConfigurationError
from helm_scout.models.report import DesiredVersion
from helm_scout.utils.version_compare import DEFAULT_PRERELEASE_IGNORE

logger = logging.getLogger(__name__)

ARTIFACT_HUB_API_ROOT = "https://artifacthub.io"
HELM_HUB_CONFIG_URL = "https://raw.githubusercontent.com/helm/hub/master/config/repo-values.yaml"


def _default_cache_file() -> str:
    return os.environ.get("ARTIFACT_HUB_CACHE_FILE", "")


def _default_user_agent() -> str:
    return f"helm-scout/{__version__}"


@dataclass(frozen=True)
class ScoringPolicy:
    """Weights used to decide which catalog entry a deployed chart came from."""

    home_url: float = 1.0
    description: float = 1.0
    source_link: float = 1.0
    maintainer: float = 1.0
    verified_publisher: float = 1.0
    official: float = 1.0
    version_present: float = 1.0
    preferred_repository: float = 1.5
    popularity: float = 1.0
    popularity_threshold: int = 50
    preferred_repositories: tuple[str, ...] = (
        "bitnami",
        "fairwinds-stable",
        "ingress-nginx",
        "cert-manager",
    )


@dataclass
class Settings:
    # cluster collection
    storage_driver: str = "secrets"  # "secrets" or "configmaps"
    helm_label_selector: str = "owner=helm"
    secret_type: str = "helm.sh/release.v1"

    # catalogs
    poll_artifacthub: bool = True
    artifacthub_api_root: str = ARTIFACT_HUB_API_ROOT
    use_artifacthub_cache: bool = False
    artifacthub_cache_file: str = field(default_factory=_default_cache_file)
    repo_urls: list[str] = field(default_factory=list)
    poll_helm_hub: bool = False
    helm_hub_config_url: str = HELM_HUB_CONFIG_URL
    desired_versions: list[DesiredVersion] = field(default_factory=list)

    # transport
    http_timeout: float = 30.0
    max_attempts: int = 5
    retry_delay: float = 0.5
    fetch_timeout: float | None = 120.0
    registry_timeout: float = 10.0
    max_workers: int = 8
    user_agent: str = field(default_factory=_default_user_agent)

    # version policy
    prerelease_ignore: tuple[str, ...] = DEFAULT_PRERELEASE_IGNORE
    scoring: ScoringPolicy = field(default_factory=ScoringPolicy)

    def validate(self) -> None:
        if not (self.poll_artifacthub or self.repo_urls or self.poll_helm_hub):
            raise ConfigurationError(
                "poll-artifacthub=false requires at least one chart repository url"
            )
        if self.storage_driver not in ("secrets", "configmaps"):
            raise ConfigurationError(f"unknown storage driver {self.storage_driver!r}")
        if self.max_attempts < 1:
            raise ConfigurationError("max-attempts must be at least 1")
        if self.max_workers < 1:
            raise ConfigurationError("max-workers must be at least 1")

    def with_overrides(self, **changes: Any) -> Settings:
        """Return a copy with non-None *changes* applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_file(cls, path: Path) -> Settings:
        """Load settings from a YAML file using kebab-case keys."""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except OSError as e:
            raise ConfigurationError(f"cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"config file {path} must contain a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for raw_key, value in data.items():
            key = _FILE_KEYS.get(raw_key, raw_key.replace("-", "_"))
            if key not in known:
                logger.debug("Ignoring unknown config key %s", raw_key)
                continue
            kwargs[key] = value

        if "desired_versions" in kwargs:
            kwargs["desired_versions"] = parse_desired_versions(kwargs["desired_versions"])
        if "prerelease_ignore" in kwargs:
            kwargs["prerelease_ignore"] = tuple(kwargs["prerelease_ignore"] or ())
        if "repo_urls" in kwargs:
            urls = kwargs["repo_urls"] or []
            kwargs["repo_urls"] = [urls] if isinstance(urls, str) else list(urls)
        if "scoring" in kwargs:
            kwargs["scoring"] = _scoring_from_dict(kwargs["scoring"] or {})
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

    def to_dict(self) -> dict[str, Any]:
        reverse = {v: k for k, v in _FILE_KEYS.items()}
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "desired_versions":
                value = {d.name: d.version for d in value}
            elif f.name == "scoring":
                value = {
                    sf.name.replace("_", "-"): (
                        list(getattr(value, sf.name))
                        if isinstance(getattr(value, sf.name), tuple)
                        else getattr(value, sf.name)
                    )
                    for sf in fields(value)
                }
            elif isinstance(value, tuple):
                value = list(value)
            out[reverse.get(f.name, f.name.replace("_", "-"))] = value
        return out


# Config-file keys that do not follow the plain kebab-case mapping.
_FILE_KEYS = {
    "url": "repo_urls",
    "desired-versions": "desired_versions",
}


def parse_desired_versions(value: Any) -> list[DesiredVersion]:
    """Accept ``{name: version}``, ``["name=version"]`` or DesiredVersion items."""
    if not value:
        return []
    if isinstance(value, dict):
        return [DesiredVersion(str(k), str(v)) for k, v in value.items()]
    result: list[DesiredVersion] = []
    for item in value:
        if isinstance(item, DesiredVersion):
            result.append(item)
            continue
        name, sep, version = str(item).partition("=")
        if not sep or not name or not version:
            raise ConfigurationError(f"desired version {item!r} must look like name=version")
        result.append(DesiredVersion(name.strip(), version.strip()))
    return result


def _scoring_from_dict(data: dict[str, Any]) -> ScoringPolicy:
    known = {f.name for f in fields(ScoringPolicy)}
    kwargs = {}
    for raw_key, value in data.items():
        key = raw_key.replace("-", "_")
        if key not in known:
            raise ConfigurationError(f"unknown scoring key {raw_key!r}")
        if key == "preferred_repositories":
            value = tuple(value or ())
        kwargs[key] = value
    return ScoringPolicy(**kwargs)


# Defaults consumed by the cluster collectors.
settings = Settings()
