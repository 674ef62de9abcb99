"""Shared fixtures and builders."""

from unittest.mock import Mock

import pytest

from helm_scout.models.artifact import ObservedArtifact
from helm_scout.models.catalog import AvailableVersion, CatalogEntry, CatalogRepository, Link
from helm_scout.models.chart import Maintainer


def make_artifact(name="nginx", version="1.0.0", **kwargs) -> ObservedArtifact:
    defaults = dict(
        name=name,
        current_version=version,
        app_version="1.21.0",
        home_url="https://nginx.org",
        description="NGINX web server",
        source_urls=("https://github.com/example/nginx",),
        maintainers=(Maintainer(name="alice", email="alice@example.com"),),
        namespace="web",
        release_name=f"{name}-release",
    )
    defaults.update(kwargs)
    return ObservedArtifact(**defaults)


def make_entry(name="nginx", repo="some-repo", **kwargs) -> CatalogEntry:
    repository = kwargs.pop("repository", CatalogRepository(name=repo))
    versions = kwargs.pop("versions", ())
    defaults = dict(
        name=name,
        repository=repository,
        available_versions=[AvailableVersion(v) for v in versions],
        latest_version="2.0.0",
    )
    defaults.update(kwargs)
    return CatalogEntry(**defaults)


def mock_response(status_code=200, text="", headers=None, url="https://example.test"):
    resp = Mock()
    resp.status_code = status_code
    resp.text = text
    resp.headers = headers or {}
    resp.url = url
    return resp


@pytest.fixture
def artifact():
    return make_artifact()


@pytest.fixture
def similar_entry():
    """An entry that agrees with ``make_artifact()`` on every descriptive signal."""
    return make_entry(
        home_url="https://nginx.org",
        description="NGINX web server",
        links=[Link(name="source", url="https://github.com/example/nginx")],
        maintainers=[Maintainer(name="alice")],
        versions=("1.0.0", "2.0.0"),
    )
