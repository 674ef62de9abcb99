"""Tests for the ArtifactHub client and catalog sources."""

import json
import threading
from unittest.mock import Mock

import pytest

from conftest import mock_response
from helm_scout.core.artifacthub import (
    MAX_PAGES,
    PAGE_LIMIT,
    ArtifactHubCachedSource,
    ArtifactHubClient,
    ArtifactHubSource,
    PackageRepo,
)
from helm_scout.core.errors import HTTPStatusError, MalformedResponseError, TransportError
from helm_scout.models.catalog import CatalogEntry

API = "https://hub.test"


def search_handler(total, name="nginx", fail_offsets=()):
    """Answer search requests with ``total`` packages split into pages."""
    def handler(url, params=None, **kwargs):
        offset = int(params["offset"])
        if offset in fail_offsets:
            raise TransportError("page failed", url=url)
        count = max(0, min(PAGE_LIMIT, total - offset))
        packages = [
            {"name": name, "repository": {"name": f"repo{offset + i}"}} for i in range(count)
        ]
        return mock_response(
            text=json.dumps({"packages": packages}),
            headers={"Pagination-Total-Count": str(total)},
            url=url,
        )
    return handler


class TestSearch:
    def test_single_page(self):
        http = Mock()
        http.get.side_effect = search_handler(3)
        hub = ArtifactHubClient(http, API)
        repos = hub.search_package_repos("nginx")
        assert [r.repo_name for r in repos] == ["repo0", "repo1", "repo2"]
        assert http.get.call_count == 1
        params = http.get.call_args.kwargs["params"]
        assert params["kind"] == "0"
        assert params["limit"] == str(PAGE_LIMIT)

    def test_pages_written_by_offset(self):
        handler = search_handler(130)
        last_page_done = threading.Event()
        finished = []

        def out_of_order(url, params=None, **kwargs):
            offset = int(params["offset"])
            if offset == PAGE_LIMIT:
                assert last_page_done.wait(timeout=5)
            resp = handler(url, params=params)
            finished.append(offset)
            if offset == 2 * PAGE_LIMIT:
                last_page_done.set()
            return resp

        http = Mock()
        http.get.side_effect = out_of_order
        hub = ArtifactHubClient(http, API, max_workers=4)
        packages = hub.search_packages("nginx")
        assert finished == [0, 120, 60]
        assert len(packages) == 130
        assert [p["repository"]["name"] for p in packages] == [f"repo{i}" for i in range(130)]

    def test_failed_page_leaves_gap(self):
        http = Mock()
        http.get.side_effect = search_handler(130, fail_offsets=(60,))
        hub = ArtifactHubClient(http, API)
        packages = hub.search_packages("nginx")
        assert len(packages) == 70
        assert packages[60]["repository"]["name"] == "repo120"

    def test_missing_total_uses_first_page(self):
        http = Mock()
        http.get.return_value = mock_response(text=json.dumps({"packages": [{"name": "a"}]}))
        hub = ArtifactHubClient(http, API)
        assert hub.search_packages("a") == [{"name": "a"}]

    def test_bad_total_header(self):
        http = Mock()
        http.get.return_value = mock_response(
            text=json.dumps({"packages": []}), headers={"Pagination-Total-Count": "many"},
        )
        hub = ArtifactHubClient(http, API)
        with pytest.raises(MalformedResponseError):
            hub.search("a")

    def test_huge_total_is_capped(self):
        http = Mock()
        http.get.side_effect = search_handler(10 ** 9)
        hub = ArtifactHubClient(http, API, max_workers=8)
        packages = hub.search_packages("nginx")
        assert len(packages) == PAGE_LIMIT * MAX_PAGES
        assert http.get.call_count == MAX_PAGES

    def test_negative_total_header(self):
        http = Mock()
        http.get.return_value = mock_response(
            text=json.dumps({"packages": []}), headers={"Pagination-Total-Count": "-1"},
        )
        hub = ArtifactHubClient(http, API)
        with pytest.raises(MalformedResponseError):
            hub.search("a")


class TestMultiSearch:
    def test_dedupes_terms_and_results(self):
        http = Mock()
        http.get.side_effect = search_handler(2)
        hub = ArtifactHubClient(http, API)
        repos = hub.multi_search(["nginx", "nginx", ""])
        assert repos == [PackageRepo("nginx", "repo0"), PackageRepo("nginx", "repo1")]
        assert http.get.call_count == 1

    def test_partial_failure_is_tolerated(self):
        ok = search_handler(1, name="good")

        def handler(url, params=None, **kwargs):
            if params["ts_query_web"] == "bad":
                raise HTTPStatusError(500, url=url)
            return ok(url, params=params)

        http = Mock()
        http.get.side_effect = handler
        hub = ArtifactHubClient(http, API)
        assert hub.multi_search(["bad", "good"]) == [PackageRepo("good", "repo0")]

    def test_all_terms_failing_raises(self):
        http = Mock()
        http.get.side_effect = TransportError("down")
        hub = ArtifactHubClient(http, API)
        with pytest.raises(TransportError):
            hub.multi_search(["a", "b"])


class TestPackages:
    def test_get_packages_keeps_order_and_drops_failures(self):
        def handler(url, **kwargs):
            if url.endswith("/broken/nginx"):
                raise HTTPStatusError(404, url=url)
            repo = url.split("/")[-2]
            return {"name": "nginx", "version": "2.0.0", "repository": {"name": repo}}

        http = Mock()
        http.get_json.side_effect = handler
        hub = ArtifactHubClient(http, API)
        entries = hub.get_packages([
            PackageRepo("nginx", "bitnami"),
            PackageRepo("nginx", "broken"),
            PackageRepo("nginx", "other"),
        ])
        assert [e.repository.name for e in entries] == ["bitnami", "other"]
        urls = [c.args[0] for c in http.get_json.call_args_list]
        assert f"{API}/api/v1/packages/helm/bitnami/nginx" in urls

    def test_malformed_package_skipped(self):
        def handler(url, **kwargs):
            repo = url.split("/")[-2]
            doc = {"name": "nginx", "version": "2.0.0", "repository": {"name": repo}}
            if repo == "weird":
                doc["links"] = ["https://x"]
            return doc

        http = Mock()
        http.get_json.side_effect = handler
        hub = ArtifactHubClient(http, API)
        entries = hub.get_packages([PackageRepo("nginx", "bitnami"), PackageRepo("nginx", "weird")])
        assert [e.repository.name for e in entries] == ["bitnami"]

    def test_builders_reject_non_object_items(self):
        with pytest.raises(MalformedResponseError):
            CatalogEntry.from_artifacthub({"name": "nginx", "maintainers": ["me"]})
        with pytest.raises(MalformedResponseError):
            CatalogEntry.from_cached_listing({"name": "nginx", "repository": "bitnami"})

    def test_non_numeric_stars_ignored(self):
        http = Mock()
        http.get_json.return_value = {"name": "nginx", "stars": "lots", "repository": {"name": "a"}}
        (entry,) = ArtifactHubClient(http, API).get_packages([PackageRepo("nginx", "a")])
        assert entry.popularity is None

    def test_source_searches_then_fetches_details(self):
        http = Mock()
        http.get.side_effect = search_handler(1)
        http.get_json.return_value = {
            "name": "nginx",
            "version": "2.0.0",
            "app_version": "1.25",
            "stars": 100,
            "repository": {"name": "repo0", "verified_publisher": True},
            "available_versions": [{"version": "1.0.0"}, {"version": "2.0.0"}],
        }
        entries = ArtifactHubSource(["nginx", "nginx"], API).fetch(http)
        assert len(entries) == 1
        e = entries[0]
        assert e.latest_version == "2.0.0"
        assert e.popularity == 100
        assert e.repository.verified_publisher
        assert e.has_version("1.0.0")


class TestCachedListing:
    LISTING = [{
        "name": "nginx",
        "home": "https://nginx.org",
        "latest_version": "2.0.0",
        "repository": {"name": "bitnami", "verified": True},
        "versions": [
            {"pkg": "1.0.0", "app": "1.20"},
            {"pkg": "2.0.0", "app": "1.25", "deprecated": True},
        ],
    }]

    def test_from_file(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps(self.LISTING))
        http = Mock()
        (entry,) = ArtifactHubCachedSource(API, str(path)).fetch(http)
        http.get_json.assert_not_called()
        assert entry.app_version == "1.25"
        assert entry.deprecated
        assert entry.repository.verified_publisher
        assert entry.has_version("1.0.0")

    def test_from_api(self):
        http = Mock()
        http.get_json.return_value = self.LISTING
        (entry,) = ArtifactHubCachedSource(API).fetch(http)
        http.get_json.assert_called_once_with(f"{API}/api/v1/nova")
        assert entry.home_url == "https://nginx.org"

    def test_listing_must_be_list(self):
        http = Mock()
        http.get_json.return_value = {"oops": True}
        with pytest.raises(MalformedResponseError):
            ArtifactHubCachedSource(API).fetch(http)

    def test_missing_file(self, tmp_path):
        with pytest.raises(TransportError):
            ArtifactHubCachedSource(API, str(tmp_path / "nope.json")).fetch(Mock())

    def test_malformed_records_skipped(self):
        http = Mock()
        http.get_json.return_value = [
            {"name": "broken", "versions": ["1.0.0"]},
            "not a record",
            *self.LISTING,
        ]
        (entry,) = ArtifactHubCachedSource(API).fetch(http)
        assert entry.name == "nginx"
