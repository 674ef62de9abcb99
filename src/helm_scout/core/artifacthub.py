"""ArtifactHub package search, package detail and cached-listing clients."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from helm_scout.core.errors import MalformedResponseError, TransportError
from helm_scout.core.fetcher import CatalogSource
from helm_scout.core.http_client import CatalogHttpClient, decode_json
from helm_scout.models import SourceKind
from helm_scout.models.catalog import CatalogEntry

logger = logging.getLogger(__name__)

PAGE_LIMIT = 60
MAX_PAGES = 50
HELM_KIND = "0"
SEARCH_PATH = "/api/v1/packages/search"
DETAIL_PATH = "/api/v1/packages/helm/{repo}/{name}"
CACHED_LISTING_PATH = "/api/v1/nova"


@dataclass(frozen=True)
class PackageRepo:
    """A (package, repository) pair returned by a search."""

    package_name: str
    repo_name: str


@dataclass
class SearchPage:
    packages: list[dict]
    total_count: int | None


class ArtifactHubClient:
    """Unauthenticated ArtifactHub API client."""

    def __init__(self, client: CatalogHttpClient, api_root: str, max_workers: int = 8) -> None:
        self.client = client
        self.api_root = api_root.rstrip("/")
        self.max_workers = max_workers

    def search(self, term: str, offset: int = 0) -> SearchPage:
        """Fetch one page of helm packages matching *term*."""
        resp = self.client.get(
            self.api_root + SEARCH_PATH,
            params={
                "ts_query_web": term,
                "kind": HELM_KIND,
                "limit": str(PAGE_LIMIT),
                "offset": str(offset),
                "sort": "stars",
            },
        )
        body = decode_json(resp.text, resp.url)
        if not isinstance(body, dict):
            raise MalformedResponseError(f"unexpected search response for {term!r}", url=resp.url)
        packages = body.get("packages") or []

        total_count = None
        header = resp.headers.get("Pagination-Total-Count", "")
        if header:
            try:
                total_count = int(header)
            except ValueError as e:
                raise MalformedResponseError(
                    f"bad Pagination-Total-Count {header!r}", url=resp.url,
                ) from e
            if total_count < 0:
                raise MalformedResponseError(
                    f"bad Pagination-Total-Count {header!r}", url=resp.url,
                )
        return SearchPage(packages=packages, total_count=total_count)

    def search_packages(self, term: str) -> list[dict]:
        """Return every search result for *term*, following pagination.

        Pages after the first are fetched concurrently and written into a
        pre-sized list at their absolute offsets.
        """
        first = self.search(term, 0)
        if first.total_count is None:
            logger.debug("No Pagination-Total-Count header searching for %r, using first page", term)
            return first.packages
        total = first.total_count
        logger.debug("found %d packages matching %r", total, term)
        if total > PAGE_LIMIT * MAX_PAGES:
            logger.warning(
                "%d packages match %r, only the first %d are considered",
                total, term, PAGE_LIMIT * MAX_PAGES,
            )
            total = PAGE_LIMIT * MAX_PAGES

        results: list[dict | None] = [None] * total
        for i, pkg in enumerate(first.packages[:total]):
            results[i] = pkg

        offsets = list(range(PAGE_LIMIT, total, PAGE_LIMIT))
        if offsets:
            def fetch_page(offset: int) -> None:
                try:
                    page = self.search(term, offset)
                except (TransportError, MalformedResponseError) as e:
                    logger.warning("error searching for %r at offset %d: %s", term, offset, e)
                    return
                for i, pkg in enumerate(page.packages):
                    if offset + i >= total:
                        break
                    results[offset + i] = pkg

            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(offsets))) as executor:
                list(executor.map(fetch_page, offsets))

        return [p for p in results if p is not None]

    def search_package_repos(self, term: str) -> list[PackageRepo]:
        return [
            PackageRepo(
                package_name=p.get("name", ""),
                repo_name=(p.get("repository") or {}).get("name", ""),
            )
            for p in self.search_packages(term)
        ]

    def multi_search(self, terms: Iterable[str]) -> list[PackageRepo]:
        """Search each unique term individually, one worker per term.

        Fails only when every term failed; otherwise failed terms are logged.
        """
        unique = list(dict.fromkeys(t for t in terms if t))
        if not unique:
            return []

        def run(term: str) -> list[PackageRepo] | Exception:
            try:
                return self.search_package_repos(term)
            except (TransportError, MalformedResponseError) as e:
                return e

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(unique))) as executor:
            outcomes = list(executor.map(run, unique))

        found: list[PackageRepo] = []
        failures: list[tuple[str, Exception]] = []
        for term, outcome in zip(unique, outcomes):
            if isinstance(outcome, Exception):
                failures.append((term, outcome))
            else:
                found.extend(outcome)
        for term, err in failures:
            logger.warning("failed to search for packages for term %r: %s", term, err)
        if failures and len(failures) == len(unique):
            raise failures[0][1]
        return list(dict.fromkeys(found))

    def get_package(self, repo: PackageRepo) -> CatalogEntry:
        url = self.api_root + DETAIL_PATH.format(repo=repo.repo_name, name=repo.package_name)
        body = self.client.get_json(url)
        if not isinstance(body, dict):
            raise MalformedResponseError(f"unexpected package document for {repo}", url=url)
        return CatalogEntry.from_artifacthub(body)

    def get_packages(self, repos: list[PackageRepo]) -> list[CatalogEntry]:
        """Fetch package details concurrently, keeping search order."""
        if not repos:
            return []
        results: list[CatalogEntry | None] = [None] * len(repos)

        def fetch(index: int) -> None:
            try:
                results[index] = self.get_package(repos[index])
            except TransportError as e:
                logger.debug(
                    "error getting package %s/%s: %s",
                    repos[index].repo_name, repos[index].package_name, e,
                )
            except MalformedResponseError as e:
                logger.warning(
                    "skipping malformed package %s/%s: %s",
                    repos[index].repo_name, repos[index].package_name, e,
                )

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(repos))) as executor:
            list(executor.map(fetch, range(len(repos))))
        return [entry for entry in results if entry is not None]


class ArtifactHubSource(CatalogSource):
    """Search ArtifactHub for every deployed chart name."""

    kind = SourceKind.REGISTRY

    def __init__(self, chart_names: Iterable[str], api_root: str, max_workers: int = 8) -> None:
        self.chart_names = list(dict.fromkeys(chart_names))
        self.api_root = api_root
        self.max_workers = max_workers

    @property
    def source_id(self) -> str:
        return "artifacthub"

    def fetch(self, client: CatalogHttpClient) -> list[CatalogEntry]:
        hub = ArtifactHubClient(client, self.api_root, self.max_workers)
        repos = hub.multi_search(self.chart_names)
        packages = hub.get_packages(repos)
        logger.info("found %d possible package matches", len(packages))
        return packages


class ArtifactHubCachedSource(CatalogSource):
    """The bulk ArtifactHub listing, or a local copy of it."""

    kind = SourceKind.REGISTRY

    def __init__(self, api_root: str, cache_file: str = "") -> None:
        self.api_root = api_root.rstrip("/")
        self.cache_file = cache_file

    @property
    def source_id(self) -> str:
        return "artifacthub-cached"

    def fetch(self, client: CatalogHttpClient) -> list[CatalogEntry]:
        if self.cache_file:
            path = Path(self.cache_file)
            try:
                listing: Any = json.loads(path.read_text(encoding="utf-8"))
            except OSError as e:
                raise TransportError(f"cannot read cache file {path}: {e}") from e
            except ValueError as e:
                raise MalformedResponseError(f"invalid JSON in cache file {path}: {e}") from e
        else:
            listing = client.get_json(self.api_root + CACHED_LISTING_PATH)
        if not isinstance(listing, list):
            raise MalformedResponseError("cached listing is not a list")
        entries: list[CatalogEntry] = []
        for position, item in enumerate(listing):
            try:
                if not isinstance(item, dict):
                    raise MalformedResponseError(f"record is not an object: {item!r}")
                entries.append(CatalogEntry.from_cached_listing(item))
            except MalformedResponseError as e:
                logger.warning("skipping cached listing record %d: %s", position, e)
        return entries
