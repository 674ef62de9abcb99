"""Concurrent, failure-isolated retrieval of catalog sources."""

from __future__ import annotations

import abc
import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Sequence

from helm_scout.core.errors import (
    CatalogUnavailableError,
    ConfigurationError,
    FetchTimeoutError,
)
from helm_scout.core.http_client import CatalogHttpClient
from helm_scout.models import SourceKind

logger = logging.getLogger(__name__)


class CatalogSource(abc.ABC):
    """One independently fetchable catalog."""

    kind: SourceKind = SourceKind.REGISTRY

    @property
    @abc.abstractmethod
    def source_id(self) -> str:
        ...

    @abc.abstractmethod
    def fetch(self, client: CatalogHttpClient) -> Any:
        """Retrieve and decode the catalog. Raises on failure."""


@dataclass
class FetchResults:
    data: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, Exception] = field(default_factory=dict)

    @property
    def all_failed(self) -> bool:
        return bool(self.errors) and not self.data

    def raise_if_all_failed(self) -> None:
        if self.all_failed:
            raise CatalogUnavailableError(self.errors)

    def error_messages(self) -> dict[str, str]:
        return {source_id: str(err) for source_id, err in self.errors.items()}


class CatalogFetcher:
    """Fetch every source in its own worker and collect what succeeded.

    A failing source never affects its siblings.  When ``timeout`` expires,
    unfinished workers are abandoned and reported as ``FetchTimeoutError``.
    """

    def __init__(
        self,
        client: CatalogHttpClient,
        max_workers: int = 8,
        timeout: float | None = None,
    ) -> None:
        self.client = client
        self.max_workers = max_workers
        self.timeout = timeout

    def fetch_all(self, sources: Sequence[CatalogSource]) -> FetchResults:
        results = FetchResults()
        if not sources:
            return results

        seen: set[str] = set()
        for source in sources:
            if source.source_id in seen:
                raise ConfigurationError(f"duplicate catalog source {source.source_id!r}")
            seen.add(source.source_id)

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(sources)),
            thread_name_prefix="catalog-fetch",
        )
        futures: list[tuple[CatalogSource, Future]] = []
        try:
            for source in sources:
                logger.debug("Fetching catalog %s", source.source_id)
                futures.append((source, executor.submit(source.fetch, self.client)))
            _, pending = wait([f for _, f in futures], timeout=self.timeout)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        for source, future in futures:
            if future in pending:
                logger.warning("Catalog %s did not finish before the deadline", source.source_id)
                results.errors[source.source_id] = FetchTimeoutError(
                    f"timed out after {self.timeout}s",
                )
                continue
            err = future.exception()
            if err is not None:
                logger.warning("Could not load catalog %s: %s", source.source_id, err)
                results.errors[source.source_id] = err
                continue
            results.data[source.source_id] = future.result()

        logger.info(
            "Fetched %d of %d catalog sources", len(results.data), len(sources),
        )
        return results
