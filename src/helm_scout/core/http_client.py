"""Shared HTTP client with bounded retry for catalog sources."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

import requests
import yaml
from requests.adapters import HTTPAdapter

from helm_scout.core.errors import HTTPStatusError, MalformedResponseError, TransportError

if TYPE_CHECKING:
    from helm_scout.config.settings import Settings

logger = logging.getLogger(__name__)

# Prefer the C-accelerated YAML loader when available (~10x faster).
_YamlLoader = getattr(yaml, "CSafeLoader", yaml.SafeLoader)


class CatalogHttpClient:
    """A ``requests.Session`` wrapper safe to share between fetch workers.

    Transport failures, 5xx and 429 responses are retried up to
    ``max_attempts`` times.  Other 4xx responses mean the request itself is
    wrong and fail immediately.
    """

    def __init__(
        self,
        user_agent: str,
        timeout: float = 30.0,
        max_attempts: int = 5,
        retry_delay: float = 0.5,
        pool_size: int = 8,
        session: requests.Session | None = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self._session = session

    @classmethod
    def from_settings(cls, settings: Settings) -> CatalogHttpClient:
        return cls(
            user_agent=settings.user_agent,
            timeout=settings.http_timeout,
            max_attempts=settings.max_attempts,
            retry_delay=settings.retry_delay,
            pool_size=settings.max_workers,
        )

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> CatalogHttpClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        allow_client_errors: bool = False,
    ) -> requests.Response:
        """GET *url* with retry.

        With ``allow_client_errors`` a 4xx response (other than 429) is
        returned to the caller instead of raised, for auth negotiation.
        """
        request_headers = {"Accept": "application/json", "User-Agent": self.user_agent}
        if headers:
            request_headers.update(headers)

        last_error: TransportError | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                resp = self._session.get(
                    url, params=params, headers=request_headers, timeout=self.timeout,
                )
            except requests.RequestException as e:
                logger.debug("attempt %d failed to GET %s: %s", attempt, url, e)
                last_error = TransportError(str(e), url=url)
                self._backoff(attempt)
                continue

            if 200 <= resp.status_code < 300:
                return resp

            error = HTTPStatusError(resp.status_code, url=url)
            if not error.retryable:
                if allow_client_errors:
                    return resp
                logger.debug("GET %s failed with status code %d, not retrying", url, resp.status_code)
                raise error
            logger.debug(
                "attempt %d failed to GET %s with status code: %d", attempt, url, resp.status_code,
            )
            last_error = error
            self._backoff(attempt)

        assert last_error is not None
        raise last_error

    def get_json(self, url: str, params: dict[str, Any] | None = None, **kwargs: Any) -> Any:
        resp = self.get(url, params=params, **kwargs)
        return decode_json(resp.text, url)

    def get_yaml(self, url: str, **kwargs: Any) -> Any:
        resp = self.get(url, headers={"Accept": "application/x-yaml, */*"}, **kwargs)
        try:
            return yaml.load(resp.text, Loader=_YamlLoader)
        except yaml.YAMLError as e:
            raise MalformedResponseError(f"invalid YAML from {url}: {e}", url=url) from e

    def _backoff(self, attempt: int) -> None:
        if attempt < self.max_attempts and self.retry_delay > 0:
            time.sleep(self.retry_delay * attempt)


def decode_json(text: str, url: str = "") -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise MalformedResponseError(f"invalid JSON from {url or 'response'}: {e}", url=url) from e
