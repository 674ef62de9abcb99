"""Exception hierarchy for catalog fetching and configuration problems."""

from __future__ import annotations


class HelmScoutError(Exception):
    """Base class for all helm-scout errors."""


class ConfigurationError(HelmScoutError):
    """Invalid caller-supplied configuration."""


class TransportError(HelmScoutError):
    """Network failure while talking to a catalog source."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class HTTPStatusError(TransportError):
    """A catalog source answered with a non-success status code."""

    def __init__(self, status_code: int, url: str = "") -> None:
        super().__init__(f"error code: {status_code}", url=url)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500 or self.status_code == 429


class FetchTimeoutError(TransportError):
    """The overall fetch deadline expired before the source finished."""


class MalformedResponseError(HelmScoutError):
    """A successful response whose body could not be decoded."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class CatalogUnavailableError(HelmScoutError):
    """Every configured catalog source failed."""

    def __init__(self, errors: dict[str, Exception]) -> None:
        detail = "; ".join(f"{source}: {err}" for source, err in errors.items())
        super().__init__(f"all catalog sources failed ({detail})")
        self.errors = errors
