"""Container image references and registry v2 tag listing."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urljoin

from helm_scout.core.errors import ConfigurationError, HTTPStatusError, MalformedResponseError
from helm_scout.core.fetcher import CatalogSource
from helm_scout.core.http_client import CatalogHttpClient, decode_json
from helm_scout.models import SourceKind

logger = logging.getLogger(__name__)

DOCKER_HUB = "docker.io"
DOCKER_HUB_API = "registry-1.docker.io"

_PREFIX_RE = re.compile(r"^v[0-9]+.*$")
_REPO_RE = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*(?:/[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*)*$")
_CHALLENGE_RE = re.compile(r'(\w+)="([^"]*)"')
_LINK_RE = re.compile(r"<([^>]+)>\s*;\s*rel=\"?next\"?")


@dataclass(frozen=True)
class ImageReference:
    """A parsed ``[registry/]repository[:tag][@digest]`` reference."""

    registry: str
    repository: str
    tag: str = "latest"
    digest: str = ""

    @classmethod
    def parse(cls, ref: str) -> ImageReference:
        text = ref.strip()
        if not text:
            raise ConfigurationError("empty image reference")
        name, _, digest = text.partition("@")
        tag = "latest"
        slash = name.rfind("/")
        colon = name.rfind(":")
        if colon > slash:
            name, tag = name[:colon], name[colon + 1:]
            if not tag:
                raise ConfigurationError(f"empty tag in image reference {ref!r}")

        first, sep, rest = name.partition("/")
        if sep and ("." in first or ":" in first or first == "localhost"):
            registry, repository = first, rest
        else:
            registry, repository = DOCKER_HUB, name
        if registry in (DOCKER_HUB, "index.docker.io") and "/" not in repository:
            repository = f"library/{repository}"
        if not _REPO_RE.match(repository):
            raise ConfigurationError(f"invalid repository name in image reference {ref!r}")
        return cls(registry=registry, repository=repository, tag=tag, digest=digest)

    @property
    def api_host(self) -> str:
        if self.registry in (DOCKER_HUB, "index.docker.io"):
            return DOCKER_HUB_API
        return self.registry

    @property
    def tag_prefix(self) -> str:
        """``v`` when the tag is written like ``v1.2.3``."""
        return "v" if _PREFIX_RE.match(self.tag) else ""


class RegistryClient:
    """Lists tags through the registry HTTP API v2, anonymously."""

    def __init__(self, client: CatalogHttpClient) -> None:
        self.client = client

    def list_tags(self, ref: ImageReference) -> list[str]:
        url = f"https://{ref.api_host}/v2/{ref.repository}/tags/list"
        headers: dict[str, str] = {}
        tags: list[str] = []
        while url:
            resp = self.client.get(url, headers=headers, allow_client_errors=True)
            if resp.status_code == 401 and "Authorization" not in headers:
                token = self._anonymous_token(resp.headers.get("WWW-Authenticate", ""), ref)
                headers = {"Authorization": f"Bearer {token}"}
                continue
            if resp.status_code >= 400:
                raise HTTPStatusError(resp.status_code, url=url)
            body = decode_json(resp.text, url)
            if not isinstance(body, dict):
                raise MalformedResponseError("tag listing is not an object", url=url)
            tags.extend(body.get("tags") or [])
            url = _next_link(url, resp.headers.get("Link", ""))
        logger.debug("Listed %d tags for %s/%s", len(tags), ref.registry, ref.repository)
        return tags

    def _anonymous_token(self, challenge: str, ref: ImageReference) -> str:
        scheme, _, params = challenge.partition(" ")
        if scheme.lower() != "bearer":
            raise HTTPStatusError(401, url=ref.api_host)
        fields = dict(_CHALLENGE_RE.findall(params))
        realm = fields.pop("realm", "")
        if not realm:
            raise MalformedResponseError("bearer challenge without realm", url=ref.api_host)
        fields.setdefault("scope", f"repository:{ref.repository}:pull")
        body = self.client.get_json(realm, params=fields)
        token = (body.get("token") or body.get("access_token")) if isinstance(body, dict) else None
        if not token:
            raise MalformedResponseError("token endpoint returned no token", url=realm)
        return token


def _next_link(current: str, link_header: str) -> str:
    m = _LINK_RE.search(link_header)
    if not m:
        return ""
    return urljoin(current, m.group(1))


class ImageTagSource(CatalogSource):
    """Tag listing for one deployed image."""

    kind = SourceKind.REGISTRY

    def __init__(self, image: str, ref: ImageReference) -> None:
        self.image = image
        self.ref = ref

    @property
    def source_id(self) -> str:
        return self.image

    def fetch(self, client: CatalogHttpClient) -> list[str]:
        return RegistryClient(client).list_tags(self.ref)
