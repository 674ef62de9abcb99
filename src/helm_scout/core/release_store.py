"""Collect deployed Helm releases from their storage Secrets or ConfigMaps."""

from __future__ import annotations

import base64
import binascii
import gzip
import json
import logging
from typing import Any

from helm_scout.core.k8s_client import K8sClient
from helm_scout.models.artifact import ObservedArtifact
from helm_scout.models.release import HelmRelease, ReleaseStatus

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def decode_release_secret(data: bytes | str) -> dict:
    """Decode a Helm release from a Kubernetes Secret.

    Pipeline: base64 → gzip → utf-8 → json.
    Some kubernetes client versions do not auto-decode the outer base64
    layer, resulting in a double-encoded payload.  We detect this by
    checking for the gzip magic number after the first decode.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    decoded = base64.b64decode(data)
    if decoded[:2] != GZIP_MAGIC:
        decoded = base64.b64decode(decoded)
    return json.loads(gzip.decompress(decoded).decode("utf-8"))


def decode_release_configmap(data: str) -> dict:
    """Decode a Helm release from a ConfigMap.

    ConfigMap values are plain strings, so there is an extra base64 layer.
    """
    first = base64.b64decode(data.encode("utf-8"))
    if first[:2] != GZIP_MAGIC:
        first = base64.b64decode(first)
    return json.loads(gzip.decompress(first).decode("utf-8"))


def encode_release(payload: dict) -> str:
    """Encode a release dict to base64+gzip, the way Helm stores it."""
    compressed = gzip.compress(json.dumps(payload).encode("utf-8"))
    return base64.b64encode(compressed).decode("ascii")


def _revision(obj: Any) -> int:
    labels = (obj.metadata.labels or {}) if obj.metadata else {}
    try:
        return int(labels.get("version", "0"))
    except ValueError:
        return 0


def _key(obj: Any) -> tuple[str, str]:
    labels = (obj.metadata.labels or {}) if obj.metadata else {}
    ns = (obj.metadata.namespace or "") if obj.metadata else ""
    return labels.get("name", ""), ns


class ReleaseStore:
    """Reads the newest revision of every release in the cluster."""

    def __init__(self, k8s: K8sClient):
        self.k8s = k8s

    def list_releases(self, namespace: str | None = None) -> list[HelmRelease]:
        if self.k8s.settings.storage_driver == "configmaps":
            objects = self.k8s.list_helm_configmaps(namespace=namespace)
            decode = self._decode_configmap
        else:
            objects = self.k8s.list_helm_secrets(namespace=namespace)
            decode = self._decode_secret

        latest: dict[tuple[str, str], Any] = {}
        for obj in objects:
            key = _key(obj)
            if key not in latest or _revision(obj) > _revision(latest[key]):
                latest[key] = obj

        releases: list[HelmRelease] = []
        for obj in latest.values():
            release = decode(obj)
            if release is None:
                continue
            if release.status is ReleaseStatus.UNINSTALLED:
                continue
            releases.append(release)
        releases.sort(key=lambda r: (r.namespace, r.name))
        logger.info("found %d helm releases", len(releases))
        return releases

    def observed_artifacts(self, namespace: str | None = None) -> list[ObservedArtifact]:
        return [ObservedArtifact.from_release(r) for r in self.list_releases(namespace)]

    @staticmethod
    def _decode_secret(secret: Any) -> HelmRelease | None:
        data = secret.data or {}
        if "release" not in data:
            return None
        try:
            release = HelmRelease.from_dict(decode_release_secret(data["release"]))
        except (binascii.Error, OSError, EOFError, ValueError):
            logger.debug("Failed to decode secret %s", _safe_name(secret), exc_info=True)
            return None
        if not release.namespace and secret.metadata:
            release.namespace = secret.metadata.namespace or ""
        return release

    @staticmethod
    def _decode_configmap(cm: Any) -> HelmRelease | None:
        data = cm.data or {}
        if "release" not in data:
            return None
        try:
            release = HelmRelease.from_dict(decode_release_configmap(data["release"]))
        except (binascii.Error, OSError, EOFError, ValueError):
            logger.debug("Failed to decode configmap %s", _safe_name(cm), exc_info=True)
            return None
        if not release.namespace and cm.metadata:
            release.namespace = cm.metadata.namespace or ""
        return release


def _safe_name(obj: Any) -> str:
    if getattr(obj, "metadata", None):
        return obj.metadata.name or "<unknown>"
    return "<unknown>"
