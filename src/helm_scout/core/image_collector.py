"""Collect the container images running in the cluster."""

from __future__ import annotations

import logging
from typing import Any

from helm_scout.core.k8s_client import K8sClient
from helm_scout.models.report import Workload

logger = logging.getLogger(__name__)


def pod_owner(pod: Any) -> tuple[str, str]:
    """Return ``(kind, name)`` of the workload that owns *pod*.

    ReplicaSets created by a Deployment are reported as the Deployment.
    Unowned pods are their own workload.
    """
    meta = pod.metadata
    for ref in meta.owner_references or []:
        if not ref.controller:
            continue
        if ref.kind == "ReplicaSet":
            template_hash = (meta.labels or {}).get("pod-template-hash")
            suffix = f"-{template_hash}" if template_hash else ""
            if suffix and ref.name.endswith(suffix):
                return "Deployment", ref.name[: -len(suffix)]
        return ref.kind, ref.name
    return "Pod", meta.name


class ImageCollector:
    def __init__(self, k8s: K8sClient):
        self.k8s = k8s

    def collect(self, namespace: str | None = None) -> dict[str, list[Workload]]:
        """Map each image reference to the workloads running it.

        Only the first pod of each owning workload is inspected.
        """
        images: dict[str, list[Workload]] = {}
        seen_owners: set[tuple[str, str, str]] = set()
        for pod in self.k8s.list_pods(namespace=namespace):
            kind, name = pod_owner(pod)
            owner_key = (pod.metadata.namespace or "", kind, name)
            if owner_key in seen_owners:
                continue
            seen_owners.add(owner_key)

            spec = pod.spec
            containers = list(spec.init_containers or []) + list(spec.containers or [])
            for container in containers:
                if not container.image:
                    continue
                workload = Workload(
                    name=name,
                    namespace=pod.metadata.namespace or "",
                    kind=kind,
                    container=container.name,
                )
                workloads = images.setdefault(container.image, [])
                if workload not in workloads:
                    workloads.append(workload)
        logger.info("found %d container images", len(images))
        return images
