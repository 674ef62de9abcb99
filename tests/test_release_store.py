"""Tests for decoding Helm release storage objects."""

import base64
from types import SimpleNamespace
from unittest.mock import Mock

from helm_scout.config.settings import Settings
from helm_scout.core.image_collector import ImageCollector, pod_owner
from helm_scout.core.release_store import (
    ReleaseStore,
    decode_release_configmap,
    decode_release_secret,
    encode_release,
)
from helm_scout.models.report import Workload


def release_payload(name="web", version=1, chart_version="1.0.0", status="deployed", namespace="apps"):
    return {
        "name": name,
        "namespace": namespace,
        "version": version,
        "info": {"status": status},
        "chart": {"metadata": {
            "name": "nginx",
            "version": chart_version,
            "appVersion": "1.25",
            "home": "https://nginx.org",
            "sources": ["https://github.com/example/nginx"],
            "maintainers": [{"name": "alice"}],
        }},
    }


def secret(payload, revision):
    # the kubernetes client hands back Secret data base64-decoded once
    return SimpleNamespace(
        metadata=SimpleNamespace(
            name=f"sh.helm.release.v1.{payload['name']}.v{revision}",
            namespace=payload["namespace"],
            labels={"name": payload["name"], "version": str(revision), "owner": "helm"},
        ),
        data={"release": encode_release(payload)},
    )


def store_with(objects, driver="secrets"):
    k8s = Mock()
    k8s.settings = Settings(storage_driver=driver)
    k8s.list_helm_secrets.return_value = objects
    k8s.list_helm_configmaps.return_value = objects
    return ReleaseStore(k8s)


class TestDecoding:
    def test_secret_single_encoded(self):
        payload = release_payload()
        assert decode_release_secret(encode_release(payload)) == payload

    def test_secret_double_encoded(self):
        payload = release_payload()
        doubled = base64.b64encode(encode_release(payload).encode("ascii"))
        assert decode_release_secret(doubled) == payload

    def test_configmap(self):
        payload = release_payload()
        doubled = base64.b64encode(encode_release(payload).encode("ascii")).decode("ascii")
        assert decode_release_configmap(doubled) == payload


class TestReleaseStore:
    def test_keeps_highest_revision(self):
        store = store_with([
            secret(release_payload(version=1, chart_version="1.0.0"), 1),
            secret(release_payload(version=3, chart_version="1.2.0"), 3),
            secret(release_payload(version=2, chart_version="1.1.0"), 2),
        ])
        (release,) = store.list_releases()
        assert release.revision == 3
        assert release.chart.version == "1.2.0"

    def test_uninstalled_dropped_and_garbage_skipped(self):
        broken = secret(release_payload(name="broken"), 1)
        broken.data = {"release": "not-base64!"}
        store = store_with([
            secret(release_payload(name="gone", status="uninstalled"), 1),
            broken,
            secret(release_payload(name="web"), 1),
        ])
        assert [r.name for r in store.list_releases()] == ["web"]

    def test_observed_artifacts(self):
        store = store_with([secret(release_payload(), 1)])
        (artifact,) = store.observed_artifacts(namespace="apps")
        assert artifact.name == "nginx"
        assert artifact.release_name == "web"
        assert artifact.namespace == "apps"
        assert artifact.current_version == "1.0.0"
        assert artifact.maintainer_names == {"alice"}
        store.k8s.list_helm_secrets.assert_called_once_with(namespace="apps")

    def test_configmap_driver(self):
        payload = release_payload()
        cm = secret(payload, 1)
        cm.data = {"release": base64.b64encode(encode_release(payload).encode("ascii")).decode("ascii")}
        store = store_with([cm], driver="configmaps")
        assert [r.name for r in store.list_releases()] == ["web"]
        store.k8s.list_helm_secrets.assert_not_called()


def pod(name, namespace="apps", owner=None, labels=None, images=(), init_images=()):
    refs = [SimpleNamespace(kind=owner[0], name=owner[1], controller=True)] if owner else None
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace=namespace, owner_references=refs, labels=labels),
        spec=SimpleNamespace(
            containers=[SimpleNamespace(name=f"c{i}", image=img) for i, img in enumerate(images)],
            init_containers=[SimpleNamespace(name=f"init{i}", image=img) for i, img in enumerate(init_images)],
        ),
    )


class TestImageCollector:
    def test_replicaset_reported_as_deployment(self):
        p = pod("web-7d9f-abc", owner=("ReplicaSet", "web-7d9f"), labels={"pod-template-hash": "7d9f"})
        assert pod_owner(p) == ("Deployment", "web")

    def test_unowned_pod(self):
        assert pod_owner(pod("solo")) == ("Pod", "solo")

    def test_collect_first_pod_per_owner(self):
        k8s = Mock()
        k8s.list_pods.return_value = [
            pod("db-0", owner=("StatefulSet", "db"), images=["postgres:15.1"], init_images=["busybox:1.36"]),
            pod("db-1", owner=("StatefulSet", "db"), images=["postgres:15.2"]),
            pod("cache", images=["redis:7.0.0"]),
        ]
        images = ImageCollector(k8s).collect()
        assert list(images) == ["busybox:1.36", "postgres:15.1", "redis:7.0.0"]
        assert images["postgres:15.1"] == [Workload("db", "apps", "StatefulSet", "c0")]
