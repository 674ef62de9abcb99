"""Kubernetes API wrapper."""

from __future__ import annotations

from typing import Any

from kubernetes import client, config

from helm_scout.config.settings import Settings, settings as default_settings

REQUEST_TIMEOUT = 30


class K8sClient:
    """Thin wrapper around the Kubernetes Python client.

    Constructed once by the entry point and handed to the collectors.
    """

    def __init__(self, context: str | None = None, settings: Settings | None = None):
        self.context = context
        self.settings = settings or default_settings
        self._core_v1: client.CoreV1Api | None = None
        self._api_client: client.ApiClient | None = None

    def _load_config(self) -> client.ApiClient:
        if self._api_client is not None:
            return self._api_client
        try:
            cfg = client.Configuration()
            config.load_kube_config(
                context=self.context,
                client_configuration=cfg,
            )
            # Prevent indefinite hangs on unreachable clusters
            cfg.retries = 1
            if not cfg.connection_pool_maxsize:
                cfg.connection_pool_maxsize = 4
            self._api_client = client.ApiClient(configuration=cfg)
        except config.ConfigException:
            config.load_incluster_config()
            self._api_client = client.ApiClient()
        return self._api_client

    @property
    def core_v1(self) -> client.CoreV1Api:
        if self._core_v1 is None:
            self._core_v1 = client.CoreV1Api(api_client=self._load_config())
        return self._core_v1

    def list_helm_secrets(self, namespace: str | None = None) -> list[Any]:
        """List Helm release secrets, optionally limited to one namespace."""
        label = self.settings.helm_label_selector
        field_selector = f"type={self.settings.secret_type}"
        if namespace:
            result = self.core_v1.list_namespaced_secret(
                namespace=namespace,
                label_selector=label,
                field_selector=field_selector,
                _request_timeout=REQUEST_TIMEOUT,
            )
        else:
            result = self.core_v1.list_secret_for_all_namespaces(
                label_selector=label,
                field_selector=field_selector,
                _request_timeout=REQUEST_TIMEOUT,
            )
        return result.items

    def list_helm_configmaps(self, namespace: str | None = None) -> list[Any]:
        """List Helm release ConfigMaps."""
        label = self.settings.helm_label_selector
        if namespace:
            result = self.core_v1.list_namespaced_config_map(
                namespace=namespace,
                label_selector=label,
                _request_timeout=REQUEST_TIMEOUT,
            )
        else:
            result = self.core_v1.list_config_map_for_all_namespaces(
                label_selector=label,
                _request_timeout=REQUEST_TIMEOUT,
            )
        return result.items

    def list_pods(self, namespace: str | None = None) -> list[Any]:
        if namespace:
            result = self.core_v1.list_namespaced_pod(
                namespace=namespace, _request_timeout=REQUEST_TIMEOUT,
            )
        else:
            result = self.core_v1.list_pod_for_all_namespaces(_request_timeout=REQUEST_TIMEOUT)
        return result.items
