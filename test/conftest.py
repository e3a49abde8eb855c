# pylint: disable=redefined-outer-name
import logging
import time
from typing import Any

import pytest
from kubernetes.client.api_client import ApiClient

from tailing_sidecar.common.config import Config

TEST_LOGGER_NAME = "tailing-sidecar-test"


class FakeCustomObjectsApi:
    """Serve TailingSidecar pages the way `CustomObjectsApi.list_namespaced_custom_object` does"""

    def __init__(
        self,
        pages: list[list[dict[str, Any]]] | None = None,
        error: Exception | None = None,
        fail_on_page: int = 0,
        delay: float = 0.0,
    ):
        self.pages = pages if pages is not None else [[]]
        self.error = error
        self.fail_on_page = fail_on_page
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    def list_namespaced_custom_object(self, group, version, namespace, plural, **kwargs):
        self.calls.append({"group": group, "version": version, "namespace": namespace, "plural": plural, **kwargs})
        if self.delay:
            time.sleep(self.delay)
        index = int(kwargs.get("_continue") or 0)
        if self.error is not None and index >= self.fail_on_page:
            raise self.error
        metadata = {"continue": str(index + 1)} if index + 1 < len(self.pages) else {}
        return {"items": self.pages[index], "metadata": metadata}


def tailing_sidecar(name: str, configs: dict[str, dict[str, str]], namespace: str = "default") -> dict[str, Any]:
    return {
        "apiVersion": "tailing-sidecar.sumologic.com/v1",
        "kind": "TailingSidecar",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"configs": configs},
    }


def pod(annotations: dict[str, str] | None = None, name: str = "app-pod", namespace: str = "default") -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name, "namespace": namespace}
    if annotations is not None:
        metadata["annotations"] = annotations
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": metadata,
        "spec": {
            "containers": [
                {
                    "name": "app",
                    "image": "busybox",
                    "command": ["sh", "-c", "while true; do date >> /var/log/app.log; sleep 1; done"],
                    "volumeMounts": [{"name": "app-data", "mountPath": "/var/log"}],
                }
            ],
            "volumes": [{"name": "app-data", "emptyDir": {}}],
        },
    }


@pytest.fixture()
def logger() -> logging.Logger:
    _logger = logging.getLogger(TEST_LOGGER_NAME)
    _logger.setLevel(logging.DEBUG)
    _logger.propagate = True
    return _logger


@pytest.fixture()
def config() -> Config:
    return Config()


@pytest.fixture()
def api_client() -> ApiClient:
    return ApiClient()
