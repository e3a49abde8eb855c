import asyncio
from logging import Logger
from typing import Any, Final, Iterable

import kubernetes.client.exceptions as k_exceptions
import pydash as _
from injector import inject
from kubernetes import client as k
from pydantic import ValidationError
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from tailing_sidecar.common.config import Config, Option
from tailing_sidecar.common.error_types import InvalidAnnotationError
from tailing_sidecar.entities.sidecar_config import SidecarConfig, TailingSidecar
from tailing_sidecar.utilities.annotation_utilities import iter_annotation_entries, parse_annotation_entry

from .base_service import BaseService

DEFAULT_RESOURCE_GROUP: Final = "tailing-sidecar.sumologic.com"
DEFAULT_RESOURCE_VERSION: Final = "v1"
DEFAULT_RESOURCE_PLURAL: Final = "tailingsidecars"
DEFAULT_REQUEST_TIMEOUT: Final = 5.0
DEFAULT_LIST_PAGE_SIZE: Final = 100


def join_tailing_sidecar_configs(tailing_sidecars: Iterable[TailingSidecar]) -> dict[str, SidecarConfig]:
    """Fold the configs of all resources into one mapping.
    Resources are folded in name order, so on a name clash the last resource by name wins."""
    sidecar_configs: dict[str, SidecarConfig] = {}
    for tailing_sidecar in sorted(tailing_sidecars, key=lambda ts: ts.metadata.name):
        sidecar_configs.update(tailing_sidecar.spec.configs)
    return sidecar_configs


def merge_configs(
    resource_configs: dict[str, SidecarConfig], annotation_configs: dict[str, SidecarConfig]
) -> list[SidecarConfig]:
    """Combine resource and annotation configs, annotation wins on a name clash.
    Returns the configs ordered by name, one per (file, volume) pair."""
    named_configs = {**resource_configs, **annotation_configs}
    configs: list[SidecarConfig] = []
    seen: set[tuple[str, str]] = set()
    for name in sorted(named_configs):
        config = named_configs[name]
        if config.identity not in seen:
            seen.add(config.identity)
            configs.append(config)
    return configs


class ConfigResolver(BaseService):
    """Resolve the desired tailing sidecar configs of a Pod.

    Configs come from the TailingSidecar resources of the Pod's namespace and from the Pod's annotation.
    Reading the resources is best effort: any failure is logged and the resources fetched so far are used.
    """

    _k_custom_client: k.CustomObjectsApi
    _resource: dict[str, str]
    _request_timeout: float
    _page_size: int

    @inject
    def __init__(self, config: Config, logger: Logger, k_custom_client: k.CustomObjectsApi):
        super().__init__(config, logger)
        self._k_custom_client = k_custom_client
        self._resource = {
            "group": self._get_option(Option.SIDECAR_RESOURCE_GROUP, DEFAULT_RESOURCE_GROUP),
            "version": self._get_option(Option.SIDECAR_RESOURCE_VERSION, DEFAULT_RESOURCE_VERSION),
            "plural": self._get_option(Option.SIDECAR_RESOURCE_PLURAL, DEFAULT_RESOURCE_PLURAL),
        }
        self._request_timeout = self._get_option(Option.K8S_REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT, float)
        self._page_size = self._get_option(Option.K8S_LIST_PAGE_SIZE, DEFAULT_LIST_PAGE_SIZE, int)

    async def resolve(self, namespace: str | None, annotation: str | None) -> list[SidecarConfig]:
        tailing_sidecars = await self.list_tailing_sidecars(namespace)
        resource_configs = join_tailing_sidecar_configs(tailing_sidecars)
        annotation_configs = self.parse_annotation(annotation)
        return merge_configs(resource_configs, annotation_configs)

    def parse_annotation(self, annotation: str | None) -> dict[str, SidecarConfig]:
        configs: dict[str, SidecarConfig] = {}
        for index, entry in enumerate(iter_annotation_entries(annotation)):
            try:
                name, config = parse_annotation_entry(entry, index)
            except InvalidAnnotationError as exc:
                self.logger.warning("Skipping annotation entry: %s", exc.message)
                continue
            configs[name] = config
        return configs

    async def list_tailing_sidecars(self, namespace: str | None) -> list[TailingSidecar]:
        if not namespace:
            self.logger.warning("Pod has no namespace, TailingSidecars are not looked up")
            return []

        items: list[dict[str, Any]] = []
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._list_namespaced_items, namespace, items), timeout=self._request_timeout
            )
        except asyncio.TimeoutError:
            self.logger.error(
                "Timed out after %ss getting list of TailingSidecars in namespace '%s'",
                self._request_timeout,
                namespace,
            )
        except k_exceptions.ApiException as api_exception:
            self.logger.error(
                "Failed to get list of TailingSidecars in namespace '%s': %s %s",
                namespace,
                api_exception.status,
                api_exception.reason,
            )
        except (Urllib3HTTPError, OSError) as exc:
            self.logger.error("Failed to get list of TailingSidecars in namespace '%s': %s", namespace, exc)
        except Exception as exc:  # pylint: disable=broad-except
            self.logger.error(
                "Failed to get list of TailingSidecars in namespace '%s' (%s): %s", namespace, type(exc).__name__, exc
            )

        # The listing thread may still be running after a timeout
        return self._parse_items(list(items))

    def _list_namespaced_items(self, namespace: str, items: list[dict[str, Any]]) -> None:
        """Page through the resources, appending each page's items as soon as it is fetched"""
        continue_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {"limit": self._page_size, "_request_timeout": self._request_timeout}
            if continue_token:
                kwargs["_continue"] = continue_token
            page = self._k_custom_client.list_namespaced_custom_object(
                self._resource["group"],
                self._resource["version"],
                namespace,
                self._resource["plural"],
                **kwargs,
            )
            items.extend(_.get(page, "items") or [])
            continue_token = _.get(page, "metadata.continue")
            if not continue_token:
                return

    def _parse_items(self, items: list[dict[str, Any]]) -> list[TailingSidecar]:
        tailing_sidecars: list[TailingSidecar] = []
        for item in items:
            try:
                tailing_sidecars.append(TailingSidecar.model_validate(item))
            except ValidationError as exc:
                self.logger.warning(
                    "Skipping malformed TailingSidecar '%s': %s", _.get(item, "metadata.name"), exc.error_count()
                )
        return tailing_sidecars
