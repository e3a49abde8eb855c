import copy
import json
from typing import Any

import jsonpatch
import pydash as _
from injector import inject
from kubernetes import client as k
from kubernetes.client.api_client import ApiClient
from kubernetes.client.exceptions import ApiException

from tailing_sidecar.common.error_types import MalformedPodError, PodSerializationError
from tailing_sidecar.entities import mappers


class MutationEmitter:
    """Decode the Pod of an admission request and describe its mutation as a JSON Patch"""

    _k_api_client: ApiClient  # Just needed to (de)serialize dict to K8s model

    @inject
    def __init__(self, k_api_client: ApiClient):
        self._k_api_client = k_api_client

    def decode(self, raw_pod: Any) -> k.V1Pod:
        if not isinstance(raw_pod, dict):
            raise MalformedPodError(reason=f"expected an object, got {type(raw_pod).__name__}")
        try:
            pod: k.V1Pod = mappers.deserialize_dict_to_k_model(self._k_api_client, raw_pod, k.V1Pod)
        except (ApiException, AttributeError, TypeError, ValueError) as exc:
            raise MalformedPodError(reason=str(exc)) from exc
        if pod.spec is None:
            raise MalformedPodError(reason="missing spec")
        return pod

    def emit(
        self, raw_pod: dict[str, Any], containers: list[k.V1Container], volumes: list[k.V1Volume]
    ) -> list[dict[str, Any]]:
        """Compute the operations turning `raw_pod` into a Pod with the given containers and volumes.

        Entries already in `raw_pod` are emitted as received, so fields unknown to the client models survive.
        """
        try:
            mutated = copy.deepcopy(raw_pod)
            spec: dict[str, Any] = mutated.setdefault("spec", {})
            spec["containers"] = self._merge_entries(_.get(raw_pod, "spec.containers"), containers)
            if volumes or "volumes" in spec:
                spec["volumes"] = self._merge_entries(_.get(raw_pod, "spec.volumes"), volumes)
            # Round trip to make sure the mutated Pod is valid JSON
            mutated = json.loads(json.dumps(mutated))
            return jsonpatch.make_patch(raw_pod, mutated).patch
        except (AttributeError, TypeError, ValueError, jsonpatch.JsonPatchException) as exc:
            raise PodSerializationError(reason=str(exc)) from exc

    def _merge_entries(self, raw_entries: list[Any] | None, models: list[Any]) -> list[dict[str, Any]]:
        by_name = {entry.get("name"): entry for entry in raw_entries or [] if isinstance(entry, dict)}
        return [
            by_name[model.name] if model.name in by_name else mappers.serialize_k_model_to_dict(self._k_api_client, model)
            for model in models
        ]
