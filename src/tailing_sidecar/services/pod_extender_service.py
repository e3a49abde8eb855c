from logging import Logger
from typing import Final

from injector import inject

from tailing_sidecar.common.config import Config, Option
from tailing_sidecar.common.error_types import MalformedPodError, PodSerializationError
from tailing_sidecar.entities import admission
from tailing_sidecar.entities.admission import AdmissionRequest, AdmissionResponse, AdmissionReview

from .base_service import BaseService
from .config_resolver import ConfigResolver
from .host_path_allocator import DEFAULT_HOST_PATH_ROOT, HostPathAllocator
from .mutation_emitter import MutationEmitter
from .sidecar_reconciler import SidecarReconciler

DEFAULT_SIDECAR_ANNOTATION: Final = "tailing-sidecar"
DEFAULT_SIDECAR_IMAGE: Final = "sumologic/tailing-sidecar:latest"


class PodExtenderService(BaseService):
    """Extend Pods being created or updated with tailing sidecars"""

    _config_resolver: ConfigResolver
    _mutation_emitter: MutationEmitter
    _host_path_allocator: HostPathAllocator
    _sidecar_reconciler: SidecarReconciler
    _annotation: str

    @inject
    def __init__(
        self, config: Config, logger: Logger, config_resolver: ConfigResolver, mutation_emitter: MutationEmitter
    ):
        super().__init__(config, logger)
        self._config_resolver = config_resolver
        self._mutation_emitter = mutation_emitter
        self._host_path_allocator = HostPathAllocator(
            self._get_option(Option.SIDECAR_HOST_PATH_ROOT, DEFAULT_HOST_PATH_ROOT)
        )
        self._sidecar_reconciler = SidecarReconciler(
            logger, self._get_option(Option.SIDECAR_IMAGE, DEFAULT_SIDECAR_IMAGE)
        )
        self._annotation = self._get_option(Option.SIDECAR_ANNOTATION, DEFAULT_SIDECAR_ANNOTATION)

    async def review(self, review: AdmissionReview) -> AdmissionReview:
        if review.request is None:
            raise MalformedPodError(reason="AdmissionReview carries no request")
        return AdmissionReview(
            api_version=review.api_version, kind=review.kind, response=await self.handle(review.request)
        )

    async def handle(self, request: AdmissionRequest) -> AdmissionResponse:
        try:
            pod = self._mutation_emitter.decode(request.obj)
        except MalformedPodError as exc:
            self.logger.error("Rejecting request %s: %s", request.uid, exc.message)
            return admission.errored(request.uid, exc)

        metadata = pod.metadata
        annotations = (metadata.annotations if metadata else None) or {}
        namespace = (metadata.namespace if metadata else None) or request.namespace
        name = metadata.name if metadata else None

        self.logger.info(
            "Handling request for Pod, name: '%s', namespace: '%s', operation: '%s'",
            name or request.name,
            namespace,
            request.operation,
        )

        if self._annotation not in annotations:
            return admission.allowed(request.uid)

        configs = await self._config_resolver.resolve(namespace, annotations[self._annotation])
        if configs:
            self.logger.info("Found configuration for Pod, name: '%s', namespace: '%s'", name, namespace)

        host_path_dir = self._host_path_allocator.allocate(
            namespace, name, metadata.generate_name if metadata else None, metadata.uid if metadata else None
        )
        result = self._sidecar_reconciler.reconcile(
            pod.spec.containers or [], pod.spec.volumes or [], configs, host_path_dir
        )
        if not result.changed:
            return admission.allowed(request.uid)

        try:
            operations = self._mutation_emitter.emit(request.obj, result.containers, result.volumes)
        except PodSerializationError as exc:
            self.logger.error("Failed to serialize Pod, name: '%s', namespace: '%s': %s", name, namespace, exc.message)
            return admission.errored(request.uid, exc)

        self.logger.info(
            "Patching Pod, name: '%s', namespace: '%s', added: %s, removed: %s",
            name,
            namespace,
            result.added,
            result.removed,
        )
        return admission.patched(request.uid, operations)
