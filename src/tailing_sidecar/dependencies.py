"""
Configure Dependency Injection
"""

import json
import logging
import pathlib
from typing import Any

from injector import Injector, Module, provider, singleton
from kubernetes import client as k
from kubernetes.client.api_client import ApiClient
from kubernetes.client.configuration import Configuration as KClientConfiguration
from kubernetes.config import incluster_config as k_incluster_config
from kubernetes.config import kube_config as k_config
from yaml import Dumper, dump

from tailing_sidecar.common.config import Config, Option
from tailing_sidecar.common.logger_manager import LoggerManager
from tailing_sidecar.entities.kubernetes_configuration import KubernetesConfiguration
from tailing_sidecar.services.config_resolver import ConfigResolver
from tailing_sidecar.services.mutation_emitter import MutationEmitter
from tailing_sidecar.services.pod_extender_service import PodExtenderService


# region Configure Injector Module
class InjectorModule(Module):
    """Configure Injector bindings, i.e. how dependencies are provided.

    Note: bindings provide instances when invoking `Injector.get(MyClass)`.
    Bindings are required to provide instances within a given scope (e.g. singleton).
    If no binding is defined for `MyClass` then a fresh new instance is created
    (resolving constructor injected dependencies) and returned.

    See https://github.com/python-injector/injector/blob/master/docs/terminology.rst.
    """

    def configure(self, binder):
        binder.bind(Config, to=Config(), scope=singleton)

    @singleton
    @provider
    def provide_logger(self, config: Config) -> logging.Logger:
        return LoggerManager(config).logger

    @singleton
    @provider
    def provide_kubernetes_configuration(self, config: Config, logger: logging.Logger) -> KubernetesConfiguration:
        """Locate the kubeconfig, if any: the webhook falls back to the in-cluster service account"""
        kubeconfig_path = pathlib.Path(config.get(Option.K8S_KUBECONFIG_PATH, "private/k8s/kubeconfig.yaml"))
        kubernetes_configuration = KubernetesConfiguration()

        if kubeconfig_path.exists():
            kubernetes_configuration.kubeconfig_path = str(kubeconfig_path)
        elif config.get(Option.K8S_KUBECONFIG):
            if not kubeconfig_path.parent.exists():
                kubeconfig_path.parent.mkdir(parents=True)
            kubeconfig_dict: dict[str, Any] = json.loads(config.get(Option.K8S_KUBECONFIG))
            with open(kubeconfig_path, "w", encoding="utf-8") as fp:
                dump(kubeconfig_dict, fp, Dumper=Dumper)
            kubernetes_configuration.kubeconfig_path = str(kubeconfig_path)
        else:
            logger.info("Kubeconfig file at path '%s' not found, using in-cluster configuration", kubeconfig_path)

        kubernetes_configuration.client_configuration = KClientConfiguration()
        if config.get(Option.K8S_CLIENT_CONFIGURATION):
            config_data: dict[str, Any] = json.loads(config.get(Option.K8S_CLIENT_CONFIGURATION))
            for key, value in config_data.items():
                setattr(kubernetes_configuration.client_configuration, key, value)

        return kubernetes_configuration

    @singleton
    @provider
    def provide_kubernetes_api_client(self, kubernetes_configuration: KubernetesConfiguration) -> ApiClient:
        client_configuration = kubernetes_configuration.client_configuration
        if kubernetes_configuration.kubeconfig_path:
            k_config.load_kube_config(
                config_file=kubernetes_configuration.kubeconfig_path, client_configuration=client_configuration
            )
        else:
            k_incluster_config.load_incluster_config(client_configuration=client_configuration)
        return ApiClient(configuration=client_configuration)

    @singleton
    @provider
    def provide_kubernetes_custom_objects_api(self, api_client: ApiClient) -> k.CustomObjectsApi:
        # Kubernetes client to read custom resources (i.e., TailingSidecars)
        return k.CustomObjectsApi(api_client)

    @singleton
    @provider
    def provide_config_resolver(
        self, config: Config, logger: logging.Logger, k_custom_client: k.CustomObjectsApi
    ) -> ConfigResolver:
        return ConfigResolver(config, logger, k_custom_client)

    @singleton
    @provider
    def provide_mutation_emitter(self, api_client: ApiClient) -> MutationEmitter:
        return MutationEmitter(api_client)

    @singleton
    @provider
    def provide_pod_extender_service(
        self,
        config: Config,
        logger: logging.Logger,
        config_resolver: ConfigResolver,
        mutation_emitter: MutationEmitter,
    ) -> PodExtenderService:
        return PodExtenderService(config, logger, config_resolver, mutation_emitter)


_injector = Injector([InjectorModule()])
# endregion / Configure Injector Module


# region Public Injector instances
def get_config() -> Config:
    return _injector.get(Config)


def get_logger() -> logging.Logger:
    return _injector.get(logging.Logger)


def get_pod_extender_service() -> PodExtenderService:
    return _injector.get(PodExtenderService)


# endregion / Public Injector instances
