import copy
import re
from dataclasses import dataclass, field
from logging import Logger
from typing import Final, Iterable

from kubernetes import client as k

from tailing_sidecar.common.error_types import VolumeNotFoundError
from tailing_sidecar.entities.sidecar_config import SidecarConfig

SIDECAR_ENV: Final = "PATH_TO_TAIL"
SIDECAR_CONTAINER_PREFIX: Final = "tailing-sidecar"
SIDECAR_CONTAINER_NAME: Final = "tailing-sidecar%d"
HOST_PATH_VOLUME_NAME: Final = "volume-sidecar%d"
HOST_PATH_MOUNT_PATH: Final = "/tailing-sidecar/var"
HOST_PATH_TYPE: Final = "DirectoryOrCreate"

_SIDECAR_CONTAINER_NAME_RE: Final = re.compile(rf"{SIDECAR_CONTAINER_PREFIX}\d+")
_HOST_PATH_VOLUME_NAME_RE: Final = re.compile(r"volume-sidecar\d+")


def is_tailing_sidecar(container: k.V1Container) -> bool:
    return bool(container.name and _SIDECAR_CONTAINER_NAME_RE.fullmatch(container.name))


def is_sidecar_env_available(envs: list[k.V1EnvVar] | None, file: str) -> bool:
    return any(env.name == SIDECAR_ENV and env.value == file for env in envs or [])


def is_volume_mount_available(volume_mounts: list[k.V1VolumeMount] | None, volume_name: str) -> bool:
    return any(volume_mount.name == volume_name for volume_mount in volume_mounts or [])


def satisfies(container: k.V1Container, config: SidecarConfig) -> bool:
    """Whether the sidecar container tails the config's file from the config's volume"""
    return is_sidecar_env_available(container.env, config.file) and is_volume_mount_available(
        container.volume_mounts, config.volume
    )


def get_volume_mount(containers: Iterable[k.V1Container], volume_name: str) -> k.V1VolumeMount:
    """Find the first mount of the volume among all containers"""
    for container in containers:
        for volume_mount in container.volume_mounts or []:
            if volume_mount.name == volume_name:
                return volume_mount
    raise VolumeNotFoundError(volume=volume_name)


@dataclass
class ReconcileResult:
    containers: list[k.V1Container]
    volumes: list[k.V1Volume]
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class SidecarReconciler:
    """Bring the tailing sidecars of a Pod in line with the desired configs.

    Non-sidecar containers are never touched. Sidecars with a desired config are kept as they are,
    sidecars without one are dropped along with their host path volume, and a new sidecar is appended
    for each desired config with no sidecar yet.
    """

    logger: Logger
    image: str

    def __init__(self, logger: Logger, image: str):
        self.logger = logger
        self.image = image

    def reconcile(
        self,
        containers: list[k.V1Container],
        volumes: list[k.V1Volume],
        configs: Iterable[SidecarConfig],
        host_path_dir: str,
    ) -> ReconcileResult:
        configs = list(configs)
        kept_containers, dropped_sidecars = self._remove_deleted_sidecars(containers, configs)
        result = ReconcileResult(containers=kept_containers, volumes=[], removed=[c.name for c in dropped_sidecars])

        taken_names = {c.name for c in containers} | {v.name for v in volumes}
        sidecar_id = len([c for c in containers if is_tailing_sidecar(c)])
        new_containers: list[k.V1Container] = []
        new_volumes: list[k.V1Volume] = []

        for config in configs:
            if any(satisfies(c, config) for c in kept_containers + new_containers if is_tailing_sidecar(c)):
                self.logger.info("Tailing sidecar exists, file: '%s', volume: '%s'", config.file, config.volume)
                continue

            try:
                volume_mount = get_volume_mount(containers, config.volume)
            except VolumeNotFoundError as exc:
                self.logger.warning("Skipping config for file '%s': %s", config.file, exc.message)
                continue

            while (SIDECAR_CONTAINER_NAME % sidecar_id) in taken_names or (
                HOST_PATH_VOLUME_NAME % sidecar_id
            ) in taken_names:
                sidecar_id += 1

            container_name = SIDECAR_CONTAINER_NAME % sidecar_id
            volume_name = HOST_PATH_VOLUME_NAME % sidecar_id
            new_volumes.append(self._build_host_path_volume(volume_name, f"{host_path_dir}/{container_name}"))
            new_containers.append(self._build_sidecar(container_name, volume_name, config, volume_mount))
            taken_names.update((container_name, volume_name))
            result.added.append(container_name)
            sidecar_id += 1

        result.containers = kept_containers + new_containers
        result.volumes = self._remove_orphaned_volumes(volumes, dropped_sidecars, result.containers) + new_volumes
        return result

    def _remove_deleted_sidecars(
        self, containers: list[k.V1Container], configs: list[SidecarConfig]
    ) -> tuple[list[k.V1Container], list[k.V1Container]]:
        """Split containers into kept and dropped sidecars.

        A sidecar is kept when a desired config it satisfies exists and no earlier sidecar
        already holds that config.
        """
        kept: list[k.V1Container] = []
        dropped: list[k.V1Container] = []
        held: set[tuple[str, str]] = set()
        for container in containers:
            if not is_tailing_sidecar(container):
                kept.append(container)
                continue
            config = next((config for config in configs if satisfies(container, config)), None)
            if config is None or config.identity in held:
                self.logger.info("Removing tailing sidecar '%s'", container.name)
                dropped.append(container)
                continue
            held.add(config.identity)
            kept.append(container)
        return kept, dropped

    @staticmethod
    def _remove_orphaned_volumes(
        volumes: list[k.V1Volume], dropped_sidecars: list[k.V1Container], containers: list[k.V1Container]
    ) -> list[k.V1Volume]:
        """Drop the host path volumes only mounted by dropped sidecars"""
        dropped_names = {
            volume_mount.name
            for container in dropped_sidecars
            for volume_mount in container.volume_mounts or []
            if _HOST_PATH_VOLUME_NAME_RE.fullmatch(volume_mount.name or "")
        }
        mounted_names = {
            volume_mount.name for container in containers for volume_mount in container.volume_mounts or []
        }
        orphaned = dropped_names - mounted_names
        return [volume for volume in volumes if volume.name not in orphaned or volume.host_path is None]

    @staticmethod
    def _build_host_path_volume(volume_name: str, host_path: str) -> k.V1Volume:
        return k.V1Volume(
            name=volume_name,
            host_path=k.V1HostPathVolumeSource(path=host_path, type=HOST_PATH_TYPE),
        )

    def _build_sidecar(
        self, container_name: str, volume_name: str, config: SidecarConfig, volume_mount: k.V1VolumeMount
    ) -> k.V1Container:
        return k.V1Container(
            image=self.image,
            name=container_name,
            env=[k.V1EnvVar(name=SIDECAR_ENV, value=config.file)],
            volume_mounts=[
                copy.copy(volume_mount),
                k.V1VolumeMount(name=volume_name, mount_path=HOST_PATH_MOUNT_PATH),
            ],
        )
