# pylint: disable=redefined-outer-name
import logging

import pytest
from kubernetes import client as k

from tailing_sidecar.entities.sidecar_config import SidecarConfig
from tailing_sidecar.services.sidecar_reconciler import (
    HOST_PATH_MOUNT_PATH,
    SIDECAR_ENV,
    SidecarReconciler,
    is_tailing_sidecar,
)

_IMAGE = "sumologic/tailing-sidecar:test"
_HOST_PATH_DIR = "/var/log/tailing-sidecar-fluentbit/default/app-pod"
_APP_LOG = SidecarConfig(file="/var/log/app.log", volume="app-data")
_ERR_LOG = SidecarConfig(file="/var/log/err.log", volume="app-data")


@pytest.fixture()
def reconciler(logger: logging.Logger) -> SidecarReconciler:
    return SidecarReconciler(logger, _IMAGE)


def _app_container(name: str = "app") -> k.V1Container:
    return k.V1Container(
        name=name, image="busybox", volume_mounts=[k.V1VolumeMount(name="app-data", mount_path="/var/log")]
    )


def _app_volume() -> k.V1Volume:
    return k.V1Volume(name="app-data", empty_dir=k.V1EmptyDirVolumeSource())


def _sidecar_names(containers: list[k.V1Container]) -> list[str]:
    return [c.name for c in containers if is_tailing_sidecar(c)]


def test_adds_sidecar_and_host_path_volume(reconciler: SidecarReconciler):
    result = reconciler.reconcile([_app_container()], [_app_volume()], [_APP_LOG], _HOST_PATH_DIR)

    assert [c.name for c in result.containers] == ["app", "tailing-sidecar0"]
    sidecar = result.containers[1]
    assert sidecar.image == _IMAGE
    assert [(env.name, env.value) for env in sidecar.env] == [(SIDECAR_ENV, "/var/log/app.log")]
    assert [(m.name, m.mount_path) for m in sidecar.volume_mounts] == [
        ("app-data", "/var/log"),
        ("volume-sidecar0", HOST_PATH_MOUNT_PATH),
    ]
    assert [v.name for v in result.volumes] == ["app-data", "volume-sidecar0"]
    host_path = result.volumes[1].host_path
    assert host_path.path == f"{_HOST_PATH_DIR}/tailing-sidecar0"
    assert host_path.type == "DirectoryOrCreate"
    assert result.added == ["tailing-sidecar0"] and not result.removed


def test_reused_mount_is_a_copy(reconciler: SidecarReconciler):
    app = _app_container()
    result = reconciler.reconcile([app], [_app_volume()], [_APP_LOG], _HOST_PATH_DIR)
    result.containers[1].volume_mounts[0].read_only = True
    assert app.volume_mounts[0].read_only is None


def test_reconcile_is_idempotent(reconciler: SidecarReconciler):
    first = reconciler.reconcile([_app_container()], [_app_volume()], [_APP_LOG, _ERR_LOG], _HOST_PATH_DIR)
    second = reconciler.reconcile(first.containers, first.volumes, [_ERR_LOG, _APP_LOG], _HOST_PATH_DIR)

    assert not second.changed
    assert [c.name for c in second.containers] == [c.name for c in first.containers]
    assert [v.name for v in second.volumes] == [v.name for v in first.volumes]


def test_removes_sidecar_without_config(reconciler: SidecarReconciler):
    first = reconciler.reconcile([_app_container()], [_app_volume()], [_APP_LOG, _ERR_LOG], _HOST_PATH_DIR)
    second = reconciler.reconcile(first.containers, first.volumes, [_ERR_LOG], _HOST_PATH_DIR)

    assert [c.name for c in second.containers] == ["app", "tailing-sidecar1"]
    assert [v.name for v in second.volumes] == ["app-data", "volume-sidecar1"]
    assert second.removed == ["tailing-sidecar0"] and not second.added


def test_removes_every_sidecar_when_no_config(reconciler: SidecarReconciler):
    first = reconciler.reconcile([_app_container()], [_app_volume()], [_APP_LOG], _HOST_PATH_DIR)
    second = reconciler.reconcile(first.containers, first.volumes, [], _HOST_PATH_DIR)

    assert [c.name for c in second.containers] == ["app"]
    assert [v.name for v in second.volumes] == ["app-data"]


def test_unresolvable_volume_is_skipped(reconciler: SidecarReconciler, caplog):
    missing = SidecarConfig(file="/var/log/other.log", volume="missing-vol")
    with caplog.at_level(logging.WARNING):
        result = reconciler.reconcile([_app_container()], [_app_volume()], [missing, _APP_LOG], _HOST_PATH_DIR)

    # The skipped config does not consume an identifier
    assert _sidecar_names(result.containers) == ["tailing-sidecar0"]
    assert result.containers[1].env[0].value == "/var/log/app.log"
    assert "Volume was not found, volume: missing-vol" in caplog.text


def test_identifiers_are_unique_and_above_existing_count(reconciler: SidecarReconciler):
    first = reconciler.reconcile([_app_container()], [_app_volume()], [_APP_LOG, _ERR_LOG], _HOST_PATH_DIR)
    # tailing-sidecar0 goes away, a single sidecar (tailing-sidecar1) survives
    second = reconciler.reconcile(first.containers, first.volumes, [_ERR_LOG], _HOST_PATH_DIR)
    other = SidecarConfig(file="/var/log/other.log", volume="app-data")
    third = reconciler.reconcile(second.containers, second.volumes, [_ERR_LOG, _APP_LOG, other], _HOST_PATH_DIR)

    assert _sidecar_names(third.containers) == ["tailing-sidecar1", "tailing-sidecar2", "tailing-sidecar3"]
    assert [v.name for v in third.volumes] == ["app-data", "volume-sidecar1", "volume-sidecar2", "volume-sidecar3"]


def test_duplicate_configs_get_one_sidecar(reconciler: SidecarReconciler):
    result = reconciler.reconcile([_app_container()], [_app_volume()], [_APP_LOG, _APP_LOG], _HOST_PATH_DIR)
    assert _sidecar_names(result.containers) == ["tailing-sidecar0"]


def test_duplicate_sidecars_are_collapsed(reconciler: SidecarReconciler):
    first = reconciler.reconcile([_app_container()], [_app_volume()], [_APP_LOG], _HOST_PATH_DIR)
    duplicate = k.V1Container(
        name="tailing-sidecar5",
        image=_IMAGE,
        env=[k.V1EnvVar(name=SIDECAR_ENV, value="/var/log/app.log")],
        volume_mounts=[k.V1VolumeMount(name="app-data", mount_path="/var/log")],
    )
    second = reconciler.reconcile(first.containers + [duplicate], first.volumes, [_APP_LOG], _HOST_PATH_DIR)

    assert _sidecar_names(second.containers) == ["tailing-sidecar0"]
    assert second.removed == ["tailing-sidecar5"]


def test_other_containers_are_untouched(reconciler: SidecarReconciler):
    lookalike = _app_container("tailing-sidecar-app")
    init_like = k.V1Container(name="worker", image="busybox")
    result = reconciler.reconcile([lookalike, init_like], [_app_volume()], [], _HOST_PATH_DIR)

    assert result.containers[0] is lookalike and result.containers[1] is init_like
    assert not result.changed


def test_sidecar_matching_several_configs_is_kept_once(reconciler: SidecarReconciler):
    first = reconciler.reconcile([_app_container()], [_app_volume()], [_APP_LOG], _HOST_PATH_DIR)
    second = reconciler.reconcile(first.containers, first.volumes, [_APP_LOG, _APP_LOG], _HOST_PATH_DIR)

    assert [c.name for c in second.containers] == ["app", "tailing-sidecar0"]
    assert [v.name for v in second.volumes] == ["app-data", "volume-sidecar0"]
    assert not second.changed
