"""
Unit tests for volume and mount composition.
"""

import pytest
from unittest.mock import Mock

from kubernetes import client

from vcluster.models import (
    BlockStorageSpec,
    Role,
    SecretSpec,
    VolumeProjection,
)
from vcluster.services.catalog import CatalogError
from vcluster.services.orchestration.kubernetes.volumes import (
    CGROUP_FS_PATH,
    PVC_NAME,
    SYSTEMD_FS_PATH,
    generate_claim_mounts,
    generate_init_volume_mounts,
    generate_secret_volume,
    generate_tmpfs_support,
    generate_volume_devices,
    generate_volume_mounts,
)


def _mounts_by_path(mounts):
    return {m.mount_path: m for m in mounts}


class TestClaimMounts:
    """Persisted dirs share one claim through subPaths."""

    def test_sub_path_strips_leading_slash(self):
        mounts = generate_claim_mounts(["/etc", "/usr/local/bin"])
        assert [m.sub_path for m in mounts] == ["etc", "usr/local/bin"]
        assert [m.mount_path for m in mounts] == ["/etc", "/usr/local/bin"]
        assert {m.name for m in mounts} == {PVC_NAME}
        assert not any(m.read_only for m in mounts)

    def test_init_mount(self):
        (mount,) = generate_init_volume_mounts()
        assert mount.name == PVC_NAME
        assert mount.mount_path == "/mnt"
        assert mount.sub_path is None


class TestBlockDevices:

    def test_devices_named_and_numbered(self):
        role = Role(id="r", block_storage=BlockStorageSpec(num_devices=3, path="/dev/xvd"))
        devices = generate_volume_devices(role)
        assert [(d.name, d.device_path) for d in devices] == [
            ("block-pvc-0", "/dev/xvd0"),
            ("block-pvc-1", "/dev/xvd1"),
            ("block-pvc-2", "/dev/xvd2"),
        ]

    def test_no_block_storage(self):
        assert generate_volume_devices(Role(id="r")) == []


class TestTmpfs:

    def test_three_memory_volumes(self):
        mounts, volumes = generate_tmpfs_support()
        assert [m.mount_path for m in mounts] == ["/tmp", "/run", "/run/lock"]
        assert [v.name for v in volumes] == [m.name for m in mounts]
        for volume in volumes:
            assert volume.empty_dir.medium == "Memory"
            assert volume.empty_dir.size_limit == "20Gi"

    def test_explicit_size(self):
        _, volumes = generate_tmpfs_support("1Gi")
        assert {v.empty_dir.size_limit for v in volumes} == {"1Gi"}


class TestSecretVolume:

    def test_no_secret(self):
        assert generate_secret_volume(None) == ([], [])

    def test_secret(self):
        secret = SecretSpec(name="tls-certs", mount_path="/etc/certs", read_only=True, default_mode=0o400)
        (mount,), (volume,) = generate_secret_volume(secret)
        assert mount.name == volume.name == "secret-vol-tls-certs"
        assert mount.mount_path == "/etc/certs"
        assert mount.read_only is True
        assert volume.secret.secret_name == "tls-certs"
        assert volume.secret.default_mode == 0o400


class TestGenerateVolumeMounts:
    """Composition of all volumes for a role."""

    def test_storage_role(self, cluster, role, catalog):
        mounts, volumes = generate_volume_mounts(
            cluster, role, catalog, native_systemd_support=False, persist_dirs=["/etc", "/home"]
        )
        claim_mounts = [m for m in mounts if m.name == PVC_NAME]
        assert [m.sub_path for m in claim_mounts] == ["etc", "home"]
        # The claim comes from the claim templates, not from pod volumes
        assert PVC_NAME not in {v.name for v in volumes}
        assert {"/tmp", "/run", "/run/lock"} <= set(_mounts_by_path(mounts))

    def test_no_storage_has_tmpfs_only(self, cluster, catalog):
        role = Role(id="worker")
        mounts, volumes = generate_volume_mounts(
            cluster, role, catalog, native_systemd_support=False, persist_dirs=["/etc"]
        )
        assert [m.mount_path for m in mounts] == ["/tmp", "/run", "/run/lock"]
        assert len(volumes) == 3

    def test_projections_named_by_position(self, cluster, catalog):
        role = Role(
            id="worker",
            volume_projections=[
                VolumeProjection(pvc_name="datasets", mount_path="/data", read_only=True),
                VolumeProjection(pvc_name="scratch", mount_path="/scratch"),
            ],
        )
        mounts, volumes = generate_volume_mounts(
            cluster, role, catalog, native_systemd_support=False, persist_dirs=[]
        )
        by_path = _mounts_by_path(mounts)
        assert by_path["/data"].name == "projected-vol-0"
        assert by_path["/data"].read_only is True
        assert by_path["/scratch"].name == "projected-vol-1"
        claims = {v.name: v.persistent_volume_claim for v in volumes if v.persistent_volume_claim}
        assert claims["projected-vol-0"].claim_name == "datasets"
        assert claims["projected-vol-0"].read_only is True
        assert claims["projected-vol-1"].claim_name == "scratch"

    @pytest.mark.parametrize("required,native,expected", [
        (True, False, True),
        (True, True, False),
        (False, False, False),
        (False, True, False),
    ])
    def test_systemd_support_branch(self, cluster, role, app, required, native, expected):
        from vcluster.services.catalog import StaticAppCatalog

        app.systemd_required = required
        catalog = StaticAppCatalog([app])
        mounts, volumes = generate_volume_mounts(
            cluster, role, catalog, native_systemd_support=native, persist_dirs=["/etc"]
        )
        paths = set(_mounts_by_path(mounts))
        assert (CGROUP_FS_PATH in paths) is expected
        assert (SYSTEMD_FS_PATH in paths) is expected
        if expected:
            cgroup = _mounts_by_path(mounts)[CGROUP_FS_PATH]
            assert cgroup.read_only is True
            host_paths = {v.host_path.path for v in volumes if v.host_path}
            assert host_paths == {CGROUP_FS_PATH, SYSTEMD_FS_PATH}

    def test_catalog_failure_propagates(self, cluster, role):
        catalog = Mock()
        catalog.systemd_required.side_effect = CatalogError("app not found")

        with pytest.raises(CatalogError, match="app not found"):
            generate_volume_mounts(cluster, role, catalog, native_systemd_support=False, persist_dirs=[])

        catalog.systemd_required.assert_called_once_with(cluster)

    def test_types(self, cluster, role, catalog):
        mounts, volumes = generate_volume_mounts(
            cluster, role, catalog, native_systemd_support=False, persist_dirs=["/etc"]
        )
        assert all(isinstance(m, client.V1VolumeMount) for m in mounts)
        assert all(isinstance(v, client.V1Volume) for v in volumes)
