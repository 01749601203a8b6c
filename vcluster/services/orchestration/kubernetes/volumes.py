"""
Volume and mount composition for StatefulSet members.

Builds the volumes of a role's pod template and the matching mounts/devices
of the app container:

- persistent claim: one claim (PVC_NAME), one subPath mount per persisted dir
- block devices: one block-mode claim per requested device
- tmpfs: /tmp, /run and /run/lock backed by size-capped memory volumes
- secret: optional, from the role's secret declaration
- volume projections: pre-existing claims mounted where the role asks
- systemd: cgroup host-path mounts when the app runs systemd and the
  platform has no native support for it
"""

from kubernetes import client
from typing import List, Optional, Sequence, Tuple
import logging

from ....config import get_settings
from ....models import Cluster, Role, SecretSpec, VolumeProjection
from ...catalog import AppCatalog

logger = logging.getLogger(__name__)


# Name of the persistent claim template (and of the volume in each pod)
PVC_NAME = "p"

# Block-mode claim names are BLOCK_PVC_NAME_PREFIX + device index
BLOCK_PVC_NAME_PREFIX = "block-pvc-"

# Where the init container sees the persistent volume
INIT_MOUNT_PATH = "/mnt"

# (volume name, mount path) of the memory-backed scratch volumes
TMPFS_VOLUMES: Tuple[Tuple[str, str], ...] = (
    ("tmpfs-tmp", "/tmp"),
    ("tmpfs-run", "/run"),
    ("tmpfs-run-lock", "/run/lock"),
)

CGROUP_FS_VOLUME_NAME = "cgroupfs"
CGROUP_FS_PATH = "/sys/fs/cgroup"
SYSTEMD_FS_VOLUME_NAME = "systemd"
SYSTEMD_FS_PATH = "/sys/fs/cgroup/systemd"

SECRET_VOLUME_PREFIX = "secret-vol-"
PROJECTED_VOLUME_PREFIX = "projected-vol-"


# =============================================================================
# Persistent Claim
# =============================================================================

def generate_claim_mounts(
    persist_dirs: Sequence[str],
    pvc_name: str = PVC_NAME
) -> List[client.V1VolumeMount]:
    """
    Create one mount per persisted directory, all from the same claim.

    The subPath is the directory without its leading "/", so every
    directory gets its own subtree on the shared volume.
    """
    return [
        client.V1VolumeMount(
            name=pvc_name,
            mount_path=folder,
            read_only=False,
            sub_path=folder[1:]
        )
        for folder in persist_dirs
    ]


def generate_init_volume_mounts(pvc_name: str = PVC_NAME) -> List[client.V1VolumeMount]:
    """Mount the whole persistent volume into the init container."""
    return [
        client.V1VolumeMount(
            name=pvc_name,
            mount_path=INIT_MOUNT_PATH,
            read_only=False
        )
    ]


# =============================================================================
# Block Devices
# =============================================================================

def block_device_name(index: int) -> str:
    return f"{BLOCK_PVC_NAME_PREFIX}{index}"


def generate_volume_devices(role: Role) -> List[client.V1VolumeDevice]:
    """Expose each block-mode claim as a raw device at <path><index>."""
    if role.block_storage is None:
        return []

    return [
        client.V1VolumeDevice(
            name=block_device_name(i),
            device_path=f"{role.block_storage.path}{i}"
        )
        for i in range(role.block_storage.num_devices)
    ]


# =============================================================================
# tmpfs, Secret, Projections, systemd
# =============================================================================

def generate_tmpfs_support(
    size_limit: Optional[str] = None
) -> Tuple[List[client.V1VolumeMount], List[client.V1Volume]]:
    """Back /tmp, /run and /run/lock with memory volumes of limited size."""
    size_limit = size_limit or get_settings().tmpfs_volume_size

    volume_mounts = [
        client.V1VolumeMount(name=name, mount_path=path)
        for name, path in TMPFS_VOLUMES
    ]
    volumes = [
        client.V1Volume(
            name=name,
            empty_dir=client.V1EmptyDirVolumeSource(
                medium="Memory",
                size_limit=size_limit
            )
        )
        for name, _ in TMPFS_VOLUMES
    ]
    return volume_mounts, volumes


def generate_secret_volume(
    secret: Optional[SecretSpec]
) -> Tuple[List[client.V1VolumeMount], List[client.V1Volume]]:
    """Mount the role's secret, if it declares one."""
    if secret is None:
        return [], []

    volume_name = f"{SECRET_VOLUME_PREFIX}{secret.name}"
    return [
        client.V1VolumeMount(
            name=volume_name,
            mount_path=secret.mount_path,
            read_only=secret.read_only
        )
    ], [
        client.V1Volume(
            name=volume_name,
            secret=client.V1SecretVolumeSource(
                secret_name=secret.name,
                default_mode=secret.default_mode
            )
        )
    ]


def generate_volume_projection_mounts(
    index: int,
    projection: VolumeProjection
) -> Tuple[List[client.V1VolumeMount], List[client.V1Volume]]:
    """Mount an existing claim; the volume name comes from its position."""
    volume_name = f"{PROJECTED_VOLUME_PREFIX}{index}"
    return [
        client.V1VolumeMount(
            name=volume_name,
            mount_path=projection.mount_path,
            read_only=projection.read_only
        )
    ], [
        client.V1Volume(
            name=volume_name,
            persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(
                claim_name=projection.pvc_name,
                read_only=projection.read_only
            )
        )
    ]


def generate_systemd_support() -> Tuple[List[client.V1VolumeMount], List[client.V1Volume]]:
    """Mount the host cgroup hierarchy so systemd can run in the container."""
    volume_mounts = [
        client.V1VolumeMount(
            name=CGROUP_FS_VOLUME_NAME,
            mount_path=CGROUP_FS_PATH,
            read_only=True
        ),
        client.V1VolumeMount(
            name=SYSTEMD_FS_VOLUME_NAME,
            mount_path=SYSTEMD_FS_PATH
        ),
    ]
    volumes = [
        client.V1Volume(
            name=CGROUP_FS_VOLUME_NAME,
            host_path=client.V1HostPathVolumeSource(path=CGROUP_FS_PATH)
        ),
        client.V1Volume(
            name=SYSTEMD_FS_VOLUME_NAME,
            host_path=client.V1HostPathVolumeSource(path=SYSTEMD_FS_PATH)
        ),
    ]
    return volume_mounts, volumes


# =============================================================================
# All Volumes for a Role
# =============================================================================

def generate_volume_mounts(
    cluster: Cluster,
    role: Role,
    catalog: AppCatalog,
    native_systemd_support: bool,
    persist_dirs: Sequence[str],
    pvc_name: str = PVC_NAME
) -> Tuple[List[client.V1VolumeMount], List[client.V1Volume]]:
    """
    Generate all volumes and app container mounts for members of a role.

    Claim mounts are only produced when the role requests persistent
    storage; the claim itself comes from the StatefulSet's claim templates,
    so it has no entry in the returned volume list.

    Args:
        cluster: Cluster resource
        role: Role being synthesized
        catalog: App catalog (for the systemd requirement)
        native_systemd_support: Whether the platform supports systemd natively
        persist_dirs: Resolved directories to persist
        pvc_name: Claim template name

    Returns:
        (volume_mounts, volumes)

    Raises:
        Whatever the catalog raises, unchanged
    """
    volume_mounts: List[client.V1VolumeMount] = []
    volumes: List[client.V1Volume] = []

    if role.storage is not None:
        volume_mounts.extend(generate_claim_mounts(persist_dirs, pvc_name))

    tmpfs_mounts, tmpfs_volumes = generate_tmpfs_support()
    volume_mounts.extend(tmpfs_mounts)
    volumes.extend(tmpfs_volumes)

    secret_mounts, secret_volumes = generate_secret_volume(role.secret)
    volume_mounts.extend(secret_mounts)
    volumes.extend(secret_volumes)

    for index, projection in enumerate(role.volume_projections):
        projection_mounts, projection_volumes = generate_volume_projection_mounts(index, projection)
        volume_mounts.extend(projection_mounts)
        volumes.extend(projection_volumes)

    if catalog.systemd_required(cluster) and not native_systemd_support:
        logger.debug(f"[K8S] Adding cgroup mounts for role {role.id} (no native systemd support)")
        systemd_mounts, systemd_volumes = generate_systemd_support()
        volume_mounts.extend(systemd_mounts)
        volumes.extend(systemd_volumes)

    return volume_mounts, volumes
