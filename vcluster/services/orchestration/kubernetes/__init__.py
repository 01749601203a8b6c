"""
Kubernetes Orchestration Module - StatefulSets for Virtual Cluster Roles

This module contains all Kubernetes-specific code of the executor:
- KubernetesClient: Low-level Kubernetes API interactions
- persist_dirs: Which directories go on persistent storage
- volumes / scripts / environment / helpers: Manifest building blocks
- build_statefulset: Complete StatefulSet for one role
- StatefulSetManager: Create / scale / repair / delete

Persistent Storage Pattern:
1. Each role gets one claim template; every persisted dir is a subPath mount
2. On first start an init container copies the dirs from the image to the claim
3. A marker file on the claim keeps later starts from copying again
"""

from .client import KubernetesClient, get_k8s_client
from .persist_dirs import (
    DEFAULT_MOUNT_FOLDERS,
    APP_CONFIG_DEFAULT_MOUNT_FOLDERS,
    APP_CONFIG_LEGACY_DEFAULT_MOUNT_FOLDERS,
    PersistDirResolution,
    SkippedDir,
    default_persist_dirs,
    resolve_persist_dirs,
)
from .volumes import generate_volume_mounts, generate_volume_devices
from .scripts import generate_init_container_launch, generate_startup_script
from .environment import build_env_vars
from .helpers import (
    get_owner_references,
    owner_references_present,
    get_volume_claim_templates,
)
from .statefulset import build_statefulset
from .manager import StatefulSetManager

__all__ = [
    # Client
    "KubernetesClient",
    "get_k8s_client",
    # Persisted directories
    "DEFAULT_MOUNT_FOLDERS",
    "APP_CONFIG_DEFAULT_MOUNT_FOLDERS",
    "APP_CONFIG_LEGACY_DEFAULT_MOUNT_FOLDERS",
    "PersistDirResolution",
    "SkippedDir",
    "default_persist_dirs",
    "resolve_persist_dirs",
    # Manifest helpers
    "generate_volume_mounts",
    "generate_volume_devices",
    "generate_init_container_launch",
    "generate_startup_script",
    "build_env_vars",
    "get_owner_references",
    "owner_references_present",
    "get_volume_claim_templates",
    # Synthesis and reconciliation
    "build_statefulset",
    "StatefulSetManager",
]
