"""
Kubernetes Helpers for StatefulSet Synthesis

Small manifest builders shared by the synthesizer and the reconciler:
- Labels and annotations for StatefulSets and their pods
- Owner references back to the cluster resource
- Security context and lifecycle hook of the app container
- Volume claim templates (filesystem and block mode)
"""

from kubernetes import client
from typing import Dict, List, Optional
import logging

from ....config import get_settings
from ....models import Cluster, Role
from ...catalog import AppCatalog
from .scripts import generate_startup_script
from .volumes import PVC_NAME, block_device_name

logger = logging.getLogger(__name__)

LABEL_DOMAIN = "vcluster.io"
CLUSTER_LABEL = f"{LABEL_DOMAIN}/cluster"
ROLE_LABEL = f"{LABEL_DOMAIN}/role"
APP_ANNOTATION = f"{LABEL_DOMAIN}/app"
APP_CATALOG_ANNOTATION = f"{LABEL_DOMAIN}/app-catalog"


# =============================================================================
# Labels and Annotations
# =============================================================================

def get_statefulset_labels(cluster: Cluster, role: Role) -> Dict[str, str]:
    """
    Get labels for a role's StatefulSet.

    Args:
        cluster: Cluster resource
        role: Role

    Returns:
        Dict of labels
    """
    return {
        "app.kubernetes.io/managed-by": "vcluster-executor",
        CLUSTER_LABEL: cluster.name,
        ROLE_LABEL: role.id,
    }


def get_pod_labels(cluster: Cluster, role: Role) -> Dict[str, str]:
    """Get pod labels (also the StatefulSet selector) for a role."""
    return {
        CLUSTER_LABEL: cluster.name,
        ROLE_LABEL: role.id,
    }


def get_statefulset_annotations(cluster: Cluster, role: Role) -> Dict[str, str]:
    return {
        APP_ANNOTATION: cluster.spec.app,
        APP_CATALOG_ANNOTATION: cluster.spec.app_catalog,
    }


def get_pod_annotations(cluster: Cluster, role: Role) -> Dict[str, str]:
    return {
        APP_ANNOTATION: cluster.spec.app,
        APP_CATALOG_ANNOTATION: cluster.spec.app_catalog,
    }


# =============================================================================
# Owner References
# =============================================================================

def get_owner_references(cluster: Cluster) -> List[client.V1OwnerReference]:
    """
    Get the canonical owner references for objects owned by a cluster.

    The cluster is the controller, and deletion of the cluster waits for
    its owned objects.
    """
    return [
        client.V1OwnerReference(
            api_version=cluster.api_version,
            kind=cluster.kind,
            name=cluster.name,
            uid=cluster.uid,
            controller=True,
            block_owner_deletion=True
        )
    ]


def owner_references_present(
    cluster: Cluster,
    owner_references: Optional[List[client.V1OwnerReference]]
) -> bool:
    """Check whether the cluster appears (by uid) among owner references."""
    for ref in owner_references or []:
        if ref.uid == cluster.uid:
            return True
    return False


# =============================================================================
# App Container
# =============================================================================

def generate_security_context(
    cluster: Cluster,
    catalog: AppCatalog
) -> Optional[client.V1SecurityContext]:
    """
    Create the app container security context.

    Returns:
        Security context adding the app's capabilities, or None if the app
        needs no additional capabilities
    """
    capabilities = catalog.app_capabilities(cluster)
    if not capabilities:
        return None

    return client.V1SecurityContext(
        capabilities=client.V1Capabilities(add=list(capabilities))
    )


def create_startup_lifecycle(cluster: Cluster) -> client.V1Lifecycle:
    """postStart hook adding the cluster service domain to resolv.conf."""
    return client.V1Lifecycle(
        post_start=client.V1LifecycleHandler(
            _exec=client.V1ExecAction(
                command=[
                    "/bin/bash",
                    "-c",
                    generate_startup_script(cluster.status.cluster_service)
                ]
            )
        )
    )


# =============================================================================
# Volume Claim Templates
# =============================================================================

def get_volume_claim_templates(
    role: Role,
    pvc_name: str = PVC_NAME,
    default_block_size: Optional[str] = None
) -> List[client.V1PersistentVolumeClaim]:
    """
    Create the claim templates for a role.

    - One Filesystem-mode template when the role requests storage.
    - One Block-mode template per device when the role requests block storage.

    Args:
        role: Role
        pvc_name: Name of the filesystem claim template
        default_block_size: Block claim size when the role gives none
            (default: settings.default_block_device_size)

    Returns:
        List of V1PersistentVolumeClaim templates (possibly empty)
    """
    templates = []

    if role.storage is not None:
        templates.append(
            client.V1PersistentVolumeClaim(
                metadata=client.V1ObjectMeta(name=pvc_name),
                spec=client.V1PersistentVolumeClaimSpec(
                    access_modes=["ReadWriteOnce"],
                    resources=client.V1VolumeResourceRequirements(
                        requests={"storage": role.storage.size}
                    ),
                    storage_class_name=role.storage.storage_class
                )
            )
        )

    if role.block_storage is not None:
        block_size = (
            role.block_storage.size
            or default_block_size
            or get_settings().default_block_device_size
        )
        for i in range(role.block_storage.num_devices):
            templates.append(
                client.V1PersistentVolumeClaim(
                    metadata=client.V1ObjectMeta(name=block_device_name(i)),
                    spec=client.V1PersistentVolumeClaimSpec(
                        access_modes=["ReadWriteOnce"],
                        resources=client.V1VolumeResourceRequirements(
                            requests={"storage": block_size}
                        ),
                        storage_class_name=role.block_storage.storage_class,
                        volume_mode="Block"
                    )
                )
            )

    return templates
