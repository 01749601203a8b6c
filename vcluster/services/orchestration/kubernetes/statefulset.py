"""
StatefulSet synthesis for the roles of a virtual cluster.

build_statefulset() composes the complete desired StatefulSet for one role
at a given replica count. All catalog lookups happen before any manifest
object is built, so a failing lookup leaves nothing half-constructed.
"""

from kubernetes import client
from typing import List, Optional
import logging

from ....config import get_settings
from ....models import Cluster, NamingScheme, Role, RoleStatus
from ....utils.resource_naming import mung_object_name
from ...catalog import AppCatalog
from .environment import build_env_vars
from .helpers import (
    create_startup_lifecycle,
    generate_security_context,
    get_owner_references,
    get_pod_annotations,
    get_pod_labels,
    get_statefulset_annotations,
    get_statefulset_labels,
    get_volume_claim_templates,
)
from .persist_dirs import default_persist_dirs, resolve_persist_dirs
from .scripts import generate_init_container_launch
from .volumes import (
    PVC_NAME,
    generate_init_volume_mounts,
    generate_volume_devices,
    generate_volume_mounts,
)

logger = logging.getLogger(__name__)

APP_CONTAINER_NAME = "app"
INIT_CONTAINER_NAME = "init"

# uid the init container runs as; it must be able to preserve ownership
ROOT_UID = 0


def create_resource_requirements(role: Role) -> client.V1ResourceRequirements:
    return client.V1ResourceRequirements(
        requests=dict(role.resources.requests) or None,
        limits=dict(role.resources.limits) or None
    )


def get_init_containers(
    role: Role,
    image: str,
    persist_dirs: List[str],
    pvc_name: str = PVC_NAME
) -> List[client.V1Container]:
    """
    Create the init container that populates the persistent volume.

    Empty when the role has no persistent storage.
    """
    if role.storage is None:
        return []

    return [
        client.V1Container(
            name=INIT_CONTAINER_NAME,
            image=image,
            command=["/bin/bash"],
            args=["-c", generate_init_container_launch(persist_dirs)],
            resources=create_resource_requirements(role),
            security_context=client.V1SecurityContext(run_as_user=ROOT_UID),
            volume_mounts=generate_init_volume_mounts(pvc_name)
        )
    ]


def apply_naming(
    metadata: client.V1ObjectMeta,
    cluster: Cluster,
    role: Role,
    role_status: Optional[RoleStatus]
) -> None:
    """
    Set name or generateName on StatefulSet metadata.

    A name recorded in the role status is always reused. Otherwise the
    cluster's naming scheme picks the generateName prefix.
    """
    if role_status is not None and role_status.stateful_set:
        metadata.name = role_status.stateful_set
        return

    if cluster.spec.naming_scheme == NamingScheme.CR_NAME_ROLE:
        metadata.generate_name = mung_object_name(f"{cluster.name}-{role.id}") + "-"
    else:
        metadata.generate_name = get_settings().statefulset_name_prefix


def build_statefulset(
    cluster: Cluster,
    role: Role,
    role_status: Optional[RoleStatus],
    replicas: int,
    catalog: AppCatalog,
    native_systemd_support: Optional[bool] = None
) -> client.V1StatefulSet:
    """
    Compose the StatefulSet implementing a role of a cluster.

    Args:
        cluster: Cluster resource
        role: Role to implement
        role_status: Role status record (None or empty name if never created)
        replicas: Desired replica count
        catalog: App catalog for ports, image, dirs, capabilities
        native_systemd_support: Platform systemd support
            (default: settings.native_systemd_support)

    Returns:
        V1StatefulSet manifest

    Raises:
        Whatever the catalog raises, unchanged
    """
    if native_systemd_support is None:
        native_systemd_support = get_settings().native_systemd_support

    # Catalog lookups
    port_infos = catalog.ports_for_role(cluster, role.id)
    app_persist_dirs = catalog.app_persist_dirs(cluster, role.id)
    setup_info = catalog.app_setup_package_info(cluster, role.id)
    image = catalog.image_for_role(cluster, role.id)
    security_context = generate_security_context(cluster, catalog)
    container_spec = catalog.role_container_spec(cluster, role.id)

    persist_dirs = resolve_persist_dirs(
        default_persist_dirs(setup_info),
        app_persist_dirs,
        app_desc=role.id
    ).dirs

    volume_mounts, volumes = generate_volume_mounts(
        cluster=cluster,
        role=role,
        catalog=catalog,
        native_systemd_support=native_systemd_support,
        persist_dirs=persist_dirs
    )

    pod_labels = get_pod_labels(cluster, role)

    app_container = client.V1Container(
        name=APP_CONTAINER_NAME,
        image=image,
        resources=create_resource_requirements(role),
        lifecycle=create_startup_lifecycle(cluster),
        ports=[
            client.V1ContainerPort(container_port=info.port, name=info.id)
            for info in port_infos
        ] or None,
        volume_mounts=volume_mounts,
        volume_devices=generate_volume_devices(role) or None,
        security_context=security_context,
        env=build_env_vars(role, setup_info),
        tty=container_spec.tty if container_spec else False,
        stdin=container_spec.stdin if container_spec else False
    )

    pod_spec = client.V1PodSpec(
        automount_service_account_token=bool(role.service_account_name),
        init_containers=get_init_containers(role, image, persist_dirs) or None,
        affinity=role.affinity,
        service_account_name=role.service_account_name or None,
        containers=[app_container],
        volumes=volumes
    )

    metadata = client.V1ObjectMeta(
        namespace=cluster.namespace,
        owner_references=get_owner_references(cluster),
        labels=get_statefulset_labels(cluster, role),
        annotations=get_statefulset_annotations(cluster, role)
    )
    apply_naming(metadata, cluster, role, role_status)

    return client.V1StatefulSet(
        api_version="apps/v1",
        kind="StatefulSet",
        metadata=metadata,
        spec=client.V1StatefulSetSpec(
            pod_management_policy="Parallel",
            replicas=replicas,
            service_name=cluster.status.cluster_service,
            selector=client.V1LabelSelector(match_labels=pod_labels),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(
                    labels=pod_labels,
                    annotations=get_pod_annotations(cluster, role)
                ),
                spec=pod_spec
            ),
            volume_claim_templates=get_volume_claim_templates(role) or None
        )
    )
