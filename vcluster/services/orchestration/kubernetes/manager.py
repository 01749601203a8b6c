"""
StatefulSet Manager

Lifecycle operations on the StatefulSet implementing a role of a virtual
cluster: create (at zero replicas), scale, repair ownership, delete.

The outer controller loop decides when these run and never runs two of them
concurrently for the same StatefulSet. Apart from one refetch-and-retry on a
conflicting scale update, every call runs under the single-attempt policy.
Failures are logged with the operation and object they concern and re-raised
unchanged, leaving requeue decisions to the controller loop.
"""

from kubernetes import client
from kubernetes.client.rest import ApiException
from typing import Optional
import logging

from ....config import get_settings
from ....models import Cluster, Role, RoleStatus
from ....utils.retry_config import (
    conflict_retry_policy,
    is_not_found_error,
    no_retry_policy,
)
from ...catalog import AppCatalog
from ...events import EventRecorder, EVENT_REASON_NO_EVENT
from .helpers import get_owner_references, owner_references_present
from .statefulset import build_statefulset

logger = logging.getLogger(__name__)


class StatefulSetManager:
    """
    Creates and reconciles the StatefulSets of virtual cluster roles.

    Args:
        catalog: App catalog used for synthesis
        k8s_client: KubernetesClient (default: the global client)
        events: Audit sink (default: EventRecorder on the same client)
    """

    def __init__(
        self,
        catalog: AppCatalog,
        k8s_client=None,
        events: Optional[EventRecorder] = None
    ):
        self.catalog = catalog
        self._k8s_client = k8s_client
        self.events = events or EventRecorder(k8s_client)
        self.settings = get_settings()

        logger.info("[K8S:MANAGER] StatefulSet manager initialized")

    def _get_k8s_client(self):
        """Lazy import to avoid loading kube config until first use."""
        if self._k8s_client is None:
            from .client import get_k8s_client
            self._k8s_client = get_k8s_client()
            if self.events.k8s_client is None:
                self.events.k8s_client = self._k8s_client
        return self._k8s_client

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create_statefulset(
        self,
        cluster: Cluster,
        role: Role,
        role_status: Optional[RoleStatus] = None,
        native_systemd_support: Optional[bool] = None
    ) -> client.V1StatefulSet:
        """
        Create the zero-replica StatefulSet implementing a role.

        On success the assigned name is recorded in role_status (if given) so
        later reconciliations address the same object.

        Raises:
            Catalog errors from synthesis; ApiException from the create call,
            including 409 AlreadyExists
        """
        statefulset = build_statefulset(
            cluster=cluster,
            role=role,
            role_status=role_status,
            replicas=0,
            catalog=self.catalog,
            native_systemd_support=native_systemd_support
        )

        k8s_client = self._get_k8s_client()
        try:
            async for attempt in no_retry_policy():
                with attempt:
                    created = await k8s_client.create_statefulset(statefulset, cluster.namespace)
        except ApiException as e:
            await self.events.log_error(
                cluster,
                e,
                EVENT_REASON_NO_EVENT,
                f"failed to create statefulset for role {role.id}"
            )
            raise

        if role_status is not None:
            role_status.stateful_set = created.metadata.name

        logger.info(f"[K8S:MANAGER] Role {role.id} -> statefulset {created.metadata.name}")
        return created

    # =========================================================================
    # SCALE
    # =========================================================================

    async def update_statefulset_replicas(
        self,
        cluster: Cluster,
        replicas: int,
        statefulset: client.V1StatefulSet
    ) -> client.V1StatefulSet:
        """
        Set the replica count of an existing StatefulSet.

        If the update is rejected because the object changed since it was
        read, the current object is fetched and the update is retried once.

        Args:
            cluster: Owning cluster
            replicas: Desired replica count
            statefulset: Previously fetched StatefulSet

        Returns:
            The updated StatefulSet

        Raises:
            ApiException: any non-conflict failure, a failed refetch, or a
            second conflict
        """
        k8s_client = self._get_k8s_client()
        name = statefulset.metadata.name
        namespace = statefulset.metadata.namespace
        operation = "update"

        try:
            async for attempt in conflict_retry_policy():
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.info(
                            f"[K8S:MANAGER] Conflict updating statefulset {namespace}/{name}, "
                            f"refetching"
                        )
                        operation = "retrieve"
                        statefulset = await k8s_client.read_statefulset(name, namespace)
                        operation = "update"
                    statefulset.spec.replicas = replicas
                    updated = await k8s_client.replace_statefulset(statefulset)
        except ApiException as e:
            await self.events.log_error(
                cluster,
                e,
                EVENT_REASON_NO_EVENT,
                f"failed to {operation} statefulset {namespace}/{name}"
            )
            raise

        logger.info(f"[K8S:MANAGER] Statefulset {namespace}/{name} scaled to {replicas}")
        return updated

    # =========================================================================
    # DRIFT REPAIR
    # =========================================================================

    async def update_statefulset_non_replicas(
        self,
        cluster: Cluster,
        role: Optional[Role],
        statefulset: client.V1StatefulSet
    ) -> None:
        """
        Reconcile properties other than the replica count.

        Only ownership is checked: if the cluster is missing from the owner
        references, they are reset to the canonical list. Existing references
        are dropped, not merged, since a foreign controller reference left by
        a bad backup/restore would otherwise keep competing with ours.

        Args:
            cluster: Owning cluster
            role: Role spec; None means the role is gone and nothing is done
            statefulset: Current StatefulSet

        Raises:
            ApiException: from the read or the patch
        """
        if role is None:
            return

        if owner_references_present(cluster, statefulset.metadata.owner_references):
            return

        name = statefulset.metadata.name
        namespace = statefulset.metadata.namespace
        await self.events.log_info(
            cluster,
            EVENT_REASON_NO_EVENT,
            f"repairing owner ref on statefulset {name}"
        )

        k8s_client = self._get_k8s_client()
        # "add" replaces the member if present, creates it otherwise
        patch = [
            {
                "op": "add",
                "path": "/metadata/ownerReferences",
                "value": get_owner_references(cluster)
            },
        ]
        try:
            async for attempt in no_retry_policy():
                with attempt:
                    operation = "retrieve"
                    current = await k8s_client.read_statefulset(name, namespace)
                    operation = "patch"
                    await k8s_client.patch_statefulset(
                        current.metadata.name,
                        current.metadata.namespace,
                        patch
                    )
        except ApiException as e:
            await self.events.log_error(
                cluster,
                e,
                EVENT_REASON_NO_EVENT,
                f"failed to {operation} statefulset {namespace}/{name}"
            )
            raise

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete_statefulset(self, namespace: str, name: str) -> None:
        """
        Delete a StatefulSet by identity.

        Raises:
            ApiException: unchanged, including 404 Not Found
        """
        k8s_client = self._get_k8s_client()
        try:
            async for attempt in no_retry_policy():
                with attempt:
                    await k8s_client.delete_statefulset(name, namespace)
        except ApiException as e:
            if is_not_found_error(e):
                logger.warning(f"[K8S:MANAGER] Statefulset {namespace}/{name} not found for deletion")
            else:
                logger.error(f"[K8S:MANAGER] Failed to delete statefulset {namespace}/{name}: {e}")
            raise

