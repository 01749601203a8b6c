"""
Kubernetes Client for StatefulSet Reconciliation

This module provides the thin interface to the Kubernetes API used by the
StatefulSet reconciler: create/read/replace/patch/delete keyed by
namespace + name, plus Event creation for the audit sink.

Errors are ApiException instances, raised unmodified. Use the predicates in
vcluster.utils.retry_config to tell conflicts and already-exists apart.
"""

from kubernetes import client, config
from kubernetes.client.rest import ApiException
import logging
import asyncio
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class KubernetesClient:
    """
    Manages StatefulSets (and their Events) in the Kubernetes API.

    Blocking kubernetes-client calls run in a worker thread so callers can
    await them; cancellation of the awaiting task is the only deadline.
    """

    def __init__(self, api_client: Optional[client.ApiClient] = None):
        """Initialize Kubernetes client with in-cluster or kubeconfig."""
        if api_client is None:
            try:
                # Try in-cluster config first (for production)
                config.load_incluster_config()
                logger.info("Loaded in-cluster Kubernetes configuration")
            except config.ConfigException:
                try:
                    # Fall back to kubeconfig (for development)
                    config.load_kube_config()
                    logger.info("Loaded kubeconfig for development")
                except config.ConfigException as e:
                    logger.error(f"Failed to load Kubernetes config: {e}")
                    raise RuntimeError("Cannot load Kubernetes configuration") from e

        # Initialize API clients
        self.apps_v1 = client.AppsV1Api(api_client)
        self.core_v1 = client.CoreV1Api(api_client)

    # =========================================================================
    # STATEFULSET LIFECYCLE
    # =========================================================================

    async def create_statefulset(
        self,
        statefulset: client.V1StatefulSet,
        namespace: str
    ) -> client.V1StatefulSet:
        """
        Create a StatefulSet.

        Unlike deployments, an existing StatefulSet is NOT updated here: a 409
        is raised to the caller, since the reconciler must not silently adopt
        an object it did not record.

        Returns:
            The created object, with any generated name filled in
        """
        created = await asyncio.to_thread(
            self.apps_v1.create_namespaced_stateful_set,
            namespace=namespace,
            body=statefulset
        )
        logger.info(f"[K8S] ✅ Created statefulset: {namespace}/{created.metadata.name}")
        return created

    async def read_statefulset(self, name: str, namespace: str) -> client.V1StatefulSet:
        """Read the current state of a StatefulSet."""
        return await asyncio.to_thread(
            self.apps_v1.read_namespaced_stateful_set,
            name=name,
            namespace=namespace
        )

    async def replace_statefulset(self, statefulset: client.V1StatefulSet) -> client.V1StatefulSet:
        """
        Replace (update) a StatefulSet.

        The object's metadata.resourceVersion is sent along, so a stale object
        is rejected with a 409 Conflict.
        """
        name = statefulset.metadata.name
        namespace = statefulset.metadata.namespace
        updated = await asyncio.to_thread(
            self.apps_v1.replace_namespaced_stateful_set,
            name=name,
            namespace=namespace,
            body=statefulset
        )
        logger.info(f"[K8S] ✅ Updated statefulset: {namespace}/{name}")
        return updated

    async def patch_statefulset(
        self,
        name: str,
        namespace: str,
        body: Union[List[Dict[str, Any]], Dict[str, Any]]
    ) -> client.V1StatefulSet:
        """
        Patch a StatefulSet.

        A list body is sent as a JSON patch (RFC 6902); a dict body as a
        strategic merge patch.
        """
        patched = await asyncio.to_thread(
            self.apps_v1.patch_namespaced_stateful_set,
            name=name,
            namespace=namespace,
            body=body
        )
        logger.info(f"[K8S] ✅ Patched statefulset: {namespace}/{name}")
        return patched

    async def delete_statefulset(self, name: str, namespace: str) -> None:
        """Delete a StatefulSet. A missing object is an error (404)."""
        await asyncio.to_thread(
            self.apps_v1.delete_namespaced_stateful_set,
            name=name,
            namespace=namespace
        )
        logger.info(f"[K8S] Deleted statefulset: {namespace}/{name}")

    # =========================================================================
    # EVENTS
    # =========================================================================

    async def create_event(self, event: client.CoreV1Event, namespace: str) -> None:
        """Create an Event."""
        await asyncio.to_thread(
            self.core_v1.create_namespaced_event,
            namespace=namespace,
            body=event
        )


# Global instance - lazily initialized
_k8s_client_instance: Optional[KubernetesClient] = None


def get_k8s_client() -> KubernetesClient:
    """Get or create the global Kubernetes client instance."""
    global _k8s_client_instance
    if _k8s_client_instance is None:
        _k8s_client_instance = KubernetesClient()
    return _k8s_client_instance


__all__ = ["KubernetesClient", "get_k8s_client", "ApiException"]
