"""
Audit/event sink for corrective actions taken on virtual clusters.

Every message is logged. Messages that carry a reason other than
EVENT_REASON_NO_EVENT are also recorded as Kubernetes Events on the cluster
resource so they show up in `kubectl describe`. Recording is best-effort: a
failure to write an Event is logged and never changes the outcome of the
operation being reported.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from kubernetes import client

from ..config import get_settings
from ..models import Cluster

logger = logging.getLogger(__name__)

# Log only, no Kubernetes Event
EVENT_REASON_NO_EVENT = ""


class EventRecorder:
    """
    Best-effort audit sink for cluster-scoped messages.

    Args:
        k8s_client: Client used to write Events; None disables Event writing
    """

    def __init__(self, k8s_client=None):
        self.k8s_client = k8s_client
        self.settings = get_settings()

    async def log_info(self, cluster: Cluster, reason: str, message: str) -> None:
        logger.info(f"[{cluster.namespace}/{cluster.name}] {message}")
        await self._record(cluster, "Normal", reason, message)

    async def log_error(
        self,
        cluster: Cluster,
        err: BaseException,
        reason: str,
        message: str
    ) -> None:
        logger.error(f"[{cluster.namespace}/{cluster.name}] {message}: {err}")
        await self._record(cluster, "Warning", reason, f"{message}: {err}")

    async def _record(self, cluster: Cluster, event_type: str, reason: str, message: str) -> None:
        if reason == EVENT_REASON_NO_EVENT or self.k8s_client is None:
            return
        if not self.settings.k8s_events_enabled:
            return

        event = create_event_manifest(
            cluster=cluster,
            event_type=event_type,
            reason=reason,
            message=message,
            component=self.settings.k8s_event_component
        )
        try:
            await self.k8s_client.create_event(event, cluster.namespace)
        except Exception as e:
            logger.warning(f"[EVENTS] Failed to record event for {cluster.namespace}/{cluster.name}: {e}")


def create_event_manifest(
    cluster: Cluster,
    event_type: str,
    reason: str,
    message: str,
    component: str,
    now: Optional[datetime] = None
) -> client.CoreV1Event:
    """
    Create an Event manifest attached to a cluster resource.

    Args:
        cluster: Cluster the event is about
        event_type: "Normal" or "Warning"
        reason: Short CamelCase reason
        message: Human readable message
        component: Reporting component name
        now: Timestamp (default: current UTC time)

    Returns:
        CoreV1Event manifest
    """
    now = now or datetime.now(timezone.utc)
    return client.CoreV1Event(
        metadata=client.V1ObjectMeta(
            generate_name=f"{cluster.name}.",
            namespace=cluster.namespace
        ),
        involved_object=client.V1ObjectReference(
            api_version=cluster.api_version,
            kind=cluster.kind,
            name=cluster.name,
            namespace=cluster.namespace,
            uid=cluster.uid
        ),
        type=event_type,
        reason=reason,
        message=message,
        source=client.V1EventSource(component=component),
        first_timestamp=now,
        last_timestamp=now,
        count=1
    )
