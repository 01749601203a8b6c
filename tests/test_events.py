"""
Tests for the cluster event recorder.

Event writing is best-effort; logging always happens.
"""

import pytest
from datetime import datetime, timezone

from kubernetes.client.rest import ApiException

from vcluster.services.events import (
    EVENT_REASON_NO_EVENT,
    EventRecorder,
    create_event_manifest,
)


def enabled_recorder(k8s_client):
    recorder = EventRecorder(k8s_client)
    recorder.settings = recorder.settings.model_copy(update={"k8s_events_enabled": True})
    return recorder


class TestEventRecorder:

    @pytest.mark.asyncio
    async def test_event_failure_does_not_raise(self, mock_k8s_client, cluster):
        recorder = enabled_recorder(mock_k8s_client)
        mock_k8s_client.create_event.side_effect = ApiException(status=403)

        await recorder.log_info(cluster, "Cluster", "scaled")

        mock_k8s_client.create_event.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_event_reason_only_logs(self, mock_k8s_client, cluster, caplog):
        recorder = enabled_recorder(mock_k8s_client)

        await recorder.log_error(cluster, RuntimeError("boom"), EVENT_REASON_NO_EVENT, "failed")

        mock_k8s_client.create_event.assert_not_called()
        assert "failed: boom" in caplog.text

    @pytest.mark.asyncio
    async def test_warning_event_for_error(self, mock_k8s_client, cluster):
        recorder = enabled_recorder(mock_k8s_client)

        await recorder.log_error(cluster, RuntimeError("boom"), "Role", "failed to scale")

        event, namespace = mock_k8s_client.create_event.call_args.args
        assert namespace == "analytics"
        assert event.type == "Warning"
        assert event.reason == "Role"
        assert event.message == "failed to scale: boom"

    @pytest.mark.asyncio
    async def test_events_disabled(self, mock_k8s_client, cluster):
        recorder = EventRecorder(mock_k8s_client)

        await recorder.log_info(cluster, "Cluster", "scaled")

        mock_k8s_client.create_event.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_client(self, cluster):
        recorder = EventRecorder()
        recorder.settings = recorder.settings.model_copy(update={"k8s_events_enabled": True})

        await recorder.log_info(cluster, "Cluster", "scaled")


class TestEventManifest:

    def test_attached_to_cluster(self, cluster):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        event = create_event_manifest(
            cluster=cluster,
            event_type="Normal",
            reason="Cluster",
            message="scaled",
            component="vcluster-executor",
            now=now
        )

        assert event.metadata.generate_name == "spark."
        assert event.metadata.namespace == "analytics"
        assert event.involved_object.uid == cluster.uid
        assert event.involved_object.kind == "VirtualCluster"
        assert event.source.component == "vcluster-executor"
        assert event.first_timestamp == event.last_timestamp == now
        assert event.count == 1
