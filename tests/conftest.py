"""
Test configuration and fixtures for pytest.

Fixtures include: a virtual cluster with a storage-backed role, an app
catalog describing it, and a mocked Kubernetes client.
"""

import sys
import os
from pathlib import Path
import pytest
from unittest.mock import AsyncMock, Mock

# Add the project root to sys.path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))


def pytest_configure(config):
    """
    Pytest hook called before test collection.
    Sets up test environment variables and registers custom markers.
    """
    # Set test environment variables BEFORE any settings are read
    os.environ["K8S_EVENTS_ENABLED"] = "false"
    os.environ["NATIVE_SYSTEMD_SUPPORT"] = "false"
    os.environ["TMPFS_VOLUME_SIZE"] = "20Gi"
    os.environ["DEFAULT_BLOCK_DEVICE_SIZE"] = "1Gi"

    # Import and clear settings cache after env vars are set
    from vcluster.config import get_settings
    get_settings.cache_clear()

    # Register custom markers
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "kubernetes: mark test as requiring Kubernetes")


@pytest.fixture
def cluster():
    """Create a virtual cluster resource with one storage-backed role."""
    from vcluster.models import Cluster, ClusterSpec, ClusterStatus, Role, StorageSpec

    return Cluster(
        name="spark",
        namespace="analytics",
        uid="0b8d6c8e-5d6f-4a43-9a55-2b1f7f3c1a10",
        spec=ClusterSpec(
            app="spark-app",
            roles=[
                Role(
                    id="worker",
                    members=3,
                    storage=StorageSpec(size="10Gi", storage_class="standard"),
                )
            ],
        ),
        status=ClusterStatus(cluster_service="kdhs-spark"),
    )


@pytest.fixture
def role(cluster):
    """The cluster's worker role."""
    return cluster.spec.roles[0]


@pytest.fixture
def app():
    """App definition matching the cluster fixture."""
    from vcluster.models import App, AppRole, AppService

    return App(
        name="spark-app",
        default_image_repo_tag="registry.example.com/spark:3.5",
        services=[
            AppService(id="ssh", port=22),
            AppService(id="spark-ui", port=8080),
            AppService(id="internal"),
        ],
        roles=[
            AppRole(id="worker", services=["ssh", "spark-ui", "internal"], persist_dirs=["/home"]),
            AppRole(id="edge", services=["ssh"]),
        ],
    )


@pytest.fixture
def catalog(app):
    """Static catalog holding the app fixture."""
    from vcluster.services.catalog import StaticAppCatalog

    return StaticAppCatalog([app])


@pytest.fixture
def mock_k8s_client():
    """Create a mock Kubernetes client."""
    k8s_client = Mock()
    k8s_client.create_statefulset = AsyncMock()
    k8s_client.read_statefulset = AsyncMock()
    k8s_client.replace_statefulset = AsyncMock()
    k8s_client.patch_statefulset = AsyncMock()
    k8s_client.delete_statefulset = AsyncMock()
    k8s_client.create_event = AsyncMock()
    return k8s_client
