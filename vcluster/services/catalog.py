"""
Application Catalog

Defines the lookups the StatefulSet synthesizer makes against the application
definition a virtual cluster was created from: endpoint ports, image,
directories to persist, setup package layout, capabilities, systemd needs and
container TTY/stdin flags.

Every lookup may fail. Failures are raised to the caller unchanged; nothing in
the executor retries or masks them.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging

from ..models import (
    App,
    AppRole,
    Cluster,
    ContainerSpec,
    PortInfo,
    SetupPackage,
)

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Exception raised when an application or role cannot be resolved."""
    pass


class AppCatalog(ABC):
    """
    Abstract base class for application catalog lookups.

    All lookups are keyed by the cluster resource (which names its app) and,
    where the answer is per role, the role id.
    """

    @abstractmethod
    def ports_for_role(self, cluster: Cluster, role_id: str) -> List[PortInfo]:
        """Return the named endpoint ports exposed by members of a role."""
        pass

    @abstractmethod
    def app_persist_dirs(self, cluster: Cluster, role_id: str) -> Optional[List[str]]:
        """Return the app-declared directories to persist, or None if none declared."""
        pass

    @abstractmethod
    def app_setup_package_info(self, cluster: Cluster, role_id: str) -> Optional[SetupPackage]:
        """Return the role's setup package, or None if the role has none."""
        pass

    @abstractmethod
    def image_for_role(self, cluster: Cluster, role_id: str) -> str:
        """Return the container image reference for a role."""
        pass

    @abstractmethod
    def app_capabilities(self, cluster: Cluster) -> List[str]:
        """Return the Linux capabilities the app containers need added."""
        pass

    @abstractmethod
    def systemd_required(self, cluster: Cluster) -> bool:
        """Return whether the app containers run systemd."""
        pass

    @abstractmethod
    def role_container_spec(self, cluster: Cluster, role_id: str) -> Optional[ContainerSpec]:
        """Return TTY/stdin settings for a role, or None if unspecified."""
        pass


class StaticAppCatalog(AppCatalog):
    """
    Catalog backed by application definitions registered in memory.

    Apps are keyed by name; a cluster selects its app through spec.app.
    """

    def __init__(self, apps: Optional[List[App]] = None):
        self.apps: Dict[str, App] = {}
        for app in apps or []:
            self.register(app)

    def register(self, app: App) -> None:
        self.apps[app.name] = app
        logger.debug(f"[CATALOG] Registered app {app.name} ({len(app.roles)} roles)")

    def _get_app(self, cluster: Cluster) -> App:
        app = self.apps.get(cluster.spec.app)
        if app is None:
            raise CatalogError(
                f"app {cluster.spec.app!r} referenced by cluster "
                f"{cluster.namespace}/{cluster.name} not found"
            )
        return app

    def _get_role(self, cluster: Cluster, role_id: str) -> AppRole:
        app = self._get_app(cluster)
        for role in app.roles:
            if role.id == role_id:
                return role
        raise CatalogError(f"role {role_id!r} not defined by app {app.name!r}")

    def ports_for_role(self, cluster: Cluster, role_id: str) -> List[PortInfo]:
        app = self._get_app(cluster)
        role = self._get_role(cluster, role_id)
        ports = []
        for service in app.services:
            if service.id in role.services and service.port is not None:
                ports.append(PortInfo(id=service.id, port=service.port))
        return ports

    def app_persist_dirs(self, cluster: Cluster, role_id: str) -> Optional[List[str]]:
        role = self._get_role(cluster, role_id)
        if role.persist_dirs is None:
            return None
        return list(role.persist_dirs)

    def app_setup_package_info(self, cluster: Cluster, role_id: str) -> Optional[SetupPackage]:
        return self._get_role(cluster, role_id).setup_package

    def image_for_role(self, cluster: Cluster, role_id: str) -> str:
        app = self._get_app(cluster)
        role = self._get_role(cluster, role_id)
        image = role.image_repo_tag or app.default_image_repo_tag
        if not image:
            raise CatalogError(f"no image specified for role {role_id!r} of app {app.name!r}")
        return image

    def app_capabilities(self, cluster: Cluster) -> List[str]:
        return list(self._get_app(cluster).capabilities)

    def systemd_required(self, cluster: Cluster) -> bool:
        return self._get_app(cluster).systemd_required

    def role_container_spec(self, cluster: Cluster, role_id: str) -> Optional[ContainerSpec]:
        return self._get_role(cluster, role_id).container_spec
