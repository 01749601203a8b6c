from enum import Enum
from pydantic import BaseModel, Field, field_validator
from kubernetes.utils import parse_quantity
from typing import Optional, List, Dict, Any


def _validate_quantity(v):
    if v is not None:
        try:
            parse_quantity(v)
        except ValueError:
            raise ValueError(f'invalid resource quantity: {v!r}')
    return v


# Virtual Cluster Schemas

class NamingScheme(str, Enum):
    CR_NAME_ROLE = "CrNameRole"  # <cluster>-<role>-<random>
    UID = "UID"  # <prefix><random>

class ResourceSpec(BaseModel):
    requests: Dict[str, str] = Field(default_factory=dict)
    limits: Dict[str, str] = Field(default_factory=dict)

class StorageSpec(BaseModel):
    size: str
    storage_class: Optional[str] = None

    @field_validator('size')
    @classmethod
    def validate_size(cls, v):
        return _validate_quantity(v)

class BlockStorageSpec(BaseModel):
    num_devices: int = 1
    size: Optional[str] = None  # Falls back to settings.default_block_device_size
    storage_class: Optional[str] = None
    path: str = "/dev/xvdb"  # Device N is exposed at <path><N>

    @field_validator('size')
    @classmethod
    def validate_size(cls, v):
        return _validate_quantity(v)

    @field_validator('num_devices')
    @classmethod
    def validate_num_devices(cls, v):
        if v < 0:
            raise ValueError('num_devices cannot be negative')
        return v

class SecretSpec(BaseModel):
    name: str
    mount_path: str
    read_only: bool = False
    default_mode: Optional[int] = None

class VolumeProjection(BaseModel):
    pvc_name: str
    mount_path: str
    read_only: bool = False

class EnvVar(BaseModel):
    name: str
    value: str = ""

class Role(BaseModel):
    id: str
    members: int = 1
    resources: ResourceSpec = Field(default_factory=ResourceSpec)
    storage: Optional[StorageSpec] = None
    block_storage: Optional[BlockStorageSpec] = None
    service_account_name: str = ""
    secret: Optional[SecretSpec] = None
    volume_projections: List[VolumeProjection] = Field(default_factory=list)
    affinity: Optional[Dict[str, Any]] = None  # Raw pod affinity, camelCase as in manifests
    env_vars: List[EnvVar] = Field(default_factory=list)

class RoleStatus(BaseModel):
    id: str
    stateful_set: str = ""  # Assigned StatefulSet name; empty until first create

class ClusterSpec(BaseModel):
    app: str
    app_catalog: str = "local"
    naming_scheme: NamingScheme = NamingScheme.UID
    roles: List[Role] = Field(default_factory=list)

class ClusterStatus(BaseModel):
    cluster_service: str = ""
    roles: List[RoleStatus] = Field(default_factory=list)

class Cluster(BaseModel):
    api_version: str = "vcluster.io/v1beta1"
    kind: str = "VirtualCluster"
    name: str
    namespace: str
    uid: str
    spec: ClusterSpec
    status: ClusterStatus = Field(default_factory=ClusterStatus)

    def role_status(self, role_id: str) -> Optional[RoleStatus]:
        for status in self.status.roles:
            if status.id == role_id:
                return status
        return None


# Application Catalog Schemas

class PortInfo(BaseModel):
    id: str
    port: int

class AppService(BaseModel):
    id: str
    port: Optional[int] = None  # Services without an endpoint port are not exposed

class SetupPackage(BaseModel):
    package_url: str = ""
    use_new_setup_layout: bool = False

class ContainerSpec(BaseModel):
    tty: bool = False
    stdin: bool = False

class AppRole(BaseModel):
    id: str
    image_repo_tag: Optional[str] = None  # Overrides App.default_image_repo_tag
    services: List[str] = Field(default_factory=list)
    persist_dirs: Optional[List[str]] = None
    setup_package: Optional[SetupPackage] = None
    container_spec: Optional[ContainerSpec] = None

class App(BaseModel):
    name: str
    default_image_repo_tag: Optional[str] = None
    services: List[AppService] = Field(default_factory=list)
    roles: List[AppRole] = Field(default_factory=list)
    capabilities: List[str] = Field(default_factory=list)
    systemd_required: bool = False
