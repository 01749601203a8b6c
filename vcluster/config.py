from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = "INFO"

    # ==========================================================================
    # Kubernetes Event Settings
    # ==========================================================================
    # Also record corrective actions as Kubernetes Events on the cluster
    # resource (logging always happens)
    k8s_events_enabled: bool = True

    # Component name reported as the source of emitted events
    k8s_event_component: str = "vcluster-executor"

    # ==========================================================================
    # StatefulSet Storage Settings
    # ==========================================================================
    # Size cap of each memory-backed scratch volume (/tmp, /run, /run/lock)
    tmpfs_volume_size: str = "20Gi"

    # Size of each block-mode claim when the role does not specify one
    default_block_device_size: str = "1Gi"

    # ==========================================================================
    # StatefulSet Runtime Settings
    # ==========================================================================
    # Whether the platform's container runtime supports systemd natively.
    # When False, apps that require systemd get cgroup host-path mounts.
    native_systemd_support: bool = False

    # generateName used for the "UID" naming scheme
    statefulset_name_prefix: str = "kdss-"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from .env file
        case_sensitive = False  # Allow lowercase env vars to match uppercase field names

@lru_cache()
def get_settings():
    return Settings()
