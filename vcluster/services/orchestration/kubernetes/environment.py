"""Environment variables for the app container of a role."""

from kubernetes import client
from kubernetes.utils import parse_quantity
from typing import List, Optional

from ....models import Role, SetupPackage

NVIDIA_GPU_RESOURCE_NAME = "nvidia.com/gpu"

# The NVIDIA container runtime exposes every GPU unless told otherwise
NVIDIA_GPU_VIS_WORKAROUND_ENV_VAR_NAME = "NVIDIA_VISIBLE_DEVICES"
NVIDIA_GPU_VIS_WORKAROUND_ENV_VAR_VALUE = "VOID"

PYTHON_USER_BASE_ENV_VAR_NAME = "PYTHONUSERBASE"
CONFIG_CLI_LOCATION = "/usr/local"


def gpu_requested(role: Role) -> bool:
    quantity = role.resources.requests.get(NVIDIA_GPU_RESOURCE_NAME)
    if quantity is None:
        return False
    return parse_quantity(quantity) != 0


def build_env_vars(role: Role, setup_info: Optional[SetupPackage]) -> List[client.V1EnvVar]:
    """
    Return the role's env vars plus the ones implied by its setup.

    - PYTHONUSERBASE is set when the setup package uses the new layout.
    - NVIDIA_VISIBLE_DEVICES=VOID is set unless a non-zero GPU quantity is
      requested, so a GPU is never surfaced to a role that did not ask.

    The role's own variables keep their order; additions go at the end.
    """
    env = [client.V1EnvVar(name=e.name, value=e.value) for e in role.env_vars]

    if setup_info is not None and setup_info.use_new_setup_layout:
        env.append(
            client.V1EnvVar(
                name=PYTHON_USER_BASE_ENV_VAR_NAME,
                value=CONFIG_CLI_LOCATION
            )
        )

    if not gpu_requested(role):
        env.append(
            client.V1EnvVar(
                name=NVIDIA_GPU_VIS_WORKAROUND_ENV_VAR_NAME,
                value=NVIDIA_GPU_VIS_WORKAROUND_ENV_VAR_VALUE
            )
        )

    return env
