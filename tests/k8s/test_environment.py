"""
Unit tests for app container environment variables.
"""

import pytest

from vcluster.models import EnvVar, ResourceSpec, Role, SetupPackage
from vcluster.services.orchestration.kubernetes.environment import (
    build_env_vars,
    gpu_requested,
)


def _env_dict(env):
    return {e.name: e.value for e in env}


class TestGpuVisibility:

    def test_no_gpu_hides_devices(self):
        env = _env_dict(build_env_vars(Role(id="r"), None))
        assert env["NVIDIA_VISIBLE_DEVICES"] == "VOID"

    @pytest.mark.parametrize("quantity,expected", [
        ("1", True),
        ("2", True),
        ("0", False),
    ])
    def test_gpu_quantity(self, quantity, expected):
        role = Role(id="r", resources=ResourceSpec(requests={"nvidia.com/gpu": quantity}))
        assert gpu_requested(role) is expected
        env = _env_dict(build_env_vars(role, None))
        assert ("NVIDIA_VISIBLE_DEVICES" in env) is not expected


class TestSetupLayout:

    def test_new_layout_sets_user_base(self):
        env = _env_dict(build_env_vars(Role(id="r"), SetupPackage(use_new_setup_layout=True)))
        assert env["PYTHONUSERBASE"] == "/usr/local"

    def test_legacy_layout(self):
        env = _env_dict(build_env_vars(Role(id="r"), SetupPackage(use_new_setup_layout=False)))
        assert "PYTHONUSERBASE" not in env

    def test_no_setup_package(self):
        assert "PYTHONUSERBASE" not in _env_dict(build_env_vars(Role(id="r"), None))


class TestRoleVariables:

    def test_role_variables_first_and_in_order(self):
        role = Role(id="r", env_vars=[EnvVar(name="B", value="2"), EnvVar(name="A", value="1")])
        env = build_env_vars(role, SetupPackage(use_new_setup_layout=True))
        assert [e.name for e in env] == ["B", "A", "PYTHONUSERBASE", "NVIDIA_VISIBLE_DEVICES"]

    def test_role_not_mutated(self):
        role = Role(id="r", env_vars=[EnvVar(name="A", value="1")])
        build_env_vars(role, SetupPackage(use_new_setup_layout=True))
        build_env_vars(role, SetupPackage(use_new_setup_layout=True))
        assert [e.name for e in role.env_vars] == ["A"]
