"""
Tests for node role detection.
"""

from typing import Dict
from unittest import mock

import pytest

from kubeaudit.errors import ComponentNotRunningError, MalformedRoleError
from kubeaudit.roles import (
    find_running_binaries,
    has_role,
    is_binary_running,
    is_master,
    is_node,
    load_roles,
)
from kubeaudit.schemas import RoleSpec

ROLE_CONFIG = {
    "roles": {
        "master": {
            "components": ["apiserver"],
            "binaries": {"apiserver": ["kube-apiserver", "hyperkube apiserver"]},
        },
        "node": {
            "components": ["kubelet", "proxy"],
            "binaries": {"kubelet": "kubelet"},
        },
    }
}


@pytest.fixture
def roles() -> Dict[str, RoleSpec]:
    return load_roles(ROLE_CONFIG)


class TestLoadRoles:
    def test_loads_components_in_order(self, roles) -> None:
        assert roles["node"].components == ("kubelet", "proxy")
        assert roles["master"].candidates("apiserver") == ("kube-apiserver", "hyperkube apiserver")

    def test_single_binary_string_and_default_candidates(self, roles) -> None:
        assert roles["node"].candidates("kubelet") == ("kubelet",)
        assert roles["node"].candidates("proxy") == ("proxy",)

    def test_missing_roles_key(self) -> None:
        assert load_roles({}) == {}

    @pytest.mark.parametrize(
        "raw",
        [
            ["master"],
            {"master": "apiserver"},
            {"master": {"components": []}},
            {"master": {"components": "apiserver"}},
            {"master": {"components": [1]}},
            {"master": {"components": ["apiserver"], "binaries": ["kube-apiserver"]}},
            {"master": {"components": ["apiserver"], "binaries": {"apiserver": 5}}},
        ],
    )
    def test_malformed_roles(self, raw) -> None:
        with pytest.raises(MalformedRoleError):
            load_roles({"roles": raw})


class TestHasRole:
    def test_all_components_running(self, roles) -> None:
        provider = mock.Mock(return_value={"apiserver": "kube-apiserver"})
        assert has_role("master", roles, provider) is True
        provider.assert_called_once_with(roles["master"])

    def test_not_all_components_running(self, roles) -> None:
        provider = mock.Mock(return_value={"kubelet": "kubelet"})
        assert has_role("node", roles, provider) is False

    def test_provider_error_is_a_negative(self, roles) -> None:
        provider = mock.Mock(side_effect=RuntimeError("failed to find binaries"))
        assert has_role("master", roles, provider) is False

    def test_undeclared_role_skips_provider(self, roles) -> None:
        provider = mock.Mock(return_value={"etcd": "etcd"})
        assert has_role("etcd", roles, provider) is False
        provider.assert_not_called()

    def test_only_the_count_is_compared(self, roles) -> None:
        provider = mock.Mock(return_value={"something": "else"})
        assert has_role("master", roles, provider) is True

    def test_master_and_node_helpers(self, roles) -> None:
        provider = mock.Mock(return_value={"a": "a"})
        assert is_master(roles, provider) is True
        assert is_node(roles, provider) is False
        assert is_master({}, provider) is False

    def test_one_of_several_master_components_is_not_master(self) -> None:
        roles = load_roles({"roles": {"master": {"components": ["apiserver", "scheduler", "controllermanager"]}}})
        provider = mock.Mock(return_value={"apiserver": "kube-apiserver"})
        assert is_master(roles, provider) is False


def _lister(running: Dict[str, str]):
    def _list(program: str) -> str:
        return running.get(program, "")

    return _list


class TestFindRunningBinaries:
    def test_first_running_candidate_is_reported(self, roles) -> None:
        lister = _lister({"hyperkube": "/usr/bin/hyperkube apiserver --secure-port=6443\n"})

        found = find_running_binaries(roles["master"], lister)

        assert found == {"apiserver": "hyperkube apiserver"}

    def test_missing_component_raises(self, roles) -> None:
        lister = _lister({"kubelet": "kubelet --config=/var/lib/kubelet/config.yaml"})

        with pytest.raises(ComponentNotRunningError) as excinfo:
            find_running_binaries(roles["node"], lister)

        assert excinfo.value.component == "proxy"

    def test_has_role_with_process_provider(self, roles) -> None:
        lister = _lister(
            {
                "kubelet": "kubelet --config=/var/lib/kubelet/config.yaml",
                "proxy": "proxy --v=2",
            }
        )
        assert has_role("node", roles, lambda role: find_running_binaries(role, lister)) is True

        partial = _lister({"kubelet": "kubelet"})
        assert has_role("node", roles, lambda role: find_running_binaries(role, partial)) is False


class TestIsBinaryRunning:
    @pytest.mark.parametrize(
        "output, expected",
        [
            ("/usr/local/bin/kube-apiserver --advertise-address=10.0.0.1", True),
            ("kube-apiserver", True),
            ("kube-apiserver-proxy --port 1", False),
            ("", False),
        ],
    )
    def test_word_match(self, output: str, expected: bool) -> None:
        assert is_binary_running("kube-apiserver", lambda _: output) is expected

    def test_multi_word_binary_lists_first_word(self) -> None:
        lister = mock.Mock(return_value="hyperkube kubelet --v=2")
        assert is_binary_running("hyperkube kubelet", lister) is True
        lister.assert_called_once_with("hyperkube")

    def test_missing_ps_reports_nothing(self) -> None:
        with mock.patch("kubeaudit.roles.shutil.which", return_value=None):
            assert is_binary_running("kubelet") is False
