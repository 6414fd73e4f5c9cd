import os

import pytest

from zarfkit import config


@pytest.fixture(autouse=True)
def _reset(monkeypatch):
    monkeypatch.setattr(config, "cli_arch", "")
    monkeypatch.setattr(config, "common_options", config.CommonOptions())
    config.clear_deploying_components()
    yield
    config.clear_deploying_components()


def test_get_arch_prefers_cli_override(monkeypatch):
    monkeypatch.setattr(config, "cli_arch", "arm64")
    assert config.get_arch("amd64") == "arm64"


def test_get_arch_uses_first_non_empty_argument():
    assert config.get_arch("", "amd64", "arm64") == "amd64"


def test_get_arch_falls_back_to_host():
    host = config.get_arch()
    assert host
    assert config.get_arch("", "") == host


def test_data_injection_marker_contains_start_time():
    marker = config.get_data_injection_marker()
    assert marker.startswith(".zarf-injection-")
    assert marker.endswith(str(config.get_start_time()))


def test_crane_options_platform_and_insecure(monkeypatch):
    monkeypatch.setattr(config, "cli_arch", "arm64")
    opts = config.get_crane_options(True)
    assert opts["insecure"] is True
    assert opts["platform"] == {"os": "linux", "architecture": "arm64"}
    assert config.get_crane_options(False)["insecure"] is False


def test_deploying_components_lifecycle():
    comps = [config.DeployedComponent(name="a"), config.DeployedComponent(name="b")]
    config.set_deploying_components(comps)
    assert [c.name for c in config.get_deploying_components()] == ["a", "b"]
    config.clear_deploying_components()
    assert config.get_deploying_components() == []


def test_valid_package_extensions():
    assert config.get_valid_package_extensions() == (".tar.zst", ".tar", ".zip")


def test_registry_uses_localhost_for_node_port():
    state = config.ZarfState(
        registry_info=config.RegistryInfo(
            address="registry.example.com",
            node_port=config.ZARF_IN_CLUSTER_CONTAINER_REGISTRY_NODE_PORT,
        )
    )
    assert config.get_registry(state) == "127.0.0.1:31999"


@pytest.mark.parametrize("port", [0, 29999])
def test_registry_uses_address_below_node_port_range(port):
    state = config.ZarfState(
        registry_info=config.RegistryInfo(address="registry.example.com", node_port=port)
    )
    assert config.get_registry(state) == "registry.example.com"


def test_registry_node_port_boundary():
    state = config.ZarfState(
        registry_info=config.RegistryInfo(address="registry.example.com", node_port=30000)
    )
    assert config.get_registry(state).startswith(config.IPV4_LOCALHOST + ":")


def test_abs_cache_path_expands_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    config.common_options.cache_path = os.path.join("~", ".zarf-cache")
    assert config.get_abs_cache_path() == os.path.join(str(tmp_path), ".zarf-cache")


def test_abs_cache_path_leaves_plain_path(tmp_path):
    config.common_options.cache_path = str(tmp_path / "cache")
    assert config.get_abs_cache_path() == str(tmp_path / "cache")


def test_state_from_dict_reads_nested_fields():
    state = config.state_from_dict(
        {
            "zarfAppliance": True,
            "distro": "k3s",
            "gitServer": {"address": "git.example.com", "pushUsername": "user"},
            "registryInfo": {"address": "registry.example.com", "nodePort": 31999},
        }
    )
    assert state.zarf_appliance is True
    assert state.distro == "k3s"
    assert state.git_server.address == "git.example.com"
    assert state.git_server.push_username == "user"
    assert state.registry_info.node_port == 31999


def test_state_from_dict_defaults():
    assert config.state_from_dict({}) == config.ZarfState()