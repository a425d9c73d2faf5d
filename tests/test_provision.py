import json

import pytest

from ai_premise_provisioner import main as main_mod
from ai_premise_provisioner.lib.env import HostEnv
from ai_premise_provisioner.pipeline import StepFailed

from conftest import NVIDIA_LSPCI, FakeHost, failing


@pytest.fixture
def provision(tmp_path):
    env = HostEnv(user="alice", home="/home/alice")
    state_path = tmp_path / "state.json"

    def _run(host: FakeHost, **kwargs):
        return main_mod.run(
            state_path=str(state_path),
            log_path=str(tmp_path / "setup.log"),
            host=host,
            env=env,
            **kwargs,
        )

    _run.state_path = state_path
    return _run


def test_fresh_cpu_only_host(provision):
    host = FakeHost()
    state = provision(host)

    exe = state["execution"]
    assert exe["failed_steps"] == []
    assert exe["errors"] == []
    assert not any(pkgs for _, pkgs in host.actions_of("install") if "nvidia" in pkgs)
    assert {"ollama", "nginx", "openwebui", "glances-web", "sshd"} <= host.active
    assert host.firewall_defaults == {"incoming": "deny", "outgoing": "allow"}
    assert host.firewall_rules == ["22/tcp", "80/tcp", "443/tcp", "8443/tcp", "11435/tcp", "61209/tcp"]
    assert "Server IP address: 192.168.1.50" in exe["summary"]["lines"]


def test_second_run_installs_nothing_and_converges(provision):
    host = FakeHost()
    provision(host)
    rules = list(host.firewall_rules)
    host.actions.clear()

    state = provision(host)

    assert host.actions_of("install") == []
    assert host.actions_of("script") == []
    assert host.firewall_rules == rules
    skipped = state["execution"]["skipped_steps"]
    assert {"20_gpu_drivers", "30_base_tools", "40_install_uv", "50_install_ollama", "60_install_proxy"} <= set(skipped)


def test_caddy_variant_rerun_keeps_hosts_file_clean(provision):
    host = FakeHost()
    provision(host, variant="caddy")
    provision(host, variant="caddy")

    hosts = host.files["/etc/hosts"]
    assert hosts.count("openwebui.local") == 1
    assert host.firewall_rules == ["22/tcp", "443/tcp"]
    assert "Caddyfile" in "".join(p for _, p in host.actions_of("write"))
    assert "caddy" in host.active


def test_nvidia_host_gets_drivers(provision):
    host = FakeHost(lspci=NVIDIA_LSPCI)
    state = provision(host)

    assert ("install", ("nvidia", "nvidia-utils", "cuda")) in host.actions
    assert state["execution"]["decisions"]["gpu_vendor"] == "nvidia"
    assert any(line.startswith("GPU: 01:00.0 VGA") for line in state["execution"]["summary"]["lines"])


def test_without_monitoring(provision):
    host = FakeHost()
    state = provision(host, monitoring=False)

    assert "glances-web" not in host.active
    assert "61209/tcp" not in host.firewall_rules
    assert "90_install_glances" not in state["execution"]["ran_steps"]


def test_invalid_proxy_config_aborts_before_restart(provision):
    host = FakeHost()
    host.responses["nginx"] = failing(stderr="nginx: [emerg] invalid number of arguments")

    with pytest.raises(StepFailed) as excinfo:
        provision(host)

    assert excinfo.value.step_id == "70_configure_proxy"
    assert ("restart", "nginx") not in host.actions
    assert ("start", "nginx") not in host.actions
    assert host.actions_of("firewall-reset") == []

    saved = json.loads(provision.state_path.read_text(encoding="utf-8"))
    assert saved["execution"]["errors"][0]["step"] == "70_configure_proxy"
    assert "configuration test failed" in saved["execution"]["errors"][0]["error"]


def test_stop_after_and_start_at(provision):
    host = FakeHost()
    state = provision(host, stop_after="40_install_uv")
    assert state["execution"]["ran_steps"][-1] == "40_install_uv"
    assert host.actions_of("firewall-reset") == []

    state = provision(host, start_at="80_configure_firewall")
    assert state["execution"]["ran_steps"][0] == "80_configure_firewall"
    assert host.actions_of("refresh") == [("refresh",)]


def test_dry_run_applies_to_one_invocation(tmp_path, monkeypatch):
    built = []

    def system_host(**kwargs):
        built.append(kwargs["dry_run"])
        host = FakeHost()
        host.dry_run = kwargs["dry_run"]
        return host

    monkeypatch.setattr(main_mod, "SystemHost", system_host)
    env = HostEnv(user="alice", home="/home/alice")
    common = dict(state_path=str(tmp_path / "state.json"), log_path=str(tmp_path / "setup.log"), env=env)

    main_mod.run(dry_run=True, **common)
    state = main_mod.run(**common)

    assert built == [True, False]
    assert "dry_run" not in state["config"]
    assert state["execution"]["invocation"]["dry_run"] is False


def test_no_monitoring_applies_to_one_invocation(provision):
    host = FakeHost()
    provision(host, monitoring=False)
    assert "glances-web" not in host.active

    state = provision(host)

    assert "glances-web" in host.active
    assert "61209/tcp" in host.firewall_rules
    assert state["config"]["monitoring_enabled"] is None


def test_variant_flag_is_not_remembered(provision):
    provision(FakeHost(), variant="caddy")
    state = provision(FakeHost())
    assert state["config"]["variant"] == "nginx"
    assert state["execution"]["invocation"]["variant"] == "nginx"


def test_gpu_is_detected_again_on_every_run(provision):
    provision(FakeHost())

    host = FakeHost(lspci=NVIDIA_LSPCI)
    state = provision(host)

    assert state["execution"]["decisions"]["gpu_vendor"] == "nvidia"
    assert ("install", ("nvidia", "nvidia-utils", "cuda")) in host.actions
