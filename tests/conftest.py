"""Shared fixtures: an in-memory host standing in for a real Arch machine."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

import pytest

from ai_premise_provisioner.context import StepContext
from ai_premise_provisioner.lib.command import CmdResult, CommandError
from ai_premise_provisioner.lib.env import HostEnv
from ai_premise_provisioner.lib.firewall import FirewallRule
from ai_premise_provisioner.lib.variants import load_variant
from ai_premise_provisioner.state_store import ensure_defaults

# package -> commands it puts on PATH
PACKAGE_COMMANDS = {
    "curl": ["curl"],
    "openssh": ["ssh", "sshd"],
    "nginx": ["nginx"],
    "openssl": ["openssl"],
    "caddy": ["caddy"],
    "ufw": ["ufw"],
    "glances": ["glances"],
    "pciutils": ["lspci"],
}

# installer script URL fragment -> commands it provides
SCRIPT_COMMANDS = {
    "astral.sh/uv": ["uv", "uvx"],
    "ollama.com": ["ollama"],
}

NO_GPU_LSPCI = (
    "00:00.0 Host bridge: Red Hat, Inc. QEMU PCIe Host bridge\n"
    "00:01.0 Ethernet controller: Red Hat, Inc. Virtio network device\n"
)
NVIDIA_LSPCI = (
    "00:00.0 Host bridge: Some Vendor Root Complex\n"
    "01:00.0 VGA compatible controller: NVIDIA Corporation AD102 [GeForce RTX 4090] (rev a1)\n"
)

ROUTE_OUTPUT = "1.1.1.1 via 192.168.1.1 dev eth0 src 192.168.1.50 uid 1000\n    cache\n"


class FakeHost:
    """Host facts kept in memory. Every mutation is appended to `actions`."""

    def __init__(self, *, lspci: Optional[str] = NO_GPU_LSPCI, route: str = ROUTE_OUTPUT):
        self.dry_run = False
        self.packages: set[str] = {"pciutils"}
        self.commands: set[str] = {"lspci", "ip", "hostname", "sh"}
        self.files: Dict[str, str] = {"/etc/hosts": "127.0.0.1\tlocalhost\n"}
        self.modes: Dict[str, int] = {}
        self.owners: Dict[str, str] = {}
        self.dirs: set[str] = set()
        self.enabled: set[str] = set()
        self.active: set[str] = set()
        self.failing_units: set[str] = set()
        self.firewall_defaults: Dict[str, str] = {}
        self.firewall_rules: List[str] = []
        self.firewall_enabled = False
        self.http_up: set[str] = {"http://127.0.0.1:11434/api/tags"}
        self.actions: List[tuple] = []
        self.commands_run: List[List[str]] = []
        self.responses: Dict[str, Callable[[List[str]], CmdResult]] = {}
        self.broken_scripts: set[str] = set()
        if lspci is None:
            self.commands.discard("lspci")
        self.lspci = lspci or ""
        self.route = route

    # -- helpers for assertions -------------------------------------------

    def actions_of(self, kind: str) -> List[tuple]:
        return [a for a in self.actions if a[0] == kind]

    def index_of(self, action: tuple) -> int:
        return self.actions.index(action)

    # -- packages / commands ----------------------------------------------

    def command_exists(self, name: str) -> bool:
        return name in self.commands

    def is_package_installed(self, name: str) -> bool:
        return name in self.packages

    def refresh_packages(self) -> None:
        self.actions.append(("refresh",))

    def upgrade_packages(self) -> None:
        self.actions.append(("upgrade",))

    def install_packages(self, packages: Sequence[str], *, needed: bool = False) -> None:
        if not packages:
            return
        self.actions.append(("install", tuple(packages)))
        for p in packages:
            self.packages.add(p)
            self.commands.update(PACKAGE_COMMANDS.get(p, []))

    # -- files ------------------------------------------------------------

    def path_exists(self, path: str) -> bool:
        return path in self.files or path in self.dirs

    def read_text(self, path: str) -> Optional[str]:
        return self.files.get(path)

    def write_text(self, path: str, contents: str, *, mode: Optional[int] = None, owner: Optional[str] = None) -> None:
        self.actions.append(("write", path))
        self.files[path] = contents
        if mode is not None:
            self.modes[path] = mode
        if owner:
            self.owners[path] = owner

    def append_text(self, path: str, text: str) -> None:
        self.actions.append(("append", path))
        self.files[path] = self.files.get(path, "") + text

    def make_dirs(self, path: str, *, owner: Optional[str] = None) -> None:
        self.dirs.add(path)
        if owner:
            self.owners[path] = owner

    def remove_file(self, path: str) -> None:
        self.actions.append(("remove", path))
        self.files.pop(path, None)

    def chmod(self, path: str, mode: int) -> None:
        self.modes[path] = mode

    def chown(self, path: str, owner: str) -> None:
        self.owners[path] = owner

    # -- services ---------------------------------------------------------

    def is_service_active(self, unit: str) -> bool:
        return unit in self.active

    def enable_service(self, unit: str, *, now: bool = False) -> None:
        self.actions.append(("enable", unit))
        self.enabled.add(unit)
        if now:
            self.start_service(unit)

    def start_service(self, unit: str) -> None:
        self.actions.append(("start", unit))
        if unit not in self.failing_units:
            self.active.add(unit)

    def restart_service(self, unit: str) -> None:
        self.actions.append(("restart", unit))
        if unit not in self.failing_units:
            self.active.add(unit)

    def daemon_reload(self) -> None:
        self.actions.append(("daemon-reload",))

    # -- firewall ---------------------------------------------------------

    def firewall_reset(self) -> None:
        self.actions.append(("firewall-reset",))
        self.firewall_defaults = {}
        self.firewall_rules = []
        self.firewall_enabled = False

    def set_firewall_default(self, policy: str, direction: str) -> None:
        self.firewall_defaults[direction] = policy

    def apply_firewall_rule(self, rule: FirewallRule) -> None:
        self.actions.append(("allow", rule.spec))
        self.firewall_rules.append(rule.spec)

    def enable_firewall(self) -> None:
        self.firewall_enabled = True

    def firewall_status(self) -> str:
        return "\n".join(f"[{i + 1}] {r} ALLOW IN Anywhere" for i, r in enumerate(self.firewall_rules))

    # -- escape hatches ---------------------------------------------------

    def run(
        self,
        argv: Sequence[str],
        *,
        privileged: bool = False,
        check: bool = True,
        input_text: Optional[str] = None,
        as_user: Optional[str] = None,
        readonly: bool = False,
    ) -> CmdResult:
        argv = list(argv)
        self.commands_run.append(argv)
        if argv[0] in self.responses:
            result = self.responses[argv[0]](argv)
        elif argv[0] == "lspci":
            result = CmdResult(argv=argv, returncode=0, stdout=self.lspci, stderr="")
        elif argv[:2] == ["ip", "route"]:
            result = CmdResult(argv=argv, returncode=0 if self.route else 2, stdout=self.route, stderr="")
        else:
            result = CmdResult(argv=argv, returncode=0, stdout="", stderr="")
        if check and result.returncode != 0:
            raise CommandError(result)
        return result

    def run_remote_script(self, url: str, *, as_user: Optional[str] = None) -> None:
        self.actions.append(("script", url, as_user))
        if url in self.broken_scripts:
            return
        for fragment, cmds in SCRIPT_COMMANDS.items():
            if fragment in url:
                self.commands.update(cmds)

    def http_ok(self, url: str) -> bool:
        return url in self.http_up

    def sleep(self, seconds: float) -> None:
        self.actions.append(("sleep", seconds))


def failing(returncode: int = 1, stderr: str = "boom") -> Callable[[List[str]], CmdResult]:
    def _respond(argv: List[str]) -> CmdResult:
        return CmdResult(argv=argv, returncode=returncode, stdout="", stderr=stderr)

    return _respond


@pytest.fixture
def env() -> HostEnv:
    return HostEnv(user="alice", home="/home/alice")


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def make_ctx(env):
    def _make(host: FakeHost, variant: str = "nginx", *, monitoring: Optional[bool] = None) -> StepContext:
        state = ensure_defaults({})
        return StepContext(host=host, env=env, variant=load_variant(variant, monitoring=monitoring), state=state)

    return _make


@pytest.fixture
def ctx(make_ctx, host) -> StepContext:
    return make_ctx(host)
