"""Host facts: the only place provisioning touches the running system.

Steps never call subprocess or the filesystem directly. They query and mutate
the host through the narrow `Host` interface below, so the whole pipeline can
be exercised against an in-memory host in tests.
"""

from __future__ import annotations

import getpass
import logging
import os
import shutil
import time
from pathlib import Path
from typing import Optional, Protocol, Sequence

from . import firewall, net, pkg, systemd
from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)


class Host(Protocol):
    dry_run: bool

    # packages / commands
    def command_exists(self, name: str) -> bool: ...
    def is_package_installed(self, name: str) -> bool: ...
    def refresh_packages(self) -> None: ...
    def upgrade_packages(self) -> None: ...
    def install_packages(self, packages: Sequence[str], *, needed: bool = False) -> None: ...

    # files
    def path_exists(self, path: str) -> bool: ...
    def read_text(self, path: str) -> Optional[str]: ...
    def write_text(self, path: str, contents: str, *, mode: Optional[int] = None, owner: Optional[str] = None) -> None: ...
    def append_text(self, path: str, text: str) -> None: ...
    def make_dirs(self, path: str, *, owner: Optional[str] = None) -> None: ...
    def remove_file(self, path: str) -> None: ...
    def chmod(self, path: str, mode: int) -> None: ...
    def chown(self, path: str, owner: str) -> None: ...

    # services
    def is_service_active(self, unit: str) -> bool: ...
    def enable_service(self, unit: str, *, now: bool = False) -> None: ...
    def start_service(self, unit: str) -> None: ...
    def restart_service(self, unit: str) -> None: ...
    def daemon_reload(self) -> None: ...

    # firewall
    def firewall_reset(self) -> None: ...
    def set_firewall_default(self, policy: str, direction: str) -> None: ...
    def apply_firewall_rule(self, rule: firewall.FirewallRule) -> None: ...
    def enable_firewall(self) -> None: ...
    def firewall_status(self) -> str: ...

    # escape hatches
    def run(
        self,
        argv: Sequence[str],
        *,
        privileged: bool = False,
        check: bool = True,
        input_text: Optional[str] = None,
        as_user: Optional[str] = None,
        readonly: bool = False,
    ) -> CmdResult: ...
    def run_remote_script(self, url: str, *, as_user: Optional[str] = None) -> None: ...
    def http_ok(self, url: str) -> bool: ...
    def sleep(self, seconds: float) -> None: ...


class SystemHost:
    """Host implementation backed by pacman, systemctl, ufw and sudo."""

    def __init__(self, *, extra_path: Sequence[str] = (), dry_run: bool = False, http_timeout: float = 5.0):
        self.dry_run = dry_run
        self.http_timeout = http_timeout
        self._extra_path = [str(p) for p in extra_path]
        self._is_root = os.geteuid() == 0

    # -- plumbing -----------------------------------------------------------

    def _search_path(self) -> str:
        return os.pathsep.join([*self._extra_path, os.environ.get("PATH", "")])

    def _wrap(self, argv: Sequence[str], *, privileged: bool, as_user: Optional[str]) -> list[str]:
        argv = list(argv)
        if as_user and self._is_root and as_user != "root":
            return ["sudo", "-u", as_user, "-H", *argv]
        if privileged and not self._is_root:
            return ["sudo", *argv]
        return argv

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
        return run_cmd(
            self._wrap(argv, privileged=privileged, as_user=as_user),
            check=check,
            input_text=input_text,
            env={"PATH": self._search_path()},
            dry_run=self.dry_run and not readonly,
        )

    def _writable(self, path: Path) -> bool:
        if self._is_root:
            return True
        probe = path if path.exists() else path.parent
        while not probe.exists():
            probe = probe.parent
        return os.access(probe, os.W_OK)

    # -- packages / commands ------------------------------------------------

    def command_exists(self, name: str) -> bool:
        return shutil.which(name, path=self._search_path()) is not None

    def is_package_installed(self, name: str) -> bool:
        return self.run(pkg.pacman_query_argv(name), check=False, readonly=True).ok

    def refresh_packages(self) -> None:
        self.run(pkg.pacman_refresh_argv(), privileged=True)

    def upgrade_packages(self) -> None:
        self.run(pkg.pacman_upgrade_argv(), privileged=True)

    def install_packages(self, packages: Sequence[str], *, needed: bool = False) -> None:
        if not packages:
            return
        self.run(pkg.pacman_install_argv(packages, needed=needed), privileged=True)

    # -- files --------------------------------------------------------------

    def path_exists(self, path: str) -> bool:
        return Path(path).exists()

    def read_text(self, path: str) -> Optional[str]:
        p = Path(path)
        if not p.exists():
            return None
        return p.read_text(encoding="utf-8")

    def write_text(self, path: str, contents: str, *, mode: Optional[int] = None, owner: Optional[str] = None) -> None:
        p = Path(path)
        if self.dry_run:
            logger.info("Would write %s (%d bytes)", path, len(contents))
            return

        if self._writable(p):
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(contents, encoding="utf-8")
            logger.info("Wrote %s", path)
        else:
            self.run(["mkdir", "-p", str(p.parent)], privileged=True)
            self.run(["tee", str(p)], privileged=True, input_text=contents)

        if mode is not None:
            self.chmod(path, mode)
        if owner:
            self.chown(path, owner)

    def append_text(self, path: str, text: str) -> None:
        if self.dry_run:
            logger.info("Would append to %s: %s", path, text.strip())
            return
        p = Path(path)
        if self._writable(p):
            with p.open("a", encoding="utf-8") as f:
                f.write(text)
        else:
            self.run(["tee", "-a", str(p)], privileged=True, input_text=text)

    def make_dirs(self, path: str, *, owner: Optional[str] = None) -> None:
        p = Path(path)
        if self.dry_run:
            logger.info("Would create directory %s", path)
            return

        # Outermost first, so `mkdir -p` parents get the same owner as the leaf.
        created = [d for d in (p, *p.parents) if not d.exists()][::-1]
        if self._writable(p):
            p.mkdir(parents=True, exist_ok=True)
        else:
            self.run(["mkdir", "-p", str(p)], privileged=True)
        if owner:
            for d in created or [p]:
                self.chown(str(d), owner)

    def remove_file(self, path: str) -> None:
        self.run(["rm", "-f", path], privileged=True)

    def chmod(self, path: str, mode: int) -> None:
        self.run(["chmod", format(mode, "o"), path], privileged=not self._writable(Path(path)))

    def chown(self, path: str, owner: str) -> None:
        # Only meaningful when provisioning for someone else (root via sudo).
        if not self._is_root and owner.split(":", 1)[0] == getpass.getuser():
            return
        self.run(["chown", owner, path], privileged=True)

    # -- services -----------------------------------------------------------

    def is_service_active(self, unit: str) -> bool:
        return self.run(systemd.is_active_argv(unit), check=False, readonly=True).ok

    def enable_service(self, unit: str, *, now: bool = False) -> None:
        self.run(systemd.systemctl_argv("enable", unit, now=now), privileged=True)

    def start_service(self, unit: str) -> None:
        self.run(systemd.systemctl_argv("start", unit), privileged=True)

    def restart_service(self, unit: str) -> None:
        self.run(systemd.systemctl_argv("restart", unit), privileged=True)

    def daemon_reload(self) -> None:
        self.run(systemd.systemctl_argv("daemon-reload"), privileged=True)

    # -- firewall -----------------------------------------------------------

    def firewall_reset(self) -> None:
        self.run(firewall.ufw_reset_argv(), privileged=True)

    def set_firewall_default(self, policy: str, direction: str) -> None:
        self.run(firewall.ufw_default_argv(policy, direction), privileged=True)

    def apply_firewall_rule(self, rule: firewall.FirewallRule) -> None:
        self.run(firewall.ufw_allow_argv(rule), privileged=True)

    def enable_firewall(self) -> None:
        self.run(firewall.ufw_enable_argv(), privileged=True)

    def firewall_status(self) -> str:
        return self.run(firewall.ufw_status_argv(), privileged=True, check=False, readonly=True).stdout

    # -- network / misc -----------------------------------------------------

    def run_remote_script(self, url: str, *, as_user: Optional[str] = None) -> None:
        """Equivalent of `curl -fsSL <url> | sh`."""

        if self.dry_run:
            logger.info("Would run installer script %s", url)
            return
        script = net.fetch_text(url)
        self.run(["sh"], input_text=script, as_user=as_user)

    def http_ok(self, url: str) -> bool:
        return net.http_ok(url, timeout=self.http_timeout)

    def sleep(self, seconds: float) -> None:
        if self.dry_run:
            return
        time.sleep(seconds)
