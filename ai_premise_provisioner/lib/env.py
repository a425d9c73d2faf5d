from __future__ import annotations

import getpass
import os
import pwd
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Paths:
    state_default: str = "~/.local/state/ai-premise/state.json"
    log_default: str = "/var/log/ai-premise-setup.log"
    hosts_file: str = "/etc/hosts"


PATHS = Paths()


@dataclass(frozen=True)
class HostEnv:
    """Who we provision for: the invoking user, even under sudo."""

    user: str
    home: str

    @property
    def local_bin(self) -> str:
        return str(Path(self.home) / ".local/bin")

    @property
    def config_dir(self) -> str:
        return str(Path(self.home) / ".config")

    @classmethod
    def detect(cls, user: Optional[str] = None) -> "HostEnv":
        name = user or os.environ.get("SUDO_USER") or getpass.getuser()
        try:
            home = pwd.getpwnam(name).pw_dir
        except KeyError:
            home = os.path.expanduser("~")
        return cls(user=name, home=home)
