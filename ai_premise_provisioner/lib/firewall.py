from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

SSH_PORT = 22


@dataclass(frozen=True)
class FirewallRule:
    """A single inbound allow rule."""

    port: int
    proto: str = "tcp"
    comment: str = ""

    @property
    def spec(self) -> str:
        return f"{self.port}/{self.proto}"


def build_allowlist(ports: Iterable[int], *, labels: Optional[Dict[int, str]] = None) -> List[FirewallRule]:
    """Ordered, de-duplicated allow rules. SSH always comes first."""

    labels = labels or {}
    seen: list[int] = [SSH_PORT]
    for p in ports:
        p = int(p)
        if p not in seen:
            seen.append(p)
    return [FirewallRule(port=p, comment=labels.get(p, "")) for p in seen]


def ufw_reset_argv() -> list[str]:
    return ["ufw", "--force", "reset"]


def ufw_default_argv(policy: str, direction: str) -> list[str]:
    if policy not in {"allow", "deny", "reject"}:
        raise ValueError(f"Unsupported firewall policy: {policy}")
    if direction not in {"incoming", "outgoing"}:
        raise ValueError(f"Unsupported firewall direction: {direction}")
    return ["ufw", "default", policy, direction]


def ufw_allow_argv(rule: FirewallRule) -> list[str]:
    argv = ["ufw", "allow", rule.spec]
    if rule.comment:
        argv += ["comment", rule.comment]
    return argv


def ufw_enable_argv() -> list[str]:
    return ["ufw", "--force", "enable"]


def ufw_status_argv() -> list[str]:
    return ["ufw", "status", "numbered"]
