from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .firewall import FirewallRule, build_allowlist
from .manifests import available_variants, load_variant_manifest
from .tls import CertSpec

DEFAULT_VARIANT = "nginx"


@dataclass(frozen=True)
class Route:
    name: str
    title: str
    listen: int
    backend: int
    hostname: Optional[str] = None
    monitoring: bool = False

    def url(self, server_ip: str) -> str:
        if self.hostname:
            return f"https://{self.hostname}"
        return f"https://{server_ip}:{self.listen}"

    @property
    def backend_url(self) -> str:
        return f"http://127.0.0.1:{self.backend}"


@dataclass(frozen=True)
class HostsEntry:
    ip: str
    hostnames: List[str]

    @property
    def line(self) -> str:
        return f"{self.ip} {' '.join(self.hostnames)}"


@dataclass(frozen=True)
class Variant:
    raw: Dict[str, Any]
    monitoring_override: Optional[bool] = None

    @property
    def variant_id(self) -> str:
        return str(self.raw.get("id") or DEFAULT_VARIANT)

    @property
    def description(self) -> str:
        return str(self.raw.get("description") or "").strip()

    @property
    def _proxy(self) -> Dict[str, Any]:
        return self.raw.get("proxy") or {}

    @property
    def proxy_kind(self) -> str:
        return str(self._proxy.get("kind") or self.variant_id)

    @property
    def proxy_packages(self) -> List[str]:
        return [str(p) for p in (self._proxy.get("packages") or [self.proxy_kind])]

    @property
    def proxy_command(self) -> str:
        return str(self._proxy.get("command") or self.proxy_kind)

    @property
    def proxy_service(self) -> str:
        return str(self._proxy.get("service") or self.proxy_kind)

    @property
    def proxy_start_on_install(self) -> bool:
        return bool(self._proxy.get("start_on_install", False))

    @property
    def proxy_config_path(self) -> str:
        p = self._proxy.get("config_path")
        if not p:
            raise ValueError(f"variant {self.variant_id}: proxy.config_path missing")
        return str(p)

    @property
    def proxy_config_template(self) -> str:
        return str(self._proxy.get("config_template") or f"{self.proxy_kind}.conf.j2")

    @property
    def proxy_config_owner(self) -> Optional[str]:
        owner = self._proxy.get("config_owner")
        return str(owner) if owner else None

    @property
    def proxy_data_dir(self) -> Optional[str]:
        d = self._proxy.get("data_dir")
        return str(d) if d else None

    @property
    def proxy_validate_argv(self) -> List[str]:
        return [str(a) for a in (self._proxy.get("validate") or [])]

    @property
    def tls(self) -> Optional[Dict[str, Any]]:
        return self._proxy.get("tls") or None

    @property
    def cert_spec(self) -> Optional[CertSpec]:
        return CertSpec.from_manifest(self.tls) if self.tls else None

    @property
    def monitoring_enabled(self) -> bool:
        if self.monitoring_override is not None:
            return self.monitoring_override
        return bool((self.raw.get("monitoring") or {}).get("enabled", False))

    @property
    def routes(self) -> List[Route]:
        out: List[Route] = []
        for r in self.raw.get("routes") or []:
            route = Route(
                name=str(r["name"]),
                title=str(r.get("title") or r["name"]),
                listen=int(r["listen"]),
                backend=int(r["backend"]),
                hostname=r.get("hostname"),
                monitoring=bool(r.get("monitoring", False)),
            )
            if route.monitoring and not self.monitoring_enabled:
                continue
            out.append(route)
        return out

    @property
    def redirects(self) -> List[Dict[str, str]]:
        return [{"hostname": str(r["hostname"]), "target": str(r["target"])} for r in self.raw.get("redirects") or []]

    @property
    def hosts_entries(self) -> List[HostsEntry]:
        return [
            HostsEntry(ip=str(e.get("ip") or "127.0.0.1"), hostnames=[str(h) for h in e.get("hostnames") or []])
            for e in self.raw.get("hosts_entries") or []
        ]

    @property
    def firewall_rules(self) -> List[FirewallRule]:
        base = [int(p) for p in ((self.raw.get("firewall") or {}).get("allow") or [])]
        labels = {22: "ssh", 80: "http", 443: "https"}
        ports = list(base)
        for r in self.routes:
            ports.append(r.listen)
            labels.setdefault(r.listen, r.name)
        return build_allowlist(ports, labels=labels)

    @property
    def open_ports(self) -> List[int]:
        return [r.port for r in self.firewall_rules]


def load_variant(variant_id: str, *, monitoring: Optional[bool] = None) -> Variant:
    known = available_variants()
    if variant_id not in known:
        raise ValueError(f"Unknown variant {variant_id!r} (known: {', '.join(known)})")
    return Variant(raw=load_variant_manifest(variant_id), monitoring_override=monitoring)
