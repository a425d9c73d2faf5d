from __future__ import annotations

import ipaddress
import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

ROUTE_PROBE_TARGET = "1.1.1.1"
LOOPBACK = "127.0.0.1"
USER_AGENT = "ai-premise-provisioner/1.0"


def _is_ipv4(value: str) -> bool:
    try:
        return isinstance(ipaddress.ip_address(value), ipaddress.IPv4Address)
    except ValueError:
        return False


def parse_route_source(text: Optional[str]) -> Optional[str]:
    """Extract the `src` address from `ip route get` output."""

    if not text:
        return None
    tokens = text.split()
    for i, tok in enumerate(tokens[:-1]):
        if tok == "src" and _is_ipv4(tokens[i + 1]):
            return tokens[i + 1]
    return None


def parse_hostname_addresses(text: Optional[str]) -> Optional[str]:
    """First IPv4 address from `hostname -I` output."""

    for tok in (text or "").split():
        if _is_ipv4(tok):
            return tok
    return None


def detect_server_ip(host) -> str:
    """Best-effort address of the default-route interface."""

    r = host.run(["ip", "route", "get", ROUTE_PROBE_TARGET], check=False, readonly=True)
    ip = parse_route_source(r.stdout) if r.ok else None
    if ip:
        return ip

    r = host.run(["hostname", "-I"], check=False, readonly=True)
    ip = parse_hostname_addresses(r.stdout) if r.ok else None
    if ip:
        return ip

    logger.warning("Could not detect server IP; falling back to %s", LOOPBACK)
    return LOOPBACK


def fetch_text(url: str, *, timeout: float = 30.0) -> str:
    resp = requests.get(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
    resp.raise_for_status()
    return resp.text


def http_ok(url: str, *, timeout: float = 5.0) -> bool:
    """Single health probe; any transport error counts as not responding."""

    try:
        resp = requests.get(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
    except requests.RequestException as e:
        logger.debug("Probe %s failed: %s", url, e)
        return False
    return resp.ok
