import pytest

from ai_premise_provisioner.lib.firewall import (
    FirewallRule,
    build_allowlist,
    ufw_allow_argv,
    ufw_default_argv,
)
from ai_premise_provisioner.lib.variants import load_variant


def test_allowlist_starts_with_ssh_and_dedups():
    rules = build_allowlist([443, 80, 443, 22])
    assert [r.port for r in rules] == [22, 443, 80]


def test_nginx_variant_allowlist():
    assert load_variant("nginx").open_ports == [22, 80, 443, 8443, 11435, 61209]
    assert load_variant("nginx", monitoring=False).open_ports == [22, 80, 443, 8443, 11435]


def test_caddy_variant_allowlist():
    assert load_variant("caddy").open_ports == [22, 443]


def test_ufw_argv():
    assert ufw_allow_argv(FirewallRule(port=8443, comment="openwebui")) == [
        "ufw",
        "allow",
        "8443/tcp",
        "comment",
        "openwebui",
    ]
    assert ufw_default_argv("deny", "incoming") == ["ufw", "default", "deny", "incoming"]


def test_ufw_default_rejects_bad_policy():
    with pytest.raises(ValueError):
        ufw_default_argv("permit", "incoming")
