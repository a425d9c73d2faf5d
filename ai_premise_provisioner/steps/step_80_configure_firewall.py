from __future__ import annotations

import logging

from ..context import StepContext

logger = logging.getLogger(__name__)


class ConfigureFirewallStep:
    """Rebuild the ufw ruleset from scratch: deny in, allow out, allowlist."""

    step_id = "80_configure_firewall"
    fatal = False

    def is_satisfied(self, ctx: StepContext) -> bool:
        # The reset below makes a re-run converge instead of piling up rules.
        return False

    def run(self, ctx: StepContext) -> None:
        host = ctx.host

        if not host.command_exists("ufw"):
            logger.info("Installing ufw")
            host.install_packages(["ufw"])

        host.firewall_reset()
        host.set_firewall_default("deny", "incoming")
        host.set_firewall_default("allow", "outgoing")

        rules = ctx.variant.firewall_rules
        for rule in rules:
            logger.info("Allowing %s%s", rule.spec, f" ({rule.comment})" if rule.comment else "")
            host.apply_firewall_rule(rule)

        host.enable_firewall()
        # Keep the ruleset across reboots.
        host.enable_service("ufw", now=True)

        ctx.decide("firewall_allow", [r.spec for r in rules])
        status = host.firewall_status()
        if status:
            logger.info("Firewall status:\n%s", status.rstrip())
