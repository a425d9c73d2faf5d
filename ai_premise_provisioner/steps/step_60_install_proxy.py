from __future__ import annotations

import logging

from ..context import StepContext
from ..lib.pkg import missing_packages

logger = logging.getLogger(__name__)


class InstallProxyStep:
    step_id = "60_install_proxy"
    fatal = True

    def is_satisfied(self, ctx: StepContext) -> bool:
        v = ctx.variant
        return ctx.host.command_exists(v.proxy_command) and not missing_packages(ctx.host, v.proxy_packages)

    def run(self, ctx: StepContext) -> None:
        v = ctx.variant
        host = ctx.host

        logger.info("Installing %s: %s", v.proxy_kind, " ".join(v.proxy_packages))
        host.install_packages(v.proxy_packages, needed=True)

        if not host.dry_run and not host.command_exists(v.proxy_command):
            raise RuntimeError(f"Failed to install {v.proxy_kind}: {v.proxy_command} not on PATH")

        if v.proxy_start_on_install:
            host.enable_service(v.proxy_service, now=True)

        logger.info("%s installed", v.proxy_kind)
