from __future__ import annotations

import logging

from ..context import StepContext

logger = logging.getLogger(__name__)


class InstallUvStep:
    step_id = "40_install_uv"
    fatal = True

    def is_satisfied(self, ctx: StepContext) -> bool:
        return ctx.host.command_exists("uv")

    def run(self, ctx: StepContext) -> None:
        url = str(ctx.cfg.get("uv_install_url"))
        logger.info("Installing uv from %s", url)
        # uv installs into ~/.local/bin of whoever runs the script.
        ctx.host.run_remote_script(url, as_user=ctx.env.user)

        if ctx.host.dry_run:
            return
        if not ctx.host.command_exists("uv"):
            raise RuntimeError(f"uv not found on PATH after install (expected in {ctx.env.local_bin})")
        logger.info("uv installed")
