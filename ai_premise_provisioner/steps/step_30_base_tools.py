from __future__ import annotations

import logging

from ..context import StepContext
from ..lib import systemd

logger = logging.getLogger(__name__)

# command on PATH -> package providing it
BASE_TOOLS = {
    "curl": "curl",
    "ssh": "openssh",
}
SSH_UNIT = "sshd"


class BaseToolsStep:
    step_id = "30_base_tools"
    fatal = False

    def _missing(self, ctx: StepContext) -> list[str]:
        return [pkg for cmd, pkg in BASE_TOOLS.items() if not ctx.host.command_exists(cmd)]

    def is_satisfied(self, ctx: StepContext) -> bool:
        return not self._missing(ctx) and ctx.host.is_service_active(SSH_UNIT)

    def run(self, ctx: StepContext) -> None:
        missing = self._missing(ctx)
        if missing:
            logger.info("Installing base tools: %s", " ".join(missing))
            ctx.host.install_packages(missing)
        else:
            logger.info("Base tools already installed")

        if not systemd.start_and_check(ctx.host, SSH_UNIT):
            ctx.warn("SSH service may not be running properly")
