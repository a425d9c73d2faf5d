from __future__ import annotations

import logging

from ..context import StepContext
from ..lib.pkg import PACMAN_LOCK

logger = logging.getLogger(__name__)


class SystemUpdateStep:
    step_id = "10_system_update"
    fatal = True

    def is_satisfied(self, ctx: StepContext) -> bool:
        # Always refresh: upgrades are the baseline for every later install.
        return False

    def run(self, ctx: StepContext) -> None:
        host = ctx.host

        # A crashed pacman leaves its lock behind and blocks every later call.
        if host.path_exists(PACMAN_LOCK):
            logger.warning("Stale pacman lock %s found; removing", PACMAN_LOCK)
            host.remove_file(PACMAN_LOCK)

        logger.info("Refreshing package database")
        host.refresh_packages()
        logger.info("Upgrading installed packages")
        host.upgrade_packages()
        logger.info("System update completed")
