from __future__ import annotations

import logging
from pathlib import Path

from ..context import StepContext
from ..lib import systemd
from ..lib.templates import render_template

logger = logging.getLogger(__name__)

GLANCES_UNIT = "glances-web"
GLANCES_BIN = "/usr/bin/glances"
ENABLED_PLUGINS = ["cpu", "mem", "fs", "gpu", "sensors"]
DISABLED_PLUGINS = ["network", "docker", "processlist", "quicklook"]


class InstallGlancesStep:
    step_id = "90_install_glances"
    fatal = False

    def is_satisfied(self, ctx: StepContext) -> bool:
        return False

    def run(self, ctx: StepContext) -> None:
        host = ctx.host
        env = ctx.env
        owner = f"{env.user}:{env.user}"

        if host.command_exists("glances"):
            logger.info("Glances already installed")
        else:
            host.install_packages(["glances"])

        config_dir = str(Path(env.config_dir) / "glances")
        config_path = str(Path(config_dir) / "glances.conf")
        host.make_dirs(config_dir, owner=owner)
        host.write_text(
            config_path,
            render_template(
                "glances.conf.j2",
                plugins=ENABLED_PLUGINS,
                disabled_plugins=DISABLED_PLUGINS,
                hide_temp_under=35,
            ),
            owner=owner,
        )

        port = int(ctx.cfg.get("glances_port", 61208))
        systemd.install_unit(
            host,
            GLANCES_UNIT,
            render_template(
                "glances-web.service.j2",
                user=env.user,
                group=env.user,
                home=env.home,
                glances_bin=GLANCES_BIN,
                port=port,
                config_path=config_path,
            ),
        )
        if systemd.start_and_check(host, GLANCES_UNIT):
            logger.info("Glances web server listening on http://127.0.0.1:%d", port)
        else:
            ctx.warn("Glances web server may not be running properly")
