from __future__ import annotations

import logging
from pathlib import Path

from ..context import StepContext
from ..lib import systemd
from ..lib.templates import render_template

logger = logging.getLogger(__name__)

OPENWEBUI_UNIT = "openwebui"


class OpenWebUIServiceStep:
    step_id = "95_openwebui_service"
    fatal = False

    def is_satisfied(self, ctx: StepContext) -> bool:
        return False

    def run(self, ctx: StepContext) -> None:
        host = ctx.host
        env = ctx.env

        data_dir = str(Path(env.home) / ".open-webui")
        host.make_dirs(data_dir, owner=f"{env.user}:{env.user}")

        port = int(ctx.cfg.get("openwebui_port", 8080))
        systemd.install_unit(
            host,
            OPENWEBUI_UNIT,
            render_template(
                "openwebui.service.j2",
                user=env.user,
                group=env.user,
                home=env.home,
                local_bin=env.local_bin,
                data_dir=data_dir,
                port=port,
                python_version=str(ctx.cfg.get("openwebui_python", "3.11")),
            ),
        )

        if systemd.start_and_check(host, OPENWEBUI_UNIT):
            logger.info("OpenWebUI started (data in %s)", data_dir)
        else:
            ctx.warn("OpenWebUI service may not be running properly")
