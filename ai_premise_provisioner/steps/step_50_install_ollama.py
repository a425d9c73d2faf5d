from __future__ import annotations

import logging

from ..context import StepContext

logger = logging.getLogger(__name__)

OLLAMA_UNIT = "ollama"


class InstallOllamaStep:
    step_id = "50_install_ollama"
    fatal = False

    def is_satisfied(self, ctx: StepContext) -> bool:
        return ctx.host.command_exists("ollama") and ctx.host.is_service_active(OLLAMA_UNIT)

    def run(self, ctx: StepContext) -> None:
        host = ctx.host

        if host.command_exists("ollama"):
            logger.info("Ollama already installed")
        else:
            url = str(ctx.cfg.get("ollama_install_url"))
            logger.info("Installing Ollama from %s", url)
            host.run_remote_script(url)

        host.enable_service(OLLAMA_UNIT, now=True)

        # Crude readiness wait before the one-shot checks below.
        host.sleep(float(ctx.cfg.get("settle_seconds", 3)))

        if host.is_service_active(OLLAMA_UNIT):
            logger.info("Ollama service is running")
        else:
            ctx.warn("Ollama service may not be running properly")

        url = str(ctx.cfg.get("ollama_health_url"))
        if host.http_ok(url):
            logger.info("Ollama API is responding at %s", url)
            ctx.decide("ollama_api_ok", True)
        else:
            ctx.warn("Ollama API is not responding at %s; it may still be starting up", url)
            ctx.decide("ollama_api_ok", False)
