from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import StepContext
from ..lib import systemd
from ..lib.templates import render_template
from ..lib.tls import generate_self_signed

logger = logging.getLogger(__name__)


class ConfigureProxyStep:
    """Write the proxy config (and certificate) whole, validate, then (re)start.

    Validation happens before any service action: a config the proxy rejects
    must never reach a running server.
    """

    step_id = "70_configure_proxy"
    fatal = True

    def is_satisfied(self, ctx: StepContext) -> bool:
        # Generated artifacts are rewritten on every run.
        return False

    def render_config(self, ctx: StepContext, **extra: Any) -> str:
        v = ctx.variant
        context: Dict[str, Any] = {"routes": v.routes, "redirects": v.redirects}
        context.update(extra)
        return render_template(v.proxy_config_template, **context)

    def run(self, ctx: StepContext) -> None:
        v = ctx.variant
        host = ctx.host
        extra: Dict[str, Any] = {}

        spec = v.cert_spec
        if spec is not None:
            tls = v.tls or {}
            key_path, cert_path = generate_self_signed(
                host,
                spec,
                ssl_dir=str(tls.get("ssl_dir") or "/etc/ssl/ai-premise"),
                key_name=str(tls.get("key_name") or "server.key"),
                cert_name=str(tls.get("cert_name") or "server.crt"),
            )
            extra.update(key_path=key_path, cert_path=cert_path)
            ctx.decide("tls", {"cert_path": cert_path, "days": spec.days, "subject_alt_names": spec.subject_alt_names})

        if v.proxy_data_dir:
            host.make_dirs(v.proxy_data_dir)

        host.write_text(
            v.proxy_config_path,
            self.render_config(ctx, **extra),
            mode=0o644,
            owner=v.proxy_config_owner,
        )

        validate = v.proxy_validate_argv
        if validate:
            logger.info("Validating %s configuration", v.proxy_kind)
            r = host.run(validate, privileged=True, check=False)
            if not r.ok:
                raise RuntimeError(f"{v.proxy_kind} configuration test failed: {(r.stderr or r.stdout).strip()}")
            logger.info("%s configuration is valid", v.proxy_kind)

        if systemd.start_and_check(host, v.proxy_service, restart=True):
            for route in v.routes:
                logger.info("  %s -> %s", route.hostname or f"https :{route.listen}", route.backend_url)
        else:
            ctx.warn("%s may not be running properly", v.proxy_service)
