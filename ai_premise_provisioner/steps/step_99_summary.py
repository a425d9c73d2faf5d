from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..context import StepContext
from ..lib.env import PATHS
from ..lib.net import detect_server_ip
from ..lib.variants import Variant

logger = logging.getLogger(__name__)

RULE = "=" * 63


def build_summary(
    *,
    server_ip: str,
    variant: Variant,
    gpu: Optional[Dict[str, Any]],
    warnings: int = 0,
) -> List[str]:
    """Human-readable end-of-run report."""

    gpu = gpu or {}
    if gpu.get("description"):
        gpu_line = f"GPU: {gpu['description']}"
    elif gpu.get("lspci_available") is False:
        gpu_line = "Processing: CPU-only (GPU detection unavailable)"
    else:
        gpu_line = "Processing: CPU-only (no GPU detected)"

    lines = [
        RULE,
        "AI-Premise server is ready",
        RULE,
        "Access:",
    ]
    for route in variant.routes:
        lines.append(f"  {route.title}: {route.url(server_ip)}")

    lines += [
        RULE,
        "Security & network:",
        f"  Firewall allows inbound: {', '.join(r.spec for r in variant.firewall_rules)}",
        "  All other inbound traffic: denied; outbound: allowed",
    ]
    spec = variant.cert_spec
    if spec is not None:
        lines.append(f"  TLS: self-signed certificate valid for {spec.days} days (accept the browser warning)")
    else:
        lines.append(f"  TLS: certificates issued by the {variant.proxy_kind} internal CA")
    if variant.hosts_entries:
        names = " ".join(h for e in variant.hosts_entries for h in e.hostnames)
        lines.append(f"  Local hostnames in {PATHS.hosts_file}: {names}")

    lines += [
        RULE,
        f"Server IP address: {server_ip}",
        gpu_line,
        f"Reverse proxy: {variant.proxy_kind}",
    ]
    if warnings:
        lines.append(f"Completed with {warnings} warning(s); see the log for details")
    lines.append(RULE)
    return lines


class SummaryStep:
    step_id = "99_summary"
    fatal = False

    def is_satisfied(self, ctx: StepContext) -> bool:
        return False

    def run(self, ctx: StepContext) -> None:
        server_ip = detect_server_ip(ctx.host)
        ctx.decide("server_ip", server_ip)

        lines = build_summary(
            server_ip=server_ip,
            variant=ctx.variant,
            gpu=(ctx.state.get("hardware") or {}).get("gpu"),
            warnings=len(ctx.execution.get("warnings") or []),
        )
        ctx.execution.setdefault("summary", {})["lines"] = lines
        for line in lines:
            logger.info(line)
