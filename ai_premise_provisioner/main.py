from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Optional

from .context import StepContext
from .lib.env import PATHS, HostEnv
from .lib.host import Host, SystemHost
from .lib.manifests import available_variants
from .lib.variants import Variant, load_variant
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import Step, StepFailed, run_pipeline
from .state_store import ensure_defaults, load_state, save_state
from .steps import (
    BaseToolsStep,
    ConfigureFirewallStep,
    ConfigureHostsStep,
    ConfigureProxyStep,
    GpuDriversStep,
    InstallGlancesStep,
    InstallOllamaStep,
    InstallProxyStep,
    InstallUvStep,
    OpenWebUIServiceStep,
    SummaryStep,
    SystemUpdateStep,
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_PATH = PATHS.state_default


def build_steps(variant: Variant) -> List[Step]:
    steps: List[Step] = [
        SystemUpdateStep(),
        GpuDriversStep(),
        BaseToolsStep(),
        InstallUvStep(),
        InstallOllamaStep(),
        InstallProxyStep(),
        ConfigureProxyStep(),
    ]
    if variant.hosts_entries:
        steps.append(ConfigureHostsStep())
    steps.append(ConfigureFirewallStep())
    if variant.monitoring_enabled:
        steps.append(InstallGlancesStep())
    steps += [
        OpenWebUIServiceStep(),
        SummaryStep(),
    ]
    return steps


def run(
    *,
    state_path: str = DEFAULT_STATE_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    variant: Optional[str] = None,
    monitoring: Optional[bool] = None,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
    dry_run: bool = False,
    verbose: bool = False,
    host: Optional[Host] = None,
    env: Optional[HostEnv] = None,
) -> Dict[str, Any]:
    """Run the provisioning pipeline and save the run record."""

    actual_log_path = configure_logging(log_path=log_path, level=logging.DEBUG if verbose else logging.INFO)

    state = ensure_defaults(load_state(state_path))
    cfg = state["config"]

    # CLI flags apply to this invocation only; `config` keeps what the user wrote.
    variant_id = variant or str(cfg["variant"])
    if monitoring is None:
        monitoring = cfg.get("monitoring_enabled")

    exe = state["execution"]
    exe["invocation"] = {"variant": variant_id, "monitoring": monitoring, "dry_run": dry_run}
    exe.setdefault("paths", {})["log_path_requested"] = log_path
    exe.setdefault("paths", {})["log_path_actual"] = actual_log_path

    try:
        env = env or HostEnv.detect(cfg.get("user"))
        if host is None:
            host = SystemHost(
                extra_path=[env.local_bin],
                dry_run=dry_run,
                http_timeout=float(cfg.get("http_timeout", 5)),
            )
        v = load_variant(variant_id, monitoring=monitoring)
        ctx = StepContext(host=host, env=env, variant=v, state=state)

        logger.info(
            "Provisioning variant=%s user=%s home=%s dry_run=%s",
            v.variant_id,
            env.user,
            env.home,
            host.dry_run,
        )

        result = run_pipeline(
            ctx=ctx,
            steps=build_steps(v),
            start_at=start_at,
            stop_after=stop_after,
            force=force,
        )
        exe["ran_steps"] = result.ran_steps
        exe["skipped_steps"] = result.skipped_steps
        exe["failed_steps"] = result.failed_steps
        logger.info(
            "Setup completed (ran=%d skipped=%d failed=%d warnings=%d)",
            len(result.ran_steps),
            len(result.skipped_steps),
            len(result.failed_steps),
            len(exe.get("warnings") or []),
        )
        return state
    except Exception as e:
        logger.exception("Provisioning failed")
        exe.setdefault("errors", []).append(
            {
                "step": exe.get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        save_state(state_path, state)


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="ai-premise-setup",
        description="Provision an Arch Linux host with Ollama, OpenWebUI, a TLS reverse proxy and a firewall.",
    )
    p.add_argument("--variant", default=None, choices=available_variants(), help="Reverse proxy variant (default: nginx)")
    p.add_argument("--state", default=DEFAULT_STATE_PATH, help="Path to the run record / config (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to the provisioning log")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 50_install_ollama)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--force", action="store_true", help="Run steps even if their precondition is satisfied")
    p.add_argument("--dry-run", action="store_true", help="Log mutations instead of performing them (this run only)")
    p.add_argument(
        "--monitoring",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Install the Glances dashboard for this run (default: config, then variant)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Show command output on the console")

    args = p.parse_args(argv)

    try:
        run(
            state_path=args.state,
            log_path=args.log,
            variant=args.variant,
            monitoring=args.monitoring,
            start_at=args.start_at,
            stop_after=args.stop_after,
            force=args.force,
            dry_run=args.dry_run,
            verbose=args.verbose,
        )
    except StepFailed as e:
        logger.error("Setup aborted at %s: %s", e.step_id, e.cause)
        return 1
    return 0
