from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

SYSTEMD_UNIT_DIR = "/etc/systemd/system"


def unit_path(unit: str) -> str:
    name = unit if unit.endswith(".service") else f"{unit}.service"
    return f"{SYSTEMD_UNIT_DIR}/{name}"


def systemctl_argv(action: str, unit: str | None = None, *, now: bool = False) -> list[str]:
    argv = ["systemctl", action]
    if now:
        argv.append("--now")
    if unit:
        argv.append(unit)
    return argv


def is_active_argv(unit: str) -> list[str]:
    return ["systemctl", "is-active", "--quiet", unit]


def install_unit(host, unit: str, contents: str) -> str:
    """Write a unit file whole and make systemd pick it up."""

    path = unit_path(unit)
    host.write_text(path, contents, mode=0o644)
    host.daemon_reload()
    return path


def start_and_check(host, unit: str, *, restart: bool = False) -> bool:
    """Enable and (re)start a unit, then report whether it is active.

    The result is advisory: callers warn on False, they do not fail.
    """

    host.enable_service(unit)
    if restart:
        host.restart_service(unit)
    else:
        host.start_service(unit)
    active = host.is_service_active(unit)
    if active:
        logger.info("%s is active", unit)
    return active
