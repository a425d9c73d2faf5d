from __future__ import annotations

from typing import Sequence

PACMAN_LOCK = "/var/lib/pacman/db.lck"


def pacman_refresh_argv() -> list[str]:
    return ["pacman", "-Sy", "--noconfirm"]


def pacman_upgrade_argv() -> list[str]:
    return ["pacman", "-Su", "--noconfirm"]


def pacman_install_argv(packages: Sequence[str], *, needed: bool = False) -> list[str]:
    argv = ["pacman", "-S", "--noconfirm"]
    if needed:
        argv.append("--needed")
    return [*argv, *packages]


def pacman_query_argv(package: str) -> list[str]:
    """Exit status 0 iff the package is installed."""
    return ["pacman", "-Q", package]


def missing_packages(host, packages: Sequence[str]) -> list[str]:
    return [p for p in packages if not host.is_package_installed(p)]
