from __future__ import annotations

import logging
from typing import List

from ..context import StepContext
from ..lib.env import PATHS
from ..lib.variants import HostsEntry

logger = logging.getLogger(__name__)


def has_hostname(contents: str, hostname: str) -> bool:
    for line in contents.splitlines():
        fields = line.split("#", 1)[0].split()
        if hostname in fields[1:]:
            return True
    return False


class ConfigureHostsStep:
    """Map the variant's local hostnames to loopback.

    The first hostname of an entry acts as its marker: if present, the entry
    is considered written.
    """

    step_id = "75_configure_hosts"
    fatal = False

    def _pending(self, ctx: StepContext) -> List[HostsEntry]:
        contents = ctx.host.read_text(PATHS.hosts_file) or ""
        return [e for e in ctx.variant.hosts_entries if e.hostnames and not has_hostname(contents, e.hostnames[0])]

    def is_satisfied(self, ctx: StepContext) -> bool:
        return not self._pending(ctx)

    def run(self, ctx: StepContext) -> None:
        for entry in self._pending(ctx):
            ctx.host.append_text(PATHS.hosts_file, entry.line + "\n")
            logger.info("Added %s to %s", entry.line, PATHS.hosts_file)
