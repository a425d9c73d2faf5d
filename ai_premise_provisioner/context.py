from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from .lib.env import HostEnv
from .lib.host import Host
from .lib.variants import Variant

logger = logging.getLogger(__name__)


@dataclass
class StepContext:
    host: Host
    env: HostEnv
    variant: Variant
    state: Dict[str, Any]

    @property
    def cfg(self) -> Dict[str, Any]:
        return self.state.get("config") or {}

    @property
    def execution(self) -> Dict[str, Any]:
        return self.state.setdefault("execution", {})

    def decide(self, key: str, value: Any) -> None:
        self.execution.setdefault("decisions", {})[key] = value

    def decision(self, key: str, default: Any = None) -> Any:
        return (self.execution.get("decisions") or {}).get(key, default)

    def warn(self, message: str, *args: Any) -> None:
        """Advisory problem: logged and recorded, never fatal."""

        text = message % args if args else message
        logger.warning(text)
        self.execution.setdefault("warnings", []).append(
            {"step": self.execution.get("current_step"), "message": text}
        )
