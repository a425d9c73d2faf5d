from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path).expanduser()
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    if _detect_format(p) in {"yaml", "yml"}:
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) in {"yaml", "yml"}:
        p.write_text(yaml.safe_dump(state, sort_keys=False), encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with sane defaults (without overriding user values)."""

    state.setdefault("version", "1.0")
    state.setdefault("config", {})
    state.setdefault("execution", {})

    cfg = state["config"]
    cfg.setdefault("variant", "nginx")
    # None: invoking user (SUDO_USER when run under sudo).
    cfg.setdefault("user", None)
    # None: whatever the variant manifest says.
    cfg.setdefault("monitoring_enabled", None)
    cfg.setdefault("settle_seconds", 3)
    cfg.setdefault("http_timeout", 5)
    cfg.setdefault("openwebui_python", "3.11")
    cfg.setdefault("openwebui_port", 8080)
    cfg.setdefault("ollama_health_url", "http://127.0.0.1:11434/api/tags")
    cfg.setdefault("glances_port", 61208)
    cfg.setdefault("uv_install_url", "https://astral.sh/uv/install.sh")
    cfg.setdefault("ollama_install_url", "https://ollama.com/install.sh")

    # The record describes the latest run only; host facts are re-detected.
    state["hardware"] = {}
    exe = state["execution"]
    exe["current_step"] = None
    exe["warnings"] = []
    exe["errors"] = []
    exe["decisions"] = {}

    return state
