from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml


def _manifest_root() -> Path:
    # ai_premise_provisioner/lib/manifests.py -> ai_premise_provisioner/manifests
    return Path(__file__).resolve().parents[1] / "manifests"


def load_yaml_rel(rel_path: str) -> Dict[str, Any]:
    """Load a YAML manifest shipped with the package."""

    p = _manifest_root() / rel_path.lstrip("/")
    if not p.exists():
        raise FileNotFoundError(f"Manifest not found: {p}")
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data


def available_variants() -> List[str]:
    return sorted(p.stem for p in (_manifest_root() / "variants").glob("*.yaml"))


def load_variant_manifest(variant_id: str) -> Dict[str, Any]:
    return load_yaml_rel(f"variants/{variant_id}.yaml")


def load_gpu_drivers_manifest() -> Dict[str, Any]:
    return load_yaml_rel("gpu_drivers.yaml")
