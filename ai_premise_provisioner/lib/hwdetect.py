from __future__ import annotations

import enum
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_DISPLAY_CLASS_RE = re.compile(r"VGA|3D|Display")
_VENDOR_RE = re.compile(r"nvidia|amd|intel", re.IGNORECASE)


class GpuVendor(str, enum.Enum):
    NVIDIA = "nvidia"
    AMD = "amd"
    INTEL = "intel"
    NONE = "none"
    UNKNOWN = "unknown"

    @property
    def has_driver_branch(self) -> bool:
        return self in (GpuVendor.NVIDIA, GpuVendor.AMD, GpuVendor.INTEL)


def display_lines(lspci_text: Optional[str]) -> List[str]:
    if not lspci_text:
        return []
    return [ln for ln in lspci_text.splitlines() if _DISPLAY_CLASS_RE.search(ln)]


def classify_gpu_vendor(lspci_text: Optional[str]) -> GpuVendor:
    """Classify bus-enumeration text into a GPU vendor.

    Only display-class lines (VGA / 3D / Display) count. The earliest vendor
    keyword wins, compared case-insensitively. Display lines without a known
    vendor give UNKNOWN; no display lines at all give NONE.
    """

    lines = display_lines(lspci_text)
    if not lines:
        return GpuVendor.NONE

    m = _VENDOR_RE.search("\n".join(lines))
    if not m:
        return GpuVendor.UNKNOWN
    return GpuVendor(m.group(0).lower())


def detect_gpu(host) -> Dict[str, Any]:
    """Best-effort GPU detection with a stable schema."""

    gpu: Dict[str, Any] = {
        "vendor": GpuVendor.NONE.value,
        "present": False,
        "lspci_available": host.command_exists("lspci"),
        "raw": {},
    }

    if not gpu["lspci_available"]:
        logger.warning("lspci not found; cannot detect GPU, assuming CPU-only")
        return gpu

    r = host.run(["lspci"], check=False, readonly=True)
    lines = display_lines(r.stdout)
    vendor = classify_gpu_vendor(r.stdout)

    gpu["raw"]["lspci_display"] = lines
    gpu["present"] = bool(lines)
    gpu["vendor"] = vendor.value
    if lines:
        gpu["description"] = lines[0]

    logger.info("GPU: vendor=%s present=%s", gpu["vendor"], gpu["present"])
    return gpu
