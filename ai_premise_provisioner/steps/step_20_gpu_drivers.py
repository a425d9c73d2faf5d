from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..context import StepContext
from ..lib.hwdetect import GpuVendor, detect_gpu
from ..lib.manifests import load_gpu_drivers_manifest
from ..lib.pkg import missing_packages

logger = logging.getLogger(__name__)


class GpuDriversStep:
    step_id = "20_gpu_drivers"
    fatal = False

    def _vendor(self, ctx: StepContext) -> GpuVendor:
        hw = ctx.state.setdefault("hardware", {})
        if "gpu" not in hw:
            hw["gpu"] = detect_gpu(ctx.host)
        vendor = GpuVendor(hw["gpu"]["vendor"])
        ctx.decide("gpu_vendor", vendor.value)
        return vendor

    def _branch(self, vendor: GpuVendor) -> Dict[str, Any]:
        vendors = load_gpu_drivers_manifest().get("vendors") or {}
        branch = vendors.get(vendor.value)
        if not isinstance(branch, dict):
            raise RuntimeError(f"gpu_drivers.yaml: no driver branch for {vendor.value}")
        return branch

    def _packages(self, branch: Dict[str, Any]) -> List[str]:
        pkgs = branch.get("packages") or []
        if not isinstance(pkgs, list):
            raise RuntimeError("gpu_drivers.yaml: packages must be a list")
        return [str(p) for p in pkgs]

    def is_satisfied(self, ctx: StepContext) -> bool:
        vendor = self._vendor(ctx)
        if vendor is GpuVendor.NONE:
            logger.info("No GPU detected; running CPU-only")
            ctx.decide("gpu_drivers", [])
            return True
        if vendor is GpuVendor.UNKNOWN:
            ctx.warn("Unknown GPU vendor; skipping driver installation (CPU-only)")
            ctx.decide("gpu_drivers", [])
            return True

        pkgs = self._packages(self._branch(vendor))
        ctx.decide("gpu_drivers", pkgs)
        return not missing_packages(ctx.host, pkgs)

    def run(self, ctx: StepContext) -> None:
        vendor = self._vendor(ctx)
        if not vendor.has_driver_branch:
            return

        branch = self._branch(vendor)
        pkgs = self._packages(branch)
        logger.info("Installing %s drivers: %s", vendor.value, " ".join(pkgs))
        ctx.host.install_packages(pkgs)

        for unit in branch.get("enable_services") or []:
            ctx.host.enable_service(str(unit))

        logger.info("%s drivers installed", vendor.value)
