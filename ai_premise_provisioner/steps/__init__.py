from .step_10_system_update import SystemUpdateStep
from .step_20_gpu_drivers import GpuDriversStep
from .step_30_base_tools import BaseToolsStep
from .step_40_install_uv import InstallUvStep
from .step_50_install_ollama import InstallOllamaStep
from .step_60_install_proxy import InstallProxyStep
from .step_70_configure_proxy import ConfigureProxyStep
from .step_75_configure_hosts import ConfigureHostsStep
from .step_80_configure_firewall import ConfigureFirewallStep
from .step_90_install_glances import InstallGlancesStep
from .step_95_openwebui_service import OpenWebUIServiceStep
from .step_99_summary import SummaryStep

__all__ = [
    "SystemUpdateStep",
    "GpuDriversStep",
    "BaseToolsStep",
    "InstallUvStep",
    "InstallOllamaStep",
    "InstallProxyStep",
    "ConfigureProxyStep",
    "ConfigureHostsStep",
    "ConfigureFirewallStep",
    "InstallGlancesStep",
    "OpenWebUIServiceStep",
    "SummaryStep",
]
